"""Validation of uploaded image files."""

from __future__ import annotations

from ..core import ValidationError


def format_file_size(size: int) -> str:
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def validate_image_upload(
    content: bytes | None,
    content_type: str | None,
    max_file_size: int,
    supported_formats: list[str],
) -> None:
    if not content:
        raise ValidationError("No image file provided")
    if len(content) > max_file_size:
        raise ValidationError(
            f"File size too large. Maximum size is {format_file_size(max_file_size)}"
        )
    if content_type not in supported_formats:
        raise ValidationError(
            "Unsupported file format. Supported formats: " + ", ".join(supported_formats)
        )
