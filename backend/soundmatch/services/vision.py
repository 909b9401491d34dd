"""Vision-model client that turns an image into a sound description."""

from __future__ import annotations

import base64
import logging
from time import monotonic

import httpx
from pydantic import ValidationError as ShapeMismatch

from ..core import DescriptionError, ExternalServiceError, ResponseShapeError, ValidationError
from ..core.models import ChatCompletion

logger = logging.getLogger("soundmatch.vision")

AUDIO_ANALYSIS_PROMPT = (
    "Look at the facial expression in this selfie and reply with a short, funny "
    "one-liner that fits it, followed by the one meme sound that best matches "
    "the mood. Describe the sound in a few words with its usual hashtags so it "
    "can be looked up in a sound library. Keep the tone humorous, light and brief."
)


def image_to_data_url(content: bytes, mime_type: str) -> str:
    """Encode raw image bytes as a ``data:<mime>;base64,...`` URL."""

    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class VisionDescriber:
    """Calls the OpenAI chat completions API with an image attachment."""

    def __init__(
        self,
        api_key: str,
        model: str = "chatgpt-4o-latest",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 500,
        temperature: float = 0.7,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def validate_config(self) -> bool:
        return self.api_key.startswith("sk-") and len(self.api_key) > 20

    async def describe(self, image_data_url: str, prompt: str = AUDIO_ANALYSIS_PROMPT) -> str:
        """Return the model's first text answer for the image, verbatim."""

        if not image_data_url.startswith("data:image/"):
            raise ValidationError("Image must be a base64 data URL with an image MIME type")

        body = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": image_data_url}},
                    ],
                }
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        started = monotonic()
        try:
            response = await self._client.post("/chat/completions", json=body)
        except httpx.HTTPError as exc:
            logger.error("OpenAI request failed: %s", exc)
            raise ExternalServiceError(f"Failed to analyze image: {exc}") from exc

        if not response.is_success:
            detail = _error_detail(response)
            logger.error("OpenAI returned %d: %s", response.status_code, detail)
            raise ExternalServiceError(f"Failed to analyze image: {detail}")

        try:
            completion = ChatCompletion.model_validate(response.json())
        except (ValueError, ShapeMismatch) as exc:
            logger.error("Unexpected OpenAI response: %s", exc)
            raise ResponseShapeError(
                "Failed to analyze image: unexpected response from OpenAI"
            ) from exc

        description = completion.choices[0].message.content if completion.choices else None
        if not description:
            raise DescriptionError(
                "Failed to analyze image: No description generated from OpenAI"
            )

        logger.info(
            "Vision model %s produced %d chars in %.0fms",
            completion.model or self.model,
            len(description),
            (monotonic() - started) * 1000,
        )
        return description

    async def test_connection(self) -> bool:
        try:
            response = await self._client.get("/models")
        except httpx.HTTPError as exc:
            logger.warning("OpenAI connection test failed: %s", exc)
            return False
        return response.is_success


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"
