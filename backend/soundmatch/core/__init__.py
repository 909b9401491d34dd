"""Core data models, errors and ranking helpers."""

from .errors import (
    DescriptionError,
    ExternalServiceError,
    ResponseShapeError,
    SoundMatchError,
    ValidationError,
)
from .models import NewSoundBite, RankedSoundBite, SoundBite, normalize_tags
from .ranking import calculate_confidence, rank_results

__all__ = [
    "DescriptionError",
    "ExternalServiceError",
    "ResponseShapeError",
    "SoundMatchError",
    "ValidationError",
    "NewSoundBite",
    "RankedSoundBite",
    "SoundBite",
    "normalize_tags",
    "calculate_confidence",
    "rank_results",
]
