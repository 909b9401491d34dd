"""Clients for the vision model and the vector database."""

from .matcher import MatchResult, SoundMatcher
from .uploads import validate_image_upload
from .vector_store import WeaviateVectorStore
from .vision import AUDIO_ANALYSIS_PROMPT, VisionDescriber, image_to_data_url

__all__ = [
    "AUDIO_ANALYSIS_PROMPT",
    "MatchResult",
    "SoundMatcher",
    "VisionDescriber",
    "WeaviateVectorStore",
    "image_to_data_url",
    "validate_image_upload",
]
