"""Image-to-sound pipeline: describe, then search."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import monotonic
from typing import List

from ..core.models import RankedSoundBite
from .vector_store import WeaviateVectorStore
from .vision import VisionDescriber

logger = logging.getLogger("soundmatch.matcher")


@dataclass
class MatchResult:
    description: str
    results: List[RankedSoundBite] = field(default_factory=list)
    describe_ms: int = 0
    search_ms: int = 0

    @property
    def processing_ms(self) -> int:
        return self.describe_ms + self.search_ms


class SoundMatcher:
    """Runs the description call and the search call one after the other."""

    def __init__(self, describer: VisionDescriber, vector_store: WeaviateVectorStore) -> None:
        self.describer = describer
        self.vector_store = vector_store

    async def match(
        self, image_data_url: str, limit: int = 10, threshold: float = 0.7
    ) -> MatchResult:
        started = monotonic()
        description = await self.describer.describe(image_data_url)
        described = monotonic()
        results = await self.vector_store.search_sounds(description, limit, threshold)
        finished = monotonic()

        result = MatchResult(
            description=description,
            results=results,
            describe_ms=int((described - started) * 1000),
            search_ms=int((finished - described) * 1000),
        )
        logger.info(
            "Matched image to %d sounds (describe=%dms search=%dms)",
            len(results),
            result.describe_ms,
            result.search_ms,
        )
        return result
