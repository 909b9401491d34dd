"""Distance-to-confidence conversion and result ranking."""

from __future__ import annotations

from typing import Iterable, List

from .models import RankedSoundBite, SoundBiteHit


def calculate_confidence(distance: float) -> float:
    """Map a vector distance (0 = identical, nominally up to 2) onto 0-100."""

    return max(0.0, min(100.0, (1 - distance / 2) * 100))


def format_confidence(confidence: float) -> str:
    return f"{round(confidence)}%"


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


def rank_results(hits: Iterable[SoundBiteHit], threshold: float) -> List[RankedSoundBite]:
    """Score hits, drop those under ``threshold * 100`` and sort best first.

    Ties keep the order the vector database returned them in.
    """

    cutoff = threshold * 100
    ranked: list[RankedSoundBite] = []
    for hit in hits:
        confidence = calculate_confidence(hit.additional.distance)
        if confidence < cutoff:
            continue
        ranked.append(
            RankedSoundBite(
                id=hit.additional.id,
                title=hit.title,
                description=hit.description,
                audio_url=hit.audio_url,
                tags=hit.tags or [],
                duration=hit.duration,
                confidence=confidence,
            )
        )

    ranked.sort(key=lambda r: r.confidence, reverse=True)
    return ranked
