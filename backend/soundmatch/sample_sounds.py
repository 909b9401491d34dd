"""Starter catalog loaded by ``soundmatch-admin setup``."""

from __future__ import annotations

from .core.models import NewSoundBite

SAMPLE_SOUNDS = [
    {
        "title": "City Traffic Ambience",
        "description": "Busy city street with cars passing, engines rumbling, distant horns, and urban background noise. Perfect for urban scenes and metropolitan environments.",
        "audioUrl": "https://example.com/city-traffic.mp3",
        "tags": ["urban", "traffic", "cars", "city", "ambient"],
        "duration": 120,
    },
    {
        "title": "Forest Birds Chirping",
        "description": "Peaceful forest soundscape with various bird species chirping, leaves rustling in gentle breeze, and natural woodland atmosphere.",
        "audioUrl": "https://example.com/forest-birds.mp3",
        "tags": ["nature", "birds", "forest", "peaceful", "ambient"],
        "duration": 180,
    },
    {
        "title": "Ocean Waves on Beach",
        "description": "Relaxing ocean waves washing against sandy beach, seagulls in distance, gentle sea breeze and coastal atmosphere.",
        "audioUrl": "https://example.com/ocean-waves.mp3",
        "tags": ["ocean", "waves", "beach", "water", "relaxing"],
        "duration": 200,
    },
    {
        "title": "Rain on Roof",
        "description": "Steady rainfall hitting roof tiles, gentle patter, occasional thunder rumble in distance, creating cozy indoor atmosphere.",
        "audioUrl": "https://example.com/rain-roof.mp3",
        "tags": ["rain", "weather", "roof", "cozy", "thunder"],
        "duration": 300,
    },
    {
        "title": "Footsteps on Gravel",
        "description": "Person walking on gravel path, steady rhythm, crunching stones, outdoor footsteps with natural reverb.",
        "audioUrl": "https://example.com/footsteps-gravel.mp3",
        "tags": ["footsteps", "walking", "gravel", "outdoor", "human"],
        "duration": 45,
    },
    {
        "title": "Coffee Shop Ambience",
        "description": "Busy coffee shop atmosphere with espresso machine hissing, customers chatting, cups clinking, and urban café vibe.",
        "audioUrl": "https://example.com/coffee-shop.mp3",
        "tags": ["coffee", "café", "social", "urban", "ambient"],
        "duration": 240,
    },
    {
        "title": "Crackling Fireplace",
        "description": "Warm fireplace with wood crackling, flames dancing, occasional pop of burning logs, cozy indoor atmosphere.",
        "audioUrl": "https://example.com/fireplace.mp3",
        "tags": ["fire", "fireplace", "warm", "cozy", "indoor"],
        "duration": 360,
    },
    {
        "title": "Keyboard Typing",
        "description": "Fast typing on mechanical keyboard, rapid key presses, office work sound, productive computer activity.",
        "audioUrl": "https://example.com/typing.mp3",
        "tags": ["typing", "keyboard", "office", "computer", "work"],
        "duration": 30,
    },
    {
        "title": "Wind Through Trees",
        "description": "Strong wind blowing through tree branches, leaves rustling intensely, natural outdoor wind sound.",
        "audioUrl": "https://example.com/wind-trees.mp3",
        "tags": ["wind", "trees", "nature", "outdoor", "weather"],
        "duration": 150,
    },
    {
        "title": "Dog Barking",
        "description": "Medium-sized dog barking repeatedly, alert and energetic, typical domestic dog sounds in neighborhood setting.",
        "audioUrl": "https://example.com/dog-barking.mp3",
        "tags": ["dog", "barking", "animal", "pet", "domestic"],
        "duration": 25,
    },
]


def load_sample_sounds() -> list[NewSoundBite]:
    return [NewSoundBite.model_validate(item) for item in SAMPLE_SOUNDS]
