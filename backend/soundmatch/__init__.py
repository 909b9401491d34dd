"""SoundMatch: find the sound an image evokes."""

__version__ = "0.1.0"
