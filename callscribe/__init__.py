"""Speaker-separated transcription of two-party stereo call recordings."""

__version__ = "0.3.0"
