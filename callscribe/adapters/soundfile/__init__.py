"""libsndfile-backed audio ingestion."""

from .audio import SoundfileAudioSource

__all__ = ["SoundfileAudioSource"]
