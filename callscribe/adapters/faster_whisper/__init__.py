"""faster-whisper adapter for prompt-conditioned segment transcription."""

from .transcription import FasterWhisperTranscriber

__all__ = ["FasterWhisperTranscriber"]
