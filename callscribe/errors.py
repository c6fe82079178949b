"""Error taxonomy for dialogue transcription runs.

The orchestrator is the only place that translates backend, timeout and
input problems into these types. VAD, merge and context building never
raise them.
"""

from typing import Optional


class CallscribeError(Exception):
    """Base class for all callscribe failures."""


class BackendNotReadyError(CallscribeError):
    """The transcription backend did not become ready within the bounded wait."""

    def __init__(self, attempts: int, interval: float):
        self.attempts = attempts
        self.interval = interval
        super().__init__(
            f"Transcription backend not ready after {attempts} checks "
            f"({attempts * interval:.0f}s)"
        )


class AudioInputError(CallscribeError):
    """Input audio cannot be used; raised before any segment is processed."""


class NoAudioTrackError(AudioInputError):
    """Input contains no samples at all."""


class InvalidChannelLayoutError(AudioInputError):
    """Input is neither mono nor two-channel stereo."""

    def __init__(self, channel_count: int):
        self.channel_count = channel_count
        super().__init__(f"Expected mono or stereo audio, got {channel_count} channels")


class InvalidAudioError(AudioInputError):
    """Samples or metadata are malformed (NaN/inf samples, bad sample rate)."""


class SilenceOnlyError(CallscribeError):
    """Every segment, or the whole mono file, is silence."""

    def __init__(self, file_name: str = ""):
        self.file_name = file_name
        super().__init__(f"'{file_name}' contains only silence" if file_name else "Audio contains only silence")


class EmptyTranscriptionError(CallscribeError):
    """The backend returned no text for a non-silent mono file."""


class TranscriptionCallFailedError(CallscribeError):
    """The transcriber raised while processing audio.

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, segment_start: Optional[float] = None):
        self.segment_start = segment_start
        super().__init__(message)


def user_message(exc: BaseException) -> str:
    """Message suitable for showing to an end user."""
    if isinstance(exc, SilenceOnlyError):
        return "The file contains only silence, no speech was detected"
    if isinstance(exc, BackendNotReadyError):
        return "The transcription model is not loaded yet, try again once it is ready"
    cause = exc.__cause__ or exc
    return f"Transcription failed: {cause}"
