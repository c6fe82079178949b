"""Shared contract and segment-closing logic for the VAD engines."""

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from callscribe.domain.models import DEFAULT_SAMPLE_RATE, SpeechSegment


class VoiceActivityDetector(ABC):
    """Pure, deterministic speech detector over mono float PCM."""

    name: str = "vad"

    @abstractmethod
    def detect(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> list[SpeechSegment]:
        """Return non-overlapping speech segments sorted by start time."""

    def has_speech(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> bool:
        return bool(self.detect(samples, sample_rate))

    def total_speech_duration(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> float:
        return sum(s.duration for s in self.detect(samples, sample_rate))


def upper_median(values: np.ndarray) -> float:
    """Element at ``len // 2`` of the sorted values (no averaging)."""
    ordered = np.sort(values)
    return float(ordered[len(ordered) // 2])


def build_segments(
    times: np.ndarray,
    is_speech: np.ndarray,
    window_duration: float,
    min_speech_duration: float,
    min_silence_duration: float,
) -> list[SpeechSegment]:
    """Turn per-window speech decisions into segments.

    A segment opens on the first speech window and its end follows
    ``window start + window_duration`` of the latest speech window. It closes
    once a non-speech window starts ``min_silence_duration`` or more after
    that end. Segments shorter than ``min_speech_duration`` are dropped,
    including the one still open when the signal ends.
    """
    segments: list[SpeechSegment] = []
    current_start = None
    last_speech_time = 0.0

    for time, speech in zip(times.tolist(), is_speech.tolist()):
        if speech:
            if current_start is None:
                current_start = time
            last_speech_time = time + window_duration
        elif current_start is not None and time - last_speech_time >= min_silence_duration:
            segment = SpeechSegment(start_time=current_start, end_time=last_speech_time)
            if segment.duration >= min_speech_duration:
                segments.append(segment)
            current_start = None

    if current_start is not None:
        segment = SpeechSegment(start_time=current_start, end_time=last_speech_time)
        if segment.duration >= min_speech_duration:
            segments.append(segment)

    return segments
