"""EnergyVAD: fixed RMS threshold over a sliding window (50% overlap)."""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from callscribe.audio import as_float_array, frame_rms, frame_signal
from callscribe.domain.models import DEFAULT_SAMPLE_RATE, SpeechSegment
from callscribe.vad.base import VoiceActivityDetector, build_segments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnergyVADParameters:
    window_size: float = 0.03
    min_speech_duration: float = 0.5
    min_silence_duration: float = 0.3
    rms_threshold: float = 0.02

    @classmethod
    def default(cls) -> "EnergyVADParameters":
        return cls()

    @classmethod
    def low_quality(cls) -> "EnergyVADParameters":
        """Noisy or telephone audio: wider window, more sensitive threshold."""
        return cls(window_size=0.05, min_speech_duration=0.3, min_silence_duration=0.5, rms_threshold=0.01)

    @classmethod
    def high_quality(cls) -> "EnergyVADParameters":
        return cls(window_size=0.02, min_speech_duration=0.3, min_silence_duration=0.2, rms_threshold=0.03)


class EnergyVAD(VoiceActivityDetector):
    name = "Standard VAD"

    def __init__(self, parameters: Optional[EnergyVADParameters] = None):
        self.parameters = parameters or EnergyVADParameters.default()

    def detect(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> list[SpeechSegment]:
        data = as_float_array(samples)
        if data.size == 0:
            return []

        p = self.parameters
        window = int(p.window_size * sample_rate)
        frames, offsets = frame_signal(data, window, window // 2)
        is_speech = frame_rms(frames) >= p.rms_threshold

        return build_segments(
            offsets / sample_rate,
            is_speech,
            p.window_size,
            p.min_speech_duration,
            p.min_silence_duration,
        )
