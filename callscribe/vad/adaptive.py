"""AdaptiveVAD: energy and zero-crossing rate against signal-derived thresholds.

Thresholds come from the whole signal, so the detector follows the noise
floor of each recording:

    energy_threshold = mean(rms) + threshold_multiplier * std(rms)
    zcr_threshold    = median(zcr) * 1.2

A window is speech when the weighted vote
``energy_hit * (1 - zcr_weight) + zcr_hit * zcr_weight`` exceeds 0.5.
Lower multipliers and higher ZCR weights give more, shorter segments.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from callscribe.audio import as_float_array, frame_rms, frame_signal, frame_zcr
from callscribe.domain.models import DEFAULT_SAMPLE_RATE, SpeechSegment
from callscribe.vad.base import VoiceActivityDetector, build_segments, upper_median

logger = logging.getLogger(__name__)

# Used only when the signal is shorter than one window.
FALLBACK_ENERGY_THRESHOLD = 0.01
FALLBACK_ZCR_THRESHOLD = 0.05
ZCR_MEDIAN_FACTOR = 1.2


@dataclass(frozen=True)
class AdaptiveVADParameters:
    window_size: float = 0.03
    min_speech_duration: float = 0.5
    min_silence_duration: float = 0.3
    threshold_multiplier: float = 2.0
    zcr_weight: float = 0.3

    @classmethod
    def default(cls) -> "AdaptiveVADParameters":
        return cls()

    @classmethod
    def low_quality(cls) -> "AdaptiveVADParameters":
        return cls(
            window_size=0.05,
            min_speech_duration=0.3,
            min_silence_duration=0.5,
            threshold_multiplier=1.5,
            zcr_weight=0.4,
        )

    @classmethod
    def aggressive(cls) -> "AdaptiveVADParameters":
        return cls(
            window_size=0.02,
            min_speech_duration=0.2,
            min_silence_duration=0.2,
            threshold_multiplier=1.2,
            zcr_weight=0.5,
        )


class AdaptiveVAD(VoiceActivityDetector):
    name = "Adaptive VAD"

    def __init__(self, parameters: Optional[AdaptiveVADParameters] = None):
        self.parameters = parameters or AdaptiveVADParameters.default()

    def adaptive_thresholds(self, energies: np.ndarray, zcrs: np.ndarray) -> tuple[float, float]:
        if energies.size == 0:
            return FALLBACK_ENERGY_THRESHOLD, FALLBACK_ZCR_THRESHOLD
        energy_threshold = float(np.mean(energies) + self.parameters.threshold_multiplier * np.std(energies))
        zcr_threshold = upper_median(zcrs) * ZCR_MEDIAN_FACTOR
        return energy_threshold, zcr_threshold

    def detect(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> list[SpeechSegment]:
        data = as_float_array(samples)
        if data.size == 0:
            return []

        p = self.parameters
        window = int(p.window_size * sample_rate)
        frames, offsets = frame_signal(data, window, window // 2)
        energies = frame_rms(frames)
        zcrs = frame_zcr(frames)

        energy_threshold, zcr_threshold = self.adaptive_thresholds(energies, zcrs)
        logger.debug(f"AdaptiveVAD: energy threshold={energy_threshold:.4f}, ZCR threshold={zcr_threshold:.4f}")

        energy_hit = (energies >= energy_threshold).astype(np.float64)
        zcr_hit = (zcrs >= zcr_threshold).astype(np.float64)
        score = energy_hit * (1.0 - p.zcr_weight) + zcr_hit * p.zcr_weight

        return build_segments(
            offsets / sample_rate,
            score > 0.5,
            p.window_size,
            p.min_speech_duration,
            p.min_silence_duration,
        )
