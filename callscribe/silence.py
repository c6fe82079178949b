"""SilenceDetector: RMS and duration gate in front of the transcriber."""

import logging
from typing import Sequence

import numpy as np

from callscribe.audio import as_float_array, rms
from callscribe.domain.models import DEFAULT_SAMPLE_RATE, AudioStats

logger = logging.getLogger(__name__)

SILENCE_RMS_THRESHOLD = 0.01
MIN_SPEECH_DURATION = 0.3


class SilenceDetector:
    def __init__(self, rms_threshold: float = SILENCE_RMS_THRESHOLD, min_duration: float = MIN_SPEECH_DURATION):
        self.rms_threshold = rms_threshold
        self.min_duration = min_duration

    def is_silence(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> bool:
        """True for empty, too short, or too quiet audio."""
        data = as_float_array(samples)
        if data.size == 0:
            logger.debug("Silence check: empty buffer")
            return True

        duration = data.size / sample_rate
        if duration < self.min_duration:
            logger.debug(f"Silence check: too short ({duration:.2f}s < {self.min_duration}s)")
            return True

        level = rms(data)
        if level < self.rms_threshold:
            logger.debug(f"Silence check: RMS {level:.4f} < {self.rms_threshold}")
            return True

        return False

    def analyze(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioStats:
        data = as_float_array(samples)
        return AudioStats(
            sample_count=int(data.size),
            duration=data.size / sample_rate,
            rms=rms(data),
            max_amplitude=float(np.max(data)) if data.size else 0.0,
            min_amplitude=float(np.min(data)) if data.size else 0.0,
            is_silence=self.is_silence(data, sample_rate),
        )
