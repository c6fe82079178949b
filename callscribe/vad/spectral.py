"""SpectralVAD: share of FFT power inside the speech band.

Each Hann-windowed frame is scored by ``band_power / total_power``. The
decision threshold adapts per recording as ``max(median(ratio) * 0.8, floor)``
so a call with a loud far-end line does not flag every frame. Frames with
no meaningful energy (total <= 1e-4) score 0 and do not move the median.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from callscribe.audio import as_float_array, frame_signal
from callscribe.domain.models import DEFAULT_SAMPLE_RATE, SpeechSegment
from callscribe.vad.base import VoiceActivityDetector, build_segments, upper_median

logger = logging.getLogger(__name__)

MIN_TOTAL_ENERGY = 1e-4
MEDIAN_FACTOR = 0.8


@dataclass(frozen=True)
class SpectralVADParameters:
    fft_size: int = 512
    min_speech_duration: float = 0.5
    min_silence_duration: float = 0.3
    speech_freq_min: float = 300.0
    speech_freq_max: float = 3400.0
    speech_energy_ratio: float = 0.3

    @classmethod
    def default(cls) -> "SpectralVADParameters":
        return cls()

    @classmethod
    def telephone(cls) -> "SpectralVADParameters":
        """8 kHz telephone band, tolerant of short pauses between phrases."""
        return cls(min_speech_duration=0.3, min_silence_duration=0.5, speech_energy_ratio=0.25)

    @classmethod
    def wideband(cls) -> "SpectralVADParameters":
        return cls(
            fft_size=1024,
            min_speech_duration=0.3,
            min_silence_duration=0.3,
            speech_freq_min=80.0,
            speech_freq_max=8000.0,
            speech_energy_ratio=0.4,
        )


class SpectralVAD(VoiceActivityDetector):
    name = "Spectral VAD"

    def __init__(self, parameters: Optional[SpectralVADParameters] = None):
        self.parameters = parameters or SpectralVADParameters.default()
        self._window = np.hanning(self.parameters.fft_size)

    def band_energies(self, frames: np.ndarray, sample_rate: int) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(speech_energy, total_energy)`` per frame."""
        p = self.parameters
        if frames.shape[0] == 0:
            return np.empty(0), np.empty(0)

        bins = p.fft_size // 2
        spectrum = np.fft.rfft(frames * self._window, n=p.fft_size, axis=1)[:, :bins]
        power = np.square(np.abs(spectrum))

        resolution = sample_rate / p.fft_size
        min_bin = int(p.speech_freq_min / resolution)
        max_bin = min(int(p.speech_freq_max / resolution), bins - 1)
        if min_bin < 0 or min_bin > max_bin:
            logger.warning(f"SpectralVAD: invalid frequency band, min_bin={min_bin}, max_bin={max_bin}, bins={bins}")
            zeros = np.zeros(frames.shape[0])
            return zeros, zeros

        return power[:, min_bin:max_bin + 1].sum(axis=1), power.sum(axis=1)

    def adaptive_threshold(self, ratios: np.ndarray, valid: np.ndarray) -> float:
        floor = self.parameters.speech_energy_ratio
        if not np.any(valid):
            return floor
        return max(upper_median(ratios[valid]) * MEDIAN_FACTOR, floor)

    def detect(self, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> list[SpeechSegment]:
        data = as_float_array(samples)
        if data.size == 0:
            return []

        p = self.parameters
        frames, offsets = frame_signal(data.astype(np.float64), p.fft_size, p.fft_size // 2)
        speech_energy, total_energy = self.band_energies(frames, sample_rate)

        valid = total_energy > MIN_TOTAL_ENERGY
        ratios = np.zeros(total_energy.shape[0])
        np.divide(speech_energy, total_energy, out=ratios, where=valid)

        threshold = self.adaptive_threshold(ratios, valid)
        logger.debug(f"SpectralVAD: adaptive threshold = {threshold:.4f}")

        return build_segments(
            offsets / sample_rate,
            ratios >= threshold,
            p.fft_size / sample_rate,
            p.min_speech_duration,
            p.min_silence_duration,
        )
