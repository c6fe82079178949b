"""Sample-buffer helpers shared by VAD, silence gating and the transcriber.

All functions take float32 PCM normalised to roughly [-1, 1].
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from callscribe.domain.models import DEFAULT_SAMPLE_RATE, SpeechSegment

logger = logging.getLogger(__name__)


def as_float_array(samples: Sequence[float]) -> np.ndarray:
    return np.asarray(samples, dtype=np.float32)


def rms(samples: Sequence[float]) -> float:
    data = as_float_array(samples)
    if data.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(data, dtype=np.float64))))


def zero_crossing_rate(samples: Sequence[float]) -> float:
    """Sign changes per sample; a zero sample counts as positive."""
    data = as_float_array(samples)
    if data.size < 2:
        return 0.0
    signs = data >= 0
    return float(np.count_nonzero(signs[1:] != signs[:-1]) / data.size)


def frame_signal(samples: np.ndarray, window: int, hop: int) -> tuple[np.ndarray, np.ndarray]:
    """Cut ``samples`` into full windows of ``window`` samples every ``hop``.

    Returns ``(frames, offsets)``; a trailing partial window is dropped.
    """
    if window <= 0 or samples.size < window:
        return np.empty((0, max(window, 0)), dtype=samples.dtype), np.empty(0, dtype=np.int64)
    hop = max(hop, 1)
    frames = np.lib.stride_tricks.sliding_window_view(samples, window)[::hop]
    offsets = np.arange(frames.shape[0], dtype=np.int64) * hop
    return frames, offsets


def frame_rms(frames: np.ndarray) -> np.ndarray:
    if frames.shape[0] == 0:
        return np.empty(0, dtype=np.float64)
    return np.sqrt(np.mean(np.square(frames, dtype=np.float64), axis=1))


def frame_zcr(frames: np.ndarray) -> np.ndarray:
    if frames.shape[0] == 0 or frames.shape[1] < 2:
        return np.zeros(frames.shape[0], dtype=np.float64)
    signs = frames >= 0
    crossings = np.count_nonzero(signs[:, 1:] != signs[:, :-1], axis=1)
    return crossings / frames.shape[1]


def extract_segment_audio(
    segment: SpeechSegment,
    samples: np.ndarray,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> np.ndarray:
    """Copy the slice covered by ``segment``, clamped to the buffer bounds."""
    start = max(0, segment.start_sample(sample_rate))
    end = min(len(samples), segment.end_sample(sample_rate))
    if start >= end:
        return np.empty(0, dtype=np.float32)
    return np.array(samples[start:end], dtype=np.float32)


@dataclass(frozen=True)
class NormalizationParameters:
    target_rms: float = 0.1
    max_gain_db: float = 20.0
    quiet_threshold: float = 0.02
    enable_peak_limiting: bool = True
    peak_limit: float = 0.95


@dataclass
class LevelStats:
    peak: float
    rms: float
    is_quiet: bool
    recommended_gain: float


def analyze_levels(samples: Sequence[float], params: NormalizationParameters = NormalizationParameters()) -> LevelStats:
    data = as_float_array(samples)
    if data.size == 0:
        return LevelStats(peak=0.0, rms=0.0, is_quiet=True, recommended_gain=1.0)

    peak = float(np.max(np.abs(data)))
    level = rms(data)
    gain = 1.0
    if level > 0.0001:
        gain = min(params.target_rms / level, 10 ** (params.max_gain_db / 20.0))
        if params.enable_peak_limiting and peak > 0:
            gain = min(gain, params.peak_limit / peak)

    return LevelStats(peak=peak, rms=level, is_quiet=level < params.quiet_threshold, recommended_gain=gain)


def normalize(samples: Sequence[float], params: NormalizationParameters = NormalizationParameters()) -> np.ndarray:
    """Boost quiet audio towards ``target_rms`` with tanh soft clipping."""
    data = as_float_array(samples)
    if data.size == 0:
        return data

    stats = analyze_levels(data, params)
    if abs(stats.recommended_gain - 1.0) < 0.01:
        return data

    boosted = data * np.float32(stats.recommended_gain)
    if params.enable_peak_limiting:
        limit = np.float32(params.peak_limit)
        boosted = np.tanh(boosted / limit) * limit
    logger.debug(f"Normalized audio: gain={stats.recommended_gain:.2f}, rms {stats.rms:.4f} -> {rms(boosted):.4f}")
    return boosted.astype(np.float32)


def resample_linear(samples: Sequence[float], source_rate: int, target_rate: int = DEFAULT_SAMPLE_RATE) -> np.ndarray:
    """Linear-interpolation resample; adequate for speech at telephone rates."""
    data = as_float_array(samples)
    if source_rate == target_rate or data.size == 0:
        return data
    target_len = int(len(data) * target_rate / source_rate)
    indices = np.linspace(0, len(data) - 1, target_len)
    return np.interp(indices, np.arange(len(data)), data).astype(np.float32)
