"""SoundfileAudioSource: decodes WAV/FLAC/OGG files into float32 channels at 16 kHz."""

import logging
import os

import numpy as np
import soundfile

from callscribe.audio import resample_linear
from callscribe.domain.models import DEFAULT_SAMPLE_RATE, DecodedAudio
from callscribe.errors import InvalidAudioError, InvalidChannelLayoutError, NoAudioTrackError
from callscribe.ports.audio import AudioSourcePort

logger = logging.getLogger(__name__)


class SoundfileAudioSource(AudioSourcePort):
    def __init__(self, target_sample_rate: int = DEFAULT_SAMPLE_RATE):
        self._target_rate = target_sample_rate

    def load(self, path: str) -> DecodedAudio:
        if not os.path.exists(path):
            raise FileNotFoundError(path)

        try:
            data, sample_rate = soundfile.read(path, dtype="float32", always_2d=True)
        except (soundfile.LibsndfileError, RuntimeError) as e:
            raise InvalidAudioError(f"Cannot decode {os.path.basename(path)}: {e}") from e

        frames, channel_count = data.shape
        if frames == 0 or channel_count == 0:
            raise NoAudioTrackError(f"{os.path.basename(path)} contains no audio")
        if channel_count > 2:
            raise InvalidChannelLayoutError(channel_count)

        if sample_rate != self._target_rate:
            logger.warning(f"Audio is {sample_rate}Hz, resampling to {self._target_rate}Hz")

        channels = tuple(
            resample_linear(np.ascontiguousarray(data[:, ch]), sample_rate, self._target_rate)
            for ch in range(channel_count)
        )
        audio = DecodedAudio(channels=channels, sample_rate=self._target_rate)
        logger.info(
            f"Loaded {os.path.basename(path)}: {channel_count} channel(s), "
            f"{audio.duration:.1f}s @ {self._target_rate}Hz"
        )
        return audio
