"""FasterWhisperTranscriber: CTranslate2 Whisper with prompt conditioning.

The context prompt built from earlier turns is passed as ``initial_prompt``,
which biases decoding towards names and terms already heard in the call.
Quiet segments are normalised before decoding since telephone channels
often sit far below full scale.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from callscribe.audio import analyze_levels, as_float_array, normalize, resample_linear
from callscribe.domain.models import DEFAULT_SAMPLE_RATE
from callscribe.errors import TranscriptionCallFailedError
from callscribe.ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "small"
DEFAULT_BEAM_SIZE = 5

# Whisper's prompt window is 224 tokens; longer prompts are cut by the model anyway.
MAX_PROMPT_CHARS = 800


@dataclass
class TranscriptionStats:
    calls: int = 0
    audio_seconds: float = 0.0
    processing_seconds: float = 0.0

    @property
    def real_time_factor(self) -> float:
        return self.processing_seconds / self.audio_seconds if self.audio_seconds > 0 else 0.0


def _default_model_factory(model_id: str, device: str, compute_type: str) -> Any:
    from faster_whisper import WhisperModel
    return WhisperModel(model_id, device=device, compute_type=compute_type)


class FasterWhisperTranscriber(TranscriptionPort):
    def __init__(
        self,
        language: Optional[str] = "ru",
        compute_type: str = "int8",
        beam_size: int = DEFAULT_BEAM_SIZE,
        normalize_quiet_audio: bool = True,
        model_factory: Optional[Callable[[str, str, str], Any]] = None,
    ):
        self._language = language or None
        self._compute_type = compute_type
        self._beam_size = beam_size
        self._normalize = normalize_quiet_audio
        self._model_factory = model_factory or _default_model_factory
        self._model = None
        self._model_id = DEFAULT_MODEL_ID
        # CTranslate2 models are not safe for concurrent transcribe calls on one instance.
        self._lock = threading.Lock()
        self.stats = TranscriptionStats()

    def load(self, model_id: str = DEFAULT_MODEL_ID, device: str = "cpu") -> None:
        logger.info(f"Loading faster-whisper model {model_id} (device={device}, compute_type={self._compute_type})...")
        try:
            self._model = self._model_factory(model_id, device, self._compute_type)
        except Exception as e:
            logger.exception(f"Error loading Whisper model: {e}")
            raise
        self._model_id = model_id
        logger.info(f"faster-whisper transcriber ready: {model_id}")

    def model_name(self) -> str:
        return f"faster-whisper-{self._model_id}"

    def is_loaded(self) -> bool:
        return self._model is not None

    def _prepare(self, samples: np.ndarray, sample_rate: int) -> np.ndarray:
        audio = as_float_array(samples)
        if sample_rate != DEFAULT_SAMPLE_RATE:
            logger.warning(f"Audio is {sample_rate}Hz, expected {DEFAULT_SAMPLE_RATE}Hz")
            audio = resample_linear(audio, sample_rate, DEFAULT_SAMPLE_RATE)
        if self._normalize and analyze_levels(audio).is_quiet:
            audio = normalize(audio)
        return audio

    def transcribe(
        self,
        samples: np.ndarray,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        context_prompt: Optional[str] = None,
    ) -> str:
        if self._model is None:
            raise TranscriptionCallFailedError("Whisper model is not loaded")

        audio = self._prepare(samples, sample_rate)
        prompt = context_prompt[-MAX_PROMPT_CHARS:] if context_prompt else None
        duration = len(audio) / DEFAULT_SAMPLE_RATE

        start = time.perf_counter()
        try:
            with self._lock:
                segments, _info = self._model.transcribe(
                    audio,
                    language=self._language,
                    beam_size=self._beam_size,
                    initial_prompt=prompt,
                    condition_on_previous_text=False,
                    vad_filter=False,
                )
                text = " ".join(seg.text.strip() for seg in segments if seg.text.strip())
        except Exception as e:
            logger.error(f"faster-whisper transcription error: {e}", exc_info=True)
            raise TranscriptionCallFailedError(f"Whisper transcription failed: {e}") from e
        elapsed = time.perf_counter() - start

        self.stats.calls += 1
        self.stats.audio_seconds += duration
        self.stats.processing_seconds += elapsed
        logger.debug(
            f"Transcribed {duration:.1f}s in {elapsed:.2f}s "
            f"(RTF {elapsed / duration if duration else 0:.2f}, prompt {len(prompt or '')} chars)"
        )
        return text.strip()
