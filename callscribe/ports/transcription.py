"""TranscriptionPort: abstract interface for speech-to-text engines."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from callscribe.domain.models import DEFAULT_SAMPLE_RATE


class TranscriptionPort(ABC):
    @abstractmethod
    def load(self, model_id: str, device: str = "cpu") -> None:
        """Load the ASR model onto the specified device."""

    @abstractmethod
    def transcribe(
        self,
        samples: np.ndarray,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        context_prompt: Optional[str] = None,
    ) -> str:
        """Transcribe a mono float32 buffer, conditioned on ``context_prompt``. Returns the text."""

    @abstractmethod
    def model_name(self) -> str:
        """Return the human-readable model name for results and logs."""

    @abstractmethod
    def is_loaded(self) -> bool:
        """Whether the model has been loaded and is ready for inference."""
