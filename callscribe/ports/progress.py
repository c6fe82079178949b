"""ProgressPort: abstract interface for reporting per-file progress."""

from abc import ABC, abstractmethod

from callscribe.domain.models import DialogueTranscription


class ProgressPort(ABC):
    @abstractmethod
    def report(self, file_name: str, progress: float, dialogue: DialogueTranscription) -> None:
        """Report progress in [0, 1] with every turn produced so far."""
