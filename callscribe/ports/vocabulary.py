"""VocabularyPort: read-only access to domain terms and recognition corrections."""

from abc import ABC, abstractmethod


class VocabularyPort(ABC):
    @abstractmethod
    def enabled_terms(self) -> list[str]:
        """Terms from every enabled dictionary, in dictionary order."""

    @abstractmethod
    def correct(self, text: str) -> str:
        """Replace known misrecognitions in ``text``."""
