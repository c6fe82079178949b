"""SettingsPort: source of the context settings captured at the start of a run."""

from abc import ABC, abstractmethod

from callscribe.domain.models import ContextSnapshot


class SettingsPort(ABC):
    @abstractmethod
    def snapshot(self) -> ContextSnapshot:
        """Return an immutable copy of the current context settings."""
