"""InMemorySettingsStore: process-wide context settings with snapshot reads."""

import logging
import threading
from typing import Any, Optional

from callscribe.domain.models import ContextSnapshot
from callscribe.mappers import settings_to_snapshot
from callscribe.models import ContextSettings
from callscribe.ports.settings import SettingsPort

logger = logging.getLogger(__name__)


class InMemorySettingsStore(SettingsPort):
    """Holds the current ``ContextSettings``; updates are validated before they land.

    Runs never read the live settings, only a ``snapshot()`` taken at start,
    so an update during a run affects the next run only.
    """

    def __init__(self, settings: Optional[ContextSettings] = None):
        self._lock = threading.Lock()
        self._settings = settings or ContextSettings()

    @property
    def current(self) -> ContextSettings:
        with self._lock:
            return self._settings

    def snapshot(self) -> ContextSnapshot:
        with self._lock:
            return settings_to_snapshot(self._settings)

    def update(self, **changes: Any) -> ContextSettings:
        """Apply ``changes``; raises ``ValueError`` for unknown keys, ``ValidationError`` for bad values."""
        unknown = set(changes) - set(ContextSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown context settings: {', '.join(sorted(unknown))}")

        with self._lock:
            merged = {**self._settings.model_dump(), **changes}
            self._settings = ContextSettings(**merged)
            logger.info(f"Context settings updated: {', '.join(sorted(changes))}")
            return self._settings

    def reset(self) -> None:
        with self._lock:
            self._settings = ContextSettings()
