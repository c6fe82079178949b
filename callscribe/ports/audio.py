"""Audio ports: file decoding and the shared decoded-audio cache."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from callscribe.domain.models import DecodedAudio


@dataclass(frozen=True)
class CacheStatistics:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    entries: int = 0
    size_bytes: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class AudioSourcePort(ABC):
    @abstractmethod
    def load(self, path: str) -> DecodedAudio:
        """Decode a file into float32 channels at 16 kHz."""


class AudioCachePort(ABC):
    @abstractmethod
    def load_or_fetch(self, key: str, loader: Callable[[], DecodedAudio]) -> DecodedAudio:
        """Return the cached audio for ``key``, calling ``loader`` on a miss."""

    @abstractmethod
    def evict(self, key: str) -> None:
        """Drop ``key`` if present."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""

    @abstractmethod
    def stats(self) -> CacheStatistics:
        """Return hit/miss/eviction counters and current size."""
