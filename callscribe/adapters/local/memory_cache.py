"""InMemoryAudioCache: decoded audio shared between runs, LRU with a TTL."""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from callscribe.domain.models import DecodedAudio
from callscribe.ports.audio import AudioCachePort, CacheStatistics

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 300.0
DEFAULT_MAX_ENTRIES = 3
DEFAULT_MAX_BYTES = 500 * 1024 * 1024


@dataclass
class _CacheEntry:
    audio: DecodedAudio
    loaded_at: float


class InMemoryAudioCache(AudioCachePort):
    """Lock-guarded LRU keyed by file path.

    Entries older than ``max_age`` seconds count as misses. After each insert
    the least recently used entries are dropped until both the entry count
    and the memory limit hold; the newest entry always stays.
    """

    def __init__(
        self,
        max_age: float = DEFAULT_MAX_AGE,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_bytes: int = DEFAULT_MAX_BYTES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_age = max_age
        self._max_entries = max_entries
        self._max_bytes = max_bytes
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _is_fresh(self, entry: _CacheEntry) -> bool:
        return self._clock() - entry.loaded_at < self._max_age

    def _memory_usage(self) -> int:
        return sum(e.audio.size_in_bytes for e in self._entries.values())

    def _evict_if_needed(self) -> None:
        while len(self._entries) > 1 and (
            len(self._entries) > self._max_entries or self._memory_usage() > self._max_bytes
        ):
            key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Audio cache evicted {key}")

    def load_or_fetch(self, key: str, loader: Callable[[], DecodedAudio]) -> DecodedAudio:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if self._is_fresh(entry):
                    self._hits += 1
                    self._entries.move_to_end(key)
                    logger.debug(f"Audio cache hit: {key}")
                    return entry.audio
                del self._entries[key]
            self._misses += 1

        # Decode outside the lock; concurrent misses on one key may both load.
        audio = loader()

        with self._lock:
            self._entries[key] = _CacheEntry(audio=audio, loaded_at=self._clock())
            self._entries.move_to_end(key)
            self._evict_if_needed()
        logger.info(f"Audio cached: {key} ({audio.size_in_bytes / (1024 * 1024):.1f} MB)")
        return audio

    def is_cached(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._is_fresh(entry)

    def evict(self, key: str) -> None:
        with self._lock:
            if self._entries.pop(key, None) is not None:
                self._evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._evictions += len(self._entries)
            self._entries.clear()

    def stats(self) -> CacheStatistics:
        with self._lock:
            return CacheStatistics(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                entries=len(self._entries),
                size_bytes=self._memory_usage(),
            )

    def reset_statistics(self) -> None:
        with self._lock:
            self._hits = self._misses = self._evictions = 0
