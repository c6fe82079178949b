"""Framework-agnostic domain models for callscribe.

Processing logic (VAD, segmentation, context building, the orchestrator)
works on these dataclasses only. Pydantic DTOs in ``callscribe.models``
stay at the boundary, with mappers in between.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 16000


@dataclass(frozen=True)
class SpeechSegment:
    """A contiguous interval classified as speech, in seconds."""
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def start_sample(self, sample_rate: int = DEFAULT_SAMPLE_RATE) -> int:
        return int(self.start_time * sample_rate)

    def end_sample(self, sample_rate: int = DEFAULT_SAMPLE_RATE) -> int:
        return int(self.end_time * sample_rate)


class Speaker(Enum):
    """One side of a two-party call. Left channel is Speaker 1."""
    LEFT = 0
    RIGHT = 1

    @property
    def channel(self) -> int:
        return self.value

    @property
    def display_name(self) -> str:
        return f"Speaker {self.value + 1}"

    @classmethod
    def for_channel(cls, channel: int) -> "Speaker":
        return cls.LEFT if channel == 0 else cls.RIGHT


@dataclass(frozen=True)
class ChannelSegment:
    """A speech segment bound to its channel, with its own copy of the audio."""
    segment: SpeechSegment
    channel: int
    speaker: Speaker
    audio: np.ndarray = field(repr=False, compare=False)

    @property
    def start_time(self) -> float:
        return self.segment.start_time

    @property
    def end_time(self) -> float:
        return self.segment.end_time


@dataclass(frozen=True)
class Turn:
    """One speaker's transcribed utterance."""
    speaker: Speaker
    text: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def _format_timestamp(seconds: float) -> str:
    minutes = int(seconds) // 60
    secs = int(seconds) % 60
    millis = int((seconds % 1) * 1000)
    return f"{minutes:02d}:{secs:02d}.{millis:03d}"


@dataclass(frozen=True)
class DialogueTranscription:
    """Ordered speaker turns for one file.

    ``turns`` is chronological by construction; ``sorted_by_time`` re-sorts
    anyway so callers holding a hand-built instance get a timeline view.
    """
    turns: tuple[Turn, ...] = ()
    is_stereo: bool = False
    total_duration: float = 0.0
    cancelled: bool = False

    @property
    def sorted_by_time(self) -> list[Turn]:
        return sorted(self.turns, key=lambda t: t.start_time)

    def formatted(self) -> str:
        if not self.is_stereo:
            return " ".join(turn.text for turn in self.sorted_by_time)
        return "\n\n".join(
            f"[{_format_timestamp(turn.start_time)}] {turn.speaker.display_name}: {turn.text}"
            for turn in self.sorted_by_time
        )

    def remove_silence_periods(self, min_gap: float = 2.0) -> "DialogueTranscription":
        """Collapse pauses where both speakers are silent.

        Gaps of at least ``min_gap`` seconds shrink to half a second, shorter
        gaps are kept. Timestamps are rebased so the first turn starts at 0.
        """
        if not self.turns:
            return self

        ordered = self.sorted_by_time
        compressed: list[Turn] = []
        current_time = 0.0

        for index, turn in enumerate(ordered):
            if index > 0:
                gap = turn.start_time - ordered[index - 1].end_time
                current_time += gap if gap < min_gap else 0.5
            compressed.append(replace(
                turn,
                start_time=current_time,
                end_time=current_time + turn.duration,
            ))
            current_time += turn.duration

        new_duration = compressed[-1].end_time
        logger.info(
            f"Dialogue compaction: {self.total_duration:.1f}s -> {new_duration:.1f}s "
            f"({len(compressed)} turns)"
        )
        return replace(self, turns=tuple(compressed), total_duration=new_duration)


@dataclass(frozen=True)
class ContextSnapshot:
    """Context settings captured once at the start of a run."""
    max_context_length: int = 600
    max_recent_turns: int = 5
    enable_entity_extraction: bool = True
    enable_vocabulary_integration: bool = True
    post_vad_merge_threshold: float = 1.5
    base_context_prompt: str = ""


@dataclass(frozen=True, eq=False)
class DecodedAudio:
    """Pre-decoded float PCM, one array per channel."""
    channels: tuple[np.ndarray, ...]
    sample_rate: int = DEFAULT_SAMPLE_RATE

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def is_stereo(self) -> bool:
        return self.channel_count == 2

    @property
    def frame_count(self) -> int:
        return max((len(c) for c in self.channels), default=0)

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate

    @property
    def size_in_bytes(self) -> int:
        return sum(c.nbytes for c in self.channels)

    @classmethod
    def mono(cls, samples: Sequence[float], sample_rate: int = DEFAULT_SAMPLE_RATE) -> "DecodedAudio":
        return cls(channels=(np.asarray(samples, dtype=np.float32),), sample_rate=sample_rate)

    @classmethod
    def stereo(
        cls,
        left: Sequence[float],
        right: Sequence[float],
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> "DecodedAudio":
        return cls(
            channels=(np.asarray(left, dtype=np.float32), np.asarray(right, dtype=np.float32)),
            sample_rate=sample_rate,
        )

    @classmethod
    def from_interleaved(
        cls,
        samples: Sequence[float],
        channel_count: int = 2,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> "DecodedAudio":
        """Split L,R,L,R... interleaved PCM into per-channel arrays."""
        data = np.asarray(samples, dtype=np.float32)
        if channel_count < 1:
            raise ValueError(f"channel_count must be positive, got {channel_count}")
        return cls(
            channels=tuple(np.ascontiguousarray(data[ch::channel_count]) for ch in range(channel_count)),
            sample_rate=sample_rate,
        )


@dataclass
class AudioStats:
    """Level statistics of a sample buffer."""
    sample_count: int
    duration: float
    rms: float
    max_amplitude: float
    min_amplitude: float
    is_silence: bool
