"""Stereo dialogue assembly: per-channel VAD, chronological interleave, merge.

Also holds the fixed-length chunking used when transcription runs without
VAD (``TranscriptionMode.CHUNKED``).
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

import numpy as np

from callscribe.audio import extract_segment_audio
from callscribe.domain.models import DEFAULT_SAMPLE_RATE, ChannelSegment, DecodedAudio, Speaker, SpeechSegment
from callscribe.vad.base import VoiceActivityDetector

logger = logging.getLogger(__name__)

DEFAULT_MERGE_THRESHOLD = 1.5


def merge_adjacent_segments(
    segments: Sequence[ChannelSegment],
    threshold: float = DEFAULT_MERGE_THRESHOLD,
) -> list[ChannelSegment]:
    """Merge consecutive same-speaker segments separated by less than ``threshold`` seconds.

    Expects a time-sorted list. A speaker change always starts a new segment,
    even when the gap is zero or negative.
    """
    if not segments:
        return []

    merged: list[ChannelSegment] = []
    current = segments[0]

    for nxt in segments[1:]:
        gap = nxt.start_time - current.end_time
        if nxt.speaker == current.speaker and gap < threshold:
            current = replace(
                current,
                segment=SpeechSegment(start_time=current.start_time, end_time=nxt.end_time),
                audio=np.concatenate([current.audio, nxt.audio]),
            )
        else:
            merged.append(current)
            current = nxt

    merged.append(current)

    if len(merged) < len(segments):
        logger.debug(f"Merged {len(segments)} segments into {len(merged)} (threshold {threshold}s)")
    return merged


def split_channels(interleaved: Sequence[float], channel_count: int = 2) -> list[np.ndarray]:
    """Split interleaved L,R,L,R... samples into one array per channel."""
    return list(DecodedAudio.from_interleaved(interleaved, channel_count).channels)


def tag_channel_segments(
    segments: Iterable[SpeechSegment],
    samples: np.ndarray,
    channel: int,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> list[ChannelSegment]:
    speaker = Speaker.for_channel(channel)
    return [
        ChannelSegment(
            segment=segment,
            channel=channel,
            speaker=speaker,
            audio=extract_segment_audio(segment, samples, sample_rate),
        )
        for segment in segments
    ]


def interleave_channel_segments(*channels: Sequence[ChannelSegment]) -> list[ChannelSegment]:
    """One chronological list; equal start times put the left channel first."""
    combined = [segment for channel in channels for segment in channel]
    return sorted(combined, key=lambda s: (s.start_time, s.channel))


def assemble_dialogue_segments(
    left: np.ndarray,
    right: np.ndarray,
    vad: VoiceActivityDetector,
    merge_threshold: float = DEFAULT_MERGE_THRESHOLD,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> list[ChannelSegment]:
    """Run ``vad`` on each channel and build the ordered, merged segment list."""
    left_segments = vad.detect(left, sample_rate)
    right_segments = vad.detect(right, sample_rate)
    logger.info(
        f"{vad.name}: {len(left_segments)} segments on Speaker 1, "
        f"{len(right_segments)} on Speaker 2"
    )

    ordered = interleave_channel_segments(
        tag_channel_segments(left_segments, left, 0, sample_rate),
        tag_channel_segments(right_segments, right, 1, sample_rate),
    )
    return merge_adjacent_segments(ordered, merge_threshold)


@dataclass(frozen=True)
class ChunkParameters:
    chunk_duration: float = 30.0
    overlap_duration: float = 1.0
    min_text_length: int = 5

    @classmethod
    def default(cls) -> "ChunkParameters":
        return cls()

    @classmethod
    def low_quality(cls) -> "ChunkParameters":
        return cls(chunk_duration=20.0, overlap_duration=1.0, min_text_length=3)


def create_chunks(
    samples: Sequence[float],
    params: ChunkParameters = ChunkParameters(),
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> list[SpeechSegment]:
    """Cover the signal with overlapping fixed-length windows.

    Once fewer than half a chunk of samples remain, they become the final
    (short) chunk.
    """
    total = len(samples)
    chunk_samples = int(params.chunk_duration * sample_rate)
    step = chunk_samples - int(params.overlap_duration * sample_rate)
    if chunk_samples <= 0 or step <= 0:
        raise ValueError(
            f"Chunk duration ({params.chunk_duration}s) must exceed overlap ({params.overlap_duration}s)"
        )

    chunks: list[SpeechSegment] = []
    start = 0
    while start < total:
        end = min(start + chunk_samples, total)
        chunks.append(SpeechSegment(start_time=start / sample_rate, end_time=end / sample_rate))
        start += step
        if start < total and total - start < chunk_samples // 2:
            chunks.append(SpeechSegment(start_time=start / sample_rate, end_time=total / sample_rate))
            break

    logger.info(f"Created {len(chunks)} chunks of {params.chunk_duration}s with {params.overlap_duration}s overlap")
    return chunks


def assemble_chunk_segments(
    channels: Sequence[np.ndarray],
    params: ChunkParameters = ChunkParameters(),
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> list[ChannelSegment]:
    """Chunk every channel and interleave the chunks without merging."""
    tagged = [
        tag_channel_segments(create_chunks(samples, params, sample_rate), samples, channel, sample_rate)
        for channel, samples in enumerate(channels)
    ]
    return interleave_channel_segments(*tagged)
