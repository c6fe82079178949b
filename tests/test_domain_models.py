"""Tests for domain models, DTO mappers and error messages."""

import numpy as np
import pytest

from callscribe.domain.models import DecodedAudio, DialogueTranscription, Speaker, SpeechSegment, Turn
from callscribe.errors import (
    BackendNotReadyError,
    InvalidChannelLayoutError,
    SilenceOnlyError,
    TranscriptionCallFailedError,
    user_message,
)
from callscribe.mappers import dialogue_to_dto, dto_to_dialogue, settings_to_snapshot
from callscribe.models import ContextSettings


def _dialogue(stereo: bool = True) -> DialogueTranscription:
    return DialogueTranscription(
        turns=(
            Turn(Speaker.LEFT, "Hello", 0.5, 2.0),
            Turn(Speaker.RIGHT, "Hi, how can I help?", 65.25, 67.0),
            Turn(Speaker.LEFT, "My phone is down", 70.0, 72.0),
        ),
        is_stereo=stereo,
        total_duration=80.0,
    )


def test_speaker_naming():
    assert Speaker.LEFT.display_name == "Speaker 1"
    assert Speaker.RIGHT.display_name == "Speaker 2"
    assert Speaker.for_channel(1) is Speaker.RIGHT
    assert Speaker.RIGHT.channel == 1


def test_speech_segment_samples():
    segment = SpeechSegment(1.5, 2.25)
    assert segment.duration == pytest.approx(0.75)
    assert (segment.start_sample(16000), segment.end_sample(16000)) == (24000, 36000)


def test_stereo_formatting_has_timestamps():
    assert _dialogue().formatted() == (
        "[00:00.500] Speaker 1: Hello\n\n"
        "[01:05.250] Speaker 2: Hi, how can I help?\n\n"
        "[01:10.000] Speaker 1: My phone is down"
    )


def test_mono_formatting_is_plain_text():
    assert _dialogue(stereo=False).formatted() == "Hello Hi, how can I help? My phone is down"


def test_sorted_by_time_reorders_hand_built_dialogue():
    dialogue = DialogueTranscription(turns=(Turn(Speaker.RIGHT, "b", 5.0, 6.0), Turn(Speaker.LEFT, "a", 1.0, 2.0)))
    assert [t.text for t in dialogue.sorted_by_time] == ["a", "b"]


def test_remove_silence_periods_compresses_long_gaps():
    compact = _dialogue().remove_silence_periods(min_gap=2.0)

    starts = [t.start_time for t in compact.turns]
    assert starts == pytest.approx([0.0, 2.0, 4.25])
    assert compact.total_duration == pytest.approx(6.25)
    assert [t.duration for t in compact.turns] == pytest.approx([1.5, 1.75, 2.0])


def test_remove_silence_periods_keeps_short_gaps():
    dialogue = DialogueTranscription(turns=(Turn(Speaker.LEFT, "a", 0.0, 1.0), Turn(Speaker.RIGHT, "b", 1.5, 2.0)))
    compact = dialogue.remove_silence_periods()
    assert [t.start_time for t in compact.turns] == pytest.approx([0.0, 1.5])
    assert DialogueTranscription().remove_silence_periods().turns == ()


def test_decoded_audio_properties():
    audio = DecodedAudio.from_interleaved(np.arange(8, dtype=np.float32), channel_count=2, sample_rate=4)

    assert audio.is_stereo
    assert audio.channels[0].tolist() == [0, 2, 4, 6]
    assert audio.channels[1].tolist() == [1, 3, 5, 7]
    assert audio.duration == pytest.approx(1.0)
    assert audio.size_in_bytes == 32

    with pytest.raises(ValueError):
        DecodedAudio.from_interleaved([0.0], channel_count=0)


def test_dialogue_dto_round_trip_keeps_turns():
    dialogue = _dialogue()

    dto = dialogue_to_dto(dialogue)

    assert dto.turns[1].speaker == "Speaker 2"
    assert dto.text == dialogue.formatted()
    assert dto_to_dialogue(dto) == dialogue


def test_settings_to_snapshot():
    snapshot = settings_to_snapshot(ContextSettings(max_recent_turns=7, base_context_prompt="x"))
    assert snapshot.max_recent_turns == 7
    assert snapshot.base_context_prompt == "x"


def test_user_messages():
    assert "only silence" in user_message(SilenceOnlyError("a.wav"))
    assert "not loaded" in user_message(BackendNotReadyError(60, 1.0))

    try:
        try:
            raise RuntimeError("decoder crashed")
        except RuntimeError as e:
            raise TranscriptionCallFailedError("call failed") from e
    except TranscriptionCallFailedError as wrapped:
        assert user_message(wrapped) == "Transcription failed: decoder crashed"

    assert user_message(InvalidChannelLayoutError(6)) == "Transcription failed: Expected mono or stereo audio, got 6 channels"
