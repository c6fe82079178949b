"""Domain <-> DTO mappers.

Converts between the domain dataclasses (Turn, DialogueTranscription,
ContextSnapshot) and the pydantic models used at the boundary.
"""

from callscribe.domain.models import ContextSnapshot, DialogueTranscription, Speaker, Turn
from callscribe.models import ContextSettings, DialogueDTO, TurnDTO


def turn_to_dto(turn: Turn) -> TurnDTO:
    return TurnDTO(
        speaker=turn.speaker.display_name,
        channel=turn.speaker.channel,
        text=turn.text,
        start=turn.start_time,
        end=turn.end_time,
    )


def dto_to_turn(dto: TurnDTO) -> Turn:
    return Turn(
        speaker=Speaker.for_channel(dto.channel),
        text=dto.text,
        start_time=dto.start,
        end_time=dto.end,
    )


def dialogue_to_dto(dialogue: DialogueTranscription) -> DialogueDTO:
    """Convert a domain dialogue to its DTO, turns in chronological order."""
    return DialogueDTO(
        turns=[turn_to_dto(t) for t in dialogue.sorted_by_time],
        is_stereo=dialogue.is_stereo,
        duration=dialogue.total_duration,
        cancelled=dialogue.cancelled,
        text=dialogue.formatted(),
    )


def dto_to_dialogue(dto: DialogueDTO) -> DialogueTranscription:
    return DialogueTranscription(
        turns=tuple(dto_to_turn(t) for t in dto.turns),
        is_stereo=dto.is_stereo,
        total_duration=dto.duration,
        cancelled=dto.cancelled,
    )


def settings_to_snapshot(settings: ContextSettings) -> ContextSnapshot:
    return ContextSnapshot(**settings.model_dump())
