from typing import List, Optional

from pydantic import BaseModel, Field


class ContextSettings(BaseModel):
    """User-tunable context optimisation settings, validated on every change."""
    max_context_length: int = Field(600, ge=300, le=700)
    max_recent_turns: int = Field(5, ge=3, le=10)
    enable_entity_extraction: bool = True
    enable_vocabulary_integration: bool = True
    post_vad_merge_threshold: float = Field(1.5, ge=0.5, le=3.0)
    base_context_prompt: str = ""


class TurnDTO(BaseModel):
    """One speaker turn in a transcription result"""
    speaker: str
    channel: int
    text: str
    start: float
    end: float


class DialogueDTO(BaseModel):
    """Dialogue transcription result"""
    turns: List[TurnDTO] = []
    is_stereo: bool = False
    duration: float = 0.0
    cancelled: bool = False
    text: str = ""


class FileResult(BaseModel):
    """Outcome of one file in a batch run"""
    file: str
    status: str = "success"
    dialogue: Optional[DialogueDTO] = None
    error: Optional[str] = None
    elapsed: float = 0.0
    model: Optional[str] = None
