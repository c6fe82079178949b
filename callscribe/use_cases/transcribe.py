"""TranscribeDialogueUseCase: turns one decoded file into ordered speaker turns.

Accepts all ports via dependency injection. A run walks the segment list
strictly in order because each segment's context prompt depends on the
turns produced before it:

    Idle -> Preparing -> (Skipping | Transcribing)* -> Completed
                                                    -> Cancelled
                                                    -> Failed
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np

from callscribe.context import ContextPromptBuilder
from callscribe.domain.cancellation import CancellationToken
from callscribe.domain.models import (
    ChannelSegment, ContextSnapshot, DecodedAudio, DialogueTranscription, Speaker, Turn,
)
from callscribe.errors import (
    BackendNotReadyError, EmptyTranscriptionError, InvalidAudioError, InvalidChannelLayoutError,
    NoAudioTrackError, SilenceOnlyError, TranscriptionCallFailedError,
)
from callscribe.ports.progress import ProgressPort
from callscribe.ports.settings import SettingsPort
from callscribe.ports.transcription import TranscriptionPort
from callscribe.ports.vocabulary import VocabularyPort
from callscribe.post_processing import apply_text_rules, compile_rules
from callscribe.segmentation import ChunkParameters, assemble_chunk_segments, assemble_dialogue_segments
from callscribe.silence import SilenceDetector
from callscribe.vad import VoiceActivityDetector, create_vad

logger = logging.getLogger(__name__)


class TranscriptionMode(Enum):
    VAD = "vad"
    CHUNKED = "chunked"


class RunState(Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    SKIPPING = "skipping"
    TRANSCRIBING = "transcribing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class TranscribeRequest:
    """All parameters for transcribing one file."""
    file_name: str
    audio: DecodedAudio
    mode: TranscriptionMode = TranscriptionMode.VAD
    vad: Optional[VoiceActivityDetector] = None
    chunking: ChunkParameters = field(default_factory=ChunkParameters)
    text_rules: List[Dict[str, str]] = field(default_factory=list)
    cancel_token: CancellationToken = field(default_factory=CancellationToken)


def validate_audio(audio: DecodedAudio) -> None:
    """Reject input that cannot be read as mono or stereo float PCM."""
    if audio.channel_count == 0 or audio.frame_count == 0:
        raise NoAudioTrackError("Audio contains no samples")
    if audio.channel_count > 2:
        raise InvalidChannelLayoutError(audio.channel_count)
    if audio.sample_rate <= 0:
        raise InvalidAudioError(f"Invalid sample rate: {audio.sample_rate}")
    for index, channel in enumerate(audio.channels):
        if not np.all(np.isfinite(channel)):
            raise InvalidAudioError(f"Channel {index} contains NaN or infinite samples")


class TranscriptionRun:
    """State of a single file's run: its settings snapshot, turns and progress.

    Runs share nothing mutable, so several can execute concurrently against
    the same ports.
    """

    def __init__(
        self,
        request: TranscribeRequest,
        transcription: TranscriptionPort,
        progress: ProgressPort,
        settings: SettingsPort,
        vocabulary: Optional[VocabularyPort],
        silence_detector: SilenceDetector,
        ready_attempts: int,
        poll_interval: float,
        sleep: Callable[[float], None],
    ):
        self.request = request
        self.state = RunState.IDLE
        self.turns: List[Turn] = []
        self.snapshot: Optional[ContextSnapshot] = None
        self._transcription = transcription
        self._progress = progress
        self._settings = settings
        self._vocabulary = vocabulary
        self._silence = silence_detector
        self._ready_attempts = ready_attempts
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._rules = compile_rules(request.text_rules)

    def _set_state(self, state: RunState) -> None:
        if state != self.state:
            logger.debug(f"[{self.request.file_name}] {self.state.value} -> {state.value}")
            self.state = state

    @property
    def _cancelled(self) -> bool:
        return self.request.cancel_token.is_cancelled

    def _dialogue(self, cancelled: bool = False) -> DialogueTranscription:
        audio = self.request.audio
        last_end = self.turns[-1].end_time if self.turns else 0.0
        return DialogueTranscription(
            turns=tuple(self.turns),
            is_stereo=audio.is_stereo,
            total_duration=max(audio.duration, last_end),
            cancelled=cancelled,
        )

    def _stop_cancelled(self) -> DialogueTranscription:
        self._set_state(RunState.CANCELLED)
        logger.info(f"[{self.request.file_name}] Cancelled with {len(self.turns)} turns")
        return self._dialogue(cancelled=True)

    def _wait_for_backend(self) -> None:
        attempts = 0
        while not self._transcription.is_loaded():
            if attempts >= self._ready_attempts:
                raise BackendNotReadyError(self._ready_attempts, self._poll_interval)
            if attempts == 0:
                logger.info("Waiting for transcription backend to load...")
            attempts += 1
            self._sleep(self._poll_interval)

    def execute(self) -> DialogueTranscription:
        self._set_state(RunState.PREPARING)
        try:
            if self._cancelled:
                return self._stop_cancelled()

            self._wait_for_backend()
            self.snapshot = self._settings.snapshot()
            terms: List[str] = []
            if self._vocabulary is not None and self.snapshot.enable_vocabulary_integration:
                terms = self._vocabulary.enabled_terms()
            validate_audio(self.request.audio)

            builder = ContextPromptBuilder(self.snapshot, terms)
            if self.request.audio.is_stereo or self.request.mode == TranscriptionMode.CHUNKED:
                return self._transcribe_segments(builder)
            return self._transcribe_mono(builder)
        except Exception:
            self._set_state(RunState.FAILED)
            raise

    def _build_segments(self) -> List[ChannelSegment]:
        audio = self.request.audio
        if self.request.mode == TranscriptionMode.CHUNKED:
            return assemble_chunk_segments(audio.channels, self.request.chunking, audio.sample_rate)

        vad = self.request.vad or create_vad()
        left, right = audio.channels
        return assemble_dialogue_segments(
            left, right, vad, self.snapshot.post_vad_merge_threshold, audio.sample_rate,
        )

    def _transcribe_segments(self, builder: ContextPromptBuilder) -> DialogueTranscription:
        request = self.request
        sample_rate = request.audio.sample_rate
        segments = self._build_segments()
        if not segments:
            raise SilenceOnlyError(request.file_name)

        min_text_length = request.chunking.min_text_length if request.mode == TranscriptionMode.CHUNKED else 1
        total = len(segments)
        voiced = attempted = failed = 0
        last_error: Optional[Exception] = None
        logger.info(f"[{request.file_name}] Transcribing {total} segments in chronological order")

        for index, segment in enumerate(segments):
            if self._cancelled:
                return self._stop_cancelled()

            if self._silence.is_silence(segment.audio, sample_rate):
                self._set_state(RunState.SKIPPING)
                continue
            voiced += 1

            self._set_state(RunState.TRANSCRIBING)
            prompt = builder.build(self.turns)
            speaker = segment.speaker.display_name
            logger.info(
                f"Transcribing {speaker}: {segment.start_time:.1f}s - {segment.end_time:.1f}s "
                f"(context: {len(prompt) if prompt else 'none'} chars)"
            )

            attempted += 1
            try:
                text = self._transcription.transcribe(segment.audio, sample_rate, prompt or None)
            except Exception as e:
                failed += 1
                last_error = e
                logger.warning(f"{speaker}: transcription failed at {segment.start_time:.1f}s, skipping: {e}")
                continue

            text = apply_text_rules(text, self._rules, self._vocabulary)
            if len(text) < min_text_length:
                logger.warning(f"{speaker}: empty text for segment at {segment.start_time:.1f}s")
                continue

            self.turns.append(Turn(
                speaker=segment.speaker,
                text=text,
                start_time=segment.start_time,
                end_time=segment.end_time,
            ))
            self._progress.report(request.file_name, (index + 1) / total, self._dialogue())

        if voiced == 0:
            raise SilenceOnlyError(request.file_name)
        if attempted and failed == attempted:
            raise TranscriptionCallFailedError(
                f"All {attempted} transcription calls failed: {last_error}"
            ) from last_error

        return self._complete()

    def _transcribe_mono(self, builder: ContextPromptBuilder) -> DialogueTranscription:
        request = self.request
        audio = request.audio
        samples = audio.channels[0]

        if self._silence.is_silence(samples, audio.sample_rate):
            self._set_state(RunState.SKIPPING)
            raise SilenceOnlyError(request.file_name)

        self._set_state(RunState.TRANSCRIBING)
        prompt = builder.build(self.turns)
        try:
            text = self._transcription.transcribe(samples, audio.sample_rate, prompt or None)
        except TranscriptionCallFailedError:
            raise
        except Exception as e:
            raise TranscriptionCallFailedError(f"Transcription failed: {e}", segment_start=0.0) from e

        text = apply_text_rules(text, self._rules, self._vocabulary)
        if not text:
            raise EmptyTranscriptionError(f"No text recognised in {request.file_name}")

        self.turns.append(Turn(speaker=Speaker.LEFT, text=text, start_time=0.0, end_time=audio.duration))
        return self._complete()

    def _complete(self) -> DialogueTranscription:
        self._set_state(RunState.COMPLETED)
        dialogue = self._dialogue()
        self._progress.report(self.request.file_name, 1.0, dialogue)
        logger.info(f"[{self.request.file_name}] Transcription complete: {len(self.turns)} turns")
        return dialogue


class TranscribeDialogueUseCase:
    def __init__(
        self,
        transcription: TranscriptionPort,
        progress: ProgressPort,
        settings: SettingsPort,
        vocabulary: Optional[VocabularyPort] = None,
        silence_detector: Optional[SilenceDetector] = None,
        ready_attempts: int = 60,
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._transcription = transcription
        self._progress = progress
        self._settings = settings
        self._vocabulary = vocabulary
        self._silence = silence_detector or SilenceDetector()
        self._ready_attempts = ready_attempts
        self._poll_interval = poll_interval
        self._sleep = sleep

    @property
    def model_name(self) -> str:
        return self._transcription.model_name()

    def create_run(self, request: TranscribeRequest) -> TranscriptionRun:
        return TranscriptionRun(
            request,
            transcription=self._transcription,
            progress=self._progress,
            settings=self._settings,
            vocabulary=self._vocabulary,
            silence_detector=self._silence,
            ready_attempts=self._ready_attempts,
            poll_interval=self._poll_interval,
            sleep=self._sleep,
        )

    def execute(self, request: TranscribeRequest) -> DialogueTranscription:
        """Run the full pipeline for one file. Raises on failure, returns partial turns on cancel."""
        return self.create_run(request).execute()
