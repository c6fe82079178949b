"""Shared fixtures: synthetic call audio and in-memory fakes for every port."""

from typing import Iterable, Optional

import numpy as np
import pytest

from callscribe.domain.models import ContextSnapshot, DecodedAudio, DialogueTranscription, SpeechSegment
from callscribe.ports.audio import AudioSourcePort
from callscribe.ports.progress import ProgressPort
from callscribe.ports.settings import SettingsPort
from callscribe.ports.transcription import TranscriptionPort
from callscribe.ports.vocabulary import VocabularyPort
from callscribe.vad.base import VoiceActivityDetector

SR = 16000


def tone_bursts(
    duration: float,
    bursts: Iterable[tuple[float, float]],
    freq: float = 1000.0,
    amplitude: float = 0.5,
    sample_rate: int = SR,
) -> np.ndarray:
    """Silence of ``duration`` seconds with sine tones over each (start, end) burst."""
    signal = np.zeros(int(duration * sample_rate), dtype=np.float32)
    for start, end in bursts:
        a, b = int(start * sample_rate), int(end * sample_rate)
        n = np.arange(b - a)
        signal[a:b] = amplitude * np.sin(2 * np.pi * freq * n / sample_rate)
    return signal


class FakeTranscriber(TranscriptionPort):
    """Returns scripted texts in call order and records every call."""

    def __init__(self, responses=(), loaded: bool = True, fail_on=(), ready_after: Optional[int] = None):
        self.responses = list(responses)
        self.fail_on = set(fail_on)
        self.calls: list[dict] = []
        self._loaded = loaded
        self._ready_after = ready_after
        self.ready_checks = 0

    def load(self, model_id: str, device: str = "cpu") -> None:
        self._loaded = True

    def is_loaded(self) -> bool:
        self.ready_checks += 1
        if self._ready_after is not None and self.ready_checks > self._ready_after:
            self._loaded = True
        return self._loaded

    def model_name(self) -> str:
        return "fake-whisper"

    def transcribe(self, samples, sample_rate=SR, context_prompt=None) -> str:
        index = len(self.calls)
        self.calls.append({"samples": len(samples), "sample_rate": sample_rate, "prompt": context_prompt})
        if index in self.fail_on:
            raise RuntimeError(f"decoder crashed on call {index}")
        if index < len(self.responses):
            return self.responses[index]
        return f"phrase number {index + 1}"


class RecordingProgress(ProgressPort):
    def __init__(self, on_report=None):
        self.events: list[tuple[str, float, DialogueTranscription]] = []
        self._on_report = on_report

    def report(self, file_name: str, progress: float, dialogue: DialogueTranscription) -> None:
        self.events.append((file_name, progress, dialogue))
        if self._on_report:
            self._on_report(file_name, progress, dialogue)

    @property
    def values(self) -> list[float]:
        return [p for _, p, _ in self.events]


class StaticSettings(SettingsPort):
    def __init__(self, snapshot: Optional[ContextSnapshot] = None):
        self._snapshot = snapshot or ContextSnapshot()
        self.snapshot_calls = 0

    def snapshot(self) -> ContextSnapshot:
        self.snapshot_calls += 1
        return self._snapshot


class StaticVocabulary(VocabularyPort):
    def __init__(self, terms=(), corrections=None):
        self._terms = list(terms)
        self._corrections = corrections or {}

    def enabled_terms(self) -> list[str]:
        return list(self._terms)

    def correct(self, text: str) -> str:
        return " ".join(self._corrections.get(w, w) for w in text.split(" "))


class FixedVAD(VoiceActivityDetector):
    """Reports the same segments for every channel, regardless of content."""
    name = "Fixed VAD"

    def __init__(self, segments: Iterable[tuple[float, float]]):
        self._segments = [SpeechSegment(start, end) for start, end in segments]

    def detect(self, samples, sample_rate=SR):
        return list(self._segments)


class FakeAudioSource(AudioSourcePort):
    def __init__(self, files: dict):
        self.files = files
        self.loads: list[str] = []

    def load(self, path: str) -> DecodedAudio:
        self.loads.append(path)
        audio = self.files[path]
        if isinstance(audio, Exception):
            raise audio
        return audio


@pytest.fixture
def stereo_call() -> DecodedAudio:
    """8 s call: Speaker 1 at 1-2 s and 5-6 s, Speaker 2 at 3-4 s."""
    left = tone_bursts(8.0, [(1.0, 2.0), (5.0, 6.0)])
    right = tone_bursts(8.0, [(3.0, 4.0)], freq=700.0)
    return DecodedAudio.stereo(left, right)


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber(responses=["first", "second", "third"])


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def settings() -> StaticSettings:
    return StaticSettings()
