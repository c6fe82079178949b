"""Tests for the three VAD engines, the segment state machine and the preset registry."""

import numpy as np
import pytest

from callscribe.vad import (
    VAD_PRESETS,
    AdaptiveVAD,
    EnergyVAD,
    SpectralVAD,
    SpectralVADParameters,
    create_vad,
)
from callscribe.vad.base import build_segments, upper_median

from conftest import SR, tone_bursts


def _two_bursts() -> np.ndarray:
    return tone_bursts(10.0, [(2.0, 3.0), (6.0, 7.0)])


def test_build_segments_closes_after_min_silence():
    times = np.arange(20, dtype=np.float64)
    speech = np.zeros(20, dtype=bool)
    speech[2:6] = True
    speech[15:17] = True

    segments = build_segments(times, speech, window_duration=1.0, min_speech_duration=2.0, min_silence_duration=3.0)

    assert [(s.start_time, s.end_time) for s in segments] == [(2.0, 6.0), (15.0, 17.0)]


def test_build_segments_bridges_short_pauses():
    times = np.arange(20, dtype=np.float64)
    speech = np.zeros(20, dtype=bool)
    speech[2:6] = True
    speech[8:10] = True  # window 8 starts 2 s after the last speech end (6), below min silence

    segments = build_segments(times, speech, window_duration=1.0, min_speech_duration=1.0, min_silence_duration=3.0)

    assert [(s.start_time, s.end_time) for s in segments] == [(2.0, 10.0)]


def test_build_segments_drops_short_segments_including_trailing():
    times = np.arange(10, dtype=np.float64)
    speech = np.zeros(10, dtype=bool)
    speech[1] = True
    speech[9] = True

    segments = build_segments(times, speech, window_duration=1.0, min_speech_duration=2.0, min_silence_duration=1.0)

    assert segments == []


def test_upper_median_takes_upper_middle_element():
    assert upper_median(np.array([4.0, 1.0, 3.0, 2.0])) == 3.0
    assert upper_median(np.array([5.0, 1.0, 3.0])) == 3.0


def test_energy_vad_finds_tone_bursts():
    segments = EnergyVAD().detect(_two_bursts(), SR)

    assert len(segments) == 2
    assert segments[0].start_time == pytest.approx(1.98, abs=0.02)
    assert segments[0].end_time == pytest.approx(3.015, abs=0.02)
    assert segments[1].start_time == pytest.approx(5.98, abs=0.02)
    assert segments[1].end_time == pytest.approx(7.015, abs=0.02)


def test_energy_vad_ignores_signal_below_threshold():
    quiet = tone_bursts(5.0, [(1.0, 3.0)], amplitude=0.01)
    assert EnergyVAD().detect(quiet, SR) == []


def test_adaptive_vad_finds_single_burst_in_long_silence():
    signal = tone_bursts(20.0, [(2.0, 3.0)])

    segments = AdaptiveVAD().detect(signal, SR)

    assert len(segments) == 1
    assert segments[0].start_time == pytest.approx(2.0, abs=0.05)
    assert segments[0].end_time == pytest.approx(3.0, abs=0.05)


def test_adaptive_thresholds_fall_back_without_windows():
    vad = AdaptiveVAD()
    assert vad.adaptive_thresholds(np.empty(0), np.empty(0)) == (0.01, 0.05)
    assert vad.detect(np.zeros(100, dtype=np.float32), SR) == []


def test_spectral_vad_telephone_detects_in_band_tone():
    vad = SpectralVAD(SpectralVADParameters.telephone())

    segments = vad.detect(_two_bursts(), SR)

    assert len(segments) == 2
    assert segments[0].start_time == pytest.approx(2.0, abs=0.1)
    assert segments[0].end_time == pytest.approx(3.0, abs=0.1)
    assert segments[1].start_time == pytest.approx(6.0, abs=0.1)


def test_spectral_vad_rejects_out_of_band_tone():
    signal = tone_bursts(6.0, [(2.0, 4.0)], freq=6000.0)
    assert SpectralVAD(SpectralVADParameters.telephone()).detect(signal, SR) == []


def test_spectral_vad_invalid_band_counts_as_no_energy(caplog):
    vad = SpectralVAD(SpectralVADParameters(speech_freq_min=5000.0, speech_freq_max=1000.0))

    with caplog.at_level("WARNING"):
        segments = vad.detect(_two_bursts(), SR)

    assert segments == []
    assert "invalid frequency band" in caplog.text


@pytest.mark.parametrize("name", sorted(VAD_PRESETS))
def test_presets_return_sorted_non_overlapping_segments(name):
    vad = create_vad(name)
    min_speech = vad.parameters.min_speech_duration

    segments = vad.detect(_two_bursts(), SR)

    for segment in segments:
        assert segment.duration >= min_speech
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end_time <= nxt.start_time


@pytest.mark.parametrize("name", sorted(VAD_PRESETS))
def test_presets_are_deterministic(name):
    signal = _two_bursts() + np.random.default_rng(0).normal(0, 0.005, 10 * SR).astype(np.float32)
    assert create_vad(name).detect(signal, SR) == create_vad(name).detect(signal, SR)


@pytest.mark.parametrize("name", sorted(VAD_PRESETS))
def test_empty_input_gives_no_segments(name):
    assert create_vad(name).detect(np.empty(0, dtype=np.float32), SR) == []


def test_create_vad_defaults_to_spectral_telephone():
    vad = create_vad()
    assert isinstance(vad, SpectralVAD)
    assert vad.parameters == SpectralVADParameters.telephone()


def test_create_vad_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unknown VAD algorithm"):
        create_vad("webrtc")


def test_has_speech_and_total_duration():
    vad = EnergyVAD()
    assert vad.has_speech(_two_bursts(), SR)
    assert vad.total_speech_duration(_two_bursts(), SR) == pytest.approx(2.07, abs=0.05)
    assert not vad.has_speech(np.zeros(SR, dtype=np.float32), SR)
