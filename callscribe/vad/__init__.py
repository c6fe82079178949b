from typing import Callable

from .adaptive import AdaptiveVAD, AdaptiveVADParameters
from .base import VoiceActivityDetector
from .energy import EnergyVAD, EnergyVADParameters
from .spectral import SpectralVAD, SpectralVADParameters

DEFAULT_VAD = "spectral_telephone"

VAD_PRESETS: dict[str, Callable[[], VoiceActivityDetector]] = {
    "spectral_telephone": lambda: SpectralVAD(SpectralVADParameters.telephone()),
    "spectral_wideband": lambda: SpectralVAD(SpectralVADParameters.wideband()),
    "spectral_default": lambda: SpectralVAD(SpectralVADParameters.default()),
    "adaptive_default": lambda: AdaptiveVAD(AdaptiveVADParameters.default()),
    "adaptive_low_quality": lambda: AdaptiveVAD(AdaptiveVADParameters.low_quality()),
    "adaptive_aggressive": lambda: AdaptiveVAD(AdaptiveVADParameters.aggressive()),
    "standard_default": lambda: EnergyVAD(EnergyVADParameters.default()),
    "standard_low_quality": lambda: EnergyVAD(EnergyVADParameters.low_quality()),
    "standard_high_quality": lambda: EnergyVAD(EnergyVADParameters.high_quality()),
}


def create_vad(name: str = DEFAULT_VAD) -> VoiceActivityDetector:
    try:
        factory = VAD_PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown VAD algorithm: {name}. Available: {', '.join(VAD_PRESETS)}") from None
    return factory()


__all__ = [
    "AdaptiveVAD",
    "AdaptiveVADParameters",
    "DEFAULT_VAD",
    "EnergyVAD",
    "EnergyVADParameters",
    "SpectralVAD",
    "SpectralVADParameters",
    "VAD_PRESETS",
    "VoiceActivityDetector",
    "create_vad",
]
