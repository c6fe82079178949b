import os
import logging
from typing import Dict, Any, Optional

from callscribe.models import ContextSettings

logger = logging.getLogger(__name__)

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

DEFAULT_MODEL_ID = "small"
DEFAULT_VAD_ALGORITHM = "spectral_telephone"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _env_bool(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.model_id = os.environ.get("MODEL_ID", "").strip() or DEFAULT_MODEL_ID
        self.device = os.environ.get("DEVICE", "cpu").lower()
        self.compute_type = os.environ.get("COMPUTE_TYPE", "int8")
        self.language = os.environ.get("LANGUAGE", "ru").strip() or None
        self.transcription_mode = os.environ.get("TRANSCRIPTION_MODE", "vad").lower()
        self.vad_algorithm = os.environ.get("VAD_ALGORITHM", DEFAULT_VAD_ALGORITHM).lower()
        self.max_context_length = int(os.environ.get("MAX_CONTEXT_LENGTH", "600"))
        self.max_recent_turns = int(os.environ.get("MAX_RECENT_TURNS", "5"))
        self.enable_entity_extraction = _env_bool("ENABLE_ENTITY_EXTRACTION")
        self.enable_vocabulary_integration = _env_bool("ENABLE_VOCABULARY_INTEGRATION")
        self.post_vad_merge_threshold = float(os.environ.get("POST_VAD_MERGE_THRESHOLD", "1.5"))
        self.base_context_prompt = os.environ.get("BASE_CONTEXT_PROMPT", "")
        self.vocabulary_dictionaries = [
            d.strip() for d in os.environ.get("VOCABULARY_DICTIONARIES", "").split(",") if d.strip()
        ]
        self.backend_ready_attempts = int(os.environ.get("BACKEND_READY_ATTEMPTS", "60"))
        self.backend_poll_interval = float(os.environ.get("BACKEND_POLL_INTERVAL", "1.0"))
        self.max_workers = int(os.environ.get("MAX_WORKERS", "2"))

    def mode(self):
        """TRANSCRIPTION_MODE as a TranscriptionMode; unknown values raise ValueError."""
        from callscribe.use_cases.transcribe import TranscriptionMode
        try:
            return TranscriptionMode(self.transcription_mode)
        except ValueError:
            raise ValueError(
                f"Unknown TRANSCRIPTION_MODE: {self.transcription_mode!r}. Valid options: vad, chunked"
            ) from None

    def reload(self) -> None:
        """Re-read the environment (tests, or after editing .env at runtime)."""
        self._initialize()

    def context_settings(self) -> ContextSettings:
        """Validated context settings; raises pydantic ValidationError when out of range."""
        return ContextSettings(
            max_context_length=self.max_context_length,
            max_recent_turns=self.max_recent_turns,
            enable_entity_extraction=self.enable_entity_extraction,
            enable_vocabulary_integration=self.enable_vocabulary_integration,
            post_vad_merge_threshold=self.post_vad_merge_threshold,
            base_context_prompt=self.base_context_prompt,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "debug": self.debug,
            "model_id": self.model_id,
            "device": self.device,
            "compute_type": self.compute_type,
            "language": self.language,
            "transcription_mode": self.transcription_mode,
            "vad_algorithm": self.vad_algorithm,
            "max_context_length": self.max_context_length,
            "max_recent_turns": self.max_recent_turns,
            "enable_entity_extraction": self.enable_entity_extraction,
            "enable_vocabulary_integration": self.enable_vocabulary_integration,
            "post_vad_merge_threshold": self.post_vad_merge_threshold,
            "has_base_context_prompt": bool(self.base_context_prompt),
            "vocabulary_dictionaries": list(self.vocabulary_dictionaries),
            "backend_ready_attempts": self.backend_ready_attempts,
            "backend_poll_interval": self.backend_poll_interval,
            "max_workers": self.max_workers,
        }


config = Config()


def get_config() -> Config:
    return config


def configure_logging(debug: Optional[bool] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    if debug is None:
        debug = config.debug
    if debug:
        logging.getLogger("callscribe").setLevel(logging.DEBUG)


def create_vad(cfg: Config):
    """VAD engine for VAD_ALGORITHM; unknown names raise ValueError."""
    from callscribe.vad import create_vad as create_named_vad
    vad = create_named_vad(cfg.vad_algorithm)
    logger.info(f"VAD: {cfg.vad_algorithm} ({vad.name})")
    return vad


def create_transcriber(cfg: Config, load: bool = False):
    """Create the faster-whisper transcriber, loading the model when ``load`` is set.

    Uses lazy imports so the ASR framework is only loaded when used.
    """
    from callscribe.adapters.faster_whisper import FasterWhisperTranscriber
    transcriber = FasterWhisperTranscriber(language=cfg.language, compute_type=cfg.compute_type)
    if load:
        transcriber.load(cfg.model_id, cfg.device)
    logger.info(f"Transcriber: {type(transcriber).__name__} (model={cfg.model_id}, device={cfg.device})")
    return transcriber


def create_infra_adapters(cfg: Config):
    """Create the in-process adapters for progress, settings, vocabulary and audio."""
    from callscribe.adapters.local.log_progress import LogProgressAdapter
    from callscribe.adapters.local.memory_cache import InMemoryAudioCache
    from callscribe.adapters.local.settings import InMemorySettingsStore
    from callscribe.adapters.local.vocabulary import DictionaryVocabulary
    from callscribe.adapters.soundfile import SoundfileAudioSource

    adapters = {
        "progress": LogProgressAdapter(),
        "settings": InMemorySettingsStore(cfg.context_settings()),
        "vocabulary": DictionaryVocabulary(enabled=cfg.vocabulary_dictionaries),
        "audio_source": SoundfileAudioSource(),
        "audio_cache": InMemoryAudioCache(),
    }
    logger.info(f"Infra adapters: {', '.join(type(v).__name__ for v in adapters.values())}")
    return adapters


def create_dialogue_use_case(cfg: Config, transcription=None, adapters=None):
    """Wire a TranscribeDialogueUseCase from configuration.

    ``transcription`` and ``adapters`` default to ``create_transcriber`` and
    ``create_infra_adapters``; pass them to share instances across use cases.
    """
    from callscribe.use_cases.transcribe import TranscribeDialogueUseCase

    if transcription is None:
        transcription = create_transcriber(cfg)
    if adapters is None:
        adapters = create_infra_adapters(cfg)

    return TranscribeDialogueUseCase(
        transcription=transcription,
        progress=adapters["progress"],
        settings=adapters["settings"],
        vocabulary=adapters["vocabulary"],
        ready_attempts=cfg.backend_ready_attempts,
        poll_interval=cfg.backend_poll_interval,
    )


def create_batch_use_case(cfg: Config, transcription=None, adapters=None):
    from callscribe.use_cases.batch import BatchTranscribeUseCase

    if adapters is None:
        adapters = create_infra_adapters(cfg)
    dialogue = create_dialogue_use_case(cfg, transcription=transcription, adapters=adapters)
    return BatchTranscribeUseCase(
        dialogue,
        audio_source=adapters["audio_source"],
        cache=adapters["audio_cache"],
        max_workers=cfg.max_workers,
    )
