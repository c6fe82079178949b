"""CallbackProgressAdapter: forwards progress to a plain callable (UI hooks, tests)."""

import logging
from typing import Callable

from callscribe.domain.models import DialogueTranscription
from callscribe.ports.progress import ProgressPort

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float, DialogueTranscription], None]


class CallbackProgressAdapter(ProgressPort):
    def __init__(self, callback: ProgressCallback):
        self._callback = callback

    def report(self, file_name: str, progress: float, dialogue: DialogueTranscription) -> None:
        logger.debug(f"[{file_name}] progress {progress:.2f}")
        self._callback(file_name, progress, dialogue)
