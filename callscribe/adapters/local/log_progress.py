"""LogProgressAdapter: reports dialogue progress via logging."""

import logging

from callscribe.domain.models import DialogueTranscription
from callscribe.ports.progress import ProgressPort

logger = logging.getLogger(__name__)


class LogProgressAdapter(ProgressPort):
    def report(self, file_name: str, progress: float, dialogue: DialogueTranscription) -> None:
        msg = f"[{file_name}] {progress:.0%}, {len(dialogue.turns)} turns"
        if dialogue.turns:
            last = dialogue.turns[-1]
            msg += f" (last: {last.speaker.display_name} at {last.start_time:.1f}s)"
        logger.info(msg)
