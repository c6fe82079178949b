"""BatchTranscribeUseCase: independent dialogue runs over many files.

Each file gets its own run (own settings snapshot, own turns). Files are
decoded through the shared audio cache and processed on a thread pool;
results come back in input order.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

from callscribe.domain.cancellation import CancellationToken
from callscribe.errors import user_message
from callscribe.mappers import dialogue_to_dto
from callscribe.models import FileResult
from callscribe.ports.audio import AudioCachePort, AudioSourcePort
from callscribe.segmentation import ChunkParameters
from callscribe.use_cases.transcribe import TranscribeDialogueUseCase, TranscribeRequest, TranscriptionMode
from callscribe.vad import VoiceActivityDetector

logger = logging.getLogger(__name__)


class BatchTranscribeUseCase:
    def __init__(
        self,
        dialogue_use_case: TranscribeDialogueUseCase,
        audio_source: AudioSourcePort,
        cache: Optional[AudioCachePort] = None,
        max_workers: int = 2,
    ):
        self._dialogue = dialogue_use_case
        self._audio_source = audio_source
        self._cache = cache
        self._max_workers = max(1, max_workers)

    def _load(self, path: str):
        if self._cache is None:
            return self._audio_source.load(path)
        return self._cache.load_or_fetch(path, lambda: self._audio_source.load(path))

    def _process(
        self,
        path: str,
        mode: TranscriptionMode,
        vad: Optional[VoiceActivityDetector],
        chunking: ChunkParameters,
        text_rules: List[Dict[str, str]],
        cancel_token: CancellationToken,
    ) -> FileResult:
        file_name = os.path.basename(path)
        start = time.perf_counter()
        model = self._dialogue.model_name

        if cancel_token.is_cancelled:
            return FileResult(file=file_name, status="cancelled", model=model)

        try:
            audio = self._load(path)
            dialogue = self._dialogue.execute(TranscribeRequest(
                file_name=file_name,
                audio=audio,
                mode=mode,
                vad=vad,
                chunking=chunking,
                text_rules=text_rules,
                cancel_token=cancel_token,
            ))
        except Exception as e:
            logger.error(f"[{file_name}] {type(e).__name__}: {e}")
            return FileResult(
                file=file_name,
                status="error",
                error=user_message(e),
                elapsed=time.perf_counter() - start,
                model=model,
            )

        elapsed = time.perf_counter() - start
        logger.info(f"[{file_name}] {len(dialogue.turns)} turns in {elapsed:.1f}s")
        return FileResult(
            file=file_name,
            status="cancelled" if dialogue.cancelled else "success",
            dialogue=dialogue_to_dto(dialogue),
            elapsed=elapsed,
            model=model,
        )

    def execute(
        self,
        paths: Iterable[str],
        mode: TranscriptionMode = TranscriptionMode.VAD,
        vad: Optional[VoiceActivityDetector] = None,
        chunking: Optional[ChunkParameters] = None,
        text_rules: Optional[List[Dict[str, str]]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[FileResult]:
        """Transcribe every file; one file's failure never stops the others."""
        paths = list(paths)
        chunking = chunking or ChunkParameters()
        text_rules = text_rules or []
        cancel_token = cancel_token or CancellationToken()
        logger.info(f"Batch: {len(paths)} files, {self._max_workers} workers, mode={mode.value}")

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = [
                pool.submit(self._process, path, mode, vad, chunking, text_rules, cancel_token)
                for path in paths
            ]
            results = [f.result() for f in futures]

        succeeded = sum(1 for r in results if r.status == "success")
        logger.info(f"Batch complete: {succeeded}/{len(results)} succeeded")
        return results
