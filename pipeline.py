"""Transcribe, clean up and deliver captured audio."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Type, TypeVar

from errors import CleanupFailure, PasteFailure, SessionBusy, SessionError, TranscriptionFailure
from interfaces import CaptureBackend, SettingsProvider
from models import CleanupMode, PipelineOutcome, RecordingState, TranscriptionResult

logger = logging.getLogger(__name__)

StageCallback = Callable[[RecordingState], None]
F = TypeVar("F", bound=SessionError)


def _as_failure(kind: Type[F], exc: Exception) -> F:
    if isinstance(exc, kind):
        return exc
    code = exc.code if isinstance(exc, SessionError) else None
    return kind(str(exc), code=code)


class PipelineExecutor:
    """Runs one pipeline at a time; stages never overlap.

    A failing stage degrades to the next best behaviour instead of aborting:
    no transcript ends the run, a failed cleanup keeps the raw text and a
    failed paste falls back to the clipboard.
    """

    def __init__(self, backend: CaptureBackend, settings: SettingsProvider) -> None:
        self._backend = backend
        self._settings = settings
        self._running = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running.locked()

    def run(self, audio: bytes, on_stage: Optional[StageCallback] = None) -> PipelineOutcome:
        if not self._running.acquire(blocking=False):
            raise SessionBusy("pipeline already running")
        try:
            return self._run(audio, on_stage)
        finally:
            self._running.release()

    def _run(self, audio: bytes, on_stage: Optional[StageCallback]) -> PipelineOutcome:
        outcome = PipelineOutcome()

        try:
            text = self._backend.transcribe(audio)
        except Exception as exc:
            failure = _as_failure(TranscriptionFailure, exc)
            logger.error("Transcription failed: %s", failure)
            outcome.errors.append(failure)
            return outcome
        logger.info("Transcription: %r", text)
        if not text.strip():
            logger.warning("Empty transcription")

        settings = self._settings.read_settings()
        cleaned: Optional[str] = None
        if settings.cleanup_enabled:
            if on_stage is not None:
                on_stage(RecordingState.CLEANUP)
            prompt = settings.cleanup_prompt if settings.cleanup_mode == CleanupMode.CUSTOM else None
            try:
                cleaned = self._backend.cleanup(text, settings.cleanup_mode, prompt)
                logger.info("Cleaned text: %r", cleaned)
            except Exception as exc:
                failure = _as_failure(CleanupFailure, exc)
                logger.warning("Cleanup failed, using raw transcription: %s", failure)
                outcome.errors.append(failure)

        result = TranscriptionResult(original_text=text, cleaned_text=cleaned)
        outcome.result = result
        self._deliver(result.final_text, outcome)
        return outcome

    def _deliver(self, text: str, outcome: PipelineOutcome) -> None:
        settings = self._settings.read_settings()
        if settings.auto_paste:
            try:
                self._backend.paste(text, settings.paste_method)
                outcome.delivered_via = "paste"
                return
            except Exception as exc:
                failure = _as_failure(PasteFailure, exc)
                logger.warning("Paste failed, copying to clipboard instead: %s", failure)
                outcome.errors.append(failure)

        try:
            self._backend.copy_to_clipboard(text)
            outcome.delivered_via = "clipboard"
        except Exception as exc:
            failure = _as_failure(PasteFailure, exc)
            logger.error("Clipboard copy failed: %s", failure)
            outcome.errors.append(failure)
