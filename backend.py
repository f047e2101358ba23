"""Local capture/transcription backend built from the device and cloud adapters."""

from __future__ import annotations

import logging
from typing import List, Optional

from auto_paste import ClipboardPasteService
from errors import PasteFailure, StartFailure, StopFailure
from models import AudioDevice, CleanupMode, PasteMethod
from recognizer import DashscopeTranscriber
from recorder import SoundDeviceRecorder
from text_cleaner import DashscopeTextCleaner

logger = logging.getLogger(__name__)


class LocalBackend:
    """Implements ``CaptureBackend`` on top of the recorder, ASR, LLM and paste adapters.

    Adapter errors are translated into the session error classes so the
    controller never sees a raw SDK or device exception.
    """

    def __init__(
        self,
        recorder: SoundDeviceRecorder,
        transcriber: DashscopeTranscriber,
        cleaner: DashscopeTextCleaner,
        paste_service: ClipboardPasteService,
    ) -> None:
        self._recorder = recorder
        self._transcriber = transcriber
        self._cleaner = cleaner
        self._paste_service = paste_service

    def replace_api_key(self, api_key: str) -> None:
        self._transcriber = DashscopeTranscriber(api_key=api_key)
        self._cleaner = DashscopeTextCleaner(api_key=api_key)

    def start_capture(self, device: Optional[str] = None) -> None:
        try:
            self._recorder.start(device)
        except Exception as exc:
            raise StartFailure(f"start failed: {exc}") from exc

    def stop_capture(self) -> bytes:
        try:
            return self._recorder.stop()
        except Exception as exc:
            raise StopFailure(f"stop failed: {exc}") from exc

    def is_recording(self) -> bool:
        return self._recorder.is_recording

    def sample_levels(self) -> List[float]:
        return self._recorder.levels()

    def list_input_devices(self) -> List[AudioDevice]:
        return self._recorder.list_input_devices()

    def transcribe(self, audio: bytes) -> str:
        return self._transcriber.transcribe(audio)

    def cleanup(self, text: str, mode: CleanupMode, prompt: Optional[str] = None) -> str:
        return self._cleaner.cleanup(text, mode, prompt)

    def paste(self, text: str, method: PasteMethod) -> None:
        result = self._paste_service.paste_text(text, method)
        if not result.success:
            raise PasteFailure(result.reason)
        logger.info("Text pasted via %s", PasteMethod(method).value)

    def copy_to_clipboard(self, text: str) -> None:
        try:
            self._paste_service.copy_text(text)
        except Exception as exc:
            raise PasteFailure(f"clipboard copy failed: {exc}") from exc
