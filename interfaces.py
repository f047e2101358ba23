"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from models import CleanupMode, OverlayPosition, PasteMethod, RecordingState, SettingsSnapshot


class CaptureBackend(Protocol):
    def start_capture(self, device: Optional[str] = None) -> None: ...

    def stop_capture(self) -> bytes: ...

    def is_recording(self) -> bool: ...

    def sample_levels(self) -> Sequence[float]: ...

    def transcribe(self, audio: bytes) -> str: ...

    def cleanup(self, text: str, mode: CleanupMode, prompt: Optional[str] = None) -> str: ...

    def paste(self, text: str, method: PasteMethod) -> None: ...

    def copy_to_clipboard(self, text: str) -> None: ...


class OverlaySurface(Protocol):
    def show(self, position: OverlayPosition) -> None: ...

    def hide(self) -> None: ...

    def emit_state(self, state: RecordingState) -> None: ...

    def emit_levels(self, levels: Sequence[float]) -> None: ...


class SettingsProvider(Protocol):
    def read_settings(self) -> SettingsSnapshot: ...
