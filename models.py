"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

LEVEL_WINDOW = 32
SPEECH_THRESHOLD = 0.1

DEFAULT_CLEANUP_PROMPT = (
    "You clean up transcribed speech. Output ONLY the cleaned text with no "
    "explanations, comments, or annotations. Remove filler words (um, uh, like, "
    "you know), fix grammar, and improve clarity while preserving the original "
    "meaning."
)


class RecordingState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    CLEANUP = "cleanup"
    DONE = "done"


class PasteMethod(str, Enum):
    CLIPBOARD = "clipboard"
    CLIPBOARD_RESTORE = "clipboard_restore"
    TYPING = "typing"


class CleanupMode(str, Enum):
    BASIC = "basic"
    FORMAL = "formal"
    CASUAL = "casual"
    CUSTOM = "custom"


class OverlayPosition(str, Enum):
    TOP_LEFT = "top_left"
    TOP_CENTER = "top_center"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_CENTER = "bottom_center"
    BOTTOM_RIGHT = "bottom_right"


class ActivationMode(str, Enum):
    TOGGLE = "toggle"
    HOLD = "hold"


@dataclass(frozen=True)
class SettingsSnapshot:
    selected_device: str = ""
    cleanup_enabled: bool = True
    cleanup_mode: CleanupMode = CleanupMode.BASIC
    cleanup_prompt: str = DEFAULT_CLEANUP_PROMPT
    auto_paste: bool = True
    paste_method: PasteMethod = PasteMethod.CLIPBOARD
    overlay_position: OverlayPosition = OverlayPosition.BOTTOM_CENTER
    hotkey: str = "Key.alt_l"
    activation_mode: ActivationMode = ActivationMode.TOGGLE


@dataclass(frozen=True)
class TranscriptionResult:
    original_text: str
    cleaned_text: Optional[str] = None

    @property
    def final_text(self) -> str:
        if self.cleaned_text is not None:
            return self.cleaned_text
        return self.original_text

    def as_tuple(self) -> Tuple[str, Optional[str]]:
        return (self.original_text, self.cleaned_text)


@dataclass(frozen=True)
class AudioDevice:
    name: str
    is_default: bool = False


@dataclass
class PasteResult:
    success: bool
    reason: str
    clipboard_restored: bool


@dataclass
class PipelineOutcome:
    """What one pipeline run produced.

    ``errors`` holds every recoverable failure in the order it happened;
    ``delivered_via`` is ``"paste"``, ``"clipboard"`` or ``None`` when the
    text never reached the user.
    """

    result: Optional[TranscriptionResult] = None
    errors: List[Exception] = field(default_factory=list)
    delivered_via: Optional[str] = None

    @property
    def error(self) -> Optional[Exception]:
        return self.errors[-1] if self.errors else None


@dataclass(frozen=True)
class SessionSnapshot:
    state: RecordingState
    levels: Tuple[float, ...]
    last_result: Optional[TranscriptionResult]
    last_error: Optional[Exception]
