"""Auto paste service for text insertion."""

from __future__ import annotations

import logging
import sys
import time

from errors import NO_ACTIVE_TARGET
from models import PasteMethod, PasteResult

logger = logging.getLogger(__name__)

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

try:
    from pynput.keyboard import Controller, Key
except Exception:  # pragma: no cover
    Controller = None  # type: ignore
    Key = None  # type: ignore


class ClipboardPasteService:
    def __init__(self, settle_delay_s: float = 0.05, restore_delay_s: float = 0.1) -> None:
        self._settle_delay_s = settle_delay_s
        self._restore_delay_s = restore_delay_s

    def paste_text(self, text: str, method: PasteMethod = PasteMethod.CLIPBOARD) -> PasteResult:
        if not text.strip():
            return PasteResult(success=False, reason="empty text", clipboard_restored=True)
        if Controller is None or Key is None:
            return PasteResult(
                success=False,
                reason="keyboard dependency missing",
                clipboard_restored=False,
            )
        if method == PasteMethod.TYPING:
            return self._type_text(text)
        if pyperclip is None:
            return PasteResult(
                success=False,
                reason="clipboard dependency missing",
                clipboard_restored=False,
            )
        if method == PasteMethod.CLIPBOARD_RESTORE:
            return self._paste_with_restore(text)
        return self._paste_via_clipboard(text)

    def copy_text(self, text: str) -> None:
        if pyperclip is None:
            raise RuntimeError("pyperclip is not installed")
        pyperclip.copy(text)

    def _paste_via_clipboard(self, text: str) -> PasteResult:
        try:
            pyperclip.copy(text)
            time.sleep(self._settle_delay_s)
            self._press_paste_shortcut()
            return PasteResult(success=True, reason="ok", clipboard_restored=False)
        except Exception as exc:
            return PasteResult(
                success=False,
                reason=f"{NO_ACTIVE_TARGET}: {exc}",
                clipboard_restored=False,
            )

    def _paste_with_restore(self, text: str) -> PasteResult:
        old_clip: str | None = None
        restored = False
        try:
            old_clip = pyperclip.paste()
            pyperclip.copy(text)
            time.sleep(self._settle_delay_s)
            self._press_paste_shortcut()
            time.sleep(self._restore_delay_s)
            pyperclip.copy(old_clip)
            return PasteResult(success=True, reason="ok", clipboard_restored=True)
        except Exception as exc:
            try:
                if old_clip is not None:
                    pyperclip.copy(old_clip)
                    restored = True
            except Exception as restore_exc:
                logger.warning("Failed to restore clipboard: %s", restore_exc)
                restored = False
            return PasteResult(
                success=False,
                reason=f"{NO_ACTIVE_TARGET}: {exc}",
                clipboard_restored=restored,
            )

    def _type_text(self, text: str) -> PasteResult:
        try:
            Controller().type(text)
            return PasteResult(success=True, reason="ok", clipboard_restored=True)
        except Exception as exc:
            return PasteResult(
                success=False,
                reason=f"{NO_ACTIVE_TARGET}: {exc}",
                clipboard_restored=True,
            )

    def _press_paste_shortcut(self) -> None:
        modifier = Key.cmd if sys.platform == "darwin" else Key.ctrl
        keyboard = Controller()
        keyboard.press(modifier)
        keyboard.press("v")
        keyboard.release("v")
        keyboard.release(modifier)
