"""Global hotkey adapter based on pynput."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from models import ActivationMode

logger = logging.getLogger(__name__)

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    """Turns presses of one key into recording commands.

    In ``toggle`` mode every press fires ``on_press`` and releases are
    ignored; in ``hold`` mode a press fires ``on_press`` and the matching
    release fires ``on_release``. Key auto-repeat is suppressed in both.
    """

    def __init__(
        self,
        hotkey_name: str = "Key.alt_l",
        activation_mode: ActivationMode = ActivationMode.TOGGLE,
    ) -> None:
        self._hotkey_name = hotkey_name
        self._activation_mode = ActivationMode(activation_mode)
        self._listener: Optional[object] = None
        self._pressed = False
        self._lock = threading.Lock()

    def start(self, on_press: Callable[[], None], on_release: Callable[[], None]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._listener = keyboard.Listener(
            on_press=lambda key: self.handle_press(key, on_press),
            on_release=lambda key: self.handle_release(key, on_release),
        )
        self._listener.start()
        logger.info("Hotkey %s armed (%s mode)", self._hotkey_name, self._activation_mode.value)

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def handle_press(self, key: object, callback: Callable[[], None]) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            if self._pressed:
                return
            self._pressed = True
        callback()

    def handle_release(self, key: object, callback: Callable[[], None]) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            if not self._pressed:
                return
            self._pressed = False
        if self._activation_mode == ActivationMode.HOLD:
            callback()
