"""Tests for LocalBackend error translation."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from backend import LocalBackend
from errors import PasteFailure, StartFailure, StopFailure
from models import AudioDevice, CleanupMode, PasteMethod, PasteResult


def _backend() -> tuple[LocalBackend, MagicMock, MagicMock, MagicMock, MagicMock]:
    recorder, transcriber, cleaner, paste = MagicMock(), MagicMock(), MagicMock(), MagicMock()
    return LocalBackend(recorder, transcriber, cleaner, paste), recorder, transcriber, cleaner, paste


def test_start_failure_is_wrapped() -> None:
    backend, recorder, *_ = _backend()
    recorder.start.side_effect = ValueError("No input device matching 'USB'")

    with pytest.raises(StartFailure, match="No input device"):
        backend.start_capture("USB")


def test_stop_failure_is_wrapped() -> None:
    backend, recorder, *_ = _backend()
    recorder.stop.side_effect = RuntimeError("not recording")

    with pytest.raises(StopFailure):
        backend.stop_capture()


def test_recording_state_and_levels_come_from_recorder() -> None:
    backend, recorder, *_ = _backend()
    recorder.is_recording = True
    recorder.levels.return_value = [0.1] * 32

    assert backend.is_recording() is True
    assert backend.sample_levels() == [0.1] * 32


def test_cleanup_forwards_mode_and_prompt() -> None:
    backend, _, _, cleaner, _ = _backend()
    cleaner.cleanup.return_value = "Done."

    assert backend.cleanup("um done", CleanupMode.CUSTOM, "Be brief.") == "Done."
    cleaner.cleanup.assert_called_once_with("um done", CleanupMode.CUSTOM, "Be brief.")


def test_unsuccessful_paste_raises() -> None:
    backend, _, _, _, paste = _backend()
    paste.paste_text.return_value = PasteResult(success=False, reason="no target", clipboard_restored=True)

    with pytest.raises(PasteFailure, match="no target"):
        backend.paste("hello", PasteMethod.CLIPBOARD)


def test_successful_paste_passes_method() -> None:
    backend, _, _, _, paste = _backend()
    paste.paste_text.return_value = PasteResult(success=True, reason="ok", clipboard_restored=True)

    backend.paste("hello", PasteMethod.TYPING)

    paste.paste_text.assert_called_once_with("hello", PasteMethod.TYPING)


def test_clipboard_copy_failure_is_wrapped() -> None:
    backend, _, _, _, paste = _backend()
    paste.copy_text.side_effect = RuntimeError("pyperclip is not installed")

    with pytest.raises(PasteFailure, match="clipboard copy failed"):
        backend.copy_to_clipboard("hello")


def test_list_input_devices_passes_through() -> None:
    backend, recorder, *_ = _backend()
    recorder.list_input_devices.return_value = [AudioDevice("USB Mic", is_default=True)]

    assert backend.list_input_devices() == [AudioDevice("USB Mic", is_default=True)]
