"""Tests for PipelineExecutor."""

from __future__ import annotations

import threading
import time
from typing import Optional

import pytest

from errors import AUTH_FAILED, PasteFailure, SessionBusy, TranscriptionFailure
from models import CleanupMode, PasteMethod, RecordingState, SettingsSnapshot
from pipeline import PipelineExecutor


class ScriptedBackend:
    """Backend stub exposing only the pipeline operations."""

    def __init__(self, transcript: str = "so um this is a test") -> None:
        self.transcript = transcript
        self.calls: list[tuple] = []
        self.transcribe_error: Optional[Exception] = None
        self.cleanup_error: Optional[Exception] = None
        self.paste_error: Optional[Exception] = None
        self.copy_error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None

    def transcribe(self, audio: bytes) -> str:
        self.calls.append(("transcribe", audio))
        if self.gate is not None:
            self.gate.wait(timeout=2.0)
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcript

    def cleanup(self, text: str, mode: CleanupMode, prompt: Optional[str] = None) -> str:
        self.calls.append(("cleanup", text, mode, prompt))
        if self.cleanup_error:
            raise self.cleanup_error
        return "This is a test."

    def paste(self, text: str, method: PasteMethod) -> None:
        self.calls.append(("paste", text, method))
        if self.paste_error:
            raise self.paste_error

    def copy_to_clipboard(self, text: str) -> None:
        self.calls.append(("copy", text))
        if self.copy_error:
            raise self.copy_error


class StaticSettings:
    def __init__(self, **overrides: object) -> None:
        self.snapshot = SettingsSnapshot(**overrides)

    def read_settings(self) -> SettingsSnapshot:
        return self.snapshot


def test_stages_run_in_order() -> None:
    backend = ScriptedBackend()
    stages: list[RecordingState] = []
    executor = PipelineExecutor(backend, StaticSettings())

    outcome = executor.run(b"wav", on_stage=stages.append)

    assert [c[0] for c in backend.calls] == ["transcribe", "cleanup", "paste"]
    assert stages == [RecordingState.CLEANUP]
    assert outcome.result.as_tuple() == ("so um this is a test", "This is a test.")
    assert outcome.delivered_via == "paste"
    assert outcome.errors == []


def test_custom_mode_sends_user_prompt() -> None:
    backend = ScriptedBackend()
    settings = StaticSettings(cleanup_mode=CleanupMode.CUSTOM, cleanup_prompt="Translate to pirate.")
    executor = PipelineExecutor(backend, settings)

    executor.run(b"wav")

    assert ("cleanup", "so um this is a test", CleanupMode.CUSTOM, "Translate to pirate.") in backend.calls


@pytest.mark.parametrize("mode", [CleanupMode.BASIC, CleanupMode.FORMAL, CleanupMode.CASUAL])
def test_builtin_modes_send_no_prompt(mode: CleanupMode) -> None:
    backend = ScriptedBackend()
    executor = PipelineExecutor(backend, StaticSettings(cleanup_mode=mode))

    executor.run(b"wav")

    assert ("cleanup", "so um this is a test", mode, None) in backend.calls


def test_transcription_failure_keeps_error_code() -> None:
    backend = ScriptedBackend()
    backend.transcribe_error = TranscriptionFailure("No API key configured", code=AUTH_FAILED)
    executor = PipelineExecutor(backend, StaticSettings())

    outcome = executor.run(b"wav")

    assert outcome.result is None
    assert outcome.error.code == AUTH_FAILED
    assert [c[0] for c in backend.calls] == ["transcribe"]


def test_unexpected_transcription_error_is_wrapped() -> None:
    backend = ScriptedBackend()
    backend.transcribe_error = ValueError("bad wav header")
    executor = PipelineExecutor(backend, StaticSettings())

    outcome = executor.run(b"wav")

    assert isinstance(outcome.error, TranscriptionFailure)
    assert "bad wav header" in str(outcome.error)


def test_paste_method_comes_from_settings() -> None:
    backend = ScriptedBackend()
    executor = PipelineExecutor(backend, StaticSettings(paste_method=PasteMethod.TYPING))

    executor.run(b"wav")

    assert ("paste", "This is a test.", PasteMethod.TYPING) in backend.calls


def test_clipboard_failure_does_not_revert_transcription() -> None:
    backend = ScriptedBackend()
    backend.paste_error = PasteFailure("no target")
    backend.copy_error = RuntimeError("clipboard locked")
    executor = PipelineExecutor(backend, StaticSettings())

    outcome = executor.run(b"wav")

    assert outcome.result.final_text == "This is a test."
    assert outcome.delivered_via is None
    assert len(outcome.errors) == 2
    assert all(isinstance(e, PasteFailure) for e in outcome.errors)


def test_blank_transcription_still_cleans_up_and_delivers() -> None:
    backend = ScriptedBackend(transcript="")
    stages: list[RecordingState] = []
    executor = PipelineExecutor(backend, StaticSettings())

    outcome = executor.run(b"wav", on_stage=stages.append)

    assert [c[0] for c in backend.calls] == ["transcribe", "cleanup", "paste"]
    assert stages == [RecordingState.CLEANUP]
    assert outcome.result.original_text == ""
    assert outcome.delivered_via == "paste"


def test_blank_transcription_without_cleanup_is_copied() -> None:
    backend = ScriptedBackend(transcript="   ")
    backend.paste_error = PasteFailure("empty text")
    executor = PipelineExecutor(backend, StaticSettings(cleanup_enabled=False))

    outcome = executor.run(b"wav")

    assert [c[0] for c in backend.calls] == ["transcribe", "paste", "copy"]
    assert outcome.result.as_tuple() == ("   ", None)
    assert outcome.delivered_via == "clipboard"


def test_second_run_while_running_is_rejected() -> None:
    backend = ScriptedBackend()
    backend.gate = threading.Event()
    executor = PipelineExecutor(backend, StaticSettings())

    worker = threading.Thread(target=executor.run, args=(b"wav",))
    worker.start()
    try:
        for _ in range(100):
            if executor.running:
                break
            time.sleep(0.01)
        assert executor.running is True
        with pytest.raises(SessionBusy):
            executor.run(b"other")
    finally:
        backend.gate.set()
        worker.join(timeout=2.0)

    assert executor.running is False
    assert len([c for c in backend.calls if c[0] == "transcribe"]) == 1
