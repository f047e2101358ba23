"""State-machine based session orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Sequence, Type

from errors import SessionBusy, SessionError, StartFailure, StopFailure, TranscriptionFailure
from interfaces import CaptureBackend, OverlaySurface, SettingsProvider
from level_poller import LevelPoller
from models import (
    LEVEL_WINDOW,
    SPEECH_THRESHOLD,
    PipelineOutcome,
    RecordingState,
    SessionSnapshot,
    TranscriptionResult,
)
from overlay_notifier import OverlayNotifier
from pipeline import PipelineExecutor

logger = logging.getLogger(__name__)

StateCallback = Callable[[RecordingState, RecordingState], None]

_CAPTURING = (RecordingState.LISTENING, RecordingState.RECORDING)
_PROCESSING = (RecordingState.TRANSCRIBING, RecordingState.CLEANUP)


def _fatal(kind: Type[SessionError], exc: Exception) -> SessionError:
    if isinstance(exc, kind):
        return exc
    return kind(str(exc))


class SessionController:
    """Owns the one recording session and drives it through its states.

    ``toggle()`` is serialized: concurrent callers run one after another, so
    the "is recording" query and the begin/end it selects always act on the
    same backend state.
    """

    def __init__(
        self,
        backend: CaptureBackend,
        settings: SettingsProvider,
        overlay: Optional[OverlaySurface] = None,
        poll_interval_s: float = 0.05,
        reset_delay_s: float = 1.0,
        on_state_change: Optional[StateCallback] = None,
    ) -> None:
        self._backend = backend
        self._settings = settings
        self._notifier = OverlayNotifier(overlay)
        self._pipeline = PipelineExecutor(backend, settings)
        self._poll_interval_s = poll_interval_s
        self._reset_delay_s = reset_delay_s
        self._on_state_change = on_state_change

        self._lock = threading.RLock()
        self._toggle_lock = threading.Lock()
        self._state = RecordingState.IDLE
        self._levels: List[float] = [0.0] * LEVEL_WINDOW
        self._last_result: Optional[TranscriptionResult] = None
        self._last_error: Optional[Exception] = None
        self._session_id = 0
        self._poller: Optional[LevelPoller] = None
        self._reset_timer: Optional[threading.Timer] = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def levels(self) -> List[float]:
        with self._lock:
            return list(self._levels)

    @property
    def last_result(self) -> Optional[TranscriptionResult]:
        return self._last_result

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    @property
    def poller_active(self) -> bool:
        return self._poller is not None

    @property
    def notifier(self) -> OverlayNotifier:
        return self._notifier

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                state=self._state,
                levels=tuple(self._levels),
                last_result=self._last_result,
                last_error=self._last_error,
            )

    def clear_error(self) -> None:
        with self._lock:
            self._last_error = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def toggle(self, device_hint: Optional[str] = None) -> Optional[TranscriptionResult]:
        with self._toggle_lock:
            recording = self._backend.is_recording()
            logger.debug("toggle: backend recording=%s", recording)
            if recording:
                return self.end()
            self.begin(device_hint)
            return None

    def begin(self, device_hint: Optional[str] = None) -> None:
        settings = self._settings.read_settings()
        device = device_hint if device_hint is not None else (settings.selected_device or None)

        self._recover_lost_capture()

        with self._lock:
            if self._state in _CAPTURING or self._state in _PROCESSING:
                raise SessionBusy(f"cannot start while {self._state.value}")
            if self._backend.is_recording():
                raise SessionBusy("backend is already recording")

            # The pending reset is the only thing that would hide the overlay.
            overlay_visible = self._reset_timer is not None or self._state == RecordingState.DONE
            self._cancel_reset_timer()
            if self._state == RecordingState.DONE:
                self._transition(RecordingState.IDLE)
            self._last_error = None
            self._last_result = None
            self._levels = [0.0] * LEVEL_WINDOW

            logger.info("Starting capture on device %r", device)
            try:
                self._backend.start_capture(device)
            except Exception as exc:
                failure = _fatal(StartFailure, exc)
                logger.error("Start failed: %s", failure)
                self._last_error = failure
                self._transition(RecordingState.IDLE)
                if overlay_visible:
                    self._notifier.hide()
                if failure is exc:
                    raise
                raise failure from exc

            self._session_id += 1
            self._transition(RecordingState.LISTENING)
            self._notifier.show(settings.overlay_position)
            self._poller = self._make_poller(self._session_id)
            self._poller.start()

    def end(self) -> Optional[TranscriptionResult]:
        with self._lock:
            if self._state in _PROCESSING:
                raise SessionBusy("pipeline already running")
            if self._state not in _CAPTURING and not self._backend.is_recording():
                raise StopFailure(f"nothing to stop while {self._state.value}")
            poller, self._poller = self._poller, None
            self._cancel_reset_timer()
            self._transition(RecordingState.TRANSCRIBING)
        if poller is not None:
            poller.stop()

        try:
            audio = self._backend.stop_capture()
        except Exception as exc:
            failure = _fatal(StopFailure, exc)
            logger.error("Stop failed: %s", failure)
            with self._lock:
                self._last_error = failure
                self._transition(RecordingState.IDLE)
            self._notifier.hide()
            if failure is exc:
                raise
            raise failure from exc

        try:
            outcome = self._pipeline.run(audio, on_stage=self._enter_stage)
        except Exception as exc:
            logger.exception("Pipeline aborted")
            outcome = PipelineOutcome(errors=[TranscriptionFailure(str(exc))])

        with self._lock:
            self._last_result = outcome.result
            self._last_error = outcome.error
            self._transition(RecordingState.DONE)
            self._schedule_reset()
            return self._last_result

    def shutdown(self) -> None:
        """Tear down for app exit; a live capture is stopped and discarded."""
        with self._lock:
            poller, self._poller = self._poller, None
            self._cancel_reset_timer()
        if poller is not None:
            poller.stop()
        try:
            if self._backend.is_recording():
                self._backend.stop_capture()
        except Exception as exc:
            logger.warning("Failed to stop capture on shutdown: %s", exc)
        with self._lock:
            self._transition(RecordingState.IDLE)
        self._notifier.hide()
        self._notifier.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _recover_lost_capture(self) -> None:
        """Reset a session whose capture ended without going through ``end()``."""
        with self._lock:
            if self._state not in _CAPTURING or self._backend.is_recording():
                return
            logger.warning("Capture stopped underneath a %s session, resetting", self._state.value)
            poller, self._poller = self._poller, None
            self._transition(RecordingState.IDLE)
        if poller is not None:
            poller.stop()
        self._notifier.hide()

    def _make_poller(self, session_id: int) -> LevelPoller:
        def on_levels(levels: List[float]) -> None:
            self._handle_levels(session_id, levels)

        return LevelPoller(self._backend.sample_levels, on_levels, interval_s=self._poll_interval_s)

    def _handle_levels(self, session_id: int, levels: Sequence[float]) -> None:
        with self._lock:
            if self._poller is None or session_id != self._session_id:
                return
            self._levels = list(levels)
            self._notifier.notify_levels(self._levels)
            # Promotion only; silence never demotes recording back to listening.
            if self._state == RecordingState.LISTENING and max(self._levels) > SPEECH_THRESHOLD:
                self._transition(RecordingState.RECORDING)

    def _enter_stage(self, state: RecordingState) -> None:
        with self._lock:
            self._transition(state)

    def _schedule_reset(self) -> None:
        timer = threading.Timer(self._reset_delay_s, self._reset_to_idle, args=(self._session_id,))
        timer.daemon = True
        self._reset_timer = timer
        timer.start()

    def _reset_to_idle(self, session_id: int) -> None:
        with self._lock:
            if self._reset_timer is None or session_id != self._session_id:
                return
            if self._state != RecordingState.DONE:
                return
            self._reset_timer = None
            self._transition(RecordingState.IDLE)
        self._notifier.hide()

    def _cancel_reset_timer(self) -> None:
        if self._reset_timer is not None:
            self._reset_timer.cancel()
            self._reset_timer = None

    def _transition(self, to_state: RecordingState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.info("State %s -> %s", from_state.value, to_state.value)
        self._notifier.notify_state(to_state)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
