"""Best-effort mirror of session state to the overlay surface.

Every call is queued to a single worker thread and returns immediately.
A surface failure is logged as an ``OverlayFailure`` and dropped: it is never
retried and never reaches the caller, so the overlay can lag behind or miss
an update without affecting the session.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Sequence

from errors import OverlayFailure
from interfaces import OverlaySurface
from models import OverlayPosition, RecordingState

logger = logging.getLogger(__name__)


class OverlayNotifier:
    def __init__(self, surface: Optional[OverlaySurface]) -> None:
        self._surface = surface
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="overlay")
        self._closed = False
        self._last: Optional[Future] = None

    def show(self, position: OverlayPosition) -> None:
        self._submit("show", lambda s: s.show(position))

    def hide(self) -> None:
        self._submit("hide", lambda s: s.hide())

    def notify_state(self, state: RecordingState) -> None:
        self._submit("state", lambda s: s.emit_state(state))

    def notify_levels(self, levels: Sequence[float]) -> None:
        snapshot = list(levels)
        self._submit("levels", lambda s: s.emit_levels(snapshot))

    def flush(self, timeout: float = 1.0) -> None:
        """Wait until everything queued so far has been handed to the surface."""
        last = self._last
        if last is not None:
            last.result(timeout=timeout)

    def close(self) -> None:
        self._closed = True
        self._executor.shutdown(wait=False)

    def _submit(self, what: str, call: Callable[[OverlaySurface], None]) -> None:
        surface = self._surface
        if surface is None or self._closed:
            return
        try:
            self._last = self._executor.submit(self._deliver, what, surface, call)
        except RuntimeError:
            # Executor already shut down.
            return

    @staticmethod
    def _deliver(what: str, surface: OverlaySurface, call: Callable[[OverlaySurface], None]) -> None:
        try:
            call(surface)
        except Exception as exc:
            failure = OverlayFailure(f"overlay {what} failed: {exc}")
            logger.warning("%s", failure)
