"""Fixed-rate audio level sampling loop."""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable, List, Optional, Sequence

from models import LEVEL_WINDOW

logger = logging.getLogger(__name__)

SampleFn = Callable[[], Sequence[float]]
LevelsCallback = Callable[[List[float]], None]


def _clamp(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


def normalize_levels(samples: Sequence[float], size: int = LEVEL_WINDOW) -> List[float]:
    """Clamp to [0, 1] and fit to ``size`` values, keeping the most recent ones."""
    values = [_clamp(float(v)) for v in samples]
    if len(values) >= size:
        return values[-size:]
    return values + [0.0] * (size - len(values))


class LevelPoller:
    def __init__(
        self,
        sample: SampleFn,
        on_levels: LevelsCallback,
        interval_s: float = 0.05,
        window: int = LEVEL_WINDOW,
    ) -> None:
        self._sample = sample
        self._on_levels = on_levels
        self._interval_s = interval_s
        self._window = window
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, name="level-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        # Taking the lock waits out a delivery in progress.
        with self._lock:
            self._stop_event.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _worker(self) -> None:
        while not self._stop_event.wait(self._interval_s):
            try:
                levels = normalize_levels(self._sample(), self._window)
            except Exception as exc:
                logger.error("Failed to get audio levels: %s", exc)
                continue
            with self._lock:
                if self._stop_event.is_set():
                    return
                try:
                    self._on_levels(levels)
                except Exception:
                    logger.exception("Level callback failed")
