"""Overlay window mirroring recording state and input level."""

from __future__ import annotations

from typing import Sequence, Tuple

from models import OverlayPosition, RecordingState

try:
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

WINDOW_WIDTH = 280
WINDOW_HEIGHT = 70
EDGE_PADDING = 20
# Keeps bottom positions clear of a taskbar.
BOTTOM_PADDING = 60

_BARS = " ▁▂▃▄▅▆▇█"

_STATE_LABELS = {
    RecordingState.IDLE: "",
    RecordingState.LISTENING: "🎙️ Listening...",
    RecordingState.RECORDING: "🔴 Recording",
    RecordingState.TRANSCRIBING: "✍️ Transcribing...",
    RecordingState.CLEANUP: "✨ Cleaning up...",
    RecordingState.DONE: "✅ Done",
}


def overlay_origin(
    position: OverlayPosition | str,
    screen: Tuple[int, int, int, int],
    width: int = WINDOW_WIDTH,
    height: int = WINDOW_HEIGHT,
) -> Tuple[int, int]:
    """Top-left corner for the overlay on a screen given as (x, y, w, h)."""
    sx, sy, sw, sh = screen
    try:
        position = OverlayPosition(position)
    except ValueError:
        position = OverlayPosition.BOTTOM_CENTER

    if position.value.endswith("left"):
        x = sx + EDGE_PADDING
    elif position.value.endswith("right"):
        x = sx + sw - width - EDGE_PADDING
    else:
        x = sx + (sw - width) // 2

    if position.value.startswith("top"):
        y = sy + EDGE_PADDING
    else:
        y = sy + sh - height - BOTTOM_PADDING
    return x, y


def render_levels(levels: Sequence[float]) -> str:
    top = len(_BARS) - 1
    return "".join(_BARS[min(top, max(0, int(round(v * top))))] for v in levels)


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedSize(WINDOW_WIDTH, WINDOW_HEIGHT)

        self._state_label = QLabel("")
        self._level_label = QLabel("")
        for label in (self._state_label, self._level_label):
            label.setAlignment(Qt.AlignCenter)
            label.setStyleSheet("color: white; font-size: 14px;")

        container = QWidget(self)
        container.setStyleSheet("background: rgba(0,0,0,190); border-radius: 12px;")
        layout = QVBoxLayout()
        layout.setContentsMargins(8, 4, 8, 4)
        layout.addWidget(self._state_label)
        layout.addWidget(self._level_label)
        container.setLayout(layout)

        outer = QVBoxLayout()
        outer.setContentsMargins(0, 0, 0, 0)
        outer.addWidget(container)
        self.setLayout(outer)

    def show_at(self, position: str) -> None:
        """Place the overlay on the primary screen and show it."""
        screen = QApplication.primaryScreen() if QApplication is not None else None
        if screen is not None:
            geom = screen.availableGeometry()
            x, y = overlay_origin(position, (geom.x(), geom.y(), geom.width(), geom.height()))
            self.move(x, y)
        self.show()

    def set_state(self, state: str) -> None:
        try:
            label = _STATE_LABELS[RecordingState(state)]
        except ValueError:
            label = state
        self._state_label.setText(label)

    def set_levels(self, levels: list) -> None:
        self._level_label.setText(render_levels(levels))
