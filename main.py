"""Application entrypoint."""

from __future__ import annotations

import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from auto_paste import ClipboardPasteService
from backend import LocalBackend
from config import JsonConfigStore
from errors import SessionError
from hotkey import GlobalHotkeyAdapter
from models import ActivationMode, OverlayPosition, RecordingState
from overlay import OverlayWindow
from recognizer import DashscopeTranscriber
from recorder import SoundDeviceRecorder
from session_controller import SessionController
from text_cleaner import DashscopeTextCleaner

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QActionGroup, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))  # transparent background
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"      # grey
ICON_RECORDING = "#FF4444"  # red
ICON_BUSY = "#4488FF"      # blue
ICON_ERROR = "#FF8800"     # orange


class OverlayBridge(QObject):
    """Overlay surface that hands every call to the Qt thread via signals."""

    show_signal = Signal(str)
    hide_signal = Signal()
    state_signal = Signal(str)
    levels_signal = Signal(list)

    def __init__(self, window: OverlayWindow) -> None:
        super().__init__()
        self.show_signal.connect(window.show_at)
        self.hide_signal.connect(window.hide)
        self.state_signal.connect(window.set_state)
        self.levels_signal.connect(window.set_levels)

    def show(self, position: OverlayPosition) -> None:
        self.show_signal.emit(OverlayPosition(position).value)

    def hide(self) -> None:
        self.hide_signal.emit()

    def emit_state(self, state: RecordingState) -> None:
        self.state_signal.emit(RecordingState(state).value)

    def emit_levels(self, levels: Sequence[float]) -> None:
        self.levels_signal.emit(list(levels))


class UIBridge(QObject):
    error_signal = Signal(str)
    state_signal = Signal(str, str)  # from_state, to_state


def setup_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)

        api_key = self.config_store.get_api_key()
        self.backend = LocalBackend(
            recorder=SoundDeviceRecorder(),
            transcriber=DashscopeTranscriber(api_key=api_key),
            cleaner=DashscopeTextCleaner(api_key=api_key),
            paste_service=ClipboardPasteService(),
        )
        self.controller = SessionController(
            backend=self.backend,
            settings=self.config_store,
            overlay=OverlayBridge(self.overlay),
            on_state_change=self._on_state_change,
        )
        # One worker keeps hotkey commands in arrival order.
        self._commands = ThreadPoolExecutor(max_workers=1, thread_name_prefix="session")

        settings = self.config_store.read_settings()
        self.hotkey = GlobalHotkeyAdapter(
            hotkey_name=settings.hotkey,
            activation_mode=settings.activation_mode,
        )
        self._activation_mode = settings.activation_mode

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("Voice Session - Ready")
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()
        settings = self.config_store.read_settings()

        toggle_action = QAction("Start/Stop Recording", menu)
        toggle_action.triggered.connect(lambda: self._submit(self.controller.toggle))
        menu.addAction(toggle_action)

        self._device_menu = menu.addMenu("Input Device")
        self._device_menu.aboutToShow.connect(self._populate_devices)

        menu.addSeparator()
        cleanup_action = QAction("Clean Up Text", menu)
        cleanup_action.setCheckable(True)
        cleanup_action.setChecked(settings.cleanup_enabled)
        cleanup_action.toggled.connect(
            lambda checked: self.config_store.set_setting("cleanup_enabled", checked)
        )
        menu.addAction(cleanup_action)

        paste_action = QAction("Auto Paste", menu)
        paste_action.setCheckable(True)
        paste_action.setChecked(settings.auto_paste)
        paste_action.toggled.connect(
            lambda checked: self.config_store.set_setting("auto_paste", checked)
        )
        menu.addAction(paste_action)

        menu.addSeparator()
        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        hotkey_action = QAction("Set Hotkey", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _populate_devices(self) -> None:
        """Rebuild the device list each time the submenu opens."""
        self._device_menu.clear()
        group = QActionGroup(self._device_menu)
        selected = self.config_store.read_settings().selected_device

        default_action = QAction("System Default", self._device_menu)
        default_action.setCheckable(True)
        default_action.setChecked(not selected)
        default_action.triggered.connect(lambda: self._select_device(""))
        group.addAction(default_action)
        self._device_menu.addAction(default_action)

        try:
            devices = self.backend.list_input_devices()
        except Exception as exc:
            logger.warning("Could not list input devices: %s", exc)
            devices = []
        for device in devices:
            label = f"{device.name} (default)" if device.is_default else device.name
            action = QAction(label, self._device_menu)
            action.setCheckable(True)
            action.setChecked(device.name == selected)
            action.triggered.connect(lambda _=False, name=device.name: self._select_device(name))
            group.addAction(action)
            self._device_menu.addAction(action)

    def _select_device(self, name: str) -> None:
        self.config_store.set_setting("selected_device", name)
        logger.info("Input device set to %r", name or "system default")

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.backend.replace_api_key(value)
        QMessageBox.information(None, "Saved", "API Key saved and applied.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput key format, e.g. Key.alt_l"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Saved", "Hotkey saved. Restart app to apply.")

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _submit(self, command: Callable[[], object]) -> None:
        self._commands.submit(self._run_command, command)

    def _run_command(self, command: Callable[[], object]) -> None:
        try:
            command()
        except SessionError as exc:
            logger.error("Session command failed: %s", exc)
            self.ui.error_signal.emit(f"{exc.code}: {exc.user_message}")
        except Exception:
            logger.exception("Unexpected session failure")
            self.ui.error_signal.emit("Unexpected error, see log.")

    def _on_state_change(self, from_state: RecordingState, to_state: RecordingState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)
        if to_state == RecordingState.DONE and self.controller.last_error is not None:
            error = self.controller.last_error
            message = error.user_message if isinstance(error, SessionError) else str(error)
            self.ui.error_signal.emit(message)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_error_ui(self, msg: str) -> None:
        self.tray.setIcon(_create_icon(ICON_ERROR))
        self.tray.showMessage("Voice Session", msg, QSystemTrayIcon.Warning, 3000)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        if to_state in (RecordingState.LISTENING.value, RecordingState.RECORDING.value):
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("Voice Session - Recording...")
        elif to_state in (RecordingState.TRANSCRIBING.value, RecordingState.CLEANUP.value):
            self.tray.setIcon(_create_icon(ICON_BUSY))
            self.tray.setToolTip("Voice Session - Processing...")
        elif to_state == RecordingState.IDLE.value:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("Voice Session - Ready")

    # ------------------------------------------------------------------
    # Hotkey handlers
    # ------------------------------------------------------------------

    def _on_hotkey_press(self) -> None:
        if self._activation_mode == ActivationMode.HOLD:
            self._submit(self.controller.begin)
        else:
            self._submit(self.controller.toggle)

    def _on_hotkey_release(self) -> None:
        self._submit(self._end_if_capturing)

    def _end_if_capturing(self) -> None:
        # A press whose begin() failed leaves nothing to stop.
        if self.controller.state in (RecordingState.LISTENING, RecordingState.RECORDING):
            self.controller.end()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(
                on_press=self._on_hotkey_press,
                on_release=self._on_hotkey_release,
            )
        except Exception as exc:
            logger.warning("Hotkey disabled: %s", exc)
            self.ui.error_signal.emit(f"Hotkey disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self._commands.shutdown(wait=False)
        self.controller.shutdown()
        self.app.quit()


def main() -> int:
    setup_logging()
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
