"""Simple JSON-based config store."""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Type, TypeVar

from models import (
    ActivationMode,
    CleanupMode,
    OverlayPosition,
    PasteMethod,
    SettingsSnapshot,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_BOOL_KEYS = ("cleanup_enabled", "auto_paste")
_STR_KEYS = ("selected_device", "cleanup_prompt", "hotkey")


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return default


def _as_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        return default


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "voice_session" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def read_settings(self) -> SettingsSnapshot:
        """Return a fresh snapshot; unknown or malformed values fall back to defaults."""
        data = self._read_all()
        defaults = SettingsSnapshot()
        mode = data.get("cleanup_mode", defaults.cleanup_mode.value)
        return SettingsSnapshot(
            selected_device=str(data.get("selected_device", defaults.selected_device)),
            cleanup_enabled=_as_bool(data.get("cleanup_enabled"), defaults.cleanup_enabled),
            # Any mode name we do not know is treated as a user-defined prompt.
            cleanup_mode=_as_enum(CleanupMode, mode, CleanupMode.CUSTOM),
            cleanup_prompt=str(data.get("cleanup_prompt", defaults.cleanup_prompt)),
            auto_paste=_as_bool(data.get("auto_paste"), defaults.auto_paste),
            paste_method=_as_enum(PasteMethod, data.get("paste_method"), defaults.paste_method),
            overlay_position=_as_enum(
                OverlayPosition, data.get("overlay_position"), defaults.overlay_position
            ),
            hotkey=str(data.get("hotkey", defaults.hotkey)),
            activation_mode=_as_enum(
                ActivationMode, data.get("activation_mode"), defaults.activation_mode
            ),
        )

    def set_setting(self, key: str, value: Any) -> None:
        if key not in SettingsSnapshot.__dataclass_fields__:
            raise KeyError(f"unknown setting: {key}")
        if key in _BOOL_KEYS:
            value = _as_bool(value, False)
        elif isinstance(value, Enum):
            value = value.value
        elif key in _STR_KEYS:
            value = str(value)
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", "")) or os.getenv("DASHSCOPE_API_KEY", "")

    def set_api_key(self, key: str) -> None:
        data = self._read_all()
        data["api_key"] = key
        self._write_all(data)

    def get_hotkey(self) -> str:
        return self.read_settings().hotkey

    def set_hotkey(self, hotkey: str) -> None:
        self.set_setting("hotkey", hotkey)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
