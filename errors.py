"""Session error taxonomy, error codes and user-facing messages."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
NO_ACTIVE_TARGET = "NO_ACTIVE_TARGET"
ASR_PROTOCOL_ERROR = "ASR_PROTOCOL_ERROR"
START_FAILED = "START_FAILED"
STOP_FAILED = "STOP_FAILED"
CLEANUP_FAILED = "CLEANUP_FAILED"
OVERLAY_FAILED = "OVERLAY_FAILED"
SESSION_BUSY = "SESSION_BUSY"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Permission is required in system settings.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
    NO_ACTIVE_TARGET: "No active input target, result kept in clipboard.",
    ASR_PROTOCOL_ERROR: "Transcription failed.",
    START_FAILED: "Could not start recording.",
    STOP_FAILED: "Could not stop recording.",
    CLEANUP_FAILED: "Text cleanup failed, raw transcription used.",
    OVERLAY_FAILED: "Overlay could not be updated.",
    SESSION_BUSY: "A recording is already in progress.",
}


class SessionError(Exception):
    """Base class for every failure the session layer knows about."""

    default_code = ASR_PROTOCOL_ERROR

    def __init__(self, message: str = "", code: str | None = None) -> None:
        self.code = code or self.default_code
        self.message = message or ERROR_MESSAGES.get(self.code, "")
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return ERROR_MESSAGES.get(self.code, self.message)


class StartFailure(SessionError):
    default_code = START_FAILED


class StopFailure(SessionError):
    default_code = STOP_FAILED


class TranscriptionFailure(SessionError):
    default_code = ASR_PROTOCOL_ERROR


class CleanupFailure(SessionError):
    default_code = CLEANUP_FAILED


class PasteFailure(SessionError):
    default_code = NO_ACTIVE_TARGET


class OverlayFailure(SessionError):
    default_code = OVERLAY_FAILED


class SessionBusy(SessionError):
    default_code = SESSION_BUSY


def classify_exception(exc: Exception) -> str:
    """Map an SDK/network exception message to an error code."""
    low = str(exc).lower()
    if "401" in low or "auth" in low or "api key" in low:
        return AUTH_FAILED
    if "timeout" in low or "network" in low or "connection" in low:
        return NETWORK_ERROR
    return ASR_PROTOCOL_ERROR
