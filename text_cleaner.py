"""LLM text cleanup using DashScope chat models."""

from __future__ import annotations

import logging
import os
from typing import Optional

from errors import AUTH_FAILED, CleanupFailure, classify_exception
from models import DEFAULT_CLEANUP_PROMPT, CleanupMode

logger = logging.getLogger(__name__)

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

_MODE_INSTRUCTIONS = {
    CleanupMode.BASIC: (
        "Clean up the following transcribed speech. Remove filler words (um, uh, "
        "like, you know), fix grammar and punctuation, but keep the original meaning "
        "and tone. Do not add any new information or change the meaning. Only output "
        "the cleaned text, nothing else."
    ),
    CleanupMode.FORMAL: (
        "Clean up the following transcribed speech and make it more formal and "
        "professional. Remove filler words, fix grammar, and adjust the tone to be "
        "suitable for professional communication. Keep the original meaning. Only "
        "output the cleaned text, nothing else."
    ),
    CleanupMode.CASUAL: (
        "Clean up the following transcribed speech while keeping a casual, friendly "
        "tone. Remove filler words and fix obvious errors, but keep contractions and "
        "conversational language. Only output the cleaned text, nothing else."
    ),
}


def build_messages(text: str, mode: CleanupMode, prompt: Optional[str] = None) -> list:
    try:
        mode = CleanupMode(mode)
    except ValueError:
        mode = CleanupMode.CUSTOM
    if mode == CleanupMode.CUSTOM:
        return [
            {"role": "system", "content": prompt or DEFAULT_CLEANUP_PROMPT},
            {"role": "user", "content": text},
        ]
    instruction = _MODE_INSTRUCTIONS[mode]
    return [{"role": "user", "content": f"{instruction}\n\nText: {text}\n\nCleaned text:"}]


def _extract_content(response: object) -> str:
    if isinstance(response, dict):
        output = response.get("output") or {}
        choices = output.get("choices") or []
        if choices:
            message = choices[0].get("message") or {}
            return str(message.get("content") or "")
        return str(output.get("text") or "")
    return ""


class DashscopeTextCleaner:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen-turbo",
        request_timeout_s: float = 15.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    def cleanup(self, text: str, mode: CleanupMode, prompt: Optional[str] = None) -> str:
        if dashscope is None:
            raise CleanupFailure("dashscope is not installed")
        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            raise CleanupFailure("No API key configured", code=AUTH_FAILED)

        try:
            response = dashscope.Generation.call(
                api_key=api_key,
                model=self._model,
                messages=build_messages(text, mode, prompt),
                result_format="message",
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            raise CleanupFailure(str(exc), code=classify_exception(exc)) from exc

        status = getattr(response, "status_code", 200)
        if status != 200:
            message = getattr(response, "message", "") or f"status {status}"
            raise CleanupFailure(f"cleanup request failed: {message}")

        cleaned = _extract_content(response).strip()
        if not cleaned:
            raise CleanupFailure("cleanup returned no text")
        return cleaned
