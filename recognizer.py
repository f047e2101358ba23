"""Speech-to-text adapter using DashScope qwen3-asr-flash.

The qwen3-asr-flash model accepts complete audio (file path, URL, or base64)
and streams back recognition results via ``stream=True``.  Each chunk carries
the transcript so far, so the last non-empty text is the final result.
"""

from __future__ import annotations

import base64
import logging
import os

from errors import AUTH_FAILED, TranscriptionFailure, classify_exception

logger = logging.getLogger(__name__)

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore


def _extract_text(chunk: object) -> str:
    """Pull text from a dashscope streaming chunk dict."""
    if isinstance(chunk, dict):
        output = chunk.get("output") or {}
        choices = output.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content") or []
        if not content:
            return ""
        value = content[0]
        if isinstance(value, dict):
            return str(value.get("text", ""))
    return ""


class DashscopeTranscriber:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    def transcribe(self, wav_bytes: bytes) -> str:
        if dashscope is None:
            raise TranscriptionFailure("dashscope is not installed")
        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            raise TranscriptionFailure("No API key configured", code=AUTH_FAILED)

        wav_base64 = base64.b64encode(wav_bytes).decode("ascii")
        latest_text = ""
        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": wav_base64}]},
                ],
                result_format="message",
                asr_options={"enable_itn": False},
                stream=True,
                timeout=self._request_timeout_s,
            )
            for chunk in response:
                text = _extract_text(chunk)
                if text:
                    latest_text = text
        except Exception as exc:
            raise TranscriptionFailure(str(exc), code=classify_exception(exc)) from exc

        logger.debug("ASR result: %r", latest_text)
        return latest_text
