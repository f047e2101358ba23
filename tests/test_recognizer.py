"""Tests for DashscopeTranscriber."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import pytest

from errors import ASR_PROTOCOL_ERROR, AUTH_FAILED, NETWORK_ERROR, TranscriptionFailure
from recognizer import DashscopeTranscriber


def _fake_streaming_response():
    """Simulate dashscope streaming chunks."""
    yield {"output": {"choices": [{"message": {"content": [{"text": "你"}]}}]}}
    yield {"output": {"choices": [{"message": {"content": [{"text": "你好"}]}}]}}
    yield {"output": {"choices": []}}
    yield {"output": {"choices": [{"message": {"content": [{"text": "你好世界"}]}}]}}


@patch("recognizer.dashscope")
def test_streaming_returns_last_text(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _fake_streaming_response()

    text = DashscopeTranscriber(api_key="test-key").transcribe(b"RIFFdata")

    assert text == "你好世界"
    kwargs = mock_ds.MultiModalConversation.call.call_args.kwargs
    assert kwargs["stream"] is True
    audio = kwargs["messages"][1]["content"][0]["audio"]
    assert base64.b64decode(audio) == b"RIFFdata"


@patch("recognizer.dashscope")
def test_empty_stream_returns_empty_text(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = iter([])

    assert DashscopeTranscriber(api_key="test-key").transcribe(b"RIFF") == ""


@patch("recognizer.dashscope", MagicMock())
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": ""}, clear=False)
def test_missing_api_key_raises_auth_failure() -> None:
    with pytest.raises(TranscriptionFailure) as info:
        DashscopeTranscriber(api_key="").transcribe(b"RIFF")
    assert info.value.code == AUTH_FAILED


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (ConnectionError("network timeout"), NETWORK_ERROR),
        (Exception("401 Unauthorized: invalid api key"), AUTH_FAILED),
        (ValueError("unexpected payload"), ASR_PROTOCOL_ERROR),
    ],
)
@patch("recognizer.dashscope")
def test_sdk_errors_are_mapped(mock_ds: MagicMock, error: Exception, code: str) -> None:
    mock_ds.MultiModalConversation.call.side_effect = error

    with pytest.raises(TranscriptionFailure) as info:
        DashscopeTranscriber(api_key="test-key").transcribe(b"RIFF")

    assert info.value.code == code
    assert info.value.__cause__ is error


@patch("recognizer.dashscope")
def test_error_mid_stream_is_mapped(mock_ds: MagicMock) -> None:
    def broken_stream():
        yield {"output": {"choices": [{"message": {"content": [{"text": "hello"}]}}]}}
        raise ConnectionError("connection reset")

    mock_ds.MultiModalConversation.call.return_value = broken_stream()

    with pytest.raises(TranscriptionFailure) as info:
        DashscopeTranscriber(api_key="test-key").transcribe(b"RIFF")
    assert info.value.code == NETWORK_ERROR


@patch("recognizer.dashscope", None)
def test_dashscope_not_installed() -> None:
    with pytest.raises(TranscriptionFailure, match="not installed"):
        DashscopeTranscriber(api_key="test-key").transcribe(b"RIFF")
