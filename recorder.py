"""Microphone recorder adapter."""

from __future__ import annotations

import io
import logging
import threading
import wave
from collections import deque
from typing import Any, Deque, List, Optional

from models import LEVEL_WINDOW, AudioDevice

logger = logging.getLogger(__name__)

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

LEVEL_BLOCK_SAMPLES = 1024


def pcm_to_wav(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> bytes:
    """Wrap raw PCM bytes in a WAV container."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return buf.getvalue()


class SoundDeviceRecorder:
    """Buffers int16 audio from the input device and keeps a rolling level meter.

    Every ``LEVEL_BLOCK_SAMPLES`` samples the RMS (normalized to [0, 1]) is
    pushed into a fixed window of ``LEVEL_WINDOW`` values, oldest dropped.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self._chunks: List[bytes] = []
        self._levels: Deque[float] = deque([0.0] * LEVEL_WINDOW, maxlen=LEVEL_WINDOW)
        self._pending: Any = None

    @property
    def is_recording(self) -> bool:
        return self._running

    def start(self, device: Optional[str] = None) -> None:
        with self._lock:
            if self._running:
                raise RuntimeError("already recording")
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            self._chunks = []
            self._levels = deque([0.0] * LEVEL_WINDOW, maxlen=LEVEL_WINDOW)
            self._pending = None
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                device=device or None,
                callback=self._on_audio,
            )
            self._stream.start()
            self._running = True
            logger.info("Recording started (device=%r)", device)

    def stop(self) -> bytes:
        with self._lock:
            if not self._running:
                raise RuntimeError("not recording")
            self._running = False
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
            pcm = b"".join(self._chunks)
            self._chunks = []
        logger.info("Recording stopped, %d bytes captured", len(pcm))
        return pcm_to_wav(pcm, self.sample_rate, self.channels)

    def list_input_devices(self) -> List[AudioDevice]:
        """Input-capable devices by name, the system default flagged."""
        if sd is None:
            raise RuntimeError("sounddevice is not installed")
        try:
            default_index = int(sd.default.device[0])
        except (TypeError, ValueError, IndexError):
            default_index = -1
        devices: List[AudioDevice] = []
        for index, info in enumerate(sd.query_devices()):
            if int(info.get("max_input_channels", 0)) <= 0:
                continue
            devices.append(AudioDevice(name=str(info["name"]), is_default=index == default_index))
        return devices

    def levels(self) -> List[float]:
        return list(self._levels)

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or np is None:
            return
        if status:
            logger.debug("Input stream status: %s", status)
        samples = np.asarray(indata, dtype=np.int16)
        self._chunks.append(samples.tobytes())
        self._update_levels(samples.reshape(-1))

    def _update_levels(self, samples: Any) -> None:
        floats = samples.astype(np.float32) / 32768.0
        if self._pending is not None and len(self._pending):
            floats = np.concatenate([self._pending, floats])
        while len(floats) >= LEVEL_BLOCK_SAMPLES:
            block, floats = floats[:LEVEL_BLOCK_SAMPLES], floats[LEVEL_BLOCK_SAMPLES:]
            rms = float(np.sqrt(np.mean(block * block)))
            self._levels.append(min(rms, 1.0))
        self._pending = floats
