"""Microphone capture backed by sounddevice, encoded to FLAC on finish."""

from __future__ import annotations

import io
import logging
import threading
from typing import Protocol

import numpy as np
import soundfile as sf

from ..errors import UnsupportedEnvironmentError

LOGGER = logging.getLogger("vaultscribe.capture")


class CaptureSource(Protocol):
    """Contract the recorder drives; one instance per recording."""

    extension: str

    def open(self) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def finish(self) -> bytes: ...

    def level(self) -> float: ...

    def close(self) -> None: ...


class SoundDeviceCapture:
    extension = "flac"

    def __init__(self, sample_rate: int = 48_000, channels: int = 1, device: int | str | None = None) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self._stream = None
        self._frames: list[np.ndarray] = []
        self._lock = threading.Lock()
        self._level = 0.0

    def _import_sounddevice(self):
        try:
            import sounddevice as sd  # type: ignore
        except (ImportError, OSError) as exc:
            raise UnsupportedEnvironmentError(f"Audio capture unavailable: {exc}") from exc
        return sd

    def open(self) -> None:
        sd = self._import_sounddevice()
        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                device=self.device,
                callback=self._on_block,
            )
            self._stream.start()
        except sd.PortAudioError as exc:
            raise UnsupportedEnvironmentError(f"Unable to open input device: {exc}") from exc
        LOGGER.info("Capture opened (%d Hz, %d ch)", self.sample_rate, self.channels)

    def _on_block(self, indata, frames, time_info, status) -> None:  # noqa: ARG002
        if status:
            LOGGER.debug("Input status: %s", status)
        block = np.array(indata, dtype=np.float32, copy=True)
        with self._lock:
            self._frames.append(block)
            self._level = float(np.max(np.abs(block))) if block.size else 0.0

    def pause(self) -> None:
        if self._stream is not None:
            self._stream.stop()
        self._level = 0.0

    def resume(self) -> None:
        if self._stream is not None:
            self._stream.start()

    def level(self) -> float:
        return max(0.0, min(1.0, self._level))

    def finish(self) -> bytes:
        if self._stream is not None and self._stream.active:
            self._stream.stop()
        with self._lock:
            frames = self._frames
            self._frames = []
        if not frames:
            return b""
        audio = np.concatenate(frames)
        out = io.BytesIO()
        sf.write(out, audio, self.sample_rate, format="FLAC", subtype="PCM_16")
        return out.getvalue()

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.close()
        except Exception as exc:  # pragma: no cover - device teardown is best effort
            LOGGER.warning("Failed to close input stream: %s", exc)


__all__ = ["CaptureSource", "SoundDeviceCapture"]
