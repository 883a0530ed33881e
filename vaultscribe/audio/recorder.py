"""Recording session with pause-aware elapsed-time bookkeeping."""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from typing import Callable

from ..errors import InvalidStateError
from .capture import CaptureSource, SoundDeviceCapture
from .types import RecorderState, RecordingResult

LOGGER = logging.getLogger("vaultscribe.recorder")


class RecordingSession:
    """Long-lived recorder handle owned by the host and reused across recordings.

    ``Idle -> Recording <-> Paused -> Stopped``; ``start`` is accepted again
    from ``Stopped``. Elapsed time excludes every paused interval.
    """

    def __init__(
        self,
        capture_factory: Callable[[], CaptureSource] = SoundDeviceCapture,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.capture_factory = capture_factory
        self.clock = clock
        self._state = RecorderState.IDLE
        self._capture: CaptureSource | None = None
        self._start_ts = 0.0
        self._pause_ts = 0.0
        self._paused_total = 0.0
        self._final_elapsed: float | None = None

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.RECORDING

    @property
    def is_paused(self) -> bool:
        return self._state is RecorderState.PAUSED

    def _require_capture(self) -> CaptureSource:
        if self._capture is None:
            raise InvalidStateError(f"No capture device while {self._state.value}")
        return self._capture

    def start(self) -> None:
        if self._state not in (RecorderState.IDLE, RecorderState.STOPPED):
            raise InvalidStateError(f"Cannot start while {self._state.value}")
        capture = self.capture_factory()
        try:
            capture.open()
        except Exception:
            capture.close()
            raise
        self._capture = capture
        self._paused_total = 0.0
        self._pause_ts = 0.0
        self._final_elapsed = None
        self._start_ts = self.clock()
        self._state = RecorderState.RECORDING
        LOGGER.info("Recording started")

    def pause(self) -> None:
        if self._state is not RecorderState.RECORDING:
            raise InvalidStateError(f"Cannot pause while {self._state.value}")
        self._require_capture().pause()
        self._pause_ts = self.clock()
        self._state = RecorderState.PAUSED

    def resume(self) -> None:
        if self._state is not RecorderState.PAUSED:
            raise InvalidStateError(f"Cannot resume while {self._state.value}")
        self._require_capture().resume()
        self._paused_total += self.clock() - self._pause_ts
        self._state = RecorderState.RECORDING

    def stop(self) -> RecordingResult:
        """Finalize the recording and release the capture device.

        Returns an empty result when nothing is being recorded.
        """
        if self._state not in (RecorderState.RECORDING, RecorderState.PAUSED):
            return RecordingResult.empty()
        capture = self._require_capture()
        stop_ts = self.clock()
        if self._state is RecorderState.PAUSED:
            self._paused_total += stop_ts - self._pause_ts
        elapsed = max(0.0, stop_ts - self._start_ts - self._paused_total)
        self._final_elapsed = elapsed
        self._state = RecorderState.STOPPED
        self._capture = None
        with ExitStack() as stack:
            stack.callback(capture.close)
            audio = capture.finish()
        LOGGER.info("Recording stopped after %.2fs (%d bytes)", elapsed, len(audio))
        return RecordingResult(audio_bytes=audio, duration_seconds=elapsed, size_bytes=len(audio))

    def elapsed(self) -> float:
        if self._final_elapsed is not None:
            return self._final_elapsed
        if self._state is RecorderState.RECORDING:
            return max(0.0, self.clock() - self._start_ts - self._paused_total)
        if self._state is RecorderState.PAUSED:
            return max(0.0, self._pause_ts - self._start_ts - self._paused_total)
        return 0.0

    def level(self) -> float:
        """Advisory input level in [0, 1] for visualisation."""
        if self._state is not RecorderState.RECORDING or self._capture is None:
            return 0.0
        try:
            return self._capture.level()
        except Exception as exc:
            LOGGER.debug("Level probe failed: %s", exc)
            return 0.0

    def dispose(self) -> None:
        """Release the capture device without producing a result."""
        capture, self._capture = self._capture, None
        if capture is not None:
            capture.close()
        self._state = RecorderState.IDLE
        self._final_elapsed = None


__all__ = ["RecordingSession"]
