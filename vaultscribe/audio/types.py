"""Dataclasses shared across audio helpers."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np


def _frozen(samples: np.ndarray) -> np.ndarray:
    data = np.ascontiguousarray(samples, dtype=np.float32)
    if data.flags.writeable:
        data = data.copy()
        data.flags.writeable = False
    return data


@dataclass(slots=True)
class PcmBuffer:
    """Mono float32 samples in [-1, 1] at a known sample rate.

    Each pipeline stage returns a new buffer; the samples array is read-only.
    """

    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    def __post_init__(self) -> None:
        self.samples = _frozen(self.samples)

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        if not self.sample_rate:
            return 0.0
        return len(self) / float(self.sample_rate)

    def slice(self, start: int, end: int) -> "PcmBuffer":
        return PcmBuffer(self.samples[start:end], self.sample_rate, self.channels)


@dataclass(slots=True, frozen=True)
class SilenceRun:
    """Half-open sample range [start, end) where every sample is below threshold."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(slots=True, frozen=True)
class Chunk:
    """Segment of the normalized buffer handed to one transcription task."""

    index: int
    start_sample: int
    end_sample: int
    has_overlap: bool
    pcm: PcmBuffer

    @property
    def num_samples(self) -> int:
        return self.end_sample - self.start_sample

    @property
    def duration(self) -> float:
        return self.num_samples / float(self.pcm.sample_rate)


@dataclass(slots=True, frozen=True)
class EncodedChunk:
    """Wire-format bytes for one chunk, tagged with its original index."""

    index: int
    data: bytes
    mime_type: str
    filename: str


@dataclass(slots=True, frozen=True)
class TranscriptionResult:
    index: int
    text: str


@dataclass(slots=True, frozen=True)
class RecordingResult:
    """Final artifact of a capture session."""

    audio_bytes: bytes
    duration_seconds: float
    size_bytes: int

    @classmethod
    def empty(cls) -> "RecordingResult":
        return cls(audio_bytes=b"", duration_seconds=0.0, size_bytes=0)


class RecorderState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


__all__ = [
    "Chunk",
    "EncodedChunk",
    "PcmBuffer",
    "RecorderState",
    "RecordingResult",
    "SilenceRun",
    "TranscriptionResult",
]
