"""Serialize chunk PCM into an upload-friendly container."""

from __future__ import annotations

import io

import numpy as np
import soundfile as sf

from ..errors import UnsupportedEnvironmentError
from .types import Chunk, EncodedChunk

_MIME_TYPES = {"wav": "audio/wav", "flac": "audio/flac"}


def to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1] and scale asymmetrically so +1.0 maps to 32767."""
    clamped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    return np.trunc(scaled).astype(np.int16)


def wav_bytes(pcm16: np.ndarray, sample_rate: int) -> bytes:
    """Canonical 44-byte-header PCM_16 WAV."""
    out = io.BytesIO()
    sf.write(out, np.asarray(pcm16, dtype=np.int16), sample_rate, format="WAV", subtype="PCM_16")
    return out.getvalue()


def flac_bytes(pcm16: np.ndarray, sample_rate: int) -> bytes:
    if "FLAC" not in sf.available_formats():
        raise UnsupportedEnvironmentError("libsndfile was built without FLAC support")
    out = io.BytesIO()
    sf.write(out, pcm16, sample_rate, format="FLAC", subtype="PCM_16")
    return out.getvalue()


class AudioEncoder:
    """Deterministic chunk encoder (``wav`` or ``flac``, 16-bit mono)."""

    def __init__(self, fmt: str = "wav") -> None:
        fmt = fmt.lower()
        if fmt not in _MIME_TYPES:
            raise ValueError(f"Unsupported chunk encoding: {fmt}")
        self.fmt = fmt

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self.fmt]

    def encode_samples(self, samples: np.ndarray, sample_rate: int) -> bytes:
        pcm16 = to_pcm16(samples)
        if self.fmt == "flac":
            return flac_bytes(pcm16, sample_rate)
        return wav_bytes(pcm16, sample_rate)

    def encode(self, chunk: Chunk) -> EncodedChunk:
        data = self.encode_samples(chunk.pcm.samples, chunk.pcm.sample_rate)
        return EncodedChunk(
            index=chunk.index,
            data=data,
            mime_type=self.mime_type,
            filename=f"audio_chunk_{chunk.index}.{self.fmt}",
        )


__all__ = ["AudioEncoder", "flac_bytes", "to_pcm16", "wav_bytes"]
