"""Decode arbitrary audio bytes into 16 kHz mono float32 PCM."""

from __future__ import annotations

import io
import logging
import math
import shutil
from fractions import Fraction

import ffmpeg
import numpy as np
import soundfile as sf
from scipy import signal

from ..errors import DecodeError
from .types import PcmBuffer

LOGGER = logging.getLogger("vaultscribe.decoder")

TARGET_SAMPLE_RATE = 16_000


def target_length(frames: int, source_rate: int, target_rate: int) -> int:
    """Number of samples the resampled buffer must contain: ceil(duration * target_rate)."""
    if frames <= 0:
        return 0
    return int(math.ceil(Fraction(frames, source_rate) * target_rate))


def downmix(audio: np.ndarray) -> np.ndarray:
    """Average all channels into one; the mean keeps every channel equally weighted."""
    data = np.asarray(audio, dtype=np.float32)
    if data.ndim == 1:
        return data
    return data.mean(axis=1, dtype=np.float32)


def resample(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    length = target_length(len(samples), source_rate, target_rate)
    if length == 0:
        return np.zeros(0, dtype=np.float32)
    if source_rate == target_rate:
        out = np.asarray(samples, dtype=np.float32)
    else:
        ratio = Fraction(target_rate, source_rate)
        out = signal.resample_poly(samples, ratio.numerator, ratio.denominator).astype(np.float32, copy=False)
    if len(out) > length:
        out = out[:length]
    elif len(out) < length:
        out = np.pad(out, (0, length - len(out)))
    return out


def ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


def decode_with_ffmpeg(data: bytes, target_rate: int = TARGET_SAMPLE_RATE) -> np.ndarray:
    """Decode any container ffmpeg understands into mono float32 at ``target_rate``."""
    stream = ffmpeg.input("pipe:").output(
        "pipe:",
        format="f32le",
        acodec="pcm_f32le",
        ac=1,
        ar=target_rate,
    )
    try:
        out, _ = stream.run(input=data, capture_stdout=True, capture_stderr=True, quiet=True)
    except ffmpeg.Error as exc:
        detail = exc.stderr.decode(errors="replace").strip() if exc.stderr else str(exc)
        raise DecodeError(f"Unable to decode audio with ffmpeg: {detail}") from exc
    return np.frombuffer(out, dtype=np.float32).copy()


def _read_soundfile(data: bytes) -> tuple[np.ndarray, int, int]:
    with sf.SoundFile(io.BytesIO(data)) as handle:
        return handle.read(dtype="float32", always_2d=True), handle.samplerate, handle.channels


def decode_audio(data: bytes, target_rate: int = TARGET_SAMPLE_RATE) -> PcmBuffer:
    """Decode, downmix and resample an encoded audio blob.

    libsndfile handles WAV, FLAC, OGG and MP3. Containers it rejects (webm,
    m4a) go through ffmpeg when the binary is on PATH. Raises ``DecodeError``
    when neither can read the payload.
    """
    if not data:
        raise DecodeError("Audio payload is empty")
    try:
        audio, source_rate, channels = _read_soundfile(data)
    except (RuntimeError, TypeError, ValueError) as exc:
        if not ffmpeg_available():
            raise DecodeError(f"Unable to decode audio: {exc}") from exc
        LOGGER.debug("soundfile rejected payload (%s); decoding with ffmpeg", exc)
        samples = decode_with_ffmpeg(data, target_rate)
        if not len(samples):
            raise DecodeError("ffmpeg produced no audio samples") from exc
        return PcmBuffer(samples, target_rate, 1)

    mono = downmix(audio)
    resampled = resample(mono, source_rate, target_rate)
    LOGGER.debug(
        "Decoded %d frames (%d ch @ %d Hz) into %d samples @ %d Hz",
        len(mono),
        channels,
        source_rate,
        len(resampled),
        target_rate,
    )
    return PcmBuffer(resampled, target_rate, 1)


__all__ = [
    "TARGET_SAMPLE_RATE",
    "decode_audio",
    "decode_with_ffmpeg",
    "downmix",
    "ffmpeg_available",
    "resample",
    "target_length",
]
