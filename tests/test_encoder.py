import io
import struct

import numpy as np
import pytest
import soundfile as sf

from vaultscribe.audio.encoder import AudioEncoder, to_pcm16
from vaultscribe.audio.types import Chunk, PcmBuffer


def _chunk(samples, index: int = 3) -> Chunk:
    pcm = PcmBuffer(np.asarray(samples, dtype=np.float32), 16000)
    return Chunk(index=index, start_sample=0, end_sample=len(pcm), has_overlap=False, pcm=pcm)


def test_pcm16_scaling_is_asymmetric_and_clamped():
    values = np.array([1.0, -1.0, 0.5, -0.5, 2.0, -3.0, 0.0], dtype=np.float32)
    assert to_pcm16(values).tolist() == [32767, -32768, 16383, -16384, 32767, -32768, 0]


def test_wav_header_is_canonical():
    encoded = AudioEncoder("wav").encode(_chunk([0.0, 0.5, -0.5, 1.0]))
    data = encoded.data
    assert len(data) == 44 + 8
    assert data[:4] == b"RIFF" and data[8:16] == b"WAVEfmt "
    riff_size, = struct.unpack("<I", data[4:8])
    assert riff_size == 36 + 8
    fmt_tag, channels, rate, byte_rate, align, bits = struct.unpack("<HHIIHH", data[20:36])
    assert (fmt_tag, channels, rate, byte_rate, align, bits) == (1, 1, 16000, 32000, 2, 16)
    assert data[36:40] == b"data"
    assert np.frombuffer(data[44:], dtype="<i2").tolist() == [0, 16383, -16384, 32767]


def test_encoding_metadata_and_determinism():
    encoder = AudioEncoder()
    chunk = _chunk(np.sin(np.linspace(0, 10, 500)) * 0.3, index=7)
    first = encoder.encode(chunk)
    second = encoder.encode(chunk)
    assert first.data == second.data
    assert first.index == 7
    assert first.filename == "audio_chunk_7.wav"
    assert first.mime_type == "audio/wav"


def test_wav_is_readable_by_soundfile():
    samples = np.linspace(-1, 1, 321, dtype=np.float32)
    data = AudioEncoder("wav").encode(_chunk(samples)).data
    decoded, rate = sf.read(io.BytesIO(data), dtype="int16")
    assert rate == 16000
    assert np.array_equal(decoded, to_pcm16(samples))


def test_flac_is_lossless_pcm16():
    samples = np.linspace(-0.8, 0.8, 4000, dtype=np.float32)
    encoded = AudioEncoder("flac").encode(_chunk(samples))
    assert encoded.mime_type == "audio/flac"
    decoded, _ = sf.read(io.BytesIO(encoded.data), dtype="int16")
    assert np.array_equal(decoded, to_pcm16(samples))


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        AudioEncoder("aiff")
