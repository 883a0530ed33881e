"""Audio decoding, silence normalization, chunking, encoding and capture."""

from .chunker import ChunkSegmenter
from .decoder import TARGET_SAMPLE_RATE, decode_audio
from .encoder import AudioEncoder
from .recorder import RecordingSession
from .silence import SilenceNormalizer
from .types import Chunk, EncodedChunk, PcmBuffer, RecorderState, RecordingResult, TranscriptionResult

__all__ = [
    "AudioEncoder",
    "Chunk",
    "ChunkSegmenter",
    "EncodedChunk",
    "PcmBuffer",
    "RecorderState",
    "RecordingResult",
    "RecordingSession",
    "SilenceNormalizer",
    "TARGET_SAMPLE_RATE",
    "TranscriptionResult",
    "decode_audio",
]
