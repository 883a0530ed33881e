"""Split a normalized buffer into bounded, overlapping chunks."""

from __future__ import annotations

import logging

from .types import Chunk, PcmBuffer

LOGGER = logging.getLogger("vaultscribe.chunker")


class ChunkSegmenter:
    """Fixed-window segmenter with lead-in overlap.

    End boundaries advance in strides of ``max_chunk_seconds``. Every chunk
    after the first starts ``overlap_seconds`` before its stride so sentences
    cut at a boundary appear whole in at least one chunk. Candidates shorter
    than ``min_chunk_seconds`` are dropped and do not consume an index.
    """

    def __init__(
        self,
        sample_rate: int,
        *,
        max_chunk_seconds: float = 300.0,
        overlap_seconds: float = 2.0,
        min_chunk_seconds: float = 2.0,
    ) -> None:
        if max_chunk_seconds <= 0:
            raise ValueError("max_chunk_seconds must be positive")
        self.sample_rate = sample_rate
        self.max_chunk_samples = max(1, int(max_chunk_seconds * sample_rate))
        self.overlap_samples = max(0, int(overlap_seconds * sample_rate))
        self.min_chunk_samples = max(0, int(min_chunk_seconds * sample_rate))

    def boundaries(self, total_samples: int) -> list[tuple[int, int, int]]:
        """Return ``(stride_start, chunk_start, end)`` for every emitted chunk."""
        spans: list[tuple[int, int, int]] = []
        stride_start = 0
        while stride_start < total_samples:
            end = min(stride_start + self.max_chunk_samples, total_samples)
            start = stride_start
            if spans:
                start = max(0, stride_start - self.overlap_samples)
            if end - start >= self.min_chunk_samples:
                spans.append((stride_start, start, end))
            else:
                LOGGER.info(
                    "Skipping short chunk: %.2fs (samples %d-%d)",
                    (end - start) / self.sample_rate,
                    start,
                    end,
                )
            stride_start = end
        return spans

    def split(self, buffer: PcmBuffer) -> list[Chunk]:
        chunks: list[Chunk] = []
        for index, (stride_start, start, end) in enumerate(self.boundaries(len(buffer))):
            chunk = Chunk(
                index=index,
                start_sample=start,
                end_sample=end,
                has_overlap=start < stride_start,
                pcm=buffer.slice(start, end),
            )
            LOGGER.info(
                "Created chunk %d: %.2fs%s",
                index + 1,
                chunk.duration,
                " (includes overlap)" if chunk.has_overlap else "",
            )
            chunks.append(chunk)
        LOGGER.info(
            "Split %.2fs of audio into %d chunks",
            buffer.duration,
            len(chunks),
        )
        return chunks


__all__ = ["ChunkSegmenter"]
