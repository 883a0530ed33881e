import numpy as np
import pytest

from vaultscribe.audio.chunker import ChunkSegmenter
from vaultscribe.audio.types import PcmBuffer

RATE = 10  # 300s chunks = 3000 samples, 2s overlap/minimum = 20 samples


def _buffer(length: int) -> PcmBuffer:
    return PcmBuffer(np.arange(length, dtype=np.float32) / max(length, 1), RATE)


def test_chunks_overlap_by_lead_in_after_the_first():
    chunks = ChunkSegmenter(RATE).split(_buffer(7000))
    assert [(c.index, c.start_sample, c.end_sample) for c in chunks] == [
        (0, 0, 3000),
        (1, 2980, 6000),
        (2, 5980, 7000),
    ]
    assert [c.has_overlap for c in chunks] == [False, True, True]
    for prev, cur in zip(chunks, chunks[1:]):
        assert cur.start_sample < prev.end_sample


def test_chunk_samples_match_source_range():
    buf = _buffer(7000)
    chunk = ChunkSegmenter(RATE).split(buf)[1]
    assert np.array_equal(chunk.pcm.samples, buf.samples[2980:6000])
    assert chunk.duration == pytest.approx(302.0)


def test_short_tail_is_dropped_without_index_gap():
    segmenter = ChunkSegmenter(RATE, overlap_seconds=0)
    chunks = segmenter.split(_buffer(6010))
    assert [c.index for c in chunks] == [0, 1]
    assert chunks[-1].end_sample == 6000


def test_tail_with_overlap_meets_minimum():
    chunks = ChunkSegmenter(RATE).split(_buffer(6005))
    assert chunks[-1].start_sample == 5980
    assert chunks[-1].num_samples == 25


def test_buffer_shorter_than_minimum_yields_no_chunks():
    assert ChunkSegmenter(RATE).split(_buffer(15)) == []
    assert ChunkSegmenter(RATE).split(_buffer(0)) == []


@pytest.mark.parametrize("length", [20, 2999, 3000, 3001, 9021, 12345])
def test_chunks_cover_every_sample(length):
    segmenter = ChunkSegmenter(RATE)
    chunks = segmenter.split(_buffer(length))
    covered = np.zeros(length, dtype=bool)
    for chunk in chunks:
        covered[chunk.start_sample : chunk.end_sample] = True
        assert chunk.num_samples >= segmenter.min_chunk_samples
    assert covered.all()
    assert [c.index for c in chunks] == list(range(len(chunks)))


def test_overlap_start_is_stride_minus_overlap():
    segmenter = ChunkSegmenter(RATE)
    spans = segmenter.boundaries(10_000)
    for position, (stride_start, start, _end) in enumerate(spans):
        if position == 0:
            assert start == stride_start == 0
        else:
            assert start == max(0, stride_start - segmenter.overlap_samples)


def test_rejects_non_positive_chunk_length():
    with pytest.raises(ValueError):
        ChunkSegmenter(RATE, max_chunk_seconds=0)
