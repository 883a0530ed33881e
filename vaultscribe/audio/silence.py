"""Collapse long silent stretches of a mono buffer into a fixed short pause."""

from __future__ import annotations

import logging

import numpy as np

from .types import PcmBuffer, SilenceRun

LOGGER = logging.getLogger("vaultscribe.silence")


class SilenceNormalizer:
    """Replace every silence run of ``min_silence_seconds`` or longer with
    ``replacement_seconds`` of digital silence; shorter runs are kept verbatim.

    A sample is silent when ``abs(sample) <= threshold``. Output is built in two
    passes: the first sizes the result exactly, the second fills it.
    """

    def __init__(
        self,
        sample_rate: int,
        *,
        threshold: float = 0.01,
        min_silence_seconds: float = 2.0,
        replacement_seconds: float = 1.0,
    ) -> None:
        self.sample_rate = sample_rate
        self.threshold = float(threshold)
        self.min_silence_samples = max(1, int(min_silence_seconds * sample_rate))
        self.replacement_samples = max(0, int(replacement_seconds * sample_rate))

    def find_runs(self, buffer: PcmBuffer) -> list[SilenceRun]:
        silent = np.abs(buffer.samples) <= self.threshold
        if silent.size == 0:
            return []
        edges = np.diff(np.concatenate(([0], silent.view(np.int8), [0])))
        starts = np.flatnonzero(edges == 1)
        ends = np.flatnonzero(edges == -1)
        return [SilenceRun(int(start), int(end)) for start, end in zip(starts, ends)]

    def is_collapsible(self, run: SilenceRun) -> bool:
        return run.length >= self.min_silence_samples

    def output_length(self, buffer: PcmBuffer, runs: list[SilenceRun] | None = None) -> int:
        runs = self.find_runs(buffer) if runs is None else runs
        silent_total = sum(run.length for run in runs)
        total = len(buffer) - silent_total
        for run in runs:
            total += self.replacement_samples if self.is_collapsible(run) else run.length
        return total

    def apply(self, buffer: PcmBuffer) -> PcmBuffer:
        runs = self.find_runs(buffer)
        length = self.output_length(buffer, runs)
        out = np.zeros(length, dtype=np.float32)
        src = buffer.samples
        read = 0
        write = 0
        collapsed = 0
        for run in runs:
            speech = run.start - read
            out[write : write + speech] = src[read : run.start]
            write += speech
            if self.is_collapsible(run):
                # out is zero-initialised; the replacement block is already in place.
                write += self.replacement_samples
                collapsed += 1
            else:
                out[write : write + run.length] = src[run.start : run.end]
                write += run.length
            read = run.end
        tail = len(src) - read
        out[write : write + tail] = src[read:]
        write += tail
        assert write == length, "silence normalizer wrote an unexpected number of samples"
        if collapsed:
            LOGGER.info(
                "Collapsed %d silent stretches: %.2fs -> %.2fs",
                collapsed,
                len(buffer) / self.sample_rate,
                length / self.sample_rate,
            )
        return PcmBuffer(out, buffer.sample_rate, buffer.channels)


__all__ = ["SilenceNormalizer"]
