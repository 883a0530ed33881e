"""Reorder per-chunk transcripts and clean degenerate model output."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from ..audio.types import TranscriptionResult
from ..errors import AssemblyInvariantError

LOGGER = logging.getLogger("vaultscribe.assembler")


def cleanup_repetitions(text: str, max_repeats: int = 10) -> str:
    """Collapse any character repeated more than ``max_repeats`` times in a row
    to a single occurrence. Works on code points, so CJK text is handled too.
    """
    if not text:
        return text
    pattern = re.compile(r"(.)\1{%d,}" % max_repeats, re.DOTALL)

    def _collapse(match: re.Match) -> str:
        LOGGER.info(
            "Found character %r repeated %d times, collapsing to one",
            match.group(1),
            len(match.group(0)),
        )
        return match.group(1)

    return pattern.sub(_collapse, text)


def check_indices(results: Iterable[TranscriptionResult], expected_count: int) -> list[TranscriptionResult]:
    ordered = sorted(results, key=lambda result: result.index)
    indices = [result.index for result in ordered]
    if indices != list(range(expected_count)):
        seen = set(indices)
        missing = sorted(set(range(expected_count)) - seen)
        duplicates = sorted({index for index in indices if indices.count(index) > 1})
        unexpected = sorted(index for index in seen if not 0 <= index < expected_count)
        raise AssemblyInvariantError(
            f"Expected chunk indices 0..{expected_count - 1}; "
            f"missing={missing} duplicates={duplicates} unexpected={unexpected}"
        )
    return ordered


def assemble(
    results: Iterable[TranscriptionResult],
    expected_count: int,
    *,
    separator: str = " ",
    max_repeats: int = 10,
) -> str:
    ordered = check_indices(results, expected_count)
    joined = separator.join(result.text for result in ordered)
    cleaned = cleanup_repetitions(joined, max_repeats)
    removed = len(joined) - len(cleaned)
    if removed > 0:
        LOGGER.info(
            "Cleanup removed %d repetitive characters (%.1f%%)",
            removed,
            removed / len(joined) * 100,
        )
    return cleaned


__all__ = ["assemble", "check_indices", "cleanup_repetitions"]
