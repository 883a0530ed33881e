"""Persistence sink for recordings and transcripts."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Callable

RAW_SUFFIX = "_raw_transcript"
EDITED_SUFFIX = "_edited_transcript"


def raw_transcript_name(basename: str) -> str:
    return f"{basename}{RAW_SUFFIX}.md"


def edited_transcript_name(basename: str) -> str:
    return f"{basename}{EDITED_SUFFIX}.md"


def transcript_basename(name: str) -> str:
    """Strip the extension and any raw/edited transcript suffix from a file name."""
    stem = Path(name).stem
    stem = re.sub(f"{RAW_SUFFIX}$", "", stem)
    return re.sub(f"{EDITED_SUFFIX}$", "", stem)


class FileStore:
    """Write named text/binary blobs under a root directory.

    Existing files are never overwritten unless ``overwrite=True``; instead a
    ``_2``, ``_3``... suffix is appended to the stem.
    """

    def __init__(self, root: Path, *, now: Callable[[], datetime] = datetime.now) -> None:
        self.root = Path(root)
        self._now = now

    def timestamp_name(self, ext: str) -> str:
        return f"{self._now().strftime('%Y%m%d_%H%M%S')}.{ext.lstrip('.')}"

    def ensure_folder(self, directory: str | Path = "") -> Path:
        folder = self.root
        if directory:
            path = Path(str(directory).replace("\\", "/"))
            folder = path if path.is_absolute() else self.root / path
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    def unique_path(self, folder: Path, filename: str) -> Path:
        candidate = folder / filename
        if not candidate.exists():
            return candidate
        stem, suffix = candidate.stem, candidate.suffix
        counter = 2
        while True:
            candidate = folder / f"{stem}_{counter}{suffix}"
            if not candidate.exists():
                return candidate
            counter += 1

    def _target(self, directory: str | Path, filename: str, overwrite: bool) -> Path:
        folder = self.ensure_folder(directory)
        if overwrite:
            return folder / filename
        return self.unique_path(folder, filename)

    def save_bytes(self, filename: str, data: bytes, directory: str | Path = "", *, overwrite: bool = False) -> Path:
        path = self._target(directory, filename, overwrite)
        path.write_bytes(data)
        return path

    def save_text(self, filename: str, text: str, directory: str | Path = "", *, overwrite: bool = False) -> Path:
        path = self._target(directory, filename, overwrite)
        path.write_text(text, encoding="utf-8")
        return path

    def save_recording(self, data: bytes, directory: str | Path = "", ext: str = "flac") -> Path:
        return self.save_bytes(self.timestamp_name(ext), data, directory)


__all__ = [
    "FileStore",
    "edited_transcript_name",
    "raw_transcript_name",
    "transcript_basename",
]
