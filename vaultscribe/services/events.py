"""Pipeline lifecycle observers."""

from __future__ import annotations

import logging
from typing import Iterable


class PipelineObserver:
    """Receives advisory progress events; every hook defaults to a no-op."""

    def preprocess_started(self, size_bytes: int) -> None:
        pass

    def preprocess_finished(self, chunk_count: int, seconds: float) -> None:
        pass

    def upload_started(self, chunk_count: int) -> None:
        pass

    def chunk_finished(self, completed: int, total: int, index: int) -> None:
        pass

    def assembling(self) -> None:
        pass

    def done(self, text_length: int, seconds: float) -> None:
        pass


NullObserver = PipelineObserver


class LoggingObserver(PipelineObserver):
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("vaultscribe.pipeline")

    def preprocess_started(self, size_bytes: int) -> None:
        self.logger.info("Preprocessing %d bytes of audio...", size_bytes)

    def preprocess_finished(self, chunk_count: int, seconds: float) -> None:
        self.logger.info("Preprocessing completed: %d chunks in %.2fs", chunk_count, seconds)

    def upload_started(self, chunk_count: int) -> None:
        self.logger.info("Transcribing %d chunks...", chunk_count)

    def chunk_finished(self, completed: int, total: int, index: int) -> None:
        self.logger.info("Chunk %d done (%d/%d)", index + 1, completed, total)

    def assembling(self) -> None:
        self.logger.info("Assembling transcript...")

    def done(self, text_length: int, seconds: float) -> None:
        self.logger.info("Transcription completed: %d characters in %.2fs", text_length, seconds)


class CompositeObserver(PipelineObserver):
    """Fan events out to several observers; a failing observer never breaks the pipeline."""

    def __init__(self, observers: Iterable[PipelineObserver]) -> None:
        self.observers = list(observers)
        self._logger = logging.getLogger("vaultscribe.events")

    def _emit(self, hook: str, *args) -> None:
        for observer in self.observers:
            try:
                getattr(observer, hook)(*args)
            except Exception as exc:
                self._logger.warning("Observer %r failed on %s: %s", observer, hook, exc)

    def preprocess_started(self, size_bytes: int) -> None:
        self._emit("preprocess_started", size_bytes)

    def preprocess_finished(self, chunk_count: int, seconds: float) -> None:
        self._emit("preprocess_finished", chunk_count, seconds)

    def upload_started(self, chunk_count: int) -> None:
        self._emit("upload_started", chunk_count)

    def chunk_finished(self, completed: int, total: int, index: int) -> None:
        self._emit("chunk_finished", completed, total, index)

    def assembling(self) -> None:
        self._emit("assembling")

    def done(self, text_length: int, seconds: float) -> None:
        self._emit("done", text_length, seconds)


__all__ = ["CompositeObserver", "LoggingObserver", "NullObserver", "PipelineObserver"]
