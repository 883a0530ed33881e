"""End-to-end transcription: preprocess, fan out per chunk, reassemble."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from ..audio.chunker import ChunkSegmenter
from ..audio.decoder import decode_audio
from ..audio.encoder import AudioEncoder
from ..audio.silence import SilenceNormalizer
from ..audio.types import Chunk, TranscriptionResult
from ..metrics import CHUNK_LATENCY, CHUNK_REQUESTS, PIPELINE_DURATION
from ..settings import AppSettings, PipelineSettings
from .assembler import assemble
from .dispatcher import dispatch
from .events import PipelineObserver
from .providers import TranscriptionProvider, build_provider
from .retry import RetryPolicy

LOGGER = logging.getLogger("vaultscribe.pipeline")


class TranscriptionPipeline:
    """Turn an encoded recording into one transcript string.

    Preprocessing runs in a worker thread; chunk calls share the event loop
    and are admitted ``concurrency_limit`` at a time. Any chunk exhausting its
    retries fails the whole batch.
    """

    def __init__(
        self,
        provider: TranscriptionProvider,
        settings: Optional[PipelineSettings] = None,
        *,
        concurrency_limit: int = 6,
        observer: Optional[PipelineObserver] = None,
        retry: Optional[RetryPolicy] = None,
    ) -> None:
        self.provider = provider
        self.settings = settings or PipelineSettings()
        self.concurrency_limit = max(1, int(concurrency_limit))
        self.observer = observer or PipelineObserver()
        rate = self.settings.target_sample_rate
        self.normalizer = SilenceNormalizer(
            rate,
            threshold=self.settings.silence_threshold,
            min_silence_seconds=self.settings.min_silence_seconds,
            replacement_seconds=self.settings.replacement_silence_seconds,
        )
        self.segmenter = ChunkSegmenter(
            rate,
            max_chunk_seconds=self.settings.max_chunk_seconds,
            overlap_seconds=self.settings.overlap_seconds,
            min_chunk_seconds=self.settings.min_chunk_seconds,
        )
        self.encoder = AudioEncoder(self.settings.encoding)
        self.retry = retry or RetryPolicy(self.settings.retry_attempts, self.settings.retry_base_delay)

    @classmethod
    def from_settings(
        cls, settings: AppSettings, *, observer: Optional[PipelineObserver] = None
    ) -> "TranscriptionPipeline":
        provider = build_provider(settings.transcriber)
        return cls(
            provider,
            settings.pipeline,
            concurrency_limit=settings.transcriber.concurrency_limit,
            observer=observer,
        )

    def preprocess(self, data: bytes) -> list[Chunk]:
        pcm = decode_audio(data, self.settings.target_sample_rate)
        normalized = self.normalizer.apply(pcm)
        return self.segmenter.split(normalized)

    async def transcribe(self, data: bytes) -> str:
        started = time.perf_counter()
        self.observer.preprocess_started(len(data))
        chunks = await asyncio.to_thread(self.preprocess, data)
        self.observer.preprocess_finished(len(chunks), time.perf_counter() - started)

        results: list[TranscriptionResult] = []
        if chunks:
            self.observer.upload_started(len(chunks))
            settled = await dispatch(
                chunks,
                self._transcribe_chunk,
                self.concurrency_limit,
                on_progress=lambda completed, total, position: self.observer.chunk_finished(
                    completed, total, chunks[position].index
                ),
            )
            results = [result for _, result in settled]
        else:
            LOGGER.warning("No chunk long enough to transcribe")

        self.observer.assembling()
        text = assemble(results, len(chunks), max_repeats=self.settings.max_repeats)
        seconds = time.perf_counter() - started
        PIPELINE_DURATION.observe(seconds)
        self.observer.done(len(text), seconds)
        return text

    async def _transcribe_chunk(self, chunk: Chunk) -> TranscriptionResult:
        started = time.perf_counter()
        label = f"Chunk {chunk.index + 1}"
        encoded = self.encoder.encode(chunk)
        resource: Any = None
        try:
            if self.provider.supports_upload:
                resource = await self.retry.with_context(f"{label} upload").call(
                    lambda: self.provider.upload(encoded)
                )
            text = await self.retry.with_context(f"{label} transcription").call(
                lambda: self.provider.transcribe(encoded, resource)
            )
        except Exception:
            CHUNK_REQUESTS.labels(status="error").inc()
            raise
        finally:
            if resource is not None:
                await self._delete_resource(resource, label)
        elapsed = time.perf_counter() - started
        CHUNK_REQUESTS.labels(status="success").inc()
        CHUNK_LATENCY.observe(elapsed)
        LOGGER.info("%s completed in %.2fs, text length: %d", label, elapsed, len(text))
        return TranscriptionResult(index=chunk.index, text=text)

    async def _delete_resource(self, resource: Any, label: str) -> None:
        # Deletion failures are logged, never raised.
        try:
            await self.provider.delete_resource(resource)
        except Exception as exc:
            LOGGER.warning("%s: failed to delete uploaded resource: %s", label, exc)

    async def aclose(self) -> None:
        await self.provider.aclose()


__all__ = ["TranscriptionPipeline"]
