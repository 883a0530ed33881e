"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, Summary

CHUNK_REQUESTS = Counter(
    "vaultscribe_chunk_requests_total",
    "Per-chunk transcription calls",
    labelnames=("status",),
)

CHUNK_LATENCY = Histogram(
    "vaultscribe_chunk_latency_seconds",
    "Time spent transcribing a single chunk, retries included",
)

RETRY_ATTEMPTS = Counter(
    "vaultscribe_retry_attempts_total",
    "Failed attempts that were followed by a retry",
    labelnames=("context",),
)

PIPELINE_DURATION = Summary(
    "vaultscribe_pipeline_seconds",
    "Time spent preprocessing, transcribing and assembling one recording",
)
