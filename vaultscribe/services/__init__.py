"""Remote calls, dispatch, assembly and the end-to-end pipeline."""

from .assembler import assemble, cleanup_repetitions
from .dispatcher import ConcurrencyLimiter, dispatch
from .editor import TranscriptEditor
from .events import CompositeObserver, LoggingObserver, PipelineObserver
from .pipeline import TranscriptionPipeline
from .providers import GeminiTranscriber, OpenAITranscriber, TranscriptionProvider, build_provider
from .retry import RetryPolicy, with_retry
from .workflow import TranscriptionWorkflow, WorkflowResult

__all__ = [
    "CompositeObserver",
    "ConcurrencyLimiter",
    "GeminiTranscriber",
    "LoggingObserver",
    "OpenAITranscriber",
    "PipelineObserver",
    "RetryPolicy",
    "TranscriptEditor",
    "TranscriptionPipeline",
    "TranscriptionProvider",
    "TranscriptionWorkflow",
    "WorkflowResult",
    "assemble",
    "build_provider",
    "cleanup_repetitions",
    "dispatch",
    "with_retry",
]
