"""Exception hierarchy shared by the audio pipeline and remote services."""

from __future__ import annotations


class ScribeError(Exception):
    """Base class for every error raised by vaultscribe."""


class NonRetryableError(ScribeError):
    """Failures that are deterministic for the same input; never retried."""


class DecodeError(NonRetryableError):
    """Input bytes could not be decoded as audio."""


class UnsupportedEnvironmentError(NonRetryableError):
    """A required audio capability is missing on this host."""


class MissingConfigError(NonRetryableError):
    """A credential or model identifier required for a remote call is absent."""


class AssemblyInvariantError(NonRetryableError):
    """Per-chunk results do not cover the expected index range exactly once."""


class InvalidStateError(ScribeError):
    """Recorder transition requested from a state that does not allow it."""


class TransientCallError(ScribeError):
    """Remote call failed for network, rate-limit or server reasons."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EditorResponseError(TransientCallError):
    """The edit endpoint answered without any text content."""


class TerminalCallError(ScribeError):
    """Retry budget exhausted; carries the attempt count and the last failure."""

    def __init__(self, message: str, *, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


__all__ = [
    "AssemblyInvariantError",
    "DecodeError",
    "EditorResponseError",
    "InvalidStateError",
    "MissingConfigError",
    "NonRetryableError",
    "ScribeError",
    "TerminalCallError",
    "TransientCallError",
    "UnsupportedEnvironmentError",
]
