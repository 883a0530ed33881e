"""vaultscribe: chunked, retrying speech transcription for recorded notes."""

__version__ = "1.0.0"
