"""Settings and file persistence."""

from .file_store import FileStore
from .settings_store import SettingsStore

__all__ = ["FileStore", "SettingsStore"]
