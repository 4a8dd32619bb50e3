"""Persistence backends for prefstore."""

from .base import PersistenceBackend, PreferencesHandle
from .file_backend import FileBackend
from .memory_backend import MemoryBackend

__all__ = ["PersistenceBackend", "PreferencesHandle", "FileBackend", "MemoryBackend"]
