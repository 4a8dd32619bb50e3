"""Helpers that build stores from `StoreSettings`.

Keeps backend selection in one place so applications only deal with
settings and the resulting `Store`.
"""
from __future__ import annotations
import logging
from typing import Optional

from .config import BackendSettings, StoreSettings
from .storage import FileBackend, MemoryBackend, PersistenceBackend
from .store import Store

logger = logging.getLogger(__name__)


def create_backend(settings: BackendSettings) -> PersistenceBackend:
    if settings.kind == "memory":
        return MemoryBackend()
    if settings.kind == "file":
        return FileBackend(settings.path, serializer=settings.format)
    raise ValueError(f"Unknown backend kind {settings.kind!r}")


def create_store(settings: StoreSettings, backend: Optional[PersistenceBackend] = None) -> Store:
    """Create a store that loads asynchronously. Needs a running event loop."""
    backend = backend or create_backend(settings.backend)
    logger.info("Creating store prefix=%r on %s backend", settings.prefix, settings.backend.kind)
    return Store(
        settings.defaults,
        settings.prefix,
        backend=backend,
        flush_retries=settings.flush_retries,
        flush_retry_delay=settings.flush_retry_delay,
    )


async def create_preloaded_store(settings: StoreSettings, backend: Optional[PersistenceBackend] = None) -> Store:
    """Acquire the backend first and return a store that is already ready."""
    backend = backend or create_backend(settings.backend)
    handle = await backend.acquire()
    return Store(
        settings.defaults,
        settings.prefix,
        preloaded_handle=handle,
        flush_retries=settings.flush_retries,
        flush_retry_delay=settings.flush_retry_delay,
    )
