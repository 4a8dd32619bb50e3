"""Persistence backend interface definitions.

A backend is acquired once, asynchronously, and yields a handle. The
handle keeps the backend's current contents in memory so `list_keys` and
`read_raw` answer immediately; each write is an independent coroutine
that updates durable storage. Stored values keep their kind: a float
written with `write_float` reads back as a float.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Set

from prefstore.values import TypedValue, ValueKind, kind_of


class PreferencesHandle(ABC):
    """Abstract acquired backend handle."""

    @abstractmethod
    def list_keys(self) -> Set[str]:
        """Return every key currently stored."""

    @abstractmethod
    def read_raw(self, key: str) -> Optional[TypedValue]:
        """Return the value stored under `key` or None if it does not exist."""

    @abstractmethod
    async def write_text(self, key: str, value: str) -> None: ...

    @abstractmethod
    async def write_integer(self, key: str, value: int) -> None: ...

    @abstractmethod
    async def write_float(self, key: str, value: float) -> None: ...

    @abstractmethod
    async def write_boolean(self, key: str, value: bool) -> None: ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove `key`. Removing a missing key is not an error."""

    async def write(self, key: str, value: TypedValue) -> None:
        """Dispatch to the writer matching the kind of `value`."""
        kind = kind_of(value)
        if kind is ValueKind.BOOLEAN:
            await self.write_boolean(key, value)
        elif kind is ValueKind.INTEGER:
            await self.write_integer(key, value)
        elif kind is ValueKind.FLOAT:
            await self.write_float(key, value)
        else:
            await self.write_text(key, value)


class PersistenceBackend(ABC):
    """Abstract backend. `acquire` must return the same handle every time."""

    @abstractmethod
    async def acquire(self) -> PreferencesHandle:
        """Open the backend and return its handle."""
