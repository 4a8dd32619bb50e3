"""Simple memory-backed persistence backend.

Values live in a dict shared by every store that acquires the backend.
Write latency and write failures can be injected, which makes the backend
useful for exercising flush ordering and retries.
"""
import asyncio
from threading import RLock
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from prefstore.values import TypedValue, ValueKind, kind_of
from .base import PersistenceBackend, PreferencesHandle

Latency = Union[float, Callable[[str, Optional[TypedValue]], float]]


class MemoryHandle(PreferencesHandle):
    def __init__(self, initial: Optional[Dict[str, TypedValue]] = None, latency: Latency = 0.0):
        self._lock = RLock()
        self._store: Dict[str, TypedValue] = {}
        self._latency = latency
        self._failures: Dict[str, int] = {}
        # (operation, key, value) in the order writes completed
        self.writes: List[Tuple[str, str, Optional[TypedValue]]] = []
        for key, value in (initial or {}).items():
            kind_of(value)
            self._store[key] = value

    def list_keys(self) -> Set[str]:
        with self._lock:
            return set(self._store)

    def read_raw(self, key: str) -> Optional[TypedValue]:
        with self._lock:
            return self._store.get(key)

    def fail_next(self, key: str, times: int = 1) -> None:
        """Make the next `times` writes or removals of `key` raise OSError."""
        with self._lock:
            self._failures[key] = self._failures.get(key, 0) + times

    def _delay(self, key: str, value: Optional[TypedValue]) -> float:
        if callable(self._latency):
            return self._latency(key, value)
        return self._latency

    async def _apply(self, op: str, key: str, value: Optional[TypedValue]) -> None:
        delay = self._delay(key, value)
        if delay:
            await asyncio.sleep(delay)
        with self._lock:
            if self._failures.get(key):
                self._failures[key] -= 1
                raise OSError(f"injected failure writing {key!r}")
            if op == "remove":
                self._store.pop(key, None)
            else:
                self._store[key] = value
            self.writes.append((op, key, value))

    async def _write_kind(self, kind: ValueKind, key: str, value: TypedValue) -> None:
        if kind_of(value) is not kind:
            raise TypeError(f"{key!r}: expected {kind.value}, got {type(value).__name__}")
        await self._apply(kind.value, key, value)

    async def write_text(self, key: str, value: str) -> None:
        await self._write_kind(ValueKind.TEXT, key, value)

    async def write_integer(self, key: str, value: int) -> None:
        await self._write_kind(ValueKind.INTEGER, key, value)

    async def write_float(self, key: str, value: float) -> None:
        await self._write_kind(ValueKind.FLOAT, key, value)

    async def write_boolean(self, key: str, value: bool) -> None:
        await self._write_kind(ValueKind.BOOLEAN, key, value)

    async def remove(self, key: str) -> None:
        await self._apply("remove", key, None)


class MemoryBackend(PersistenceBackend):
    def __init__(
        self,
        initial: Optional[Dict[str, TypedValue]] = None,
        latency: Latency = 0.0,
        acquire_delay: float = 0.0,
        acquire_error: Optional[BaseException] = None,
    ):
        self._handle = MemoryHandle(initial, latency=latency)
        self._acquire_delay = acquire_delay
        self._acquire_error = acquire_error
        self.acquire_count = 0

    @property
    def handle(self) -> MemoryHandle:
        """The handle, available without awaiting (for preloaded stores and tests)."""
        return self._handle

    async def acquire(self) -> MemoryHandle:
        self.acquire_count += 1
        if self._acquire_delay:
            await asyncio.sleep(self._acquire_delay)
        if self._acquire_error is not None:
            raise self._acquire_error
        return self._handle
