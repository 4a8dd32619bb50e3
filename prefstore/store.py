"""Typed key-value store with synchronous access and background persistence.

`Store.get` and `Store.set` never suspend: they read and replace an
immutable in-memory `Snapshot`. Every successful `set` installs a new
snapshot, notifies observers synchronously, and then schedules a flush
of the change to the backend. Declared defaults fix the kind of each
key for the lifetime of the store.

Example:

    store = Store({"counter": 0}, prefix="app", backend=FileBackend("./data/prefs"))
    store.get("counter")      # 0 until something else is stored
    store.set("counter", 1)
    await store.ready         # initial load finished
    await store.flush()       # everything set so far is on disk
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Set

from .bridge import PersistenceBridge
from .errors import PrefStoreError, StoreClosed, TypeMismatch
from .observers import ObserverRegistry
from .ready import GateState, ReadyGate
from .schema import DefaultSchema
from .snapshot import EMPTY, Snapshot
from .storage.base import PersistenceBackend, PreferencesHandle
from .values import TypedValue, kind_of, try_kind_of

logger = logging.getLogger(__name__)


class Store:
    """Preferences store for one key prefix.

    Parameters
    - default_values: mapping of key to default value. Each default must be
      a `str`, `int`, `float` or `bool`; anything else raises `InvalidSchema`.
    - prefix: namespace prepended to every key, so several stores can share
      one backend without seeing each other's values.
    - backend: backend acquired asynchronously on the running event loop.
    - preloaded_handle: an already acquired handle; the store is ready as
      soon as it is constructed.
    - flush_retries / flush_retry_delay: bounded retry for backend writes.
    """

    def __init__(
        self,
        default_values: Optional[Mapping[str, Any]] = None,
        prefix: str = "",
        *,
        backend: Optional[PersistenceBackend] = None,
        preloaded_handle: Optional[PreferencesHandle] = None,
        flush_retries: int = 2,
        flush_retry_delay: float = 0.05,
    ) -> None:
        self._defaults = DefaultSchema(default_values)
        self.prefix = prefix
        self._observers = ObserverRegistry("store observer")
        self._errors = ObserverRegistry("error listener")
        self._gate = ReadyGate()
        self._snapshot: Snapshot = EMPTY
        # changes made before the initial load, re-applied on top of it
        self._early_changes: Dict[str, Optional[TypedValue]] = {}
        self._closed = False
        self._bridge = PersistenceBridge(
            self._gate,
            self._errors,
            backend=backend,
            handle=preloaded_handle,
            on_loaded=self._adopt_loaded,
            on_ready=self._observers.notify,
            retries=flush_retries,
            retry_delay=flush_retry_delay,
        )
        if preloaded_handle is not None:
            self._snapshot = self._bridge.persisted
        logger.debug("Created store prefix=%r with %d defaults", prefix, len(self._defaults))

    @property
    def defaults(self) -> DefaultSchema:
        return self._defaults

    @property
    def snapshot(self) -> Snapshot:
        """The snapshot currently in effect."""
        return self._snapshot

    @property
    def ready(self) -> ReadyGate:
        """Awaitable that returns True once the initial load has completed."""
        return self._gate

    @property
    def is_ready(self) -> bool:
        return self._gate.state is GateState.RESOLVED

    def qualify(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[TypedValue]:
        """Return the value for `key`.

        With a declared default, a missing value or one whose kind differs
        from the default's yields the default. Without one, a missing key
        yields None.
        """
        value = self._snapshot.get(self.qualify(key))
        expected = self._defaults.kind_for(key)
        if expected is None:
            return value
        if value is None or try_kind_of(value) is not expected:
            return self._defaults[key]
        return value

    def set(self, key: str, value: Optional[TypedValue]) -> None:
        """Store `value` under `key`, or remove it when `value` is None.

        Raises `InvalidValue` for values that are not storable and
        `TypeMismatch` when a declared default has another kind; in both
        cases nothing changes. Raises `StoreClosed` after `close()`.
        """
        if self._closed:
            raise StoreClosed(f"Store {self.prefix!r} is closed")
        if value is not None:
            kind = kind_of(value)
            expected = self._defaults.kind_for(key)
            if expected is not None and kind is not expected:
                raise TypeMismatch(key, expected, kind)

        context_key = self.qualify(key)
        if value is None:
            snapshot = self._snapshot.without(context_key)
        else:
            snapshot = self._snapshot.with_value(context_key, value)
        if not self._gate.done:
            self._early_changes[context_key] = value
        self._install_snapshot(snapshot)
        self._schedule_flush(snapshot)

    def unset(self, key: str) -> None:
        self.set(key, None)

    def _install_snapshot(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self._observers.notify()

    def _schedule_flush(self, snapshot: Snapshot) -> None:
        self._bridge.request_flush(snapshot)

    def _adopt_loaded(self, loaded: Snapshot) -> Snapshot:
        if self._early_changes:
            updates = {k: v for k, v in self._early_changes.items() if v is not None}
            removed = [k for k, v in self._early_changes.items() if v is None]
            snapshot = loaded.merged(updates, removed)
            self._early_changes = {}
        else:
            snapshot = loaded
        self._snapshot = snapshot
        return snapshot

    def subscribe(self, observer: Callable[[], Any]) -> Callable[[], None]:
        """Call `observer()` after every snapshot change; returns an unsubscribe callable."""
        return self._observers.subscribe(observer)

    def unsubscribe(self, observer: Callable[[], Any]) -> None:
        self._observers.unsubscribe(observer)

    def on_error(self, listener: Callable[[PrefStoreError], Any]) -> Callable[[], None]:
        """Receive `BackendUnavailable` and `FlushError` raised in the background."""
        return self._errors.subscribe(listener)

    async def flush(self) -> None:
        """Wait until every change made so far has been handed to the backend."""
        await self._bridge.drain()

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Persist pending changes and stop accepting new ones. Reads keep working."""
        if self._closed:
            return
        await self.flush()
        self._closed = True

    def keys(self) -> Set[str]:
        """Unqualified keys that have a stored value or a declared default."""
        marker = f"{self.prefix}:"
        stored = {k[len(marker):] for k in self._snapshot if k.startswith(marker)}
        return stored | set(self._defaults)

    def as_dict(self) -> Dict[str, Optional[TypedValue]]:
        return {key: self.get(key) for key in sorted(self.keys())}

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.keys()))

    def __repr__(self) -> str:
        return f"Store(prefix={self.prefix!r}, ready={self._gate.state.value})"

