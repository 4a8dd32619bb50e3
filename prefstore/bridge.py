"""Bridge between the in-memory snapshot and a persistence backend.

The bridge acquires the backend handle, performs the one-time initial
load and persists snapshots the store installs afterwards. Persisting is
done by a single worker task per bridge:

- only keys that differ from the last persisted snapshot are written,
- requests arriving while the worker is busy coalesce into the newest
  snapshot, so an older state can never overwrite a newer one,
- each write is retried a bounded number of times; a write that still
  fails is reported on the error channel and the key stays dirty until
  the next flush.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Callable, Dict, Optional, Set

from .errors import BackendUnavailable, FlushError
from .observers import ObserverRegistry
from .ready import ReadyGate
from .snapshot import EMPTY, Snapshot
from .storage.base import PersistenceBackend, PreferencesHandle
from .values import TypedValue, is_typed_value

logger = logging.getLogger(__name__)


def read_all(handle: PreferencesHandle) -> Dict[str, TypedValue]:
    """Read every key of `handle`, dropping values that are not storable."""
    values: Dict[str, TypedValue] = {}
    for key in handle.list_keys():
        value = handle.read_raw(key)
        if value is None:
            continue
        if not is_typed_value(value):
            logger.warning("Ignoring stored value for %r of type %s", key, type(value).__name__)
            continue
        values[key] = value
    return values


class PersistenceBridge:
    """Loads the initial state and flushes later snapshots.

    Exactly one of `backend` (deferred mode) or `handle` (preloaded mode)
    must be given. Deferred mode starts the load on the running event loop
    and calls `on_loaded(snapshot)` when it finishes; `on_loaded` returns
    the snapshot the store actually installed, which may carry changes made
    before the load completed. The gate is then resolved and `on_ready()`
    is called.
    """

    def __init__(
        self,
        gate: ReadyGate,
        errors: ObserverRegistry,
        *,
        backend: Optional[PersistenceBackend] = None,
        handle: Optional[PreferencesHandle] = None,
        on_loaded: Optional[Callable[[Snapshot], Snapshot]] = None,
        on_ready: Optional[Callable[[], None]] = None,
        retries: int = 2,
        retry_delay: float = 0.05,
    ) -> None:
        if (backend is None) == (handle is None):
            raise ValueError("Provide exactly one of `backend` or `handle`")
        self._gate = gate
        self._errors = errors
        self._backend = backend
        self._handle = handle
        self._on_loaded = on_loaded
        self._on_ready = on_ready
        self.retries = max(0, retries)
        self.retry_delay = retry_delay

        self._persisted: Snapshot = EMPTY
        self._target: Optional[Snapshot] = None
        self._pending = False
        self._worker: Optional[asyncio.Task] = None
        self._load_task: Optional[asyncio.Task] = None

        if handle is not None:
            self._persisted = Snapshot(read_all(handle))
            logger.debug("Preloaded %d keys", len(self._persisted))
            gate.resolve()
        else:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(
                    "A running event loop is required to load preferences asynchronously; "
                    "pass an acquired handle instead"
                ) from None
            self._load_task = loop.create_task(self._load())

    @property
    def persisted(self) -> Snapshot:
        """The last snapshot known to be reflected by the backend."""
        return self._persisted

    @property
    def handle(self) -> Optional[PreferencesHandle]:
        return self._handle

    async def _load(self) -> None:
        try:
            handle = await self._backend.acquire()
            loaded = Snapshot(read_all(handle))
        except Exception as exc:
            logger.error("Failed to load preferences from %r: %s", self._backend, exc)
            error = BackendUnavailable(f"Failed to load preferences: {exc}")
            error.__cause__ = exc
            self._gate.fail(error)
            self._errors.notify(error)
            return

        self._handle = handle
        self._persisted = loaded
        logger.debug("Loaded %d keys", len(loaded))
        installed = self._on_loaded(loaded) if self._on_loaded else loaded
        self._gate.resolve()
        if self._on_ready:
            self._on_ready()
        if installed is not loaded:
            self.request_flush(installed)

    def request_flush(self, snapshot: Snapshot) -> None:
        """Ask for `snapshot` to be persisted. Never blocks or raises."""
        self._target = snapshot
        self._pending = True
        if self._handle is None:
            # flushed once the initial load has finished
            return
        self._start_worker()

    def _start_worker(self) -> bool:
        if self._worker is not None and not self._worker.done():
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; flush postponed until drain()")
            return False
        self._worker = loop.create_task(self._run())
        return True

    async def _run(self) -> None:
        while self._pending:
            self._pending = False
            target = self._target
            changed, removed = target.diff(self._persisted)
            if not changed and not removed:
                continue
            logger.debug("Flushing %d changed and %d removed keys", len(changed), len(removed))
            try:
                failed = await self._write_diff(changed, removed)
            except asyncio.CancelledError:
                # e.g. the loop shut down mid-pass; the next drain() redoes it
                self._pending = True
                raise
            self._persisted = self._persisted.merged(
                {k: v for k, v in changed.items() if k not in failed},
                removed - failed,
            )

    async def _write_diff(self, changed: Dict[str, TypedValue], removed: Set[str]) -> Set[str]:
        keys = list(changed) + sorted(removed)
        results = await asyncio.gather(
            *(self._write_one(key, changed.get(key)) for key in keys)
        )
        return {key for key, ok in zip(keys, results) if not ok}

    async def _write_one(self, key: str, value: Optional[TypedValue]) -> bool:
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                if value is None:
                    await self._handle.remove(key)
                else:
                    await self._handle.write(key, value)
                return True
            except Exception as exc:
                logger.warning("Write of %r failed (attempt %d/%d): %s", key, attempt, attempts, exc)
                if attempt == attempts:
                    self._errors.notify(FlushError(key, exc))
                    return False
                if self.retry_delay:
                    await asyncio.sleep(self.retry_delay)
        return False

    async def drain(self) -> None:
        """Wait until every requested snapshot has been written.

        Raises `BackendUnavailable` when the backend could not be loaded.
        Keys whose writes failed are not retried here; they are reported
        on the error channel and retried by the next flush.
        """
        await self._gate
        while True:
            if self._pending:
                self._start_worker()
            worker = self._worker
            if worker is None or worker.done():
                return
            await asyncio.shield(worker)

    def __repr__(self) -> str:
        mode = "preloaded" if self._backend is None else "deferred"
        return f"PersistenceBridge({mode}, gate={self._gate.state.value})"
