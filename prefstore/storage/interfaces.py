from typing import Optional, Protocol, Set, runtime_checkable

from prefstore.values import TypedValue


@runtime_checkable
class HandleProtocol(Protocol):
    """Acquired backend handle mirroring `prefstore.storage.PreferencesHandle`.

    Reads are served from the handle's own cache and never suspend; writes
    are coroutines. See `prefstore.storage.base` for the semantics.
    """

    def list_keys(self) -> Set[str]: ...

    def read_raw(self, key: str) -> Optional[TypedValue]: ...

    async def write_text(self, key: str, value: str) -> None: ...

    async def write_integer(self, key: str, value: int) -> None: ...

    async def write_float(self, key: str, value: float) -> None: ...

    async def write_boolean(self, key: str, value: bool) -> None: ...

    async def remove(self, key: str) -> None: ...


@runtime_checkable
class BackendProtocol(Protocol):
    """Backend protocol mirroring `prefstore.storage.PersistenceBackend`."""

    async def acquire(self) -> HandleProtocol: ...
