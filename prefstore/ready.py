"""One-shot readiness signal for the initial backend load."""
from __future__ import annotations
import asyncio
from enum import Enum
from typing import List, Optional

from .errors import BackendUnavailable


class GateState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class ReadyGate:
    """Completes once, either resolved or failed, and never resets.

    `await gate` returns True after `resolve()`, raises the stored
    `BackendUnavailable` after `fail()`, and otherwise suspends until one
    of them happens. Waiters may live on any event loop; each waits on a
    future created on its own running loop.
    """

    def __init__(self) -> None:
        self._state = GateState.PENDING
        self._error: Optional[BackendUnavailable] = None
        self._waiters: List[asyncio.Future] = []

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state is not GateState.PENDING

    @property
    def error(self) -> Optional[BackendUnavailable]:
        return self._error

    def resolve(self) -> None:
        self._transition(GateState.RESOLVED)

    def fail(self, error: BackendUnavailable) -> None:
        self._error = error
        self._transition(GateState.FAILED)

    def _transition(self, state: GateState) -> None:
        if self._state is not GateState.PENDING:
            raise RuntimeError(f"ReadyGate already {self._state.value}")
        self._state = state
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if fut.done():
                continue
            loop = fut.get_loop()
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(self._wake, fut)

    def _wake(self, fut: asyncio.Future) -> None:
        if fut.done():
            return
        if self._state is GateState.FAILED:
            fut.set_exception(self._error)
        else:
            fut.set_result(True)

    async def wait(self) -> bool:
        if self._state is GateState.RESOLVED:
            return True
        if self._state is GateState.FAILED:
            raise self._error
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        return await fut

    def __await__(self):
        return self.wait().__await__()

    def __repr__(self) -> str:
        return f"ReadyGate({self._state.value})"
