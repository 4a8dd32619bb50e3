"""Reactive typed key-value store with asynchronous persistence."""

from .errors import (
    BackendUnavailable,
    FlushError,
    InvalidSchema,
    InvalidValue,
    PrefStoreError,
    StoreClosed,
    TypeMismatch,
)
from .ready import GateState, ReadyGate
from .schema import DefaultSchema
from .snapshot import Snapshot
from .store import Store
from .values import TypedValue, ValueKind

__all__ = [
    "BackendUnavailable",
    "DefaultSchema",
    "FlushError",
    "GateState",
    "InvalidSchema",
    "InvalidValue",
    "PrefStoreError",
    "StoreClosed",
    "ReadyGate",
    "Snapshot",
    "Store",
    "TypeMismatch",
    "TypedValue",
    "ValueKind",
]
