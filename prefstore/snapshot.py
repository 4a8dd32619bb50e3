"""Immutable view of the whole store state at one instant."""
from __future__ import annotations
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .values import TypedValue


class Snapshot(Mapping[str, TypedValue]):
    """Mapping from qualified key to value.

    A Snapshot is never modified after construction; the helpers below
    return new instances so a reader holding a reference always sees a
    complete state.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[str, TypedValue]] = None) -> None:
        self._data = MappingProxyType(dict(data or {}))

    def __getitem__(self, key: str) -> TypedValue:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def with_value(self, key: str, value: TypedValue) -> "Snapshot":
        data = dict(self._data)
        data[key] = value
        return Snapshot(data)

    def without(self, key: str) -> "Snapshot":
        if key not in self._data:
            return self
        data = dict(self._data)
        del data[key]
        return Snapshot(data)

    def merged(self, updates: Mapping[str, TypedValue], removed=()) -> "Snapshot":
        data = dict(self._data)
        data.update(updates)
        for key in removed:
            data.pop(key, None)
        return Snapshot(data)

    def diff(self, older: Mapping[str, TypedValue]) -> Tuple[Dict[str, TypedValue], set]:
        """Return (changed, removed) needed to turn `older` into this snapshot.

        Values of different kinds compare unequal even when `==` holds
        (True == 1 == 1.0), so a kind change is always written.
        """
        changed = {}
        for key, value in self._data.items():
            if key not in older:
                changed[key] = value
                continue
            prev = older[key]
            if type(prev) is not type(value) or prev != value:
                changed[key] = value
        removed = {key for key in older if key not in self._data}
        return changed, removed

    def to_dict(self) -> Dict[str, TypedValue]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"Snapshot({dict(self._data)!r})"


EMPTY = Snapshot()
