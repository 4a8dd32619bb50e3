"""Declared defaults for a store.

The schema is built once and never changes; every default's kind becomes
the only kind accepted for that key.
"""
from __future__ import annotations
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from .errors import InvalidSchema
from .values import TypedValue, ValueKind, try_kind_of


class DefaultSchema(Mapping[str, TypedValue]):
    """Read-only mapping from unqualified key to its default value."""

    def __init__(self, defaults: Optional[Mapping[str, Any]] = None) -> None:
        defaults = dict(defaults or {})
        kinds = {}
        # Validate everything up front so a bad schema never yields a store
        for key, value in defaults.items():
            kind = try_kind_of(value)
            if kind is None:
                raise InvalidSchema(key, value)
            kinds[key] = kind
        self._defaults = MappingProxyType(defaults)
        self._kinds = MappingProxyType(kinds)

    def __getitem__(self, key: str) -> TypedValue:
        return self._defaults[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._defaults)

    def __len__(self) -> int:
        return len(self._defaults)

    def kind_for(self, key: str) -> Optional[ValueKind]:
        return self._kinds.get(key)

    def __repr__(self) -> str:
        return f"DefaultSchema({dict(self._defaults)!r})"
