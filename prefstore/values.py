"""The closed set of storable value kinds.

A stored value is a `str`, `int`, `float` or `bool`. `bool` is treated as
its own kind even though it subclasses `int`, and integers must fit in a
signed 64-bit range so every backend can represent them.
"""
from __future__ import annotations
from enum import Enum
from typing import Any, Optional, Union

from .errors import InvalidValue

TypedValue = Union[str, int, float, bool]

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValueKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"


def try_kind_of(value: Any) -> Optional[ValueKind]:
    """Return the kind of `value`, or None if it is not storable."""
    # bool must be checked before int
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return ValueKind.INTEGER
        return None
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.TEXT
    return None


def kind_of(value: Any) -> ValueKind:
    kind = try_kind_of(value)
    if kind is None:
        raise InvalidValue(value)
    return kind


def is_typed_value(value: Any) -> bool:
    return try_kind_of(value) is not None


def coerce(kind: ValueKind, value: Any) -> TypedValue:
    """Convert a raw value read from a serialized document to `kind`.

    Used by backends whose text encodings blur kinds (an integral float
    written as JSON may come back as an int). Raises `InvalidValue` when
    `value` cannot represent `kind` without loss.
    """
    if kind is ValueKind.FLOAT and try_kind_of(value) is ValueKind.INTEGER:
        return float(value)
    if try_kind_of(value) is not kind:
        raise InvalidValue(value)
    return value
