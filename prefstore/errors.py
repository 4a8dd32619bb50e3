"""Exception types raised by the preferences store."""


class PrefStoreError(Exception):
    """Base class for all store errors."""


class InvalidSchema(PrefStoreError, ValueError):
    """A declared default is not one of the storable kinds."""

    def __init__(self, key: str, value) -> None:
        self.key = key
        self.value = value
        super().__init__(
            "Invalid default values. The value provided for key %r has type %r. "
            "Only 'str', 'int', 'float' and 'bool' are allowed."
            % (key, type(value).__name__)
        )


class InvalidValue(PrefStoreError, TypeError):
    """A value passed to `set` is not storable."""

    def __init__(self, value) -> None:
        self.value = value
        super().__init__(
            "Invalid value type %r. Only 'str', 'int', 'float' and 'bool' are "
            "allowed, or None to unset." % type(value).__name__
        )


class TypeMismatch(PrefStoreError, TypeError):
    """A value's kind differs from the kind fixed by the key's default."""

    def __init__(self, key: str, expected, actual) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            "The key %r cannot be set to a value of kind %r, as its default "
            "value has kind %r." % (key, actual.value, expected.value)
        )


class BackendUnavailable(PrefStoreError):
    """The backend could not be acquired or its initial load failed."""


class FlushError(PrefStoreError):
    """A backend write kept failing after all retries."""

    def __init__(self, key: str, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to persist {key!r}: {cause}")


class StoreClosed(PrefStoreError):
    """`set` was called after `Store.close()`."""
