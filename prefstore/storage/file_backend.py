"""File-backed persistence backend.

All keys of one backend live in a single document on disk, e.g.
`./data/preferences.json`. Each entry records its kind next to its value
so integers, floats and booleans read back as written:

    {"app:counter": {"type": "integer", "value": 5}}

Writes update the in-memory copy immediately and then rewrite the whole
document atomically (temporary file, fsync, rename) in a worker thread.
Each rewrite carries a version number and a rewrite older than the one
already on disk is dropped, so an older document never replaces a newer one.
"""
from __future__ import annotations
import asyncio
import logging
import os
from pathlib import Path
from threading import Lock, RLock
from typing import Dict, Optional, Set

import yaml

from prefstore.errors import InvalidValue
from prefstore.values import TypedValue, ValueKind, coerce, kind_of
from .base import PersistenceBackend, PreferencesHandle
from .serializer import Serializer, get_serializer

logger = logging.getLogger(__name__)


def encode_document(values: Dict[str, TypedValue]) -> dict:
    return {key: {"type": kind_of(value).value, "value": value} for key, value in values.items()}


def decode_document(doc) -> Dict[str, TypedValue]:
    """Decode a stored document, skipping entries that are not well formed."""
    if not isinstance(doc, dict):
        if doc is not None:
            logger.warning("Ignoring preferences document of type %s", type(doc).__name__)
        return {}
    values: Dict[str, TypedValue] = {}
    for key, entry in doc.items():
        if not isinstance(entry, dict) or "type" not in entry or "value" not in entry:
            logger.warning("Skipping malformed entry %r", key)
            continue
        try:
            kind = ValueKind(entry["type"])
            values[str(key)] = coerce(kind, entry["value"])
        except (ValueError, InvalidValue):
            logger.warning("Skipping entry %r with type %r", key, entry.get("type"))
    return values


class FileHandle(PreferencesHandle):
    def __init__(self, path: Path, serializer: Serializer, values: Dict[str, TypedValue]) -> None:
        self.path = path
        self._serializer = serializer
        self._lock = RLock()
        self._values = values
        # bumped on every change; the file holds `_written` or newer
        self._version = 0
        self._written = 0
        self._file_lock = Lock()

    def list_keys(self) -> Set[str]:
        with self._lock:
            return set(self._values)

    def read_raw(self, key: str) -> Optional[TypedValue]:
        with self._lock:
            return self._values.get(key)

    def _write_document(self, payload: bytes, version: int) -> bool:
        with self._file_lock:
            if version <= self._written:
                return False
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(self.path)
            self._written = version
            return True

    async def _persist(self) -> None:
        with self._lock:
            version = self._version
            payload = self._serializer.dump(encode_document(self._values))
        if await asyncio.to_thread(self._write_document, payload, version):
            logger.debug("FileHandle wrote %s version %d (%d bytes)", self.path, version, len(payload))

    async def _store(self, kind: ValueKind, key: str, value: TypedValue) -> None:
        if kind_of(value) is not kind:
            raise TypeError(f"{key!r}: expected {kind.value}, got {type(value).__name__}")
        with self._lock:
            self._values[key] = value
            self._version += 1
        await self._persist()

    async def write_text(self, key: str, value: str) -> None:
        await self._store(ValueKind.TEXT, key, value)

    async def write_integer(self, key: str, value: int) -> None:
        await self._store(ValueKind.INTEGER, key, value)

    async def write_float(self, key: str, value: float) -> None:
        await self._store(ValueKind.FLOAT, key, value)

    async def write_boolean(self, key: str, value: bool) -> None:
        await self._store(ValueKind.BOOLEAN, key, value)

    async def remove(self, key: str) -> None:
        with self._lock:
            if self._values.pop(key, None) is None:
                return
            self._version += 1
        await self._persist()


class FileBackend(PersistenceBackend):
    """Backend storing every key in one serialized document.

    Parameters
    - path: document location. When it has no suffix the serializer's
      extension is appended.
    - serializer: `"json"`, `"yaml"` or a `Serializer` instance.
    """

    def __init__(self, path: str | Path = "./data/preferences", serializer: str | Serializer = "json") -> None:
        self._serializer = get_serializer(serializer) if isinstance(serializer, str) else serializer
        p = Path(path)
        if not p.suffix:
            p = p.with_name(p.name + self._serializer.extension)
        self.path = p
        self._handle: Optional[FileHandle] = None
        self._acquiring: Optional[asyncio.Future] = None

    def _read_document(self) -> Dict[str, TypedValue]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            return {}
        with open(self.path, "rb") as f:
            data = f.read()
        logger.debug("FileBackend loaded %s (%d bytes)", self.path, len(data))
        if not data.strip():
            return {}
        try:
            doc = self._serializer.load(data)
        except (ValueError, yaml.YAMLError) as exc:
            # keep the unreadable file for inspection; the next write starts a new one
            aside = self.path.with_suffix(self.path.suffix + ".corrupt")
            self.path.replace(aside)
            logger.warning("Unreadable preferences document %s moved to %s: %s", self.path, aside, exc)
            return {}
        return decode_document(doc)

    def open(self) -> FileHandle:
        """Read the document synchronously and return the handle.

        Used to build preloaded stores before an event loop is running.
        """
        if self._handle is None:
            self._handle = FileHandle(self.path, self._serializer, self._read_document())
        return self._handle

    async def acquire(self) -> FileHandle:
        if self._handle is not None:
            return self._handle
        if self._acquiring is None:
            self._acquiring = asyncio.ensure_future(asyncio.to_thread(self._read_document))
        try:
            values = await asyncio.shield(self._acquiring)
        except Exception:
            self._acquiring = None
            raise
        if self._handle is None:
            self._handle = FileHandle(self.path, self._serializer, values)
        return self._handle
