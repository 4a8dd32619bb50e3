import asyncio

import pytest

from prefstore.storage.memory_backend import MemoryBackend


def test_memory_basic_operations():
    m = MemoryBackend({"k": "v"})

    async def main():
        h = await m.acquire()
        assert h is m.handle
        assert h.list_keys() == {"k"}
        assert h.read_raw("k") == "v"

        await h.write_integer("n", 3)
        await h.write_float("f", 1.5)
        await h.write_boolean("b", True)
        await h.write_text("k", "w")
        assert h.read_raw("n") == 3
        assert h.read_raw("k") == "w"

        await h.remove("k")
        await h.remove("k")
        assert h.read_raw("k") is None
        assert h.list_keys() == {"n", "f", "b"}

    asyncio.run(main())
    assert m.acquire_count == 1


def test_write_dispatches_on_kind():
    m = MemoryBackend()

    async def main():
        await m.handle.write("flag", False)
        await m.handle.write("count", 1)

    asyncio.run(main())
    assert m.handle.writes == [("boolean", "flag", False), ("integer", "count", 1)]


def test_typed_writer_rejects_other_kinds():
    m = MemoryBackend()
    with pytest.raises(TypeError):
        asyncio.run(m.handle.write_integer("n", True))


def test_injected_failures():
    m = MemoryBackend()
    m.handle.fail_next("n")

    async def main():
        with pytest.raises(OSError):
            await m.handle.write_integer("n", 1)
        await m.handle.write_integer("n", 2)

    asyncio.run(main())
    assert m.handle.read_raw("n") == 2


def test_acquire_error():
    m = MemoryBackend(acquire_error=OSError("gone"))
    with pytest.raises(OSError):
        asyncio.run(m.acquire())


def test_backends_satisfy_protocols(tmp_path):
    from prefstore.storage.file_backend import FileBackend
    from prefstore.storage.interfaces import BackendProtocol, HandleProtocol

    m = MemoryBackend()
    assert isinstance(m, BackendProtocol)
    assert isinstance(m.handle, HandleProtocol)
    f = FileBackend(tmp_path / "prefs")
    assert isinstance(f, BackendProtocol)
    assert isinstance(f.open(), HandleProtocol)
