import asyncio

import pytest

from prefstore import BackendUnavailable, FlushError, Store
from prefstore.storage.memory_backend import MemoryBackend


def test_only_changed_keys_are_written():
    backend = MemoryBackend({"app:a": 1, "app:b": "x", "app:c": True})

    async def main():
        store = Store({"a": 0, "b": "", "c": False}, "app", backend=backend)
        await store.ready
        store.set("a", 2)
        await store.flush()

    asyncio.run(main())
    assert backend.handle.writes == [("integer", "app:a", 2)]


def test_setting_same_value_writes_nothing():
    backend = MemoryBackend({"app:a": 1})

    async def main():
        store = Store({"a": 0}, "app", backend=backend)
        await store.ready
        store.set("a", 1)
        await store.flush()

    asyncio.run(main())
    assert backend.handle.writes == []


def test_newer_value_wins_over_slow_older_write():
    # the first write is slow, the second is instant
    backend = MemoryBackend(latency=lambda key, value: 0.05 if value == 1 else 0.0)

    async def main():
        store = Store({"n": 0}, backend=backend)
        await store.ready
        store.set("n", 1)
        await asyncio.sleep(0)
        store.set("n", 2)
        await store.flush()

    asyncio.run(main())
    assert backend.handle.read_raw(":n") == 2
    assert backend.handle.writes[-1] == ("integer", ":n", 2)


def test_rapid_sets_coalesce():
    backend = MemoryBackend()

    async def main():
        store = Store({"n": 0}, backend=backend)
        await store.ready
        for i in range(1, 6):
            store.set("n", i)
        await store.flush()

    asyncio.run(main())
    assert backend.handle.writes == [("integer", ":n", 5)]


def test_failed_write_is_retried():
    backend = MemoryBackend()
    backend.handle.fail_next(":n", 2)

    async def main():
        store = Store({"n": 0}, backend=backend, flush_retries=2, flush_retry_delay=0)
        errors = []
        store.on_error(errors.append)
        await store.ready
        store.set("n", 3)
        await store.flush()
        return errors

    assert asyncio.run(main()) == []
    assert backend.handle.read_raw(":n") == 3


def test_exhausted_retries_are_reported_and_key_stays_dirty():
    backend = MemoryBackend()
    backend.handle.fail_next(":n", 2)

    async def main():
        store = Store({"n": 0, "m": 0}, backend=backend, flush_retries=1, flush_retry_delay=0)
        errors = []
        store.on_error(errors.append)
        await store.ready
        store.set("n", 3)
        await store.flush()
        assert len(errors) == 1
        assert isinstance(errors[0], FlushError)
        assert errors[0].key == ":n"
        assert isinstance(errors[0].cause, OSError)
        # in memory the value is still visible
        assert store.get("n") == 3
        assert backend.handle.read_raw(":n") is None

        # the next flush writes the key again
        store.set("m", 1)
        await store.flush()

    asyncio.run(main())
    assert backend.handle.read_raw(":n") == 3
    assert backend.handle.read_raw(":m") == 1


def test_early_removal_survives_load():
    backend = MemoryBackend({":gone": "x"}, acquire_delay=0.01)

    async def main():
        store = Store({}, backend=backend)
        store.set("gone", None)
        await store.ready
        assert store.get("gone") is None
        await store.flush()

    asyncio.run(main())
    assert backend.handle.read_raw(":gone") is None


def test_backend_unavailable():
    backend = MemoryBackend(acquire_error=OSError("disk gone"))

    async def main():
        store = Store({"x": 3}, backend=backend)
        errors = []
        store.on_error(errors.append)
        with pytest.raises(BackendUnavailable):
            await store.ready
        assert store.is_ready is False
        assert store.get("x") == 3
        store.set("x", 4)
        assert store.get("x") == 4
        with pytest.raises(BackendUnavailable):
            await store.flush()
        return errors

    errors = asyncio.run(main())
    assert len(errors) == 1
    assert isinstance(errors[0], BackendUnavailable)
    assert isinstance(errors[0].__cause__, OSError)


def test_flush_redoes_pass_interrupted_by_loop_shutdown():
    backend = MemoryBackend(latency=0.05)
    store = Store({"n": 0}, preloaded_handle=backend.handle)

    async def set_and_leave():
        store.set("n", 1)
        # the write is in flight when asyncio.run cancels remaining tasks
        await asyncio.sleep(0.01)

    asyncio.run(set_and_leave())
    assert backend.handle.read_raw(":n") is None

    asyncio.run(store.flush())
    assert backend.handle.read_raw(":n") == 1
