"""Tests for the in-memory persistence backend."""
import asyncio

from threadsmith.services.persistence import InMemoryPersistence


def test_segment_lifecycle():
    async def _run():
        store = InMemoryPersistence()
        thread_id = await store.create_thread("Launch day")
        first = await store.create_segment(thread_id, "hello", 0)
        second = await store.create_segment(thread_id, "world", 1)

        assert await store.update_segment(first.id, "hello there")
        assert await store.reorder_segments(thread_id, [second.id, first.id])
        assert await store.update_thread(thread_id, "Launch week")

        ordered = store.thread_segments(thread_id)
        assert [s.content for s in ordered] == ["world", "hello there"]
        assert store.threads[thread_id] == "Launch week"

        assert await store.delete_segment(first.id)
        assert not await store.delete_segment(first.id)
        assert [s.id for s in store.thread_segments(thread_id)] == [second.id]

    asyncio.run(_run())


def test_unknown_ids_are_refused():
    async def _run():
        store = InMemoryPersistence()
        assert await store.create_segment("missing", "x", 0) is None
        assert not await store.update_segment("missing", "x")
        assert not await store.update_thread("missing", "title")
        assert not await store.reorder_segments("missing", [])

    asyncio.run(_run())
