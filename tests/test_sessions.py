"""Tests for the SSE session store."""

import anyio
import pytest

from scrapingbee_mcp.mcp.sessions import SessionStore, SseSession


class TestSessionStore:
    def test_open_assigns_unique_ids(self):
        store = SessionStore()
        first = store.open()
        second = store.open()
        assert first.session_id != second.session_id
        assert len(store) == 2
        assert store.get(first.session_id) is first

    def test_get_unknown(self):
        store = SessionStore()
        assert store.get("missing") is None
        assert store.get(None) is None
        assert store.get("") is None

    def test_endpoint(self):
        session = SessionStore().open()
        assert session.endpoint == f"/messages?sessionId={session.session_id}"

    async def test_close(self):
        store = SessionStore()
        session = store.open()
        await store.close(session.session_id)
        assert session.session_id not in store
        # Closing twice is harmless.
        await store.close(session.session_id)

    async def test_close_all(self):
        store = SessionStore()
        sessions = [store.open() for _ in range(3)]
        await store.close_all()
        assert len(store) == 0
        for session in sessions:
            with pytest.raises(anyio.ClosedResourceError):
                session.send({"id": 1})

    async def test_messages_end_when_closed(self):
        store = SessionStore()
        session = store.open()
        session.send({"id": 1})
        await store.close(session.session_id)

        received = [message async for message in session.messages()]
        assert received == [{"id": 1}]

    def test_stores_are_independent(self):
        a, b = SessionStore(), SessionStore()
        session = a.open()
        assert b.get(session.session_id) is None

    async def test_full_buffer_does_not_block(self):
        session = SseSession("slow", buffer_size=2)
        session.send({"id": 1})
        session.send({"id": 2})
        with pytest.raises(anyio.WouldBlock):
            session.send({"id": 3})
