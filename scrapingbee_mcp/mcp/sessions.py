"""Session bookkeeping for the legacy SSE transport."""

from __future__ import annotations

import uuid
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from scrapingbee_mcp.logging import get_logger

_logger = get_logger("sessions")

SESSION_BUFFER_SIZE = 32


class SseSession:
    """One open ``/sse`` stream and the queue of responses waiting for it."""

    def __init__(self, session_id: str, buffer_size: int = SESSION_BUFFER_SIZE) -> None:
        self.session_id = session_id
        self._send: MemoryObjectSendStream[dict[str, Any]]
        self._receive: MemoryObjectReceiveStream[dict[str, Any]]
        self._send, self._receive = anyio.create_memory_object_stream(buffer_size)

    @property
    def endpoint(self) -> str:
        return f"/messages?sessionId={self.session_id}"

    def send(self, message: dict[str, Any]) -> None:
        """Queue *message* for the stream.

        Raises ``anyio.WouldBlock`` when the buffer is full and
        ``anyio.ClosedResourceError`` once the session is closed.
        """
        self._send.send_nowait(message)

    async def messages(self):
        """Yield queued messages until the session is closed."""
        async with self._receive:
            async for message in self._receive:
                yield message

    async def close(self) -> None:
        await self._send.aclose()


class SessionStore:
    """Maps session ids to open SSE sessions.

    Owned by the HTTP app; nothing else keeps a reference to sessions.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SseSession] = {}

    def open(self) -> SseSession:
        session = SseSession(uuid.uuid4().hex)
        self._sessions[session.session_id] = session
        _logger.info("SSE session opened: %s", session.session_id)
        return session

    def get(self, session_id: str | None) -> SseSession | None:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    async def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        await session.close()
        _logger.info("SSE session closed: %s", session_id)

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
