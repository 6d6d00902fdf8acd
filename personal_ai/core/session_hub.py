"""In-memory hub tracking streaming MCP sessions."""
from __future__ import annotations

import asyncio
import threading
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Tuple

from personal_ai.core.errors import SessionNotFoundError
from personal_ai.core.logging import logger

SessionQueue = asyncio.Queue[Optional[Dict[str, Any]]]


class McpSessionHub:
    """Maps generated session ids to the queue feeding each open stream.

    A ``None`` placed on a queue closes its stream. Sessions are never resumed:
    once removed, the id is gone for good.
    """

    def __init__(self) -> None:
        self._streams: Dict[str, SessionQueue] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._streams)

    def is_open(self, session_id: str) -> bool:
        return session_id in self._streams

    def open(self) -> Tuple[str, SessionQueue]:
        """Register a new session and return its id and event queue."""
        session_id = f"session_{uuid.uuid4().hex}"
        queue: SessionQueue = asyncio.Queue()
        with self._lock:
            self._streams[session_id] = queue
        logger.info(f"New SSE connection established: {session_id}")
        return session_id, queue

    def discard(self, session_id: str) -> None:
        with self._lock:
            removed = self._streams.pop(session_id, None)
        if removed is not None:
            logger.info(f"SSE connection closed: {session_id}")

    def close(self, session_id: str) -> bool:
        """End a session from the server side."""
        with self._lock:
            queue = self._streams.pop(session_id, None)
        if queue is None:
            return False
        queue.put_nowait(None)
        logger.info(f"SSE connection closed by server: {session_id}")
        return True

    def close_all(self) -> int:
        """Close every open session and return how many were closed."""
        with self._lock:
            session_ids = list(self._streams)
        return sum(self.close(session_id) for session_id in session_ids)

    async def post(self, session_id: str, message: Any) -> Dict[str, Any]:
        """Accept a client message for a live session and acknowledge it."""
        queue = self._streams.get(session_id)
        if queue is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"Received message for session {session_id}")
        await queue.put({"type": "ack", "sessionId": session_id})
        return {"success": True}

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[Tuple[str, SessionQueue]]:
        """Context manager owning one session for the lifetime of a stream."""
        session_id, queue = self.open()
        try:
            yield session_id, queue
        finally:
            self.discard(session_id)

    async def stream(
        self,
        *,
        keepalive: float,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[Optional[Dict[str, Any]]]:
        """Yield session events; the first carries the session id, ``None`` is a keep-alive tick."""
        async with self.connect() as (session_id, queue):
            yield {"sessionId": session_id}
            while True:
                if is_disconnected is not None and await is_disconnected():
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    yield None
                    continue
                if event is None:
                    break
                yield event
