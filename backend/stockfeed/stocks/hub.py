"""Broadcast hub: fans stock updates out to every connected SSE client."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from threading import Lock
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_WRITE_TIMEOUT = 2.0  # seconds per client write
CLIENT_QUEUE_MAXSIZE = 64


class ClientClosedError(ConnectionError):
    """Raised when writing to a client whose connection is already closed."""


class ClientSink(Protocol):
    """Byte writer bound to one client's transport."""

    async def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class QueueSink:
    """Bounded queue the SSE response generator drains.

    A client that stops reading fills the queue; further writes then block
    until the hub's write timeout drops the client.
    """

    def __init__(self, maxsize: int = CLIENT_QUEUE_MAXSIZE) -> None:
        # None marks end of stream
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise ClientClosedError("sink is closed")
        await self._queue.put(data)

    def close(self) -> None:
        """Discard pending frames and wake the consumer. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield frames as they arrive until the sink is closed."""
        while True:
            data = await self._queue.get()
            if data is None:
                return
            yield data


class StreamingClient:
    """One open push connection: an id, a sink and a closed signal.

    Connected from register() until close(); the transition is terminal.
    A reconnecting browser gets a new StreamingClient with a new id.
    """

    def __init__(self, sink: ClientSink, client_id: str | None = None) -> None:
        self.client_id = client_id or uuid.uuid4().hex
        self.sink = sink
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def send(self, frame: bytes) -> None:
        if self.closed:
            raise ClientClosedError(f"client {self.client_id} is closed")
        await self.sink.write(frame)

    def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        self.sink.close()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "connected"
        return f"<StreamingClient {self.client_id} {state}>"


def format_event(payload: bytes) -> bytes:
    """Frame a payload as a single SSE message."""
    return b"data: " + payload + b"\n\n"


class BroadcastHub:
    """Registry of connected streaming clients.

    Thread-safe: the client map is protected by a lock and broadcasts iterate
    over a snapshot, so clients may come and go mid-broadcast.
    """

    def __init__(self, write_timeout: float = DEFAULT_WRITE_TIMEOUT) -> None:
        if write_timeout <= 0:
            raise ValueError("write_timeout must be positive")
        self._clients: dict[str, StreamingClient] = {}
        self._lock = Lock()
        self._write_timeout = write_timeout
        self._closed = False

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, client: StreamingClient) -> bool:
        with self._lock:
            return client.client_id in self._clients

    def register(self, client: StreamingClient) -> None:
        """Add a client. Registering the same id twice is a no-op."""
        with self._lock:
            rejected = self._closed
            if not rejected:
                self._clients.setdefault(client.client_id, client)
        if rejected:
            logger.info("Hub is shut down, rejecting client %s", client.client_id)
            client.close()

    def unregister(self, client: StreamingClient) -> None:
        """Remove a client. No-op if it is not registered."""
        with self._lock:
            self._clients.pop(client.client_id, None)

    def snapshot(self) -> list[StreamingClient]:
        """Currently registered clients (copy, no lock held on return)."""
        with self._lock:
            return list(self._clients.values())

    async def broadcast(self, payload: bytes) -> int:
        """Deliver one SSE message to every registered client.

        Clients whose write fails or times out are dropped during this pass.
        Never raises for per-client failures. Returns the number of clients
        that received the message.
        """
        clients = self.snapshot()
        if not clients:
            return 0

        frame = format_event(payload)
        results = await asyncio.gather(*(self._deliver(client, frame) for client in clients))
        delivered = sum(results)
        logger.debug("Broadcast delivered to %d/%d clients", delivered, len(clients))
        return delivered

    async def close_all(self) -> None:
        """Close and unregister every client. New registrations are rejected."""
        with self._lock:
            self._closed = True
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()
        if clients:
            logger.info("Closed %d streaming clients", len(clients))

    async def _deliver(self, client: StreamingClient, frame: bytes) -> bool:
        try:
            await asyncio.wait_for(client.send(frame), timeout=self._write_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(
                "Dropping client %s: write timed out after %.1fs",
                client.client_id,
                self._write_timeout,
            )
        except Exception as e:
            logger.warning("Dropping client %s: %r", client.client_id, e)
        self.unregister(client)
        client.close()
        return False
