"""SSE streaming endpoint for live stock updates."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .hub import BroadcastHub, QueueSink, StreamingClient

logger = logging.getLogger(__name__)

RETRY_DIRECTIVE = b"retry: 1000\n\n"


def create_stream_router(hub: BroadcastHub) -> APIRouter:
    """Create the SSE streaming router with a reference to the broadcast hub.

    This factory pattern lets us inject the BroadcastHub without globals.
    """
    router = APIRouter(prefix="/stocks", tags=["streaming"])

    @router.get("/live")
    async def stream_stocks(request: Request) -> StreamingResponse:
        """SSE endpoint for live stock updates.

        Every simulator tick pushes the changed stock as one event:

            data: {"tickerSymbol":"AAPL","companyName":"Apple","price":151.23}

        Includes a retry directive so the browser auto-reconnects on
        disconnection (EventSource built-in behavior).
        """
        client_ip = request.client.host if request.client else "unknown"
        return StreamingResponse(
            _generate_events(hub, client_ip),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    hub: BroadcastHub,
    client_ip: str = "unknown",
) -> AsyncGenerator[bytes, None]:
    """Async generator that yields SSE frames pushed by the hub.

    Suspends on the client's queue between updates. Ends when the hub closes
    the client (slow client or shutdown); a browser disconnect cancels the
    generator. Either way the client is unregistered on exit.
    """
    sink = QueueSink()
    client = StreamingClient(sink)
    hub.register(client)
    logger.info("SSE client connected: %s (%s)", client.client_id, client_ip)
    try:
        # Tell the client to retry after 1 second if the connection drops
        yield RETRY_DIRECTIVE

        async for frame in sink.frames():
            yield frame
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s (%s)", client.client_id, client_ip)
        raise
    finally:
        hub.unregister(client)
        client.close()
        logger.info("SSE client disconnected: %s (%s)", client.client_id, client_ip)
