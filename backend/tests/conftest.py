"""Pytest configuration and fixtures."""

import asyncio

import pytest

from stockfeed.stocks.hub import BroadcastHub, StreamingClient
from stockfeed.stocks.models import Stock
from stockfeed.stocks.store import StockStore


class RecordingSink:
    """Sink that keeps every frame written to it."""

    def __init__(self) -> None:
        self.frames: list[bytes] = []
        self.closed = False

    async def write(self, data: bytes) -> None:
        self.frames.append(data)

    def close(self) -> None:
        self.closed = True


class FailingSink(RecordingSink):
    """Sink whose transport has gone away."""

    async def write(self, data: bytes) -> None:
        raise BrokenPipeError("client went away")


class HangingSink(RecordingSink):
    """Sink for a client that never drains its socket."""

    async def write(self, data: bytes) -> None:
        await asyncio.Event().wait()


@pytest.fixture
def store():
    """Store seeded with a couple of stocks."""
    return StockStore([Stock("AAPL", "Apple", 150.00), Stock("NFLX", "Netflix", 450.00)])


@pytest.fixture
def hub():
    return BroadcastHub(write_timeout=0.1)


@pytest.fixture
def make_client():
    """Factory: make_client("recording" | "failing" | "hanging") -> StreamingClient."""
    sinks = {"recording": RecordingSink, "failing": FailingSink, "hanging": HangingSink}

    def _make(kind: str = "recording", client_id: str | None = None) -> StreamingClient:
        return StreamingClient(sinks[kind](), client_id=client_id)

    return _make
