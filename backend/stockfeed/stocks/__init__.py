"""Stock feed subsystem.

Public API:
    Stock               - Immutable, normalized stock record
    StockStore          - Thread-safe in-memory stock store
    BroadcastHub        - Registry of SSE clients with fan-out broadcast
    StreamingClient     - One open push connection (id + sink + closed signal)
    QueueSink           - Bounded queue sink drained by the SSE response
    StockPriceSimulator - Background task that mutates and broadcasts stocks
    create_stock_router - FastAPI router factory for the CRUD endpoints
    create_stream_router - FastAPI router factory for the SSE endpoint
"""

from .hub import BroadcastHub, QueueSink, StreamingClient
from .models import InvalidStockError, Stock
from .routes import create_stock_router
from .simulator import StockPriceSimulator
from .store import StockStore
from .stream import create_stream_router

__all__ = [
    "Stock",
    "InvalidStockError",
    "StockStore",
    "BroadcastHub",
    "StreamingClient",
    "QueueSink",
    "StockPriceSimulator",
    "create_stock_router",
    "create_stream_router",
]
