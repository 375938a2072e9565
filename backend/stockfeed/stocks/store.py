"""Thread-safe in-memory stock store."""

from __future__ import annotations

from collections.abc import Iterable
from threading import Lock

from .models import Stock


class StockStore:
    """Thread-safe in-memory mapping of ticker symbol -> Stock.

    Writers: CRUD request handlers (threadpool) and the StockPriceSimulator.
    Readers: CRUD request handlers and the simulator's tick snapshot.

    Stocks are immutable, so a reader either sees the old record or the new
    one, never a partially applied write.
    """

    def __init__(self, stocks: Iterable[Stock] = ()) -> None:
        self._stocks: dict[str, Stock] = {}
        self._lock = Lock()
        for stock in stocks:
            self._stocks[stock.ticker_symbol] = stock

    def get_all(self) -> list[Stock]:
        """Snapshot of all current stocks. No ordering guarantee."""
        with self._lock:
            return list(self._stocks.values())

    def get(self, ticker: str) -> Stock | None:
        """Get a single stock, or None if unknown."""
        with self._lock:
            return self._stocks.get(ticker)

    def insert(self, stock: Stock) -> bool:
        """Add a stock. Returns False (and changes nothing) if the ticker exists."""
        with self._lock:
            if stock.ticker_symbol in self._stocks:
                return False
            self._stocks[stock.ticker_symbol] = stock
            return True

    def replace(self, ticker: str, stock: Stock) -> None:
        """Unconditional upsert. Last writer wins."""
        if stock.ticker_symbol != ticker:
            raise ValueError(
                f"Cannot store {stock.ticker_symbol!r} under ticker {ticker!r}"
            )
        with self._lock:
            self._stocks[ticker] = stock

    def update(
        self,
        ticker: str,
        company_name: str | None = None,
        price: float | None = None,
    ) -> Stock | None:
        """Atomically change the supplied fields of an existing stock.

        Returns the updated Stock, or None if the ticker is unknown.
        """
        with self._lock:
            existing = self._stocks.get(ticker)
            if existing is None:
                return None
            updated = existing.with_changes(company_name=company_name, price=price)
            self._stocks[ticker] = updated
            return updated

    def delete(self, ticker: str) -> bool:
        """Remove a stock. Returns True if it existed."""
        with self._lock:
            return self._stocks.pop(ticker, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._stocks)

    def __contains__(self, ticker: str) -> bool:
        with self._lock:
            return ticker in self._stocks
