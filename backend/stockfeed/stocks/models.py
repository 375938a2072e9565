"""Data models for the stock feed."""

from __future__ import annotations

import json
from dataclasses import dataclass


class InvalidStockError(ValueError):
    """Raised when a stock cannot be constructed from the given values."""


def normalize_price(value: float) -> float:
    """Clamp a price to >= 0 and round it to 2 decimal places."""
    return round(max(0.0, float(value)), 2)


def normalize_company_name(name: str | None) -> str:
    """Trim a company name. Empty or whitespace-only names are rejected."""
    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidStockError("Company name cannot be empty or whitespace.")
    return trimmed


@dataclass(frozen=True, slots=True)
class Stock:
    """Immutable snapshot of a single stock record.

    Every write path (seeding, CRUD create/update, simulator ticks) builds a
    new Stock, so the normalization in __post_init__ runs on every write.
    """

    ticker_symbol: str
    company_name: str
    price: float

    def __post_init__(self) -> None:
        if not self.ticker_symbol or not self.ticker_symbol.strip():
            raise InvalidStockError("Ticker symbol cannot be empty.")
        object.__setattr__(self, "company_name", normalize_company_name(self.company_name))
        object.__setattr__(self, "price", normalize_price(self.price))

    def with_changes(
        self,
        company_name: str | None = None,
        price: float | None = None,
    ) -> Stock:
        """Return a copy with the supplied fields replaced. The ticker never changes."""
        return Stock(
            ticker_symbol=self.ticker_symbol,
            company_name=self.company_name if company_name is None else company_name,
            price=self.price if price is None else price,
        )

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "tickerSymbol": self.ticker_symbol,
            "companyName": self.company_name,
            "price": self.price,
        }

    def to_json(self) -> str:
        """Compact JSON form used as the SSE message payload."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict) -> Stock:
        """Build a Stock from its wire form (camelCase keys)."""
        try:
            return cls(
                ticker_symbol=str(data["tickerSymbol"]).strip().upper(),
                company_name=data["companyName"],
                price=data.get("price", 0.0),
            )
        except InvalidStockError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidStockError(f"Malformed stock entry {data!r}: {e}") from e
