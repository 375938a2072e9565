"""CRUD endpoints for stocks."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Stock, normalize_price
from .store import StockStore

logger = logging.getLogger(__name__)

MAX_PRICE = 10_000


class StockOut(BaseModel):
    tickerSymbol: str
    companyName: str
    price: float


class CreateStockRequest(BaseModel):
    """Body of POST /stocks. Accepts camelCase or snake_case field names.

    Negative prices are clamped to 0 rather than rejected.
    """

    model_config = ConfigDict(populate_by_name=True)

    ticker_symbol: str = Field(alias="tickerSymbol", min_length=1, max_length=10)
    company_name: str = Field(alias="companyName", min_length=1, max_length=100)
    price: float = Field(default=0.0, le=MAX_PRICE)

    @field_validator("ticker_symbol", mode="before")
    @classmethod
    def _clean_ticker(cls, value: str) -> str:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("company_name", mode="before")
    @classmethod
    def _clean_company_name(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @field_validator("price")
    @classmethod
    def _clean_price(cls, value: float) -> float:
        return normalize_price(value)


class UpdateStockRequest(BaseModel):
    """Body of PUT/PATCH /stocks/{ticker}. Omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    company_name: str | None = Field(default=None, alias="companyName", min_length=1, max_length=100)
    price: float | None = Field(default=None, le=MAX_PRICE)

    @field_validator("company_name", mode="before")
    @classmethod
    def _clean_company_name(cls, value: str | None) -> str | None:
        return value.strip() if isinstance(value, str) else value

    @field_validator("price")
    @classmethod
    def _clean_price(cls, value: float | None) -> float | None:
        return None if value is None else normalize_price(value)


def _normalize_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def create_stock_router(store: StockStore) -> APIRouter:
    """Create the CRUD router bound to a StockStore."""
    router = APIRouter(prefix="/stocks", tags=["stocks"])

    @router.get("", response_model=list[StockOut])
    def list_stocks() -> list[dict]:
        return [stock.to_dict() for stock in store.get_all()]

    @router.get("/{ticker}", response_model=StockOut)
    def get_stock(ticker: str) -> dict:
        stock = store.get(_normalize_ticker(ticker))
        if stock is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown ticker {ticker}")
        return stock.to_dict()

    @router.post("", status_code=status.HTTP_201_CREATED, response_model=StockOut)
    def create_stock(body: CreateStockRequest, response: Response) -> dict:
        stock = Stock(
            ticker_symbol=body.ticker_symbol,
            company_name=body.company_name,
            price=body.price,
        )
        if not store.insert(stock):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ticker {stock.ticker_symbol} already exists",
            )
        logger.info("Created stock %s", stock.ticker_symbol)
        response.headers["Location"] = f"/stocks/{stock.ticker_symbol}"
        return stock.to_dict()

    @router.put("/{ticker}", response_model=StockOut)
    @router.patch("/{ticker}", response_model=StockOut)
    def update_stock(ticker: str, body: UpdateStockRequest) -> dict:
        updated = store.update(
            _normalize_ticker(ticker),
            company_name=body.company_name,
            price=body.price,
        )
        if updated is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown ticker {ticker}")
        return updated.to_dict()

    @router.delete("/{ticker}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_stock(ticker: str) -> Response:
        symbol = _normalize_ticker(ticker)
        if store.delete(symbol):
            logger.info("Deleted stock %s", symbol)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
