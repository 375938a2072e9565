"""Tests for the Stock dataclass and normalization helpers."""

import json

import pytest

from stockfeed.stocks.models import (
    InvalidStockError,
    Stock,
    normalize_company_name,
    normalize_price,
)


class TestNormalization:
    """Unit tests for the normalization helpers."""

    def test_price_rounding(self):
        """Test that prices are rounded to 2 decimal places."""
        assert normalize_price(190.12345) == 190.12
        assert normalize_price(190.125001) == 190.13

    def test_negative_price_clamped(self):
        assert normalize_price(-0.5) == 0.0

    def test_company_name_trimmed(self):
        assert normalize_company_name("  Apple  ") == "Apple"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_company_name_rejected(self, name):
        with pytest.raises(InvalidStockError):
            normalize_company_name(name)


class TestStock:
    """Unit tests for the Stock model."""

    def test_creation_normalizes(self):
        """Construction is the normalization boundary."""
        stock = Stock(ticker_symbol="AAPL", company_name="  Apple ", price=-3.0)
        assert stock.company_name == "Apple"
        assert stock.price == 0.0

    def test_empty_ticker_rejected(self):
        with pytest.raises(InvalidStockError):
            Stock(ticker_symbol=" ", company_name="Apple", price=1.0)

    def test_with_changes_keeps_ticker(self):
        stock = Stock("AAPL", "Apple", 150.00)
        updated = stock.with_changes(price=151.234)
        assert updated.ticker_symbol == "AAPL"
        assert updated.company_name == "Apple"
        assert updated.price == 151.23

    def test_with_changes_only_name(self):
        stock = Stock("AAPL", "Apple", 150.00)
        updated = stock.with_changes(company_name=" Apple Inc. ")
        assert updated.company_name == "Apple Inc."
        assert updated.price == 150.00

    def test_with_changes_clamps_at_zero(self):
        stock = Stock("PENNY", "Penny Co", 0.40)
        assert stock.with_changes(price=stock.price - 0.97).price == 0.0

    def test_to_dict(self):
        """Test serialization to the camelCase wire form."""
        stock = Stock("AAPL", "Apple", 151.23)
        assert stock.to_dict() == {
            "tickerSymbol": "AAPL",
            "companyName": "Apple",
            "price": 151.23,
        }

    def test_to_json_is_compact(self):
        stock = Stock("AAPL", "Apple", 151.23)
        assert stock.to_json() == '{"tickerSymbol":"AAPL","companyName":"Apple","price":151.23}'
        assert json.loads(stock.to_json())["price"] == 151.23

    def test_from_dict(self):
        stock = Stock.from_dict({"tickerSymbol": " msft ", "companyName": "Microsoft", "price": 420})
        assert stock == Stock("MSFT", "Microsoft", 420.0)

    def test_from_dict_missing_field(self):
        with pytest.raises(InvalidStockError):
            Stock.from_dict({"tickerSymbol": "MSFT"})

    def test_from_dict_bad_price(self):
        with pytest.raises(InvalidStockError):
            Stock.from_dict({"tickerSymbol": "MSFT", "companyName": "Microsoft", "price": "cheap"})

    def test_immutability(self):
        """Test that Stock is immutable."""
        stock = Stock("AAPL", "Apple", 150.00)

        with pytest.raises(AttributeError):
            stock.price = 200.00  # Should raise error
