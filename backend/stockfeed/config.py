"""Application settings (pydantic-settings).

Sources, highest priority first:
    1. keyword arguments to Settings(...)
    2. STOCKFEED_* environment variables
    3. the JSON file named by STOCKFEED_SETTINGS_FILE
    4. defaults below

Environment:
    STOCKFEED_UPDATE_INTERVAL_SECONDS - simulator interval, integer >= 1 (default 5)
    STOCKFEED_INITIAL_STOCKS          - JSON list of stocks, same shape as InitialStocks
    STOCKFEED_WRITE_TIMEOUT           - per-client SSE write timeout in seconds (default 2.0)
    STOCKFEED_LOG_LEVEL               - root log level (default INFO)
    STOCKFEED_HOST / STOCKFEED_PORT   - bind address for the `stockfeed` command
    STOCKFEED_SHUTDOWN_TIMEOUT        - seconds to wait for open connections on exit
    STOCKFEED_SETTINGS_FILE           - optional JSON settings file

Settings file layout:

    {
      "StockSettings": {"UpdateIntervalSeconds": 5},
      "InitialStocks": [
        {"tickerSymbol": "AAPL", "companyName": "Apple", "price": 150.00}
      ]
    }
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from .stocks.hub import DEFAULT_WRITE_TIMEOUT
from .stocks.models import Stock
from .stocks.seed_stocks import SEED_STOCKS

SETTINGS_FILE_ENV = "STOCKFEED_SETTINGS_FILE"


class ConfigurationError(ValueError):
    """Invalid settings. Raised at startup, before anything is running."""


def _read_settings_file(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Settings file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")
    return data


class SettingsFileSource(PydanticBaseSettingsSource):
    """Maps the JSON settings file onto Settings field names."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        # Unused: __call__ reads the whole file at once
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        raw_path = os.environ.get(SETTINGS_FILE_ENV, "").strip()
        if not raw_path:
            return {}

        path = Path(raw_path)
        data = _read_settings_file(path)
        section = data.get("StockSettings") or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"StockSettings in {path} must be a JSON object")

        values: dict[str, Any] = {}
        if "UpdateIntervalSeconds" in section:
            values["update_interval_seconds"] = section["UpdateIntervalSeconds"]
        if "InitialStocks" in data:
            values["initial_stocks"] = data["InitialStocks"]
        return values


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOCKFEED_", frozen=True, extra="ignore")

    update_interval_seconds: int = Field(default=5, ge=1)
    initial_stocks: tuple[Stock, ...] = SEED_STOCKS
    write_timeout: float = Field(default=DEFAULT_WRITE_TIMEOUT, gt=0)
    shutdown_timeout: float = Field(default=5.0, gt=0)
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=0, le=65535)

    @field_validator("initial_stocks", mode="before")
    @classmethod
    def _parse_stocks(cls, value: Any) -> tuple[Stock, ...]:
        if not isinstance(value, (list, tuple)):
            raise ValueError("InitialStocks must be a list")
        stocks = tuple(
            entry if isinstance(entry, Stock) else Stock.from_dict(entry) for entry in value
        )
        seen: set[str] = set()
        for stock in stocks:
            if stock.ticker_symbol in seen:
                raise ValueError(f"Duplicate ticker in InitialStocks: {stock.ticker_symbol}")
            seen.add(stock.ticker_symbol)
        return stocks

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, SettingsFileSource(settings_cls))


def load_settings() -> Settings:
    """Build Settings from the environment and the optional settings file.

    Raises ConfigurationError on any invalid value.
    """
    try:
        return Settings()
    except (ValidationError, SettingsError) as e:
        raise ConfigurationError(str(e)) from e
