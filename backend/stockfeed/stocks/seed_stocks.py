"""Default seed stocks loaded when no settings file provides InitialStocks."""

from .models import Stock

# Realistic starting prices (as of project creation)
SEED_STOCKS: tuple[Stock, ...] = (
    Stock("AAPL", "Apple Inc.", 190.00),
    Stock("GOOGL", "Alphabet Inc.", 175.00),
    Stock("MSFT", "Microsoft Corporation", 420.00),
    Stock("AMZN", "Amazon.com, Inc.", 185.00),
    Stock("TSLA", "Tesla, Inc.", 250.00),
    Stock("NVDA", "NVIDIA Corporation", 800.00),
    Stock("META", "Meta Platforms, Inc.", 500.00),
    Stock("JPM", "JPMorgan Chase & Co.", 195.00),
    Stock("V", "Visa Inc.", 280.00),
    Stock("NFLX", "Netflix, Inc.", 600.00),
)
