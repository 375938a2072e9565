"""Real-time stock feed: in-memory store, price simulator and SSE broadcast."""
