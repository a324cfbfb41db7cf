"""REST clients for Huobi delivery futures and perpetual swaps, and websocket
message handlers for spot, futures and swap market data."""

__version__ = "0.1.0"