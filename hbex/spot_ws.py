"""Websocket market-data client for spot markets."""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

from hbex import logger
from hbex.hbdm_ws import Message, _decode, _depth, _from_millis, _load
from hbex.models import CurrencyPair, Depth, ExchangeError, Ticker
from hbex.parser import parse_spot_ws_pair
from hbex.transport import to_float, to_int

SPOT_WS_URL = "wss://api.huobi.pro/ws"


class SpotWs:
    """Subscribes to spot tickers and depth and dispatches updates."""

    def __init__(self, send: Callable[[str], Any]):
        self.send = send
        self.url = SPOT_WS_URL
        self.subscriptions: list[dict] = []
        self.ticker_callback: Optional[Callable[[Ticker], Any]] = None
        self.depth_callback: Optional[Callable[[Depth], Any]] = None

    def set_callbacks(self, ticker_callback, depth_callback) -> None:
        self.ticker_callback = ticker_callback
        self.depth_callback = depth_callback

    def _subscribe(self, sub: dict) -> None:
        self.subscriptions.append(sub)
        self.send(json.dumps(sub))

    def subscribe_depth(self, pair: CurrencyPair) -> None:
        if self.depth_callback is None:
            raise ExchangeError("please set depth callback func")
        symbol = pair.to_lower().to_symbol("")
        self._subscribe({"id": "spot.depth", "sub": f"market.{symbol}.mbp.refresh.20"})

    def subscribe_ticker(self, pair: CurrencyPair) -> None:
        if self.ticker_callback is None:
            raise ExchangeError("please set ticker call back func")
        symbol = pair.to_lower().to_symbol("")
        self._subscribe({"id": "spot.ticker", "sub": f"market.{symbol}.detail"})

    def handle(self, message: Message) -> None:
        """Answer heartbeats and dispatch market updates to the callbacks."""
        text = _decode(message)
        if "ping" in text:
            self.send(text.replace("ping", "pong"))
            return

        response = _load(text)
        ch = response.get("ch") or ""
        pair = parse_spot_ws_pair(ch)
        tick = response.get("tick") or {}
        ts = to_int(response.get("ts"))

        if "mbp.refresh" in ch:
            depth = _depth(tick)
            depth.pair = pair
            depth.utime = _from_millis(ts)
            self.depth_callback(depth)
        elif ".detail" in ch:
            self.ticker_callback(
                Ticker(
                    pair=pair,
                    last=to_float(tick.get("close")),
                    high=to_float(tick.get("high")),
                    low=to_float(tick.get("low")),
                    vol=to_float(tick.get("amount")),
                    date=ts,
                )
            )
        else:
            logger.error(f"[{self.url}] unknown message ch , msg={text}")