"""Websocket market-data client for perpetual swaps."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from hbex import logger
from hbex.hbdm_ws import Message, _decode, _depth, _from_millis, _load, _parse_trades
from hbex.models import (
    SWAP_CONTRACT,
    CurrencyPair,
    Depth,
    ExchangeError,
    FutureTicker,
    Trade,
)
from hbex.transport import to_float, to_int

SWAP_WS_URL = "wss://api.hbdm.com/swap-ws"
LINEAR_SWAP_WS_URL = "wss://api.hbdm.com/linear-swap-ws"
SWAP_USDT_CONTRACT = "swap-usdt"

_SWAP_CONTRACTS = (SWAP_CONTRACT, SWAP_USDT_CONTRACT)


class HbdmSwapWs:
    """Subscribes to swap tickers, depth and trades and dispatches updates.

    With ``linear`` the client targets USDT-margined swaps.
    """

    def __init__(self, send: Callable[[str], Any], linear: bool = False):
        self.send = send
        self.url = LINEAR_SWAP_WS_URL if linear else SWAP_WS_URL
        self.subscriptions: list[dict] = []
        self.ticker_callback: Optional[Callable[[FutureTicker], Any]] = None
        self.depth_callback: Optional[Callable[[Depth], Any]] = None
        self.trade_callback: Optional[Callable[[Trade, str], Any]] = None

    def set_callbacks(self, ticker_callback, depth_callback, trade_callback) -> None:
        self.ticker_callback = ticker_callback
        self.depth_callback = depth_callback
        self.trade_callback = trade_callback

    def _subscribe(self, contract: str, sub: dict) -> None:
        if contract not in _SWAP_CONTRACTS:
            raise ExchangeError("not implement")
        self.subscriptions.append(sub)
        self.send(json.dumps(sub))

    def subscribe_ticker(self, pair: CurrencyPair, contract: str) -> None:
        if self.ticker_callback is None:
            raise ExchangeError("please set ticker callback func")
        self._subscribe(
            contract,
            {"id": "ticker_1", "sub": f"market.{pair.to_symbol('-')}.detail"},
        )

    def subscribe_depth(self, pair: CurrencyPair, contract: str) -> None:
        if self.depth_callback is None:
            raise ExchangeError("please set depth callback func")
        self._subscribe(
            contract,
            {"id": "swap.depth", "sub": f"market.{pair.to_symbol('-')}.depth.step6"},
        )

    def subscribe_trade(self, pair: CurrencyPair, contract: str) -> None:
        if self.trade_callback is None:
            raise ExchangeError("please set trade callback func")
        self._subscribe(
            contract,
            {
                "id": "swap_trade_3",
                "sub": f"market.{pair.to_symbol('-')}.trade.detail",
            },
        )

    def _parse_channel(self, ch: str) -> tuple[CurrencyPair, str]:
        parts = ch.split(".")
        if len(parts) < 2:
            raise ExchangeError(ch)
        pair = CurrencyPair.parse(parts[1], "-")
        if pair.currency_b.symbol.upper() == "USD":
            return pair, SWAP_CONTRACT
        return pair, SWAP_USDT_CONTRACT

    def handle(self, message: Message) -> None:
        """Answer heartbeats and dispatch market updates to the callbacks."""
        text = _decode(message)
        logger.debug("ws message data:", text)
        if "ping" in text:
            self.send(text.replace("ping", "pong"))
            return

        response = _load(text)
        ch = response.get("ch") or ""
        if not ch:
            logger.warn(f'[{self.url}] ch == "" , msg={text}')
            return

        ts = to_int(response.get("ts"))
        moment = _from_millis(ts) if ts > 0 else datetime.now(timezone.utc)

        try:
            pair, contract = self._parse_channel(ch)
        except ExchangeError as exc:
            logger.error(f"[{self.url}] parse currency and contract err={exc}")
            raise

        tick = response.get("tick") or {}
        if ".depth." in ch:
            depth = _depth(tick)
            depth.contract_type = contract
            depth.pair = pair
            depth.utime = moment
            self.depth_callback(depth)
        elif ch.endswith("trade.detail"):
            for trade in _parse_trades(tick, pair):
                self.trade_callback(trade, contract)
        elif ch.endswith(".detail"):
            self.ticker_callback(
                FutureTicker(
                    pair=pair,
                    last=to_float(tick.get("close")),
                    high=to_float(tick.get("high")),
                    low=to_float(tick.get("low")),
                    vol=to_float(tick.get("amount")),
                    date=to_int(tick.get("id")),
                    contract_type=contract,
                )
            )
        else:
            logger.error(f"[{self.url}] unknown message, msg={text}")