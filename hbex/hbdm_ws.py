"""Websocket market-data client for delivery futures."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, Union

from hbex import logger
from hbex.models import (
    NEXT_WEEK_CONTRACT,
    QUARTER_CONTRACT,
    THIS_WEEK_CONTRACT,
    ContractInfo,
    CurrencyPair,
    Depth,
    ExchangeError,
    FutureTicker,
    Trade,
    trade_side_from_direction,
)
from hbex.parser import parse_depth
from hbex.transport import gzip_decompress, to_float, to_int

WS_URL = "wss://api.hbdm.com/ws"

_CONTRACT_SUFFIXES = {
    QUARTER_CONTRACT: "CQ",
    NEXT_WEEK_CONTRACT: "NW",
    THIS_WEEK_CONTRACT: "CW",
}
_SUFFIX_CONTRACTS = {suffix: contract for contract, suffix in _CONTRACT_SUFFIXES.items()}

Message = Union[bytes, bytearray, str]


def _decode(message: Message) -> str:
    """Return the message text, inflating gzip frames."""
    if isinstance(message, (bytes, bytearray)):
        data = bytes(message)
        if data[:2] == b"\x1f\x8b":
            data = gzip_decompress(data)
        return data.decode("utf-8")
    return message


def _load(text: str) -> dict:
    try:
        response = json.loads(text)
    except ValueError as exc:
        raise ExchangeError(f"invalid message: {text}") from exc
    if not isinstance(response, dict):
        raise ExchangeError(f"invalid message: {text}")
    return response


def _from_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def _depth(tick: dict) -> Depth:
    return parse_depth(tick.get("bids") or [], tick.get("asks") or [])


def _parse_trades(tick: dict, pair: CurrencyPair) -> list[Trade]:
    return [
        Trade(
            tid=to_int(item.get("id")),
            pair=pair,
            price=to_float(item.get("price")),
            amount=to_float(item.get("amount")),
            type=trade_side_from_direction(item.get("direction", "")),
            date=to_int(item.get("ts")),
        )
        for item in tick.get("data") or []
    ]


class HbdmWs:
    """Subscribes to futures tickers, depth and trades and dispatches updates.

    ``send`` delivers a text frame to the open connection; incoming frames
    are passed to ``handle``.
    """

    def __init__(
        self,
        send: Callable[[str], Any],
        contract_infos: Optional[Iterable[ContractInfo]] = None,
    ):
        self.send = send
        self.url = WS_URL
        self.contract_infos = list(contract_infos or [])
        self.subscriptions: list[dict] = []
        self.ticker_callback: Optional[Callable[[FutureTicker], Any]] = None
        self.depth_callback: Optional[Callable[[Depth], Any]] = None
        self.trade_callback: Optional[Callable[[Trade, str], Any]] = None

    def set_callbacks(self, ticker_callback, depth_callback, trade_callback) -> None:
        self.ticker_callback = ticker_callback
        self.depth_callback = depth_callback
        self.trade_callback = trade_callback

    def _subscribe(self, sub: dict) -> None:
        self.subscriptions.append(sub)
        self.send(json.dumps(sub))

    def _channel_symbol(self, pair: CurrencyPair, contract: str) -> str:
        return f"{pair.currency_a.symbol}_{_CONTRACT_SUFFIXES.get(contract, '')}"

    def subscribe_ticker(self, pair: CurrencyPair, contract: str) -> None:
        if self.ticker_callback is None:
            raise ExchangeError("please set ticker callback func")
        symbol = self._channel_symbol(pair, contract)
        self._subscribe({"id": "ticker_1", "sub": f"market.{symbol}.detail"})

    def subscribe_depth(self, pair: CurrencyPair, contract: str) -> None:
        if self.depth_callback is None:
            raise ExchangeError("please set depth callback func")
        symbol = self._channel_symbol(pair, contract)
        self._subscribe(
            {
                "id": "futures.depth",
                "sub": f"market.{symbol}.depth.size_20.high_freq",
            }
        )

    def subscribe_trade(self, pair: CurrencyPair, contract: str) -> None:
        if self.trade_callback is None:
            raise ExchangeError("please set trade callback func")
        symbol = self._channel_symbol(pair, contract)
        self._subscribe({"id": "trade_3", "sub": f"market.{symbol}.trade.detail"})

    def _parse_channel(self, ch: str) -> tuple[CurrencyPair, str]:
        parts = ch.split(".")
        if len(parts) < 2:
            raise ExchangeError(ch)
        symbol = parts[1].split("_")
        if len(symbol) < 2:
            raise ExchangeError(ch)
        pair = CurrencyPair.parse(f"{symbol[0]}_USD")
        return pair, _SUFFIX_CONTRACTS.get(symbol[1], "")

    def _contract_id(self, alias: str) -> str:
        for info in self.contract_infos:
            if info.contract_type == alias:
                return info.instrument_id
        return ""

    def handle(self, message: Message) -> None:
        """Answer heartbeats and dispatch market updates to the callbacks."""
        text = _decode(message)
        if "ping" in text:
            self.send(text.replace("ping", "pong"))
            return

        response = _load(text)
        ch = response.get("ch") or ""
        if not ch:
            logger.warn(f'[{self.url}] ch == "" , msg={text}')
            return

        try:
            pair, contract = self._parse_channel(ch)
        except ExchangeError as exc:
            logger.error(f"[{self.url}] parse currency and contract err={exc}")
            raise

        tick = response.get("tick") or {}
        if ".depth." in ch:
            depth = _depth(tick)
            depth.contract_type = contract
            depth.contract_id = self._contract_id(contract)
            depth.pair = pair
            depth.utime = _from_millis(to_int(response.get("ts")))
            self.depth_callback(depth)
        elif ch.endswith("trade.detail"):
            for trade in _parse_trades(tick, pair):
                self.trade_callback(trade, contract)
        elif ch.endswith(".detail"):
            self.ticker_callback(
                FutureTicker(
                    pair=pair,
                    high=to_float(tick.get("high")),
                    low=to_float(tick.get("low")),
                    vol=to_float(tick.get("amount")),
                    contract_type=contract,
                )
            )
        else:
            logger.error(f"[{self.url}] unknown message, msg={text}")