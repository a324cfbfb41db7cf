"""Parsing helpers shared by the websocket clients."""

from __future__ import annotations

from typing import Iterable, Sequence

from hbex import logger
from hbex.models import UNKNOWN_PAIR, CurrencyPair, Depth, DepthRecord

_SPOT_QUOTES = ("usdt", "btc", "eth", "husd", "ht", "trx")


def _records(levels: Iterable[Sequence[float]]) -> list[DepthRecord]:
    records = [DepthRecord(price=level[0], amount=level[1]) for level in levels]
    return sorted(records, key=lambda record: record.price, reverse=True)


def parse_depth(
    bids: Iterable[Sequence[float]], asks: Iterable[Sequence[float]]
) -> Depth:
    """Build a Depth from [price, amount] levels, both sides by falling price."""
    return Depth(bid_list=_records(bids or ()), ask_list=_records(asks or ()))


def parse_spot_ws_pair(ch: str) -> CurrencyPair:
    """Extract the pair from a spot channel name such as 'market.btcusdt.detail'."""
    meta = ch.split(".")
    if len(meta) < 2:
        logger.error(f"parse error, ch={ch}")
        return UNKNOWN_PAIR
    symbol = meta[1]
    for quote in _SPOT_QUOTES:
        if symbol.endswith(quote):
            base = symbol[: -len(quote)]
            return CurrencyPair.parse(f"{base}_{quote}")
    return UNKNOWN_PAIR