import gzip
import json
from datetime import datetime, timezone

import pytest

from hbex.hbdm_ws import HbdmWs
from hbex.models import (
    BTC_USD,
    NEXT_WEEK_CONTRACT,
    QUARTER_CONTRACT,
    THIS_WEEK_CONTRACT,
    ContractInfo,
    CurrencyPair,
    ExchangeError,
    TradeSide,
)


def _client():
    sent = []
    tickers, depths, trades = [], [], []
    infos = [
        ContractInfo(
            instrument_id="BTC201225",
            underlying_index="BTC",
            price_tick_size=0.01,
            contract_val=100.0,
            delivery="20201225",
            contract_type=QUARTER_CONTRACT,
        )
    ]
    ws = HbdmWs(sent.append, infos)
    ws.set_callbacks(
        tickers.append, depths.append, lambda trade, c: trades.append((trade, c))
    )
    return ws, sent, tickers, depths, trades


def test_subscriptions_match_source_channels():
    ws, sent, *_ = _client()
    ws.subscribe_ticker(BTC_USD, QUARTER_CONTRACT)
    ws.subscribe_depth(BTC_USD, NEXT_WEEK_CONTRACT)
    ws.subscribe_trade(CurrencyPair.parse("LTC_USD"), THIS_WEEK_CONTRACT)
    assert [json.loads(frame) for frame in sent] == [
        {"id": "ticker_1", "sub": "market.BTC_CQ.detail"},
        {"id": "futures.depth", "sub": "market.BTC_NW.depth.size_20.high_freq"},
        {"id": "trade_3", "sub": "market.LTC_CW.trade.detail"},
    ]
    assert len(ws.subscriptions) == 3


def test_subscribe_without_callback_raises():
    ws = HbdmWs(lambda frame: None)
    with pytest.raises(ExchangeError, match="ticker callback"):
        ws.subscribe_ticker(BTC_USD, QUARTER_CONTRACT)
    with pytest.raises(ExchangeError, match="depth callback"):
        ws.subscribe_depth(BTC_USD, QUARTER_CONTRACT)
    with pytest.raises(ExchangeError, match="trade callback"):
        ws.subscribe_trade(BTC_USD, QUARTER_CONTRACT)


def test_ping_is_answered_with_pong():
    ws, sent, tickers, *_ = _client()
    ws.handle(gzip.compress(b'{"ping": 1600000000000}'))
    assert sent == ['{"pong": 1600000000000}']
    assert tickers == []


def test_depth_message():
    ws, _, _, depths, _ = _client()
    message = {
        "ch": "market.BTC_CQ.depth.size_20.high_freq",
        "ts": 1600000000000,
        "tick": {"bids": [[100, 1], [101, 2]], "asks": [[102, 2], [103, 1]]},
    }
    ws.handle(json.dumps(message).encode())
    assert len(depths) == 1
    depth = depths[0]
    assert [r.price for r in depth.bid_list] == [101, 100]
    assert [r.price for r in depth.ask_list] == [103, 102]
    assert depth.contract_type == QUARTER_CONTRACT
    assert depth.contract_id == "BTC201225"
    assert depth.pair.to_symbol("_").upper() == "BTC_USD"
    assert depth.utime == datetime(2020, 9, 13, 12, 26, 40, tzinfo=timezone.utc)


def test_trade_message():
    ws, _, _, _, trades = _client()
    message = {
        "ch": "market.LTC_CW.trade.detail",
        "ts": 1,
        "tick": {
            "id": 1,
            "ts": 1,
            "data": [
                {"id": 5, "amount": 2, "price": 50.5, "direction": "buy", "ts": 1600},
                {"id": 6, "amount": 1, "price": 50.0, "direction": "sell", "ts": 1601},
            ],
        },
    }
    ws.handle(json.dumps(message))
    assert [(t.tid, t.price, t.amount, t.date) for t, _ in trades] == [
        (5, 50.5, 2.0, 1600),
        (6, 50.0, 1.0, 1601),
    ]
    assert trades[0][0].type == TradeSide.BUY
    assert trades[1][0].type == TradeSide.SELL
    assert {contract for _, contract in trades} == {THIS_WEEK_CONTRACT}
    assert trades[0][0].pair.to_symbol("_").upper() == "LTC_USD"


def test_ticker_message():
    ws, _, tickers, _, _ = _client()
    message = {
        "ch": "market.BTC_NW.detail",
        "ts": 1,
        "tick": {"id": 7, "close": 7800, "high": 7900, "low": 6726.13, "amount": 477.5},
    }
    ws.handle(json.dumps(message))
    assert len(tickers) == 1
    ticker = tickers[0]
    assert (ticker.high, ticker.low, ticker.vol) == (7900.0, 6726.13, 477.5)
    assert ticker.contract_type == NEXT_WEEK_CONTRACT


def test_message_without_channel_is_ignored():
    ws, sent, tickers, depths, trades = _client()
    ws.handle('{"id": "ticker_1", "status": "ok", "subbed": "x"}')
    assert (sent, tickers, depths, trades) == ([], [], [], [])


def test_bad_channel_raises():
    ws, *_ = _client()
    with pytest.raises(ExchangeError):
        ws.handle('{"ch": "market", "ts": 1, "tick": {}}')


def test_invalid_json_raises():
    ws, *_ = _client()
    with pytest.raises(ExchangeError):
        ws.handle(b"not json")