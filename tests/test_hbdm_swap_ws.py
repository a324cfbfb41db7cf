import gzip
import json
from datetime import datetime, timezone

import pytest

from hbex.hbdm_swap_ws import (
    LINEAR_SWAP_WS_URL,
    SWAP_USDT_CONTRACT,
    SWAP_WS_URL,
    HbdmSwapWs,
)
from hbex.models import BTC_USD, QUARTER_CONTRACT, SWAP_CONTRACT, ExchangeError, TradeSide


def _client(linear=False):
    sent, tickers, depths, trades = [], [], [], []
    ws = HbdmSwapWs(sent.append, linear)
    ws.set_callbacks(
        tickers.append, depths.append, lambda trade, c: trades.append((trade, c))
    )
    return ws, sent, tickers, depths, trades


def test_url_depends_on_margin_kind():
    assert HbdmSwapWs(lambda f: None).url == SWAP_WS_URL
    assert HbdmSwapWs(lambda f: None, linear=True).url == LINEAR_SWAP_WS_URL


def test_subscribe_trade_channel():
    ws, sent, *_ = _client()
    ws.subscribe_trade(BTC_USD, SWAP_CONTRACT)
    assert json.loads(sent[0]) == {
        "id": "swap_trade_3",
        "sub": "market.BTC-USD.trade.detail",
    }


def test_subscribe_ticker_and_depth_channels():
    ws, sent, *_ = _client()
    ws.subscribe_ticker(BTC_USD, SWAP_USDT_CONTRACT)
    ws.subscribe_depth(BTC_USD, SWAP_CONTRACT)
    assert [json.loads(frame)["sub"] for frame in sent] == [
        "market.BTC-USD.detail",
        "market.BTC-USD.depth.step6",
    ]


def test_subscribe_other_contract_raises():
    ws, sent, *_ = _client()
    with pytest.raises(ExchangeError, match="not implement"):
        ws.subscribe_ticker(BTC_USD, QUARTER_CONTRACT)
    assert sent == []


def test_subscribe_without_callback_raises():
    ws = HbdmSwapWs(lambda frame: None)
    with pytest.raises(ExchangeError, match="trade callback"):
        ws.subscribe_trade(BTC_USD, SWAP_CONTRACT)


def test_ping_is_answered():
    ws, sent, *_ = _client()
    ws.handle(gzip.compress(b'{"ping":42}'))
    assert sent == ['{"pong":42}']


def test_ticker_message():
    ws, _, tickers, _, _ = _client()
    message = {
        "ch": "market.BTC-USD.detail",
        "ts": 1600000000000,
        "tick": {"id": 1539842340, "close": 7800, "high": 7900, "low": 6700, "amount": 12.5},
    }
    ws.handle(json.dumps(message))
    ticker = tickers[0]
    assert (ticker.last, ticker.high, ticker.low, ticker.vol) == (7800.0, 7900.0, 6700.0, 12.5)
    assert ticker.date == 1539842340
    assert ticker.contract_type == SWAP_CONTRACT


def test_depth_message_for_usdt_swap():
    ws, _, _, depths, _ = _client(linear=True)
    message = {
        "ch": "market.BTC-USDT.depth.step6",
        "ts": 1600000000000,
        "tick": {"bids": [[9, 1], [10, 1]], "asks": [[11, 1], [12, 1]]},
    }
    ws.handle(json.dumps(message).encode())
    depth = depths[0]
    assert depth.contract_type == SWAP_USDT_CONTRACT
    assert [r.price for r in depth.bid_list] == [10, 9]
    assert [r.price for r in depth.ask_list] == [12, 11]
    assert depth.utime == datetime(2020, 9, 13, 12, 26, 40, tzinfo=timezone.utc)


def test_depth_without_timestamp_uses_now():
    ws, _, _, depths, _ = _client()
    before = datetime.now(timezone.utc)
    ws.handle('{"ch": "market.BTC-USD.depth.step6", "tick": {"bids": [], "asks": []}}')
    assert depths[0].utime >= before


def test_trade_message():
    ws, _, _, _, trades = _client()
    message = {
        "ch": "market.BTC-USD.trade.detail",
        "ts": 1,
        "tick": {"data": [{"id": 9, "amount": 3, "price": 100, "direction": "sell", "ts": 5}]},
    }
    ws.handle(json.dumps(message))
    trade, contract = trades[0]
    assert (trade.tid, trade.amount, trade.price, trade.date) == (9, 3.0, 100.0, 5)
    assert trade.type == TradeSide.SELL
    assert contract == SWAP_CONTRACT


def test_bad_channel_raises():
    ws, *_ = _client()
    with pytest.raises(ExchangeError):
        ws.handle('{"ch": "market", "tick": {}}')