import pytest

from hbex.models import (
    BTC,
    BTC_USD,
    BTC_USDT,
    UNKNOWN_PAIR,
    Currency,
    CurrencyPair,
    Depth,
    FutureTicker,
    Ticker,
    TradeSide,
    trade_side_from_direction,
)


def test_parse_uppercases_and_matches_constant():
    assert CurrencyPair.parse("btc_usd") == BTC_USD
    assert CurrencyPair.parse("BTC_USDT") == BTC_USDT


@pytest.mark.parametrize("text", ["DOT_USD", "KSM_USD", "BTC_USDT"])
def test_parse_to_symbol_round_trip(text):
    pair = CurrencyPair.parse(text)
    assert pair.to_symbol("_") == text
    assert CurrencyPair.parse(pair.to_symbol("-"), "-") == pair
    assert str(pair) == text


@pytest.mark.parametrize("text", ["BTC", "A_B_C", ""])
def test_parse_malformed_gives_unknown(text):
    assert CurrencyPair.parse(text) is UNKNOWN_PAIR


def test_currency_equality_ignores_case_and_desc():
    assert Currency("btc", "bitcoin") == BTC
    assert hash(Currency("btc")) == hash(BTC)
    assert Currency("btc") != Currency("eth")


def test_to_lower():
    lowered = BTC_USDT.to_lower()
    assert lowered.to_symbol("") == "btcusdt"
    assert lowered == BTC_USDT


def test_adapt_usd_usdt_round_trip():
    assert BTC_USD.adapt_usd_to_usdt() == BTC_USDT
    assert BTC_USDT.adapt_usdt_to_usd() == BTC_USD
    assert BTC_USDT.adapt_usd_to_usdt() == BTC_USDT
    assert BTC_USD.adapt_usdt_to_usd() == BTC_USD


def test_pairs_usable_as_dict_keys():
    table = {BTC_USD: 1}
    assert table[CurrencyPair.parse("btc_usd")] == 1


@pytest.mark.parametrize(
    "direction, side",
    [
        ("buy", TradeSide.BUY),
        ("BUY", TradeSide.BUY),
        ("sell", TradeSide.SELL),
        ("buy-market", TradeSide.BUY_MARKET),
        ("SELL_MARKET", TradeSide.SELL_MARKET),
    ],
)
def test_trade_side_from_direction(direction, side):
    assert trade_side_from_direction(direction) is side


def test_trade_side_unknown_raises():
    with pytest.raises(ValueError):
        trade_side_from_direction("hold")


def test_depth_lists_are_independent():
    first, second = Depth(), Depth()
    first.ask_list.append(1)
    assert second.ask_list == []


def test_future_ticker_extends_ticker():
    ticker = FutureTicker(pair=BTC_USD, high=2.0, contract_type="swap")
    assert isinstance(ticker, Ticker)
    assert ticker.high == 2.0
    assert ticker.pair.currency_a == BTC