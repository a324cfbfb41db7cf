"""Currencies, pairs, enumerations and the records exchanged with the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional


class ExchangeError(Exception):
    """An error reported by the exchange or by the transport."""


@dataclass(frozen=True, eq=False)
class Currency:
    """A currency symbol; equality ignores letter case and the description."""

    symbol: str
    desc: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Currency):
            return NotImplemented
        return self.symbol.upper() == other.symbol.upper()

    def __hash__(self) -> int:
        return hash(self.symbol.upper())

    def __str__(self) -> str:
        return self.symbol


UNKNOWN = Currency("UNKNOWN")
BTC = Currency("BTC")
USD = Currency("USD")
USDT = Currency("USDT")
ETH = Currency("ETH")
LTC = Currency("LTC")
EOS = Currency("EOS")
ETC = Currency("ETC")
XRP = Currency("XRP")
BCH = Currency("BCH")
DOT = Currency("DOT")


@dataclass(frozen=True)
class CurrencyPair:
    """A base currency quoted in a second currency."""

    currency_a: Currency
    currency_b: Currency

    @classmethod
    def parse(cls, text: str, sep: str = "_") -> "CurrencyPair":
        """Parse 'BASE<sep>QUOTE' (upper-casing both); UNKNOWN_PAIR if malformed."""
        parts = text.split(sep)
        if len(parts) != 2:
            return UNKNOWN_PAIR
        base, quote = parts
        return cls(Currency(base.upper()), Currency(quote.upper()))

    def to_symbol(self, sep: str = "_") -> str:
        return f"{self.currency_a.symbol}{sep}{self.currency_b.symbol}"

    def to_lower(self) -> "CurrencyPair":
        return CurrencyPair(
            Currency(self.currency_a.symbol.lower(), self.currency_a.desc),
            Currency(self.currency_b.symbol.lower(), self.currency_b.desc),
        )

    def adapt_usd_to_usdt(self) -> "CurrencyPair":
        if self.currency_b == USD:
            return CurrencyPair(self.currency_a, USDT)
        return self

    def adapt_usdt_to_usd(self) -> "CurrencyPair":
        if self.currency_b == USDT:
            return CurrencyPair(self.currency_a, USD)
        return self

    def __str__(self) -> str:
        return self.to_symbol("_")


UNKNOWN_PAIR = CurrencyPair(UNKNOWN, UNKNOWN)
BTC_USD = CurrencyPair(BTC, USD)
BTC_USDT = CurrencyPair(BTC, USDT)
ETH_USD = CurrencyPair(ETH, USD)
ETH_USDT = CurrencyPair(ETH, USDT)
LTC_USD = CurrencyPair(LTC, USD)
LTC_USDT = CurrencyPair(LTC, USDT)
EOS_USD = CurrencyPair(EOS, USD)
XRP_BTC = CurrencyPair(XRP, BTC)

THIS_WEEK_CONTRACT = "this_week"
NEXT_WEEK_CONTRACT = "next_week"
QUARTER_CONTRACT = "quarter"
BI_QUARTER_CONTRACT = "bi_quarter"
SWAP_CONTRACT = "swap"
SWAP_USDT_CONTRACT = "swap-usdt"

HBDM = "hbdm.com"
HBDM_SWAP = "hbdm.com_swap"
HUOBI_PRO = "huobi.pro"


class TradeStatus(IntEnum):
    UNFINISH = 0
    PART_FINISH = 1
    FINISH = 2
    CANCEL = 3
    REJECT = 4
    CANCEL_ING = 5
    FAIL = 6


class TradeSide(IntEnum):
    BUY = 1
    SELL = 2
    BUY_MARKET = 3
    SELL_MARKET = 4


class OpenType(IntEnum):
    OPEN_BUY = 1
    OPEN_SELL = 2
    CLOSE_BUY = 3
    CLOSE_SELL = 4


class KlinePeriod(IntEnum):
    MIN_1 = 1
    MIN_3 = 2
    MIN_5 = 3
    MIN_15 = 4
    MIN_30 = 5
    MIN_60 = 6
    H_1 = 7
    H_2 = 8
    H_4 = 9
    H_6 = 10
    H_8 = 11
    H_12 = 12
    DAY_1 = 13
    DAY_3 = 14
    WEEK_1 = 15
    MONTH_1 = 16
    YEAR_1 = 17


class LimitOrderOption(IntEnum):
    POST_ONLY = 1
    IOC = 2
    FOK = 3


class AccountType(str, Enum):
    SPOT = "spot"
    SPOT_MARGIN = "spot_margin"
    FUTURE = "future"
    SWAP = "swap"
    SWAP_USDT = "swap_usdt"
    SUB_ACCOUNT = "sub_account"


@dataclass(kw_only=True)
class APIConfig:
    endpoint: str = ""
    api_key: str = ""
    api_secret_key: str = ""
    api_passphrase: str = ""
    lever: float = 0.0


@dataclass
class DepthRecord:
    price: float
    amount: float


@dataclass(kw_only=True)
class Depth:
    pair: CurrencyPair = UNKNOWN_PAIR
    contract_type: str = ""
    contract_id: str = ""
    utime: Optional[datetime] = None
    ask_list: list[DepthRecord] = field(default_factory=list)
    bid_list: list[DepthRecord] = field(default_factory=list)


@dataclass(kw_only=True)
class Ticker:
    pair: CurrencyPair = UNKNOWN_PAIR
    last: float = 0.0
    buy: float = 0.0
    sell: float = 0.0
    high: float = 0.0
    low: float = 0.0
    vol: float = 0.0
    date: int = 0


@dataclass(kw_only=True)
class FutureTicker(Ticker):
    contract_type: str = ""
    contract_id: int = 0
    limit_high: float = 0.0
    limit_low: float = 0.0
    hold_amount: float = 0.0
    unit_amount: float = 0.0


@dataclass(kw_only=True)
class Trade:
    tid: int = 0
    type: Optional[TradeSide] = None
    amount: float = 0.0
    price: float = 0.0
    date: int = 0
    pair: CurrencyPair = UNKNOWN_PAIR


@dataclass(kw_only=True)
class Kline:
    pair: CurrencyPair = UNKNOWN_PAIR
    timestamp: int = 0
    open: float = 0.0
    close: float = 0.0
    high: float = 0.0
    low: float = 0.0
    vol: float = 0.0


@dataclass(kw_only=True)
class FutureKline(Kline):
    vol2: float = 0.0


@dataclass(kw_only=True)
class Order:
    price: float = 0.0
    amount: float = 0.0
    avg_price: float = 0.0
    deal_amount: float = 0.0
    fee: float = 0.0
    cid: str = ""
    order_id: int = 0
    order_id2: str = ""
    order_time: int = 0
    status: TradeStatus = TradeStatus.UNFINISH
    currency: CurrencyPair = UNKNOWN_PAIR
    side: Optional[TradeSide] = None
    type: str = ""


@dataclass(kw_only=True)
class FutureOrder:
    client_oid: str = ""
    order_id2: str = ""
    price: float = 0.0
    amount: float = 0.0
    avg_price: float = 0.0
    deal_amount: float = 0.0
    order_id: int = 0
    order_time: int = 0
    status: TradeStatus = TradeStatus.UNFINISH
    currency: CurrencyPair = UNKNOWN_PAIR
    o_type: Optional[OpenType] = None
    lever_rate: float = 0.0
    fee: float = 0.0
    contract_name: str = ""


@dataclass(kw_only=True)
class SubAccount:
    currency: Currency = UNKNOWN
    amount: float = 0.0
    frozen_amount: float = 0.0
    loan_amount: float = 0.0


@dataclass(kw_only=True)
class Account:
    exchange: str = ""
    asset: float = 0.0
    net_asset: float = 0.0
    sub_accounts: dict[Currency, SubAccount] = field(default_factory=dict)


@dataclass(kw_only=True)
class FutureSubAccount:
    currency: Currency = UNKNOWN
    account_rights: float = 0.0
    keep_deposit: float = 0.0
    profit_real: float = 0.0
    profit_unreal: float = 0.0
    risk_rate: float = 0.0


@dataclass(kw_only=True)
class FutureAccount:
    future_sub_accounts: dict[Currency, FutureSubAccount] = field(default_factory=dict)


@dataclass(kw_only=True)
class FuturePosition:
    buy_amount: float = 0.0
    buy_available: float = 0.0
    buy_price_avg: float = 0.0
    buy_price_cost: float = 0.0
    buy_profit_real: float = 0.0
    buy_profit: float = 0.0
    create_date: int = 0
    lever_rate: float = 0.0
    sell_amount: float = 0.0
    sell_available: float = 0.0
    sell_price_avg: float = 0.0
    sell_price_cost: float = 0.0
    sell_profit_real: float = 0.0
    sell_profit: float = 0.0
    symbol: CurrencyPair = UNKNOWN_PAIR
    contract_type: str = ""
    contract_id: int = 0
    force_liqu_price: float = 0.0


@dataclass(kw_only=True)
class ContractInfo:
    instrument_id: str = ""
    underlying_index: str = ""
    quote_currency: str = ""
    price_tick_size: float = 0.0
    amount_tick_size: float = 0.0
    contract_val: float = 0.0
    delivery: str = ""
    contract_type: str = ""


@dataclass(kw_only=True)
class TransferParameter:
    currency: str
    from_: AccountType
    to: AccountType
    amount: float


_DIRECTIONS = {
    "buy": TradeSide.BUY,
    "sell": TradeSide.SELL,
    "buy_market": TradeSide.BUY_MARKET,
    "sell_market": TradeSide.SELL_MARKET,
}


def trade_side_from_direction(direction: str) -> TradeSide:
    """Map an exchange direction such as 'buy' or 'SELL' to a TradeSide."""
    key = direction.lower().replace("-", "_")
    try:
        return _DIRECTIONS[key]
    except KeyError:
        raise ValueError(f"unknown trade direction: {direction!r}") from None