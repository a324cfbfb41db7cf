"""Client for the delivery-futures (contract) REST API."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlencode

import requests

from hbex import logger
from hbex.models import (
    BI_QUARTER_CONTRACT,
    BTC,
    HBDM,
    NEXT_WEEK_CONTRACT,
    QUARTER_CONTRACT,
    THIS_WEEK_CONTRACT,
    APIConfig,
    ContractInfo,
    Currency,
    CurrencyPair,
    Depth,
    DepthRecord,
    ExchangeError,
    FutureAccount,
    FutureKline,
    FutureOrder,
    FuturePosition,
    FutureSubAccount,
    KlinePeriod,
    LimitOrderOption,
    OpenType,
    Ticker,
    TradeStatus,
)
from hbex.transport import (
    float_to_string,
    http_get_json,
    http_post_json,
    sign_params,
    to_float,
    to_int,
)

DEFAULT_ENDPOINT = "https://api.hbdm.com"
CONTRACT_INFO_URL = "http://api.hbdm.pro/api/v1/contract_contract_info"
DEFAULT_LEVER = 10.0

_POST_HEADERS = {"Content-Type": "application/json", "Accept-Language": "zh-cn"}

_OPEN_TYPES = {
    OpenType.OPEN_BUY: ("buy", "open"),
    OpenType.OPEN_SELL: ("sell", "open"),
    OpenType.CLOSE_SELL: ("buy", "close"),
    OpenType.CLOSE_BUY: ("sell", "close"),
}

_ORDER_STATUSES = {
    3: TradeStatus.UNFINISH,
    4: TradeStatus.PART_FINISH,
    5: TradeStatus.FINISH,
    6: TradeStatus.FINISH,
    7: TradeStatus.CANCEL,
}

_KLINE_PERIODS = {
    KlinePeriod.MIN_1: "1min",
    KlinePeriod.MIN_5: "5min",
    KlinePeriod.MIN_15: "15min",
    KlinePeriod.MIN_30: "30min",
    KlinePeriod.MIN_60: "60min",
    KlinePeriod.H_1: "1h",
    KlinePeriod.H_4: "4h",
    KlinePeriod.DAY_1: "1day",
    KlinePeriod.WEEK_1: "1week",
    KlinePeriod.MONTH_1: "1mon",
}

_CONTRACT_SUFFIXES = {
    THIS_WEEK_CONTRACT: "CW",
    NEXT_WEEK_CONTRACT: "NW",
    QUARTER_CONTRACT: "CQ",
}

_ORDER_PRICE_TYPES = {
    LimitOrderOption.FOK: "fok",
    LimitOrderOption.IOC: "ioc",
    LimitOrderOption.POST_ONLY: "post_only",
}


def adapt_open_type(open_type: OpenType) -> tuple[str, str]:
    """Return the (direction, offset) pair for an open type; empty strings if unknown."""
    return _OPEN_TYPES.get(open_type, ("", ""))


def open_type_from_offset_direction(offset: str, direction: str) -> OpenType:
    """Map the exchange's offset and direction back to an OpenType."""
    if offset == "close":
        return OpenType.CLOSE_SELL if direction == "buy" else OpenType.CLOSE_BUY
    return OpenType.OPEN_BUY if direction == "buy" else OpenType.OPEN_SELL


def adapt_order_status(status: int) -> TradeStatus:
    """Map a numeric order status to a TradeStatus (unknown codes: UNFINISH)."""
    return _ORDER_STATUSES.get(status, TradeStatus.UNFINISH)


def adapt_kline_period(period: KlinePeriod) -> str:
    """Return the exchange's name for a kline period, '1day' if unsupported."""
    return _KLINE_PERIODS.get(period, "1day")


def _number_text(value: Any) -> str:
    """Render a number in its shortest form: 20.0 becomes '20'."""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def _from_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def _order_from_info(
    info: dict, pair: CurrencyPair, contract_name: str, order_time: int = 0
) -> FutureOrder:
    order_id = to_int(info.get("order_id"))
    return FutureOrder(
        contract_name=contract_name,
        currency=pair,
        o_type=open_type_from_offset_direction(
            info.get("offset", ""), info.get("direction", "")
        ),
        order_id2=str(order_id),
        order_id=order_id,
        amount=to_float(info.get("volume")),
        price=to_float(info.get("price")),
        avg_price=to_float(info.get("trade_avg_price")),
        deal_amount=to_float(info.get("trade_volume")),
        status=adapt_order_status(to_int(info.get("status"))),
        fee=to_float(info.get("fee")),
        lever_rate=to_float(info.get("lever_rate")),
        order_time=order_time,
    )


class Hbdm:
    """Delivery-futures client: market data, account, positions and orders."""

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config if config is not None else APIConfig()
        if not self.config.endpoint:
            self.config.endpoint = DEFAULT_ENDPOINT
        if self.config.lever <= 0:
            self.config.lever = DEFAULT_LEVER
        self.session = session if session is not None else requests.Session()
        self.contract_infos: list[ContractInfo] = []

    def exchange_name(self) -> str:
        return HBDM

    def load_contract_infos(self) -> list[ContractInfo]:
        """Fetch contract sizes and price ticks and keep them for price formatting."""
        response = http_get_json(self.session, CONTRACT_INFO_URL)
        self.contract_infos = [
            ContractInfo(
                instrument_id=item.get("contract_code", ""),
                underlying_index=item.get("symbol", ""),
                price_tick_size=to_float(item.get("price_tick")),
                contract_val=to_float(item.get("contract_size")),
                delivery=item.get("delivery_date", ""),
                contract_type=item.get("contract_type", ""),
            )
            for item in response.get("data") or []
        ]
        logger.info("[hbdm] Get Futures Tick Size Finished.")
        return self.contract_infos

    def adapt_symbol(self, pair: CurrencyPair, contract_type: str) -> str:
        """Return the market symbol, e.g. 'BTC_CQ' for the quarter contract."""
        return f"{pair.currency_a.symbol}_{_CONTRACT_SUFFIXES.get(contract_type, '')}"

    def format_price_size(self, contract: str, currency: Currency, price: str) -> str:
        """Format price to the contract's tick precision (two decimals if unknown)."""
        decimals = 2
        for info in self.contract_infos:
            if (
                contract in (info.contract_type, info.instrument_id)
                and info.underlying_index == currency.symbol
            ):
                if info.price_tick_size != 0:
                    decimals = 0
                    tick = info.price_tick_size
                    while tick < 1:
                        decimals += 1
                        tick *= 10
                break
        return float_to_string(to_float(price), decimals)

    def request(self, path: str, params: dict[str, str]) -> Any:
        """Send a signed POST and return the response's data field."""
        signed = sign_params(
            "POST",
            self.config.endpoint,
            path,
            params,
            self.config.api_key,
            self.config.api_secret_key,
        )
        url = f"{self.config.endpoint}{path}?{urlencode(sorted(signed.items()))}"
        body = http_post_json(self.session, url, json.dumps(signed), _POST_HEADERS)
        logger.debug(f"response body: {body.decode(errors='replace')}")
        try:
            response = json.loads(body)
        except ValueError as exc:
            raise ExchangeError(f"invalid json response: {body!r}") from exc
        if response.get("status") != "ok":
            raise ExchangeError(
                f"{to_int(response.get('err_code'))}:[{response.get('err_msg', '')}]"
            )
        return response.get("data")

    def get_future_userinfo(self, *args) -> FutureAccount:
        """Return the margin accounts of every currency; arguments are ignored."""
        data = self.request("/api/v1/contract_account_info", {})
        account = FutureAccount()
        for sub in data or []:
            currency = Currency(sub.get("symbol", ""))
            account.future_sub_accounts[currency] = FutureSubAccount(
                currency=currency,
                account_rights=to_float(sub.get("margin_balance")),
                keep_deposit=to_float(sub.get("margin_position")),
                profit_real=to_float(sub.get("profit_real")),
                profit_unreal=to_float(sub.get("profit_unreal")),
                risk_rate=to_float(sub.get("risk_rate")),
            )
        return account

    def get_future_position(
        self, pair: CurrencyPair, contract_type: str
    ) -> list[FuturePosition]:
        """Return open positions of one contract type, long and short merged."""
        data = self.request(
            "/api/v1/contract_position_info", {"symbol": pair.currency_a.symbol}
        )
        positions: dict[str, FuturePosition] = {}
        for item in data or []:
            item_type = item.get("contract_type", "")
            if item_type == "next_quarter":
                item_type = BI_QUARTER_CONTRACT
            if item_type != contract_type:
                continue
            code = item.get("contract_code", "")
            position = positions.setdefault(code, FuturePosition())
            position.contract_type = item_type
            position.contract_id = to_int(code[3:])
            position.symbol = pair
            side = item.get("direction")
            if side not in ("buy", "sell"):
                continue
            values = {
                "amount": to_float(item.get("volume")),
                "available": to_float(item.get("available")),
                "price_avg": to_float(item.get("cost_open")),
                "price_cost": to_float(item.get("cost_hold")),
                "profit": to_float(item.get("profit")),
                "profit_real": to_float(item.get("profit_rate")),
            }
            for name, value in values.items():
                setattr(position, f"{side}_{name}", value)
            position.lever_rate = to_float(item.get("lever_rate"))
        return [p for p in positions.values() if p.buy_amount > 0 or p.sell_amount > 0]

    def place_future_order(
        self,
        pair: CurrencyPair,
        contract_type: str,
        price: str,
        amount: str,
        open_type: OpenType,
        match_price: int,
        lever_rate: float,
    ) -> str:
        """Place an order and return its id."""
        order = self.place_future_order2(
            pair, contract_type, price, amount, open_type, match_price, lever_rate
        )
        return order.order_id2

    def place_future_order2(
        self,
        pair: CurrencyPair,
        contract_type: str,
        price: str,
        amount: str,
        open_type: OpenType,
        match_price: int,
        lever_rate: float,
        option: Optional[LimitOrderOption] = None,
    ) -> FutureOrder:
        """Place an order; match_price 1 trades at the opponent's price."""
        params = {
            "client_order_id": str(time.time_ns()),
            "contract_type": contract_type,
            "symbol": pair.currency_a.symbol,
            "volume": amount,
            "lever_rate": _number_text(float(lever_rate)),
            "contract_code": "",
        }
        if match_price == 1:
            params["order_price_type"] = "opponent"
        else:
            params["order_price_type"] = _ORDER_PRICE_TYPES.get(option, "limit")
            params["price"] = self.format_price_size(
                contract_type, pair.currency_a, price
            )
        direction, offset = adapt_open_type(open_type)
        params["offset"] = offset
        params["direction"] = direction

        data = self.request("/api/v1/contract_order", params)
        return FutureOrder(
            client_oid=params["client_order_id"],
            contract_name=contract_type,
            currency=pair,
            price=to_float(price),
            amount=to_float(amount),
            o_type=open_type,
            order_id2=str(to_int((data or {}).get("order_id"))),
        )

    def limit_futures_order(
        self,
        pair: CurrencyPair,
        contract_type: str,
        price: str,
        amount: str,
        open_type: OpenType,
        option: Optional[LimitOrderOption] = None,
    ) -> FutureOrder:
        return self.place_future_order2(
            pair, contract_type, price, amount, open_type, 0, self.config.lever, option
        )

    def market_futures_order(
        self, pair: CurrencyPair, contract_type: str, amount: str, open_type: OpenType
    ) -> FutureOrder:
        return self.place_future_order2(
            pair, contract_type, "0", amount, open_type, 1, self.config.lever
        )

    def future_cancel_order(
        self, pair: CurrencyPair, contract_type: str, order_id: str
    ) -> bool:
        """Cancel an order; raises ExchangeError if the exchange refuses."""
        data = self.request(
            "/api/v1/contract_cancel",
            {"order_id": order_id, "symbol": pair.currency_a.symbol},
        )
        errors = (data or {}).get("errors") or []
        if errors:
            first = errors[0]
            raise ExchangeError(
                f"{to_int(first.get('err_code'))}:[{first.get('err_msg', '')}]"
            )
        return True

    def get_unfinish_future_orders(
        self, pair: CurrencyPair, contract_type: str
    ) -> list[FutureOrder]:
        data = self.request(
            "/api/v1/contract_openorders", {"symbol": pair.currency_a.symbol}
        )
        return [
            _order_from_info(info, pair, contract_type)
            for info in (data or {}).get("orders") or []
        ]

    def get_future_order(
        self, order_id: str, pair: CurrencyPair, contract_type: str
    ) -> FutureOrder:
        orders = self.get_future_orders([order_id], pair, contract_type)
        if len(orders) == 1:
            return orders[0]
        raise ExchangeError("not found order")

    def get_future_orders(
        self, order_ids: list[str], pair: CurrencyPair, contract_type: str
    ) -> list[FutureOrder]:
        data = self.request(
            "/api/v1/contract_order_info",
            {"order_id": ",".join(order_ids), "symbol": pair.currency_a.symbol},
        )
        return [_order_from_info(info, pair, contract_type) for info in data or []]

    def get_future_order_history(
        self, pair: CurrencyPair, contract_type: str, **kwargs
    ) -> list[FutureOrder]:
        """Return finished orders; keyword arguments are extra query parameters."""
        params = {
            "symbol": pair.currency_a.symbol,
            "type": "1",
            "trade_type": "0",
            "status": "0",
            "size": "50",
        }
        params.update({key: _number_text(value) for key, value in kwargs.items()})
        data = self.request("/api/v1/contract_hisorders_exact", params)
        return [
            _order_from_info(
                info,
                pair,
                info.get("contract_type", ""),
                to_int(info.get("create_date")),
            )
            for info in (data or {}).get("orders") or []
        ]

    def get_contract_value(self, pair: CurrencyPair) -> float:
        return 100.0 if pair.currency_a == BTC else 10.0

    def get_future_estimated_price(self, pair: CurrencyPair) -> float:
        response = http_get_json(
            self.session,
            f"{self.config.endpoint}/api/v1/contract_delivery_price"
            f"?symbol={pair.currency_a.symbol}",
        )
        if response.get("status") != "ok":
            raise ExchangeError(str(response))
        return to_float(response["data"]["delivery_price"])

    def get_future_ticker(self, pair: CurrencyPair, contract_type: str) -> Ticker:
        symbol = self.adapt_symbol(pair, contract_type)
        response = http_get_json(
            self.session,
            f"{self.config.endpoint}/market/detail/merged?symbol={symbol}",
        )
        if response.get("status") == "error":
            raise ExchangeError(response.get("err_msg", ""))
        tick = response.get("tick")
        if not isinstance(tick, dict):
            raise ExchangeError("no tick data")
        ask, bid = tick.get("ask"), tick.get("bid")
        if not isinstance(ask, list) or not isinstance(bid, list):
            raise ExchangeError("no tick data")
        return Ticker(
            pair=pair,
            last=to_float(tick.get("close")),
            vol=to_float(tick.get("amount")),
            low=to_float(tick.get("low")),
            high=to_float(tick.get("high")),
            sell=to_float(ask[0]),
            buy=to_float(bid[0]),
            date=to_int(response.get("ts")),
        )

    def get_future_depth(
        self, pair: CurrencyPair, contract_type: str, size: int
    ) -> Depth:
        """Return the full order book; asks by falling price."""
        symbol = self.adapt_symbol(pair, contract_type)
        response = http_get_json(
            self.session,
            f"{self.config.endpoint}/market/depth?type=step0&symbol={symbol}",
        )
        if response.get("status") == "error":
            raise ExchangeError(response.get("err_msg", ""))
        tick = response.get("tick")
        if not isinstance(tick, dict):
            raise ExchangeError("data error")
        asks, bids = tick.get("asks"), tick.get("bids")
        if not isinstance(asks, list) or not isinstance(bids, list):
            raise ExchangeError("data error")
        ask_list = [DepthRecord(to_float(a[0]), to_float(a[1])) for a in asks]
        ask_list.sort(key=lambda record: record.price, reverse=True)
        return Depth(
            pair=pair,
            contract_type=symbol,
            utime=_from_millis(to_int(response.get("ts"))),
            ask_list=ask_list,
            bid_list=[DepthRecord(to_float(b[0]), to_float(b[1])) for b in bids],
        )

    def get_future_index(self, pair: CurrencyPair) -> float:
        response = http_get_json(
            self.session,
            f"{self.config.endpoint}/api/v1/contract_index"
            f"?symbol={pair.currency_a.symbol}",
        )
        if response.get("status") != "ok":
            raise ExchangeError(str(response))
        return to_float(response["data"][0]["index_price"])

    def get_kline_records(
        self, contract_type: str, pair: CurrencyPair, period: KlinePeriod, size: int
    ) -> list[FutureKline]:
        """Return candles, oldest first."""
        symbol = self.adapt_symbol(pair, contract_type)
        url = (
            f"{self.config.endpoint}/market/history/kline"
            f"?symbol={symbol}&period={adapt_kline_period(period)}&size={size}"
        )
        response = http_get_json(self.session, url)
        if response.get("status") != "ok":
            raise ExchangeError(response.get("err_msg", ""))
        return [
            FutureKline(
                pair=pair,
                vol=to_float(item.get("vol")),
                open=to_float(item.get("open")),
                close=to_float(item.get("close")),
                high=to_float(item.get("high")),
                low=to_float(item.get("low")),
                timestamp=to_int(item.get("id")),
                vol2=to_float(item.get("vol")),
            )
            for item in reversed(response.get("data") or [])
        ]

    def get_delivery_time(self) -> tuple[int, int, int, int]:
        """Return (weekday, hour, minute, second) of contract delivery."""
        return 0, 4, 0, 0

    def get_fee(self) -> float:
        return 0.003