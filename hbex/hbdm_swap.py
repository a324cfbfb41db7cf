"""Client for the coin-margined perpetual swap REST API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import requests

from hbex import logger
from hbex.hbdm import (
    Hbdm,
    adapt_open_type,
    adapt_order_status,
    open_type_from_offset_direction,
)
from hbex.models import (
    BTC_USD,
    BTC_USDT,
    HBDM_SWAP,
    SWAP_CONTRACT,
    APIConfig,
    Currency,
    CurrencyPair,
    Depth,
    DepthRecord,
    ExchangeError,
    FutureAccount,
    FutureOrder,
    FuturePosition,
    FutureSubAccount,
    LimitOrderOption,
    OpenType,
    Ticker,
)
from hbex.transport import http_get_json, to_float, to_int

import time

TICKER_PATH = "/swap-ex/market/detail/merged"
DEPTH_PATH = "/swap-ex/market/depth"
ACCOUNT_PATH = "/swap-api/v1/swap_account_info"
PLACE_ORDER_PATH = "/swap-api/v1/swap_order"
POSITION_PATH = "/swap-api/v1/swap_position_info"
CANCEL_ORDER_PATH = "/swap-api/v1/swap_cancel"
OPEN_ORDERS_PATH = "/swap-api/v1/swap_openorders"
ORDER_INFO_PATH = "/swap-api/v1/swap_order_info"
HISTORY_ORDERS_PATH = "/swap-api/v1/swap_hisorders_exact"

DEFAULT_LEVER = 10.0
_MARKET_LEVER = 10.0


def _from_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def _param_text(value: Any) -> str:
    """Render an extra query parameter; whole floats lose their '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _records(levels: list, size: int) -> list[DepthRecord]:
    return [
        DepthRecord(to_float(level[0]), to_float(level[1])) for level in levels[:size]
    ]


class HbdmSwap:
    """Perpetual swap client built on the delivery-futures client's signing."""

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        config = config if config is not None else APIConfig()
        if config.lever <= 0:
            config.lever = DEFAULT_LEVER
        self.base = Hbdm(config, session)
        self.config = self.base.config
        self.session = self.base.session

    def exchange_name(self) -> str:
        return HBDM_SWAP

    def get_future_ticker(self, pair: CurrencyPair, contract_type: str) -> Ticker:
        url = (
            f"{self.config.endpoint}{TICKER_PATH}"
            f"?contract_code={pair.to_symbol('-')}"
        )
        response = http_get_json(self.session, url)
        logger.debug(f"response body: {response}")
        if response.get("status") != "ok":
            raise ExchangeError(str(response))
        tick = response.get("tick") or {}
        bid = tick.get("bid") or []
        ask = tick.get("ask") or []
        if not bid or not ask:
            raise ExchangeError("no tick data")
        return Ticker(
            pair=pair,
            last=0.0,
            buy=to_float(bid[0]),
            sell=to_float(ask[0]),
            high=to_float(tick.get("high")),
            low=to_float(tick.get("low")),
            vol=to_float(tick.get("vol")),
            date=to_int(tick.get("ts")),
        )

    def get_future_depth(
        self, pair: CurrencyPair, contract_type: str, size: int
    ) -> Depth:
        """Return at most size levels per side; asks by falling price."""
        step = 6 if size <= 20 else 0
        url = (
            f"{self.config.endpoint}{DEPTH_PATH}"
            f"?contract_code={pair.to_symbol('-')}&type=step{step}"
        )
        response = http_get_json(self.session, url)
        logger.debug(f"response body: {response}")
        if response.get("status") != "ok":
            raise ExchangeError(str(response))
        tick = response.get("tick") or {}
        ask_list = _records(tick.get("asks") or [], size)
        ask_list.sort(key=lambda record: record.price, reverse=True)
        return Depth(
            pair=pair,
            contract_type=contract_type,
            utime=_from_millis(to_int(response.get("ts"))),
            bid_list=_records(tick.get("bids") or [], size),
            ask_list=ask_list,
        )

    def get_future_userinfo(self, *args) -> FutureAccount:
        """Return margin accounts; an optional first pair narrows the query."""
        params: dict[str, str] = {}
        if args:
            params["contract_code"] = args[0].to_symbol("-")
        data = self.base.request(ACCOUNT_PATH, params)
        account = FutureAccount()
        for item in data or []:
            currency = Currency(item.get("symbol", ""))
            account.future_sub_accounts[currency] = FutureSubAccount(
                currency=currency,
                account_rights=to_float(item.get("margin_balance")),
                keep_deposit=to_float(item.get("margin_position")),
                profit_real=to_float(item.get("profit_real")),
                profit_unreal=to_float(item.get("profit_unreal")),
                risk_rate=to_float(item.get("risk_rate")),
            )
        return account

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
        """Place an order and return its id; match_price 1 uses the opponent price."""
        direction, offset = adapt_open_type(open_type)
        logger.info(direction, offset)
        params = {
            "contract_code": pair.to_symbol("-"),
            "client_order_id": str(time.time_ns()),
            "price": price,
            "volume": amount,
            "lever_rate": f"{float(lever_rate):.0f}",
            "direction": direction,
            "offset": offset,
            "order_price_type": "opponent" if match_price == 1 else "limit",
        }
        data = self.base.request(PLACE_ORDER_PATH, params)
        return str((data or {}).get("order_id_str", ""))

    def limit_futures_order(
        self,
        pair: CurrencyPair,
        contract_type: str,
        price: str,
        amount: str,
        open_type: OpenType,
        option: Optional[LimitOrderOption] = None,
    ) -> FutureOrder:
        order_id = self.place_future_order(
            pair, contract_type, price, amount, open_type, 0, self.config.lever
        )
        return FutureOrder(
            currency=pair,
            order_id2=order_id,
            amount=to_float(amount),
            price=to_float(price),
            o_type=open_type,
            contract_name=contract_type,
        )

    def market_futures_order(
        self, pair: CurrencyPair, contract_type: str, amount: str, open_type: OpenType
    ) -> FutureOrder:
        order_id = self.place_future_order(
            pair, contract_type, "", amount, open_type, 1, _MARKET_LEVER
        )
        return FutureOrder(
            currency=pair,
            order_id2=order_id,
            amount=to_float(amount),
            o_type=open_type,
            contract_name=contract_type,
        )

    def future_cancel_order(
        self, pair: CurrencyPair, contract_type: str, order_id: str
    ) -> bool:
        """Cancel an order; raises ExchangeError with the exchange's message."""
        data = self.base.request(
            CANCEL_ORDER_PATH,
            {"order_id": order_id, "contract_code": pair.to_symbol("-")},
        )
        errors = (data or {}).get("errors") or []
        if errors:
            raise ExchangeError(errors[0].get("err_msg", ""))
        return True

    def get_future_position(
        self, pair: CurrencyPair, contract_type: str
    ) -> list[FuturePosition]:
        """Return one position per contract code, long and short merged."""
        data = self.base.request(
            POSITION_PATH, {"contract_code": pair.to_symbol("-")}
        )
        positions: dict[str, FuturePosition] = {}
        for item in data or []:
            code = item.get("contract_code", "")
            position = positions.setdefault(code, FuturePosition())
            side = item.get("direction")
            if side not in ("buy", "sell"):
                continue
            position.contract_type = code
            position.symbol = CurrencyPair.parse(code, "-")
            values = {
                "amount": to_float(item.get("volume")),
                "available": to_float(item.get("available")),
                "price_avg": to_float(item.get("cost_open")),
                "price_cost": to_float(item.get("cost_hold")),
                "profit_real": to_float(item.get("profit_rate")),
                "profit": to_float(item.get("profit")),
            }
            for name, value in values.items():
                setattr(position, f"{side}_{name}", value)
        return list(positions.values())

    def get_future_order(
        self, order_id: str, pair: CurrencyPair, contract_type: str
    ) -> FutureOrder:
        data = self.base.request(
            ORDER_INFO_PATH,
            {"contract_code": pair.to_symbol("-"), "order_id": order_id},
        )
        if not data:
            raise ExchangeError("not found")
        info = data[0]
        found_id = to_int(info.get("order_id"))
        return FutureOrder(
            currency=pair,
            client_oid=str(to_int(info.get("client_order_id"))),
            order_id2=str(found_id),
            price=to_float(info.get("price")),
            amount=to_float(info.get("volume")),
            avg_price=to_float(info.get("trade_avg_price")),
            deal_amount=to_float(info.get("trade_volume")),
            order_id=found_id,
            status=adapt_order_status(to_int(info.get("status"))),
            o_type=open_type_from_offset_direction(
                info.get("offset", ""), info.get("direction", "")
            ),
            lever_rate=to_float(info.get("lever_rate")),
            fee=to_float(info.get("fee")),
            contract_name=info.get("contract_code", ""),
            order_time=to_int(info.get("created_at")),
        )

    def get_future_order_history(
        self, pair: CurrencyPair, contract_type: str, **kwargs
    ) -> list[FutureOrder]:
        """Return historical orders; keyword arguments are extra query parameters."""
        if contract_type not in ("", SWAP_CONTRACT):
            raise ExchangeError("contract type is error")
        params = {
            "status": "0",
            "type": "1",
            "trade_type": "0",
            "contract_code": pair.adapt_usdt_to_usd().to_symbol("-"),
        }
        params.update({key: _param_text(value) for key, value in kwargs.items()})
        data = self.base.request(HISTORY_ORDERS_PATH, params)
        orders = []
        for info in (data or {}).get("orders") or []:
            order_id = to_int(info.get("order_id"))
            orders.append(
                FutureOrder(
                    order_id=order_id,
                    order_id2=str(order_id),
                    price=to_float(info.get("price")),
                    amount=to_float(info.get("volume")),
                    avg_price=to_float(info.get("trade_avg_price")),
                    deal_amount=to_float(info.get("trade_volume")),
                    order_time=to_int(info.get("create_date")),
                    status=adapt_order_status(to_int(info.get("status"))),
                    currency=pair,
                    o_type=open_type_from_offset_direction(
                        info.get("offset", ""), info.get("direction", "")
                    ),
                    lever_rate=to_float(info.get("lever_rate")),
                    fee=to_float(info.get("fee")),
                    contract_name=info.get("contract_code", ""),
                )
            )
        return orders

    def get_unfinish_future_orders(
        self, pair: CurrencyPair, contract_type: str
    ) -> list[FutureOrder]:
        data = self.base.request(
            OPEN_ORDERS_PATH,
            {"contract_code": pair.to_symbol("-"), "page_size": "50"},
        )
        orders = []
        for info in (data or {}).get("orders") or []:
            order_id = to_int(info.get("order_id"))
            orders.append(
                FutureOrder(
                    currency=pair,
                    client_oid=str(to_int(info.get("client_order_id"))),
                    order_id2=str(order_id),
                    price=to_float(info.get("price")),
                    amount=to_float(info.get("volume")),
                    avg_price=to_float(info.get("trade_avg_price")),
                    deal_amount=to_float(info.get("trade_volume")),
                    order_id=order_id,
                    status=adapt_order_status(to_int(info.get("status"))),
                    o_type=open_type_from_offset_direction(
                        info.get("offset", ""), info.get("direction", "")
                    ),
                    lever_rate=to_float(info.get("lever_rate")),
                    fee=to_float(info.get("fee")),
                    order_time=to_int(info.get("created_at")),
                )
            )
        return orders

    def get_contract_value(self, pair: CurrencyPair) -> float:
        return 100.0 if pair in (BTC_USD, BTC_USDT) else 0.0