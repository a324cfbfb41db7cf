# hbex

A Python client for Huobi derivatives markets. It provides REST clients for
delivery futures (HBDM) and coin-margined perpetual swaps, plus message
handlers that build subscriptions and decode websocket market data for
delivery futures, perpetual swaps (coin- and USDT-margined) and spot markets.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Modules

| Module | Contents |
| --- | --- |
| `hbex.models` | Data types such as `Currency`, `CurrencyPair`, `Ticker`, `FutureTicker`, `Depth`, `Trade`, `FutureKline`, `FutureOrder`, `FuturePosition`, `FutureAccount`, `ContractInfo` and `APIConfig`; the enums `TradeStatus`, `TradeSide`, `OpenType`, `KlinePeriod`, `LimitOrderOption` and `AccountType`; the error type `ExchangeError` |
| `hbex.transport` | Request signing (`sign_params`, `hmac_sha256_base64`), conversion helpers (`to_float`, `to_int`, `float_to_string`), `generate_client_id`, `gzip_decompress`, `http_get_json` and `http_post_json` |
| `hbex.parser` | `parse_depth` and `parse_spot_ws_pair` |
| `hbex.hbdm` | `Hbdm`: delivery-futures REST client |
| `hbex.hbdm_swap` | `HbdmSwap`: perpetual-swap REST client |
| `hbex.hbdm_ws` | `HbdmWs`: delivery-futures websocket handler |
| `hbex.hbdm_swap_ws` | `HbdmSwapWs`: perpetual-swap websocket handler |
| `hbex.spot_ws` | `SpotWs`: spot websocket handler |
| `hbex.logger` | A small levelled logger |

## Market data

```python
import requests
from hbex.hbdm import Hbdm
from hbex.hbdm_swap import HbdmSwap
from hbex.models import APIConfig, CurrencyPair, KlinePeriod

session = requests.Session()
btc_usd = CurrencyPair.parse("BTC_USD")

futures = Hbdm(APIConfig(endpoint="https://api.hbdm.com"), session)
print(futures.get_future_ticker(btc_usd, "quarter"))
print(futures.get_future_depth(btc_usd, "quarter", 0))
print(futures.get_kline_records("quarter", btc_usd, KlinePeriod.MIN_1, 20))

swap = HbdmSwap(APIConfig(endpoint="https://api.hbdm.com"), session)
print(swap.get_future_depth(btc_usd, "swap", 5))
```

`Hbdm` uses the endpoint `https://api.hbdm.com` and a lever of 10 when the
configuration leaves them unset. `Hbdm.load_contract_infos()` fetches contract
price ticks, which `format_price_size` then uses to round order prices; without
them prices are sent with two decimals.

## Trading

Signed requests need an access key and a secret key:

```python
from hbex.models import OpenType

config = APIConfig(
    endpoint="https://api.hbdm.com",
    api_key="placeholder",
    api_secret_key="secret",
    lever=5,
)
swap = HbdmSwap(config, session)
order = swap.limit_futures_order(
    CurrencyPair.parse("DOT_USD"), "swap", "6.5", "1", OpenType.OPEN_SELL, None,
)
swap.future_cancel_order(order.currency, "swap", order.order_id2)
```

When the exchange rejects a request or the HTTP status is not 200, the clients
raise `ExchangeError` with the exchange's code and message.

## Websockets

The websocket classes do not open connections. Pass a `send` callable that
writes a text frame to your socket, register callbacks, then call the
`subscribe_*` methods; each sends a JSON subscription through `send`. Give
every received frame, gzip-compressed bytes or text, to `handle`: heartbeat
pings are answered with a pong through `send`, and market messages are decoded
and passed to the matching callback. Subscribing without the matching callback
raises `ExchangeError`.

```python
from hbex.hbdm_swap_ws import HbdmSwapWs

ws = HbdmSwapWs(send=my_socket.send, linear=False)
ws.set_callbacks(print, print, lambda trade, contract: print(contract, trade))
ws.subscribe_trade(CurrencyPair.parse("BTC_USD"), "swap")
for frame in my_socket:
    ws.handle(frame)
```

`HbdmWs(send, contract_infos)` does the same for delivery futures and fills in
each depth update's `contract_id` from the given `ContractInfo` list.
`SpotWs(send)` handles spot tickers and depth.

## Logging

`hbex.logger` writes timestamped lines to standard error. On import it reads
`HBEX_LOG_LEVEL` (`debug`, `info`, `warn`, `error`, `fatal`, `panic`, lower or
upper case; `error` otherwise) and `HBEX_LOG_FILE` (a file to write to instead).
`set_level` and `set_out` change these at run time.

## What the package does not do

There is no REST client for spot trading or spot account balances, and no
support for transfers between spot, futures and swap accounts; spot markets are
covered only through `SpotWs` message handling. The package has no websocket
transport of its own and no command-line tool.

## Running the tests

```
pytest
```