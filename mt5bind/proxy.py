"""
HTTP Proxy Client
=================

TerminalFacade over HTTP, for callers that cannot load the vendor module
(Linux/WSL, containers). Talks JSON to ``mt5bind.proxy_server`` (or any
service speaking the same routes).

Wire conventions:
- dates travel as epoch seconds, timeframes/flags/enums as integers
- records travel as objects with the terminal's native field names
- failures come back as ``{"code": <int>, "message": <str>}``; a negative
  code is re-raised as TerminalError (AuthFailedError on 401)
- transport errors and non-JSON bodies raise ProxyError

Usage:
    client = ProxyClient("http://winbox:8000")
    client.authenticate(config.credentials_from_env())
    bars = client.copy_rates_from_pos("EURUSD", Timeframe.H1, 0, 100)
"""

import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import requests

from . import config
from .enums import CopyTicksFlags, OrderType, ResultCode
from .errors import AuthFailedError, ProxyError, TerminalError
from .facade import DateLike, TerminalFacade, TimeframeLike, single_filter
from .marshal import timeframe_code, to_epoch_seconds
from .records import (
    AccountCredentials,
    AccountInfo,
    CheckResult,
    Deal,
    Order,
    Position,
    Record,
    SymbolInfo,
    SymbolRates,
    SymbolTick,
    TerminalInfo,
    TerminalVersion,
    TradeResult,
)
from .trade import TradeRequestBuilder

logger = logging.getLogger(__name__)


def _symbol_path(prefix: str, symbol: str, suffix: str = "") -> str:
    return f"{prefix}{quote(symbol, safe='')}{suffix}"


class ProxyClient(TerminalFacade):
    """
    Client for the terminal HTTP proxy.

    Args:
        base_url: Proxy root URL (defaults to MT5BIND_PROXY_URL)
        timeout: Per-request timeout in seconds (defaults to MT5BIND_REQUEST_TIMEOUT)
        session: requests.Session to reuse (pooled connections, custom adapters)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or config.PROXY_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self._http = session if session is not None else requests.Session()
        self.token: Optional[str] = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ProxyClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ═══════════════════════════════════════════════════════════════════════
    # TRANSPORT
    # ═══════════════════════════════════════════════════════════════════════

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one request and return the decoded JSON payload.

        Raises:
            ProxyError: transport failure, non-JSON body, or a non-2xx
                response without a terminal error code
            TerminalError: the proxy reported a negative terminal error code
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, path)

        try:
            response = self._http.request(
                method, url, params=params, json=body, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ProxyError(f"{method} {path} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ProxyError(
                f"{method} {path}: response is not JSON", response.status_code
            ) from e

        if response.ok:
            return payload

        code = payload.get("code") if isinstance(payload, dict) else None
        message = payload.get("message", response.reason) if isinstance(payload, dict) else response.reason
        if isinstance(code, int) and not isinstance(code, bool) and code < 0:
            error_cls = AuthFailedError if response.status_code == 401 else TerminalError
            raise error_cls(ResultCode.lookup(code), message)
        raise ProxyError(f"{method} {path}: HTTP {response.status_code}: {message}", response.status_code)

    def _get(self, path: str, **params: Any) -> Any:
        return self._request("GET", path, params=params or None)

    def _post(self, path: str, body: Dict[str, Any]) -> Any:
        return self._request("POST", path, body=body)

    @staticmethod
    def _field(payload: Any, name: str) -> Any:
        if not isinstance(payload, dict) or name not in payload:
            raise ProxyError(f"Malformed proxy response, expected '{name}': {payload!r}")
        return payload[name]

    @staticmethod
    def _records(cls, payload: Any) -> List[Record]:
        if not isinstance(payload, list):
            raise ProxyError(f"Malformed proxy response, expected a list: {payload!r}")
        return [cls.from_mapping(item) for item in payload]

    # ═══════════════════════════════════════════════════════════════════════
    # AUTHENTICATION
    # ═══════════════════════════════════════════════════════════════════════

    def authenticate(self, credentials: AccountCredentials) -> str:
        """
        Log the proxy's terminal into ``credentials``' account and keep the
        returned bearer token for subsequent requests.
        """
        payload = self._post("/security/login", credentials.to_dict())
        token = self._field(payload, "token")
        self.token = token
        self._http.headers["Authorization"] = f"Bearer {token}"
        logger.info("Authenticated with proxy %s as %s", self.base_url, credentials.login)
        return token

    # ═══════════════════════════════════════════════════════════════════════
    # TERMINAL & ACCOUNT
    # ═══════════════════════════════════════════════════════════════════════

    def account_info(self) -> AccountInfo:
        return AccountInfo.from_mapping(self._get("/account/"))

    def terminal_info(self) -> TerminalInfo:
        return TerminalInfo.from_mapping(self._get("/terminal/"))

    def version(self) -> TerminalVersion:
        return TerminalVersion.from_mapping(self._get("/terminal/version"))

    # ═══════════════════════════════════════════════════════════════════════
    # SYMBOLS
    # ═══════════════════════════════════════════════════════════════════════

    def symbols_total(self) -> int:
        return int(self._field(self._get("/symbols/total"), "total"))

    def symbols_get(self, group: Optional[str] = None) -> List[SymbolInfo]:
        return self._records(SymbolInfo, self._get("/symbols/", **single_filter(group=group)))

    def symbol_info(self, symbol: str) -> SymbolInfo:
        return SymbolInfo.from_mapping(self._get(_symbol_path("/symbols/", symbol)))

    def symbol_info_tick(self, symbol: str) -> SymbolTick:
        return SymbolTick.from_mapping(self._get(_symbol_path("/symbols/", symbol, "/tick")))

    def symbol_select(self, symbol: str, enable: Optional[bool] = None) -> bool:
        body = {} if enable is None else {"enable": bool(enable)}
        payload = self._post(_symbol_path("/symbols/", symbol, "/select"), body)
        return bool(self._field(payload, "selected"))

    # ═══════════════════════════════════════════════════════════════════════
    # MARKET DATA
    # ═══════════════════════════════════════════════════════════════════════

    def copy_rates_from(
        self, symbol: str, timeframe: TimeframeLike, date_from: DateLike, count: int
    ) -> List[SymbolRates]:
        payload = self._get(
            _symbol_path("/rates/", symbol, "/from"),
            timeframe=timeframe_code(timeframe),
            date_from=to_epoch_seconds(date_from),
            count=int(count),
        )
        return self._records(SymbolRates, payload)

    def copy_rates_from_pos(
        self, symbol: str, timeframe: TimeframeLike, start_pos: int, count: int
    ) -> List[SymbolRates]:
        payload = self._get(
            _symbol_path("/rates/", symbol, "/from-pos"),
            timeframe=timeframe_code(timeframe),
            start_pos=int(start_pos),
            count=int(count),
        )
        return self._records(SymbolRates, payload)

    def copy_rates_range(
        self, symbol: str, timeframe: TimeframeLike, date_from: DateLike, date_to: DateLike
    ) -> List[SymbolRates]:
        payload = self._get(
            _symbol_path("/rates/", symbol, "/range"),
            timeframe=timeframe_code(timeframe),
            date_from=to_epoch_seconds(date_from),
            date_to=to_epoch_seconds(date_to),
        )
        return self._records(SymbolRates, payload)

    def copy_ticks_from(
        self,
        symbol: str,
        date_from: DateLike,
        count: int,
        flags: Union[CopyTicksFlags, int],
    ) -> List[SymbolTick]:
        payload = self._get(
            _symbol_path("/ticks/", symbol, "/from"),
            date_from=to_epoch_seconds(date_from),
            count=int(count),
            flags=int(flags),
        )
        return self._records(SymbolTick, payload)

    def copy_ticks_range(
        self,
        symbol: str,
        date_from: DateLike,
        date_to: DateLike,
        flags: Union[CopyTicksFlags, int],
    ) -> List[SymbolTick]:
        payload = self._get(
            _symbol_path("/ticks/", symbol, "/range"),
            date_from=to_epoch_seconds(date_from),
            date_to=to_epoch_seconds(date_to),
            flags=int(flags),
        )
        return self._records(SymbolTick, payload)

    # ═══════════════════════════════════════════════════════════════════════
    # ORDERS & TRADING
    # ═══════════════════════════════════════════════════════════════════════

    def orders_total(self) -> int:
        return int(self._field(self._get("/orders/total"), "total"))

    def orders_get(
        self,
        symbol: Optional[str] = None,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
    ) -> List[Order]:
        params = single_filter(symbol=symbol, group=group, ticket=ticket)
        return self._records(Order, self._get("/orders/", **params))

    def order_calc_margin(
        self, action: Union[OrderType, int], symbol: str, volume: float, price: float
    ) -> float:
        payload = self._post(
            "/orders/calc-margin",
            {"action": int(action), "symbol": symbol, "volume": float(volume), "price": float(price)},
        )
        return float(self._field(payload, "margin"))

    def order_calc_profit(
        self,
        action: Union[OrderType, int],
        symbol: str,
        volume: float,
        price_open: float,
        price_close: float,
    ) -> float:
        payload = self._post(
            "/orders/calc-profit",
            {
                "action": int(action),
                "symbol": symbol,
                "volume": float(volume),
                "price_open": float(price_open),
                "price_close": float(price_close),
            },
        )
        return float(self._field(payload, "profit"))

    def order_check(self, request: TradeRequestBuilder) -> CheckResult:
        return CheckResult.from_mapping(self._post("/orders/check", request.to_request()))

    def order_send(self, request: TradeRequestBuilder) -> TradeResult:
        return TradeResult.from_mapping(self._post("/orders/send", request.to_request()))

    # ═══════════════════════════════════════════════════════════════════════
    # POSITIONS
    # ═══════════════════════════════════════════════════════════════════════

    def positions_total(self) -> int:
        return int(self._field(self._get("/positions/total"), "total"))

    def positions_get(
        self,
        symbol: Optional[str] = None,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
    ) -> List[Position]:
        params = single_filter(symbol=symbol, group=group, ticket=ticket)
        return self._records(Position, self._get("/positions/", **params))

    # ═══════════════════════════════════════════════════════════════════════
    # HISTORY
    # ═══════════════════════════════════════════════════════════════════════

    def _interval(self, date_from: DateLike, date_to: DateLike) -> Dict[str, int]:
        return {"date_from": to_epoch_seconds(date_from), "date_to": to_epoch_seconds(date_to)}

    def history_orders_total(self, date_from: DateLike, date_to: DateLike) -> int:
        payload = self._get("/history/orders/total", **self._interval(date_from, date_to))
        return int(self._field(payload, "total"))

    def history_orders_get(
        self,
        date_from: DateLike,
        date_to: DateLike,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
        position: Optional[int] = None,
    ) -> List[Order]:
        params = single_filter(group=group, ticket=ticket, position=position)
        params.update(self._interval(date_from, date_to))
        return self._records(Order, self._get("/history/orders/", **params))

    def history_deals_total(self, date_from: DateLike, date_to: DateLike) -> int:
        payload = self._get("/history/deals/total", **self._interval(date_from, date_to))
        return int(self._field(payload, "total"))

    def history_deals_get(
        self,
        date_from: DateLike,
        date_to: DateLike,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
        position: Optional[int] = None,
    ) -> List[Deal]:
        params = single_filter(group=group, ticket=ticket, position=position)
        params.update(self._interval(date_from, date_to))
        return self._records(Deal, self._get("/history/deals/", **params))


# ═══════════════════════════════════════════════════════════════════════════
# PROPERTY ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════

class _InfoClient:
    """Selects single properties of a record re-fetched on every access."""

    def __init__(self, client: ProxyClient):
        self.client = client

    def info_all(self) -> Record:
        raise NotImplementedError

    def info_string(self, prop) -> str:
        return self.info_all().get_info_string(prop)

    def info_int(self, prop) -> int:
        return self.info_all().get_info_int(prop)

    def info_float(self, prop) -> float:
        return self.info_all().get_info_float(prop)

    def info_bool(self, prop) -> bool:
        return self.info_all().get_info_bool(prop)


class AccountInfoClient(_InfoClient):
    """AccountInfoProperty lookups over the proxy."""

    def info_all(self) -> AccountInfo:
        return self.client.account_info()


class TerminalInfoClient(_InfoClient):
    """TerminalInfoProperty lookups over the proxy."""

    def info_all(self) -> TerminalInfo:
        return self.client.terminal_info()
