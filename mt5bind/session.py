"""
In-Process Terminal Session
===========================

Binds the vendor ``MetaTrader5`` module behind the TerminalFacade interface.

The vendor functions never raise on terminal failures: they return ``None``
(or ``False``) and leave a ``(code, message)`` pair in ``last_error()``.
Every call therefore goes through one helper that:
1. invokes the vendor function
2. reads ``last_error()``
3. raises TerminalError on a negative code (the return value is discarded)
4. otherwise decodes the return value into a record

Usage:
    with TerminalSession().initialize(path) as session:
        tick = session.symbol_info_tick("EURUSD")

Not safe for concurrent use from several threads; serialize access.
"""

import logging
from types import ModuleType
from typing import Any, Callable, List, Optional, Tuple, Union

from . import config
from .enums import CopyTicksFlags, OrderType, ResultCode
from .errors import AuthFailedError, TerminalError
from .facade import DateLike, TerminalFacade, TimeframeLike, single_filter
from .marshal import (
    decode_many,
    decode_one,
    decode_rows,
    decode_scalar,
    merge_echoed_request,
    timeframe_code,
    to_terminal_datetime,
)
from .records import (
    AccountCredentials,
    AccountInfo,
    CheckResult,
    Deal,
    Order,
    Position,
    SymbolInfo,
    SymbolRates,
    SymbolTick,
    TerminalInfo,
    TerminalVersion,
    TradeResult,
)
from .runtime import load_terminal_module
from .trade import TradeRequestBuilder

logger = logging.getLogger(__name__)

INITIALIZE_FAILED = "Failed to initialize MetaTrader5"
LOGIN_FAILED = "Failed to login to the trade account"


class TerminalSession(TerminalFacade):
    """
    Session over the vendor terminal module.

    Args:
        module: An already imported vendor module (or a stand-in with the
            same functions). Loaded with ``load_terminal_module`` if omitted.
        site_packages: Directory to import the vendor module from
    """

    def __init__(self, module: Optional[ModuleType] = None, site_packages: Optional[str] = None):
        self._mt5 = module if module is not None else load_terminal_module(site_packages)
        self.connected = False

    # ═══════════════════════════════════════════════════════════════════════
    # ERROR CHANNEL
    # ═══════════════════════════════════════════════════════════════════════

    def last_error(self) -> Tuple[int, str]:
        """The terminal's ``(code, message)`` pair for the last call."""
        code, message = self._mt5.last_error()
        return int(code), str(message)

    def _call_and_check(
        self,
        name: str,
        *args: Any,
        decode: Optional[Callable[[Any], Any]] = None,
        **kwargs: Any,
    ) -> Any:
        """Call vendor function ``name`` and apply the error-channel protocol."""
        logger.debug("Calling %s", name)
        func = getattr(self._mt5, name)

        failure: Optional[Exception] = None
        try:
            value = func(*args, **kwargs)
        except Exception as e:
            failure = e
            value = None

        code, message = self.last_error()
        if code < 0:
            logger.debug("%s failed: [%d] %s", name, code, message)
            raise TerminalError(ResultCode.lookup(code), message) from failure
        if failure is not None:
            raise failure

        return decode(value) if decode is not None else value

    # ═══════════════════════════════════════════════════════════════════════
    # CONNECTION
    # ═══════════════════════════════════════════════════════════════════════

    def initialize(self, path: Optional[str] = None) -> "TerminalSession":
        """
        Start (or attach to) the terminal at ``path``.

        Raises:
            TerminalError: the terminal reported a negative error code
            AuthFailedError: the terminal refused without an error code
        """
        path = path or config.TERMINAL_PATH
        args = (path,) if path else ()
        if not self._call_and_check("initialize", *args):
            raise AuthFailedError(ResultCode.AUTH_FAILED, INITIALIZE_FAILED)

        self.connected = True
        logger.info("Connected to terminal %s", path or "(default)")
        return self

    def initialize_with_credentials(
        self,
        path: Optional[str],
        credentials: AccountCredentials,
        timeout: Optional[int] = None,
        portable: Optional[bool] = None,
    ) -> "TerminalSession":
        """
        Start the terminal at ``path`` and log into ``credentials``' account.

        Args:
            path: Path to the terminal executable
            credentials: Account login, password and server
            timeout: Connect timeout in milliseconds
            portable: Launch the terminal in portable mode (forwarded only if given)
        """
        path = path or config.TERMINAL_PATH
        kwargs = {
            "login": credentials.login,
            "password": credentials.password,
            "server": credentials.server,
            "timeout": timeout if timeout is not None else config.CONNECT_TIMEOUT_MS,
        }
        if portable is not None:
            kwargs["portable"] = portable

        args = (path,) if path else ()
        if not self._call_and_check("initialize", *args, **kwargs):
            raise AuthFailedError(ResultCode.AUTH_FAILED, INITIALIZE_FAILED)

        self.connected = True
        logger.info("Connected to terminal %s as %s", path or "(default)", credentials.login)
        return self

    def login(self, credentials: AccountCredentials, timeout: Optional[int] = None) -> bool:
        """Log into another trade account on the open session."""
        kwargs = {"password": credentials.password, "server": credentials.server}
        if timeout is not None:
            kwargs["timeout"] = timeout

        if not self._call_and_check("login", credentials.login, **kwargs):
            raise AuthFailedError(ResultCode.AUTH_FAILED, LOGIN_FAILED)

        logger.info("Logged in as %s on %s", credentials.login, credentials.server)
        return True

    def shutdown(self) -> None:
        """Close the connection to the terminal; never raises."""
        try:
            self._mt5.shutdown()
        except Exception as e:
            logger.warning("Terminal shutdown failed: %s", e)
        self.connected = False
        logger.info("Disconnected from terminal")

    def __enter__(self) -> "TerminalSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    # ═══════════════════════════════════════════════════════════════════════
    # TERMINAL & ACCOUNT
    # ═══════════════════════════════════════════════════════════════════════

    def account_info(self) -> AccountInfo:
        return self._call_and_check("account_info", decode=lambda v: decode_one(AccountInfo, v))

    def terminal_info(self) -> TerminalInfo:
        return self._call_and_check("terminal_info", decode=lambda v: decode_one(TerminalInfo, v))

    def version(self) -> TerminalVersion:
        return self._call_and_check("version", decode=TerminalVersion.from_tuple)

    # ═══════════════════════════════════════════════════════════════════════
    # SYMBOLS
    # ═══════════════════════════════════════════════════════════════════════

    def symbols_total(self) -> int:
        return self._call_and_check("symbols_total", decode=decode_scalar("symbols_total", int))

    def symbols_get(self, group: Optional[str] = None) -> List[SymbolInfo]:
        kwargs = single_filter(group=group)
        return self._call_and_check(
            "symbols_get", decode=lambda v: decode_many(SymbolInfo, v), **kwargs
        )

    def symbol_info(self, symbol: str) -> SymbolInfo:
        return self._call_and_check(
            "symbol_info", symbol, decode=lambda v: decode_one(SymbolInfo, v)
        )

    def symbol_info_tick(self, symbol: str) -> SymbolTick:
        return self._call_and_check(
            "symbol_info_tick", symbol, decode=lambda v: decode_one(SymbolTick, v)
        )

    def symbol_select(self, symbol: str, enable: Optional[bool] = None) -> bool:
        args = (symbol,) if enable is None else (symbol, enable)
        return self._call_and_check(
            "symbol_select", *args, decode=decode_scalar("symbol_select", bool)
        )

    # ═══════════════════════════════════════════════════════════════════════
    # MARKET DATA
    # ═══════════════════════════════════════════════════════════════════════

    def copy_rates_from(
        self, symbol: str, timeframe: TimeframeLike, date_from: DateLike, count: int
    ) -> List[SymbolRates]:
        return self._call_and_check(
            "copy_rates_from",
            symbol,
            timeframe_code(timeframe),
            to_terminal_datetime(date_from),
            int(count),
            decode=lambda v: decode_rows(SymbolRates, v),
        )

    def copy_rates_from_pos(
        self, symbol: str, timeframe: TimeframeLike, start_pos: int, count: int
    ) -> List[SymbolRates]:
        return self._call_and_check(
            "copy_rates_from_pos",
            symbol,
            timeframe_code(timeframe),
            int(start_pos),
            int(count),
            decode=lambda v: decode_rows(SymbolRates, v),
        )

    def copy_rates_range(
        self, symbol: str, timeframe: TimeframeLike, date_from: DateLike, date_to: DateLike
    ) -> List[SymbolRates]:
        return self._call_and_check(
            "copy_rates_range",
            symbol,
            timeframe_code(timeframe),
            to_terminal_datetime(date_from),
            to_terminal_datetime(date_to),
            decode=lambda v: decode_rows(SymbolRates, v),
        )

    def copy_ticks_from(
        self,
        symbol: str,
        date_from: DateLike,
        count: int,
        flags: Union[CopyTicksFlags, int],
    ) -> List[SymbolTick]:
        return self._call_and_check(
            "copy_ticks_from",
            symbol,
            to_terminal_datetime(date_from),
            int(count),
            int(flags),
            decode=lambda v: decode_rows(SymbolTick, v),
        )

    def copy_ticks_range(
        self,
        symbol: str,
        date_from: DateLike,
        date_to: DateLike,
        flags: Union[CopyTicksFlags, int],
    ) -> List[SymbolTick]:
        return self._call_and_check(
            "copy_ticks_range",
            symbol,
            to_terminal_datetime(date_from),
            to_terminal_datetime(date_to),
            int(flags),
            decode=lambda v: decode_rows(SymbolTick, v),
        )

    # ═══════════════════════════════════════════════════════════════════════
    # ORDERS & TRADING
    # ═══════════════════════════════════════════════════════════════════════

    def orders_total(self) -> int:
        return self._call_and_check("orders_total", decode=decode_scalar("orders_total", int))

    def orders_get(
        self,
        symbol: Optional[str] = None,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
    ) -> List[Order]:
        kwargs = single_filter(symbol=symbol, group=group, ticket=ticket)
        return self._call_and_check(
            "orders_get", decode=lambda v: decode_many(Order, v), **kwargs
        )

    def order_calc_margin(
        self, action: Union[OrderType, int], symbol: str, volume: float, price: float
    ) -> float:
        return self._call_and_check(
            "order_calc_margin",
            int(action),
            symbol,
            float(volume),
            float(price),
            decode=decode_scalar("order_calc_margin", float),
        )

    def order_calc_profit(
        self,
        action: Union[OrderType, int],
        symbol: str,
        volume: float,
        price_open: float,
        price_close: float,
    ) -> float:
        return self._call_and_check(
            "order_calc_profit",
            int(action),
            symbol,
            float(volume),
            float(price_open),
            float(price_close),
            decode=decode_scalar("order_calc_profit", float),
        )

    def order_check(self, request: TradeRequestBuilder) -> CheckResult:
        return self._call_and_check(
            "order_check",
            request.to_request(),
            decode=lambda v: CheckResult.from_mapping(merge_echoed_request("CheckResult", v)),
        )

    def order_send(self, request: TradeRequestBuilder) -> TradeResult:
        logger.info("Sending trade request %r", request)
        return self._call_and_check(
            "order_send",
            request.to_request(),
            decode=lambda v: TradeResult.from_mapping(merge_echoed_request("TradeResult", v)),
        )

    # ═══════════════════════════════════════════════════════════════════════
    # POSITIONS
    # ═══════════════════════════════════════════════════════════════════════

    def positions_total(self) -> int:
        return self._call_and_check("positions_total", decode=decode_scalar("positions_total", int))

    def positions_get(
        self,
        symbol: Optional[str] = None,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
    ) -> List[Position]:
        kwargs = single_filter(symbol=symbol, group=group, ticket=ticket)
        return self._call_and_check(
            "positions_get", decode=lambda v: decode_many(Position, v), **kwargs
        )

    # ═══════════════════════════════════════════════════════════════════════
    # HISTORY
    # ═══════════════════════════════════════════════════════════════════════

    def history_orders_total(self, date_from: DateLike, date_to: DateLike) -> int:
        return self._call_and_check(
            "history_orders_total",
            to_terminal_datetime(date_from),
            to_terminal_datetime(date_to),
            decode=decode_scalar("history_orders_total", int),
        )

    def _history_get(self, name, decode, date_from, date_to, group, ticket, position):
        kwargs = single_filter(group=group, ticket=ticket, position=position)
        # Lookup by ticket or position ignores the interval
        if "ticket" in kwargs or "position" in kwargs:
            return self._call_and_check(name, decode=decode, **kwargs)
        return self._call_and_check(
            name,
            to_terminal_datetime(date_from),
            to_terminal_datetime(date_to),
            decode=decode,
            **kwargs,
        )

    def history_orders_get(
        self,
        date_from: DateLike,
        date_to: DateLike,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
        position: Optional[int] = None,
    ) -> List[Order]:
        return self._history_get(
            "history_orders_get",
            lambda v: decode_many(Order, v),
            date_from,
            date_to,
            group,
            ticket,
            position,
        )

    def history_deals_total(self, date_from: DateLike, date_to: DateLike) -> int:
        return self._call_and_check(
            "history_deals_total",
            to_terminal_datetime(date_from),
            to_terminal_datetime(date_to),
            decode=decode_scalar("history_deals_total", int),
        )

    def history_deals_get(
        self,
        date_from: DateLike,
        date_to: DateLike,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
        position: Optional[int] = None,
    ) -> List[Deal]:
        return self._history_get(
            "history_deals_get",
            lambda v: decode_many(Deal, v),
            date_from,
            date_to,
            group,
            ticket,
            position,
        )
