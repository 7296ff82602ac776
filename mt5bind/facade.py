"""
Terminal Facade - One Interface, Two Transports
===============================================

Dependency injection pattern:
- Callers use the TerminalFacade interface
- TerminalSession implements it in-process over the vendor module
- ProxyClient implements it over HTTP against a proxy

Architecture:
    caller → TerminalFacade.symbol_info(...)
                  ↓
        TerminalSession OR ProxyClient
        (same interface, same records, same exceptions)

Every operation either returns a decoded record (or list of records, or a
scalar) or raises:
- TerminalError when the terminal reported a negative error code
- RecordDecodeError / UnmappedEnumError when the returned data is malformed
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from .enums import CopyTicksFlags, OrderType, Timeframe
from .marshal import DateLike
from .records import (
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
from .trade import TradeRequestBuilder

TimeframeLike = Union[Timeframe, int, str]


def single_filter(**filters: Any) -> Dict[str, Any]:
    """
    Keep the filter that was given, if any.

    The terminal applies at most one of symbol/group/ticket/position per
    listing call.

    Raises:
        ValueError: more than one filter was given
    """
    given = {name: value for name, value in filters.items() if value is not None}
    if len(given) > 1:
        raise ValueError(f"Only one filter may be given, got: {', '.join(sorted(given))}")
    return given


class TerminalFacade(ABC):
    """Typed operations of the terminal scripting API."""

    # ═══════════════════════════════════════════════════════════════════════
    # TERMINAL & ACCOUNT
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def account_info(self) -> AccountInfo:
        """Properties of the currently connected trade account."""

    @abstractmethod
    def terminal_info(self) -> TerminalInfo:
        """Properties of the client terminal."""

    @abstractmethod
    def version(self) -> TerminalVersion:
        """Terminal version, build and build date."""

    # ═══════════════════════════════════════════════════════════════════════
    # SYMBOLS
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def symbols_total(self) -> int:
        """Number of all symbols known to the terminal."""

    @abstractmethod
    def symbols_get(self, group: Optional[str] = None) -> List[SymbolInfo]:
        """
        All symbols, or those matching ``group``.

        ``group`` is passed verbatim: comma-separated masks with ``*``
        wildcards and ``!`` exclusions, e.g. ``"*,!*USD*,!*EUR*"``.
        """

    @abstractmethod
    def symbol_info(self, symbol: str) -> SymbolInfo:
        """Specification of one symbol."""

    @abstractmethod
    def symbol_info_tick(self, symbol: str) -> SymbolTick:
        """Last tick of ``symbol``."""

    @abstractmethod
    def symbol_select(self, symbol: str, enable: Optional[bool] = None) -> bool:
        """Show (``enable=True``/default) or hide ``symbol`` in MarketWatch."""

    # ═══════════════════════════════════════════════════════════════════════
    # MARKET DATA
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def copy_rates_from(
        self, symbol: str, timeframe: TimeframeLike, date_from: DateLike, count: int
    ) -> List[SymbolRates]:
        """Up to ``count`` bars ending at ``date_from``."""

    @abstractmethod
    def copy_rates_from_pos(
        self, symbol: str, timeframe: TimeframeLike, start_pos: int, count: int
    ) -> List[SymbolRates]:
        """Up to ``count`` bars starting ``start_pos`` bars back (0 = current)."""

    @abstractmethod
    def copy_rates_range(
        self, symbol: str, timeframe: TimeframeLike, date_from: DateLike, date_to: DateLike
    ) -> List[SymbolRates]:
        """Bars within ``[date_from, date_to]``."""

    @abstractmethod
    def copy_ticks_from(
        self,
        symbol: str,
        date_from: DateLike,
        count: int,
        flags: Union[CopyTicksFlags, int],
    ) -> List[SymbolTick]:
        """Up to ``count`` ticks starting at ``date_from``."""

    @abstractmethod
    def copy_ticks_range(
        self,
        symbol: str,
        date_from: DateLike,
        date_to: DateLike,
        flags: Union[CopyTicksFlags, int],
    ) -> List[SymbolTick]:
        """Ticks within ``[date_from, date_to]``."""

    # ═══════════════════════════════════════════════════════════════════════
    # ORDERS & TRADING
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def orders_total(self) -> int:
        """Number of active orders."""

    @abstractmethod
    def orders_get(
        self,
        symbol: Optional[str] = None,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
    ) -> List[Order]:
        """Active orders, optionally filtered by one of symbol/group/ticket."""

    @abstractmethod
    def order_calc_margin(
        self, action: Union[OrderType, int], symbol: str, volume: float, price: float
    ) -> float:
        """Margin required for the operation, in account currency."""

    @abstractmethod
    def order_calc_profit(
        self,
        action: Union[OrderType, int],
        symbol: str,
        volume: float,
        price_open: float,
        price_close: float,
    ) -> float:
        """Profit of the operation, in account currency."""

    @abstractmethod
    def order_check(self, request: TradeRequestBuilder) -> CheckResult:
        """Check funds sufficiency for ``request`` without sending it."""

    @abstractmethod
    def order_send(self, request: TradeRequestBuilder) -> TradeResult:
        """Send ``request`` to the trade server."""

    # ═══════════════════════════════════════════════════════════════════════
    # POSITIONS
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def positions_total(self) -> int:
        """Number of open positions."""

    @abstractmethod
    def positions_get(
        self,
        symbol: Optional[str] = None,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
    ) -> List[Position]:
        """Open positions, optionally filtered by one of symbol/group/ticket."""

    # ═══════════════════════════════════════════════════════════════════════
    # HISTORY
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def history_orders_total(self, date_from: DateLike, date_to: DateLike) -> int:
        """Number of historical orders in the interval."""

    @abstractmethod
    def history_orders_get(
        self,
        date_from: DateLike,
        date_to: DateLike,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
        position: Optional[int] = None,
    ) -> List[Order]:
        """Historical orders in the interval (one optional filter)."""

    @abstractmethod
    def history_deals_total(self, date_from: DateLike, date_to: DateLike) -> int:
        """Number of deals in the interval."""

    @abstractmethod
    def history_deals_get(
        self,
        date_from: DateLike,
        date_to: DateLike,
        group: Optional[str] = None,
        ticket: Optional[int] = None,
        position: Optional[int] = None,
    ) -> List[Deal]:
        """Deals in the interval (one optional filter)."""
