"""
Terminal Records
================

Flat, immutable data-transfer records mirroring the terminal's native
structures:
- TerminalVersion, TerminalInfo, AccountInfo, AccountCredentials
- SymbolInfo, SymbolTick, SymbolRates
- Order, Position, Deal
- TradeRequest (as echoed back), CheckResult, TradeResult

Field names and numeric encodings are the terminal's own, so records can be
serialized back to the exact shape the terminal (or the HTTP proxy) uses.

Decoding is explicit and field-by-field against the dataclass schema:
- a missing field or a value of the wrong kind raises RecordDecodeError
- enum-typed fields go through the closed IntEnum tables (UnmappedEnumError)
- unknown extra keys are ignored

Property tags (AccountInfoProperty, TerminalInfoProperty, SymbolInfoProperty)
select one field of a record by name and kind, mirroring the MQL5
AccountInfo*/TerminalInfo*/SymbolInfo* accessors.
"""

import dataclasses
import functools
import numbers
import typing
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

import numpy as np

from .enums import (
    AccountMarginMode,
    AccountStopoutMode,
    AccountTradeMode,
    DayOfWeek,
    DealEntry,
    DealReason,
    DealType,
    OrderReason,
    OrderState,
    OrderType,
    OrderTypeFilling,
    OrderTypeTime,
    PositionReason,
    PositionType,
    SymbolCalcMode,
    SymbolChartMode,
    SymbolOptionMode,
    SymbolOptionRight,
    SymbolOrderGtcMode,
    SymbolSwapMode,
    SymbolTradeExecution,
    SymbolTradeMode,
    TradeActionRequest,
    decode_enum,
)
from .errors import RecordDecodeError, UnmappedPropertyError

R = TypeVar("R", bound="Record")

# Property kinds
INT = "int"
FLOAT = "float"
BOOL = "bool"
STRING = "string"

_MISSING = object()


# ═══════════════════════════════════════════════════════════════════════════
# FIELD DECODING
# ═══════════════════════════════════════════════════════════════════════════

def _decode_value(record: str, name: str, kind: Any, value: Any) -> Any:
    origin = typing.get_origin(kind)
    if origin is typing.Union:
        if value is None:
            return None
        inner = [arg for arg in typing.get_args(kind) if arg is not type(None)]
        return _decode_value(record, name, inner[0], value)

    if isinstance(kind, type) and issubclass(kind, IntEnum):
        return decode_enum(kind, value)
    if isinstance(kind, type) and issubclass(kind, Record):
        if hasattr(value, "_asdict"):
            value = value._asdict()
        if not isinstance(value, Mapping):
            raise RecordDecodeError(record, name, value, "expected a mapping")
        return kind.from_mapping(value)
    if kind is bool:
        if isinstance(value, (bool, np.bool_)):
            return bool(value)
        raise RecordDecodeError(record, name, value, "expected bool")
    if kind is int:
        if isinstance(value, numbers.Integral) and not isinstance(value, bool):
            return int(value)
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise RecordDecodeError(record, name, value, "expected int")
    if kind is float:
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            return float(value)
        raise RecordDecodeError(record, name, value, "expected float")
    if kind is str:
        if isinstance(value, str):
            return value
        raise RecordDecodeError(record, name, value, "expected str")

    raise RecordDecodeError(record, name, value, f"unsupported field type {kind!r}")


@functools.lru_cache(maxsize=None)
def _schema(cls: type) -> List[Tuple[str, Any]]:
    """(field name, resolved type) pairs of a record dataclass, in order."""
    hints = typing.get_type_hints(cls)
    return [(f.name, hints[f.name]) for f in dataclasses.fields(cls)]


def _kind_of(field_type: Any) -> str:
    """Property kind of a record field."""
    if typing.get_origin(field_type) is typing.Union:
        field_type = [a for a in typing.get_args(field_type) if a is not type(None)][0]
    if field_type is bool:
        return BOOL
    if field_type is float:
        return FLOAT
    if field_type is str:
        return STRING
    return INT


class Record:
    """Base for all terminal records."""

    # Property tag enum selecting this record's fields (set per subclass)
    properties: Optional[Type[Enum]] = None

    @classmethod
    def from_mapping(cls: Type[R], data: Mapping[str, Any]) -> R:
        """Decode a record from a mapping of native field names."""
        values = {}
        for name, kind in _schema(cls):
            raw = data.get(name, _MISSING)
            if raw is _MISSING:
                raise RecordDecodeError(cls.__name__, name)
            values[name] = _decode_value(cls.__name__, name, kind, raw)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Native-shaped dict (enums as their integer codes)."""
        return _plain(dataclasses.asdict(self))

    def _get_info(self, prop: Enum, kind: str) -> Any:
        if self.properties is None or not isinstance(prop, self.properties):
            raise UnmappedPropertyError(f"{prop!r} is not a {type(self).__name__} property")
        field_name, field_kind = prop.value
        if field_kind != kind:
            raise UnmappedPropertyError(f"{prop!r} is not a {kind} property")
        return getattr(self, field_name)

    def get_info_int(self, prop: Enum) -> int:
        return int(self._get_info(prop, INT))

    def get_info_float(self, prop: Enum) -> float:
        return self._get_info(prop, FLOAT)

    def get_info_bool(self, prop: Enum) -> bool:
        return self._get_info(prop, BOOL)

    def get_info_string(self, prop: Enum) -> str:
        return self._get_info(prop, STRING)


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, IntEnum):
        return int(value)
    return value


def _property_enum(name: str, record_cls: Type[Record]) -> Type[Enum]:
    """Build the closed property-tag enum for a record: FIELD -> (field, kind)."""
    members = [
        (field.upper(), (field, _kind_of(kind)))
        for field, kind in _schema(record_cls)
    ]
    prop_enum = Enum(name, members, module=__name__)
    record_cls.properties = prop_enum
    return prop_enum


class _Timestamped:
    """Mixin for records with an epoch-seconds ``time`` field."""

    @property
    def timestamp(self) -> datetime:
        """``time`` as a local datetime."""
        return datetime.fromtimestamp(self.time)


# ═══════════════════════════════════════════════════════════════════════════
# TERMINAL & ACCOUNT
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TerminalVersion(Record):
    """Terminal version as returned by ``version()``."""
    terminal_version: int
    build: int
    build_date: str

    @classmethod
    def from_tuple(cls, value: Tuple[int, int, str]) -> "TerminalVersion":
        """Decode the ``(version, build, build_date)`` triple."""
        if value is None or len(value) != 3:
            raise RecordDecodeError(cls.__name__, "terminal_version", value, "expected a 3-tuple")
        terminal_version, build, build_date = value
        return cls.from_mapping(
            {"terminal_version": terminal_version, "build": build, "build_date": build_date}
        )


@dataclass(frozen=True)
class TerminalInfo(Record):
    """Client terminal properties."""
    community_account: bool
    community_connection: bool
    connected: bool
    dlls_allowed: bool
    trade_allowed: bool
    tradeapi_disabled: bool
    email_enabled: bool
    ftp_enabled: bool
    notifications_enabled: bool
    mqid: bool
    build: int
    maxbars: int
    codepage: int
    ping_last: int
    community_balance: float
    retransmission: float
    company: str
    name: str
    language: str
    path: str
    data_path: str
    commondata_path: str


@dataclass(frozen=True)
class AccountInfo(Record):
    """Trade account properties."""
    login: int
    trade_mode: AccountTradeMode
    leverage: int
    limit_orders: int
    margin_so_mode: AccountStopoutMode
    trade_allowed: bool
    trade_expert: bool
    margin_mode: AccountMarginMode
    currency_digits: int
    fifo_close: bool
    balance: float
    credit: float
    profit: float
    equity: float
    margin: float
    margin_free: float
    margin_level: float
    margin_so_call: float
    margin_so_so: float
    margin_initial: float
    margin_maintenance: float
    assets: float
    liabilities: float
    commission_blocked: float
    name: str
    server: str
    currency: str
    company: str


@dataclass(frozen=True)
class AccountCredentials(Record):
    """Login, password and trade server of an account."""
    login: int
    password: str
    server: str

    def __repr__(self) -> str:
        return f"AccountCredentials(login={self.login}, server={self.server!r})"


# ═══════════════════════════════════════════════════════════════════════════
# SYMBOLS & MARKET DATA
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SymbolInfo(Record, _Timestamped):
    """Trade instrument properties."""
    custom: bool
    chart_mode: SymbolChartMode
    select: bool
    visible: bool
    session_deals: int
    session_buy_orders: int
    session_sell_orders: int
    volume: int
    volumehigh: int
    volumelow: int
    time: int
    digits: int
    spread: int
    spread_float: bool
    ticks_bookdepth: int
    trade_calc_mode: SymbolCalcMode
    trade_mode: SymbolTradeMode
    start_time: int
    expiration_time: int
    trade_stops_level: int
    trade_freeze_level: int
    trade_exemode: SymbolTradeExecution
    swap_mode: SymbolSwapMode
    swap_rollover3days: DayOfWeek
    margin_hedged_use_leg: bool
    expiration_mode: int
    filling_mode: int
    order_mode: int
    order_gtc_mode: SymbolOrderGtcMode
    option_mode: SymbolOptionMode
    option_right: SymbolOptionRight
    bid: float
    bidhigh: float
    bidlow: float
    ask: float
    askhigh: float
    asklow: float
    last: float
    lasthigh: float
    lastlow: float
    volume_real: float
    volumehigh_real: float
    volumelow_real: float
    option_strike: float
    point: float
    trade_tick_value: float
    trade_tick_value_profit: float
    trade_tick_value_loss: float
    trade_tick_size: float
    trade_contract_size: float
    trade_accrued_interest: float
    trade_face_value: float
    trade_liquidity_rate: float
    volume_min: float
    volume_max: float
    volume_step: float
    volume_limit: float
    swap_long: float
    swap_short: float
    margin_initial: float
    margin_maintenance: float
    session_volume: float
    session_turnover: float
    session_interest: float
    session_buy_orders_volume: float
    session_sell_orders_volume: float
    session_open: float
    session_close: float
    session_aw: float
    session_price_settlement: float
    session_price_limit_min: float
    session_price_limit_max: float
    margin_hedged: float
    price_change: float
    price_volatility: float
    price_theoretical: float
    price_greeks_delta: float
    price_greeks_theta: float
    price_greeks_gamma: float
    price_greeks_vega: float
    price_greeks_rho: float
    price_greeks_omega: float
    price_sensitivity: float
    basis: str
    category: str
    currency_base: str
    currency_profit: str
    currency_margin: str
    bank: str
    description: str
    exchange: str
    formula: str
    isin: str
    name: str
    page: str
    path: str


@dataclass(frozen=True)
class SymbolTick(Record, _Timestamped):
    """Last prices of a symbol (one tick)."""
    time: int
    bid: float
    ask: float
    last: float
    volume: int
    time_msc: int
    flags: int
    volume_real: float


@dataclass(frozen=True)
class SymbolRates(Record, _Timestamped):
    """One OHLC bar."""
    time: int
    open: float
    high: float
    low: float
    close: float
    tick_volume: int
    spread: int
    real_volume: int


# ═══════════════════════════════════════════════════════════════════════════
# ORDERS, POSITIONS, DEALS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Order(Record):
    """Active or historical order."""
    ticket: int
    time_setup: int
    time_setup_msc: int
    time_done: int
    time_done_msc: int
    time_expiration: int
    type: OrderType
    type_time: OrderTypeTime
    type_filling: OrderTypeFilling
    state: OrderState
    magic: int
    position_id: int
    position_by_id: int
    reason: OrderReason
    volume_initial: float
    volume_current: float
    price_open: float
    sl: float
    tp: float
    price_current: float
    price_stoplimit: float
    symbol: str
    comment: str
    external_id: str


@dataclass(frozen=True)
class Position(Record, _Timestamped):
    """Open position."""
    ticket: int
    time: int
    time_msc: int
    time_update: int
    time_update_msc: int
    type: PositionType
    magic: int
    identifier: int
    reason: PositionReason
    volume: float
    price_open: float
    sl: float
    tp: float
    price_current: float
    swap: float
    profit: float
    symbol: str
    comment: str
    external_id: str


@dataclass(frozen=True)
class Deal(Record, _Timestamped):
    """History deal."""
    ticket: int
    order: int
    time: int
    time_msc: int
    type: DealType
    entry: DealEntry
    magic: int
    position_id: int
    reason: DealReason
    volume: float
    price: float
    commission: float
    swap: float
    profit: float
    fee: float
    symbol: str
    comment: str
    external_id: str


# ═══════════════════════════════════════════════════════════════════════════
# TRADE REQUEST / RESULTS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TradeRequest(Record):
    """Trade request as echoed back inside a check/send result."""
    action: TradeActionRequest
    magic: int
    order: int
    symbol: str
    volume: float
    price: float
    stoplimit: float
    sl: float
    tp: float
    deviation: int
    type: OrderType
    type_filling: OrderTypeFilling
    type_time: OrderTypeTime
    expiration: int
    comment: str
    position: int
    position_by: int


@dataclass(frozen=True)
class CheckResult(Record):
    """Result of ``order_check``; retcode 0 means the request would pass."""
    retcode: int
    balance: float
    equity: float
    profit: float
    margin: float
    margin_free: float
    margin_level: float
    comment: str
    request: TradeRequest


@dataclass(frozen=True)
class TradeResult(Record):
    """Result of ``order_send``."""
    retcode: int
    deal: int
    order: int
    volume: float
    price: float
    bid: float
    ask: float
    comment: str
    request_id: int
    retcode_external: int
    request: TradeRequest


# ═══════════════════════════════════════════════════════════════════════════
# PROPERTY TAGS
# ═══════════════════════════════════════════════════════════════════════════

AccountInfoProperty = _property_enum("AccountInfoProperty", AccountInfo)
TerminalInfoProperty = _property_enum("TerminalInfoProperty", TerminalInfo)
SymbolInfoProperty = _property_enum("SymbolInfoProperty", SymbolInfo)
