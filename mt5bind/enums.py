"""
MetaTrader 5 Code Tables
========================

Closed mappings between the small integer codes used by the terminal and
named variants:
- Timeframes (bit-packed: hours |0x4000, weeks |0x8000, months |0xC000)
- Tick copy flags and tick flags
- Order, position and deal enumerations
- Trade request actions and trade server return codes
- Account and symbol property enumerations
- ``last_error()`` result codes

Every table is an ``IntEnum`` so a decoded value still compares, hashes and
serializes as the raw integer the terminal expects.

Reference: https://www.mql5.com/en/docs/constants
"""

from enum import IntEnum
from typing import Type, TypeVar, Union

from .errors import UnmappedEnumError

E = TypeVar("E", bound=IntEnum)

_HOUR = 0x4000
_WEEK = 0x8000
_MONTH = 0xC000


def decode_enum(enum_cls: Type[E], value) -> E:
    """
    Decode a raw terminal integer into ``enum_cls``.

    Raises:
        UnmappedEnumError: value has no variant in the table (or is not an int)
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, bool):
        raise UnmappedEnumError(enum_cls.__name__, value)
    try:
        code = int(value)
    except (TypeError, ValueError):
        raise UnmappedEnumError(enum_cls.__name__, value) from None
    if code != value:
        raise UnmappedEnumError(enum_cls.__name__, value)
    try:
        return enum_cls(code)
    except ValueError:
        raise UnmappedEnumError(enum_cls.__name__, value) from None


# ═══════════════════════════════════════════════════════════════════════════
# MARKET DATA
# ═══════════════════════════════════════════════════════════════════════════

class Timeframe(IntEnum):
    """Chart timeframe, unit flagged in the high bits."""
    M1 = 1
    M2 = 2
    M3 = 3
    M4 = 4
    M5 = 5
    M6 = 6
    M10 = 10
    M12 = 12
    M15 = 15
    M20 = 20
    M30 = 30
    H1 = 1 | _HOUR
    H2 = 2 | _HOUR
    H3 = 3 | _HOUR
    H4 = 4 | _HOUR
    H6 = 6 | _HOUR
    H8 = 8 | _HOUR
    H12 = 12 | _HOUR
    D1 = 24 | _HOUR
    W1 = 1 | _WEEK
    MN1 = 1 | _MONTH

    @classmethod
    def parse(cls, value: Union["Timeframe", int, str]) -> "Timeframe":
        """Resolve a Timeframe from a member, its raw code, or its name ("H1")."""
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise UnmappedEnumError(cls.__name__, value) from None
        return decode_enum(cls, value)

    @property
    def minutes(self) -> int:
        """Nominal length in minutes (months count as 30 days)."""
        unit = self.value & 0xC000
        amount = self.value & 0x3FFF
        if unit == _HOUR:
            return amount * 60
        if unit == _WEEK:
            return amount * 7 * 1440
        if unit == _MONTH:
            return amount * 30 * 1440
        return amount


class CopyTicksFlags(IntEnum):
    """Which ticks copy_ticks_* returns."""
    ALL = -1
    INFO = 1
    TRADE = 2


class TickFlag(IntEnum):
    """Bits set in SymbolTick.flags."""
    BID = 0x02
    ASK = 0x04
    LAST = 0x08
    VOLUME = 0x10
    BUY = 0x20
    SELL = 0x40


# ═══════════════════════════════════════════════════════════════════════════
# ORDERS
# ═══════════════════════════════════════════════════════════════════════════

class OrderType(IntEnum):
    """Order type."""
    BUY = 0
    SELL = 1
    BUY_LIMIT = 2
    SELL_LIMIT = 3
    BUY_STOP = 4
    SELL_STOP = 5
    BUY_STOP_LIMIT = 6
    SELL_STOP_LIMIT = 7
    CLOSE_BY = 8


class OrderState(IntEnum):
    """Order state."""
    STARTED = 0
    PLACED = 1
    CANCELED = 2
    PARTIAL = 3
    FILLED = 4
    REJECTED = 5
    EXPIRED = 6
    REQUEST_ADD = 7
    REQUEST_MODIFY = 8
    REQUEST_CANCEL = 9


class OrderTypeFilling(IntEnum):
    """Order filling policy."""
    FOK = 0  # Fill or Kill
    IOC = 1  # Immediate or Cancel
    RETURN = 2
    BOC = 3  # Book or Cancel


class OrderTypeTime(IntEnum):
    """Order expiration policy."""
    GTC = 0  # Good Till Cancelled
    DAY = 1
    SPECIFIED = 2
    SPECIFIED_DAY = 3


class OrderReason(IntEnum):
    """Why an order was placed."""
    CLIENT = 0
    MOBILE = 1
    WEB = 2
    EXPERT = 3
    SL = 4
    TP = 5
    SO = 6


class TradeActionRequest(IntEnum):
    """Trade request action."""
    DEAL = 1       # Market order
    PENDING = 5    # Pending order
    SLTP = 6       # Modify SL/TP of a position
    MODIFY = 7     # Modify pending order
    REMOVE = 8     # Delete pending order
    CLOSE_BY = 10  # Close by opposite position


class ReturnCode(IntEnum):
    """Trade server return codes (TradeResult.retcode)."""
    REQUOTE = 10004
    REJECT = 10006
    CANCEL = 10007
    PLACED = 10008
    DONE = 10009
    DONE_PARTIAL = 10010
    ERROR = 10011
    TIMEOUT = 10012
    INVALID = 10013
    INVALID_VOLUME = 10014
    INVALID_PRICE = 10015
    INVALID_STOPS = 10016
    TRADE_DISABLED = 10017
    MARKET_CLOSED = 10018
    NO_MONEY = 10019
    PRICE_CHANGED = 10020
    PRICE_OFF = 10021
    INVALID_EXPIRATION = 10022
    ORDER_CHANGED = 10023
    TOO_MANY_REQUESTS = 10024
    NO_CHANGES = 10025
    SERVER_DISABLES_AT = 10026
    CLIENT_DISABLES_AT = 10027
    LOCKED = 10028
    FROZEN = 10029
    INVALID_FILL = 10030
    CONNECTION = 10031
    ONLY_REAL = 10032
    LIMIT_ORDERS = 10033
    LIMIT_VOLUME = 10034
    INVALID_ORDER = 10035
    POSITION_CLOSED = 10036
    INVALID_CLOSE_VOLUME = 10038
    CLOSE_ORDER_EXIST = 10039
    LIMIT_POSITIONS = 10040
    REJECT_CANCEL = 10041
    LONG_ONLY = 10042
    SHORT_ONLY = 10043
    CLOSE_ONLY = 10044
    FIFO_CLOSE = 10045
    HEDGE_PROHIBITED = 10046


# ═══════════════════════════════════════════════════════════════════════════
# POSITIONS & DEALS
# ═══════════════════════════════════════════════════════════════════════════

class PositionType(IntEnum):
    """Position direction."""
    BUY = 0
    SELL = 1


class PositionReason(IntEnum):
    """Why a position was opened."""
    CLIENT = 0
    MOBILE = 1
    WEB = 2
    EXPERT = 3


class DealType(IntEnum):
    """Deal type."""
    BUY = 0
    SELL = 1
    BALANCE = 2
    CREDIT = 3
    CHARGE = 4
    CORRECTION = 5
    BONUS = 6
    COMMISSION = 7
    COMMISSION_DAILY = 8
    COMMISSION_MONTHLY = 9
    COMMISSION_AGENT_DAILY = 10
    COMMISSION_AGENT_MONTHLY = 11
    INTEREST = 12
    BUY_CANCELED = 13
    SELL_CANCELED = 14
    DIVIDEND = 15
    DIVIDEND_FRANKED = 16
    TAX = 17


class DealEntry(IntEnum):
    """Deal direction relative to the position."""
    IN = 0
    OUT = 1
    INOUT = 2
    OUT_BY = 3


class DealReason(IntEnum):
    """Why a deal was executed."""
    CLIENT = 0
    MOBILE = 1
    WEB = 2
    EXPERT = 3
    SL = 4
    TP = 5
    SO = 6
    ROLLOVER = 7
    VMARGIN = 8
    SPLIT = 9


# ═══════════════════════════════════════════════════════════════════════════
# ACCOUNT
# ═══════════════════════════════════════════════════════════════════════════

class AccountTradeMode(IntEnum):
    """Account type."""
    DEMO = 0
    CONTEST = 1
    REAL = 2


class AccountStopoutMode(IntEnum):
    """Stop out level unit."""
    PERCENT = 0
    MONEY = 1


class AccountMarginMode(IntEnum):
    """Margin calculation mode."""
    RETAIL_NETTING = 0
    EXCHANGE = 1
    RETAIL_HEDGING = 2


# ═══════════════════════════════════════════════════════════════════════════
# SYMBOL
# ═══════════════════════════════════════════════════════════════════════════

class SymbolChartMode(IntEnum):
    """Price used to build bars."""
    BID = 0
    LAST = 1


class SymbolCalcMode(IntEnum):
    """Margin/profit calculation mode."""
    FOREX = 0
    FOREX_NO_LEVERAGE = 5
    FUTURES = 1
    CFD = 2
    CFDINDEX = 3
    CFDLEVERAGE = 4
    EXCH_STOCKS = 32
    EXCH_FUTURES = 33
    EXCH_FUTURES_FORTS = 34
    EXCH_OPTIONS = 35
    EXCH_OPTIONS_MARGIN = 36
    EXCH_BONDS = 37
    EXCH_STOCKS_MOEX = 38
    EXCH_BONDS_MOEX = 39
    SERV_COLLATERAL = 64


class SymbolTradeMode(IntEnum):
    """Which trades are allowed on the symbol."""
    DISABLED = 0
    LONGONLY = 1
    SHORTONLY = 2
    CLOSEONLY = 3
    FULL = 4


class SymbolTradeExecution(IntEnum):
    """Deal execution mode."""
    REQUEST = 0
    INSTANT = 1
    MARKET = 2
    EXCHANGE = 3


class SymbolSwapMode(IntEnum):
    """Swap calculation mode."""
    DISABLED = 0
    POINTS = 1
    CURRENCY_SYMBOL = 2
    CURRENCY_MARGIN = 3
    CURRENCY_DEPOSIT = 4
    INTEREST_CURRENT = 5
    INTEREST_OPEN = 6
    REOPEN_CURRENT = 7
    REOPEN_BID = 8
    CURRENCY_PROFIT = 9


class DayOfWeek(IntEnum):
    """Day of week (triple swap day)."""
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class SymbolOrderGtcMode(IntEnum):
    """Lifetime of pending orders and SL/TP."""
    GTC = 0
    DAILY = 1
    DAILY_NO_STOPS = 2


class SymbolOptionMode(IntEnum):
    """Option exercise style."""
    EUROPEAN = 0
    AMERICAN = 1


class SymbolOptionRight(IntEnum):
    """Option right."""
    CALL = 0
    PUT = 1


# ═══════════════════════════════════════════════════════════════════════════
# ERROR CHANNEL
# ═══════════════════════════════════════════════════════════════════════════

class ResultCode(IntEnum):
    """Codes reported by ``last_error()``; negative means failure."""
    OK = 1
    FAIL = -1
    INVALID_PARAMS = -2
    NO_MEMORY = -3
    NOT_FOUND = -4
    INVALID_VERSION = -5
    AUTH_FAILED = -6
    UNSUPPORTED = -7
    AUTO_TRADING_DISABLED = -8
    INTERNAL_FAIL = -10000
    INTERNAL_FAIL_SEND = -10001
    INTERNAL_FAIL_RECEIVE = -10002
    INTERNAL_FAIL_INIT = -10003
    INTERNAL_FAIL_CONNECT = -10004
    INTERNAL_FAIL_TIMEOUT = -10005

    @classmethod
    def lookup(cls, code: int) -> Union["ResultCode", int]:
        """Named code when known, otherwise the raw integer."""
        try:
            return cls(code)
        except ValueError:
            return code
