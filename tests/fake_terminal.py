"""
Fake MetaTrader5 Module for Tests

Mimics the vendor module's calling conventions:
- functions return named tuples, tuples of named tuples, numpy structured
  arrays, or None/False on failure
- the outcome of the last call is readable through ``last_error()``

Failures are scripted per function name with ``fail()`` (return None and
report a code) or ``explode()`` (raise a Python exception).
"""

import dataclasses
import fnmatch
import typing
from collections import namedtuple
from enum import IntEnum

import numpy as np

from mt5bind.records import (
    AccountInfo,
    CheckResult,
    Deal,
    Order,
    Position,
    SymbolInfo,
    SymbolTick,
    TerminalInfo,
    TradeRequest,
    TradeResult,
)

RES_S_OK = (1, "Success")

RATES_DTYPE = np.dtype(
    [
        ("time", "<i8"),
        ("open", "<f8"),
        ("high", "<f8"),
        ("low", "<f8"),
        ("close", "<f8"),
        ("tick_volume", "<u8"),
        ("spread", "<i4"),
        ("real_volume", "<u8"),
    ]
)

TICKS_DTYPE = np.dtype(
    [
        ("time", "<i8"),
        ("bid", "<f8"),
        ("ask", "<f8"),
        ("last", "<f8"),
        ("volume", "<u8"),
        ("time_msc", "<i8"),
        ("flags", "<u4"),
        ("volume_real", "<f8"),
    ]
)


def native_tuple(record_cls):
    """The vendor's named tuple type for a record class."""
    return namedtuple(record_cls.__name__, [f.name for f in dataclasses.fields(record_cls)])


def sample_values(record_cls, **overrides):
    """Type-appropriate placeholder values for every field of a record."""
    hints = typing.get_type_hints(record_cls)
    values = {}
    for f in dataclasses.fields(record_cls):
        kind = hints[f.name]
        if isinstance(kind, type) and issubclass(kind, IntEnum):
            values[f.name] = int(list(kind)[0])
        elif kind is bool:
            values[f.name] = False
        elif kind is int:
            values[f.name] = 0
        elif kind is float:
            values[f.name] = 0.0
        elif kind is str:
            values[f.name] = ""
        else:
            values[f.name] = None
    values.update(overrides)
    return values


def native(record_cls, **overrides):
    """A vendor named tuple for ``record_cls`` with placeholder values."""
    return native_tuple(record_cls)(**sample_values(record_cls, **overrides))


def make_rates(count, start_time=1_700_000_000, step=3600, seed=7):
    """Random-walk OHLC bars honoring low <= open, close <= high."""
    rng = np.random.default_rng(seed)
    rates = np.zeros(count, dtype=RATES_DTYPE)
    price = 1.10
    for i in range(count):
        open_ = price
        close = open_ + rng.normal(0, 0.001)
        high = max(open_, close) + abs(rng.normal(0, 0.0005))
        low = min(open_, close) - abs(rng.normal(0, 0.0005))
        rates[i] = (start_time + i * step, open_, high, low, close, 100 + i, 12, 0)
        price = close
    return rates


def make_ticks(count, start_time=1_700_000_000):
    ticks = np.zeros(count, dtype=TICKS_DTYPE)
    for i in range(count):
        bid = 1.1 + i * 0.00001
        ticks[i] = (start_time + i, bid, bid + 0.00012, 0.0, 0, (start_time + i) * 1000, 6, 0.0)
    return ticks


def _symbol(name, digits, bid, spread, contract_size=100000.0):
    point = 10.0 ** -digits
    return native(
        SymbolInfo,
        name=name,
        digits=digits,
        point=point,
        bid=bid,
        ask=round(bid + spread * point, digits),
        spread=spread,
        visible=True,
        select=True,
        trade_mode=4,
        trade_contract_size=contract_size,
        volume_min=0.01,
        volume_max=100.0,
        volume_step=0.01,
        currency_base=name[:3],
        currency_profit=name[3:],
        currency_margin=name[:3],
        description=f"{name[:3]} vs {name[3:]}",
        path=f"Forex\\{name}",
        time=1_700_000_000,
    )


def _group_matches(group, name):
    included = False
    for mask in group.split(","):
        mask = mask.strip()
        if mask.startswith("!"):
            if fnmatch.fnmatchcase(name, mask[1:]):
                return False
        elif fnmatch.fnmatchcase(name, mask):
            included = True
    return included


class FakeTerminal:
    """Stand-in for the ``MetaTrader5`` module."""

    def __init__(self, rates_count=500):
        self.error = RES_S_OK
        self.calls = []
        self._failures = {}
        self._explosions = {}

        self.initialize_result = True
        self.login_result = True
        self.shutdown_error = None

        self.account = native(
            AccountInfo,
            login=5001234,
            leverage=100,
            limit_orders=200,
            margin_mode=2,
            trade_allowed=True,
            trade_expert=True,
            currency_digits=2,
            balance=10000.0,
            equity=10000.0,
            margin_free=10000.0,
            margin_so_call=50.0,
            margin_so_so=30.0,
            name="Test Account",
            server="MetaQuotes-Demo",
            currency="USD",
            company="MetaQuotes Software Corp.",
        )
        self.terminal = native(
            TerminalInfo,
            connected=True,
            trade_allowed=True,
            build=4000,
            maxbars=100000,
            codepage=1252,
            ping_last=35000,
            company="MetaQuotes Software Corp.",
            name="MetaTrader 5",
            language="English",
            path="C:\\Program Files\\MetaTrader 5",
            data_path="C:\\Users\\trader\\AppData\\Roaming\\MetaQuotes\\Terminal\\ABC",
            commondata_path="C:\\Users\\trader\\AppData\\Roaming\\MetaQuotes\\Terminal\\Common",
        )
        self.symbols = [
            _symbol("EURUSD", 5, 1.10000, 12),
            _symbol("GBPUSD", 5, 1.27000, 15),
            _symbol("USDJPY", 3, 150.000, 14),
            _symbol("AUDCAD", 5, 0.89000, 20),
            _symbol("NZDCHF", 5, 0.53000, 25),
        ]
        self.rates = make_rates(rates_count)
        self.ticks = make_ticks(50)
        self.orders = [
            native(Order, ticket=1001, symbol="EURUSD", type=2, state=1, volume_initial=0.1,
                   volume_current=0.1, price_open=1.09, time_setup=1_700_000_000),
            native(Order, ticket=1002, symbol="GBPUSD", type=3, state=1, volume_initial=0.2,
                   volume_current=0.2, price_open=1.28, time_setup=1_700_000_100),
        ]
        self.positions = [
            native(Position, ticket=2001, identifier=2001, symbol="EURUSD", type=0, volume=0.5,
                   price_open=1.095, price_current=1.1, profit=250.0, time=1_700_000_000),
        ]
        self.history_orders = [
            native(Order, ticket=3001, symbol="EURUSD", type=0, state=4, position_id=2001,
                   volume_initial=0.5, price_open=1.095, time_setup=1_699_000_000,
                   time_done=1_699_000_001),
        ]
        self.deals = [
            native(Deal, ticket=4001, order=3001, symbol="EURUSD", type=0, entry=0,
                   position_id=2001, volume=0.5, price=1.095, time=1_699_000_001),
            native(Deal, ticket=4002, order=3002, symbol="GBPUSD", type=1, entry=1,
                   position_id=2002, volume=0.1, price=1.27, profit=-12.5, time=1_699_100_000),
        ]

    # ═══════════════════════════════════════════════════════════════════════
    # SCRIPTING
    # ═══════════════════════════════════════════════════════════════════════

    def fail(self, name, code, message):
        """Make the next call to ``name`` return None and report (code, message)."""
        self._failures[name] = (code, message)

    def explode(self, name, exc, code=None, message=""):
        """Make the next call to ``name`` raise ``exc`` (optionally reporting a code)."""
        self._explosions[name] = (exc, code, message)

    def _enter(self, name, args, kwargs):
        self.calls.append((name, args, kwargs))
        self.error = RES_S_OK
        if name in self._explosions:
            exc, code, message = self._explosions.pop(name)
            if code is not None:
                self.error = (code, message)
            raise exc
        if name in self._failures:
            self.error = self._failures.pop(name)
            return True
        return False

    def last_call(self, name):
        for call in reversed(self.calls):
            if call[0] == name:
                return call
        raise AssertionError(f"{name} was never called")

    def last_error(self):
        return self.error

    # ═══════════════════════════════════════════════════════════════════════
    # CONNECTION
    # ═══════════════════════════════════════════════════════════════════════

    def initialize(self, *args, **kwargs):
        if self._enter("initialize", args, kwargs):
            return False
        return self.initialize_result

    def login(self, login, **kwargs):
        if self._enter("login", (login,), kwargs):
            return False
        return self.login_result

    def shutdown(self):
        self.calls.append(("shutdown", (), {}))
        if self.shutdown_error is not None:
            raise self.shutdown_error
        return None

    def version(self):
        if self._enter("version", (), {}):
            return None
        return (500, 4000, "15 Nov 2023")

    def account_info(self):
        if self._enter("account_info", (), {}):
            return None
        return self.account

    def terminal_info(self):
        if self._enter("terminal_info", (), {}):
            return None
        return self.terminal

    # ═══════════════════════════════════════════════════════════════════════
    # SYMBOLS
    # ═══════════════════════════════════════════════════════════════════════

    def _find_symbol(self, symbol):
        for info in self.symbols:
            if info.name == symbol:
                return info
        self.error = (-4, "Terminal: Not found")
        return None

    def symbols_total(self):
        if self._enter("symbols_total", (), {}):
            return None
        return len(self.symbols)

    def symbols_get(self, group=None):
        if self._enter("symbols_get", (), {"group": group} if group is not None else {}):
            return None
        if group is None:
            return tuple(self.symbols)
        return tuple(s for s in self.symbols if _group_matches(group, s.name))

    def symbol_info(self, symbol):
        if self._enter("symbol_info", (symbol,), {}):
            return None
        return self._find_symbol(symbol)

    def symbol_info_tick(self, symbol):
        if self._enter("symbol_info_tick", (symbol,), {}):
            return None
        info = self._find_symbol(symbol)
        if info is None:
            return None
        return native(
            SymbolTick,
            time=info.time,
            bid=info.bid,
            ask=info.ask,
            time_msc=info.time * 1000,
            flags=6,
        )

    def symbol_select(self, symbol, *args):
        if self._enter("symbol_select", (symbol,) + args, {}):
            return None
        return self._find_symbol(symbol) is not None

    # ═══════════════════════════════════════════════════════════════════════
    # MARKET DATA
    # ═══════════════════════════════════════════════════════════════════════

    def copy_rates_from(self, symbol, timeframe, date_from, count):
        if self._enter("copy_rates_from", (symbol, timeframe, date_from, count), {}):
            return None
        if self._find_symbol(symbol) is None:
            return None
        return self.rates[: max(count, 0)].copy()

    def copy_rates_from_pos(self, symbol, timeframe, start_pos, count):
        if self._enter("copy_rates_from_pos", (symbol, timeframe, start_pos, count), {}):
            return None
        if self._find_symbol(symbol) is None:
            return None
        return self.rates[start_pos : start_pos + count].copy()

    def copy_rates_range(self, symbol, timeframe, date_from, date_to):
        if self._enter("copy_rates_range", (symbol, timeframe, date_from, date_to), {}):
            return None
        if self._find_symbol(symbol) is None:
            return None
        lo, hi = date_from.timestamp(), date_to.timestamp()
        mask = (self.rates["time"] >= lo) & (self.rates["time"] <= hi)
        return self.rates[mask].copy()

    def copy_ticks_from(self, symbol, date_from, count, flags):
        if self._enter("copy_ticks_from", (symbol, date_from, count, flags), {}):
            return None
        return self.ticks[: max(count, 0)].copy()

    def copy_ticks_range(self, symbol, date_from, date_to, flags):
        if self._enter("copy_ticks_range", (symbol, date_from, date_to, flags), {}):
            return None
        lo, hi = date_from.timestamp(), date_to.timestamp()
        mask = (self.ticks["time"] >= lo) & (self.ticks["time"] <= hi)
        return self.ticks[mask].copy()

    # ═══════════════════════════════════════════════════════════════════════
    # ORDERS & TRADING
    # ═══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _filtered(items, symbol=None, group=None, ticket=None, position=None):
        if symbol is not None:
            items = [i for i in items if i.symbol == symbol]
        if group is not None:
            items = [i for i in items if _group_matches(group, i.symbol)]
        if ticket is not None:
            items = [i for i in items if i.ticket == ticket]
        if position is not None:
            items = [
                i for i in items
                if getattr(i, "position_id", getattr(i, "identifier", None)) == position
            ]
        # The vendor reports "nothing found" as None with a success code
        return tuple(items) or None

    def orders_total(self):
        if self._enter("orders_total", (), {}):
            return None
        return len(self.orders)

    def orders_get(self, **kwargs):
        if self._enter("orders_get", (), kwargs):
            return None
        return self._filtered(self.orders, **kwargs)

    def order_calc_margin(self, action, symbol, volume, price):
        if self._enter("order_calc_margin", (action, symbol, volume, price), {}):
            return None
        info = self._find_symbol(symbol)
        if info is None:
            return None
        return volume * info.trade_contract_size * price / self.account.leverage

    def order_calc_profit(self, action, symbol, volume, price_open, price_close):
        if self._enter("order_calc_profit", (action, symbol, volume, price_open, price_close), {}):
            return None
        info = self._find_symbol(symbol)
        if info is None:
            return None
        direction = 1 if action == 0 else -1
        return direction * (price_close - price_open) * volume * info.trade_contract_size

    def _echo(self, request):
        return native(TradeRequest, **request)

    def order_check(self, request):
        if self._enter("order_check", (request,), {}):
            return None
        if "action" not in request or "symbol" not in request:
            self.error = (-2, "Invalid arguments")
            return None
        margin = request.get("volume", 0.0) * 100000 * request.get("price", 0.0) / 100
        return native(
            CheckResult,
            retcode=0,
            balance=self.account.balance,
            equity=self.account.equity,
            margin=margin,
            margin_free=self.account.margin_free - margin,
            margin_level=self.account.equity / margin * 100 if margin else 0.0,
            comment="Done",
            request=self._echo(request),
        )

    def order_send(self, request):
        if self._enter("order_send", (request,), {}):
            return None
        if "action" not in request or "symbol" not in request:
            self.error = (-2, "Invalid arguments")
            return None
        return native(
            TradeResult,
            retcode=10009,
            deal=5001,
            order=6001,
            volume=request.get("volume", 0.0),
            price=request.get("price", 0.0),
            bid=1.1,
            ask=1.10012,
            comment="Request executed",
            request_id=42,
            request=self._echo(request),
        )

    # ═══════════════════════════════════════════════════════════════════════
    # POSITIONS & HISTORY
    # ═══════════════════════════════════════════════════════════════════════

    def positions_total(self):
        if self._enter("positions_total", (), {}):
            return None
        return len(self.positions)

    def positions_get(self, **kwargs):
        if self._enter("positions_get", (), kwargs):
            return None
        return self._filtered(self.positions, **kwargs)

    def history_orders_total(self, date_from, date_to):
        if self._enter("history_orders_total", (date_from, date_to), {}):
            return None
        return len(self.history_orders)

    def history_orders_get(self, *args, **kwargs):
        if self._enter("history_orders_get", args, kwargs):
            return None
        return self._filtered(self.history_orders, **kwargs)

    def history_deals_total(self, date_from, date_to):
        if self._enter("history_deals_total", (date_from, date_to), {}):
            return None
        return len(self.deals)

    def history_deals_get(self, *args, **kwargs):
        if self._enter("history_deals_get", args, kwargs):
            return None
        return self._filtered(self.deals, **kwargs)
