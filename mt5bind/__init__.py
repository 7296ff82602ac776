"""
mt5bind - Typed Bindings for the MetaTrader 5 Terminal

Two transports behind one interface (TerminalFacade):
- TerminalSession: in-process, over the vendor ``MetaTrader5`` module
- ProxyClient: over HTTP, against ``mt5bind.proxy_server``

Every operation returns typed, immutable records or raises:
- TerminalError (exact ``(code, message)`` from the terminal's error channel)
- AuthFailedError (initialize/login refused)
- RecordDecodeError / UnmappedEnumError (terminal data outside the schema)

Components are only imported when first accessed, so importing the package
does not pull in numpy, pandas or requests.
"""

__version__ = "0.3.0"

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .enums import (
        CopyTicksFlags,
        OrderType,
        OrderTypeFilling,
        OrderTypeTime,
        ResultCode,
        ReturnCode,
        Timeframe,
        TradeActionRequest,
    )
    from .errors import (
        AuthFailedError,
        ModuleLoadError,
        MT5BindError,
        ProxyError,
        RecordDecodeError,
        TerminalError,
        UnmappedEnumError,
        UnmappedPropertyError,
    )
    from .facade import TerminalFacade
    from .proxy import AccountInfoClient, ProxyClient, TerminalInfoClient
    from .records import (
        AccountCredentials,
        AccountInfo,
        AccountInfoProperty,
        CheckResult,
        Deal,
        Order,
        Position,
        SymbolInfo,
        SymbolInfoProperty,
        SymbolRates,
        SymbolTick,
        TerminalInfo,
        TerminalInfoProperty,
        TerminalVersion,
        TradeRequest,
        TradeResult,
    )
    from .session import TerminalSession
    from .trade import TradeRequestBuilder

# Lazy import mapping: attribute name -> module name
_LAZY_MODULES = {
    # Transports
    "TerminalFacade": "facade",
    "TerminalSession": "session",
    "ProxyClient": "proxy",
    "AccountInfoClient": "proxy",
    "TerminalInfoClient": "proxy",
    "TradeRequestBuilder": "trade",
    # Enums
    "Timeframe": "enums",
    "CopyTicksFlags": "enums",
    "OrderType": "enums",
    "OrderTypeFilling": "enums",
    "OrderTypeTime": "enums",
    "TradeActionRequest": "enums",
    "ReturnCode": "enums",
    "ResultCode": "enums",
    # Errors
    "MT5BindError": "errors",
    "TerminalError": "errors",
    "AuthFailedError": "errors",
    "ProxyError": "errors",
    "RecordDecodeError": "errors",
    "UnmappedEnumError": "errors",
    "UnmappedPropertyError": "errors",
    "ModuleLoadError": "errors",
    # Records
    "AccountCredentials": "records",
    "AccountInfo": "records",
    "AccountInfoProperty": "records",
    "CheckResult": "records",
    "Deal": "records",
    "Order": "records",
    "Position": "records",
    "SymbolInfo": "records",
    "SymbolInfoProperty": "records",
    "SymbolRates": "records",
    "SymbolTick": "records",
    "TerminalInfo": "records",
    "TerminalInfoProperty": "records",
    "TerminalVersion": "records",
    "TradeRequest": "records",
    "TradeResult": "records",
}

_loaded_modules = {}


def __getattr__(name: str):
    """Lazy import handler - only imports modules when accessed."""
    if name in _LAZY_MODULES:
        module_name = _LAZY_MODULES[name]
        if module_name not in _loaded_modules:
            _loaded_modules[module_name] = importlib.import_module(
                f".{module_name}", package="mt5bind"
            )
        return getattr(_loaded_modules[module_name], name)

    raise AttributeError(f"module 'mt5bind' has no attribute '{name}'")


def __dir__():
    """Return available attributes for IDE autocomplete support."""
    return list(_LAZY_MODULES.keys()) + ["__version__"]


__all__ = list(_LAZY_MODULES.keys())
