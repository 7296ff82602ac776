"""
Trade Request Builder
=====================

Accumulates the optional fields of a trade request. Only fields that were
set are forwarded to the terminal: it treats an absent ``sl`` differently
from ``sl=0.0``.

Usage:
    request = (
        TradeRequestBuilder()
        .action(TradeActionRequest.DEAL)
        .symbol("EURUSD")
        .volume(0.01)
        .price(tick.ask)
        .type(OrderType.BUY)
        .type_filling(OrderTypeFilling.IOC)
        .type_time(OrderTypeTime.GTC)
    )
    result = session.order_send(request)
"""

from datetime import datetime
from typing import Any, Dict, Union

from .enums import (
    OrderType,
    OrderTypeFilling,
    OrderTypeTime,
    TradeActionRequest,
    decode_enum,
)
from .marshal import to_epoch_seconds

# Native field order of MqlTradeRequest
FIELDS = (
    "action",
    "magic",
    "order",
    "symbol",
    "volume",
    "price",
    "stoplimit",
    "sl",
    "tp",
    "deviation",
    "type",
    "type_filling",
    "type_time",
    "expiration",
    "comment",
    "position",
    "position_by",
)


class TradeRequestBuilder:
    """Fluent builder for a MqlTradeRequest; unset fields stay absent."""

    def __init__(self, **fields: Any):
        self._fields: Dict[str, Any] = {}
        for name, value in fields.items():
            setter = getattr(self, name, None)
            if name not in FIELDS or setter is None:
                raise TypeError(f"Unknown trade request field: {name}")
            setter(value)

    def _set(self, name: str, value: Any) -> "TradeRequestBuilder":
        self._fields[name] = value
        return self

    # Enumerated fields
    def action(self, value: Union[TradeActionRequest, int]) -> "TradeRequestBuilder":
        return self._set("action", int(decode_enum(TradeActionRequest, value)))

    def type(self, value: Union[OrderType, int]) -> "TradeRequestBuilder":
        return self._set("type", int(decode_enum(OrderType, value)))

    order_type = type

    def type_filling(self, value: Union[OrderTypeFilling, int]) -> "TradeRequestBuilder":
        return self._set("type_filling", int(decode_enum(OrderTypeFilling, value)))

    def type_time(self, value: Union[OrderTypeTime, int]) -> "TradeRequestBuilder":
        return self._set("type_time", int(decode_enum(OrderTypeTime, value)))

    # Identifiers
    def magic(self, value: int) -> "TradeRequestBuilder":
        return self._set("magic", int(value))

    def order(self, value: int) -> "TradeRequestBuilder":
        return self._set("order", int(value))

    def position(self, value: int) -> "TradeRequestBuilder":
        return self._set("position", int(value))

    def position_by(self, value: int) -> "TradeRequestBuilder":
        return self._set("position_by", int(value))

    def symbol(self, value: str) -> "TradeRequestBuilder":
        return self._set("symbol", str(value))

    def comment(self, value: str) -> "TradeRequestBuilder":
        return self._set("comment", str(value))

    # Prices and volume
    def volume(self, value: float) -> "TradeRequestBuilder":
        return self._set("volume", float(value))

    def price(self, value: float) -> "TradeRequestBuilder":
        return self._set("price", float(value))

    def stoplimit(self, value: float) -> "TradeRequestBuilder":
        return self._set("stoplimit", float(value))

    def sl(self, value: float) -> "TradeRequestBuilder":
        return self._set("sl", float(value))

    def tp(self, value: float) -> "TradeRequestBuilder":
        return self._set("tp", float(value))

    def deviation(self, value: int) -> "TradeRequestBuilder":
        return self._set("deviation", int(value))

    def expiration(self, value: Union[datetime, int]) -> "TradeRequestBuilder":
        return self._set("expiration", to_epoch_seconds(value))

    def is_set(self, name: str) -> bool:
        return name in self._fields

    def copy(self) -> "TradeRequestBuilder":
        clone = TradeRequestBuilder()
        clone._fields = dict(self._fields)
        return clone

    def to_request(self) -> Dict[str, Any]:
        """The request dict handed to the terminal, set fields only."""
        return {name: self._fields[name] for name in FIELDS if name in self._fields}

    def __eq__(self, other) -> bool:
        if not isinstance(other, TradeRequestBuilder):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self.to_request().items())
        return f"TradeRequestBuilder({body})"
