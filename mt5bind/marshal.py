"""
Marshalling Between Python Values and Terminal Values
=====================================================

Inputs:
- datetimes are decomposed into year..microsecond and rebuilt naive, so the
  terminal sees the caller's wall-clock time (no timezone conversion)
- epoch seconds are interpreted on the local clock
- timeframes/flags/actions cross as their raw integers

Outputs:
- named tuples are unpacked with ``_asdict()``
- record arrays (numpy structured arrays from copy_rates_*/copy_ticks_*) are
  turned into rows with pandas, then into records
- trade results carry the echoed request as a nested named tuple, which is
  unpacked on its own and merged back before decoding
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Type, TypeVar, Union

import pandas as pd

from .enums import Timeframe
from .errors import RecordDecodeError
from .records import Record, _decode_value

R = TypeVar("R", bound=Record)

DateLike = Union[datetime, int, float]


def to_terminal_datetime(value: DateLike) -> datetime:
    """Rebuild ``value`` as the naive datetime handed to the terminal."""
    if isinstance(value, datetime):
        return datetime(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
            fold=value.fold,
        )
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value)
    raise TypeError(f"Expected datetime or epoch seconds, got {type(value).__name__}")


def to_epoch_seconds(value: DateLike) -> int:
    """Epoch seconds of the wall-clock time the terminal would see for ``value``."""
    return int(to_terminal_datetime(value).timestamp())


def timeframe_code(timeframe: Union[Timeframe, int, str]) -> int:
    """Raw bit-packed timeframe integer (H1 -> 16385)."""
    return int(Timeframe.parse(timeframe))


def as_mapping(record: str, value: Any) -> Dict[str, Any]:
    """Unpack a named tuple (or mapping) returned by the terminal."""
    if hasattr(value, "_asdict"):
        return dict(value._asdict())
    if isinstance(value, Mapping):
        return dict(value)
    raise RecordDecodeError(record, "*", value, "expected a named tuple or mapping")


def record_array_to_rows(array: Any) -> List[Dict[str, Any]]:
    """Convert a columnar record array into a list of row dicts."""
    if array is None:
        return []
    frame = pd.DataFrame(array)
    if frame.empty:
        return []
    return frame.to_dict(orient="records")


def decode_one(cls: Type[R], value: Any) -> R:
    return cls.from_mapping(as_mapping(cls.__name__, value))


def decode_many(cls: Type[R], values: Iterable[Any]) -> List[R]:
    if values is None:
        return []
    return [decode_one(cls, value) for value in values]


def decode_rows(cls: Type[R], array: Any) -> List[R]:
    return [cls.from_mapping(row) for row in record_array_to_rows(array)]


def merge_echoed_request(record: str, result: Any) -> Dict[str, Any]:
    """Unpack a check/send result and its embedded request into one dict."""
    data = as_mapping(record, result)
    if "request" not in data:
        raise RecordDecodeError(record, "request")
    data["request"] = as_mapping("TradeRequest", data["request"])
    return data


def decode_scalar(operation: str, kind: type) -> Callable[[Any], Any]:
    """Decoder for an operation returning one int/float/bool."""

    def decode(value: Any) -> Any:
        if value is None:
            raise RecordDecodeError(operation, "result", value, "no value returned")
        return _decode_value(operation, "result", kind, value)

    return decode
