"""
Error Taxonomy for mt5bind
==========================

Failures fall into four groups:
- Connection/auth failures: initialize/login returned False or the error
  channel reported a negative code right after them
- Error-channel failures: any operation after which ``last_error()`` reports
  a negative code (invalid symbol, disconnected terminal, rejected request)
- Marshalling defects: the terminal returned something that does not match
  the record schema
- Unmapped codes: an integer with no named variant in a closed enum table

Only the first two are recoverable and carry the terminal's exact
``(code, message)`` pair. The last two indicate a version mismatch with the
terminal and abort the current call.
"""

from typing import Any, Optional, Tuple


class MT5BindError(Exception):
    """Base class for every error raised by mt5bind."""


class TerminalError(MT5BindError):
    """The terminal's error channel reported a failure."""

    def __init__(self, code: int, message: str):
        super().__init__(code, message)
        self.code = code
        self.message = message

    @property
    def error(self) -> Tuple[int, str]:
        """The ``(code, message)`` pair exactly as reported."""
        return (self.code, self.message)

    def __str__(self) -> str:
        return f"[{int(self.code)}] {self.message}"


class AuthFailedError(TerminalError):
    """Connecting to or logging in to the terminal failed."""


class ProxyError(MT5BindError):
    """HTTP transport failure or undecodable proxy response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordDecodeError(MT5BindError):
    """A foreign value does not match the expected record schema."""

    def __init__(self, record: str, field: str, value: Any = None, reason: str = "missing"):
        self.record = record
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{record}.{field}: {reason} (got {value!r})")


class UnmappedEnumError(MT5BindError, ValueError):
    """An integer code has no variant in its enum table."""

    def __init__(self, enum_name: str, value: Any):
        self.enum_name = enum_name
        self.value = value
        super().__init__(f"Invalid {enum_name} value: {value!r}")


class UnmappedPropertyError(MT5BindError):
    """A property tag was asked of an accessor of a different kind."""


class ModuleLoadError(MT5BindError, ImportError):
    """The vendor terminal module could not be imported."""
