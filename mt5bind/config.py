"""
mt5bind Configuration
=====================

Centralized settings read from the environment. A ``.env`` file in the
working directory is loaded first (existing variables win).

Every setting can be overridden by the explicit argument of the call that
uses it; values are not validated beyond presence.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


# =============================================================================
# TERMINAL
# =============================================================================

# Path to terminal64.exe (or the installation directory)
TERMINAL_PATH = os.environ.get("TERMINAL_PATH")

# Name of the vendor module hosting the terminal API
TERMINAL_MODULE = os.environ.get("MT5BIND_TERMINAL_MODULE", "MetaTrader5")

# Connect timeout for initialize/login, milliseconds
CONNECT_TIMEOUT_MS = _env_int("MT5BIND_CONNECT_TIMEOUT_MS", 60000)


def site_packages_from_env() -> Optional[str]:
    """
    Directory holding the vendor module.

    MT5BIND_SITE_PACKAGES wins; otherwise derived from a Poetry virtualenv
    root in POETRY_ENVIRONMENT (``<root>\\lib\\site-packages``).
    """
    explicit = os.environ.get("MT5BIND_SITE_PACKAGES")
    if explicit:
        return explicit
    poetry_root = os.environ.get("POETRY_ENVIRONMENT")
    if poetry_root:
        return f"{poetry_root}\\lib\\site-packages\\"
    return None


SITE_PACKAGES = site_packages_from_env()


# =============================================================================
# ACCOUNT
# =============================================================================

ACCOUNT_LOGIN = os.environ.get("TERMINAL_ACCOUNT_ID")
ACCOUNT_PASSWORD = os.environ.get("TERMINAL_ACCOUNT_PASSWORD")
ACCOUNT_SERVER = os.environ.get("TERMINAL_ACCOUNT_SERVER")


def credentials_from_env():
    """
    Build AccountCredentials from TERMINAL_ACCOUNT_ID/_PASSWORD/_SERVER.

    Raises:
        ValueError: a variable is missing or the login is not an integer
    """
    from .records import AccountCredentials

    values = {}
    for var in ("TERMINAL_ACCOUNT_ID", "TERMINAL_ACCOUNT_PASSWORD", "TERMINAL_ACCOUNT_SERVER"):
        value = os.environ.get(var)
        if not value:
            raise ValueError(f"{var} is required")
        values[var] = value

    try:
        login = int(values["TERMINAL_ACCOUNT_ID"])
    except ValueError:
        raise ValueError("TERMINAL_ACCOUNT_ID must be an integer") from None

    return AccountCredentials(
        login=login,
        password=values["TERMINAL_ACCOUNT_PASSWORD"],
        server=values["TERMINAL_ACCOUNT_SERVER"],
    )


# =============================================================================
# HTTP PROXY
# =============================================================================

PROXY_URL = os.environ.get("MT5BIND_PROXY_URL", "http://localhost:8000")

# Per-request timeout, seconds
REQUEST_TIMEOUT = _env_float("MT5BIND_REQUEST_TIMEOUT", 30.0)

PROXY_HOST = os.environ.get("MT5BIND_PROXY_HOST", "127.0.0.1")
PROXY_PORT = _env_int("MT5BIND_PROXY_PORT", 8000)


# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("MT5BIND_LOG_LEVEL", "INFO").upper()
