#!/usr/bin/env python3
"""
Terminal HTTP Proxy Server
==========================

Run this on the Windows machine that hosts the terminal. It exposes a
TerminalSession over JSON/HTTP so ProxyClient callers (WSL2, containers,
other hosts) get the same typed operations.

- POST /security/login logs the terminal into an account and returns a
  bearer token; every other route requires ``Authorization: Bearer <token>``
- failures are answered as ``{"code": <int>, "message": <str>}``:
  401 auth, 400 bad parameters, 404 unknown route, 502 terminal error,
  500 undecodable terminal data (no code)
- terminal calls are serialized; the session is not thread-safe

Usage:
    python -m mt5bind.proxy_server [--host 127.0.0.1] [--port 8000] [--path C:\\...\\terminal64.exe]
"""

import argparse
import json
import logging
import re
import secrets
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, List, Optional, Pattern, Set, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

from . import config
from .enums import ResultCode, Timeframe
from .errors import (
    AuthFailedError,
    MT5BindError,
    RecordDecodeError,
    TerminalError,
    UnmappedEnumError,
)
from .records import AccountCredentials, Record
from .session import TerminalSession
from .trade import TradeRequestBuilder

logger = logging.getLogger(__name__)


class BadRequest(Exception):
    """A request parameter is missing or malformed."""


class _Unauthorized(Exception):
    pass


def _to_json(value: Any) -> Any:
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_json(item) for item in value]
    return value


# ═══════════════════════════════════════════════════════════════════════════
# REQUEST PARAMETERS
# ═══════════════════════════════════════════════════════════════════════════

class Params:
    """Typed access to query-string (GET) or JSON body (POST) parameters."""

    def __init__(self, values: Dict[str, Any]):
        self.values = values

    def _raw(self, name: str, required: bool) -> Any:
        value = self.values.get(name)
        if value is None and required:
            raise BadRequest(f"Missing parameter '{name}'")
        return value

    def _convert(self, name: str, convert: Callable, required: bool) -> Any:
        value = self._raw(name, required)
        if value is None:
            return None
        try:
            return convert(value)
        except (TypeError, ValueError) as e:
            raise BadRequest(f"Invalid parameter '{name}': {value!r}") from e

    def get_int(self, name: str, required: bool = True) -> Optional[int]:
        return self._convert(name, int, required)

    def get_float(self, name: str, required: bool = True) -> Optional[float]:
        return self._convert(name, float, required)

    def get_str(self, name: str, required: bool = True) -> Optional[str]:
        return self._convert(name, str, required)

    def get_bool(self, name: str, required: bool = True) -> Optional[bool]:
        def parse(value):
            if isinstance(value, bool):
                return value
            if str(value).lower() in ("1", "true", "yes"):
                return True
            if str(value).lower() in ("0", "false", "no"):
                return False
            raise ValueError(value)

        return self._convert(name, parse, required)

    def timeframe(self) -> Timeframe:
        value = self._raw("timeframe", True)
        try:
            return Timeframe.parse(int(value) if str(value).lstrip("-").isdigit() else value)
        except ValueError as e:
            raise BadRequest(f"Invalid parameter 'timeframe': {value!r}") from e


# ═══════════════════════════════════════════════════════════════════════════
# ROUTES
# ═══════════════════════════════════════════════════════════════════════════

Handler = Callable[[TerminalSession, Params, Tuple[str, ...]], Any]


def _trade_request(params: Params) -> TradeRequestBuilder:
    try:
        return TradeRequestBuilder(**params.values)
    except (TypeError, ValueError) as e:
        raise BadRequest(f"Invalid trade request: {e}") from e


def _history(params: Params) -> Dict[str, Any]:
    return {
        "date_from": params.get_int("date_from"),
        "date_to": params.get_int("date_to"),
        "group": params.get_str("group", required=False),
        "ticket": params.get_int("ticket", required=False),
        "position": params.get_int("position", required=False),
    }


_ROUTE_TABLE = [
    ("GET", r"/account/?", lambda s, p, a: s.account_info()),
    ("GET", r"/terminal/?", lambda s, p, a: s.terminal_info()),
    ("GET", r"/terminal/version", lambda s, p, a: s.version()),
    ("GET", r"/symbols/total", lambda s, p, a: {"total": s.symbols_total()}),
    ("GET", r"/symbols/?", lambda s, p, a: s.symbols_get(group=p.get_str("group", required=False))),
    ("GET", r"/symbols/([^/]+)/tick", lambda s, p, a: s.symbol_info_tick(a[0])),
    ("GET", r"/symbols/([^/]+)", lambda s, p, a: s.symbol_info(a[0])),
    (
        "POST",
        r"/symbols/([^/]+)/select",
        lambda s, p, a: {"selected": s.symbol_select(a[0], p.get_bool("enable", required=False))},
    ),
    (
        "GET",
        r"/rates/([^/]+)/from",
        lambda s, p, a: s.copy_rates_from(a[0], p.timeframe(), p.get_int("date_from"), p.get_int("count")),
    ),
    (
        "GET",
        r"/rates/([^/]+)/from-pos",
        lambda s, p, a: s.copy_rates_from_pos(a[0], p.timeframe(), p.get_int("start_pos"), p.get_int("count")),
    ),
    (
        "GET",
        r"/rates/([^/]+)/range",
        lambda s, p, a: s.copy_rates_range(a[0], p.timeframe(), p.get_int("date_from"), p.get_int("date_to")),
    ),
    (
        "GET",
        r"/ticks/([^/]+)/from",
        lambda s, p, a: s.copy_ticks_from(a[0], p.get_int("date_from"), p.get_int("count"), p.get_int("flags")),
    ),
    (
        "GET",
        r"/ticks/([^/]+)/range",
        lambda s, p, a: s.copy_ticks_range(a[0], p.get_int("date_from"), p.get_int("date_to"), p.get_int("flags")),
    ),
    ("GET", r"/orders/total", lambda s, p, a: {"total": s.orders_total()}),
    (
        "GET",
        r"/orders/?",
        lambda s, p, a: s.orders_get(
            symbol=p.get_str("symbol", required=False),
            group=p.get_str("group", required=False),
            ticket=p.get_int("ticket", required=False),
        ),
    ),
    (
        "POST",
        r"/orders/calc-margin",
        lambda s, p, a: {
            "margin": s.order_calc_margin(p.get_int("action"), p.get_str("symbol"), p.get_float("volume"), p.get_float("price"))
        },
    ),
    (
        "POST",
        r"/orders/calc-profit",
        lambda s, p, a: {
            "profit": s.order_calc_profit(
                p.get_int("action"),
                p.get_str("symbol"),
                p.get_float("volume"),
                p.get_float("price_open"),
                p.get_float("price_close"),
            )
        },
    ),
    ("POST", r"/orders/check", lambda s, p, a: s.order_check(_trade_request(p))),
    ("POST", r"/orders/send", lambda s, p, a: s.order_send(_trade_request(p))),
    ("GET", r"/positions/total", lambda s, p, a: {"total": s.positions_total()}),
    (
        "GET",
        r"/positions/?",
        lambda s, p, a: s.positions_get(
            symbol=p.get_str("symbol", required=False),
            group=p.get_str("group", required=False),
            ticket=p.get_int("ticket", required=False),
        ),
    ),
    (
        "GET",
        r"/history/orders/total",
        lambda s, p, a: {"total": s.history_orders_total(p.get_int("date_from"), p.get_int("date_to"))},
    ),
    ("GET", r"/history/orders/?", lambda s, p, a: s.history_orders_get(**_history(p))),
    (
        "GET",
        r"/history/deals/total",
        lambda s, p, a: {"total": s.history_deals_total(p.get_int("date_from"), p.get_int("date_to"))},
    ),
    ("GET", r"/history/deals/?", lambda s, p, a: s.history_deals_get(**_history(p))),
]

ROUTES: List[Tuple[str, Pattern, Handler]] = [
    (method, re.compile(f"^{pattern}$"), handler) for method, pattern, handler in _ROUTE_TABLE
]


def match_route(method: str, path: str) -> Optional[Tuple[Handler, Tuple[str, ...]]]:
    for route_method, pattern, handler in ROUTES:
        if route_method != method:
            continue
        found = pattern.match(path)
        if found:
            return handler, tuple(unquote(group) for group in found.groups())
    return None


# ═══════════════════════════════════════════════════════════════════════════
# SERVER
# ═══════════════════════════════════════════════════════════════════════════

class ProxyRequestHandler(BaseHTTPRequestHandler):
    server: "ProxyServer"

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self):
        self._dispatch("GET")

    def do_POST(self):
        self._dispatch("POST")

    def _send_json(self, status: int, payload: Any) -> None:
        body = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error(self, status: int, code: Optional[int], message: str) -> None:
        payload: Dict[str, Any] = {"message": message}
        if code is not None:
            payload["code"] = int(code)
        self._send_json(status, payload)

    def _params(self, method: str, query: str) -> Params:
        if method == "GET":
            return Params({k: v[-1] for k, v in parse_qs(query).items()})
        length = int(self.headers.get("Content-Length") or 0)
        if not length:
            return Params({})
        try:
            body = json.loads(self.rfile.read(length))
        except ValueError as e:
            raise BadRequest("Request body is not valid JSON") from e
        if not isinstance(body, dict):
            raise BadRequest("Request body must be a JSON object")
        return Params(body)

    def _check_token(self) -> None:
        header = self.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or token not in self.server.tokens:
            raise _Unauthorized("Missing or invalid bearer token")

    def _dispatch(self, method: str) -> None:
        url = urlsplit(self.path)
        try:
            params = self._params(method, url.query)
            if method == "POST" and url.path == "/security/login":
                self._send_json(200, {"token": self.server.login(params)})
                return

            route = match_route(method, url.path)
            if route is None:
                self._send_error(404, None, f"No route for {method} {url.path}")
                return
            self._check_token()

            handler, args = route
            with self.server.lock:
                result = handler(self.server.session, params, args)
            self._send_json(200, _to_json(result))
        except _Unauthorized as e:
            self._send_error(401, ResultCode.AUTH_FAILED, str(e))
        except AuthFailedError as e:
            logger.error("%s %s: %s", method, url.path, e)
            self._send_error(401, e.code, e.message)
        except TerminalError as e:
            logger.error("%s %s: %s", method, url.path, e)
            self._send_error(502, e.code, e.message)
        except (RecordDecodeError, UnmappedEnumError) as e:
            logger.error("%s %s: undecodable terminal data: %s", method, url.path, e)
            self._send_error(500, None, str(e))
        except (BadRequest, ValueError) as e:
            self._send_error(400, ResultCode.INVALID_PARAMS, str(e))
        except MT5BindError as e:
            logger.error("%s %s: %s", method, url.path, e)
            self._send_error(500, None, str(e))
        except Exception as e:
            logger.exception("%s %s: unexpected failure", method, url.path)
            self._send_error(500, None, f"{type(e).__name__}: {e}")


class ProxyServer(ThreadingHTTPServer):
    """
    Threaded HTTP server exposing one TerminalSession.

    Args:
        session: An initialized session
        host: Interface to bind
        port: Port to bind (0 picks a free one)
    """

    daemon_threads = True

    def __init__(self, session: TerminalSession, host: Optional[str] = None, port: Optional[int] = None):
        self.session = session
        self.lock = threading.Lock()
        self.tokens: Set[str] = set()
        super().__init__(
            (host or config.PROXY_HOST, port if port is not None else config.PROXY_PORT),
            ProxyRequestHandler,
        )

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    def login(self, params: Params) -> str:
        credentials = AccountCredentials(
            login=params.get_int("login"),
            password=params.get_str("password"),
            server=params.get_str("server"),
        )
        try:
            with self.lock:
                self.session.login(credentials)
        except TerminalError as e:
            raise AuthFailedError(e.code, e.message) from e
        token = secrets.token_hex(16)
        self.tokens.add(token)
        logger.info("Issued token for account %s", credentials.login)
        return token


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Terminal HTTP proxy server")
    parser.add_argument("--host", default=config.PROXY_HOST, help="Interface to bind")
    parser.add_argument("--port", type=int, default=config.PROXY_PORT, help="Port to bind")
    parser.add_argument("--path", default=config.TERMINAL_PATH, help="Path to terminal64.exe")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    session = TerminalSession()
    session.initialize(args.path)

    server = ProxyServer(session, args.host, args.port)
    logger.info("Terminal proxy running on %s", server.url)
    logger.info("Press Ctrl+C to stop")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.server_close()
        session.shutdown()


if __name__ == "__main__":
    main()
