"""
Shared pytest fixtures for mt5bind tests.

Provides a fake terminal module, sessions bound to it, and a proxy server
running over that session on an ephemeral port.
"""

import threading

import pytest

from fake_terminal import FakeTerminal
from mt5bind.proxy import ProxyClient
from mt5bind.proxy_server import ProxyServer
from mt5bind.records import AccountCredentials
from mt5bind.session import TerminalSession


@pytest.fixture
def fake():
    """Fresh fake terminal module (no calls, success error channel)."""
    return FakeTerminal()


@pytest.fixture
def session(fake):
    """Initialized session over the fake terminal."""
    return TerminalSession(module=fake).initialize("C:\\MT5\\terminal64.exe")


@pytest.fixture
def credentials():
    return AccountCredentials(login=5001234, password="s3cret", server="MetaQuotes-Demo")


@pytest.fixture
def proxy_server(session):
    """
    Proxy server over the fake-backed session, bound to a free local port.

    Served from a background thread; shut down after the test.
    """
    server = ProxyServer(session, host="127.0.0.1", port=0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture
def client(proxy_server, credentials):
    """Authenticated ProxyClient talking to ``proxy_server``."""
    proxy = ProxyClient(proxy_server.url, timeout=5)
    proxy.authenticate(credentials)
    yield proxy
    proxy.close()
