#!/usr/bin/env python3
"""
Example: Terminal Properties After Login

Logs into the account from TERMINAL_ACCOUNT_ID/_PASSWORD/_SERVER and prints
every terminal property. Pass ``--proxy URL`` to go through the HTTP proxy
instead of the in-process session.
"""

import argparse
import logging
import sys

from mt5bind import config
from mt5bind.errors import TerminalError


def print_fields(record):
    for key, value in record.to_dict().items():
        print(f"{key}: {value}")


def main():
    parser = argparse.ArgumentParser(description="Print terminal properties")
    parser.add_argument("--proxy", help="Proxy URL (default: in-process session)")
    args = parser.parse_args()

    logging.basicConfig(level=config.LOG_LEVEL)

    try:
        credentials = config.credentials_from_env()
    except ValueError as e:
        sys.exit(str(e))

    if args.proxy:
        from mt5bind.proxy import ProxyClient, TerminalInfoClient
        from mt5bind.records import TerminalInfoProperty

        with ProxyClient(args.proxy) as client:
            client.authenticate(credentials)
            info = TerminalInfoClient(client)
            print(f"Terminal: {info.info_string(TerminalInfoProperty.NAME)}")
            print_fields(info.info_all())
        return

    from mt5bind.session import TerminalSession

    if not config.TERMINAL_PATH:
        sys.exit("TERMINAL_PATH must be set")

    with TerminalSession().initialize(config.TERMINAL_PATH) as session:
        try:
            session.login(credentials)
        except TerminalError as e:
            sys.exit(f"Failed to login: {e.code!r} - {e.message}")
        terminal_info = session.terminal_info()
        print(terminal_info)
        print_fields(terminal_info)


if __name__ == "__main__":
    main()
