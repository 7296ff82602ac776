#!/usr/bin/env python3
"""Example: number of symbols known to the terminal."""

import logging
import sys

from mt5bind import config
from mt5bind.session import TerminalSession


def main():
    logging.basicConfig(level=config.LOG_LEVEL)

    if not config.TERMINAL_PATH:
        sys.exit("TERMINAL_PATH must be set")

    with TerminalSession().initialize(config.TERMINAL_PATH) as session:
        print(f"Symbols total: {session.symbols_total()}")


if __name__ == "__main__":
    main()
