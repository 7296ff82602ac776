#!/usr/bin/env python3
"""
Example: Last Tick of a Symbol

Usage:
    TERMINAL_PATH=C:\\...\\terminal64.exe python examples/symbol_info_tick.py [SYMBOL]
"""

import logging
import sys

from mt5bind import config
from mt5bind.session import TerminalSession


def main():
    logging.basicConfig(level=config.LOG_LEVEL)

    if not config.TERMINAL_PATH:
        sys.exit("TERMINAL_PATH must be set")
    symbol = sys.argv[1] if len(sys.argv) > 1 else "EURUSD"

    with TerminalSession().initialize(config.TERMINAL_PATH) as session:
        tick = session.symbol_info_tick(symbol)
        print(tick)
        print(f"{symbol} @ {tick.timestamp:%Y-%m-%d %H:%M:%S}  bid={tick.bid}  ask={tick.ask}")


if __name__ == "__main__":
    main()
