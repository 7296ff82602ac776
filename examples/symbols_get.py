#!/usr/bin/env python3
"""
Example: Listing Symbols

Prints the first five symbols, then every symbol outside the major
currencies using a group filter.
"""

import logging
import sys
from itertools import islice

from mt5bind import config
from mt5bind.records import SymbolInfoProperty
from mt5bind.session import TerminalSession

GROUP = "*,!*USD*,!*EUR*,!*JPY*,!*GBP*"


def main():
    logging.basicConfig(level=config.LOG_LEVEL)

    if not config.TERMINAL_PATH:
        sys.exit("TERMINAL_PATH must be set")

    with TerminalSession().initialize(config.TERMINAL_PATH) as session:
        symbols = session.symbols_get()
        print(f"Symbols: {len(symbols)}")
        for count, symbol in enumerate(islice(symbols, 5), start=1):
            print(f"{count}. {symbol.get_info_string(SymbolInfoProperty.NAME)}")

        group_symbols = session.symbols_get(GROUP)
        print(f"len({GROUP}): {len(group_symbols)}")
        for symbol in group_symbols:
            print(symbol.get_info_string(SymbolInfoProperty.NAME))


if __name__ == "__main__":
    main()
