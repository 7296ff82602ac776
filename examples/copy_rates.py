#!/usr/bin/env python3
"""
Example: Copying OHLC Bars

Fetches daily EURUSD bars three ways (from a date, from a position, and over
a date range) and prints them.

Usage:
    TERMINAL_PATH=C:\\...\\terminal64.exe python examples/copy_rates.py
"""

import logging
import sys
from datetime import datetime

from mt5bind import config
from mt5bind.enums import Timeframe
from mt5bind.session import TerminalSession


def print_rates(title, rates):
    print(f"{title}: ")
    for bar in rates:
        print(
            f"time: {bar.time}  open: {bar.open}\t  high: {bar.high}\t"
            f"  low: {bar.low}\t  close: {bar.close}\t"
        )


def main():
    logging.basicConfig(level=config.LOG_LEVEL)

    if not config.TERMINAL_PATH:
        sys.exit("TERMINAL_PATH must be set")

    with TerminalSession().initialize(config.TERMINAL_PATH) as session:
        print_rates(
            "Copy rates from",
            session.copy_rates_from("EURUSD", Timeframe.D1, datetime.now(), 10),
        )
        print_rates(
            "Copy rates from pos",
            session.copy_rates_from_pos("EURUSD", Timeframe.D1, 0, 10),
        )
        print_rates(
            "Copy rates range",
            session.copy_rates_range("EURUSD", Timeframe.D1, datetime(2024, 7, 8), datetime.now()),
        )


if __name__ == "__main__":
    main()
