"""
Price data preparation and validation.

Converts raw provider records into PriceBars and validates series at the
engine boundary. Fail-fast approach: the raising validators are used by
every calculator; ``validate_price_data`` is the boolean form for callers
that only want to check.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Sequence

from ..shared.errors import InvalidConfigurationError, InvalidPriceDataError
from ..shared.types import PriceBar

# Ticker symbols: letters, digits and the punctuation used by index / share-class
# tickers (^GSPC, BRK.B, BF-B, M&M)
SYMBOL_PATTERN = re.compile(r"^[A-Za-z0-9.^&_-]{1,20}$")


def validate_symbol(symbol: str) -> str:
    """Return the normalized (upper-case) symbol or raise InvalidConfigurationError."""
    if not isinstance(symbol, str) or not SYMBOL_PATTERN.match(symbol.strip()):
        raise InvalidConfigurationError(
            f"Invalid symbol {symbol!r}: expected 1-20 characters of A-Z, 0-9, '.', '^', '&', '_' or '-'"
        )
    return symbol.strip().upper()


def validate_series(bars: Sequence[PriceBar]) -> None:
    """
    Check that a series is made of PriceBars in strictly increasing date order.

    Raises:
        InvalidPriceDataError: On a non-PriceBar element, a duplicate date or
            an out-of-order date.
    """
    previous = None
    for i, bar in enumerate(bars):
        if not isinstance(bar, PriceBar):
            raise InvalidPriceDataError(
                f"Element {i} is {type(bar).__name__}, expected PriceBar"
            )
        if previous is not None:
            if bar.date == previous.date:
                raise InvalidPriceDataError(f"Duplicate bar date {bar.date.date()}")
            if bar.date < previous.date:
                raise InvalidPriceDataError(
                    f"Bars out of order: {bar.date.date()} after {previous.date.date()}"
                )
        previous = bar


def validate_price_data(bars: Sequence[PriceBar]) -> bool:
    """True if the series is non-empty and passes validate_series."""
    if not bars:
        return False
    try:
        validate_series(bars)
    except InvalidPriceDataError:
        return False
    return True


def _field(record: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in record:
            return record[name]
        if name.capitalize() in record:
            return record[name.capitalize()]
    raise InvalidPriceDataError(f"Record is missing field {names[0]!r}: {dict(record)}")


def convert_to_price_bars(records: Iterable[Mapping[str, Any]]) -> List[PriceBar]:
    """
    Convert provider records (dicts) into a validated PriceBar list.

    Accepts either a ``date`` or ``timestamp`` key (any case-capitalization
    used by CSV exports); ``volume`` defaults to 0. Non-numeric values raise
    InvalidPriceDataError.
    """
    bars = []
    for record in records:
        volume = record.get("volume", record.get("Volume", 0.0))
        bars.append(
            PriceBar(
                date=_field(record, "date", "timestamp"),
                open=_field(record, "open"),
                high=_field(record, "high"),
                low=_field(record, "low"),
                close=_field(record, "close"),
                volume=volume if volume is not None else 0.0,
            )
        )
    validate_series(bars)
    return bars
