"""Row-oriented extraction of the USD/MXN rate from the DOF indicator page.

The DOF monthly history is an HTML table with one ``<tr>`` per publication
day: a ``DD/MM/YYYY`` cell followed by the rate with four to six decimals.
The markup is not well formed enough for a DOM parser to be reliable, so the
page is cut at row boundaries and scanned with regular expressions. The
plausibility band is the backstop against picking an unrelated number out of
the surrounding markup.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Protocol

logger = logging.getLogger(__name__)

ROW_BOUNDARY = re.compile(r"</tr>", re.IGNORECASE)
ANY_DATE = re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b")
RATE_TOKEN = re.compile(r"\b\d{1,2}\.\d{4,6}\b")
WHITESPACE = re.compile(r"\s+")

DEFAULT_LOWER_BOUND = Decimal("10")
DEFAULT_UPPER_BOUND = Decimal("30")
DEFAULT_LOOKAHEAD = 2


class RateExtractor(Protocol):
    """Pluggable extraction strategy used by the resolver."""

    def extract(self, document: str, target_date: date) -> Decimal | None:
        """Return the rate published for ``target_date`` or ``None`` when absent."""


def date_pattern(target_date: date) -> re.Pattern[str]:
    """Match ``D/M/YYYY`` for ``target_date`` with or without leading zeros."""

    return re.compile(
        rf"\b0?{target_date.day}/0?{target_date.month}/{target_date.year}\b"
    )


class RowPatternExtractor:
    """Find the row carrying the target date and read the first plausible rate."""

    def __init__(
        self,
        *,
        lower_bound: Decimal = DEFAULT_LOWER_BOUND,
        upper_bound: Decimal = DEFAULT_UPPER_BOUND,
        lookahead: int = DEFAULT_LOOKAHEAD,
        value_pattern: re.Pattern[str] = RATE_TOKEN,
    ) -> None:
        if lower_bound >= upper_bound:
            raise ValueError("lower_bound must be below upper_bound")
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.lookahead = max(0, lookahead)
        self.value_pattern = value_pattern

    def within_band(self, value: Decimal) -> bool:
        return self.lower_bound < value < self.upper_bound

    def extract(self, document: str, target_date: date) -> Decimal | None:
        rows = [WHITESPACE.sub(" ", row) for row in ROW_BOUNDARY.split(document)]
        wanted = date_pattern(target_date)
        for index, row in enumerate(rows):
            if not wanted.search(row):
                continue
            value = self._scan(rows, index, wanted)
            if value is not None:
                logger.debug("Rate %s found for %s in row %d", value, target_date.isoformat(), index)
                return value
        return None

    def _scan(self, rows: list[str], index: int, wanted: re.Pattern[str]) -> Decimal | None:
        window_end = min(len(rows), index + 1 + self.lookahead)
        for offset in range(index, window_end):
            row = rows[offset]
            if offset > index and _names_other_date(row, wanted):
                break
            # Dates like 01/10/2025 never match the rate pattern, so the date
            # cell itself cannot be mistaken for a value.
            match = self.value_pattern.search(row)
            if match is None:
                continue
            # Only the first token counts; an implausible one rejects the row.
            try:
                value = Decimal(match.group(0))
            except InvalidOperation:
                return None
            return value if self.within_band(value) else None
        return None


def _names_other_date(row: str, wanted: re.Pattern[str]) -> bool:
    return any(not wanted.fullmatch(found) for found in ANY_DATE.findall(row))


__all__ = ["RateExtractor", "RowPatternExtractor", "date_pattern"]
