"""Field-level coercion shared by the normalizer and the rule codec.

Every helper here repairs or discards a single loosely-typed value; none of
them raise. Whole-rule decisions (precedence, frequency-specific fields) live
in the callers.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from dateutil.parser import isoparse

from ._rule import Frequency, NormalizedRecurrence, Weekday, sort_weekdays

logger = logging.getLogger(__name__)

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Legacy UNTIL values were written as ICS UTC stamps, e.g. 20250301T235959Z
_ICS_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})(?:T\d{6}Z?)?$", re.IGNORECASE)


def to_number(value: Any) -> float | None:
    """Read an int, float or numeric string; `None` if not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _round_half_up(number: float) -> int:
    return int(math.floor(number + 0.5))


def coerce_interval(value: Any) -> int:
    number = to_number(value)
    if number is None or _round_half_up(number) < 1:
        if value is not None:
            logger.debug("coercing interval %r to 1", value)
        return 1
    return _round_half_up(number)


def coerce_count(value: Any) -> int | None:
    number = to_number(value)
    if number is None or _round_half_up(number) < 1:
        if value is not None:
            logger.debug("dropping count %r", value)
        return None
    return _round_half_up(number)


def coerce_weekdays(value: Any) -> tuple[Weekday, ...]:
    entries: Iterable[Any]
    if isinstance(value, str):
        entries = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        entries = value
    else:
        return ()

    days: list[Weekday] = []
    dropped: list[Any] = []
    for entry in entries:
        if isinstance(entry, Weekday):
            days.append(entry)
            continue
        parsed = Weekday.try_parse(entry) if isinstance(entry, str) else None
        if parsed is None:
            dropped.append(entry)
        else:
            days.append(parsed)

    if dropped:
        logger.debug("dropping unknown weekday codes %r", dropped)
    return sort_weekdays(days)


def coerce_until(value: Any) -> date | None:
    match value:
        case datetime():
            return value.date()
        case date():
            return value
        case str():
            return _parse_until_text(value)
    if value is not None:
        logger.debug("dropping until %r", value)
    return None


def _parse_until_text(text: str) -> date | None:
    trimmed = text.strip()
    if not trimmed:
        return None

    try:
        if _DATE_ONLY_RE.match(trimmed):
            return date.fromisoformat(trimmed)

        m = _ICS_DATE_RE.match(trimmed)
        if m:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

        # Wall-clock date part; no timezone conversion
        return isoparse(trimmed).date()
    except (ValueError, OverflowError):
        logger.debug("dropping unparsable until %r", text)
        return None


def build_recurrence(
    frequency: Frequency,
    interval: int,
    weekdays: tuple[Weekday, ...],
    count: int | None,
    until: date | None,
) -> NormalizedRecurrence:
    """Assemble a canonical rule from already-coerced fields."""
    if frequency is not Frequency.WEEKLY:
        weekdays = ()
    if count is not None and until is not None:
        logger.debug("count %d takes precedence over until %s", count, until)
        until = None
    return NormalizedRecurrence(
        frequency=frequency,
        interval=interval,
        weekdays=weekdays,
        count=count,
        until=until,
    )
