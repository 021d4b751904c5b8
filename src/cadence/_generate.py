from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from typing import Any, TypeVar

from dateutil.relativedelta import relativedelta

from ._rule import (
    Frequency,
    GenerationBounds,
    NormalizedRecurrence,
    Weekday,
    sort_weekdays,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Stopping Conditions
# =============================================================================
# Candidates are produced lazily in increasing order and consumed until the
# first of these holds:
#
#   1. rule.count occurrences collected
#   2. candidate date > rule.until (ignored when count is set)
#   3. bounds.max_occurrences collected
#   4. candidate date > start date + bounds.horizon_days
#
# The result list is always materialized; the bounds keep it small.
# =============================================================================

# =============================================================================
# Week Alignment
# =============================================================================
# Weeks start on Sunday (SU=0 in the weekday codes). Week 0 is the week that
# contains the anchor; week n is active iff n % interval == 0. Days of week 0
# before the anchor are skipped.
# =============================================================================

# =============================================================================
# Month Clamping
# =============================================================================
# Occurrence k is anchor + relativedelta(months=k * interval). relativedelta
# clamps to the last day of shorter months, and since every occurrence is
# computed from the anchor a clamp never carries over:
#
#   Jan 31 -> Feb 28 -> Mar 31 -> Apr 30
# =============================================================================

_D = TypeVar("_D", date, datetime)


# --- Helpers ---


def _day_of(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def _is_bound(value: Any) -> bool:
    return value is None or (
        isinstance(value, int) and not isinstance(value, bool) and value >= 0
    )


def _is_well_formed(rule: Any) -> bool:
    if not isinstance(rule, NormalizedRecurrence):
        return False
    if not isinstance(rule.frequency, Frequency) or not _is_positive_int(rule.interval):
        return False
    if not isinstance(rule.weekdays, tuple) or not all(
        isinstance(d, Weekday) for d in rule.weekdays
    ):
        return False
    if rule.count is not None and not _is_positive_int(rule.count):
        return False
    return rule.until is None or isinstance(rule.until, date)


def effective_weekdays(rule: NormalizedRecurrence, start: date) -> tuple[Weekday, ...]:
    """Weekdays a WEEKLY rule fires on, falling back to the anchor's weekday."""
    if rule.weekdays:
        return sort_weekdays(rule.weekdays)
    return (Weekday.from_date(start),)


# --- Public API ---


def generate_occurrences(
    start: _D,
    rule: NormalizedRecurrence,
    bounds: GenerationBounds | None = None,
) -> list[_D]:
    """Expand `rule` from `start` into a bounded, strictly increasing list.

    Returns an empty list instead of raising for an invalid anchor, rule or
    bounds, so callers can preview half-edited input.
    """
    if bounds is None:
        bounds = GenerationBounds()

    if not isinstance(start, date):
        return []
    if not _is_well_formed(rule):
        logger.debug("malformed recurrence rule %r", rule)
        return []
    if not isinstance(bounds, GenerationBounds) or not (
        _is_bound(bounds.max_occurrences) and _is_bound(bounds.horizon_days)
    ):
        logger.debug("malformed generation bounds %r", bounds)
        return []

    count = rule.count
    until = rule.until if count is None else None
    max_occurrences = bounds.max_occurrences
    horizon_days = bounds.horizon_days

    if count is None and until is None and max_occurrences is None and horizon_days is None:
        logger.warning("refusing to expand open-ended %s rule without bounds", rule.frequency)
        return []

    start_day = _day_of(start)
    results: list[_D] = []

    for candidate in _candidates(start, rule):
        if count is not None and len(results) >= count:
            break
        day = _day_of(candidate)
        if until is not None and day > until:
            break
        if max_occurrences is not None and len(results) >= max_occurrences:
            break
        if horizon_days is not None and (day - start_day).days > horizon_days:
            break
        if results and candidate <= results[-1]:
            continue
        results.append(candidate)

    return results


def _candidates(start: _D, rule: NormalizedRecurrence) -> Iterator[_D]:
    match rule.frequency:
        case Frequency.DAILY:
            return _daily_candidates(start, rule.interval)
        case Frequency.WEEKLY:
            return _weekly_candidates(start, rule.interval, effective_weekdays(rule, start))
        case Frequency.MONTHLY:
            return _monthly_candidates(start, rule.interval)
    return iter(())  # pragma: no cover


# --- Per-frequency candidates ---


def _daily_candidates(start: _D, interval: int) -> Iterator[_D]:
    k = 0
    while True:
        try:
            candidate = start + timedelta(days=k * interval)
        except OverflowError:
            return
        yield candidate
        k += 1


def _weekly_candidates(
    start: _D,
    interval: int,
    weekdays: tuple[Weekday, ...],
) -> Iterator[_D]:
    offsets = [wd.index for wd in weekdays]
    start_index = Weekday.from_date(start).index

    week = 0
    while True:
        for offset in offsets:
            shift = week * 7 + offset - start_index
            if shift < 0:
                continue
            try:
                candidate = start + timedelta(days=shift)
            except OverflowError:
                return
            yield candidate
        week += interval


def _monthly_candidates(start: _D, interval: int) -> Iterator[_D]:
    k = 0
    while True:
        try:
            candidate = start + relativedelta(months=k * interval)
        except (OverflowError, ValueError):
            return
        yield candidate
        k += 1
