from __future__ import annotations

from datetime import date, datetime

import pytest

from cadence import Frequency, GenerationBounds, NormalizedRecurrence, Weekday


@pytest.fixture
def monday_anchor() -> datetime:
    """Monday 2025-01-06 09:00, wall clock."""
    return datetime(2025, 1, 6, 9, 0)


@pytest.fixture
def month_end_anchor() -> date:
    return date(2025, 1, 31)


@pytest.fixture
def mon_wed_weekly() -> NormalizedRecurrence:
    return NormalizedRecurrence(
        frequency=Frequency.WEEKLY,
        interval=1,
        weekdays=(Weekday.MONDAY, Weekday.WEDNESDAY),
    )


@pytest.fixture
def wide_bounds() -> GenerationBounds:
    return GenerationBounds(max_occurrences=1000, horizon_days=3650)
