from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

DEFAULT_MAX_OCCURRENCES = 12
DEFAULT_HORIZON_DAYS = 90


class Frequency(Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

    @classmethod
    def try_parse(cls, s: str) -> Frequency | None:
        return _FREQUENCY_PARSE.get(s.strip().upper())

    def __str__(self) -> str:
        return self.value


_FREQUENCY_PARSE: dict[str, Frequency] = {f.value: f for f in Frequency}


class Weekday(Enum):
    SUNDAY = "SU"
    MONDAY = "MO"
    TUESDAY = "TU"
    WEDNESDAY = "WE"
    THURSDAY = "TH"
    FRIDAY = "FR"
    SATURDAY = "SA"

    @property
    def index(self) -> int:
        """Calendar order: Sunday=0, Monday=1, ..., Saturday=6."""
        return _WEEKDAY_INDEX[self]

    @property
    def full_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_index(cls, n: int) -> Weekday | None:
        return _INDEX_TO_WEEKDAY.get(n)

    @classmethod
    def from_date(cls, d: date) -> Weekday:
        # date.weekday() is Monday=0
        return _INDEX_TO_WEEKDAY[(d.weekday() + 1) % 7]

    @classmethod
    def try_parse(cls, s: str) -> Weekday | None:
        return _WEEKDAY_PARSE.get(s.strip().lower())

    def __str__(self) -> str:
        return self.value


_WEEKDAY_INDEX = {
    Weekday.SUNDAY: 0,
    Weekday.MONDAY: 1,
    Weekday.TUESDAY: 2,
    Weekday.WEDNESDAY: 3,
    Weekday.THURSDAY: 4,
    Weekday.FRIDAY: 5,
    Weekday.SATURDAY: 6,
}

_INDEX_TO_WEEKDAY = {v: k for k, v in _WEEKDAY_INDEX.items()}

_WEEKDAY_PARSE: dict[str, Weekday] = {
    "su": Weekday.SUNDAY,
    "sun": Weekday.SUNDAY,
    "sunday": Weekday.SUNDAY,
    "mo": Weekday.MONDAY,
    "mon": Weekday.MONDAY,
    "monday": Weekday.MONDAY,
    "tu": Weekday.TUESDAY,
    "tue": Weekday.TUESDAY,
    "tuesday": Weekday.TUESDAY,
    "we": Weekday.WEDNESDAY,
    "wed": Weekday.WEDNESDAY,
    "wednesday": Weekday.WEDNESDAY,
    "th": Weekday.THURSDAY,
    "thu": Weekday.THURSDAY,
    "thursday": Weekday.THURSDAY,
    "fr": Weekday.FRIDAY,
    "fri": Weekday.FRIDAY,
    "friday": Weekday.FRIDAY,
    "sa": Weekday.SATURDAY,
    "sat": Weekday.SATURDAY,
    "saturday": Weekday.SATURDAY,
}


# --- Canonical rule ---


@dataclass(frozen=True, slots=True)
class NormalizedRecurrence:
    """Canonical recurrence descriptor.

    `weekdays` is sorted in calendar order and only populated for WEEKLY rules.
    At most one of `count` and `until` is set; `until` is an inclusive date.
    """

    frequency: Frequency
    interval: int = 1
    weekdays: tuple[Weekday, ...] = ()
    count: int | None = None
    until: date | None = None

    @property
    def is_open_ended(self) -> bool:
        return self.count is None and self.until is None


# --- Generation bounds ---


@dataclass(frozen=True, slots=True)
class GenerationBounds:
    """Caller-imposed safety limits on a single expansion.

    `None` disables a bound. An open-ended rule needs at least one of them.
    """

    max_occurrences: int | None = DEFAULT_MAX_OCCURRENCES
    horizon_days: int | None = DEFAULT_HORIZON_DAYS

    @classmethod
    def for_rule(cls, rule: NormalizedRecurrence) -> GenerationBounds:
        """Bounds used when materializing a newly created series."""
        if rule.count is not None:
            return cls(max_occurrences=rule.count)
        return cls()


# --- Intake variants ---


@dataclass(frozen=True, slots=True)
class RuleValue:
    rule: NormalizedRecurrence


@dataclass(frozen=True, slots=True)
class RuleText:
    text: str


@dataclass(frozen=True, slots=True)
class RuleMetadata:
    fields: Mapping[str, Any]


RecurrenceSource = RuleValue | RuleText | RuleMetadata


def sort_weekdays(days: tuple[Weekday, ...] | list[Weekday]) -> tuple[Weekday, ...]:
    return tuple(sorted(set(days), key=lambda wd: wd.index))
