from __future__ import annotations

from datetime import date, datetime
from typing import Any, TypeVar

from ._codec import (
    build_recurrence_key,
    decode_recurrence_rule,
    encode_recurrence_rule,
    parse_recurrence_rule,
    split_recurrence_key,
)
from ._display import describe_recurrence
from ._error import RuleError, Span
from ._generate import effective_weekdays, generate_occurrences
from ._normalize import normalize_recurrence, recurrence_to_metadata, resolve_recurrence
from ._rule import (
    DEFAULT_HORIZON_DAYS,
    DEFAULT_MAX_OCCURRENCES,
    Frequency,
    GenerationBounds,
    NormalizedRecurrence,
    RecurrenceSource,
    RuleMetadata,
    RuleText,
    RuleValue,
    Weekday,
)

_D = TypeVar("_D", date, datetime)


class Recurrence:
    _rule: NormalizedRecurrence

    def __init__(self, rule: NormalizedRecurrence) -> None:
        self._rule = rule

    @classmethod
    def parse(cls, rule_text: str) -> Recurrence:
        return cls(parse_recurrence_rule(rule_text))

    @classmethod
    def normalize(cls, source: Any, *, rule: str | None = None) -> Recurrence | None:
        normalized = normalize_recurrence(source, rule=rule)
        return cls(normalized) if normalized is not None else None

    @classmethod
    def validate(cls, rule_text: str) -> bool:
        try:
            parse_recurrence_rule(rule_text)
            return True
        except RuleError:
            return False

    def occurrences(self, start: _D, bounds: GenerationBounds | None = None) -> list[_D]:
        """Materialized occurrences from `start`.

        Without explicit bounds the series is capped the way a new plan is:
        `count` occurrences when the rule has one, otherwise the defaults.
        """
        if bounds is None:
            bounds = GenerationBounds.for_rule(self._rule)
        return generate_occurrences(start, self._rule, bounds)

    def to_rule(self) -> str:
        return encode_recurrence_rule(self._rule)

    def to_metadata(self) -> dict[str, Any]:
        return recurrence_to_metadata(self._rule)

    def describe(self, start: date | None = None) -> str:
        return describe_recurrence(self._rule, start)

    def series_key(self, scheduled_start: str | date) -> str:
        return build_recurrence_key(self.to_rule(), scheduled_start)

    def __str__(self) -> str:
        return self.to_rule()

    def __repr__(self) -> str:
        return f"Recurrence({self.to_rule()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Recurrence):
            return NotImplemented
        return self._rule == other._rule

    def __hash__(self) -> int:
        return hash(self._rule)

    @property
    def rule(self) -> NormalizedRecurrence:
        return self._rule

    @property
    def frequency(self) -> Frequency:
        return self._rule.frequency

    @property
    def interval(self) -> int:
        return self._rule.interval

    @property
    def weekdays(self) -> tuple[Weekday, ...]:
        return self._rule.weekdays

    @property
    def count(self) -> int | None:
        return self._rule.count

    @property
    def until(self) -> date | None:
        return self._rule.until


__all__ = [
    "Recurrence",
    "RuleError",
    "Span",
    "NormalizedRecurrence",
    "GenerationBounds",
    "Frequency",
    "Weekday",
    "RecurrenceSource",
    "RuleValue",
    "RuleText",
    "RuleMetadata",
    "DEFAULT_MAX_OCCURRENCES",
    "DEFAULT_HORIZON_DAYS",
    "normalize_recurrence",
    "resolve_recurrence",
    "recurrence_to_metadata",
    "encode_recurrence_rule",
    "decode_recurrence_rule",
    "parse_recurrence_rule",
    "build_recurrence_key",
    "split_recurrence_key",
    "generate_occurrences",
    "effective_weekdays",
    "describe_recurrence",
]
