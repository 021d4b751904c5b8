from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ._codec import decode_recurrence_rule
from ._fields import (
    build_recurrence,
    coerce_count,
    coerce_interval,
    coerce_until,
    coerce_weekdays,
)
from ._rule import (
    Frequency,
    NormalizedRecurrence,
    RecurrenceSource,
    RuleMetadata,
    RuleText,
    RuleValue,
)

logger = logging.getLogger(__name__)


def normalize_recurrence(source: Any, *, rule: str | None = None) -> NormalizedRecurrence | None:
    """Collapse any accepted recurrence shape into one canonical rule.

    `source` may be a `NormalizedRecurrence`, a rule string, a metadata mapping
    or an explicit `RuleValue`/`RuleText`/`RuleMetadata`. `rule` is the rule
    string stored beside the metadata; it is only consulted when `source`
    yields nothing, so edited metadata always wins over a stale string.

    Returns `None` for absent, unrepairable or non-recurring input.
    """
    result = _normalize_source(_classify(source))
    if result is None and rule is not None:
        result = decode_recurrence_rule(rule)
    return result


def resolve_recurrence(*sources: Any) -> NormalizedRecurrence | None:
    """First source that normalizes, in the order given."""
    for source in sources:
        result = normalize_recurrence(source)
        if result is not None:
            return result
    return None


def recurrence_to_metadata(rule: NormalizedRecurrence) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "frequency": rule.frequency.value,
        "interval": rule.interval,
    }
    if rule.weekdays:
        metadata["weekdays"] = [d.value for d in rule.weekdays]
    if rule.count is not None:
        metadata["count"] = rule.count
    if rule.until is not None:
        metadata["until"] = rule.until.isoformat()
    return metadata


# --- Intake ---


def _classify(source: Any) -> RecurrenceSource | None:
    match source:
        case RuleValue() | RuleText() | RuleMetadata():
            return source
        case NormalizedRecurrence():
            return RuleValue(source)
        case str():
            return RuleText(source)
        case Mapping():
            return RuleMetadata(source)
    if source is not None:
        logger.debug("unsupported recurrence source type %s", type(source).__name__)
    return None


def _normalize_source(intake: RecurrenceSource | None) -> NormalizedRecurrence | None:
    match intake:
        case RuleValue(rule=rule):
            return _from_fields(
                rule.frequency, rule.interval, rule.weekdays, rule.count, rule.until
            )
        case RuleText(text=text):
            return decode_recurrence_rule(text)
        case RuleMetadata(fields=fields):
            return _from_metadata(fields)
    return None


def _from_metadata(fields: Mapping[str, Any]) -> NormalizedRecurrence | None:
    if fields.get("kind") == "single":
        return None

    # Plan schedule metadata nests the recurrence one level down
    nested = fields.get("recurrence")
    if "frequency" not in fields and isinstance(nested, Mapping):
        fields = nested

    return _from_fields(
        fields.get("frequency"),
        fields.get("interval"),
        fields.get("weekdays"),
        fields.get("count"),
        fields.get("until"),
    )


def _from_fields(
    raw_frequency: Any,
    raw_interval: Any,
    raw_weekdays: Any,
    raw_count: Any,
    raw_until: Any,
) -> NormalizedRecurrence | None:
    frequency: Frequency | None
    if isinstance(raw_frequency, Frequency):
        frequency = raw_frequency
    elif isinstance(raw_frequency, str):
        frequency = Frequency.try_parse(raw_frequency)
    else:
        frequency = None

    if frequency is None:
        logger.debug("no usable frequency in %r", raw_frequency)
        return None

    return build_recurrence(
        frequency,
        coerce_interval(raw_interval),
        coerce_weekdays(raw_weekdays),
        coerce_count(raw_count),
        coerce_until(raw_until),
    )
