from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import date
from typing import Any

from ._error import RuleError, Span
from ._fields import (
    build_recurrence,
    coerce_count,
    coerce_interval,
    coerce_until,
    coerce_weekdays,
    to_number,
)
from ._rule import Frequency, NormalizedRecurrence, sort_weekdays

logger = logging.getLogger(__name__)

_RRULE_PREFIX = "RRULE:"
_DTSTART_SEPARATOR = "|DTSTART:"
_KNOWN_KEYS = frozenset({"FREQ", "INTERVAL", "BYDAY", "COUNT", "UNTIL"})


# ============================================================================
# encode: NormalizedRecurrence -> rule string
# ============================================================================


def encode_recurrence_rule(rule: NormalizedRecurrence) -> str:
    parts = [f"FREQ={rule.frequency}", f"INTERVAL={rule.interval}"]

    if rule.frequency is Frequency.WEEKLY and rule.weekdays:
        parts.append("BYDAY=" + ",".join(str(d) for d in sort_weekdays(rule.weekdays)))

    if rule.count is not None:
        parts.append(f"COUNT={rule.count}")
    elif rule.until is not None:
        parts.append(f"UNTIL={rule.until.isoformat()}")

    return ";".join(parts)


# ============================================================================
# decode: rule string -> NormalizedRecurrence
# ============================================================================


def decode_recurrence_rule(text: Any) -> NormalizedRecurrence | None:
    """Lenient decode: `None` for anything `parse_recurrence_rule` rejects."""
    if not isinstance(text, str):
        return None
    try:
        return parse_recurrence_rule(text)
    except RuleError as err:
        logger.debug("rejecting recurrence rule %r: %s", text, err)
        return None


def parse_recurrence_rule(text: str) -> NormalizedRecurrence:
    """Parse a `FREQ=...;INTERVAL=...` rule string, raising `RuleError` on failure.

    Keys and values are case-insensitive. Unknown keys, empty segments and
    segments without `=` are skipped so newer rule strings still decode.
    """
    if not isinstance(text, str):
        raise RuleError(f"expected a rule string, got {type(text).__name__}")
    if not text.strip():
        raise RuleError("empty recurrence rule", Span(0, 0), text)

    fields: dict[str, tuple[str, Span]] = {}
    for segment, span in _segments(text):
        if "=" not in segment:
            continue
        raw_key, raw_value = segment.split("=", 1)
        key = raw_key.strip().upper()
        if key in _KNOWN_KEYS:
            # Repeated keys: last one wins
            fields[key] = (raw_value.strip(), span)

    if "FREQ" not in fields:
        end = len(text)
        raise RuleError("missing FREQ", Span(end, end), text)

    freq_value, freq_span = fields["FREQ"]
    frequency = Frequency.try_parse(freq_value)
    if frequency is None:
        raise RuleError(f"unknown frequency: {freq_value!r}", freq_span, text)

    interval = 1
    if "INTERVAL" in fields:
        interval_value, interval_span = fields["INTERVAL"]
        if to_number(interval_value) is None:
            raise RuleError(
                f"INTERVAL must be numeric, got {interval_value!r}", interval_span, text
            )
        interval = coerce_interval(interval_value)

    weekdays = coerce_weekdays(fields["BYDAY"][0]) if "BYDAY" in fields else ()
    count = coerce_count(fields["COUNT"][0]) if "COUNT" in fields else None
    until = coerce_until(fields["UNTIL"][0]) if "UNTIL" in fields else None

    return build_recurrence(frequency, interval, weekdays, count, until)


def _segments(text: str) -> Iterator[tuple[str, Span]]:
    """Yield each non-empty `;`-separated segment with its span in `text`."""
    pos = 0
    stripped = text.lstrip()
    if stripped[: len(_RRULE_PREFIX)].upper() == _RRULE_PREFIX:
        pos = len(text) - len(stripped) + len(_RRULE_PREFIX)

    while pos <= len(text):
        end = text.find(";", pos)
        if end == -1:
            end = len(text)
        segment = text[pos:end]
        if segment.strip():
            yield segment, Span(pos, end)
        pos = end + 1


# ============================================================================
# Series keys
# ============================================================================


def build_recurrence_key(rule_text: str, scheduled_start: str | date) -> str:
    """Key shared by every persisted occurrence of one series."""
    if isinstance(scheduled_start, date):
        scheduled_start = scheduled_start.isoformat()
    return f"{_RRULE_PREFIX}{rule_text}{_DTSTART_SEPARATOR}{scheduled_start}"


def split_recurrence_key(key: Any) -> tuple[str, str] | None:
    if not isinstance(key, str) or not key.startswith(_RRULE_PREFIX):
        return None
    body = key[len(_RRULE_PREFIX) :]
    if _DTSTART_SEPARATOR not in body:
        return None
    rule_text, scheduled_start = body.split(_DTSTART_SEPARATOR, 1)
    return rule_text, scheduled_start
