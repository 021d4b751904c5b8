from __future__ import annotations

from datetime import date

from ._rule import Frequency, NormalizedRecurrence, Weekday, sort_weekdays


def describe_recurrence(rule: NormalizedRecurrence, start: date | None = None) -> str:
    out = _describe_cadence(rule, start)

    if rule.count is not None:
        out += ", once" if rule.count == 1 else f", {rule.count} times"
    elif rule.until is not None:
        out += f" until {rule.until.isoformat()}"

    return out


def _describe_cadence(rule: NormalizedRecurrence, start: date | None) -> str:
    interval = rule.interval

    match rule.frequency:
        case Frequency.DAILY:
            return "every day" if interval == 1 else f"every {interval} days"

        case Frequency.WEEKLY:
            out = "every week" if interval == 1 else f"every {interval} weeks"
            if rule.weekdays:
                days = sort_weekdays(rule.weekdays)
                out += " on " + ", ".join(d.full_name for d in days)
            elif start is not None:
                out += f" on {Weekday.from_date(start).full_name}"
            return out

        case Frequency.MONTHLY:
            out = "every month" if interval == 1 else f"every {interval} months"
            if start is not None:
                out += f" on the {_day_of_month(start.day)}"
            return out

    raise ValueError(f"unknown frequency: {rule.frequency!r}")  # pragma: no cover


# Day-of-month suffixes that are not "th"; 11-13 fall through by omission
_DAY_SUFFIXES = {1: "st", 2: "nd", 3: "rd", 21: "st", 22: "nd", 23: "rd", 31: "st"}


def _day_of_month(day: int) -> str:
    return f"{day}{_DAY_SUFFIXES.get(day, 'th')}"
