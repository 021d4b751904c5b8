from __future__ import annotations

import logging
from datetime import date, datetime

import pytest

from cadence import (
    Frequency,
    NormalizedRecurrence,
    RuleMetadata,
    RuleText,
    RuleValue,
    Weekday,
    normalize_recurrence,
    recurrence_to_metadata,
    resolve_recurrence,
)

MO = Weekday.MONDAY
TU = Weekday.TUESDAY
WE = Weekday.WEDNESDAY


# ===========================================================================
# Intake shapes
# ===========================================================================


class TestIntake:
    def test_corrupt_weekly_metadata_is_repaired(self) -> None:
        result = normalize_recurrence({"frequency": "WEEKLY", "interval": 0, "weekdays": ["XX"]})

        assert result == NormalizedRecurrence(Frequency.WEEKLY, 1, ())

    def test_rule_string(self) -> None:
        assert normalize_recurrence("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO") == NormalizedRecurrence(
            Frequency.WEEKLY, 2, (MO,)
        )

    def test_existing_rule_is_cleaned(self) -> None:
        dirty = NormalizedRecurrence(Frequency.WEEKLY, 1, (WE, MO, WE))

        assert normalize_recurrence(dirty) == NormalizedRecurrence(Frequency.WEEKLY, 1, (MO, WE))

    def test_explicit_variants(self) -> None:
        expected = NormalizedRecurrence(Frequency.DAILY, 3)

        assert normalize_recurrence(RuleText("FREQ=DAILY;INTERVAL=3")) == expected
        assert normalize_recurrence(RuleMetadata({"frequency": "daily", "interval": 3})) == expected
        assert normalize_recurrence(RuleValue(expected)) == expected

    @pytest.mark.parametrize("source", [None, 42, ["FREQ=DAILY"], b"FREQ=DAILY", ""])
    def test_unsupported_or_empty(self, source: object) -> None:
        assert normalize_recurrence(source) is None

    def test_nested_schedule_metadata(self) -> None:
        metadata = {"recurrence": {"frequency": "MONTHLY", "interval": 2}, "source": "template"}

        assert normalize_recurrence(metadata) == NormalizedRecurrence(Frequency.MONTHLY, 2)

    def test_nested_metadata_unwrapped_once(self) -> None:
        metadata: dict[str, object] = {"source": "template"}
        metadata["recurrence"] = metadata

        assert normalize_recurrence(metadata) is None

    @pytest.mark.parametrize(
        "metadata",
        [
            {"kind": "single", "frequency": "DAILY"},
            {"interval": 2},
            {"frequency": "YEARLY"},
            {"frequency": 7},
            {},
        ],
    )
    def test_non_recurring(self, metadata: dict[str, object]) -> None:
        assert normalize_recurrence(metadata) is None

    def test_idempotent(self) -> None:
        once = normalize_recurrence(
            {"frequency": "weekly", "interval": "2", "weekdays": ["we", "mo"]}
        )

        assert normalize_recurrence(once) == once


# ===========================================================================
# Field coercion
# ===========================================================================


class TestFieldCoercion:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (3, 3),
            ("4", 4),
            (2.5, 3),
            (2.4, 2),
            (0, 1),
            (-2, 1),
            ("abc", 1),
            (True, 1),
            (float("nan"), 1),
            (float("inf"), 1),
            (None, 1),
            (10**400, 1),
        ],
    )
    def test_interval(self, raw: object, expected: int) -> None:
        result = normalize_recurrence({"frequency": "DAILY", "interval": raw})

        assert result is not None
        assert result.interval == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [(5, 5), ("6", 6), (0, None), (-1, None), ("x", None), (None, None), (10**400, None)],
    )
    def test_count(self, raw: object, expected: int | None) -> None:
        result = normalize_recurrence({"frequency": "DAILY", "count": raw})

        assert result is not None
        assert result.count == expected

    @pytest.mark.parametrize(
        "raw",
        [
            ["mo", "We", "monday", "bogus", 3],
            ("WE", "MO"),
            "MO, wed",
            [Weekday.WEDNESDAY, "MON"],
        ],
    )
    def test_weekdays(self, raw: object) -> None:
        result = normalize_recurrence({"frequency": "WEEKLY", "weekdays": raw})

        assert result is not None
        assert result.weekdays == (MO, WE)

    def test_oversized_interval_on_existing_rule(self) -> None:
        oversized = NormalizedRecurrence(Frequency.DAILY, 10**400)

        assert normalize_recurrence(oversized) == NormalizedRecurrence(Frequency.DAILY)

    def test_weekdays_dropped_for_daily(self) -> None:
        result = normalize_recurrence({"frequency": "DAILY", "weekdays": ["MO"]})

        assert result == NormalizedRecurrence(Frequency.DAILY)

    @pytest.mark.parametrize(
        "raw",
        [
            "2025-03-01",
            " 2025-03-01 ",
            "20250301T235959Z",
            "2025-03-01T18:30:00",
            date(2025, 3, 1),
            datetime(2025, 3, 1, 23, 59),
        ],
    )
    def test_until(self, raw: object) -> None:
        result = normalize_recurrence({"frequency": "DAILY", "until": raw})

        assert result is not None
        assert result.until == date(2025, 3, 1)

    @pytest.mark.parametrize("raw", ["", "next spring", "2025-02-30", 20250301])
    def test_unusable_until_dropped(self, raw: object) -> None:
        result = normalize_recurrence({"frequency": "DAILY", "until": raw})

        assert result == NormalizedRecurrence(Frequency.DAILY)

    def test_count_wins_over_until(self) -> None:
        result = normalize_recurrence({"frequency": "DAILY", "count": 3, "until": "2025-03-01"})

        assert result == NormalizedRecurrence(Frequency.DAILY, count=3)

    def test_repairs_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="cadence")

        normalize_recurrence({"frequency": "WEEKLY", "interval": -1, "weekdays": ["XX"]})

        assert "coercing interval -1 to 1" in caplog.text
        assert "dropping unknown weekday codes ['XX']" in caplog.text


# ===========================================================================
# Precedence
# ===========================================================================


class TestPrecedence:
    def test_metadata_wins_over_rule_string(self) -> None:
        result = normalize_recurrence(
            {"frequency": "WEEKLY", "interval": 1, "weekdays": ["TU"]},
            rule="FREQ=DAILY;INTERVAL=3",
        )

        assert result == NormalizedRecurrence(Frequency.WEEKLY, 1, (TU,))

    @pytest.mark.parametrize("metadata", [None, {}, {"frequency": "nope"}])
    def test_rule_string_used_when_metadata_unusable(self, metadata: object) -> None:
        result = normalize_recurrence(metadata, rule="FREQ=DAILY;INTERVAL=3")

        assert result == NormalizedRecurrence(Frequency.DAILY, 3)

    def test_resolve_takes_first_usable(self) -> None:
        result = resolve_recurrence(
            None,
            {"kind": "single"},
            "FREQ=MONTHLY;INTERVAL=1",
            {"frequency": "DAILY"},
        )

        assert result == NormalizedRecurrence(Frequency.MONTHLY)

    def test_resolve_nothing(self) -> None:
        assert resolve_recurrence() is None
        assert resolve_recurrence(None, "garbage") is None


# ===========================================================================
# Metadata export
# ===========================================================================


class TestMetadataExport:
    def test_full_rule(self) -> None:
        rule = NormalizedRecurrence(Frequency.WEEKLY, 2, (MO, WE), until=date(2025, 3, 1))

        assert recurrence_to_metadata(rule) == {
            "frequency": "WEEKLY",
            "interval": 2,
            "weekdays": ["MO", "WE"],
            "until": "2025-03-01",
        }

    def test_minimal_rule(self) -> None:
        rule = NormalizedRecurrence(Frequency.DAILY, count=4)

        assert recurrence_to_metadata(rule) == {"frequency": "DAILY", "interval": 1, "count": 4}

    @pytest.mark.parametrize(
        "rule",
        [
            NormalizedRecurrence(Frequency.DAILY),
            NormalizedRecurrence(Frequency.WEEKLY, 3, (MO, TU), count=9),
            NormalizedRecurrence(Frequency.MONTHLY, until=date(2026, 1, 1)),
        ],
    )
    def test_metadata_normalizes_back(self, rule: NormalizedRecurrence) -> None:
        assert normalize_recurrence(recurrence_to_metadata(rule)) == rule
