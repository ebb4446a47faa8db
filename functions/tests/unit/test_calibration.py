"""
Unit Tests for the Calibration Scheduler

Tests:
- Due date precedence
- Classification thresholds and monotonicity
- Interval derivation
- Gage normalization and dashboard summaries
"""

import pytest
from datetime import date, datetime, timedelta

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from qc_core.calibration import (
    DEFAULT_CALIBRATION_INTERVAL_DAYS,
    classify,
    due_date,
    interval_from_due_date,
    parse_interval,
    schedule_gage,
    summarize,
)
from qc_core.exceptions import ValidationError
from qc_core.models import CalibrationState


@pytest.mark.unit
class TestDueDate:
    """Tests for due date computation."""

    def test_calibration_date_plus_interval(self):
        assert due_date(date(2026, 1, 1), 90) == date(2026, 4, 1)

    def test_explicit_next_date_wins(self):
        assert due_date(date(2026, 1, 1), 90, date(2026, 2, 15)) == date(2026, 2, 15)

    def test_explicit_next_date_without_calibration_date(self):
        assert due_date(None, None, "2026-06-30") == date(2026, 6, 30)

    def test_iso_strings_accepted(self):
        assert due_date("2026-01-01", 90) == date(2026, 4, 1)

    def test_datetime_uses_calendar_date(self):
        assert due_date(datetime(2026, 1, 1, 23, 59), 1) == date(2026, 1, 2)

    def test_zero_interval(self):
        assert due_date(date(2026, 1, 1), 0) == date(2026, 1, 1)

    def test_numeric_string_interval(self):
        assert due_date(date(2026, 1, 1), " 90 ") == date(2026, 4, 1)

    @pytest.mark.parametrize("value,expected", [
        (90, 90),
        ("30", 30),
        (0, 0),
        (None, None),
        ("", None),
        ("ninety", None),
        (-5, None),
        (False, None),
    ])
    def test_parse_interval(self, value, expected):
        assert parse_interval(value) == expected

    @pytest.mark.parametrize("calibration_date,interval", [
        (None, 90),
        (date(2026, 1, 1), None),
        (None, None),
        ("not a date", 90),
        (date(2026, 1, 1), "ninety"),
        (date(2026, 1, 1), "90.5"),
        (date(2026, 1, 1), 90.5),
        (date(2026, 1, 1), -1),
        (date(2026, 1, 1), True),
    ])
    def test_missing_inputs_give_none(self, calibration_date, interval):
        assert due_date(calibration_date, interval) is None


@pytest.mark.unit
class TestClassify:
    """Tests for due date classification."""

    def test_due_soon_example(self):
        due = due_date(date(2026, 1, 1), 90)
        assert classify(due, date(2026, 3, 25)) == CalibrationState.DUE_SOON

    def test_overdue_example(self):
        due = due_date(date(2026, 1, 1), 90)
        assert classify(due, date(2026, 4, 2)) == CalibrationState.OVERDUE

    def test_due_today_is_due_soon(self):
        assert classify(date(2026, 4, 1), date(2026, 4, 1)) == CalibrationState.DUE_SOON

    def test_thirty_days_is_due_soon(self):
        assert classify(date(2026, 5, 1), date(2026, 4, 1)) == CalibrationState.DUE_SOON

    def test_thirty_one_days_is_current(self):
        assert classify(date(2026, 5, 2), date(2026, 4, 1)) == CalibrationState.CURRENT

    def test_yesterday_is_overdue(self):
        assert classify(date(2026, 3, 31), date(2026, 4, 1)) == CalibrationState.OVERDUE

    def test_no_due_date_is_unknown(self):
        assert classify(None, date(2026, 4, 1)) == CalibrationState.UNKNOWN

    def test_time_of_day_ignored(self):
        assert classify(datetime(2026, 4, 1, 0, 1), datetime(2026, 4, 1, 23, 59)) == CalibrationState.DUE_SOON

    def test_today_defaults_to_current_date(self):
        assert classify(date.today() + timedelta(days=5)) == CalibrationState.DUE_SOON
        assert classify(date.today() - timedelta(days=1), None) == CalibrationState.OVERDUE

    def test_unparseable_today_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            classify(date(2026, 4, 1), "someday")
        assert exc_info.value.details["field"] == "today"

    def test_monotonic_in_due_date(self):
        """A later due date never gives a more urgent classification."""
        urgency = {
            CalibrationState.OVERDUE: 2,
            CalibrationState.DUE_SOON: 1,
            CalibrationState.CURRENT: 0,
        }
        today = date(2026, 4, 1)
        previous = None
        for offset in range(-60, 90):
            state = classify(today + timedelta(days=offset), today)
            if previous is not None:
                assert urgency[state] <= urgency[previous]
            previous = state


@pytest.mark.unit
class TestIntervalFromDueDate:
    """Tests for interval derivation."""

    def test_days_between(self):
        assert interval_from_due_date(date(2026, 1, 1), date(2026, 4, 1)) == 90

    def test_floored_at_zero(self):
        assert interval_from_due_date(date(2026, 4, 1), date(2026, 1, 1)) == 0

    def test_missing_dates(self):
        assert interval_from_due_date(None, date(2026, 1, 1)) == 0


@pytest.mark.unit
class TestScheduleGage:
    """Tests for gage normalization."""

    def test_derives_next_date(self, factory):
        schedule = schedule_gage(factory.gage(), date(2026, 3, 25))

        assert schedule.gage.next_calibration_date == date(2026, 4, 1)
        assert schedule.state == CalibrationState.DUE_SOON
        assert schedule.days_until_due == 7

    def test_default_interval_stored_but_due_unknown(self, factory):
        gage = factory.gage(calibration_interval_days=None)
        schedule = schedule_gage(gage, date(2026, 1, 2))

        assert schedule.gage.calibration_interval_days == DEFAULT_CALIBRATION_INTERVAL_DAYS
        assert schedule.gage.next_calibration_date is None
        assert schedule.due is None
        assert schedule.state == CalibrationState.UNKNOWN

    def test_custom_default_interval(self, factory):
        gage = factory.gage(calibration_interval_days=None)
        schedule = schedule_gage(gage, date(2026, 1, 2), default_interval_days=30)

        assert schedule.gage.calibration_interval_days == 30
        assert schedule.gage.next_calibration_date is None

    def test_stored_default_drives_next_recalibration(self, factory):
        first = schedule_gage(factory.gage(calibration_interval_days=None), date(2026, 1, 2)).gage
        recalibrated = first.model_copy(update={"calibration_date": date(2026, 2, 1)})
        schedule = schedule_gage(recalibrated, date(2026, 2, 1))

        assert schedule.due == date(2027, 2, 1)
        assert schedule.state == CalibrationState.CURRENT

    def test_agrees_with_summarize(self, factory):
        gages = [
            factory.gage(gage_id="A", calibration_interval_days=None),
            factory.gage(gage_id="B", calibration_date=None),
            factory.gage(gage_id="C"),
        ]
        today = date(2026, 3, 25)
        counts = summarize(gages, today)
        for gage in gages:
            state = schedule_gage(gage, today).state
            assert counts[state] >= 1
        assert counts[CalibrationState.UNKNOWN] == 2

    def test_explicit_next_date_kept_and_interval_derived(self, factory):
        gage = factory.gage(calibration_interval_days=None, next_calibration_date=date(2026, 2, 1))
        schedule = schedule_gage(gage, date(2026, 3, 1))

        assert schedule.gage.next_calibration_date == date(2026, 2, 1)
        assert schedule.gage.calibration_interval_days == 31
        assert schedule.state == CalibrationState.OVERDUE

    def test_explicit_next_date_wins_over_interval(self, factory):
        gage = factory.gage(calibration_interval_days=90, next_calibration_date=date(2026, 12, 1))
        schedule = schedule_gage(gage, date(2026, 4, 2))
        assert schedule.state == CalibrationState.CURRENT

    def test_never_calibrated_is_unknown(self, factory):
        gage = factory.gage(calibration_date=None, calibration_interval_days=None)
        schedule = schedule_gage(gage, date(2026, 1, 1))

        assert schedule.state == CalibrationState.UNKNOWN
        assert schedule.due is None
        assert schedule.days_until_due is None

    def test_input_not_mutated(self, factory):
        gage = factory.gage()
        schedule_gage(gage, date(2026, 3, 25))
        assert gage.next_calibration_date is None


@pytest.mark.unit
class TestSummarize:
    """Tests for dashboard counts."""

    def test_counts_per_state(self, factory):
        gages = [
            factory.gage(gage_id="A", calibration_date=date(2026, 1, 1), calibration_interval_days=90),
            factory.gage(gage_id="B", calibration_date=date(2025, 1, 1), calibration_interval_days=90),
            factory.gage(gage_id="C", calibration_date=date(2026, 3, 1), calibration_interval_days=365),
            factory.gage(gage_id="D", calibration_date=None, calibration_interval_days=None),
        ]
        counts = summarize(gages, date(2026, 3, 25))

        assert counts[CalibrationState.DUE_SOON] == 1
        assert counts[CalibrationState.OVERDUE] == 1
        assert counts[CalibrationState.CURRENT] == 1
        assert counts[CalibrationState.UNKNOWN] == 1

    def test_empty(self):
        counts = summarize([], date(2026, 3, 25))
        assert set(counts) == set(CalibrationState)
        assert sum(counts.values()) == 0
