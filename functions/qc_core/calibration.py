"""
Calibration Scheduler
=====================

Computes a gage's next calibration due date and classifies it.

Due date precedence
-------------------
1. An explicit ``next_calibration_date`` always wins.
2. Otherwise ``calibration_date + interval_days`` when both are known.
3. Otherwise there is no due date and the gage is ``unknown``.

A missing, malformed or negative interval counts as not known. The default
interval applied by ``schedule_gage`` is stored on the gage for later
recalibrations but never used to derive a due date.

Classification
--------------
``days_until_due = (due - today).days`` on calendar dates (time of day is
ignored):

- ``< 0``   -> overdue
- ``0..30`` -> due-soon
- ``> 30``  -> current

``today`` defaults to the current date.

Usage:
    >>> due = due_date("2026-01-01", 90)
    >>> classify(due, date(2026, 3, 25))
    <CalibrationState.DUE_SOON: 'due-soon'>
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Optional

from .exceptions import ValidationError
from .helpers import to_date
from .models import CalibrationState, Gage
from .policy_config import DUE_SOON_WINDOW_DAYS

logger = logging.getLogger(__name__)

DEFAULT_CALIBRATION_INTERVAL_DAYS = 365


@dataclass
class GageSchedule:
    """Normalized gage plus its calibration classification."""
    gage: Gage
    state: CalibrationState
    due: Optional[date] = None
    days_until_due: Optional[int] = None


def parse_interval(value: Any) -> Optional[int]:
    """Interval in whole days, or None when missing, malformed or negative."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        days = value
    else:
        try:
            days = int(str(value).strip())
        except ValueError:
            return None
    return days if days >= 0 else None


def _evaluation_day(today: Any) -> date:
    if today is None:
        return date.today()
    day = to_date(today)
    if day is None:
        raise ValidationError(
            f"Evaluation date '{today}' is not a valid date",
            details={"field": "today", "value": str(today)},
        )
    return day


def due_date(calibration_date: Any, interval_days: Any, next_calibration_date: Any = None) -> Optional[date]:
    """Next calibration due date, or None when it cannot be determined."""
    explicit = to_date(next_calibration_date)
    if explicit is not None:
        return explicit

    calibrated = to_date(calibration_date)
    interval = parse_interval(interval_days)
    if calibrated is None or interval is None:
        return None
    return calibrated + timedelta(days=interval)


def classify(due: Any, today: Any = None) -> CalibrationState:
    """
    Classify a due date relative to ``today``.

    Raises:
        ValidationError: ``today`` given but not a date
    """
    today_day = _evaluation_day(today)
    due_day = to_date(due)
    if due_day is None:
        return CalibrationState.UNKNOWN

    days_until_due = (due_day - today_day).days
    if days_until_due < 0:
        return CalibrationState.OVERDUE
    if days_until_due <= DUE_SOON_WINDOW_DAYS:
        return CalibrationState.DUE_SOON
    return CalibrationState.CURRENT


def interval_from_due_date(calibration_date: Any, chosen_due: Any) -> int:
    """Interval in days implied by a chosen due date, floored at zero."""
    calibrated = to_date(calibration_date)
    due_day = to_date(chosen_due)
    if calibrated is None or due_day is None:
        return 0
    return max(0, (due_day - calibrated).days)


def schedule_gage(
    gage: Gage,
    today: Any = None,
    default_interval_days: int = DEFAULT_CALIBRATION_INTERVAL_DAYS,
) -> GageSchedule:
    """
    Normalize a gage's calibration dates and classify it.

    - The due date comes from the dates and interval as supplied.
    - Missing next date: set to the derived due date (None if unknown).
    - Missing interval: derived from an explicit next date when both dates
      are known, else stored as ``default_interval_days``.
    """
    today_day = _evaluation_day(today)
    due = due_date(gage.calibration_date, gage.calibration_interval_days, gage.next_calibration_date)

    interval = gage.calibration_interval_days
    if interval is None:
        if gage.calibration_date is not None and gage.next_calibration_date is not None:
            interval = interval_from_due_date(gage.calibration_date, gage.next_calibration_date)
        else:
            interval = default_interval_days

    normalized = gage.model_copy(update={
        "calibration_interval_days": interval,
        "next_calibration_date": due,
    })

    state = classify(due, today_day)
    days_until_due = (due - today_day).days if due is not None else None
    logger.debug(f"Gage {gage.gage_id}: due={due}, state={state.value}")
    return GageSchedule(gage=normalized, state=state, due=due, days_until_due=days_until_due)


def summarize(gages: Iterable[Gage], today: Any = None) -> Dict[CalibrationState, int]:
    """Count gages per calibration state (every state present, zero if none)."""
    today_day = _evaluation_day(today)
    counts = {state: 0 for state in CalibrationState}
    for gage in gages:
        due = due_date(gage.calibration_date, gage.calibration_interval_days, gage.next_calibration_date)
        counts[classify(due, today_day)] += 1
    return counts
