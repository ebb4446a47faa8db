"""
Helper utilities for the quality workflow functions.
Includes trace and entity ids, lenient numeric parsing, and date coercion.
"""

import logging
import math
import uuid
from datetime import date, datetime
from typing import Optional, Any

logger = logging.getLogger(__name__)


def generate_trace_id() -> str:
    """Generate a unique trace ID for correlation across systems."""
    return f"trace-{uuid.uuid4().hex[:12]}"


def generate_entity_id(prefix: str) -> str:
    """Generate a short, human-friendly entity ID (e.g. QB-1A2B3C4D)."""
    return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a value to a finite float, or None.

    Blank strings, malformed numbers, booleans, NaN and infinities all give
    None. Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except (ValueError, TypeError):
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_int_safe(value: Any, default: int = 0) -> int:
    """Safely parse a value to int."""
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def to_date(value: Any) -> Optional[date]:
    """
    Coerce a date, datetime or ISO string to a calendar date.

    Time-of-day is dropped; the scheduler compares calendar dates only.
    Returns None for empty or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug(f"Unparseable date value: {value!r}")
        return None
