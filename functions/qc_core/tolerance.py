"""
Tolerance Evaluator
===================

Computes pass/fail/pending for a measured characteristic against its
specification.

Rules
-----
- Only MEASUREMENT characteristics are computed. Visual, functional and
  attribute characteristics are judged by the inspector and set through
  ``resolve_manual``.
- Tolerances are magnitudes: the entered sign is ignored.
- Limits are inclusive: a value exactly on a limit passes.
- A blank or malformed actual value is ``pending``, never an error, so an
  inspector can leave a field empty mid-inspection.

Usage:
    >>> spec = CharacteristicSpec(id="CH-1", name="Bore", nominal=10.5,
    ...                           upper_tolerance=0.05, lower_tolerance=0.05)
    >>> evaluate(spec, "10.54")
    <InspectionResult.PASS: 'pass'>
"""

import logging
from typing import Any, Optional, Tuple, Union

from .exceptions import ValidationError
from .helpers import parse_number
from .models import CharacteristicKind, CharacteristicSpec, InspectionResult

logger = logging.getLogger(__name__)

# Absorbs binary float error on decimal limits (10.5 + 0.05 != 10.55 exactly)
LIMIT_EPSILON = 1e-9


def tolerance_limits(spec: CharacteristicSpec) -> Optional[Tuple[float, float]]:
    """
    Return (lower_limit, upper_limit) for a spec, or None without a nominal.
    """
    nominal = parse_number(spec.nominal)
    if nominal is None:
        return None
    upper = abs(parse_number(spec.upper_tolerance) or 0.0)
    lower = abs(parse_number(spec.lower_tolerance) or 0.0)
    return nominal - lower, nominal + upper


def evaluate(spec: CharacteristicSpec, actual_value: Union[str, float, int, None]) -> InspectionResult:
    """
    Evaluate a measured value against a measurement characteristic.

    Args:
        spec: Characteristic specification
        actual_value: Entered value; str, number or None

    Returns:
        InspectionResult.PASS / FAIL, or PENDING when the value (or the
        spec's nominal) is missing or not numeric. Non-measurement specs
        always give PENDING; their result is a manual selection.
    """
    if spec.kind != CharacteristicKind.MEASUREMENT:
        return InspectionResult.PENDING

    actual = parse_number(actual_value)
    if actual is None:
        return InspectionResult.PENDING

    limits = tolerance_limits(spec)
    if limits is None:
        logger.warning(f"Characteristic {spec.id} has no numeric nominal; result left pending")
        return InspectionResult.PENDING

    lower_limit, upper_limit = limits
    if lower_limit - LIMIT_EPSILON <= actual <= upper_limit + LIMIT_EPSILON:
        return InspectionResult.PASS

    logger.debug(
        f"Characteristic {spec.id} out of tolerance: {actual} not in "
        f"[{lower_limit}, {upper_limit}]"
    )
    return InspectionResult.FAIL


def resolve_manual(spec: CharacteristicSpec, selection: Any) -> InspectionResult:
    """
    Validate an inspector's manual pass/fail/pending selection.

    Raises:
        ValidationError: selection is not pending, pass or fail
    """
    if isinstance(selection, InspectionResult):
        return selection
    try:
        return InspectionResult(str(selection).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Result for characteristic '{spec.name}' must be one of: pending, pass, fail",
            details={"spec_id": spec.id, "result": str(selection)},
        )
