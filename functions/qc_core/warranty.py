"""
Warranty Workflow
=================

Warranty claim creation and status updates. Available only to tiers that
include the ``warranty`` feature.

A claim may move freely between the open statuses (open, investigating,
pending_parts, approved, denied). ``closed`` is terminal: entering it stamps
``closed_at`` and any later update is rejected.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional, Union

from .access import require_feature
from .exceptions import IllegalTransitionError, ValidationError
from .models import Principal, WarrantyClaim, WarrantyStatus
from .policy_config import FEATURE_WARRANTY, WARRANTY_TERMINAL_STATUSES

logger = logging.getLogger(__name__)


def parse_status(value: Union[WarrantyStatus, str, None]) -> WarrantyStatus:
    """
    Parse a warranty status string.

    Raises:
        ValidationError: not a known status
    """
    if isinstance(value, WarrantyStatus):
        return value
    try:
        return WarrantyStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid warranty status '{value}'",
            details={
                "status": str(value),
                "valid_statuses": [s.value for s in WarrantyStatus],
            },
        )


def _parse_quantity(quantity: Any) -> int:
    if quantity is None or (isinstance(quantity, str) and not quantity.strip()):
        return 1
    if isinstance(quantity, bool):
        parsed = None
    elif isinstance(quantity, int):
        parsed = quantity
    else:
        try:
            parsed = int(str(quantity).strip())
        except ValueError:
            parsed = None
    if parsed is None or parsed < 1:
        raise ValidationError(
            "Warranty quantity must be a positive integer",
            details={"field": "quantity", "value": str(quantity)},
        )
    return parsed


def create_claim(
    principal: Principal,
    failure_description: Optional[str],
    quantity: Any = None,
    part_type_id: Optional[str] = None,
    claim_number: Optional[str] = None,
    customer_name: Optional[str] = None,
    failure_date: Optional[date] = None,
    failure_mode: Optional[str] = None,
    serial_numbers: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WarrantyClaim:
    """
    Create a warranty claim in ``open``.

    Raises:
        FeatureNotAvailableError: tier lacks the warranty feature
        ValidationError: blank failure description or bad quantity
    """
    require_feature(principal, FEATURE_WARRANTY)

    if failure_description is None or not failure_description.strip():
        raise ValidationError(
            "Failure description is required",
            details={"field": "failure_description"},
        )

    claim = WarrantyClaim(
        claim_number=claim_number,
        part_type_id=part_type_id,
        customer_name=customer_name,
        quantity=_parse_quantity(quantity),
        failure_date=failure_date,
        failure_description=failure_description.strip(),
        failure_mode=failure_mode,
        serial_numbers=serial_numbers,
        created_by=principal.user_id,
        created_at=now or datetime.now(),
    )
    logger.info(f"Warranty claim {claim.id} created by {principal.user_id}")
    return claim


def update_claim(
    claim: WarrantyClaim,
    status: Union[WarrantyStatus, str],
    principal: Principal,
    resolution: Optional[str] = None,
    credit_amount: Optional[float] = None,
    replacement_shipped: Optional[bool] = None,
    assigned_to: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WarrantyClaim:
    """
    Apply a status update and return the updated copy.

    Fields passed as None keep their current value.

    Raises:
        FeatureNotAvailableError: tier lacks the warranty feature
        ValidationError: unknown status or negative credit amount
        IllegalTransitionError: claim already closed
    """
    require_feature(principal, FEATURE_WARRANTY)
    target = parse_status(status)

    if claim.status in WARRANTY_TERMINAL_STATUSES:
        raise IllegalTransitionError("Warranty claim", claim.status.value, target.value, allowed=[])

    if credit_amount is not None and credit_amount < 0:
        raise ValidationError(
            "Credit amount cannot be negative",
            details={"field": "credit_amount", "value": credit_amount},
        )

    update = {"status": target}
    if resolution is not None:
        update["resolution"] = resolution
    if credit_amount is not None:
        update["credit_amount"] = credit_amount
    if replacement_shipped is not None:
        update["replacement_shipped"] = replacement_shipped
    if assigned_to is not None:
        update["assigned_to"] = assigned_to
    if target in WARRANTY_TERMINAL_STATUSES:
        update["closed_at"] = now or datetime.now()

    logger.info(f"Warranty claim {claim.id}: {claim.status.value} -> {target.value} by {principal.user_id}")
    return claim.model_copy(update=update)
