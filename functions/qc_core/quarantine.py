"""
Quarantine Workflow
===================

State machine for a quarantine batch, from creation through disposition.

    pending -> under-review -> disposition -> released | scrapped | returned

The last three statuses are terminal. Entering one of them records the
disposition (status, notes, user and date) in a single step; the
intermediate statuses touch none of those fields.

All operations are pure: ``transition`` returns a new batch and never
mutates its input. A rejected move raises before anything is built, so the
caller's batch is unchanged.

Usage:
    >>> batch = create_batch(quantity=50, reason="bent pins", created_by="u-1")
    >>> batch = transition(batch, "under-review", principal)
    >>> batch = transition(batch, "disposition", principal)
    >>> batch = transition(batch, "scrapped", principal, notes="not reworkable")
"""

import logging
from datetime import datetime
from typing import Any, FrozenSet, List, Optional, Union

from .access import require_role
from .exceptions import IllegalTransitionError, ValidationError
from .helpers import parse_number
from .inspection import failed_characteristic_names
from .models import (
    Inspection,
    InspectionPlan,
    Principal,
    QuarantineBatch,
    QuarantineStatus,
    Shipment,
)
from .policy_config import (
    OP_QUARANTINE_TRANSITION,
    QUARANTINE_TERMINAL_STATUSES,
    QUARANTINE_TRANSITIONS,
)

logger = logging.getLogger(__name__)


def parse_status(value: Union[QuarantineStatus, str, None]) -> QuarantineStatus:
    """
    Parse a quarantine status string.

    Raises:
        ValidationError: not a known status
    """
    if isinstance(value, QuarantineStatus):
        return value
    try:
        return QuarantineStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid quarantine status '{value}'",
            details={
                "status": str(value),
                "valid_statuses": [s.value for s in QuarantineStatus],
            },
        )


def allowed_transitions(status: Union[QuarantineStatus, str]) -> FrozenSet[QuarantineStatus]:
    """Statuses reachable in one step from ``status``."""
    return QUARANTINE_TRANSITIONS[parse_status(status)]


def is_terminal(status: Union[QuarantineStatus, str]) -> bool:
    return parse_status(status) in QUARANTINE_TERMINAL_STATUSES


def create_batch(
    quantity: Any,
    reason: Optional[str],
    created_by: Optional[str] = None,
    shipment_id: Optional[str] = None,
    inspection_id: Optional[str] = None,
    quarantine_number: Optional[str] = None,
    defect_type: Optional[str] = None,
    location: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> QuarantineBatch:
    """
    Create a new quarantine batch in ``pending``.

    Raises:
        ValidationError: reason blank, or quantity missing, non-numeric or
            negative
    """
    if reason is None or not str(reason).strip():
        raise ValidationError("Quarantine reason is required", details={"field": "reason"})

    parsed_quantity = parse_number(quantity)
    if parsed_quantity is None:
        raise ValidationError(
            "Quarantine quantity must be a number",
            details={"field": "quantity", "value": None if quantity is None else str(quantity)},
        )
    if parsed_quantity < 0:
        raise ValidationError(
            "Quarantine quantity cannot be negative",
            details={"field": "quantity", "value": parsed_quantity},
        )

    batch = QuarantineBatch(
        shipment_id=shipment_id,
        inspection_id=inspection_id,
        quarantine_number=quarantine_number,
        quantity=parsed_quantity,
        reason=str(reason).strip(),
        defect_type=defect_type,
        location=location,
        notes=notes,
        created_by=created_by,
        created_at=now or datetime.now(),
    )
    logger.info(f"Quarantine batch {batch.id} created: qty={parsed_quantity}, reason={batch.reason!r}")
    return batch


def transition(
    batch: QuarantineBatch,
    target: Union[QuarantineStatus, str],
    principal: Principal,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> QuarantineBatch:
    """
    Move a batch to ``target`` and return the updated copy.

    Raises:
        PermissionDeniedError: principal role may not transition batches
        ValidationError: unknown target status
        IllegalTransitionError: target not a successor of the current status
    """
    require_role(principal, OP_QUARANTINE_TRANSITION)
    target_status = parse_status(target)

    allowed = QUARANTINE_TRANSITIONS[batch.status]
    if target_status not in allowed:
        logger.warning(
            f"Quarantine batch {batch.id}: rejected {batch.status.value} -> {target_status.value}"
        )
        raise IllegalTransitionError(
            "Quarantine batch",
            batch.status.value,
            target_status.value,
            allowed=sorted(s.value for s in allowed),
        )

    update = {"status": target_status}
    if target_status in QUARANTINE_TERMINAL_STATUSES:
        update.update({
            "disposition": target_status,
            "disposition_notes": notes or "",
            "disposition_by": principal.user_id,
            "disposition_date": now or datetime.now(),
        })

    logger.info(
        f"Quarantine batch {batch.id}: {batch.status.value} -> {target_status.value} by {principal.user_id}"
    )
    return batch.model_copy(update=update)


def quarantine_from_inspection(
    inspection: Inspection,
    shipment: Shipment,
    principal: Principal,
    plan: Optional[InspectionPlan] = None,
    now: Optional[datetime] = None,
) -> QuarantineBatch:
    """
    Build the batch spawned by a failed inspection.

    The whole shipment quantity is held; the reason lists the failed
    characteristics when the plan is given.
    """
    failed: List[str] = []
    if plan is not None:
        failed = failed_characteristic_names(inspection, plan)

    if failed:
        reason = "Failed inspection: " + ", ".join(failed)
    else:
        reason = f"Failed inspection {inspection.id}"

    return create_batch(
        quantity=shipment.quantity,
        reason=reason,
        created_by=principal.user_id,
        shipment_id=shipment.id,
        inspection_id=inspection.id,
        now=now,
    )
