"""
Inspection Aggregator
=====================

Combines per-characteristic results into an inspection outcome and derives
the owning shipment's proposed status.

Aggregation rules
-----------------
1. Any FAIL -> FAIL. A single out-of-tolerance value decides the
   inspection even while other fields are still pending.
2. Otherwise PASS only when there is at least one result and every result
   is PASS.
3. Otherwise PENDING. An empty checklist is PENDING, never PASS.

Everything here is a pure function over the values passed in. Proposed
shipment statuses are returned to the caller, which persists them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .exceptions import ValidationError
from .models import (
    CharacteristicKind,
    CharacteristicResult,
    Inspection,
    InspectionPlan,
    InspectionResult,
    MeasurementEntry,
    Shipment,
    ShipmentStatus,
)
from .tolerance import evaluate, resolve_manual

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InspectionSummary:
    """Aggregated outcome of an inspection."""
    overall: InspectionResult
    pass_count: int = 0
    fail_count: int = 0
    pending_count: int = 0

    @property
    def is_resolved(self) -> bool:
        return self.overall != InspectionResult.PENDING


def aggregate(results: Iterable[CharacteristicResult]) -> InspectionSummary:
    """Aggregate characteristic results into an inspection-level outcome."""
    pass_count = fail_count = pending_count = 0
    for item in results:
        if item.result == InspectionResult.FAIL:
            fail_count += 1
        elif item.result == InspectionResult.PASS:
            pass_count += 1
        else:
            pending_count += 1

    if fail_count:
        overall = InspectionResult.FAIL
    elif pass_count and not pending_count:
        overall = InspectionResult.PASS
    else:
        overall = InspectionResult.PENDING

    return InspectionSummary(
        overall=overall,
        pass_count=pass_count,
        fail_count=fail_count,
        pending_count=pending_count,
    )


def propose_shipment_status(overall: InspectionResult) -> Optional[ShipmentStatus]:
    """
    Shipment status implied by a resolved inspection.

    Returns None while the inspection is pending (no proposal).
    """
    if overall == InspectionResult.PASS:
        return ShipmentStatus.APPROVED
    if overall == InspectionResult.FAIL:
        return ShipmentStatus.REJECTED
    return None


def begin_inspection(
    shipment: Shipment,
    plan: InspectionPlan,
    inspector_id: Optional[str] = None,
    sample_size: Optional[int] = None,
) -> Tuple[Inspection, ShipmentStatus]:
    """
    Start an inspection of a shipment against a plan.

    Every plan characteristic starts as PENDING. The shipment is proposed to
    move to IN_INSPECTION.

    Returns:
        (new Inspection, proposed ShipmentStatus)
    """
    if not plan.is_active:
        raise ValidationError(
            f"Inspection plan '{plan.id}' is not active",
            details={"plan_id": plan.id},
        )

    characteristics = [CharacteristicResult(spec_id=spec.id) for spec in plan.characteristics]
    inspection = Inspection(
        shipment_id=shipment.id,
        plan_id=plan.id,
        inspector_id=inspector_id,
        characteristics=characteristics,
        sample_size=sample_size if sample_size is not None else plan.sample_size,
        pending_count=len(characteristics),
    )
    logger.info(
        f"Inspection {inspection.id} started for shipment {shipment.id} "
        f"({len(characteristics)} characteristics)"
    )
    return inspection, ShipmentStatus.IN_INSPECTION


def record_measurements(
    inspection: Inspection,
    plan: InspectionPlan,
    entries: Iterable[MeasurementEntry],
    now: Optional[datetime] = None,
) -> Inspection:
    """
    Apply entered values to an in-progress inspection and re-aggregate.

    Measurement characteristics are computed by the tolerance evaluator;
    other kinds take the inspector's manual selection. The input inspection
    is not modified; an updated copy is returned.

    Raises:
        ValidationError: inspection already finalized, unknown spec id, or
            an invalid manual selection
    """
    if inspection.is_finalized:
        raise ValidationError(
            f"Inspection '{inspection.id}' is already {inspection.overall_result.value} and cannot be changed",
            details={"inspection_id": inspection.id, "overall_result": inspection.overall_result.value},
        )

    by_spec = {item.spec_id: item.model_copy() for item in inspection.characteristics}

    for entry in entries:
        spec = plan.spec_by_id(entry.spec_id)
        if spec is None or entry.spec_id not in by_spec:
            raise ValidationError(
                f"Characteristic '{entry.spec_id}' is not part of plan '{plan.id}'",
                details={"spec_id": entry.spec_id, "plan_id": plan.id},
            )

        current = by_spec[entry.spec_id]
        if spec.kind == CharacteristicKind.MEASUREMENT:
            result = evaluate(spec, entry.actual_value)
        else:
            selection = entry.result if entry.result is not None else InspectionResult.PENDING
            result = resolve_manual(spec, selection)

        by_spec[entry.spec_id] = current.model_copy(
            update={"actual_value": entry.actual_value, "result": result}
        )

    characteristics: List[CharacteristicResult] = [
        by_spec[item.spec_id] for item in inspection.characteristics
    ]
    summary = aggregate(characteristics)

    updated = inspection.model_copy(update={
        "characteristics": characteristics,
        "overall_result": summary.overall,
        "pass_count": summary.pass_count,
        "fail_count": summary.fail_count,
        "pending_count": summary.pending_count,
        "completed_at": (now or datetime.now()) if summary.is_resolved else None,
    })

    if summary.is_resolved:
        logger.info(f"Inspection {inspection.id} resolved: {summary.overall.value}")
    return updated


def failed_characteristic_names(inspection: Inspection, plan: InspectionPlan) -> List[str]:
    """Names of the characteristics that failed, in plan order."""
    failed_ids = {
        item.spec_id for item in inspection.characteristics
        if item.result == InspectionResult.FAIL
    }
    return [spec.name for spec in plan.characteristics if spec.id in failed_ids]
