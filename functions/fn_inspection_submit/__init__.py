"""
fn_inspection_submit: Inspection Submit Azure Function
======================================================

Starts or continues the inspection of a shipment against an inspection plan.

Key Features
------------
- Starting an inspection counts against the tier's monthly inspection quota
- Idempotency via client_request_id: a retried start returns the inspection
  it already began
- Continuing requires the same shipment and plan, and an unfinished inspection
- Measurement characteristics are evaluated against their tolerances;
  visual/functional/attribute characteristics take the inspector's selection
- Resolved inspections propose the shipment status (pass -> approved,
  fail -> rejected), which is persisted here
- A failed inspection spawns a quarantine batch for the shipment quantity
  (QC_AUTO_QUARANTINE_ON_FAIL)
- Audit trail for every state change

Request Format
--------------
{
    "client_request_id": "uuid-v4",        // Optional - dedups retried starts
    "principal": {"user_id": "u-1", "role": "inspector", "tier": "basic"},
    "shipment_id": "SHP-0001",              // REQUIRED
    "plan_id": "PLAN-0001",                 // REQUIRED
    "inspection_id": null,                  // Optional - continue an inspection
    "measurements": [
        {"spec_id": "CH-1", "actual_value": "10.54"},
        {"spec_id": "CH-2", "result": "pass"}
    ],
    "notes": "First article"
}

Response Codes
--------------
200 OK
    - "OK": Inspection started/updated
    - "ALREADY_PROCESSED": Start already processed for this client_request_id

400 Bad Request
    - "ERROR": Invalid request format

403 Forbidden
    - "QUOTA_EXCEEDED": Monthly inspection quota reached

404 Not Found
    - "NOT_FOUND": Shipment, plan or inspection not found

422 Unprocessable Entity
    - "BLOCKED": Inspection already finalized, plan or shipment mismatch,
      unknown characteristic, etc.
"""

import logging
import azure.functions as func
from datetime import datetime

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    # Models
    InspectionSubmitRequest,
    ResourceKind,
    InspectionResult,
    ActionType,

    # Errors
    QualityError,
    ValidationError,

    # Engine
    begin_inspection,
    record_measurements,
    propose_shipment_status,
    quarantine_from_inspection,
    enforce_quota,

    # Storage / config
    get_repository,
    get_settings,

    # Helpers
    generate_trace_id,
    log_user_action,
    json_response,
    error_response,
    configure_logging,
)

logger = logging.getLogger(__name__)
configure_logging()


def main(req: func.HttpRequest) -> func.HttpResponse:
    """
    Main entry point for inspection submit.

    Flow:
    1. Parse and validate request
    2. Load shipment and plan
    3. Begin a new inspection (idempotent, quota-checked) or load the
       existing one (same shipment and plan, not finalized)
    4. Record measurements and re-aggregate
    5. Persist the proposed shipment status
    6. Spawn a quarantine batch on failure
    7. Return the inspection summary
    """
    trace_id = generate_trace_id()

    try:
        # 1. Parse request
        try:
            body = req.get_json()
            request = InspectionSubmitRequest(**body)
        except ValueError as e:
            logger.error(f"[{trace_id}] Request validation failed: {e}")
            return json_response(
                {
                    "status": "ERROR",
                    "message": f"Invalid request: {str(e)}",
                    "trace_id": trace_id
                },
                status_code=400,
            )

        principal = request.principal
        logger.info(
            f"[{trace_id}] Processing inspection submit: shipment={request.shipment_id}, "
            f"plan={request.plan_id}, inspection={request.inspection_id}"
        )

        repo = get_repository()
        settings = get_settings()
        now = datetime.now()
        quarantine_batch_id = None

        try:
            with repo.lock:
                # 2. Load shipment and plan
                shipment = repo.load_shipment(request.shipment_id)
                plan = repo.load_inspection_plan(request.plan_id)

                # 3. Begin or continue
                started = False
                if request.inspection_id:
                    inspection = repo.load_inspection(request.inspection_id)
                    if inspection.shipment_id != shipment.id:
                        raise ValidationError(
                            f"Inspection {inspection.id} belongs to shipment {inspection.shipment_id}",
                            details={"inspection_id": inspection.id, "shipment_id": shipment.id},
                        )
                    if inspection.plan_id != plan.id:
                        raise ValidationError(
                            f"Inspection {inspection.id} was started against plan {inspection.plan_id}",
                            details={"inspection_id": inspection.id, "plan_id": inspection.plan_id, "requested_plan_id": plan.id},
                        )
                    if inspection.is_finalized:
                        raise ValidationError(
                            f"Inspection {inspection.id} is already {inspection.overall_result.value}",
                            details={"inspection_id": inspection.id, "overall_result": inspection.overall_result.value},
                        )
                    target_status = None
                else:
                    existing = repo.find_inspection_by_client_request_id(request.client_request_id)
                    if existing is not None:
                        logger.info(f"[{trace_id}] Idempotent return for client_request_id")
                        return json_response(
                            {
                                "status": "ALREADY_PROCESSED",
                                "inspection_id": existing.id,
                                "overall_result": existing.overall_result.value,
                                "shipment_status": shipment.status.value,
                                "trace_id": trace_id,
                                "message": "This request was already processed"
                            },
                            status_code=200,
                        )

                    enforce_quota(
                        principal.tier,
                        ResourceKind.INSPECTIONS_PER_MONTH,
                        repo.count_inspections_in_month(now.year, now.month),
                    )
                    inspection, target_status = begin_inspection(
                        shipment,
                        plan,
                        inspector_id=principal.user_id,
                        sample_size=plan.sample_size or settings.default_sample_size,
                    )
                    inspection = inspection.model_copy(update={
                        "started_at": now,
                        "client_request_id": request.client_request_id,
                    })
                    started = True

                # 4. Record measurements (validated before anything is saved)
                if request.measurements:
                    inspection = record_measurements(inspection, plan, request.measurements, now=now)
                if request.notes is not None:
                    inspection = inspection.model_copy(update={"notes": request.notes})

                repo.save_inspection(inspection)

                if started:
                    log_user_action(
                        repo=repo,
                        user_id=principal.user_id,
                        action_type=ActionType.INSPECTION_STARTED,
                        target_table="inspections",
                        target_id=inspection.id,
                        new_value={"shipment_id": shipment.id, "plan_id": plan.id},
                        trace_id=trace_id,
                    )
                if request.measurements:
                    log_user_action(
                        repo=repo,
                        user_id=principal.user_id,
                        action_type=ActionType.INSPECTION_UPDATED,
                        target_table="inspections",
                        target_id=inspection.id,
                        new_value=[m.model_dump(mode="json") for m in request.measurements],
                        trace_id=trace_id,
                    )

                # 5. Shipment status proposal
                target_status = propose_shipment_status(inspection.overall_result) or target_status
                if target_status is not None and shipment.status != target_status:
                    old_status = shipment.status.value
                    shipment = repo.save_shipment(shipment.model_copy(update={"status": target_status}))
                    log_user_action(
                        repo=repo,
                        user_id=principal.user_id,
                        action_type=ActionType.SHIPMENT_STATUS_CHANGED,
                        target_table="shipments",
                        target_id=shipment.id,
                        old_value=old_status,
                        new_value=target_status.value,
                        trace_id=trace_id,
                    )

                if inspection.is_finalized:
                    log_user_action(
                        repo=repo,
                        user_id=principal.user_id,
                        action_type=ActionType.INSPECTION_COMPLETED,
                        target_table="inspections",
                        target_id=inspection.id,
                        new_value=inspection.overall_result.value,
                        trace_id=trace_id,
                    )

                    # 6. Quarantine on failure
                    if inspection.overall_result == InspectionResult.FAIL and settings.auto_quarantine_on_fail:
                        batch = quarantine_from_inspection(inspection, shipment, principal, plan=plan, now=now)
                        repo.save_quarantine_batch(batch)
                        quarantine_batch_id = batch.id
                        log_user_action(
                            repo=repo,
                            user_id=principal.user_id,
                            action_type=ActionType.QUARANTINE_CREATED,
                            target_table="quarantine_batches",
                            target_id=batch.id,
                            new_value={"quantity": batch.quantity, "reason": batch.reason},
                            trace_id=trace_id,
                        )
                        logger.info(f"[{trace_id}] Quarantine batch {batch.id} created for shipment {shipment.id}")

        except QualityError as e:
            logger.warning(f"[{trace_id}] Inspection submit rejected: {e}")
            return error_response(e, trace_id)

        logger.info(
            f"[{trace_id}] Inspection {inspection.id}: {inspection.overall_result.value} "
            f"({inspection.pass_count} pass / {inspection.fail_count} fail / {inspection.pending_count} pending)"
        )

        # 7. Return summary
        return json_response(
            {
                "status": "OK",
                "inspection_id": inspection.id,
                "overall_result": inspection.overall_result.value,
                "pass_count": inspection.pass_count,
                "fail_count": inspection.fail_count,
                "pending_count": inspection.pending_count,
                "shipment_status": shipment.status.value,
                "quarantine_batch_id": quarantine_batch_id,
                "inspection": inspection.model_dump(mode="json"),
                "trace_id": trace_id,
                "message": "Inspection recorded"
            },
            status_code=200,
        )

    except Exception as e:
        logger.exception(f"[{trace_id}] Unexpected error: {e}")
        return json_response(
            {
                "status": "ERROR",
                "message": f"Internal server error: {str(e)}",
                "trace_id": trace_id
            },
            status_code=500,
        )
