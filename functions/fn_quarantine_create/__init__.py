"""
fn_quarantine_create: Quarantine Create Azure Function
======================================================

Creates a quarantine batch in ``pending``.

Request Format
--------------
{
    "principal": {"user_id": "u-1", "role": "inspector", "tier": "basic"},
    "shipment_id": "SHP-0001",     // Optional
    "inspection_id": "INS-0001",   // Optional
    "quantity": 50,                // REQUIRED - number
    "reason": "bent pins",         // REQUIRED - non-blank
    "defect_type": "mechanical",
    "location": "Bay 3"
}

Response Codes
--------------
201 Created
    - "OK": Batch created

400 Bad Request
    - "ERROR": Invalid request format

404 Not Found
    - "NOT_FOUND": Referenced shipment not found

422 Unprocessable Entity
    - "BLOCKED": Missing reason or non-numeric quantity
"""

import logging
import azure.functions as func

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    QuarantineCreateRequest,
    ActionType,
    QualityError,
    create_batch,
    get_repository,
    generate_trace_id,
    log_user_action,
    json_response,
    error_response,
    configure_logging,
)

logger = logging.getLogger(__name__)
configure_logging()


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Main entry point for quarantine batch creation."""
    trace_id = generate_trace_id()

    try:
        try:
            body = req.get_json()
            request = QuarantineCreateRequest(**body)
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

        logger.info(f"[{trace_id}] Creating quarantine batch: shipment={request.shipment_id}")
        repo = get_repository()

        try:
            if request.shipment_id:
                repo.load_shipment(request.shipment_id)

            batch = create_batch(
                quantity=request.quantity,
                reason=request.reason,
                created_by=request.principal.user_id,
                shipment_id=request.shipment_id,
                inspection_id=request.inspection_id,
                quarantine_number=request.quarantine_number,
                defect_type=request.defect_type,
                location=request.location,
                notes=request.notes,
            )
        except QualityError as e:
            logger.warning(f"[{trace_id}] Quarantine create rejected: {e}")
            log_user_action(
                repo=repo,
                user_id=request.principal.user_id,
                action_type=ActionType.OPERATION_FAILED,
                target_table="quarantine_batches",
                target_id=request.shipment_id or "-",
                notes=e.message,
                trace_id=trace_id,
            )
            return error_response(e, trace_id)

        repo.save_quarantine_batch(batch)
        log_user_action(
            repo=repo,
            user_id=request.principal.user_id,
            action_type=ActionType.QUARANTINE_CREATED,
            target_table="quarantine_batches",
            target_id=batch.id,
            new_value={"quantity": batch.quantity, "reason": batch.reason},
            trace_id=trace_id,
        )

        return json_response(
            {
                "status": "OK",
                "batch_id": batch.id,
                "batch": batch.model_dump(mode="json"),
                "trace_id": trace_id,
                "message": "Quarantine batch created"
            },
            status_code=201,
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
