"""
fn_quarantine_update: Quarantine Update Azure Function
======================================================

Moves a quarantine batch to its next status.

    pending -> under-review -> disposition -> released | scrapped | returned

Key Features
------------
- Only admin and engineer roles may move batches
- Unknown or non-adjacent target statuses are rejected; the stored batch is
  left unchanged
- Terminal statuses record the disposition notes, user and date together
- The save only succeeds if no other request moved the batch meanwhile

Request Format
--------------
{
    "principal": {"user_id": "u-2", "role": "engineer", "tier": "basic"},
    "batch_id": "QB-1A2B3C4D",           // REQUIRED
    "status": "scrapped",                // REQUIRED
    "disposition_notes": "not reworkable"
}

Response Codes
--------------
200 OK
    - "OK": Batch moved

400 Bad Request
    - "ERROR": Invalid request format

403 Forbidden
    - "FORBIDDEN": Role may not move batches

404 Not Found
    - "NOT_FOUND": Batch not found

422 Unprocessable Entity
    - "BLOCKED": Unknown status, illegal transition, or concurrent update
"""

import logging
import azure.functions as func

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    QuarantineUpdateRequest,
    ActionType,
    QualityError,
    transition,
    allowed_transitions,
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
    """Main entry point for quarantine batch transitions."""
    trace_id = generate_trace_id()

    try:
        try:
            body = req.get_json()
            request = QuarantineUpdateRequest(**body)
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

        logger.info(f"[{trace_id}] Quarantine update: batch={request.batch_id}, target={request.status}")
        repo = get_repository()

        try:
            batch = repo.load_quarantine_batch(request.batch_id)
            updated = transition(
                batch,
                request.status,
                request.principal,
                notes=request.disposition_notes,
            )
            repo.compare_and_save_quarantine(updated, expected_status=batch.status)
        except QualityError as e:
            logger.warning(f"[{trace_id}] Quarantine update rejected: {e}")
            log_user_action(
                repo=repo,
                user_id=request.principal.user_id,
                action_type=ActionType.OPERATION_FAILED,
                target_table="quarantine_batches",
                target_id=request.batch_id,
                notes=e.message,
                trace_id=trace_id,
            )
            return error_response(e, trace_id)

        log_user_action(
            repo=repo,
            user_id=request.principal.user_id,
            action_type=ActionType.QUARANTINE_TRANSITIONED,
            target_table="quarantine_batches",
            target_id=updated.id,
            old_value=batch.status.value,
            new_value=updated.status.value,
            notes=request.disposition_notes,
            trace_id=trace_id,
        )

        return json_response(
            {
                "status": "OK",
                "batch_id": updated.id,
                "batch_status": updated.status.value,
                "allowed_next": sorted(s.value for s in allowed_transitions(updated.status)),
                "batch": updated.model_dump(mode="json"),
                "trace_id": trace_id,
                "message": f"Quarantine batch moved to {updated.status.value}"
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
