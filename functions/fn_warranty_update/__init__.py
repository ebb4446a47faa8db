"""
fn_warranty_update: Warranty Update Azure Function
==================================================

Updates a warranty claim's status and resolution details. ``closed`` is
terminal and stamps ``closed_at``.

Request Format
--------------
{
    "principal": {"user_id": "u-3", "role": "warranty_manager", "tier": "professional"},
    "claim_id": "WC-1A2B3C4D",        // REQUIRED
    "status": "approved",             // REQUIRED
    "resolution": "Replace unit",
    "credit_amount": 120.0,
    "replacement_shipped": true,
    "assigned_to": "u-4"
}

Response Codes
--------------
200 OK
    - "OK": Claim updated

400 Bad Request
    - "ERROR": Invalid request format

403 Forbidden
    - "QUOTA_EXCEEDED": Tier lacks the warranty feature

404 Not Found
    - "NOT_FOUND": Claim not found

422 Unprocessable Entity
    - "BLOCKED": Unknown status, or claim already closed
"""

import logging
import azure.functions as func

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    WarrantyUpdateRequest,
    ActionType,
    QualityError,
    update_claim,
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
    """Main entry point for warranty claim updates."""
    trace_id = generate_trace_id()

    try:
        try:
            body = req.get_json()
            request = WarrantyUpdateRequest(**body)
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
        logger.info(f"[{trace_id}] Warranty update: claim={request.claim_id}, status={request.status}")
        repo = get_repository()

        try:
            with repo.lock:
                claim = repo.load_warranty_claim(request.claim_id)
                updated = update_claim(
                    claim,
                    request.status,
                    principal,
                    resolution=request.resolution,
                    credit_amount=request.credit_amount,
                    replacement_shipped=request.replacement_shipped,
                    assigned_to=request.assigned_to,
                )
                repo.save_warranty_claim(updated)
        except QualityError as e:
            logger.warning(f"[{trace_id}] Warranty update rejected: {e}")
            return error_response(e, trace_id)

        log_user_action(
            repo=repo,
            user_id=principal.user_id,
            action_type=ActionType.WARRANTY_UPDATED,
            target_table="warranty_claims",
            target_id=updated.id,
            old_value=claim.status.value,
            new_value=updated.status.value,
            notes=request.resolution,
            trace_id=trace_id,
        )

        return json_response(
            {
                "status": "OK",
                "claim_id": updated.id,
                "claim_status": updated.status.value,
                "claim": updated.model_dump(mode="json"),
                "trace_id": trace_id,
                "message": "Warranty claim updated"
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
