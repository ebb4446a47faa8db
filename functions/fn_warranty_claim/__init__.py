"""
fn_warranty_claim: Warranty Claim Azure Function
================================================

Creates a warranty claim in ``open``. Requires the warranty feature
(professional tier and above).

Request Format
--------------
{
    "principal": {"user_id": "u-3", "role": "warranty_manager", "tier": "professional"},
    "part_type_id": "PT-0001",
    "customer_name": "Acme",
    "quantity": 2,                        // Optional - defaults to 1
    "failure_description": "Cracked housing",   // REQUIRED
    "failure_mode": "fatigue",
    "serial_numbers": "SN-1, SN-2"
}

Response Codes
--------------
201 Created
    - "OK": Claim created

400 Bad Request
    - "ERROR": Invalid request format

403 Forbidden
    - "QUOTA_EXCEEDED": Tier lacks the warranty feature (carries required tier)

422 Unprocessable Entity
    - "BLOCKED": Missing failure description or bad quantity
"""

import logging
import azure.functions as func

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    WarrantyClaimRequest,
    ActionType,
    QualityError,
    create_claim,
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
    """Main entry point for warranty claim creation."""
    trace_id = generate_trace_id()

    try:
        try:
            body = req.get_json()
            request = WarrantyClaimRequest(**body)
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
        logger.info(f"[{trace_id}] Creating warranty claim for part type {request.part_type_id}")
        repo = get_repository()

        try:
            claim = create_claim(
                principal,
                request.failure_description,
                quantity=request.quantity,
                part_type_id=request.part_type_id,
                claim_number=request.claim_number,
                customer_name=request.customer_name,
                failure_date=request.failure_date,
                failure_mode=request.failure_mode,
                serial_numbers=request.serial_numbers,
            )
        except QualityError as e:
            logger.warning(f"[{trace_id}] Warranty claim rejected: {e}")
            return error_response(e, trace_id)

        repo.save_warranty_claim(claim)
        log_user_action(
            repo=repo,
            user_id=principal.user_id,
            action_type=ActionType.WARRANTY_CREATED,
            target_table="warranty_claims",
            target_id=claim.id,
            new_value={"quantity": claim.quantity, "status": claim.status.value},
            trace_id=trace_id,
        )

        return json_response(
            {
                "status": "OK",
                "claim_id": claim.id,
                "claim": claim.model_dump(mode="json"),
                "trace_id": trace_id,
                "message": "Warranty claim created"
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
