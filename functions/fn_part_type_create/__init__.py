"""
fn_part_type_create: Part Type Create Azure Function
====================================================

Creates a part type under the tier's part-type quota.

The quota check and the insert run under the repository lock, so two
concurrent creates cannot both pass the check at the last free slot.

Request Format
--------------
{
    "principal": {"user_id": "u-1", "role": "admin", "tier": "free"},
    "part_number": "PN-1001",     // REQUIRED
    "name": "Bracket",            // REQUIRED
    "description": "Steel mounting bracket"
}

Response Codes
--------------
201 Created
    - "OK": Part type created

400 Bad Request
    - "ERROR": Invalid request format

403 Forbidden
    - "QUOTA_EXCEEDED": Part type limit reached (response carries upgrade info)
    - "FORBIDDEN": Role may not create part types
"""

import logging
import azure.functions as func

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    PartTypeCreateRequest,
    PartType,
    ResourceKind,
    ActionType,
    QualityError,
    OP_PART_TYPE_CREATE,
    require_role,
    enforce_quota,
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
    """Main entry point for quota-checked part type creation."""
    trace_id = generate_trace_id()

    try:
        try:
            body = req.get_json()
            request = PartTypeCreateRequest(**body)
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
        logger.info(f"[{trace_id}] Creating part type {request.part_number} (tier={principal.tier.value})")
        repo = get_repository()

        try:
            require_role(principal, OP_PART_TYPE_CREATE)
            with repo.lock:
                current_count = repo.count_part_types()
                enforce_quota(principal.tier, ResourceKind.PART_TYPES, current_count)
                part_type = repo.save_part_type(PartType(
                    part_number=request.part_number,
                    name=request.name,
                    description=request.description,
                    created_by=principal.user_id,
                ))
        except QualityError as e:
            logger.warning(f"[{trace_id}] Part type create rejected: {e}")
            log_user_action(
                repo=repo,
                user_id=principal.user_id,
                action_type=ActionType.OPERATION_FAILED,
                target_table="part_types",
                target_id=request.part_number,
                notes=e.message,
                trace_id=trace_id,
            )
            return error_response(e, trace_id)

        log_user_action(
            repo=repo,
            user_id=principal.user_id,
            action_type=ActionType.PART_TYPE_CREATED,
            target_table="part_types",
            target_id=part_type.id,
            new_value={"part_number": part_type.part_number, "name": part_type.name},
            trace_id=trace_id,
        )

        return json_response(
            {
                "status": "OK",
                "part_type_id": part_type.id,
                "part_type": part_type.model_dump(mode="json"),
                "trace_id": trace_id,
                "message": "Part type created"
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
