"""
fn_gage_upsert: Gage Upsert Azure Function
==========================================

Creates a gage or records a recalibration, and returns its calibration
classification (current / due-soon / overdue / unknown).

Key Features
------------
- Requires the gage_management feature and the admin or engineer role
- An explicit next calibration date always wins; otherwise it is derived
  from calibration date + the supplied interval, else the gage is "unknown"
- A gage saved without an interval stores QC_DEFAULT_CALIBRATION_INTERVAL_DAYS
  for its next recalibration
- On update, a new calibration date without a new next date re-derives the
  next date

Request Format
--------------
{
    "principal": {"user_id": "u-2", "role": "engineer", "tier": "basic"},
    "id": null,                           // Present for updates
    "gage_id": "CAL-042",                 // REQUIRED
    "name": "Outside micrometer 0-25mm",
    "calibration_date": "2026-01-01",
    "calibration_interval_days": 90,
    "next_calibration_date": null,
    "as_of": "2026-03-25"                 // Optional - evaluation date
}

Response Codes
--------------
200 OK
    - "OK": Gage saved, classification returned

400 Bad Request
    - "ERROR": Invalid request format (e.g. negative interval)

403 Forbidden
    - "FORBIDDEN": Role may not manage gages
    - "QUOTA_EXCEEDED": Tier lacks gage management

404 Not Found
    - "NOT_FOUND": Gage id not found (update)
"""

import logging
import azure.functions as func
from datetime import date

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    GageUpsertRequest,
    Gage,
    GageStatus,
    ActionType,
    QualityError,
    FEATURE_GAGE_MANAGEMENT,
    OP_GAGE_WRITE,
    require_role,
    require_feature,
    schedule_gage,
    get_repository,
    get_settings,
    generate_trace_id,
    log_user_action,
    json_response,
    error_response,
    configure_logging,
)

logger = logging.getLogger(__name__)
configure_logging()


def _merge_update(existing: Gage, request: GageUpsertRequest) -> Gage:
    """Apply provided fields to an existing gage."""
    updates = {"gage_id": request.gage_id}
    if request.name is not None:
        updates["name"] = request.name
    if request.status is not None:
        updates["status"] = request.status
    if request.calibration_interval_days is not None:
        updates["calibration_interval_days"] = request.calibration_interval_days
    if request.calibration_date is not None:
        updates["calibration_date"] = request.calibration_date

    if request.next_calibration_date is not None:
        updates["next_calibration_date"] = request.next_calibration_date
    elif request.calibration_date is not None or request.calibration_interval_days is not None:
        # Re-derive from the new calibration date / interval
        updates["next_calibration_date"] = None

    return existing.model_copy(update=updates)


def main(req: func.HttpRequest) -> func.HttpResponse:
    """Main entry point for gage create/recalibrate."""
    trace_id = generate_trace_id()

    try:
        try:
            body = req.get_json()
            request = GageUpsertRequest(**body)
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
        logger.info(f"[{trace_id}] Gage upsert: id={request.id}, gage_id={request.gage_id}")
        repo = get_repository()
        settings = get_settings()
        today = request.as_of or date.today()

        try:
            require_feature(principal, FEATURE_GAGE_MANAGEMENT)
            require_role(principal, OP_GAGE_WRITE)

            if request.id:
                existing = repo.load_gage(request.id)
                gage = _merge_update(existing, request)
                action_type = ActionType.GAGE_RECALIBRATED
                old_value = existing.model_dump(mode="json")
            else:
                gage = Gage(
                    gage_id=request.gage_id,
                    name=request.name,
                    calibration_date=request.calibration_date,
                    next_calibration_date=request.next_calibration_date,
                    calibration_interval_days=request.calibration_interval_days,
                    status=request.status or GageStatus.ACTIVE,
                )
                action_type = ActionType.GAGE_CREATED
                old_value = None

            schedule = schedule_gage(
                gage,
                today,
                default_interval_days=settings.default_calibration_interval_days,
            )
        except QualityError as e:
            logger.warning(f"[{trace_id}] Gage upsert rejected: {e}")
            return error_response(e, trace_id)

        saved = repo.save_gage(schedule.gage)
        log_user_action(
            repo=repo,
            user_id=principal.user_id,
            action_type=action_type,
            target_table="gages",
            target_id=saved.id,
            old_value=old_value,
            new_value=saved.model_dump(mode="json"),
            trace_id=trace_id,
        )
        logger.info(f"[{trace_id}] Gage {saved.gage_id} saved: {schedule.state.value}, due {schedule.due}")

        return json_response(
            {
                "status": "OK",
                "gage": saved.model_dump(mode="json"),
                "calibration_state": schedule.state.value,
                "next_calibration_date": schedule.due.isoformat() if schedule.due else None,
                "days_until_due": schedule.days_until_due,
                "trace_id": trace_id,
                "message": "Gage saved"
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
