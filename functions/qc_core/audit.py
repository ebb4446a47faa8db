"""
Shared Audit Utilities
======================

Append-only user action trail. Every state-changing HTTP function records
what changed, who changed it, and the trace id of the request.

A failure to write the trail is logged and does not fail the operation it
describes.
"""

import json
import logging
from typing import Any, Optional

from .models import ActionType, UserActionRecord

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def log_user_action(
    repo,
    user_id: str,
    action_type: ActionType,
    target_table: str,
    target_id: str,
    old_value: Any = None,
    new_value: Any = None,
    notes: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> Optional[str]:
    """
    Log a user action to the audit trail.

    Args:
        repo: QualityRepository instance
        user_id: User who performed the action
        action_type: Type of action (from ActionType enum)
        target_table: Name of the affected table
        target_id: ID of the affected record
        old_value: Previous value (str, or anything JSON-serializable)
        new_value: New value (str, or anything JSON-serializable)
        notes: Additional notes about the action
        trace_id: Correlation ID for tracing

    Returns:
        The action_id, or None if the trail could not be written
    """
    record = UserActionRecord(
        user_id=user_id,
        action_type=action_type,
        target_table=target_table,
        target_id=target_id,
        old_value=_as_text(old_value),
        new_value=_as_text(new_value),
        notes=notes or (f"Trace: {trace_id}" if trace_id else None),
        trace_id=trace_id,
    )

    try:
        action_id = repo.append_action(record)
        logger.info(f"[{trace_id}] User action logged: {action_id} - {action_type.value}")
        return action_id
    except Exception as e:
        logger.error(f"[{trace_id}] Failed to log user action: {e}")
        return None
