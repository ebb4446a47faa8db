"""
Quality Workflow Core
=====================

Engine, models, and storage contract for the incoming-part quality workflow
functions.

Modules
-------
models
    Pydantic models and status enumerations
tolerance
    Pass/fail/pending evaluation of measured characteristics
inspection
    Aggregation of characteristic results and shipment status proposals
quarantine
    Quarantine batch state machine
calibration
    Gage calibration due dates and classification
tier_policy
    Subscription tier features and quotas
access
    Role and feature checks on an authenticated principal
warranty
    Warranty claim lifecycle
repository
    Storage contract and in-memory implementation
audit
    User action trail
config
    Environment-driven settings

Quick Start
-----------
>>> from qc_core import (
...     get_repository,
...     begin_inspection,
...     record_measurements,
...     propose_shipment_status,
...     generate_trace_id,
... )
>>>
>>> repo = get_repository()
>>> shipment = repo.load_shipment("SHP-0001")
>>> plan = repo.load_inspection_plan("PLAN-0001")
>>> inspection, shipment_status = begin_inspection(shipment, plan, "u-1")

Tier checks
-----------
>>> from qc_core import within_quota, ResourceKind
>>> within_quota("free", ResourceKind.PART_TYPES, 4)
True
"""

# Exceptions
from .exceptions import (
    QualityError,
    ValidationError,
    InvalidTierError,
    IllegalTransitionError,
    NotFoundError,
    QuotaExceededError,
    FeatureNotAvailableError,
    PermissionDeniedError,
)

# Data models
from .models import (
    CharacteristicKind,
    InspectionResult,
    ShipmentStatus,
    QuarantineStatus,
    CalibrationState,
    GageStatus,
    Tier,
    Role,
    ResourceKind,
    WarrantyStatus,
    ActionType,
    Principal,
    CharacteristicSpec,
    CharacteristicResult,
    InspectionPlan,
    Inspection,
    Shipment,
    QuarantineBatch,
    Gage,
    PartType,
    WarrantyClaim,
    UserActionRecord,
    MeasurementEntry,
    InspectionSubmitRequest,
    QuarantineCreateRequest,
    QuarantineUpdateRequest,
    GageUpsertRequest,
    PartTypeCreateRequest,
    WarrantyClaimRequest,
    WarrantyUpdateRequest,
)

# Business policy
from .policy_config import (
    TierLimits,
    TIER_ORDER,
    TIER_LIMITS,
    UNLIMITED,
    QUARANTINE_TRANSITIONS,
    QUARANTINE_TERMINAL_STATUSES,
    DUE_SOON_WINDOW_DAYS,
    ROLE_PERMISSIONS,
    FEATURE_GAGE_MANAGEMENT,
    FEATURE_WARRANTY,
    OP_QUARANTINE_TRANSITION,
    OP_GAGE_WRITE,
    OP_PART_TYPE_CREATE,
)

# Helpers
from .helpers import (
    generate_trace_id,
    generate_entity_id,
    parse_number,
    parse_int_safe,
    to_date,
)

# Engine
from .tolerance import evaluate, tolerance_limits, resolve_manual
from .inspection import (
    InspectionSummary,
    aggregate,
    propose_shipment_status,
    begin_inspection,
    record_measurements,
    failed_characteristic_names,
)
from .quarantine import (
    create_batch,
    transition,
    allowed_transitions,
    is_terminal,
    quarantine_from_inspection,
)
from .calibration import (
    GageSchedule,
    DEFAULT_CALIBRATION_INTERVAL_DAYS,
    due_date,
    classify,
    interval_from_due_date,
    parse_interval,
    schedule_gage,
    summarize,
)
from .tier_policy import (
    limits_for,
    limit_for,
    permits,
    within_quota,
    enforce_quota,
    required_tier,
)
from .access import require_role, require_feature
from .warranty import create_claim, update_claim

# Storage
from .repository import (
    QualityRepository,
    InMemoryRepository,
    get_repository,
    set_repository,
    reset_repository,
)

# Audit
from .audit import log_user_action

# Config
from .config import Settings, get_settings, reset_settings, configure_logging

# HTTP
from .responses import json_response, error_response, error_status

__all__ = [
    # Exceptions
    "QualityError",
    "ValidationError",
    "InvalidTierError",
    "IllegalTransitionError",
    "NotFoundError",
    "QuotaExceededError",
    "FeatureNotAvailableError",
    "PermissionDeniedError",
    # Models
    "CharacteristicKind",
    "InspectionResult",
    "ShipmentStatus",
    "QuarantineStatus",
    "CalibrationState",
    "GageStatus",
    "Tier",
    "Role",
    "ResourceKind",
    "WarrantyStatus",
    "ActionType",
    "Principal",
    "CharacteristicSpec",
    "CharacteristicResult",
    "InspectionPlan",
    "Inspection",
    "Shipment",
    "QuarantineBatch",
    "Gage",
    "PartType",
    "WarrantyClaim",
    "UserActionRecord",
    "MeasurementEntry",
    "InspectionSubmitRequest",
    "QuarantineCreateRequest",
    "QuarantineUpdateRequest",
    "GageUpsertRequest",
    "PartTypeCreateRequest",
    "WarrantyClaimRequest",
    "WarrantyUpdateRequest",
    # Policy
    "TierLimits",
    "TIER_ORDER",
    "TIER_LIMITS",
    "UNLIMITED",
    "QUARANTINE_TRANSITIONS",
    "QUARANTINE_TERMINAL_STATUSES",
    "DUE_SOON_WINDOW_DAYS",
    "ROLE_PERMISSIONS",
    "FEATURE_GAGE_MANAGEMENT",
    "FEATURE_WARRANTY",
    "OP_QUARANTINE_TRANSITION",
    "OP_GAGE_WRITE",
    "OP_PART_TYPE_CREATE",
    # Helpers
    "generate_trace_id",
    "generate_entity_id",
    "parse_number",
    "parse_int_safe",
    "to_date",
    # Engine
    "evaluate",
    "tolerance_limits",
    "resolve_manual",
    "InspectionSummary",
    "aggregate",
    "propose_shipment_status",
    "begin_inspection",
    "record_measurements",
    "failed_characteristic_names",
    "create_batch",
    "transition",
    "allowed_transitions",
    "is_terminal",
    "quarantine_from_inspection",
    "GageSchedule",
    "DEFAULT_CALIBRATION_INTERVAL_DAYS",
    "due_date",
    "classify",
    "interval_from_due_date",
    "parse_interval",
    "schedule_gage",
    "summarize",
    "limits_for",
    "limit_for",
    "permits",
    "within_quota",
    "enforce_quota",
    "required_tier",
    "require_role",
    "require_feature",
    "create_claim",
    "update_claim",
    # Storage
    "QualityRepository",
    "InMemoryRepository",
    "get_repository",
    "set_repository",
    "reset_repository",
    # Audit
    "log_user_action",
    # Config
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    # HTTP
    "json_response",
    "error_response",
    "error_status",
]
