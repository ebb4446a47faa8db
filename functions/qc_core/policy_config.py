"""
Centralized Business Policy
===========================

Fixed business policy for the quality workflow. These tables are the single
source of truth for tier limits, workflow graphs, and role permissions.
They are deliberately code, not runtime configuration: changing them is a
product decision.

Module Contents
---------------
TierLimits : dataclass
    Quotas and feature set for one tier
TIER_ORDER : tuple
    Tiers lowest first
TIER_LIMITS : dict
    Tier -> TierLimits
UNLIMITED : int
    Quota value meaning "no limit"
QUARANTINE_TRANSITIONS : dict
    QuarantineStatus -> allowed successor statuses
QUARANTINE_TERMINAL_STATUSES : frozenset
    Statuses that end a quarantine batch's lifecycle
DUE_SOON_WINDOW_DAYS : int
    Calibration due within this many days counts as due-soon
ROLE_PERMISSIONS : dict
    Operation name -> roles allowed to perform it
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple

from .models import Tier, Role, QuarantineStatus, WarrantyStatus


UNLIMITED = -1


@dataclass(frozen=True)
class TierLimits:
    """Quotas and feature flags for one subscription tier."""
    max_part_types: int
    max_inspections_per_month: int
    max_users: int
    features: FrozenSet[str] = field(default_factory=frozenset)


# Feature flags
FEATURE_BASIC_INSPECTION = "basic_inspection"
FEATURE_BASIC_REPORTS = "basic_reports"
FEATURE_PDF_EXPORT = "pdf_export"
FEATURE_GAGE_MANAGEMENT = "gage_management"
FEATURE_WARRANTY = "warranty"
FEATURE_ADVANCED_REPORTS = "advanced_reports"
FEATURE_AUDIT_LOG = "audit_log"
FEATURE_API_ACCESS = "api_access"
FEATURE_CUSTOM_INTEGRATIONS = "custom_integrations"
FEATURE_PRIORITY_SUPPORT = "priority_support"

_FREE_FEATURES = frozenset({FEATURE_BASIC_INSPECTION, FEATURE_BASIC_REPORTS})
_BASIC_FEATURES = _FREE_FEATURES | {FEATURE_PDF_EXPORT, FEATURE_GAGE_MANAGEMENT}
_PROFESSIONAL_FEATURES = _BASIC_FEATURES | {FEATURE_WARRANTY, FEATURE_ADVANCED_REPORTS, FEATURE_AUDIT_LOG}
_ENTERPRISE_FEATURES = _PROFESSIONAL_FEATURES | {
    FEATURE_API_ACCESS,
    FEATURE_CUSTOM_INTEGRATIONS,
    FEATURE_PRIORITY_SUPPORT,
}

TIER_ORDER: Tuple[Tier, ...] = (Tier.FREE, Tier.BASIC, Tier.PROFESSIONAL, Tier.ENTERPRISE)

TIER_LIMITS: Dict[Tier, TierLimits] = {
    Tier.FREE: TierLimits(
        max_part_types=5,
        max_inspections_per_month=50,
        max_users=2,
        features=_FREE_FEATURES,
    ),
    Tier.BASIC: TierLimits(
        max_part_types=25,
        max_inspections_per_month=500,
        max_users=10,
        features=_BASIC_FEATURES,
    ),
    Tier.PROFESSIONAL: TierLimits(
        max_part_types=100,
        max_inspections_per_month=5000,
        max_users=50,
        features=_PROFESSIONAL_FEATURES,
    ),
    Tier.ENTERPRISE: TierLimits(
        max_part_types=UNLIMITED,
        max_inspections_per_month=UNLIMITED,
        max_users=UNLIMITED,
        features=_ENTERPRISE_FEATURES,
    ),
}


# Quarantine workflow graph
QUARANTINE_TERMINAL_STATUSES: FrozenSet[QuarantineStatus] = frozenset({
    QuarantineStatus.RELEASED,
    QuarantineStatus.SCRAPPED,
    QuarantineStatus.RETURNED,
})

QUARANTINE_TRANSITIONS: Dict[QuarantineStatus, FrozenSet[QuarantineStatus]] = {
    QuarantineStatus.PENDING: frozenset({QuarantineStatus.UNDER_REVIEW}),
    QuarantineStatus.UNDER_REVIEW: frozenset({QuarantineStatus.DISPOSITION}),
    QuarantineStatus.DISPOSITION: QUARANTINE_TERMINAL_STATUSES,
    QuarantineStatus.RELEASED: frozenset(),
    QuarantineStatus.SCRAPPED: frozenset(),
    QuarantineStatus.RETURNED: frozenset(),
}

WARRANTY_TERMINAL_STATUSES: FrozenSet[WarrantyStatus] = frozenset({WarrantyStatus.CLOSED})


# Calibration
DUE_SOON_WINDOW_DAYS = 30


# Role permissions (explicit capability checks, see access.py)
OP_QUARANTINE_TRANSITION = "quarantine_transition"
OP_GAGE_WRITE = "gage_write"
OP_PART_TYPE_CREATE = "part_type_create"

ROLE_PERMISSIONS: Dict[str, FrozenSet[Role]] = {
    OP_QUARANTINE_TRANSITION: frozenset({Role.ADMIN, Role.ENGINEER}),
    OP_GAGE_WRITE: frozenset({Role.ADMIN, Role.ENGINEER}),
    OP_PART_TYPE_CREATE: frozenset({Role.ADMIN}),
}
