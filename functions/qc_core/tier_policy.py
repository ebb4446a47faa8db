"""
Tier Policy
===========

Evaluates whether a subscription tier permits a feature or has room left in
a resource quota. The tier table itself lives in ``policy_config``.

Rules
-----
- An unknown tier is an error (``InvalidTierError``), never a silent
  fallback to the free tier.
- A quota of ``UNLIMITED`` (-1) always has room; otherwise there is room
  while ``current_count < limit``.
- Counts must be non-negative integers. Malformed counts are rejected
  rather than coerced.

Usage:
    >>> within_quota("free", ResourceKind.PART_TYPES, 4)
    True
    >>> enforce_quota("free", ResourceKind.PART_TYPES, 5)
    Traceback (most recent call last):
    ...
    QuotaExceededError: ...
"""

import logging
from typing import Any, Optional, Union

from .exceptions import InvalidTierError, QuotaExceededError, ValidationError
from .models import ResourceKind, Tier
from .policy_config import TIER_LIMITS, TIER_ORDER, TierLimits, UNLIMITED

logger = logging.getLogger(__name__)

_RESOURCE_LABELS = {
    ResourceKind.PART_TYPES: "part types",
    ResourceKind.INSPECTIONS_PER_MONTH: "inspections this month",
    ResourceKind.USERS: "users",
}


def _coerce_tier(tier: Union[Tier, str, None]) -> Tier:
    if isinstance(tier, Tier):
        return tier
    try:
        return Tier(str(tier).strip().lower())
    except ValueError:
        raise InvalidTierError(tier)


def _coerce_resource(resource_kind: Union[ResourceKind, str]) -> ResourceKind:
    if isinstance(resource_kind, ResourceKind):
        return resource_kind
    try:
        return ResourceKind(str(resource_kind))
    except ValueError:
        raise ValidationError(
            f"Unknown resource kind '{resource_kind}'",
            details={"resource_kind": str(resource_kind)},
        )


def _coerce_count(current_count: Any) -> int:
    # bool is an int subclass; a flag is not a count
    if isinstance(current_count, bool) or not isinstance(current_count, int):
        raise ValidationError(
            "Current count must be an integer",
            details={"current_count": repr(current_count)},
        )
    if current_count < 0:
        raise ValidationError(
            "Current count cannot be negative",
            details={"current_count": current_count},
        )
    return current_count


def limits_for(tier: Union[Tier, str]) -> TierLimits:
    """
    Look up the limits of a tier.

    Raises:
        InvalidTierError: tier not in the tier table
    """
    return TIER_LIMITS[_coerce_tier(tier)]


def limit_for(tier: Union[Tier, str], resource_kind: Union[ResourceKind, str]) -> int:
    """Quota for one resource of a tier; UNLIMITED (-1) means no limit."""
    limits = limits_for(tier)
    resource = _coerce_resource(resource_kind)
    if resource == ResourceKind.PART_TYPES:
        return limits.max_part_types
    if resource == ResourceKind.INSPECTIONS_PER_MONTH:
        return limits.max_inspections_per_month
    return limits.max_users


def permits(tier: Union[Tier, str], feature: str) -> bool:
    """True when the tier's feature set includes the feature."""
    return feature in limits_for(tier).features


def within_quota(tier: Union[Tier, str], resource_kind: Union[ResourceKind, str], current_count: Any) -> bool:
    """
    True when one more resource of this kind may be created.

    Raises:
        InvalidTierError: unknown tier
        ValidationError: unknown resource kind or malformed count
    """
    limit = limit_for(tier, resource_kind)
    count = _coerce_count(current_count)
    if limit == UNLIMITED:
        return True
    return count < limit


def enforce_quota(tier: Union[Tier, str], resource_kind: Union[ResourceKind, str], current_count: Any) -> None:
    """
    Raise QuotaExceededError when the tier has no room for another resource.
    """
    if within_quota(tier, resource_kind, current_count):
        return

    tier_value = _coerce_tier(tier)
    resource = _coerce_resource(resource_kind)
    limit = limit_for(tier_value, resource)
    label = _RESOURCE_LABELS[resource]
    logger.warning(f"Quota reached for tier {tier_value.value}: {current_count}/{limit} {label}")
    raise QuotaExceededError(
        f"Your {tier_value.value} plan allows {limit} {label}. Upgrade to add more.",
        tier=tier_value.value,
        limit=limit,
        current_count=current_count,
        details={"resource_kind": resource.value},
    )


def required_tier(feature: str) -> Optional[Tier]:
    """Lowest tier that grants a feature, or None if no tier does."""
    for tier in TIER_ORDER:
        if feature in TIER_LIMITS[tier].features:
            return tier
    return None
