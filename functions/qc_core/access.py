"""
Access checks for role and feature gating.

Both checks take the already-authenticated Principal explicitly and raise
before any state is touched.
"""

import logging
from typing import Iterable, Union

from .exceptions import FeatureNotAvailableError, PermissionDeniedError, ValidationError
from .models import Principal, Role
from .policy_config import ROLE_PERMISSIONS
from .tier_policy import permits, required_tier

logger = logging.getLogger(__name__)


def require_role(principal: Principal, operation_or_roles: Union[str, Iterable[Role]]) -> None:
    """
    Ensure the principal's role may perform an operation.

    Args:
        principal: Authenticated caller
        operation_or_roles: Operation name from ROLE_PERMISSIONS, or an
            explicit collection of allowed roles

    Raises:
        PermissionDeniedError: role not allowed
        ValidationError: unknown operation name
    """
    if isinstance(operation_or_roles, str):
        allowed = ROLE_PERMISSIONS.get(operation_or_roles)
        if allowed is None:
            raise ValidationError(
                f"Unknown operation '{operation_or_roles}'",
                details={"operation": operation_or_roles},
            )
    else:
        allowed = frozenset(operation_or_roles)

    if principal.role not in allowed:
        allowed_names = sorted(role.value for role in allowed)
        logger.warning(
            f"User {principal.user_id} ({principal.role.value}) denied; requires {allowed_names}"
        )
        raise PermissionDeniedError(principal.role.value, allowed_names)


def require_feature(principal: Principal, feature: str) -> None:
    """
    Ensure the principal's tier includes a feature.

    Raises:
        FeatureNotAvailableError: carries the lowest tier granting the feature
    """
    if permits(principal.tier, feature):
        return

    upgrade_to = required_tier(feature)
    logger.warning(
        f"Feature {feature} not available on {principal.tier.value} plan for user {principal.user_id}"
    )
    raise FeatureNotAvailableError(
        feature,
        principal.tier.value,
        required_tier=upgrade_to.value if upgrade_to else None,
    )
