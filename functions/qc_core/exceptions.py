"""
Quality Workflow Exceptions
===========================

Exception Hierarchy:
    QualityError (base)
    ├── ValidationError            - Bad input or illegal workflow move (never partially applied)
    │   ├── InvalidTierError       - Tier name not in the tier table
    │   └── IllegalTransitionError - Target status not reachable from current status
    ├── NotFoundError              - Referenced entity id does not exist
    ├── QuotaExceededError         - Tier resource limit reached (caller may offer an upgrade)
    │   └── FeatureNotAvailableError - Tier does not include the requested feature
    └── PermissionDeniedError      - Principal role may not perform the operation

All errors are raised before any state is mutated. Nothing here is retried:
the engine performs no I/O, so there is nothing transient to retry.
"""

from typing import Optional, Dict, Any


class QualityError(Exception):
    """
    Base exception for all quality workflow errors.

    Carries a human-readable message plus an optional details dict that the
    HTTP layer echoes back to the caller.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(QualityError):
    """Missing mandatory field, malformed input, or illegal workflow target."""
    pass


class InvalidTierError(ValidationError):
    """Raised for a tier name that is not in the tier table."""

    def __init__(self, tier: Any):
        self.tier = tier
        super().__init__(
            f"Tier '{tier}' is not recognized",
            details={"tier": str(tier)},
        )


class IllegalTransitionError(ValidationError):
    """Raised when a status change is not an edge of the workflow graph."""

    def __init__(self, entity: str, current: str, target: str, allowed: Optional[list] = None):
        self.current = current
        self.target = target
        self.allowed = allowed or []
        super().__init__(
            f"{entity} cannot move from '{current}' to '{target}'",
            details={"current": current, "target": target, "allowed": self.allowed},
        )


class NotFoundError(QualityError):
    """Raised by repository loads when an entity id does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} '{entity_id}' not found",
            details={"entity": entity, "id": str(entity_id)},
        )


class QuotaExceededError(QualityError):
    """Raised when a tier resource limit has been reached."""

    def __init__(
        self,
        message: str,
        tier: Optional[str] = None,
        limit: Optional[int] = None,
        current_count: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.tier = tier
        self.limit = limit
        self.current_count = current_count
        merged = {"tier": tier, "limit": limit, "current_count": current_count, "upgrade_required": True}
        merged.update(details or {})
        super().__init__(message, details=merged)


class FeatureNotAvailableError(QuotaExceededError):
    """Raised when the principal's tier does not include a feature."""

    def __init__(self, feature: str, tier: str, required_tier: Optional[str] = None):
        self.feature = feature
        self.required_tier = required_tier
        super().__init__(
            f'The "{feature}" feature is not included in your {tier} plan',
            tier=tier,
            details={"feature": feature, "required_tier": required_tier},
        )


class PermissionDeniedError(QualityError):
    """Raised when the principal's role may not perform an operation."""

    def __init__(self, role: str, allowed_roles: list):
        self.role = role
        self.allowed_roles = allowed_roles
        super().__init__(
            f"This action requires one of these roles: {', '.join(allowed_roles)}",
            details={"your_role": role, "allowed_roles": allowed_roles},
        )
