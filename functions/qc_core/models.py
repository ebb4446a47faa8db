"""
Shared Data Models for the Quality Workflow Functions
=====================================================

This module defines all Pydantic models used for request validation and data
transfer across the incoming-inspection quality system.

Design Principles
-----------------
- **Pydantic v2** for validation and serialization
- **Enums** for every status value, so illegal states cannot be represented
- **Optional fields** with sensible defaults
- Enum values match the strings stored at the persistence boundary

Model Categories
----------------
Enumerations
    CharacteristicKind, InspectionResult, ShipmentStatus, QuarantineStatus,
    CalibrationState, GageStatus, Tier, Role, ResourceKind, WarrantyStatus,
    ActionType

Entity Models
    CharacteristicSpec, CharacteristicResult, InspectionPlan, Inspection,
    Shipment, QuarantineBatch, Gage, PartType, WarrantyClaim,
    UserActionRecord, Principal

Request Models
    InspectionSubmitRequest, QuarantineCreateRequest, QuarantineUpdateRequest,
    GageUpsertRequest, PartTypeCreateRequest, WarrantyClaimRequest,
    WarrantyUpdateRequest

Usage Examples
--------------
Creating a spec:
    >>> spec = CharacteristicSpec(
    ...     id="CH-1",
    ...     name="Bore diameter",
    ...     kind=CharacteristicKind.MEASUREMENT,
    ...     nominal=10.5,
    ...     upper_tolerance=0.05,
    ...     lower_tolerance=-0.05,
    ... )

Serializing for storage:
    >>> spec.model_dump(mode="json")
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .helpers import generate_entity_id as _new_id


# ============== Enumerations ==============

class CharacteristicKind(str, Enum):
    """How a characteristic is judged. Only MEASUREMENT is computed."""
    MEASUREMENT = "measurement"
    VISUAL = "visual"
    FUNCTIONAL = "functional"
    ATTRIBUTE = "attribute"


class InspectionResult(str, Enum):
    """Result of a single characteristic or a whole inspection."""
    PENDING = "pending"
    PASS = "pass"
    FAIL = "fail"


class ShipmentStatus(str, Enum):
    """Shipment status values - must match the shipments.status column."""
    PENDING = "pending"
    IN_INSPECTION = "in_inspection"
    APPROVED = "approved"
    REJECTED = "rejected"
    PARTIAL = "partial"


class QuarantineStatus(str, Enum):
    """Quarantine batch lifecycle. The last three are terminal."""
    PENDING = "pending"
    UNDER_REVIEW = "under-review"
    DISPOSITION = "disposition"
    RELEASED = "released"
    SCRAPPED = "scrapped"
    RETURNED = "returned"


class CalibrationState(str, Enum):
    """Classification of a gage's calibration due date."""
    OVERDUE = "overdue"
    DUE_SOON = "due-soon"
    CURRENT = "current"
    UNKNOWN = "unknown"


class GageStatus(str, Enum):
    """Gage equipment status - must match the gages.status column."""
    ACTIVE = "active"
    CALIBRATION_DUE = "calibration_due"
    OUT_FOR_CALIBRATION = "out_for_calibration"
    OUT_OF_SERVICE = "out_of_service"
    RETIRED = "retired"


class Tier(str, Enum):
    """Subscription tiers, lowest first."""
    FREE = "free"
    BASIC = "basic"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class Role(str, Enum):
    """User roles."""
    ADMIN = "admin"
    ENGINEER = "engineer"
    INSPECTOR = "inspector"
    WARRANTY_MANAGER = "warranty_manager"


class ResourceKind(str, Enum):
    """Quota-limited resources."""
    PART_TYPES = "part_types"
    INSPECTIONS_PER_MONTH = "inspections_per_month"
    USERS = "users"


class WarrantyStatus(str, Enum):
    """Warranty claim status values."""
    OPEN = "open"
    INVESTIGATING = "investigating"
    PENDING_PARTS = "pending_parts"
    APPROVED = "approved"
    DENIED = "denied"
    CLOSED = "closed"


class ActionType(str, Enum):
    """User action types for the audit trail."""
    INSPECTION_STARTED = "INSPECTION_STARTED"
    INSPECTION_UPDATED = "INSPECTION_UPDATED"
    INSPECTION_COMPLETED = "INSPECTION_COMPLETED"
    SHIPMENT_STATUS_CHANGED = "SHIPMENT_STATUS_CHANGED"
    QUARANTINE_CREATED = "QUARANTINE_CREATED"
    QUARANTINE_TRANSITIONED = "QUARANTINE_TRANSITIONED"
    GAGE_CREATED = "GAGE_CREATED"
    GAGE_RECALIBRATED = "GAGE_RECALIBRATED"
    PART_TYPE_CREATED = "PART_TYPE_CREATED"
    WARRANTY_CREATED = "WARRANTY_CREATED"
    WARRANTY_UPDATED = "WARRANTY_UPDATED"
    OPERATION_FAILED = "OPERATION_FAILED"


# ============== Identity ==============

class Principal(BaseModel):
    """An already-authenticated caller, resolved by the surrounding system."""
    user_id: str
    role: Role
    tier: Tier


# ============== Entity Models ==============

class CharacteristicSpec(BaseModel):
    """A single inspectable attribute defined by an inspection plan."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: CharacteristicKind = CharacteristicKind.MEASUREMENT
    unit: Optional[str] = None
    nominal: Optional[float] = None
    upper_tolerance: Optional[float] = None
    lower_tolerance: Optional[float] = None
    is_critical: bool = False


class CharacteristicResult(BaseModel):
    """Entered value and outcome for one characteristic of an inspection."""
    spec_id: str
    actual_value: Optional[Union[float, str]] = None
    result: InspectionResult = InspectionResult.PENDING


class InspectionPlan(BaseModel):
    """Template describing how a part type is inspected."""
    id: str = Field(default_factory=lambda: _new_id("PLAN"))
    part_type_id: Optional[str] = None
    name: str
    version: str = "1.0"
    sample_size: int = Field(5, ge=0)
    characteristics: List[CharacteristicSpec] = Field(default_factory=list)
    is_active: bool = True

    def spec_by_id(self, spec_id: str) -> Optional[CharacteristicSpec]:
        for spec in self.characteristics:
            if spec.id == spec_id:
                return spec
        return None


class Inspection(BaseModel):
    """Inspection record for one shipment against one plan."""
    id: str = Field(default_factory=lambda: _new_id("INS"))
    shipment_id: str
    plan_id: Optional[str] = None
    inspector_id: Optional[str] = None
    characteristics: List[CharacteristicResult] = Field(default_factory=list)
    overall_result: InspectionResult = InspectionResult.PENDING
    sample_size: Optional[int] = None
    pass_count: int = 0
    fail_count: int = 0
    pending_count: int = 0
    notes: Optional[str] = None
    client_request_id: Optional[str] = None  # Request that began the inspection
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_finalized(self) -> bool:
        return self.overall_result != InspectionResult.PENDING


class Shipment(BaseModel):
    """Incoming shipment of parts awaiting inspection."""
    id: str = Field(default_factory=lambda: _new_id("SHP"))
    part_type_id: Optional[str] = None
    shipment_number: Optional[str] = None
    supplier: Optional[str] = None
    quantity: int = Field(..., ge=0)
    status: ShipmentStatus = ShipmentStatus.PENDING


class QuarantineBatch(BaseModel):
    """Lot held back after a failed inspection, awaiting disposition."""
    id: str = Field(default_factory=lambda: _new_id("QB"))
    shipment_id: Optional[str] = None
    inspection_id: Optional[str] = None
    quarantine_number: Optional[str] = None
    quantity: float = Field(..., ge=0)
    reason: str
    defect_type: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: QuarantineStatus = QuarantineStatus.PENDING
    disposition: Optional[QuarantineStatus] = None
    disposition_notes: Optional[str] = None
    disposition_by: Optional[str] = None
    disposition_date: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class Gage(BaseModel):
    """Measuring instrument tracked for calibration."""
    id: str = Field(default_factory=lambda: _new_id("GAGE"))
    gage_id: str
    name: Optional[str] = None
    calibration_date: Optional[date] = None
    next_calibration_date: Optional[date] = None
    calibration_interval_days: Optional[int] = Field(None, ge=0)
    status: GageStatus = GageStatus.ACTIVE


class PartType(BaseModel):
    """Master record for an inspectable part type."""
    id: str = Field(default_factory=lambda: _new_id("PT"))
    part_number: str
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_by: Optional[str] = None


class WarrantyClaim(BaseModel):
    """Customer warranty claim."""
    id: str = Field(default_factory=lambda: _new_id("WC"))
    claim_number: Optional[str] = None
    part_type_id: Optional[str] = None
    customer_name: Optional[str] = None
    quantity: int = Field(1, ge=1)
    failure_date: Optional[date] = None
    failure_description: str
    failure_mode: Optional[str] = None
    serial_numbers: Optional[str] = None
    status: WarrantyStatus = WarrantyStatus.OPEN
    resolution: Optional[str] = None
    credit_amount: Optional[float] = None
    replacement_shipped: bool = False
    assigned_to: Optional[str] = None
    closed_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class UserActionRecord(BaseModel):
    """User action history record (append-only)."""
    action_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    user_id: str
    action_type: ActionType
    target_table: str
    target_id: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    notes: Optional[str] = None
    trace_id: Optional[str] = None


# ============== Request Models ==============

class MeasurementEntry(BaseModel):
    """One entered value (measurement) or manual selection (other kinds)."""
    spec_id: str
    actual_value: Optional[Union[float, str]] = None
    result: Optional[InspectionResult] = None


class InspectionSubmitRequest(BaseModel):
    """Request payload for starting or continuing an inspection."""
    client_request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    principal: Principal
    shipment_id: str
    plan_id: str
    inspection_id: Optional[str] = None  # Continue an existing inspection
    measurements: List[MeasurementEntry] = Field(default_factory=list)
    notes: Optional[str] = None


class QuarantineCreateRequest(BaseModel):
    """
    Request payload for creating a quarantine batch.

    reason and quantity stay loosely typed here; the workflow validates them
    so that a missing value surfaces as a business ValidationError.
    """
    principal: Principal
    shipment_id: Optional[str] = None
    inspection_id: Optional[str] = None
    quarantine_number: Optional[str] = None
    quantity: Optional[Union[float, str]] = None
    reason: Optional[str] = None
    defect_type: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class QuarantineUpdateRequest(BaseModel):
    """Request payload for moving a quarantine batch to a new status."""
    principal: Principal
    batch_id: str
    status: str  # Checked against QuarantineStatus by the workflow
    disposition_notes: Optional[str] = None


class GageUpsertRequest(BaseModel):
    """Request payload for creating or recalibrating a gage."""
    principal: Principal
    id: Optional[str] = None  # Present for updates
    gage_id: str
    name: Optional[str] = None
    calibration_date: Optional[date] = None
    next_calibration_date: Optional[date] = None
    calibration_interval_days: Optional[int] = None
    status: Optional[GageStatus] = None
    as_of: Optional[date] = None  # Evaluation date, defaults to today

    @field_validator("calibration_interval_days")
    @classmethod
    def validate_interval(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("calibration_interval_days cannot be negative")
        return v


class PartTypeCreateRequest(BaseModel):
    """Request payload for creating a part type under the tier quota."""
    principal: Principal
    part_number: str
    name: str
    description: Optional[str] = None

    @field_validator("part_number", "name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v.strip()


class WarrantyClaimRequest(BaseModel):
    """Request payload for creating a warranty claim."""
    principal: Principal
    part_type_id: Optional[str] = None
    claim_number: Optional[str] = None
    customer_name: Optional[str] = None
    quantity: Optional[Union[int, str]] = None
    failure_date: Optional[date] = None
    failure_description: Optional[str] = None
    failure_mode: Optional[str] = None
    serial_numbers: Optional[str] = None


class WarrantyUpdateRequest(BaseModel):
    """Request payload for updating a warranty claim."""
    principal: Principal
    claim_id: str
    status: str  # Checked against WarrantyStatus by the workflow
    resolution: Optional[str] = None
    credit_amount: Optional[float] = None
    replacement_shipped: Optional[bool] = None
    assigned_to: Optional[str] = None
