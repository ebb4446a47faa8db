"""
Quality Repository
==================

Storage collaborator for the quality workflow. The engine modules never
touch storage; the HTTP functions load entities, call the engine, and save
what it returns through this contract.

``QualityRepository`` is the contract. ``InMemoryRepository`` is the
process-local implementation used by default and in tests. Writes are
serialized with a lock so that a quota check followed by a create, or a
quarantine transition, cannot interleave with another writer.

Usage:
    >>> repo = get_repository()
    >>> repo.save_shipment(shipment)
    >>> repo.load_shipment(shipment.id)
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .exceptions import NotFoundError, ValidationError
from .models import (
    Gage,
    Inspection,
    InspectionPlan,
    PartType,
    QuarantineBatch,
    QuarantineStatus,
    Shipment,
    UserActionRecord,
    WarrantyClaim,
)

logger = logging.getLogger(__name__)


class QualityRepository(ABC):
    """Persistence contract. Loads raise NotFoundError for unknown ids."""

    @abstractmethod
    def load_shipment(self, shipment_id: str) -> Shipment: ...

    @abstractmethod
    def save_shipment(self, shipment: Shipment) -> Shipment: ...

    @abstractmethod
    def load_inspection_plan(self, plan_id: str) -> InspectionPlan: ...

    @abstractmethod
    def save_inspection_plan(self, plan: InspectionPlan) -> InspectionPlan: ...

    @abstractmethod
    def load_inspection(self, inspection_id: str) -> Inspection: ...

    @abstractmethod
    def save_inspection(self, inspection: Inspection) -> Inspection: ...

    @abstractmethod
    def find_inspection_by_client_request_id(self, client_request_id: str) -> Optional[Inspection]:
        """Inspection begun by the given request, if any."""

    @abstractmethod
    def load_quarantine_batch(self, batch_id: str) -> QuarantineBatch: ...

    @abstractmethod
    def save_quarantine_batch(self, batch: QuarantineBatch) -> QuarantineBatch: ...

    @abstractmethod
    def compare_and_save_quarantine(
        self, batch: QuarantineBatch, expected_status: QuarantineStatus
    ) -> QuarantineBatch:
        """Save only if the stored batch is still in ``expected_status``."""

    @abstractmethod
    def load_gage(self, gage_id: str) -> Gage: ...

    @abstractmethod
    def save_gage(self, gage: Gage) -> Gage: ...

    @abstractmethod
    def load_warranty_claim(self, claim_id: str) -> WarrantyClaim: ...

    @abstractmethod
    def save_warranty_claim(self, claim: WarrantyClaim) -> WarrantyClaim: ...

    @abstractmethod
    def count_part_types(self) -> int: ...

    @abstractmethod
    def save_part_type(self, part_type: PartType) -> PartType: ...

    @abstractmethod
    def count_inspections_in_month(self, year: int, month: int) -> int: ...

    @abstractmethod
    def append_action(self, record: UserActionRecord) -> str: ...

    @property
    @abstractmethod
    def lock(self) -> threading.RLock:
        """Lock the HTTP layer holds across check-then-write sequences."""


class InMemoryRepository(QualityRepository):
    """Process-local repository backed by dicts."""

    def __init__(self):
        self._lock = threading.RLock()
        self.shipments: Dict[str, Shipment] = {}
        self.plans: Dict[str, InspectionPlan] = {}
        self.inspections: Dict[str, Inspection] = {}
        self.quarantine_batches: Dict[str, QuarantineBatch] = {}
        self.gages: Dict[str, Gage] = {}
        self.warranty_claims: Dict[str, WarrantyClaim] = {}
        self.part_types: Dict[str, PartType] = {}
        self.actions: List[UserActionRecord] = []

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def _load(self, store: Dict, entity: str, entity_id: str):
        with self._lock:
            item = store.get(entity_id)
        if item is None:
            raise NotFoundError(entity, entity_id)
        return item

    def _save(self, store: Dict, item):
        with self._lock:
            store[item.id] = item
        return item

    def load_shipment(self, shipment_id: str) -> Shipment:
        return self._load(self.shipments, "Shipment", shipment_id)

    def save_shipment(self, shipment: Shipment) -> Shipment:
        return self._save(self.shipments, shipment)

    def load_inspection_plan(self, plan_id: str) -> InspectionPlan:
        return self._load(self.plans, "Inspection plan", plan_id)

    def save_inspection_plan(self, plan: InspectionPlan) -> InspectionPlan:
        return self._save(self.plans, plan)

    def load_inspection(self, inspection_id: str) -> Inspection:
        return self._load(self.inspections, "Inspection", inspection_id)

    def save_inspection(self, inspection: Inspection) -> Inspection:
        return self._save(self.inspections, inspection)

    def find_inspection_by_client_request_id(self, client_request_id: str) -> Optional[Inspection]:
        with self._lock:
            for inspection in self.inspections.values():
                if inspection.client_request_id == client_request_id:
                    return inspection
        return None

    def load_quarantine_batch(self, batch_id: str) -> QuarantineBatch:
        return self._load(self.quarantine_batches, "Quarantine batch", batch_id)

    def save_quarantine_batch(self, batch: QuarantineBatch) -> QuarantineBatch:
        return self._save(self.quarantine_batches, batch)

    def compare_and_save_quarantine(
        self, batch: QuarantineBatch, expected_status: QuarantineStatus
    ) -> QuarantineBatch:
        with self._lock:
            stored = self.quarantine_batches.get(batch.id)
            if stored is None:
                raise NotFoundError("Quarantine batch", batch.id)
            if stored.status != expected_status:
                logger.warning(
                    f"Quarantine batch {batch.id} changed concurrently: "
                    f"expected {expected_status.value}, found {stored.status.value}"
                )
                raise ValidationError(
                    f"Quarantine batch '{batch.id}' was modified by another request",
                    details={"expected_status": expected_status.value, "current_status": stored.status.value},
                )
            self.quarantine_batches[batch.id] = batch
        return batch

    def load_gage(self, gage_id: str) -> Gage:
        return self._load(self.gages, "Gage", gage_id)

    def save_gage(self, gage: Gage) -> Gage:
        return self._save(self.gages, gage)

    def load_warranty_claim(self, claim_id: str) -> WarrantyClaim:
        return self._load(self.warranty_claims, "Warranty claim", claim_id)

    def save_warranty_claim(self, claim: WarrantyClaim) -> WarrantyClaim:
        return self._save(self.warranty_claims, claim)

    def count_part_types(self) -> int:
        with self._lock:
            return sum(1 for pt in self.part_types.values() if pt.is_active)

    def save_part_type(self, part_type: PartType) -> PartType:
        return self._save(self.part_types, part_type)

    def count_inspections_in_month(self, year: int, month: int) -> int:
        with self._lock:
            return sum(
                1 for ins in self.inspections.values()
                if ins.started_at.year == year and ins.started_at.month == month
            )

    def append_action(self, record: UserActionRecord) -> str:
        with self._lock:
            self.actions.append(record)
        return record.action_id


# Singleton
_repository: Optional[QualityRepository] = None
_repository_lock = threading.Lock()


def get_repository(reset: bool = False) -> QualityRepository:
    """
    Get or create the singleton repository.
    Thread-safe implementation.

    Args:
        reset: If True, creates a new repository instance
    """
    global _repository

    with _repository_lock:
        if reset or _repository is None:
            _repository = InMemoryRepository()
        return _repository


def set_repository(repository: QualityRepository) -> None:
    """Install a repository implementation (e.g. a database-backed one)."""
    global _repository
    with _repository_lock:
        _repository = repository


def reset_repository():
    """Reset the singleton repository."""
    global _repository
    with _repository_lock:
        _repository = None
