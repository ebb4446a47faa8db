"""
Pytest Configuration and Fixtures for Quality Workflow Tests

This file provides:
- In-memory repository for each test
- Test data factories for plans, shipments, batches, gages and principals
- HTTP request mocking for Azure Functions
- Helpers for decoding function responses
"""

import pytest
import json
import uuid
from datetime import date
from typing import Dict, Any, List, Optional
from unittest.mock import patch

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qc_core import (
    CharacteristicKind,
    CharacteristicSpec,
    InspectionPlan,
    Shipment,
    QuarantineBatch,
    QuarantineStatus,
    Gage,
    WarrantyClaim,
    Principal,
    Role,
    Tier,
    InMemoryRepository,
    Settings,
)


# ============== Custom Pytest Markers ==============

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual modules")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")


# ============== Test Data Factory ==============

class TestDataFactory:
    """Factory for creating test data."""

    @staticmethod
    def principal(
        user_id: str = "user-1",
        role: Role = Role.ENGINEER,
        tier: Tier = Tier.PROFESSIONAL,
    ) -> Principal:
        return Principal(user_id=user_id, role=role, tier=tier)

    @staticmethod
    def principal_json(
        user_id: str = "user-1",
        role: str = "engineer",
        tier: str = "professional",
    ) -> Dict[str, str]:
        return {"user_id": user_id, "role": role, "tier": tier}

    @staticmethod
    def measurement_spec(
        spec_id: str = "CH-1",
        name: str = "Bore diameter",
        nominal: Optional[float] = 10.5,
        upper_tolerance: Optional[float] = 0.05,
        lower_tolerance: Optional[float] = 0.05,
        **kwargs
    ) -> CharacteristicSpec:
        return CharacteristicSpec(
            id=spec_id,
            name=name,
            kind=CharacteristicKind.MEASUREMENT,
            unit="mm",
            nominal=nominal,
            upper_tolerance=upper_tolerance,
            lower_tolerance=lower_tolerance,
            **kwargs
        )

    @staticmethod
    def visual_spec(spec_id: str = "CH-2", name: str = "Surface finish") -> CharacteristicSpec:
        return CharacteristicSpec(id=spec_id, name=name, kind=CharacteristicKind.VISUAL)

    @classmethod
    def plan(
        cls,
        plan_id: str = None,
        characteristics: List[CharacteristicSpec] = None,
        sample_size: int = 5,
        is_active: bool = True,
    ) -> InspectionPlan:
        if characteristics is None:
            characteristics = [cls.measurement_spec(), cls.visual_spec()]
        return InspectionPlan(
            id=plan_id or f"PLAN-{uuid.uuid4().hex[:8].upper()}",
            name="Incoming bracket check",
            sample_size=sample_size,
            characteristics=characteristics,
            is_active=is_active,
        )

    @staticmethod
    def shipment(shipment_id: str = None, quantity: int = 50, **kwargs) -> Shipment:
        return Shipment(
            id=shipment_id or f"SHP-{uuid.uuid4().hex[:8].upper()}",
            shipment_number="SN-1001",
            supplier="Acme Castings",
            quantity=quantity,
            **kwargs
        )

    @staticmethod
    def batch(
        status: QuarantineStatus = QuarantineStatus.PENDING,
        quantity: float = 50,
        reason: str = "bent pins",
    ) -> QuarantineBatch:
        return QuarantineBatch(quantity=quantity, reason=reason, status=status)

    @staticmethod
    def gage(
        gage_id: str = "CAL-042",
        calibration_date: Optional[date] = date(2026, 1, 1),
        calibration_interval_days: Optional[int] = 90,
        next_calibration_date: Optional[date] = None,
    ) -> Gage:
        return Gage(
            gage_id=gage_id,
            name="Outside micrometer",
            calibration_date=calibration_date,
            calibration_interval_days=calibration_interval_days,
            next_calibration_date=next_calibration_date,
        )

    @staticmethod
    def warranty_claim(**kwargs) -> WarrantyClaim:
        data = {"failure_description": "Cracked housing", "quantity": 1}
        data.update(kwargs)
        return WarrantyClaim(**data)


# ============== Mock HTTP Request ==============

class MockHttpRequest:
    """Mock Azure Functions HttpRequest."""

    def __init__(self, body: Any = None, raw: bytes = None):
        self._body = raw if raw is not None else json.dumps(body or {}).encode()

    def get_json(self) -> Dict:
        return json.loads(self._body)

    def get_body(self) -> bytes:
        return self._body


def response_json(response) -> Dict[str, Any]:
    """Decode a function response body."""
    return json.loads(response.get_body())


# ============== Fixtures ==============

@pytest.fixture
def repo():
    """Fresh in-memory repository for each test."""
    return InMemoryRepository()

@pytest.fixture
def factory():
    """Get test data factory."""
    return TestDataFactory()

@pytest.fixture
def mock_http_request():
    """Factory for creating mock HTTP requests."""
    def _create(body: Any) -> MockHttpRequest:
        return MockHttpRequest(body)
    return _create

@pytest.fixture
def default_settings():
    """Settings with defaults, independent of the environment."""
    return Settings()

@pytest.fixture
def setup_test_environment():
    """Set up environment variables for testing."""
    from qc_core import reset_settings
    original_env = os.environ.copy()
    reset_settings()
    yield os.environ
    os.environ.clear()
    os.environ.update(original_env)
    reset_settings()

@pytest.fixture
def patched_repo(repo, default_settings):
    """
    Patch the repository and settings getters of every function package.

    Yields the in-memory repository the functions will use.
    """
    targets = [
        "fn_inspection_submit",
        "fn_quarantine_create",
        "fn_quarantine_update",
        "fn_gage_upsert",
        "fn_part_type_create",
        "fn_warranty_claim",
        "fn_warranty_update",
    ]
    patchers = []
    for name in targets:
        __import__(name)
        patchers.append(patch(f"{name}.get_repository", return_value=repo))
        if hasattr(sys.modules[name], "get_settings"):
            patchers.append(patch(f"{name}.get_settings", return_value=default_settings))
    for p in patchers:
        p.start()
    yield repo
    for p in reversed(patchers):
        p.stop()
