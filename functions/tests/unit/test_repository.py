"""
Unit Tests for Storage, Audit, Config and Response Helpers
"""

import json
import threading
import pytest
from datetime import datetime
from unittest.mock import MagicMock

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from qc_core.audit import log_user_action
from qc_core.config import configure_logging, get_settings
from qc_core.exceptions import (
    FeatureNotAvailableError,
    NotFoundError,
    PermissionDeniedError,
    QuotaExceededError,
    ValidationError,
)
from qc_core.models import ActionType, Inspection, PartType, QuarantineStatus
from qc_core.repository import (
    InMemoryRepository,
    get_repository,
    reset_repository,
    set_repository,
)
from qc_core.responses import error_response, error_status


@pytest.mark.unit
class TestInMemoryRepository:
    """Tests for the in-memory repository."""

    def test_save_and_load(self, repo, factory):
        shipment = factory.shipment()
        repo.save_shipment(shipment)
        assert repo.load_shipment(shipment.id) == shipment

    def test_load_missing_raises(self, repo):
        with pytest.raises(NotFoundError) as exc_info:
            repo.load_gage("GAGE-NOPE")
        assert exc_info.value.details == {"entity": "Gage", "id": "GAGE-NOPE"}

    def test_count_part_types_ignores_inactive(self, repo):
        repo.save_part_type(PartType(part_number="A", name="A"))
        repo.save_part_type(PartType(part_number="B", name="B", is_active=False))
        assert repo.count_part_types() == 1

    def test_count_inspections_in_month(self, repo):
        repo.save_inspection(Inspection(shipment_id="S1", started_at=datetime(2026, 3, 1)))
        repo.save_inspection(Inspection(shipment_id="S1", started_at=datetime(2026, 3, 31, 23, 0)))
        repo.save_inspection(Inspection(shipment_id="S1", started_at=datetime(2026, 4, 1)))
        assert repo.count_inspections_in_month(2026, 3) == 2
        assert repo.count_inspections_in_month(2025, 3) == 0

    def test_find_inspection_by_client_request_id(self, repo):
        started = repo.save_inspection(Inspection(shipment_id="S1", client_request_id="req-1"))
        repo.save_inspection(Inspection(shipment_id="S1"))

        assert repo.find_inspection_by_client_request_id("req-1") == started
        assert repo.find_inspection_by_client_request_id("req-2") is None

    def test_compare_and_save_succeeds_when_unchanged(self, repo, factory):
        batch = repo.save_quarantine_batch(factory.batch())
        moved = batch.model_copy(update={"status": QuarantineStatus.UNDER_REVIEW})

        repo.compare_and_save_quarantine(moved, expected_status=QuarantineStatus.PENDING)
        assert repo.load_quarantine_batch(batch.id).status == QuarantineStatus.UNDER_REVIEW

    def test_compare_and_save_detects_concurrent_change(self, repo, factory):
        batch = repo.save_quarantine_batch(factory.batch(status=QuarantineStatus.DISPOSITION))
        released = batch.model_copy(update={"status": QuarantineStatus.RELEASED})
        scrapped = batch.model_copy(update={"status": QuarantineStatus.SCRAPPED})

        repo.compare_and_save_quarantine(released, expected_status=QuarantineStatus.DISPOSITION)
        with pytest.raises(ValidationError):
            repo.compare_and_save_quarantine(scrapped, expected_status=QuarantineStatus.DISPOSITION)
        assert repo.load_quarantine_batch(batch.id).status == QuarantineStatus.RELEASED

    def test_compare_and_save_missing(self, repo, factory):
        with pytest.raises(NotFoundError):
            repo.compare_and_save_quarantine(factory.batch(), expected_status=QuarantineStatus.PENDING)

    def test_concurrent_terminal_transitions_single_winner(self, repo, factory):
        batch = repo.save_quarantine_batch(factory.batch(status=QuarantineStatus.DISPOSITION))
        outcomes = []

        def attempt(target):
            try:
                repo.compare_and_save_quarantine(
                    batch.model_copy(update={"status": target}),
                    expected_status=QuarantineStatus.DISPOSITION,
                )
                outcomes.append(target)
            except ValidationError:
                outcomes.append(None)

        threads = [
            threading.Thread(target=attempt, args=(status,))
            for status in (QuarantineStatus.RELEASED, QuarantineStatus.SCRAPPED, QuarantineStatus.RETURNED)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [o for o in outcomes if o is not None]
        assert len(winners) == 1
        assert repo.load_quarantine_batch(batch.id).status == winners[0]


@pytest.mark.unit
class TestRepositorySingleton:
    """Tests for the repository getter."""

    def test_singleton(self):
        reset_repository()
        try:
            assert get_repository() is get_repository()
            assert isinstance(get_repository(), InMemoryRepository)
        finally:
            reset_repository()

    def test_set_repository(self):
        custom = InMemoryRepository()
        set_repository(custom)
        try:
            assert get_repository() is custom
        finally:
            reset_repository()


@pytest.mark.unit
class TestAudit:
    """Tests for the user action trail."""

    def test_action_recorded(self, repo):
        action_id = log_user_action(
            repo=repo,
            user_id="u-1",
            action_type=ActionType.QUARANTINE_TRANSITIONED,
            target_table="quarantine_batches",
            target_id="QB-1",
            old_value="pending",
            new_value={"status": "under-review"},
            trace_id="trace-abc",
        )

        assert action_id == repo.actions[0].action_id
        record = repo.actions[0]
        assert record.old_value == "pending"
        assert json.loads(record.new_value) == {"status": "under-review"}
        assert record.notes == "Trace: trace-abc"
        assert record.trace_id == "trace-abc"

    def test_failure_does_not_raise(self):
        broken = MagicMock()
        broken.append_action.side_effect = RuntimeError("disk full")

        result = log_user_action(
            repo=broken,
            user_id="u-1",
            action_type=ActionType.OPERATION_FAILED,
            target_table="gages",
            target_id="G-1",
        )
        assert result is None


@pytest.mark.unit
class TestConfig:
    """Tests for environment-driven settings."""

    def test_defaults(self, setup_test_environment):
        for key in list(setup_test_environment):
            if key.startswith("QC_"):
                del setup_test_environment[key]
        settings = get_settings()

        assert settings.log_level == "INFO"
        assert settings.default_sample_size == 5
        assert settings.default_calibration_interval_days == 365
        assert settings.auto_quarantine_on_fail is True

    def test_environment_overrides(self, setup_test_environment):
        setup_test_environment["QC_LOG_LEVEL"] = "debug"
        setup_test_environment["QC_DEFAULT_SAMPLE_SIZE"] = "8"
        setup_test_environment["QC_DEFAULT_CALIBRATION_INTERVAL_DAYS"] = "180"
        setup_test_environment["QC_AUTO_QUARANTINE_ON_FAIL"] = "false"
        settings = get_settings()

        assert settings.log_level == "DEBUG"
        assert settings.default_sample_size == 8
        assert settings.default_calibration_interval_days == 180
        assert settings.auto_quarantine_on_fail is False

    def test_malformed_number_falls_back(self, setup_test_environment):
        setup_test_environment["QC_DEFAULT_SAMPLE_SIZE"] = "lots"
        assert get_settings().default_sample_size == 5

    def test_configure_logging(self, setup_test_environment):
        import logging
        setup_test_environment["QC_LOG_LEVEL"] = "WARNING"
        root = logging.getLogger()
        original = root.level
        try:
            configure_logging()
            assert root.level == logging.WARNING
        finally:
            root.setLevel(original)

    def test_function_import_applies_log_level(self, setup_test_environment):
        import importlib
        import logging
        import fn_warranty_claim
        from qc_core.config import reset_settings
        setup_test_environment["QC_LOG_LEVEL"] = "ERROR"
        reset_settings()
        root = logging.getLogger()
        original = root.level
        try:
            importlib.reload(fn_warranty_claim)
            assert root.level == logging.ERROR
        finally:
            root.setLevel(original)


@pytest.mark.unit
class TestErrorMapping:
    """Tests for engine error to HTTP status mapping."""

    @pytest.mark.parametrize("error,expected", [
        (ValidationError("bad"), (422, "BLOCKED")),
        (NotFoundError("Shipment", "S1"), (404, "NOT_FOUND")),
        (QuotaExceededError("full", tier="free", limit=5, current_count=5), (403, "QUOTA_EXCEEDED")),
        (FeatureNotAvailableError("warranty", "basic", "professional"), (403, "QUOTA_EXCEEDED")),
        (PermissionDeniedError("inspector", ["admin"]), (403, "FORBIDDEN")),
    ])
    def test_error_status(self, error, expected):
        assert error_status(error) == expected

    def test_error_response_body(self):
        response = error_response(NotFoundError("Shipment", "S1"), "trace-123")
        body = json.loads(response.get_body())

        assert response.status_code == 404
        assert body["status"] == "NOT_FOUND"
        assert body["trace_id"] == "trace-123"
        assert body["details"]["id"] == "S1"
