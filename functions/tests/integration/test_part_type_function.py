"""
Integration Tests for the Part Type Create Function (quota enforcement)
"""

import pytest
from concurrent.futures import ThreadPoolExecutor

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from qc_core import ActionType, PartType
from tests.conftest import MockHttpRequest, response_json


def _body(factory, part_number="PN-1001", tier="free", role="admin"):
    return {
        "principal": factory.principal_json(user_id="adm-1", role=role, tier=tier),
        "part_number": part_number,
        "name": "Bracket",
    }


@pytest.mark.integration
class TestPartTypeCreate:
    """Tests for quota-checked creation."""

    def test_create(self, patched_repo, factory, mock_http_request):
        from fn_part_type_create import main
        response = main(mock_http_request(_body(factory)))

        assert response.status_code == 201
        body = response_json(response)
        assert body["status"] == "OK"
        assert body["part_type"]["part_number"] == "PN-1001"
        assert patched_repo.count_part_types() == 1
        assert patched_repo.actions[-1].action_type == ActionType.PART_TYPE_CREATED

    def test_free_tier_limit(self, patched_repo, factory, mock_http_request):
        for i in range(5):
            patched_repo.save_part_type(PartType(part_number=f"PN-{i}", name="Existing"))

        from fn_part_type_create import main
        response = main(mock_http_request(_body(factory)))

        assert response.status_code == 403
        body = response_json(response)
        assert body["status"] == "QUOTA_EXCEEDED"
        assert body["details"]["tier"] == "free"
        assert body["details"]["limit"] == 5
        assert body["details"]["current_count"] == 5
        assert body["details"]["upgrade_required"] is True
        assert patched_repo.count_part_types() == 5

    def test_enterprise_unlimited(self, patched_repo, factory, mock_http_request):
        for i in range(200):
            patched_repo.save_part_type(PartType(part_number=f"PN-{i}", name="Existing"))

        from fn_part_type_create import main
        response = main(mock_http_request(_body(factory, tier="enterprise")))
        assert response.status_code == 201

    def test_engineer_forbidden(self, patched_repo, factory, mock_http_request):
        from fn_part_type_create import main
        response = main(mock_http_request(_body(factory, role="engineer")))

        assert response.status_code == 403
        assert response_json(response)["status"] == "FORBIDDEN"

    def test_unknown_tier_rejected_at_parse(self, patched_repo, factory, mock_http_request):
        from fn_part_type_create import main
        response = main(mock_http_request(_body(factory, tier="gold")))
        assert response.status_code == 400

    def test_blank_name(self, patched_repo, factory, mock_http_request):
        body = _body(factory)
        body["name"] = " "

        from fn_part_type_create import main
        assert main(mock_http_request(body)).status_code == 400

    def test_concurrent_creates_respect_limit(self, patched_repo, factory):
        for i in range(4):
            patched_repo.save_part_type(PartType(part_number=f"PN-{i}", name="Existing"))

        from fn_part_type_create import main
        requests = [MockHttpRequest(_body(factory, part_number=f"NEW-{i}")) for i in range(8)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            responses = list(pool.map(main, requests))

        codes = sorted(r.status_code for r in responses)
        assert codes.count(201) == 1
        assert codes.count(403) == 7
        assert patched_repo.count_part_types() == 5
