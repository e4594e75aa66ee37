"""Unit tests for member applications (self-registration and review)."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from gymdesk.core.types import StoreResult
from gymdesk.repositories.application_repository import (
    APPLICATIONS_TABLE,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    ApplicationRepository,
    is_valid_qid,
    member_from_application,
)
from gymdesk.repositories.member_repository import MEMBERS_TABLE, MemberRepository
from gymdesk.services.store_client import StoreGateway

YEAR = date.today().year

FORM = {
    "name": "Sara",
    "email": "sara@x.test",
    "phone": "+974 5555 0101",
    "qid": "284-1234-5678",
    "age": 29,
    "emergencyContact": "Mona +974 5555 0102",
    "subscriptionPlan": "Monthly",
}


def _application(status=STATUS_PENDING, **overrides):
    application = {"id": "app-1", "form_data": dict(FORM), "status": status}
    application.update(overrides)
    return application


class TestQid:
    @pytest.mark.parametrize("qid", ["28412345678", "284-1234-5678", " 284 1234 5678 "])
    def test_valid(self, qid):
        assert is_valid_qid(qid) is True

    @pytest.mark.parametrize("qid", ["", None, "1234567890", "123456789012", "abc"])
    def test_invalid(self, qid):
        assert is_valid_qid(qid) is False


class TestMemberFromApplication:
    def test_maps_form_to_member_columns(self):
        member = member_from_application(_application(), today=date(2025, 3, 1))

        assert member["name"] == "Sara"
        assert member["emergency_contact"] == "Mona +974 5555 0102"
        assert member["subscription_plan"] == "Monthly"
        assert member["qid"] == "28412345678"
        assert member["username"] == "sara@x.test"
        assert member["join_date"] == "2025-03-01"
        assert member["subscription_end"] == "2025-03-31"
        assert member["subscription_status"] == "active"
        assert member["total_sessions"] == 0
        assert member["application_id"] == "app-1"
        assert "member_id" not in member


class TestApplicationRepository:
    @pytest.fixture
    def gateway(self):
        gateway = MagicMock(spec=StoreGateway)
        gateway.select.return_value = StoreResult(data=[{"id": "m1", "member_id": f"FL-{YEAR}-002"}])
        gateway.insert.side_effect = lambda table, record: StoreResult(data=[record])
        gateway.update.return_value = StoreResult(data=[])
        return gateway

    @pytest.fixture
    def repository(self, gateway):
        return ApplicationRepository(gateway, MemberRepository(gateway))

    def test_submit_stores_pending_application(self, repository, gateway):
        result = repository.submit(FORM)

        assert result.ok
        table, record = gateway.insert.call_args.args
        assert table == APPLICATIONS_TABLE
        assert record["status"] == STATUS_PENDING
        assert record["form_data"] == FORM
        assert "submitted_at" in record

    def test_submit_rejects_bad_qid(self, repository, gateway):
        result = repository.submit(dict(FORM, qid="12345"))

        assert result.ok is False
        assert result.error == "Qatar ID must be exactly 11 digits"
        gateway.insert.assert_not_called()

    def test_submit_offline(self):
        members = MemberRepository(StoreGateway(None))
        result = ApplicationRepository(StoreGateway(None), members).submit(FORM)
        assert result.ok is False

    def test_list_pending_newest_first(self, repository, gateway):
        repository.list_all(STATUS_PENDING)

        gateway.select.assert_called_once_with(
            APPLICATIONS_TABLE, filters={"status": STATUS_PENDING}, order_by="submitted_at", descending=True
        )

    def test_approve_creates_member_then_marks_approved(self, repository, gateway):
        result = repository.approve(_application(), reviewed_by="Admin", admin_notes="Welcome")

        assert result.ok
        member_table, member = gateway.insert.call_args.args
        assert member_table == MEMBERS_TABLE
        assert member["member_id"] == f"FL-{YEAR}-003"
        assert member["application_id"] == "app-1"

        table, values, filters = gateway.update.call_args.args
        assert table == APPLICATIONS_TABLE
        assert values["status"] == STATUS_APPROVED
        assert values["reviewed_by"] == "Admin"
        assert values["admin_notes"] == "Welcome"
        assert "reviewed_at" in values
        assert filters == {"id": "app-1"}

    def test_approve_stops_when_member_is_duplicate(self, repository, gateway):
        gateway.select.return_value = StoreResult(data=[{"id": "m1", "email": "sara@x.test"}])

        result = repository.approve(_application())

        assert result.error == "Duplicate email"
        gateway.update.assert_not_called()

    def test_approve_reports_failed_review_update(self, repository, gateway):
        gateway.update.return_value = StoreResult(error="permission denied")

        result = repository.approve(_application())

        assert result.error == "permission denied"
        gateway.insert.assert_called_once()

    @pytest.mark.parametrize("status", [STATUS_APPROVED, STATUS_REJECTED])
    def test_already_reviewed_applications_are_refused(self, repository, gateway, status):
        assert repository.approve(_application(status)).ok is False
        assert repository.reject(_application(status)).ok is False
        gateway.insert.assert_not_called()
        gateway.update.assert_not_called()

    def test_application_without_id_is_refused(self, repository, gateway):
        assert repository.reject(_application(id=None)).error == "Application has no id"
        gateway.update.assert_not_called()

    def test_reject(self, repository, gateway):
        result = repository.reject(_application(), reviewed_by="Staff", admin_notes="Incomplete")

        assert result.ok
        values = gateway.update.call_args.args[1]
        assert values["status"] == STATUS_REJECTED
        assert values["admin_notes"] == "Incomplete"
        gateway.insert.assert_not_called()
