"""
Application Repository - Customer self-registration applications.

An application is submitted as `pending` and reviewed once: approving creates
the member record (with a generated member id) and marks the application
`approved`, rejecting only marks it `rejected`.
"""
import re
from datetime import date, datetime, timedelta, timezone
from typing import Mapping, Optional

from loguru import logger

from gymdesk.core.types import StoreResult
from gymdesk.repositories.member_repository import MemberRepository
from gymdesk.services.store_client import StoreGateway

APPLICATIONS_TABLE = "member_applications"

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

QID_LENGTH = 11
INITIAL_SUBSCRIPTION_DAYS = 30

# Registration form fields -> members columns
_FORM_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "qid": "qid",
    "age": "age",
    "emergencyContact": "emergency_contact",
    "emergency_contact": "emergency_contact",
    "subscriptionPlan": "subscription_plan",
    "subscription_plan": "subscription_plan",
    "medicalNotes": "medical_notes",
    "medical_notes": "medical_notes",
}


def clean_qid(qid: Optional[str]) -> str:
    return re.sub(r"\D", "", str(qid or ""))


def is_valid_qid(qid: Optional[str]) -> bool:
    """A Qatar ID is exactly 11 digits once separators are stripped."""
    return len(clean_qid(qid)) == QID_LENGTH


def member_from_application(application: Mapping, today: Optional[date] = None) -> dict:
    """Member record for an approved application (member id assigned on insert)."""
    today = today or date.today()
    form = application.get("form_data") or {}

    member = {column: form[field] for field, column in _FORM_FIELDS.items() if form.get(field) is not None}
    if "qid" in member:
        member["qid"] = clean_qid(member["qid"])
    member["username"] = form.get("username") or member.get("email")
    member.update(
        join_date=today.isoformat(),
        subscription_status="active",
        subscription_end=(today + timedelta(days=INITIAL_SUBSCRIPTION_DAYS)).isoformat(),
        total_sessions=0,
        application_id=application.get("id"),
    )
    return member


def _refuse_review(application: Mapping) -> Optional[StoreResult]:
    if not application.get("id"):
        return StoreResult(error="Application has no id")
    if application.get("status") != STATUS_PENDING:
        return StoreResult(error=f"Application already {application.get('status')}")
    return None


class ApplicationRepository:
    """Submission and review of member applications."""

    def __init__(self, gateway: StoreGateway, members: MemberRepository):
        self._gateway = gateway
        self._members = members

    def list_all(self, status: Optional[str] = None) -> StoreResult:
        """Applications, newest first, optionally only one status."""
        filters = {"status": status} if status else None
        return self._gateway.select(APPLICATIONS_TABLE, filters=filters, order_by="submitted_at", descending=True)

    def get(self, application_id: str) -> StoreResult:
        return self._gateway.select(APPLICATIONS_TABLE, filters={"id": application_id}, limit=1)

    def submit(self, form_data: Mapping) -> StoreResult:
        if not is_valid_qid(form_data.get("qid")):
            return StoreResult(error=f"Qatar ID must be exactly {QID_LENGTH} digits")

        result = self._gateway.insert(
            APPLICATIONS_TABLE,
            {
                "form_data": dict(form_data),
                "status": STATUS_PENDING,
                "submitted_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        if result.ok:
            logger.info("[ApplicationRepository] Application submitted")
        else:
            logger.warning(f"[ApplicationRepository] Failed to submit application: {result.error}")
        return result

    def approve(self, application: Mapping, reviewed_by: Optional[str] = None, admin_notes: str = "") -> StoreResult:
        """
        Create the member, then mark the application approved.

        Returns:
            The member insert result, or the first failure. When the member is
            created but the review cannot be recorded, the application stays
            pending and the update failure is returned.
        """
        refused = _refuse_review(application)
        if refused:
            return refused

        created = self._members.add(member_from_application(application))
        if not created.ok:
            return created

        reviewed = self._review(application, STATUS_APPROVED, reviewed_by, admin_notes)
        if not reviewed.ok:
            logger.error(
                f"[ApplicationRepository] Member created but application {application.get('id')} "
                f"not marked approved: {reviewed.error}"
            )
            return reviewed
        return created

    def reject(self, application: Mapping, reviewed_by: Optional[str] = None, admin_notes: str = "") -> StoreResult:
        refused = _refuse_review(application)
        if refused:
            return refused
        return self._review(application, STATUS_REJECTED, reviewed_by, admin_notes)

    def _review(self, application: Mapping, status: str, reviewed_by: Optional[str], admin_notes: str) -> StoreResult:
        result = self._gateway.update(
            APPLICATIONS_TABLE,
            {
                "status": status,
                "reviewed_at": datetime.now(timezone.utc).isoformat(),
                "reviewed_by": reviewed_by,
                "admin_notes": admin_notes,
            },
            {"id": application.get("id")},
        )
        if result.ok:
            logger.info(f"[ApplicationRepository] Application {application.get('id')} {status}")
        return result
