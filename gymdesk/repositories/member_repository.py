"""Member Repository - Member records with id generation and duplicate checks."""
import re
from datetime import date, datetime, timezone
from typing import Iterable, List, Mapping, Optional

from loguru import logger

from gymdesk.core.constants import MEMBER_ID_PREFIX
from gymdesk.core.types import StoreResult
from gymdesk.services.store_client import StoreGateway

MEMBERS_TABLE = "members"


def generate_member_id(
    existing_ids: Iterable[Optional[str]],
    year: Optional[int] = None,
    prefix: str = MEMBER_ID_PREFIX,
) -> str:
    """
    Next member id for the year, e.g. FL-2025-007.

    Only ids of the same prefix and year are considered; malformed ones are
    ignored. Numbering restarts at 001 every year.
    """
    year = year or date.today().year
    pattern = re.compile(rf"^{re.escape(prefix)}-{year}-(\d+)$")

    numbers = []
    for member_id in existing_ids:
        if not isinstance(member_id, str):
            continue
        match = pattern.match(member_id)
        if match:
            numbers.append(int(match.group(1)))

    next_number = max(numbers) + 1 if numbers else 1
    return f"{prefix}-{year}-{next_number:03d}"


def find_duplicates(
    members: Iterable[Mapping],
    email: Optional[str],
    username: Optional[str],
    exclude_id: Optional[str] = None,
) -> List[str]:
    """Return the clashing field names ("email", "username"), skipping exclude_id."""
    clashes = []
    others = [m for m in members if exclude_id is None or m.get("id") != exclude_id]

    if email and any(m.get("email") == email for m in others):
        clashes.append("email")
    if username and any(m.get("username") == username for m in others):
        clashes.append("username")
    return clashes


class MemberRepository:
    """Thin wrapper for member persistence."""

    def __init__(self, gateway: StoreGateway, id_prefix: str = MEMBER_ID_PREFIX):
        self._gateway = gateway
        self._id_prefix = id_prefix

    def list_all(self) -> StoreResult:
        return self._gateway.select(MEMBERS_TABLE, order_by="created_at", descending=True)

    def get(self, record_id: str) -> StoreResult:
        return self._gateway.select(MEMBERS_TABLE, filters={"id": record_id}, limit=1)

    def add(self, member: Mapping) -> StoreResult:
        """Insert a member, assigning a member id when it has none."""
        existing = self.list_all()
        if not existing.ok:
            return existing
        rows = existing.data or []

        clashes = find_duplicates(rows, member.get("email"), member.get("username"))
        if clashes:
            logger.warning(f"[MemberRepository] Rejected member, duplicate {', '.join(clashes)}")
            return StoreResult(error=f"Duplicate {', '.join(clashes)}")

        record = dict(member)
        if not record.get("member_id"):
            record["member_id"] = generate_member_id(
                (row.get("member_id") for row in rows), prefix=self._id_prefix
            )

        result = self._gateway.insert(MEMBERS_TABLE, record)
        if result.ok:
            logger.info(f"[MemberRepository] Added member {record['member_id']}")
        return result

    def update(self, record_id: str, changes: Mapping) -> StoreResult:
        if "email" in changes or "username" in changes:
            existing = self.list_all()
            if not existing.ok:
                return existing
            clashes = find_duplicates(
                existing.data or [], changes.get("email"), changes.get("username"), exclude_id=record_id
            )
            if clashes:
                return StoreResult(error=f"Duplicate {', '.join(clashes)}")

        values = dict(changes)
        values["updated_at"] = datetime.now(timezone.utc).isoformat()
        return self._gateway.update(MEMBERS_TABLE, values, {"id": record_id})

    def delete(self, record_id: str) -> StoreResult:
        return self._gateway.delete(MEMBERS_TABLE, {"id": record_id})
