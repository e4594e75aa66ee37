"""Table diagnostics - which dashboard tables answer a bounded read."""
from typing import Dict, Iterable

from loguru import logger

from gymdesk.core.constants import EMPTY_RESOURCE_CODE
from gymdesk.core.types import StoreResult
from gymdesk.services.store_client import StoreGateway

DASHBOARD_TABLES = (
    "app_settings",
    "members",
    "payments",
    "attendance_records",
    "subscription_plans",
    "registration_questions",
    "member_applications",
)


class TableDiagnostics:
    """Runs one `select id ... limit 1` per table. Schema is not validated."""

    def __init__(self, gateway: StoreGateway):
        self._gateway = gateway

    def check(self, tables: Iterable[str] = DASHBOARD_TABLES) -> Dict[str, StoreResult]:
        results = {}
        for table in tables:
            result = self._gateway.select(table, "id", limit=1)
            if not result.ok and result.code == EMPTY_RESOURCE_CODE:
                result = StoreResult(data=[])
            if not result.ok:
                logger.warning(f"[TableDiagnostics] {table}: {result.error}")
            results[table] = result
        return results

    def available(self, tables: Iterable[str] = DASHBOARD_TABLES) -> Dict[str, bool]:
        return {table: result.ok for table, result in self.check(tables).items()}
