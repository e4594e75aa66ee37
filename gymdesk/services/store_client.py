"""
Store client construction and the uniform data gateway.

The gateway is the only path from the rest of the application to the store:
every call returns a StoreResult, and without a client every call fails fast
with the offline result instead of hanging or raising.
"""

from typing import Any, Callable, Mapping, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from gymdesk.core.constants import OFFLINE_ERROR, STORE_TIMEOUT
from gymdesk.core.logger import logger
from gymdesk.core.types import StoreResult
from gymdesk.core.validators import ConfigurationError, validate_store_config


def create_store_client(url: str, key: str) -> Optional[Client]:
    """
    Build a Supabase client for the given endpoint.

    Returns:
        The client, or None when the configuration is missing/malformed or the
        client library rejects it. Never raises.
    """
    try:
        validate_store_config(url, key)
    except ConfigurationError as e:
        logger.warning(f"[StoreClient] {e}, running in offline mode")
        return None

    try:
        client = create_client(
            url.strip(),
            key.strip(),
            options=ClientOptions(
                auto_refresh_token=False,
                persist_session=False,
                postgrest_client_timeout=STORE_TIMEOUT,
            ),
        )
    except Exception as e:
        logger.error(f"[StoreClient] Failed to initialize store client: {e}")
        return None

    logger.info(f"[StoreClient] Store client created for {url.strip()}")
    return client


class StoreGateway:
    """Thin select/insert/update/upsert/delete wrapper with one failure shape."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Optional[Client]:
        return self._client

    @property
    def is_online(self) -> bool:
        return self._client is not None

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> StoreResult:
        def build(query):
            query = self._apply_filters(query.select(columns), filters)
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit is not None:
                query = query.limit(limit)
            return query

        return self._execute(table, build)

    def insert(self, table: str, rows) -> StoreResult:
        return self._execute(table, lambda query: query.insert(rows))

    def upsert(self, table: str, rows) -> StoreResult:
        return self._execute(table, lambda query: query.upsert(rows))

    def update(self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]) -> StoreResult:
        if not filters:
            return StoreResult(error=f"Refusing unfiltered update on '{table}'")
        return self._execute(table, lambda query: self._apply_filters(query.update(dict(values)), filters))

    def delete(self, table: str, filters: Mapping[str, Any]) -> StoreResult:
        if not filters:
            return StoreResult(error=f"Refusing unfiltered delete on '{table}'")
        return self._execute(table, lambda query: self._apply_filters(query.delete(), filters))

    @staticmethod
    def _apply_filters(query, filters: Optional[Mapping[str, Any]]):
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        return query

    def _execute(self, table: str, build: Callable) -> StoreResult:
        if self._client is None:
            return StoreResult(error=OFFLINE_ERROR)

        try:
            response = build(self._client.table(table)).execute()
        except APIError as e:
            message = e.message or str(e)
            logger.debug(f"[StoreGateway] {table}: API error {e.code}: {message}")
            return StoreResult(error=message, code=e.code)
        except (httpx.HTTPError, OSError) as e:
            message = str(e) or type(e).__name__
            logger.debug(f"[StoreGateway] {table}: transport error: {message}")
            return StoreResult(error=message)

        return StoreResult(data=response.data)
