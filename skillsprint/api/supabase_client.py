"""
Backing store client (Supabase REST / PostgREST)
"""

from datetime import date, datetime
from typing import Optional, Dict, Any, List, NamedTuple, Sequence, Tuple, Union
import httpx
from skillsprint.api.base_client import BaseAPIClient
from skillsprint.config.settings import settings
from skillsprint.config.constants import REST_API_PATH, AUTH_API_PATH
from skillsprint.models.session import Session
from skillsprint.utils.logger import logger


class Filter(NamedTuple):
    """Explicit PostgREST operator filter, e.g. Filter("gte", "2024-11-01")"""
    op: str
    value: Any


OrderBy = Sequence[Tuple[str, bool]]  # (column, ascending)
Records = Union[Dict[str, Any], List[Dict[str, Any]]]


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _encode_filter(value: Any) -> str:
    """
    Encode a filter value into PostgREST syntax

    scalar -> eq.value, list/tuple -> in.("a","b"), None -> is.null
    """
    if isinstance(value, Filter):
        if value.value is None:
            return f"{value.op}.null"
        return f"{value.op}.{_encode_value(value.value)}"
    if value is None:
        return "is.null"
    if isinstance(value, (list, tuple, set)):
        items = ",".join(f'"{_encode_value(item)}"' for item in value)
        return f"in.({items})"
    return f"eq.{_encode_value(value)}"


def build_query_params(
    filters: Optional[Dict[str, Any]] = None,
    order: Optional[OrderBy] = None,
    columns: Optional[str] = None,
    limit: Optional[int] = None,
) -> Dict[str, str]:
    """Build PostgREST query parameters"""
    params: Dict[str, str] = {}
    if columns:
        params["select"] = columns
    for column, value in (filters or {}).items():
        params[column] = _encode_filter(value)
    if order:
        params["order"] = ",".join(
            f"{column}.{'asc' if ascending else 'desc'}" for column, ascending in order
        )
    if limit is not None:
        params["limit"] = str(limit)
    return params


class SupabaseClient(BaseAPIClient):
    """Client for the hosted backing store's table and auth endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize backing store client

        Args:
            base_url: Project URL (defaults to SUPABASE_URL)
            api_key: Public API key (defaults to SUPABASE_ANON_KEY)
            access_token: User JWT (defaults to SUPABASE_ACCESS_TOKEN)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(
            base_url or settings.SUPABASE_URL,
            timeout=timeout or settings.REQUEST_TIMEOUT,
            transport=transport,
        )
        self.api_key = api_key or settings.SUPABASE_ANON_KEY
        self.access_token = access_token or settings.SUPABASE_ACCESS_TOKEN
        self.logger = logger

    def _get_headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        """Get request headers with authentication"""
        headers = {
            "apikey": self.api_key,
            "Content-Type": "application/json",
        }
        # Fall back to the anon key when no user token is configured
        headers["Authorization"] = f"Bearer {self.access_token or self.api_key}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @staticmethod
    def _table_endpoint(table: str) -> str:
        return f"{REST_API_PATH}/{table}"

    @staticmethod
    def _as_list(data: Any) -> List[Dict[str, Any]]:
        if data is None:
            return []
        if isinstance(data, list):
            return data
        return [data]

    async def get_session(self) -> Session:
        """
        Retrieve the current authenticated user

        Returns:
            Session for the configured access token

        Raises:
            httpx.HTTPStatusError: If the token is missing or rejected
        """
        data = await self.get(
            endpoint=f"{AUTH_API_PATH}/user",
            headers=self._get_headers(),
        )
        if not data or not data.get("id"):
            raise ValueError("Not authenticated")

        self.logger.info(f"[Supabase] Authenticated as user {data.get('id')}")
        return Session(
            user_id=data["id"],
            email=data.get("email"),
            access_token=self.access_token or "",
        )

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[OrderBy] = None,
        columns: str = "*",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Select records from a table

        Args:
            table: Table name
            filters: Column filters (see _encode_filter)
            order: Ordering as (column, ascending) pairs
            columns: PostgREST select expression, may embed related tables
            limit: Maximum number of rows

        Returns:
            List of records
        """
        data = await self.get(
            endpoint=self._table_endpoint(table),
            headers=self._get_headers(),
            params=build_query_params(filters, order, columns, limit),
        )
        records = self._as_list(data)
        self.logger.debug(f"[Supabase] Selected {len(records)} rows from {table}")
        return records

    async def insert(self, table: str, records: Records) -> List[Dict[str, Any]]:
        """Insert one or more records and return them as stored"""
        data = await self.post(
            endpoint=self._table_endpoint(table),
            headers=self._get_headers(prefer="return=representation"),
            json_data=records,
        )
        return self._as_list(data)

    async def upsert(
        self,
        table: str,
        records: Records,
        on_conflict: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Insert or merge records on their primary key (or on_conflict columns)"""
        params = {"on_conflict": on_conflict} if on_conflict else None
        data = await self.post(
            endpoint=self._table_endpoint(table),
            headers=self._get_headers(prefer="resolution=merge-duplicates,return=representation"),
            params=params,
            json_data=records,
        )
        return self._as_list(data)

    async def update(
        self,
        table: str,
        filters: Dict[str, Any],
        changes: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        """Update records matching filters and return the updated rows"""
        if not filters:
            raise ValueError(f"Refusing to update {table} without filters")
        data = await self.patch(
            endpoint=self._table_endpoint(table),
            headers=self._get_headers(prefer="return=representation"),
            params=build_query_params(filters),
            json_data=changes,
        )
        return self._as_list(data)

    async def delete(
        self,
        table: str,
        filters: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        """Delete records matching filters and return the deleted rows"""
        if not filters:
            raise ValueError(f"Refusing to delete from {table} without filters")
        data = await super().delete(
            endpoint=self._table_endpoint(table),
            headers=self._get_headers(prefer="return=representation"),
            params=build_query_params(filters),
        )
        return self._as_list(data)
