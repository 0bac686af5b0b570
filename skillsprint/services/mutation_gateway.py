"""
Mutation gateway: the single path by which records reach the backing store
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, Dict, Any, List, Union
import httpx
from pydantic import BaseModel
from skillsprint.api.supabase_client import SupabaseClient, OrderBy
from skillsprint.models.session import Session
from skillsprint.utils.date_utils import format_date
from skillsprint.utils.error_handler import (
    SkillSprintError,
    ValidationError,
    NotFoundError,
    PersistenceError,
)
from skillsprint.utils.logger import logger


class _Unset:
    """Marker for 'field not provided' in plain-dict partial updates"""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

TABLE_NOUNS = {
    "projects": "project",
    "tasks": "task",
    "categories": "category",
    "skills": "skill",
    "task_skills": "task skill",
    "career_goals": "career goal",
    "review_cadence": "review cadence",
    "review_sessions": "review session",
}

# PostgreSQL SQLSTATE classes that mean "bad input" rather than "store failed"
_VALIDATION_SQLSTATE_PREFIXES = ("22", "23")

Changes = Union[BaseModel, Dict[str, Any]]


def _noun(table: str) -> str:
    return TABLE_NOUNS.get(table, table)


def _to_json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, Enum):
        return value.value
    return value


def normalize_changes(changes: Changes) -> Dict[str, Any]:
    """
    Normalize a partial update into a JSON-ready dict

    Pydantic models contribute only explicitly set fields. Plain dicts drop
    keys whose value is UNSET; an explicit None is kept (it clears the column).
    """
    if isinstance(changes, BaseModel):
        return changes.model_dump(mode="json", exclude_unset=True)
    return {
        key: _to_json_value(value)
        for key, value in changes.items()
        if value is not UNSET
    }


def translate_error(
    error: Exception,
    operation: str,
    entity: Optional[str] = None,
) -> SkillSprintError:
    """
    Translate a backing store failure into the application's error kinds

    Args:
        error: Exception raised by the client
        operation: Operation being performed, e.g. "update task"
        entity: Affected record name or ID

    Returns:
        ValidationError, NotFoundError or PersistenceError
    """
    if isinstance(error, SkillSprintError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        body: Dict[str, Any] = {}
        try:
            parsed = error.response.json()
            if isinstance(parsed, dict):
                body = parsed
        except ValueError:
            body = {}
        message = body.get("message") or f"backing store answered {status_code}"
        code = str(body.get("code") or "")

        if status_code == 404:
            return NotFoundError(message, operation=operation, entity=entity)
        if status_code in (400, 409, 422) and code.startswith(_VALIDATION_SQLSTATE_PREFIXES):
            return ValidationError(message, operation=operation, entity=entity)
        return PersistenceError(message, operation=operation, entity=entity, status_code=status_code)

    if isinstance(error, httpx.RequestError):
        return PersistenceError(
            f"backing store unreachable ({error.__class__.__name__})",
            operation=operation,
            entity=entity,
        )

    if isinstance(error, ValueError):
        return ValidationError(str(error), operation=operation, entity=entity)

    return PersistenceError(str(error) or error.__class__.__name__, operation=operation, entity=entity)


class MutationGateway:
    """Single entry point for create/update/delete against the backing store"""

    def __init__(self, client: SupabaseClient, session: Session):
        """
        Initialize mutation gateway

        Args:
            client: Backing store client
            session: Authenticated session used to stamp record ownership
        """
        self.client = client
        self.session = session
        self.logger = logger

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[OrderBy] = None,
        columns: str = "*",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Read records, translating failures like any other operation"""
        try:
            return await self.client.select(table, filters=filters, order=order, columns=columns, limit=limit)
        except Exception as e:
            raise translate_error(e, f"load {_noun(table)}s") from e

    async def create(
        self,
        table: str,
        record: Changes,
        entity: Optional[str] = None,
        stamp_owner: bool = True,
    ) -> Dict[str, Any]:
        """
        Insert a record

        Args:
            table: Table name
            record: Record fields
            entity: Display name for error messages
            stamp_owner: Add user_id from the session

        Returns:
            Stored record
        """
        operation = f"create {_noun(table)}"
        data = normalize_changes(record)
        if stamp_owner:
            data["user_id"] = self.session.user_id

        try:
            rows = await self.client.insert(table, data)
        except Exception as e:
            raise translate_error(e, operation, entity) from e

        if not rows:
            raise PersistenceError("no record returned", operation=operation, entity=entity)

        self.logger.info(f"[Gateway] Created {_noun(table)} {rows[0].get('id', '')}")
        return rows[0]

    async def insert_many(
        self,
        table: str,
        records: List[Changes],
        stamp_owner: bool = True,
    ) -> List[Dict[str, Any]]:
        """Insert several records in one request"""
        operation = f"create {_noun(table)}s"
        data = [normalize_changes(record) for record in records]
        if not data:
            return []
        if stamp_owner:
            for item in data:
                item["user_id"] = self.session.user_id

        try:
            rows = await self.client.insert(table, data)
        except Exception as e:
            raise translate_error(e, operation) from e

        self.logger.info(f"[Gateway] Created {len(rows)} {_noun(table)}s")
        return rows

    async def upsert(
        self,
        table: str,
        record: Changes,
        on_conflict: Optional[str] = None,
        entity: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Insert or merge a record owned by the current user"""
        operation = f"save {_noun(table)}"
        data = normalize_changes(record)
        data["user_id"] = self.session.user_id

        try:
            rows = await self.client.upsert(table, data, on_conflict=on_conflict)
        except Exception as e:
            raise translate_error(e, operation, entity) from e

        if not rows:
            raise PersistenceError("no record returned", operation=operation, entity=entity)
        return rows[0]

    async def update(
        self,
        table: str,
        record_id: str,
        changes: Changes,
        entity: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Apply a partial update to one record in a single request

        Args:
            table: Table name
            record_id: Record ID
            changes: Fields to change
            entity: Display name for error messages

        Returns:
            Updated record

        Raises:
            ValidationError: If there is nothing to update
            NotFoundError: If no record has this ID
            PersistenceError: If the write fails
        """
        operation = f"update {_noun(table)}"
        entity = entity or record_id
        data = normalize_changes(changes)
        if not data:
            raise ValidationError("No fields to update", operation=operation, entity=entity)

        try:
            rows = await self.client.update(table, {"id": record_id}, data)
        except Exception as e:
            raise translate_error(e, operation, entity) from e

        if not rows:
            raise NotFoundError(f"{_noun(table).capitalize()} {record_id} not found", operation=operation, entity=entity)

        self.logger.debug(f"[Gateway] Updated {_noun(table)} {record_id}: {sorted(data)}")
        return rows[0]

    async def update_where(
        self,
        table: str,
        filters: Dict[str, Any],
        changes: Changes,
    ) -> List[Dict[str, Any]]:
        """Apply the same partial update to every record matching filters"""
        operation = f"update {_noun(table)}s"
        data = normalize_changes(changes)
        if not data:
            raise ValidationError("No fields to update", operation=operation)

        try:
            rows = await self.client.update(table, filters, data)
        except Exception as e:
            raise translate_error(e, operation) from e

        self.logger.info(f"[Gateway] Updated {len(rows)} {_noun(table)}s matching {filters}")
        return rows

    async def delete(
        self,
        table: str,
        record_id: str,
        entity: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Delete one record

        Raises:
            NotFoundError: If no record has this ID
            PersistenceError: If the delete fails
        """
        operation = f"delete {_noun(table)}"
        entity = entity or record_id

        try:
            rows = await self.client.delete(table, {"id": record_id})
        except Exception as e:
            raise translate_error(e, operation, entity) from e

        if not rows:
            raise NotFoundError(f"{_noun(table).capitalize()} {record_id} not found", operation=operation, entity=entity)

        self.logger.info(f"[Gateway] Deleted {_noun(table)} {record_id}")
        return rows[0]

    async def delete_where(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Delete every record matching filters"""
        operation = f"delete {_noun(table)}s"
        try:
            rows = await self.client.delete(table, filters)
        except Exception as e:
            raise translate_error(e, operation) from e

        self.logger.info(f"[Gateway] Deleted {len(rows)} {_noun(table)}s matching {filters}")
        return rows
