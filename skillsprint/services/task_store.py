"""
Task store: in-memory snapshot of one scope with optimistic mutations

A scope is one project or the merged cross-project view. The snapshot is
what every projection is computed from; it changes only through the
mutation methods below (which go through the MutationGateway) and through
the ReorderEngine.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from skillsprint.config.constants import TABLE_TASKS
from skillsprint.models.task import Task, TaskCreate, TaskUpdate, validate_task_dates
from skillsprint.services.mutation_gateway import MutationGateway, UNSET
from skillsprint.services.projection_cache import ProjectionCache
from skillsprint.utils.error_handler import (
    SkillSprintError,
    ValidationError,
    NotFoundError,
    PersistenceError,
    from_pydantic,
)
from skillsprint.utils.logger import logger


class Scope(BaseModel):
    """Which tasks a store holds"""

    model_config = ConfigDict(frozen=True)

    project_id: Optional[str] = None
    project_ids: Optional[Tuple[str, ...]] = None

    @classmethod
    def for_project(cls, project_id: str) -> "Scope":
        return cls(project_id=project_id)

    @classmethod
    def all_projects(cls, project_ids: Optional[List[str]] = None) -> "Scope":
        return cls(project_ids=tuple(sorted(project_ids)) if project_ids else None)

    @property
    def is_project(self) -> bool:
        return self.project_id is not None

    @property
    def key(self) -> str:
        if self.project_id:
            return f"project:{self.project_id}"
        if self.project_ids:
            return f"all:{','.join(self.project_ids)}"
        return "all"

    def contains_project(self, project_id: str) -> bool:
        if self.project_id:
            return project_id == self.project_id
        if self.project_ids:
            return project_id in self.project_ids
        return True

    def contains(self, task: Task) -> bool:
        return self.contains_project(task.project_id)

    def filters(self) -> Dict[str, Any]:
        """Backing store filters selecting this scope"""
        if self.project_id:
            return {"project_id": self.project_id}
        if self.project_ids:
            return {"project_id": list(self.project_ids)}
        return {}


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationState(str, Enum):
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


@dataclass
class PendingMutation:
    """One optimistic change awaiting the backing store's answer"""

    kind: MutationKind
    task_id: str
    applied: Dict[str, Any] = field(default_factory=dict)
    previous: Dict[str, Any] = field(default_factory=dict)
    snapshot: Optional[Task] = None
    position: Optional[int] = None
    state: MutationState = MutationState.APPLIED
    mutation_id: str = field(default_factory=lambda: uuid.uuid4().hex)


Changes = Union[Dict[str, Any], TaskCreate, TaskUpdate]


class TaskStore:
    """Authoritative in-memory snapshot of the tasks in one scope"""

    def __init__(self, scope: Scope, gateway: MutationGateway):
        """
        Initialize task store

        Args:
            scope: Project or cross-project scope
            gateway: Mutation gateway used for every backing store call
        """
        self.scope = scope
        self.gateway = gateway
        self.logger = logger
        self.projections = ProjectionCache(scope.key)
        self.pending: Dict[str, PendingMutation] = {}
        self.loaded = False
        self._tasks: Dict[str, Task] = {}

    # ---- snapshot access ----

    def list(self) -> List[Task]:
        """Current snapshot in creation order; never waits for a refresh"""
        return list(self._tasks.values())

    def get(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def next_order_index(self, project_id: str) -> int:
        """One more than the largest order index among the project's tasks"""
        indices = [
            task.order_index
            for task in self._tasks.values()
            if task.project_id == project_id and task.order_index is not None
        ]
        return max(indices) + 1 if indices else 0

    def _invalidate(self):
        self.projections.clear_cache()

    def _put(self, task: Task):
        self._tasks[task.id] = task
        self._invalidate()

    # ---- loading ----

    async def refresh(self) -> List[Task]:
        """
        Reload the scope from the backing store

        The previous snapshot stays visible until the new one arrives and is
        kept if loading fails. Changes still in flight are re-applied on top.

        Raises:
            PersistenceError: If loading fails
        """
        self.logger.debug(f"[TaskStore] Refreshing {self.scope.key}...")
        rows = await self.gateway.select(
            TABLE_TASKS,
            filters=self.scope.filters(),
            order=[("created_at", True)],
        )
        try:
            tasks = [Task.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise PersistenceError(
                f"malformed task record ({e.error_count()} invalid fields)",
                operation="load tasks",
            ) from e

        fresh = {task.id: task for task in tasks}
        for pending in self.pending.values():
            self._overlay(fresh, pending)

        self._tasks = fresh
        self.loaded = True
        self._invalidate()
        self.logger.info(f"[TaskStore] Loaded {len(fresh)} tasks for {self.scope.key}")
        return self.list()

    @staticmethod
    def _overlay(tasks: Dict[str, Task], pending: PendingMutation):
        if pending.kind == MutationKind.CREATE and pending.snapshot is not None:
            tasks.setdefault(pending.task_id, pending.snapshot)
        elif pending.kind == MutationKind.UPDATE and pending.task_id in tasks:
            tasks[pending.task_id] = tasks[pending.task_id].model_copy(update=pending.applied)
        elif pending.kind == MutationKind.DELETE:
            tasks.pop(pending.task_id, None)

    # ---- mutations ----

    async def upsert(self, changes: Changes, task_id: Optional[str] = None) -> Task:
        """
        Create a task (no task_id) or merge changes into an existing one

        Args:
            changes: Field values (dict, TaskCreate or TaskUpdate)
            task_id: Task to update, None to create

        Returns:
            Task as confirmed by the backing store

        Raises:
            ValidationError: Empty title, missing due date, bad dates (before any network call)
            NotFoundError: task_id is not in this scope, or was deleted remotely
            PersistenceError: Backing write failed; the optimistic change is rolled back
        """
        if task_id is None:
            return await self._create(changes)
        return await self._update(task_id, changes)

    async def _create(self, changes: Changes) -> Task:
        try:
            if isinstance(changes, TaskCreate):
                draft = changes
            else:
                data = changes.model_dump(exclude_unset=True) if isinstance(changes, BaseModel) else dict(changes)
                if self.scope.project_id:
                    data.setdefault("project_id", self.scope.project_id)
                draft = TaskCreate.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic(e, operation="create task") from e

        # next_order_index only sees projects held by this snapshot
        if not self.scope.contains_project(draft.project_id):
            raise ValidationError(
                f"project {draft.project_id} is outside {self.scope.key}",
                operation="create task",
                entity=draft.title,
            )

        task_id = str(uuid.uuid4())
        order_index = self.next_order_index(draft.project_id)
        now = datetime.now(timezone.utc)
        optimistic = Task(
            id=task_id,
            order_index=order_index,
            user_id=self.gateway.session.user_id,
            created_at=now,
            updated_at=now,
            **draft.model_dump(),
        )

        pending = PendingMutation(kind=MutationKind.CREATE, task_id=task_id, snapshot=optimistic)
        self.pending[pending.mutation_id] = pending
        self._put(optimistic)

        record = draft.model_dump(mode="json")
        record.update(id=task_id, order_index=order_index)
        try:
            stored = await self.gateway.create(TABLE_TASKS, record, entity=draft.title)
        except SkillSprintError:
            self._rollback(pending)
            raise

        task = self._parse(stored, fallback=optimistic)
        self._confirm(pending, task)
        self.logger.info(f"[TaskStore] Created task {task.id} ('{task.title}') order_index={task.order_index}")
        return task

    async def _update(self, task_id: str, changes: Changes) -> Task:
        current = self._tasks.get(task_id)
        if current is None:
            raise NotFoundError(f"Task {task_id} not found", operation="update task", entity=task_id)

        try:
            update = changes if isinstance(changes, TaskUpdate) else TaskUpdate.model_validate(
                changes.model_dump(exclude_unset=True) if isinstance(changes, BaseModel)
                else {key: value for key, value in changes.items() if value is not UNSET}
            )
            fields = update.model_dump(exclude_unset=True)
            merged = current.model_copy(update=fields)
            validate_task_dates(merged)
        except PydanticValidationError as e:
            raise from_pydantic(e, operation="update task", entity=current.title) from e
        except ValueError as e:
            raise ValidationError(str(e), operation="update task", entity=current.title) from e

        if not fields:
            return current

        pending = PendingMutation(
            kind=MutationKind.UPDATE,
            task_id=task_id,
            applied=fields,
            previous={name: getattr(current, name) for name in fields},
        )
        self.pending[pending.mutation_id] = pending
        self._put(merged)

        try:
            stored = await self.gateway.update(TABLE_TASKS, task_id, update, entity=current.title)
        except NotFoundError:
            self._settle(pending, MutationState.ROLLED_BACK)
            self.discard(task_id)
            raise
        except SkillSprintError:
            self._rollback(pending)
            raise

        task = self._parse(stored, fallback=merged)
        self._confirm(pending, task)
        return self._tasks.get(task_id, task)

    async def remove(self, task_id: str) -> None:
        """
        Delete a task; surviving tasks keep their order indices

        Raises:
            NotFoundError: task_id is unknown in this scope (or already gone remotely)
            PersistenceError: Backing delete failed; the task is restored
        """
        current = self._tasks.get(task_id)
        if current is None:
            raise NotFoundError(f"Task {task_id} not found", operation="delete task", entity=task_id)

        position = list(self._tasks).index(task_id)
        pending = PendingMutation(
            kind=MutationKind.DELETE,
            task_id=task_id,
            snapshot=current,
            position=position,
        )
        self.pending[pending.mutation_id] = pending
        del self._tasks[task_id]
        self._invalidate()

        try:
            await self.gateway.delete(TABLE_TASKS, task_id, entity=current.title)
        except NotFoundError:
            self._settle(pending, MutationState.CONFIRMED)
            raise
        except SkillSprintError:
            self._rollback(pending)
            raise

        self._settle(pending, MutationState.CONFIRMED)
        self.logger.info(f"[TaskStore] Deleted task {task_id} ('{current.title}')")

    # ---- used by the reorder engine and cascades ----

    def set_order_index(self, task_id: str, order_index: Optional[int]):
        """Set a task's order index locally (reorder write-back)"""
        task = self._tasks.get(task_id)
        if task is None:
            return
        self._tasks[task_id] = task.model_copy(update={"order_index": order_index})
        self._invalidate()

    def discard(self, task_id: str) -> Optional[Task]:
        """Drop a task from the snapshot without a backing call"""
        task = self._tasks.pop(task_id, None)
        if task is not None:
            self._invalidate()
        return task

    def discard_project(self, project_id: str) -> int:
        """Drop every task of a deleted project"""
        doomed = [task_id for task_id, task in self._tasks.items() if task.project_id == project_id]
        for task_id in doomed:
            del self._tasks[task_id]
        if doomed:
            self._invalidate()
        return len(doomed)

    def clear_category(self, category_id: str) -> int:
        """Null out references to a deleted category"""
        changed = 0
        for task_id, task in list(self._tasks.items()):
            if task.category_id == category_id:
                self._tasks[task_id] = task.model_copy(update={"category_id": None})
                changed += 1
        if changed:
            self._invalidate()
        return changed

    # ---- pending mutation bookkeeping ----

    def _parse(self, record: Dict[str, Any], fallback: Task) -> Task:
        try:
            return Task.model_validate(record)
        except PydanticValidationError:
            self.logger.warning(f"[TaskStore] Backing store returned a partial task record for {fallback.id}")
            merged = {**fallback.model_dump(), **{k: v for k, v in record.items() if k in Task.model_fields}}
            return Task.model_validate(merged)

    def _settle(self, pending: PendingMutation, state: MutationState):
        pending.state = state
        self.pending.pop(pending.mutation_id, None)

    def _confirm(self, pending: PendingMutation, confirmed: Task):
        if pending.kind == MutationKind.CREATE:
            if pending.task_id in self._tasks:
                self._put(confirmed)
        elif pending.kind == MutationKind.UPDATE:
            current = self._tasks.get(pending.task_id)
            if current is not None:
                # Only the fields this mutation wrote; other in-flight edits keep their values
                names = list(pending.applied) + ["updated_at"]
                self._put(current.model_copy(update={name: getattr(confirmed, name) for name in names}))
        self._settle(pending, MutationState.CONFIRMED)

    def _rollback(self, pending: PendingMutation):
        if pending.kind == MutationKind.CREATE:
            self.discard(pending.task_id)
        elif pending.kind == MutationKind.UPDATE:
            current = self._tasks.get(pending.task_id)
            if current is not None:
                # A field is restored only if nothing newer has replaced it
                restore = {
                    name: pending.previous[name]
                    for name, value in pending.applied.items()
                    if getattr(current, name) == value
                }
                if restore:
                    self._put(current.model_copy(update=restore))
        elif pending.kind == MutationKind.DELETE and pending.snapshot is not None:
            items = list(self._tasks.items())
            position = min(pending.position or 0, len(items))
            items.insert(position, (pending.task_id, pending.snapshot))
            self._tasks = dict(items)
            self._invalidate()

        self._settle(pending, MutationState.ROLLED_BACK)
        self.logger.warning(f"[TaskStore] Rolled back {pending.kind.value} of task {pending.task_id}")
