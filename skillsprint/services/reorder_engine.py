"""
Reorder engine: turns a drag gesture into order_index writes
"""

import asyncio
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from skillsprint.config.constants import TABLE_TASKS
from skillsprint.models.response import ReorderReport
from skillsprint.models.task import Task, TaskFilter
from skillsprint.models.view import SortMode
from skillsprint.services.mutation_gateway import MutationGateway
from skillsprint.services.task_store import TaskStore
from skillsprint.services.view_projector import project_list
from skillsprint.utils.error_handler import SkillSprintError, ValidationError, NotFoundError
from skillsprint.utils.logger import logger


class OrderWrite(BaseModel):
    task_id: str
    order_index: int


class ReorderPlan(BaseModel):
    """New sequence plus the writes needed to persist it"""
    sequence: List[str]
    writes: List[OrderWrite] = []

    @property
    def is_noop(self) -> bool:
        return not self.writes


def compute_reorder(
    sequence: Sequence[Task],
    from_index: int,
    to_index: Optional[int],
) -> ReorderPlan:
    """
    Move one task within a custom-ordered sequence

    Args:
        sequence: Tasks in their current displayed order
        from_index: Position of the dragged task
        to_index: Drop position, None when dropped outside any target

    Returns:
        Plan with the new sequence of IDs and one write per task whose
        position no longer matches its stored order_index
    """
    ids = [task.id for task in sequence]
    if (
        to_index is None
        or from_index == to_index
        or not 0 <= from_index < len(ids)
        or not 0 <= to_index < len(ids)
    ):
        return ReorderPlan(sequence=ids)

    moved = list(sequence)
    task = moved.pop(from_index)
    moved.insert(to_index, task)

    writes = [
        OrderWrite(task_id=item.id, order_index=position)
        for position, item in enumerate(moved)
        if item.order_index != position
    ]
    return ReorderPlan(sequence=[item.id for item in moved], writes=writes)


class ReorderEngine:
    """Persists custom order changes, one scope at a time"""

    def __init__(self, gateway: MutationGateway):
        """
        Initialize reorder engine

        Args:
            gateway: Mutation gateway used for the order_index writes
        """
        self.gateway = gateway
        self.logger = logger
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, scope_key: str) -> asyncio.Lock:
        lock = self._locks.get(scope_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scope_key] = lock
        return lock

    @staticmethod
    def check_reorderable(
        store: TaskStore,
        sort_mode: SortMode = SortMode.CUSTOM,
        task_filter: Optional[TaskFilter] = None,
    ):
        """
        Raise ValidationError unless the view shows the full custom order of one project
        """
        if SortMode(sort_mode) != SortMode.CUSTOM:
            raise ValidationError("Switch to custom sort to reorder tasks", operation="reorder tasks")
        if task_filter is not None and not task_filter.is_unfiltered:
            raise ValidationError("Clear the filters to reorder tasks", operation="reorder tasks")
        if not store.scope.is_project:
            raise ValidationError("Tasks can only be reordered inside one project", operation="reorder tasks")

    async def reorder(
        self,
        store: TaskStore,
        from_index: int,
        to_index: Optional[int],
        sort_mode: SortMode = SortMode.CUSTOM,
        task_filter: Optional[TaskFilter] = None,
    ) -> ReorderReport:
        """
        Move the task at from_index to to_index and persist the new order

        Writes are sent one at a time in plan order. A failed write leaves
        that task at its last persisted index; writes that already succeeded
        stay in place.

        Returns:
            Report with the resulting order and per-task outcomes

        Raises:
            ValidationError: If the view cannot be reordered
        """
        self.check_reorderable(store, sort_mode, task_filter)
        return await self._run(store, lambda sequence: (from_index, to_index))

    async def _run(self, store: TaskStore, locate: Callable[[List[Task]], Tuple[int, Optional[int]]]) -> ReorderReport:
        async with self._lock_for(store.scope.key):
            sequence = project_list(store.list(), None, SortMode.CUSTOM)
            from_index, to_index = locate(sequence)
            plan = compute_reorder(sequence, from_index, to_index)
            report = ReorderReport(order=plan.sequence)
            if plan.is_noop:
                return report

            self.logger.info(
                f"[ReorderEngine] Moving position {from_index} -> {to_index} in {store.scope.key} "
                f"({len(plan.writes)} writes)"
            )

            for write in plan.writes:
                task = store.get(write.task_id)
                if task is None:
                    continue
                previous = task.order_index
                store.set_order_index(write.task_id, write.order_index)
                try:
                    await self.gateway.update(
                        TABLE_TASKS,
                        write.task_id,
                        {"order_index": write.order_index},
                        entity=task.title,
                    )
                except NotFoundError as e:
                    store.discard(write.task_id)
                    report.failed.append(write.task_id)
                    report.errors[write.task_id] = e.message
                    self.logger.warning(f"[ReorderEngine] Task {write.task_id} no longer exists")
                except SkillSprintError as e:
                    store.set_order_index(write.task_id, previous)
                    report.failed.append(write.task_id)
                    report.errors[write.task_id] = e.message
                    self.logger.error(f"[ReorderEngine] Failed to write order for task {write.task_id}: {e.message}")
                else:
                    report.succeeded.append(write.task_id)

            if report.is_partial:
                self.logger.warning(
                    f"[ReorderEngine] Partial reorder in {store.scope.key}: "
                    f"{len(report.succeeded)} succeeded, {len(report.failed)} failed"
                )
            report.order = [task.id for task in project_list(store.list(), None, SortMode.CUSTOM)]
            return report

    async def reorder_by_id(
        self,
        store: TaskStore,
        task_id: str,
        over_task_id: Optional[str],
        sort_mode: SortMode = SortMode.CUSTOM,
        task_filter: Optional[TaskFilter] = None,
    ) -> ReorderReport:
        """
        Reorder by dragged task and drop target IDs

        Args:
            store: Scope store
            task_id: Dragged task
            over_task_id: Task it was dropped on, None if dropped outside

        Raises:
            ValidationError: If the view cannot be reordered
            NotFoundError: If the dragged task is not in the scope
        """
        self.check_reorderable(store, sort_mode, task_filter)
        if store.get(task_id) is None:
            raise NotFoundError(f"Task {task_id} not found", operation="reorder tasks", entity=task_id)

        def locate(sequence: List[Task]) -> Tuple[int, Optional[int]]:
            ids = [task.id for task in sequence]
            from_index = ids.index(task_id) if task_id in ids else -1
            return from_index, ids.index(over_task_id) if over_task_id in ids else None

        return await self._run(store, locate)
