"""
Task management service
"""

from typing import Any, Dict, List, Optional, Union

from skillsprint.models.category import TaskDetails, resolve_task
from skillsprint.models.project import Project
from skillsprint.models.response import MutationResponse, ReorderReport
from skillsprint.models.task import Task, TaskCreate, TaskFilter, TaskStatus, TaskUpdate
from skillsprint.models.view import SortMode, ViewKind
from skillsprint.services.category_manager import CategoryManager
from skillsprint.services.mutation_gateway import MutationGateway, UNSET
from skillsprint.services.reorder_engine import ReorderEngine
from skillsprint.services.task_store import Scope, TaskStore
from skillsprint.services import view_projector
from skillsprint.utils.error_handler import NotFoundError, PersistenceError
from skillsprint.utils.formatters import (
    format_task_created,
    format_task_updated,
    format_task_deleted,
    format_task_moved,
    format_reorder,
)
from skillsprint.utils.logger import logger


class TaskManager:
    """Service for managing tasks across project and cross-project scopes"""

    def __init__(self, gateway: MutationGateway, categories: CategoryManager):
        """
        Initialize task manager

        Args:
            gateway: Mutation gateway
            categories: Category manager used for category sort and lookups
        """
        self.gateway = gateway
        self.categories = categories
        self.reorder_engine = ReorderEngine(gateway)
        self.stores: Dict[str, TaskStore] = {}
        self.logger = logger

    # ---- stores ----

    def store_for(self, scope: Scope) -> TaskStore:
        """Get the store of a scope, creating an empty one if needed"""
        store = self.stores.get(scope.key)
        if store is None:
            store = TaskStore(scope, self.gateway)
            self.stores[scope.key] = store
        return store

    async def get_store(self, scope: Scope) -> TaskStore:
        """Get the store of a scope, loading it on first use"""
        store = self.store_for(scope)
        if not store.loaded:
            await store.refresh()
        return store

    def _mark_stale(self, source: TaskStore, *project_ids: Optional[str]):
        """Other loaded stores holding these projects reload on next access"""
        for store in self.stores.values():
            if store is source or not store.loaded:
                continue
            if any(
                project_id and store.scope.contains_project(project_id)
                for project_id in project_ids
            ):
                store.loaded = False

    async def _refresh_after_not_found(self, store: TaskStore):
        try:
            await store.refresh()
        except PersistenceError as e:
            self.logger.warning(f"[TaskManager] Refresh after missing task failed: {e.message}")

    def drop_project(self, project_id: str):
        """Forget a deleted project's store and its tasks in merged stores"""
        self.stores.pop(Scope.for_project(project_id).key, None)
        for store in self.stores.values():
            store.discard_project(project_id)

    # ---- views ----

    async def get_tasks(
        self,
        scope: Scope,
        task_filter: Optional[TaskFilter] = None,
        sort_mode: SortMode = SortMode.CUSTOM,
    ) -> List[Task]:
        """List view: filtered and sorted tasks of a scope"""
        return await self.get_view(scope, ViewKind.LIST, task_filter, sort_mode)

    async def get_view(
        self,
        scope: Scope,
        view: ViewKind = ViewKind.LIST,
        task_filter: Optional[TaskFilter] = None,
        sort_mode: SortMode = SortMode.CUSTOM,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Any:
        """
        Compute (or reuse) a projection of a scope

        Args:
            scope: Project or cross-project scope
            view: list, board, calendar or timeline
            task_filter: Status / project / category filter
            sort_mode: Sort mode (board always uses custom order)
            year: Calendar month grid year (calendar view only)
            month: Calendar month grid month (calendar view only)

        Returns:
            List[Task], Board, List[CalendarDay] / CalendarMonth, or Timeline (None if empty)
        """
        store = await self.get_store(scope)
        categories = await self.categories.index()
        view = ViewKind(view)
        sort_mode = SortMode(sort_mode)
        tasks = store.list()

        def compute():
            if view == ViewKind.BOARD:
                return view_projector.project_board(tasks, task_filter)
            if view == ViewKind.CALENDAR:
                if year and month:
                    return view_projector.calendar_month(tasks, year, month, task_filter, sort_mode, categories)
                return view_projector.project_calendar(tasks, task_filter, sort_mode, categories)
            if view == ViewKind.TIMELINE:
                return view_projector.project_timeline(tasks, task_filter, sort_mode, categories)
            return view_projector.project_list(tasks, task_filter, sort_mode, categories)

        key = (view.value, task_filter, sort_mode.value, year, month)
        return store.projections.get_or_compute(key, compute)

    async def list_all_tasks(
        self,
        projects: Dict[str, Project],
        project_ids: Optional[List[str]] = None,
    ) -> List[TaskDetails]:
        """
        Cross-project listing ordered by due date

        Args:
            projects: Project index used to resolve references
            project_ids: Restrict to these projects (None for all)

        Returns:
            Tasks with project and category resolved
        """
        store = await self.get_store(Scope.all_projects(project_ids))
        categories = await self.categories.index()
        tasks = store.projections.get_or_compute(
            ("all_tasks",),
            lambda: view_projector.sort_tasks(store.list(), SortMode.DUE_DATE),
        )
        return [resolve_task(task, projects, categories) for task in tasks]

    # ---- mutations ----

    async def create_task(
        self,
        scope: Scope,
        data: Union[TaskCreate, Dict[str, Any]],
        project_name: Optional[str] = None,
    ) -> MutationResponse:
        """
        Create a task at the end of its project's custom order

        Args:
            scope: Scope the task is created from
            data: Task fields
            project_name: Project name for the confirmation message

        Returns:
            MutationResponse with the created task in data
        """
        store = await self.get_store(scope)
        task = await store.upsert(data)
        self._mark_stale(store, task.project_id)
        return MutationResponse(
            message=format_task_created(task, project_name),
            data=task.model_dump(mode="json"),
        )

    async def update_task(
        self,
        scope: Scope,
        task_id: str,
        changes: Union[TaskUpdate, Dict[str, Any]],
    ) -> MutationResponse:
        """
        Update fields of a task

        Returns:
            MutationResponse with the updated task in data

        Raises:
            NotFoundError: After refreshing the scope, when the task is gone
        """
        store = await self.get_store(scope)
        try:
            task = await store.upsert(changes, task_id=task_id)
        except NotFoundError:
            await self._refresh_after_not_found(store)
            raise

        if isinstance(changes, TaskUpdate):
            changed = changes.model_dump(exclude_unset=True)
        else:
            changed = {name: value for name, value in changes.items() if value is not UNSET}
        self._mark_stale(store, task.project_id)
        return MutationResponse(
            message=format_task_updated(task, changed),
            data=task.model_dump(mode="json"),
        )

    async def move_to_column(self, scope: Scope, task_id: str, status: TaskStatus) -> MutationResponse:
        """
        Board drag across columns: changes only the task's status
        """
        store = await self.get_store(scope)
        try:
            task = await store.upsert({"status": TaskStatus(status)}, task_id=task_id)
        except NotFoundError:
            await self._refresh_after_not_found(store)
            raise

        self._mark_stale(store, task.project_id)
        return MutationResponse(message=format_task_moved(task), data=task.model_dump(mode="json"))

    async def delete_task(self, scope: Scope, task_id: str) -> MutationResponse:
        """
        Delete a task

        Raises:
            NotFoundError: After refreshing the scope, when the task is gone
        """
        store = await self.get_store(scope)
        task = store.get(task_id)
        try:
            await store.remove(task_id)
        except NotFoundError:
            await self._refresh_after_not_found(store)
            raise

        self._mark_stale(store, task.project_id if task else None)
        return MutationResponse(message=format_task_deleted(task.title if task else task_id))

    async def reorder(
        self,
        scope: Scope,
        from_index: int,
        to_index: Optional[int],
        sort_mode: SortMode = SortMode.CUSTOM,
        task_filter: Optional[TaskFilter] = None,
    ) -> MutationResponse:
        """Persist a drag reorder by positions in the custom-ordered list"""
        store = await self.get_store(scope)
        report = await self.reorder_engine.reorder(store, from_index, to_index, sort_mode, task_filter)
        return self._reorder_response(store, report)

    async def reorder_by_id(
        self,
        scope: Scope,
        task_id: str,
        over_task_id: Optional[str],
        sort_mode: SortMode = SortMode.CUSTOM,
        task_filter: Optional[TaskFilter] = None,
    ) -> MutationResponse:
        """Persist a drag reorder by dragged task and drop target"""
        store = await self.get_store(scope)
        try:
            report = await self.reorder_engine.reorder_by_id(store, task_id, over_task_id, sort_mode, task_filter)
        except NotFoundError:
            await self._refresh_after_not_found(store)
            raise
        return self._reorder_response(store, report)

    def _reorder_response(self, store: TaskStore, report: ReorderReport) -> MutationResponse:
        if report.write_count:
            self._mark_stale(store, store.scope.project_id)
        return MutationResponse(
            message=format_reorder(report),
            success=not report.is_partial,
            data=report.model_dump(),
        )
