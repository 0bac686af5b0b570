"""
Project management service
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from skillsprint.config.constants import TABLE_PROJECTS
from skillsprint.models.project import (
    Project,
    ProjectCreate,
    ProjectStats,
    ProjectStatus,
    ProjectUpdate,
)
from skillsprint.models.response import MutationResponse
from skillsprint.services.mutation_gateway import MutationGateway
from skillsprint.services.task_manager import TaskManager
from skillsprint.utils.error_handler import NotFoundError, SkillSprintError, from_pydantic
from skillsprint.utils.formatters import (
    format_project_created,
    format_project_updated,
    format_project_deleted,
)
from skillsprint.utils.logger import logger


class ProjectManager:
    """Service for managing projects"""

    def __init__(self, gateway: MutationGateway, task_manager: TaskManager):
        """
        Initialize project manager

        Args:
            gateway: Mutation gateway
            task_manager: Task manager whose stores follow project deletions
        """
        self.gateway = gateway
        self.task_manager = task_manager
        self.logger = logger
        self._projects: Optional[Dict[str, Project]] = None

    async def list_projects(self, force_refresh: bool = False) -> List[Project]:
        """
        Get projects, newest first

        Args:
            force_refresh: Reload even if already loaded

        Returns:
            List of projects
        """
        if self._projects is None or force_refresh:
            rows = await self.gateway.select(TABLE_PROJECTS, order=[("created_at", False)])
            projects = [Project.model_validate(row) for row in rows]
            self._projects = {project.id: project for project in projects}
            self.logger.debug(f"[ProjectManager] Loaded {len(projects)} projects")
        return list(self._projects.values())

    async def index(self) -> Dict[str, Project]:
        """Map project ID to project"""
        await self.list_projects()
        return dict(self._projects or {})

    async def get_project(self, project_id: str) -> Project:
        """
        Get one project

        Raises:
            NotFoundError: If the project does not exist
        """
        project = (await self.index()).get(project_id)
        if project is None:
            # Created elsewhere since the last load
            await self.list_projects(force_refresh=True)
            project = (self._projects or {}).get(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found", operation="load project", entity=project_id)
        return project

    async def get_stats(self) -> ProjectStats:
        """Count projects by status"""
        projects = await self.list_projects()
        stats = ProjectStats(total=len(projects))
        for project in projects:
            if project.status == ProjectStatus.ACTIVE:
                stats.active += 1
            elif project.status == ProjectStatus.ON_HOLD:
                stats.on_hold += 1
            elif project.status == ProjectStatus.COMPLETED:
                stats.completed += 1
        return stats

    async def create_project(self, data: Union[ProjectCreate, Dict[str, Any]]) -> MutationResponse:
        """
        Create a new project

        Args:
            data: Project fields (name required)

        Returns:
            MutationResponse with the created project in data
        """
        try:
            draft = data if isinstance(data, ProjectCreate) else ProjectCreate.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic(e, operation="create project") from e

        try:
            stored = await self.gateway.create(TABLE_PROJECTS, draft.model_dump(), entity=draft.name)
        except SkillSprintError as e:
            self.logger.error(f"[ProjectManager] Error creating project '{draft.name}': {e.message}")
            raise

        project = Project.model_validate(stored)
        if self._projects is not None:
            self._projects = {project.id: project, **self._projects}

        self.logger.info(f"[ProjectManager] Project created: {project.id} ('{project.name}')")
        return MutationResponse(
            message=format_project_created(project),
            data=project.model_dump(mode="json"),
        )

    async def update_project(
        self,
        project_id: str,
        changes: Union[ProjectUpdate, Dict[str, Any]],
    ) -> MutationResponse:
        """
        Update project fields

        Returns:
            MutationResponse with the updated project in data
        """
        project = await self.get_project(project_id)
        try:
            update = changes if isinstance(changes, ProjectUpdate) else ProjectUpdate.model_validate(changes)
        except PydanticValidationError as e:
            raise from_pydantic(e, operation="update project", entity=project.name) from e

        try:
            stored = await self.gateway.update(TABLE_PROJECTS, project_id, update, entity=project.name)
        except NotFoundError:
            self._forget(project_id)
            raise

        updated = Project.model_validate(stored)
        if self._projects is not None:
            self._projects[project_id] = updated

        self.logger.info(f"[ProjectManager] Project updated: {project_id}")
        return MutationResponse(
            message=format_project_updated(updated),
            data=updated.model_dump(mode="json"),
        )

    async def delete_project(self, project_id: str) -> MutationResponse:
        """
        Delete a project together with its tasks

        Returns:
            MutationResponse
        """
        project = await self.get_project(project_id)
        try:
            await self.gateway.delete(TABLE_PROJECTS, project_id, entity=project.name)
        except NotFoundError:
            self._forget(project_id)
            raise

        self._forget(project_id)
        self.logger.info(f"[ProjectManager] Project deleted: {project_id} ('{project.name}')")
        return MutationResponse(message=format_project_deleted(project.name))

    def _forget(self, project_id: str):
        if self._projects is not None:
            self._projects.pop(project_id, None)
        self.task_manager.drop_project(project_id)
