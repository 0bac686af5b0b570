"""
Skill management service: skills, task skill links and the recent growth report
"""

from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from skillsprint.api.supabase_client import Filter
from skillsprint.config.constants import (
    TABLE_SKILLS,
    TABLE_TASK_SKILLS,
    TABLE_TASKS,
    RECENT_COMPLETED_DAYS,
)
from skillsprint.models.category import Skill, TaskSkill
from skillsprint.models.response import MutationResponse
from skillsprint.models.task import Task, TaskStatus
from skillsprint.services.mutation_gateway import MutationGateway
from skillsprint.utils.error_handler import ValidationError
from skillsprint.utils.formatters import format_created, format_deleted
from skillsprint.utils.logger import logger

NO_SKILLS_LABEL = "No skills"


def skill_label(links: List[TaskSkill]) -> str:
    """Comma-joined skill names of a task, or NO_SKILLS_LABEL when it has none"""
    names = [link.skill.name for link in links if link.skill is not None]
    return ", ".join(names) or NO_SKILLS_LABEL


def group_by_skills(rows: List[dict]) -> "OrderedDict[str, List[Task]]":
    """
    Group task rows (with embedded task_skills) by their skill label

    Groups appear in the order their first task appears.
    """
    groups: "OrderedDict[str, List[Task]]" = OrderedDict()
    for row in rows:
        links = [TaskSkill.model_validate(item) for item in row.get("task_skills") or []]
        groups.setdefault(skill_label(links), []).append(Task.model_validate(row))
    return groups


class SkillManager:
    """Service for managing skills and linking them to tasks"""

    def __init__(self, gateway: MutationGateway):
        """
        Initialize skill manager

        Args:
            gateway: Mutation gateway
        """
        self.gateway = gateway
        self.logger = logger

    async def list_skills(self) -> List[Skill]:
        """Get skills ordered by name"""
        rows = await self.gateway.select(TABLE_SKILLS, order=[("name", True)])
        return [Skill.model_validate(row) for row in rows]

    async def create_skill(self, name: str) -> MutationResponse:
        """
        Create a skill

        Raises:
            ValidationError: If the name is empty
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a skill name", operation="create skill")

        stored = await self.gateway.create(TABLE_SKILLS, {"name": name}, entity=name)
        skill = Skill.model_validate(stored)
        self.logger.info(f"[SkillManager] Created skill '{skill.name}'")
        return MutationResponse(message=format_created("skill", skill.name), data=skill.model_dump(mode="json"))

    async def delete_skill(self, skill_id: str) -> MutationResponse:
        stored = await self.gateway.delete(TABLE_SKILLS, skill_id)
        name = stored.get("name", skill_id)
        self.logger.info(f"[SkillManager] Deleted skill '{name}'")
        return MutationResponse(message=format_deleted("skill", name))

    async def get_task_skills(self, task_id: str) -> List[TaskSkill]:
        """Skills linked to a task, with skill names resolved"""
        rows = await self.gateway.select(
            TABLE_TASK_SKILLS,
            filters={"task_id": task_id},
            columns="task_id,skill_id,skills(name)",
        )
        return [TaskSkill.model_validate(row) for row in rows]

    async def add_task_skill(self, task_id: str, skill_id: str) -> MutationResponse:
        """Link a skill to a task"""
        await self.gateway.create(
            TABLE_TASK_SKILLS,
            {"task_id": task_id, "skill_id": skill_id},
            entity=task_id,
            stamp_owner=False,
        )
        self.logger.info(f"[SkillManager] Linked skill {skill_id} to task {task_id}")
        return MutationResponse(message="✓ Skill added")

    async def remove_task_skill(self, task_id: str, skill_id: str) -> MutationResponse:
        """Unlink a skill from a task"""
        rows = await self.gateway.delete_where(
            TABLE_TASK_SKILLS,
            {"task_id": task_id, "skill_id": skill_id},
        )
        self.logger.info(f"[SkillManager] Unlinked skill {skill_id} from task {task_id} ({len(rows)} rows)")
        return MutationResponse(message="✓ Skill removed")

    async def recent_growth(
        self,
        days: int = RECENT_COMPLETED_DAYS,
        now: Optional[datetime] = None,
    ) -> Dict[str, List[Task]]:
        """
        Tasks completed in the last `days` days grouped by their skills

        Args:
            days: Look-back window
            now: Reference time (defaults to the current UTC time)

        Returns:
            Mapping of skill label ("Python, SQL" or "No skills") to tasks,
            most recently completed first
        """
        since = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        rows = await self.gateway.select(
            TABLE_TASKS,
            filters={
                "status": TaskStatus.DONE.value,
                "updated_at": Filter("gte", since),
            },
            order=[("updated_at", False)],
            columns="*,task_skills(skill_id,skills(name))",
        )
        groups = group_by_skills(rows)
        self.logger.debug(f"[SkillManager] {len(rows)} tasks completed since {since.date()} in {len(groups)} groups")
        return groups
