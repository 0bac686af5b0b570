"""
Category and skill models

Join rows coming back from the backing store (task_skills with an embedded
skills object) are parsed into explicit records here instead of being
passed around as loose dictionaries.
"""

from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from skillsprint.config.constants import CATEGORY_COLORS
from skillsprint.models.project import Project
from skillsprint.models.task import Task


class Category(BaseModel):
    """User-defined task label"""

    id: str
    name: str
    color: str = CATEGORY_COLORS[0]
    user_id: Optional[str] = None


class CategoryCreate(BaseModel):
    """Category creation model"""

    name: str
    color: str = CATEGORY_COLORS[0]

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a category name")
        return value


class Skill(BaseModel):
    """Skill that tasks can contribute to"""

    id: str
    name: str
    user_id: Optional[str] = None


class SkillRef(BaseModel):
    """Embedded skill reference on a join row"""

    name: str


class TaskSkill(BaseModel):
    """Join record linking a task to a skill"""

    task_id: Optional[str] = None
    skill_id: str
    skill: Optional[SkillRef] = Field(None, alias="skills")

    model_config = {"populate_by_name": True}


class TaskDetails(BaseModel):
    """Task with its weak references resolved by the caller"""

    task: Task
    project: Optional[Project] = None
    category: Optional[Category] = None
    skills: List[Skill] = []


def resolve_task(
    task: Task,
    projects: dict,
    categories: dict,
    skills: Optional[List[Skill]] = None,
) -> TaskDetails:
    """
    Resolve project and category references of a task

    Unknown references resolve to None rather than raising, since a
    category may have been deleted after the task was loaded.
    """
    return TaskDetails(
        task=task,
        project=projects.get(task.project_id),
        category=categories.get(task.category_id) if task.category_id else None,
        skills=skills or [],
    )
