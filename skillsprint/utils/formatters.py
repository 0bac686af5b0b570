"""
Message formatting utilities
"""

from typing import Any, Dict, Optional

from skillsprint.models.project import Project
from skillsprint.models.response import ReorderReport
from skillsprint.models.task import Task
from skillsprint.utils.date_utils import format_display_date

STATUS_NAMES = {
    "todo": "To Do",
    "in_progress": "In Progress",
    "done": "Done",
}

FIELD_NAMES = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "category_id": "category",
    "start_date": "start date",
    "due_date": "due date",
}


def format_task_created(task: Task, project_name: Optional[str] = None) -> str:
    """
    Format task creation confirmation message

    Args:
        task: Created task
        project_name: Name of the task's project, if known

    Returns:
        Formatted message
    """
    message = f"✓ Task '{task.title}' created"
    if project_name:
        message += f" in '{project_name}'"

    message += f"\nDue: {format_display_date(task.due_date)}"
    if task.priority:
        message += f"\nPriority: {task.priority.value}"
    if task.description:
        preview = task.description[:50] + "..." if len(task.description) > 50 else task.description
        message += f"\nNotes: {preview}"
    return message


def format_task_updated(task: Task, changes: Dict[str, Any]) -> str:
    """
    Format task update confirmation message

    Args:
        task: Task after the update
        changes: Fields that were changed (only these are listed)

    Returns:
        Formatted message
    """
    details = []
    for name in changes:
        if name == "due_date":
            details.append(f"Due: {format_display_date(task.due_date)}")
        elif name == "start_date":
            details.append(f"Start: {format_display_date(task.start_date) if task.start_date else 'none'}")
        elif name == "status":
            details.append(f"Status: {STATUS_NAMES[task.status.value]}")
        elif name == "priority":
            details.append(f"Priority: {task.priority.value if task.priority else 'none'}")
        elif name in FIELD_NAMES:
            details.append(f"{FIELD_NAMES[name].capitalize()} changed")

    message = f"✓ Task '{task.title}' updated"
    if details:
        message += "\n" + "\n".join(f"  • {detail}" for detail in details)
    return message


def format_task_deleted(title: str) -> str:
    return f"✓ Task '{title}' deleted"


def format_task_moved(task: Task) -> str:
    """Board column change confirmation"""
    return f"✓ Task '{task.title}' moved to {STATUS_NAMES[task.status.value]}"


def format_reorder(report: ReorderReport) -> str:
    """
    Format reorder outcome

    Args:
        report: Reorder report

    Returns:
        Formatted message
    """
    if not report.write_count:
        return "Order unchanged"
    if report.is_partial:
        return (
            f"⚠ Order partially saved: {len(report.succeeded)} saved, "
            f"{len(report.failed)} could not be saved"
        )
    return f"✓ Order saved ({len(report.succeeded)} tasks)"


def format_project_created(project: Project) -> str:
    return f"✓ Project '{project.name}' created"


def format_project_updated(project: Project) -> str:
    return f"✓ Project '{project.name}' updated"


def format_project_deleted(project_name: str) -> str:
    return f"✓ Project '{project_name}' deleted"


def format_created(kind: str, name: str) -> str:
    """Generic creation confirmation for categories, skills and goals"""
    return f"✓ {kind.capitalize()} '{name}' created"


def format_deleted(kind: str, name: str) -> str:
    return f"✓ {kind.capitalize()} '{name}' deleted"
