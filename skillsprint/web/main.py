"""
Web API (JSON) for the SkillSprint workspace
"""

from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from skillsprint.main import SkillSprint
from skillsprint.models.task import TaskFilter, TaskStatus
from skillsprint.models.view import SortMode, ViewKind
from skillsprint.services.task_store import Scope
from skillsprint.utils.error_handler import (
    SkillSprintError,
    ValidationError,
    NotFoundError,
    PersistenceError,
    handle_error,
)
from skillsprint.utils.logger import logger
from skillsprint.config.settings import settings

app = FastAPI(title="SkillSprint API")
workspace = SkillSprint()

STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    PersistenceError: 502,
}


class MoveRequest(BaseModel):
    status: TaskStatus


class ReorderRequest(BaseModel):
    from_index: Optional[int] = None
    to_index: Optional[int] = None
    task_id: Optional[str] = None
    over_task_id: Optional[str] = None
    sort: SortMode = SortMode.CUSTOM
    status: Optional[str] = None
    category_id: Optional[str] = None


class NameRequest(BaseModel):
    name: str
    color: Optional[str] = None


class TaskSkillRequest(BaseModel):
    skill_id: str


class CadenceRequest(BaseModel):
    one_on_one: str
    performance: str


def get_workspace() -> SkillSprint:
    """Dependency returning the started workspace"""
    if not workspace.started:
        raise HTTPException(status_code=503, detail="Workspace is not connected to the backing store")
    return workspace


def build_filter(
    status: Optional[str] = None,
    category_id: Optional[str] = None,
    project_ids: Optional[List[str]] = None,
) -> TaskFilter:
    """Build a task filter from query values ("all" or empty means no status filter)"""
    try:
        return TaskFilter(
            status=TaskStatus(status) if status and status != "all" else None,
            category_id=category_id or None,
            project_ids=tuple(project_ids) if project_ids else None,
        )
    except ValueError as e:
        raise ValidationError(f"Unknown status '{status}'", operation="filter tasks") from e


@app.exception_handler(SkillSprintError)
async def skillsprint_error_handler(request: Request, error: SkillSprintError):
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(error, cls)),
        500,
    )
    response = handle_error(error)
    return JSONResponse(status_code=status_code, content={"success": False, **response.model_dump()})


@app.on_event("startup")
async def startup():
    """Authenticate on startup"""
    try:
        logger.info("[Startup] Connecting workspace...")
        await workspace.start()
        logger.info("[Startup] Workspace connected")
    except Exception as e:
        logger.error(f"[Startup] Error connecting workspace: {e}", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown():
    await workspace.stop()


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "connected": workspace.started}


# ---- projects ----

@app.get("/api/projects")
async def list_projects(ws: SkillSprint = Depends(get_workspace)):
    return await ws.projects.list_projects(force_refresh=True)


@app.get("/api/projects/stats")
async def project_stats(ws: SkillSprint = Depends(get_workspace)):
    return await ws.projects.get_stats()


@app.post("/api/projects")
async def create_project(data: Dict[str, Any] = Body(...), ws: SkillSprint = Depends(get_workspace)):
    return await ws.projects.create_project(data)


@app.get("/api/projects/{project_id}")
async def get_project(project_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.projects.get_project(project_id)


@app.patch("/api/projects/{project_id}")
async def update_project(
    project_id: str,
    changes: Dict[str, Any] = Body(...),
    ws: SkillSprint = Depends(get_workspace),
):
    return await ws.projects.update_project(project_id, changes)


@app.delete("/api/projects/{project_id}")
async def delete_project(project_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.projects.delete_project(project_id)


# ---- project tasks ----

@app.get("/api/projects/{project_id}/tasks")
async def project_tasks(
    project_id: str,
    view: ViewKind = ViewKind.LIST,
    sort: SortMode = SortMode.CUSTOM,
    status: Optional[str] = None,
    category_id: Optional[str] = None,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    ws: SkillSprint = Depends(get_workspace),
):
    """Task view of one project: list, board, calendar or timeline"""
    task_filter = build_filter(status, category_id)
    return await ws.tasks.get_view(
        Scope.for_project(project_id),
        view=view,
        task_filter=task_filter,
        sort_mode=sort,
        year=year,
        month=month,
    )


@app.post("/api/projects/{project_id}/tasks")
async def create_task(
    project_id: str,
    data: Dict[str, Any] = Body(...),
    ws: SkillSprint = Depends(get_workspace),
):
    project = await ws.projects.get_project(project_id)
    return await ws.tasks.create_task(
        Scope.for_project(project_id),
        {**data, "project_id": project_id},
        project_name=project.name,
    )


@app.patch("/api/projects/{project_id}/tasks/{task_id}")
async def update_task(
    project_id: str,
    task_id: str,
    changes: Dict[str, Any] = Body(...),
    ws: SkillSprint = Depends(get_workspace),
):
    return await ws.tasks.update_task(Scope.for_project(project_id), task_id, changes)


@app.post("/api/projects/{project_id}/tasks/{task_id}/move")
async def move_task(
    project_id: str,
    task_id: str,
    request: MoveRequest,
    ws: SkillSprint = Depends(get_workspace),
):
    """Board column change"""
    return await ws.tasks.move_to_column(Scope.for_project(project_id), task_id, request.status)


@app.delete("/api/projects/{project_id}/tasks/{task_id}")
async def delete_task(project_id: str, task_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.tasks.delete_task(Scope.for_project(project_id), task_id)


@app.post("/api/projects/{project_id}/reorder")
async def reorder_tasks(
    project_id: str,
    request: ReorderRequest,
    ws: SkillSprint = Depends(get_workspace),
):
    """Persist a drag reorder, by positions or by task IDs"""
    scope = Scope.for_project(project_id)
    task_filter = build_filter(request.status, request.category_id)
    if request.task_id:
        return await ws.tasks.reorder_by_id(scope, request.task_id, request.over_task_id, request.sort, task_filter)
    if request.from_index is None:
        raise ValidationError("from_index or task_id is required", operation="reorder tasks")
    return await ws.tasks.reorder(scope, request.from_index, request.to_index, request.sort, task_filter)


# ---- cross-project tasks ----

@app.get("/api/tasks")
async def all_tasks(
    project_id: Optional[List[str]] = Query(None),
    ws: SkillSprint = Depends(get_workspace),
):
    """Tasks of every (or the selected) project, by due date"""
    projects = await ws.projects.index()
    return await ws.tasks.list_all_tasks(projects, project_id)


@app.get("/api/tasks/{task_id}/skills")
async def task_skills(task_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.skills.get_task_skills(task_id)


@app.post("/api/tasks/{task_id}/skills")
async def add_task_skill(task_id: str, request: TaskSkillRequest, ws: SkillSprint = Depends(get_workspace)):
    return await ws.skills.add_task_skill(task_id, request.skill_id)


@app.delete("/api/tasks/{task_id}/skills/{skill_id}")
async def remove_task_skill(task_id: str, skill_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.skills.remove_task_skill(task_id, skill_id)


# ---- categories ----

@app.get("/api/categories")
async def list_categories(ws: SkillSprint = Depends(get_workspace)):
    return await ws.categories.list_categories(force_refresh=True)


@app.post("/api/categories")
async def create_category(request: NameRequest, ws: SkillSprint = Depends(get_workspace)):
    return await ws.categories.create_category(request.name, request.color)


@app.delete("/api/categories/{category_id}")
async def delete_category(category_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.categories.delete_category(category_id, stores=ws.tasks.stores.values())


# ---- skills ----

@app.get("/api/skills")
async def list_skills(ws: SkillSprint = Depends(get_workspace)):
    return await ws.skills.list_skills()


@app.get("/api/skills/growth")
async def recent_growth(ws: SkillSprint = Depends(get_workspace)):
    """Tasks completed in the last 30 days grouped by skills"""
    return await ws.skills.recent_growth()


@app.post("/api/skills")
async def create_skill(request: NameRequest, ws: SkillSprint = Depends(get_workspace)):
    return await ws.skills.create_skill(request.name)


@app.delete("/api/skills/{skill_id}")
async def delete_skill(skill_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.skills.delete_skill(skill_id)


# ---- career goals and reviews ----

@app.get("/api/goals")
async def list_goals(ws: SkillSprint = Depends(get_workspace)):
    return await ws.reviews.list_goals()


@app.post("/api/goals")
async def create_goal(data: Dict[str, Any] = Body(...), ws: SkillSprint = Depends(get_workspace)):
    return await ws.reviews.create_goal(data)


@app.delete("/api/goals/{goal_id}")
async def delete_goal(goal_id: str, ws: SkillSprint = Depends(get_workspace)):
    return await ws.reviews.delete_goal(goal_id)


@app.get("/api/reviews/cadence")
async def get_cadence(ws: SkillSprint = Depends(get_workspace)):
    return await ws.reviews.get_cadence()


@app.put("/api/reviews/cadence")
async def save_cadence(request: CadenceRequest, ws: SkillSprint = Depends(get_workspace)):
    return await ws.reviews.save_cadence(request.one_on_one, request.performance)


@app.get("/api/reviews/sessions")
async def review_sessions(
    upcoming: bool = False,
    limit: int = Query(5, ge=1),
    ws: SkillSprint = Depends(get_workspace),
):
    if upcoming:
        return await ws.reviews.upcoming_sessions(limit=limit)
    return await ws.reviews.list_sessions()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.WEB_PORT)
