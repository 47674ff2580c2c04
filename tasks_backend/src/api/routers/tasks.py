from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from ..auth import get_current_identity
from ..dependencies import get_task_service
from ..models import Identity
from ..schemas import ErrorResponse, TaskCreate, TaskEnvelope, TaskListEnvelope, TaskOut, TaskUpdate
from ..services import TaskService

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(get_current_identity)],
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"}},
)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskEnvelope,
    summary="Create Task",
    description="Create a task owned by the caller. title, date and isChecked are all required.",
    responses={
        200: {"description": "Task created"},
        400: {"model": ErrorResponse, "description": "Invalid task data"},
    },
)
def create_task(
    payload: TaskCreate,
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
) -> TaskEnvelope:
    """
    Create a new task for the authenticated user.
    """
    created = service.create(identity, payload)
    return TaskEnvelope(task=TaskOut(**created))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListEnvelope,
    summary="List Tasks",
    description=(
        "List the caller's tasks.\n\n"
        "Query parameters:\n"
        "- date: exact match on the task date\n"
        "- search: case-insensitive substring match on the title\n\n"
        "Both filters may be combined."
    ),
    responses={200: {"description": "Tasks retrieved"}},
)
def list_tasks(
    date: Optional[str] = Query(None, description="Only tasks with exactly this date"),
    search: Optional[str] = Query(None, description="Case-insensitive text to find in titles"),
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
) -> TaskListEnvelope:
    """
    List tasks owned by the authenticated user.
    """
    items = service.list(identity, date=date, search=search)
    return TaskListEnvelope(tasks=[TaskOut(**it) for it in items])


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskEnvelope,
    summary="Update Task",
    description="Partially update a task. Fields left out of the body keep their values.",
    responses={
        200: {"description": "Task updated"},
        400: {"model": ErrorResponse, "description": "Invalid task data"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
def patch_task(
    payload: TaskUpdate,
    task_id: int = Path(..., description="Id of the task to update"),
    identity: Identity = Depends(get_current_identity),
    service: TaskService = Depends(get_task_service),
) -> TaskEnvelope:
    """
    Partial update of one of the caller's tasks. Tasks owned by others are reported as not found.
    """
    updated = service.update(identity, task_id, payload)
    return TaskEnvelope(task=TaskOut(**updated))
