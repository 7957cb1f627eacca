"""Task queue endpoints."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from swarm.api.dependencies import get_runtime
from swarm.core.errors import TaskNotFoundError
from swarm.core.models import TaskPriority, TaskStatus, TodoTask
from swarm.runtime import Runtime
from swarm.tasks.intake import with_timeout

router = APIRouter(prefix="/tasks", tags=["tasks"])


class TaskCreateRequest(BaseModel):
    description: str = Field(..., min_length=1, description="Free-form task description")
    target_agent: Optional[str] = Field(
        default=None, description="Agent that will execute the task; guessed when omitted"
    )
    project: Optional[str] = Field(default=None, description="Overrides the predicted project")
    source_agent: Optional[str] = None


class TaskResponse(BaseModel):
    id: str
    description: str
    enhanced_description: Optional[str]
    priority: TaskPriority
    project: Optional[str]
    source_agent: Optional[str]
    target_agent: str
    status: TaskStatus
    created_at: int
    completed_at: Optional[int]
    error: Optional[str]

    @classmethod
    def from_task(cls, task: TodoTask) -> "TaskResponse":
        return cls(**task.to_record())


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    request: TaskCreateRequest,
    runtime: Runtime = Depends(get_runtime),
) -> TaskResponse:
    task = await runtime.intake.submit(
        request.description,
        request.target_agent,
        project=request.project,
        source_agent=request.source_agent,
    )
    return TaskResponse.from_task(task)


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    target_agent: Optional[str] = None,
    runtime: Runtime = Depends(get_runtime),
) -> List[TaskResponse]:
    tasks = await with_timeout(
        runtime.store.find_all(), runtime.config.storage_timeout, "find"
    )
    return [
        TaskResponse.from_task(task)
        for task in tasks
        if (task_status is None or task.status is task_status)
        and (target_agent is None or task.target_agent == target_agent)
    ]


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, runtime: Runtime = Depends(get_runtime)) -> TaskResponse:
    task = await with_timeout(
        runtime.store.get(task_id), runtime.config.storage_timeout, "find"
    )
    if task is None:
        raise TaskNotFoundError(f"Task '{task_id}' not found")
    return TaskResponse.from_task(task)
