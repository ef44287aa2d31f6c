"""Task API routes."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db
from ..models.task import TaskPriority
from ..services.auth import Session
from ..services.board import BoardService
from ..services.member import MemberService
from ..services.task import TaskService
from .access import require_task
from .auth import get_current_session


router = APIRouter(prefix="/api/tasks", tags=["tasks"])


class TaskSchema(BaseModel):
    id: str
    column_id: str
    title: str
    description: Optional[str] = None
    priority: str
    due_date: Optional[str] = None
    assignee_id: Optional[str] = None
    order_index: int
    created_at: str


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[str] = None


class UpdatePositionRequest(BaseModel):
    column_id: str
    order_index: int


def task_to_schema(task) -> TaskSchema:
    """Convert a Task model to TaskSchema."""
    return TaskSchema(
        id=task.id,
        column_id=task.column_id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        due_date=task.due_date.isoformat() if task.due_date else None,
        assignee_id=task.assignee_id,
        order_index=task.order_index,
        created_at=task.created_at.isoformat(),
    )


def validate_priority(priority: str) -> str:
    try:
        return TaskPriority(priority).value
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid priority: {priority}")


async def validate_assignee(db: AsyncSession, board_id: str, assignee_id: Optional[str]) -> None:
    """Assignees must be members of the task's board."""
    if assignee_id is None:
        return
    if await MemberService(db).get_membership(board_id, assignee_id) is None:
        raise HTTPException(status_code=400, detail="Assignee must be a board member")


@router.get("/{task_id}", response_model=TaskSchema)
async def get_task(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get a single task by ID."""
    task = await require_task(db, task_id, session)
    return task_to_schema(task)


@router.put("/{task_id}", response_model=TaskSchema)
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Update task fields. Fields sent as null are cleared."""
    await require_task(db, task_id, session)

    changes = request.model_dump(exclude_unset=True)
    if "title" in changes:
        if not (changes["title"] or "").strip():
            raise HTTPException(status_code=400, detail="Title is required")
        changes["title"] = changes["title"].strip()
    if "priority" in changes:
        changes["priority"] = validate_priority(changes["priority"] or "")
    if changes.get("assignee_id"):
        board_id = await BoardService(db).get_board_id_for_task(task_id)
        await validate_assignee(db, board_id, changes["assignee_id"])

    task = await TaskService(db).update_task(task_id, **changes)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")

    return task_to_schema(task)


@router.put("/{task_id}/position", response_model=TaskSchema)
async def update_task_position(
    task_id: str,
    request: UpdatePositionRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Set a task's column and order index (one row of a drag-and-drop batch)."""
    await require_task(db, task_id, session)

    if request.order_index < 0:
        raise HTTPException(status_code=400, detail="order_index must not be negative")

    try:
        task = await TaskService(db).update_task_position(
            task_id, request.column_id, request.order_index
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if task is None:
        raise HTTPException(status_code=404, detail="Column not found")

    return task_to_schema(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Delete a task and its subtasks."""
    await require_task(db, task_id, session)

    if not await TaskService(db).delete_task(task_id):
        raise HTTPException(status_code=404, detail="Task not found")

    return {"message": "Task deleted"}
