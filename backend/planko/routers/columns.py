"""Column API routes."""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db
from ..models.task import TaskPriority
from ..services.auth import Session
from ..services.column import ColumnService
from ..services.task import TaskService
from .access import require_column
from .auth import get_current_session
from .tasks import TaskSchema, task_to_schema, validate_assignee, validate_priority


router = APIRouter(prefix="/api/columns", tags=["columns"])


class ColumnSchema(BaseModel):
    id: str
    board_id: str
    title: str
    order_index: int
    created_at: str


class UpdateColumnRequest(BaseModel):
    title: str


class CreateTaskRequest(BaseModel):
    title: str
    description: Optional[str] = None
    priority: str = TaskPriority.MEDIUM.value
    due_date: Optional[datetime] = None
    assignee_id: Optional[str] = None


def column_to_schema(column) -> ColumnSchema:
    """Convert a Column model to ColumnSchema."""
    return ColumnSchema(
        id=column.id,
        board_id=column.board_id,
        title=column.title,
        order_index=column.order_index,
        created_at=column.created_at.isoformat(),
    )


@router.put("/{column_id}", response_model=ColumnSchema)
async def rename_column(
    column_id: str,
    request: UpdateColumnRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Rename a column."""
    if not request.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")

    await require_column(db, column_id, session)
    column = await ColumnService(db).rename_column(column_id, request.title.strip())
    if column is None:
        raise HTTPException(status_code=404, detail="Column not found")

    return column_to_schema(column)


@router.delete("/{column_id}")
async def delete_column(
    column_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Delete a column with all of its tasks."""
    await require_column(db, column_id, session)

    if not await ColumnService(db).delete_column(column_id):
        raise HTTPException(status_code=404, detail="Column not found")

    return {"message": "Column deleted"}


@router.post("/{column_id}/tasks", response_model=TaskSchema)
async def create_task(
    column_id: str,
    request: CreateTaskRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Append a task to a column."""
    if not request.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")

    column = await require_column(db, column_id, session)
    await validate_assignee(db, column.board_id, request.assignee_id)

    task = await TaskService(db).create_task(
        column_id=column_id,
        title=request.title.strip(),
        description=request.description,
        priority=validate_priority(request.priority),
        due_date=request.due_date,
        assignee_id=request.assignee_id,
    )
    return task_to_schema(task)
