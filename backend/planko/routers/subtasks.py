"""Subtask API routes, including AI breakdowns."""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db
from ..services.ai_breakdown import AiBreakdownService, AiBreakdownError
from ..services.auth import Session
from ..services.subtask import SubtaskService
from .access import require_task
from .auth import get_current_session


router = APIRouter(prefix="/api", tags=["subtasks"])


class SubtaskSchema(BaseModel):
    id: str
    task_id: str
    title: str
    is_completed: bool
    order_index: int
    created_at: str


class CreateSubtaskRequest(BaseModel):
    title: str


class UpdateSubtaskRequest(BaseModel):
    title: Optional[str] = None
    is_completed: Optional[bool] = None


def subtask_to_schema(subtask) -> SubtaskSchema:
    """Convert a Subtask model to SubtaskSchema."""
    return SubtaskSchema(
        id=subtask.id,
        task_id=subtask.task_id,
        title=subtask.title,
        is_completed=subtask.is_completed,
        order_index=subtask.order_index,
        created_at=subtask.created_at.isoformat(),
    )


def get_ai_breakdown_service() -> AiBreakdownService:
    """Dependency returning the AI breakdown client."""
    return AiBreakdownService()


async def _require_subtask(db: AsyncSession, subtask_id: str, session: Session):
    subtask = await SubtaskService(db).get_subtask_by_id(subtask_id)
    if subtask is None:
        raise HTTPException(status_code=404, detail="Subtask not found")
    await require_task(db, subtask.task_id, session)
    return subtask


@router.get("/tasks/{task_id}/subtasks", response_model=list[SubtaskSchema])
async def get_subtasks(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get a task's subtasks."""
    await require_task(db, task_id, session)
    subtasks = await SubtaskService(db).get_subtasks(task_id)
    return [subtask_to_schema(s) for s in subtasks]


@router.post("/tasks/{task_id}/subtasks", response_model=SubtaskSchema)
async def add_subtask(
    task_id: str,
    request: CreateSubtaskRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Add a subtask to a task."""
    if not request.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")

    await require_task(db, task_id, session)
    subtask = await SubtaskService(db).add_subtask(task_id, request.title.strip())
    return subtask_to_schema(subtask)


@router.post("/tasks/{task_id}/subtasks/generate", response_model=list[SubtaskSchema])
async def generate_subtasks(
    task_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
    ai_service: AiBreakdownService = Depends(get_ai_breakdown_service),
):
    """Ask the AI service for a breakdown and append the suggested subtasks."""
    task = await require_task(db, task_id, session)

    try:
        titles = await ai_service.generate_subtask_titles(task.title, task.description)
    except AiBreakdownError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    finally:
        await ai_service.close()

    subtasks = await SubtaskService(db).add_subtasks(task_id, titles)
    return [subtask_to_schema(s) for s in subtasks]


@router.put("/subtasks/{subtask_id}", response_model=SubtaskSchema)
async def update_subtask(
    subtask_id: str,
    request: UpdateSubtaskRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Rename a subtask or toggle its completion."""
    await _require_subtask(db, subtask_id, session)

    if request.title is not None and not request.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")

    subtask = await SubtaskService(db).update_subtask(
        subtask_id,
        title=request.title.strip() if request.title else None,
        is_completed=request.is_completed,
    )
    if subtask is None:
        raise HTTPException(status_code=404, detail="Subtask not found")

    return subtask_to_schema(subtask)


@router.delete("/subtasks/{subtask_id}")
async def delete_subtask(
    subtask_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Delete a subtask."""
    await _require_subtask(db, subtask_id, session)
    await SubtaskService(db).delete_subtask(subtask_id)
    return {"message": "Subtask deleted"}
