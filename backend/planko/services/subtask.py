"""Subtask service for task checklists."""

from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.subtask import Subtask


class SubtaskService:
    """Service for managing subtasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_subtasks(self, task_id: str) -> list[Subtask]:
        """Get a task's subtasks in order."""
        result = await self.db.execute(
            select(Subtask)
            .where(Subtask.task_id == task_id)
            .order_by(Subtask.order_index, Subtask.created_at)
        )
        return list(result.scalars().all())

    async def get_subtask_by_id(self, subtask_id: str) -> Optional[Subtask]:
        """Get a subtask by ID."""
        result = await self.db.execute(
            select(Subtask).where(Subtask.id == subtask_id)
        )
        return result.scalar_one_or_none()

    async def _next_order_index(self, task_id: str) -> int:
        result = await self.db.execute(
            select(func.max(Subtask.order_index)).where(Subtask.task_id == task_id)
        )
        max_index = result.scalar()
        return 0 if max_index is None else max_index + 1

    async def add_subtask(self, task_id: str, title: str) -> Subtask:
        """Append a subtask to a task."""
        subtask = Subtask(
            task_id=task_id,
            title=title,
            is_completed=False,
            order_index=await self._next_order_index(task_id),
        )
        self.db.add(subtask)
        await self.db.flush()
        return subtask

    async def add_subtasks(self, task_id: str, titles: list[str]) -> list[Subtask]:
        """Append several subtasks, keeping the given order."""
        start = await self._next_order_index(task_id)
        subtasks = [
            Subtask(task_id=task_id, title=title, is_completed=False, order_index=start + i)
            for i, title in enumerate(titles)
        ]
        self.db.add_all(subtasks)
        await self.db.flush()
        return subtasks

    async def update_subtask(
        self,
        subtask_id: str,
        title: Optional[str] = None,
        is_completed: Optional[bool] = None,
    ) -> Optional[Subtask]:
        """Rename a subtask or toggle its completion flag."""
        subtask = await self.get_subtask_by_id(subtask_id)
        if subtask is None:
            return None

        if title is not None:
            subtask.title = title
        if is_completed is not None:
            subtask.is_completed = is_completed

        await self.db.flush()
        return subtask

    async def delete_subtask(self, subtask_id: str) -> bool:
        """Delete a subtask."""
        subtask = await self.get_subtask_by_id(subtask_id)
        if subtask is None:
            return False

        await self.db.delete(subtask)
        await self.db.flush()
        return True
