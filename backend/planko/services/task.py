"""Task service for kanban board operations."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.column import Column
from ..models.task import Task, TaskPriority


# Fields a caller may change through update_task
UPDATABLE_FIELDS = {"title", "description", "priority", "due_date", "assignee_id"}


class TaskService:
    """Service for managing kanban tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_tasks_for_column(self, column_id: str) -> list[Task]:
        """Get a column's tasks in display order."""
        result = await self.db.execute(
            select(Task)
            .where(Task.column_id == column_id)
            .order_by(Task.order_index, Task.created_at)
        )
        return list(result.scalars().all())

    async def get_task_by_id(self, task_id: str) -> Optional[Task]:
        """Get a single task by ID."""
        result = await self.db.execute(
            select(Task).where(Task.id == task_id)
        )
        return result.scalar_one_or_none()

    async def create_task(
        self,
        column_id: str,
        title: str,
        description: Optional[str] = None,
        priority: str = TaskPriority.MEDIUM.value,
        due_date: Optional[datetime] = None,
        assignee_id: Optional[str] = None,
    ) -> Task:
        """Append a new task to the bottom of a column."""
        result = await self.db.execute(
            select(func.max(Task.order_index)).where(Task.column_id == column_id)
        )
        max_index = result.scalar()
        order_index = 0 if max_index is None else max_index + 1

        task = Task(
            column_id=column_id,
            title=title,
            description=description,
            priority=priority,
            due_date=due_date,
            assignee_id=assignee_id,
            order_index=order_index,
        )
        self.db.add(task)
        await self.db.flush()
        return task

    async def update_task(self, task_id: str, **changes: Any) -> Optional[Task]:
        """
        Update task fields.

        Only keys present in ``changes`` are written, so passing
        ``description=None`` clears the description.
        """
        task = await self.get_task_by_id(task_id)
        if task is None:
            return None

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {', '.join(sorted(unknown))}")

        for name, value in changes.items():
            setattr(task, name, value)

        await self.db.flush()
        return task

    async def update_task_position(
        self, task_id: str, column_id: str, order_index: int
    ) -> Optional[Task]:
        """
        Set a task's column and position in one write.

        The destination column must belong to the same board as the task's
        current column. Returns None if the task or column does not exist.
        """
        task = await self.get_task_by_id(task_id)
        if task is None:
            return None

        if column_id != task.column_id:
            result = await self.db.execute(
                select(Column.id, Column.board_id).where(
                    Column.id.in_([column_id, task.column_id])
                )
            )
            boards = {row.id: row.board_id for row in result}
            if column_id not in boards:
                return None
            if boards[column_id] != boards.get(task.column_id):
                raise ValueError("Tasks cannot be moved between boards")

        task.column_id = column_id
        task.order_index = order_index
        await self.db.flush()
        return task

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task and its subtasks, closing the gap in its column."""
        task = await self.get_task_by_id(task_id)
        if task is None:
            return False

        column_id = task.column_id
        await self.db.delete(task)
        await self.db.flush()

        for i, sibling in enumerate(await self.get_tasks_for_column(column_id)):
            sibling.order_index = i
        await self.db.flush()
        return True
