"""Board store that writes straight to the database through the service layer."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.board import Board
from ..services.board import BoardService
from ..services.column import ColumnService
from ..services.task import TaskService
from .snapshot import BoardSnapshot, ColumnWithTasks, TaskRecord
from .store import BoardStore, NotFoundError, StoreError

logger = logging.getLogger(__name__)


def board_to_snapshot(board: Board) -> BoardSnapshot:
    """Convert a board loaded with columns and tasks into a snapshot."""
    return BoardSnapshot(
        id=board.id,
        title=board.title,
        owner_id=board.owner_id,
        created_at=board.created_at,
        columns=tuple(
            ColumnWithTasks(
                id=column.id,
                board_id=column.board_id,
                title=column.title,
                order_index=column.order_index,
                created_at=column.created_at,
                tasks=tuple(
                    TaskRecord(
                        id=task.id,
                        column_id=task.column_id,
                        title=task.title,
                        order_index=task.order_index,
                        description=task.description,
                        priority=task.priority,
                        due_date=task.due_date,
                        assignee_id=task.assignee_id,
                        created_at=task.created_at,
                    )
                    for task in sorted(column.tasks, key=lambda t: t.order_index)
                ),
            )
            for column in sorted(board.columns, key=lambda c: c.order_index)
        ),
    )


class SqlBoardStore(BoardStore):
    """Runs every operation in its own session and transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as db:
                try:
                    yield db
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}")
            raise StoreError(str(e)) from e
        except ValueError as e:
            raise StoreError(str(e)) from e

    async def read_board(self, board_id: str) -> BoardSnapshot:
        async with self._session() as db:
            board = await BoardService(db).get_board_details(board_id)
            if board is None:
                raise NotFoundError(f"Board {board_id} not found")
            return board_to_snapshot(board)

    async def update_task_position(self, task_id: str, column_id: str, order_index: int) -> None:
        async with self._session() as db:
            task = await TaskService(db).update_task_position(task_id, column_id, order_index)
            if task is None:
                raise NotFoundError(f"Task {task_id} or column {column_id} not found")

    async def delete_column(self, column_id: str) -> None:
        async with self._session() as db:
            if not await ColumnService(db).delete_column(column_id):
                raise NotFoundError(f"Column {column_id} not found")

    async def delete_task(self, task_id: str) -> None:
        async with self._session() as db:
            if not await TaskService(db).delete_task(task_id):
                raise NotFoundError(f"Task {task_id} not found")

    async def rename_column(self, column_id: str, title: str) -> None:
        async with self._session() as db:
            if await ColumnService(db).rename_column(column_id, title) is None:
                raise NotFoundError(f"Column {column_id} not found")

    async def reorder_columns(self, board_id: str, column_ids: list[str]) -> None:
        async with self._session() as db:
            await ColumnService(db).reorder_columns(board_id, column_ids)

    async def create_column(self, board_id: str, title: str) -> str:
        async with self._session() as db:
            if await BoardService(db).get_board_by_id(board_id) is None:
                raise NotFoundError(f"Board {board_id} not found")
            column = await ColumnService(db).create_column(board_id, title)
            return column.id

    async def create_task(self, column_id: str, title: str) -> str:
        async with self._session() as db:
            if await ColumnService(db).get_column_by_id(column_id) is None:
                raise NotFoundError(f"Column {column_id} not found")
            task = await TaskService(db).create_task(column_id, title)
            return task.id
