"""Board access checks shared by the API routes."""

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.board import Board
from ..models.column import Column
from ..models.task import Task
from ..services.auth import Session
from ..services.board import BoardService
from ..services.column import ColumnService
from ..services.task import TaskService


async def require_board(db: AsyncSession, board_id: str, session: Session) -> Board:
    """Load a board the current user may access, or fail with 404."""
    board = await BoardService(db).get_accessible_board(board_id, session.user_id)
    if board is None:
        raise HTTPException(status_code=404, detail="Board not found")
    return board


async def require_owner(db: AsyncSession, board_id: str, session: Session) -> Board:
    """Load a board the current user owns."""
    board = await require_board(db, board_id, session)
    if board.owner_id != session.user_id:
        raise HTTPException(status_code=403, detail="Only the board owner can do this")
    return board


async def require_column(db: AsyncSession, column_id: str, session: Session) -> Column:
    """Load a column on a board the current user may access."""
    column = await ColumnService(db).get_column_by_id(column_id)
    if column is None:
        raise HTTPException(status_code=404, detail="Column not found")

    board_service = BoardService(db)
    if await board_service.get_accessible_board(column.board_id, session.user_id) is None:
        raise HTTPException(status_code=404, detail="Column not found")
    return column


async def require_task(db: AsyncSession, task_id: str, session: Session) -> Task:
    """Load a task on a board the current user may access."""
    task = await TaskService(db).get_task_by_id(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")

    board_service = BoardService(db)
    board_id = await board_service.get_board_id_for_task(task_id)
    if board_id is None or await board_service.get_accessible_board(board_id, session.user_id) is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task
