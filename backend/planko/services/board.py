"""Board service for creating boards and loading board details."""

from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.board import Board, BoardMember, MemberRole
from ..models.column import Column
from ..models.task import Task


# Columns every new board starts with
DEFAULT_COLUMNS = [
    {"title": "To Do", "order_index": 0},
    {"title": "In Progress", "order_index": 1},
    {"title": "Done", "order_index": 2},
]


class BoardService:
    """Service for managing boards."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_boards_for_user(self, user_id: str) -> list[Board]:
        """Get boards the user owns or is a member of, newest first."""
        member_boards = select(BoardMember.board_id).where(
            BoardMember.user_id == user_id
        )
        result = await self.db.execute(
            select(Board)
            .where(or_(Board.owner_id == user_id, Board.id.in_(member_boards)))
            .order_by(Board.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_board_by_id(self, board_id: str) -> Optional[Board]:
        """Get a board by ID."""
        result = await self.db.execute(
            select(Board).where(Board.id == board_id)
        )
        return result.scalar_one_or_none()

    async def get_board_details(self, board_id: str) -> Optional[Board]:
        """Get a board with its columns and tasks, each ordered by order_index."""
        result = await self.db.execute(
            select(Board)
            .options(selectinload(Board.columns).selectinload(Column.tasks))
            .where(Board.id == board_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def user_can_access(self, board: Board, user_id: str) -> bool:
        """Check whether a user owns the board or is one of its members."""
        if board.owner_id == user_id:
            return True

        result = await self.db.execute(
            select(BoardMember.id).where(
                BoardMember.board_id == board.id,
                BoardMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def get_accessible_board(self, board_id: str, user_id: str) -> Optional[Board]:
        """Get a board only if the user may see it."""
        board = await self.get_board_by_id(board_id)
        if board is None or not await self.user_can_access(board, user_id):
            return None
        return board

    async def create_board(self, title: str, owner_id: str) -> Board:
        """Create a board, register the owner as a member and seed default columns."""
        board = Board(title=title, owner_id=owner_id)
        self.db.add(board)
        await self.db.flush()

        self.db.add(
            BoardMember(board_id=board.id, user_id=owner_id, role=MemberRole.OWNER.value)
        )
        for col_data in DEFAULT_COLUMNS:
            self.db.add(Column(board_id=board.id, **col_data))

        await self.db.flush()
        return board

    async def rename_board(self, board_id: str, title: str) -> Optional[Board]:
        """Rename a board."""
        board = await self.get_board_by_id(board_id)
        if board is None:
            return None

        board.title = title
        await self.db.flush()
        return board

    async def delete_board(self, board_id: str) -> bool:
        """Delete a board together with its columns, tasks, members and invites."""
        board = await self.get_board_by_id(board_id)
        if board is None:
            return False

        await self.db.delete(board)
        await self.db.flush()
        return True

    async def get_board_id_for_column(self, column_id: str) -> Optional[str]:
        """Resolve the board that owns a column."""
        result = await self.db.execute(
            select(Column.board_id).where(Column.id == column_id)
        )
        return result.scalar_one_or_none()

    async def get_board_id_for_task(self, task_id: str) -> Optional[str]:
        """Resolve the board that owns a task."""
        result = await self.db.execute(
            select(Column.board_id)
            .join(Task, Task.column_id == Column.id)
            .where(Task.id == task_id)
        )
        return result.scalar_one_or_none()
