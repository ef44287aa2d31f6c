"""Board API routes."""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db
from ..services.auth import Session
from ..services.board import BoardService
from ..services.column import ColumnService
from ..sync.sql_store import board_to_snapshot
from ..sync.stats import compute_board_stats
from .access import require_board, require_owner
from .auth import get_current_session
from .columns import ColumnSchema, column_to_schema
from .tasks import TaskSchema, task_to_schema


router = APIRouter(prefix="/api/boards", tags=["boards"])


class BoardSchema(BaseModel):
    id: str
    title: str
    owner_id: str
    created_at: str


class ColumnWithTasksSchema(ColumnSchema):
    tasks: list[TaskSchema]


class BoardDetailsSchema(BoardSchema):
    columns: list[ColumnWithTasksSchema]


class BoardTitleRequest(BaseModel):
    title: str


class CreateColumnRequest(BaseModel):
    title: str


class ReorderColumnsRequest(BaseModel):
    column_ids: list[str]


class ColumnCountSchema(BaseModel):
    column_id: str
    title: str
    count: int


class BoardStatsSchema(BaseModel):
    total: int
    tasks_per_column: list[ColumnCountSchema]
    priorities: dict[str, int]
    completed: int
    completion_rate: int


def board_to_schema(board) -> BoardSchema:
    """Convert a Board model to BoardSchema."""
    return BoardSchema(
        id=board.id,
        title=board.title,
        owner_id=board.owner_id,
        created_at=board.created_at.isoformat(),
    )


def board_to_details(board) -> BoardDetailsSchema:
    """Convert a Board loaded with columns and tasks to BoardDetailsSchema."""
    return BoardDetailsSchema(
        **board_to_schema(board).model_dump(),
        columns=[
            ColumnWithTasksSchema(
                **column_to_schema(column).model_dump(),
                tasks=[task_to_schema(t) for t in column.tasks],
            )
            for column in board.columns
        ],
    )


def _require_title(title: str) -> str:
    if not title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    return title.strip()


@router.get("", response_model=list[BoardSchema])
async def get_boards(
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get boards the current user owns or belongs to, newest first."""
    boards = await BoardService(db).get_boards_for_user(session.user_id)
    return [board_to_schema(b) for b in boards]


@router.post("", response_model=BoardSchema)
async def create_board(
    request: BoardTitleRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Create a board owned by the current user."""
    board = await BoardService(db).create_board(_require_title(request.title), session.user_id)
    return board_to_schema(board)


@router.get("/{board_id}", response_model=BoardDetailsSchema)
async def get_board(
    board_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get a board with its columns and tasks ordered by order_index."""
    await require_board(db, board_id, session)
    board = await BoardService(db).get_board_details(board_id)
    return board_to_details(board)


@router.put("/{board_id}", response_model=BoardSchema)
async def rename_board(
    board_id: str,
    request: BoardTitleRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Rename a board (owner only)."""
    title = _require_title(request.title)
    await require_owner(db, board_id, session)
    board = await BoardService(db).rename_board(board_id, title)
    return board_to_schema(board)


@router.delete("/{board_id}")
async def delete_board(
    board_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Delete a board and everything on it (owner only)."""
    await require_owner(db, board_id, session)
    await BoardService(db).delete_board(board_id)
    return {"message": "Board deleted"}


@router.get("/{board_id}/stats", response_model=BoardStatsSchema)
async def get_board_stats(
    board_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get task totals, priority breakdown and completion rate."""
    await require_board(db, board_id, session)
    board = await BoardService(db).get_board_details(board_id)
    stats = compute_board_stats(board_to_snapshot(board))

    return BoardStatsSchema(
        total=stats.total,
        tasks_per_column=[
            ColumnCountSchema(column_id=c.column_id, title=c.title, count=c.count)
            for c in stats.tasks_per_column
        ],
        priorities=stats.priorities,
        completed=stats.completed,
        completion_rate=stats.completion_rate,
    )


@router.post("/{board_id}/columns", response_model=ColumnSchema)
async def create_column(
    board_id: str,
    request: CreateColumnRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Append a column to the board."""
    title = _require_title(request.title)
    await require_board(db, board_id, session)
    column = await ColumnService(db).create_column(board_id, title)
    return column_to_schema(column)


@router.post("/{board_id}/columns/reorder", response_model=list[ColumnSchema])
async def reorder_columns(
    board_id: str,
    request: ReorderColumnsRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Reorder columns by providing the new order of IDs."""
    await require_board(db, board_id, session)
    columns = await ColumnService(db).reorder_columns(board_id, request.column_ids)
    return [column_to_schema(c) for c in columns]
