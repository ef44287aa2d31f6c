"""Column service for managing board lanes."""

from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.column import Column


class ColumnService:
    """Service for managing board columns."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_columns(self, board_id: str) -> list[Column]:
        """Get a board's columns ordered by order_index."""
        result = await self.db.execute(
            select(Column)
            .where(Column.board_id == board_id)
            .order_by(Column.order_index, Column.created_at)
        )
        return list(result.scalars().all())

    async def get_column_by_id(self, column_id: str) -> Optional[Column]:
        """Get a column by ID."""
        result = await self.db.execute(
            select(Column).where(Column.id == column_id)
        )
        return result.scalar_one_or_none()

    async def create_column(self, board_id: str, title: str) -> Column:
        """Append a new column to the right of the board."""
        result = await self.db.execute(
            select(func.max(Column.order_index)).where(Column.board_id == board_id)
        )
        max_index = result.scalar()
        order_index = 0 if max_index is None else max_index + 1

        column = Column(board_id=board_id, title=title, order_index=order_index)
        self.db.add(column)
        await self.db.flush()
        return column

    async def rename_column(self, column_id: str, title: str) -> Optional[Column]:
        """Rename a column."""
        column = await self.get_column_by_id(column_id)
        if column is None:
            return None

        column.title = title
        await self.db.flush()
        return column

    async def delete_column(self, column_id: str) -> bool:
        """Delete a column and, by cascade, its tasks and their subtasks."""
        column = await self.get_column_by_id(column_id)
        if column is None:
            return False

        board_id = column.board_id
        await self.db.delete(column)
        await self.db.flush()

        # Close the gap left by the deleted column
        for i, sibling in enumerate(await self.get_columns(board_id)):
            sibling.order_index = i
        await self.db.flush()
        return True

    async def reorder_columns(self, board_id: str, column_ids: list[str]) -> list[Column]:
        """
        Rewrite column order from a list of IDs.

        IDs that do not belong to the board are ignored. Columns missing from
        the list keep their relative order after the listed ones, so the
        resulting indices are always 0..n-1.
        """
        columns = await self.get_columns(board_id)
        by_id = {c.id: c for c in columns}

        ordered = []
        for col_id in column_ids:
            column = by_id.pop(col_id, None)
            if column is not None:
                ordered.append(column)
        ordered.extend(c for c in columns if c.id in by_id)

        for i, column in enumerate(ordered):
            column.order_index = i

        await self.db.flush()
        return ordered
