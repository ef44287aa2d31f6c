"""Persistent store port used by the board reconciler."""

from abc import ABC, abstractmethod

from .snapshot import BoardSnapshot


class StoreError(Exception):
    """A store operation failed."""


class NotFoundError(StoreError):
    """The addressed entity does not exist (or is not visible)."""


class BoardStore(ABC):
    """
    CRUD operations the reconciler needs from the backing store.

    Every method raises ``StoreError`` on failure; the result is otherwise
    success only.
    """

    @abstractmethod
    async def read_board(self, board_id: str) -> BoardSnapshot:
        """Load a board with its columns and tasks ordered by order_index."""

    @abstractmethod
    async def update_task_position(self, task_id: str, column_id: str, order_index: int) -> None:
        """Write a task's column and position."""

    @abstractmethod
    async def delete_column(self, column_id: str) -> None:
        """Delete a column and everything in it."""

    @abstractmethod
    async def delete_task(self, task_id: str) -> None:
        """Delete a task and its subtasks."""

    @abstractmethod
    async def rename_column(self, column_id: str, title: str) -> None:
        """Change a column's title."""

    @abstractmethod
    async def reorder_columns(self, board_id: str, column_ids: list[str]) -> None:
        """Rewrite column order from a full list of column IDs."""

    @abstractmethod
    async def create_column(self, board_id: str, title: str) -> str:
        """Append a column and return its ID."""

    @abstractmethod
    async def create_task(self, column_id: str, title: str) -> str:
        """Append a task to a column and return its ID."""
