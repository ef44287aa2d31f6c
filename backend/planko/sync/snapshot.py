"""
In-memory positional model of a board.

Snapshots are immutable: every change produces a new ``BoardSnapshot`` so an
optimistic state can be published and later thrown away without touching
the state it was derived from.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class TaskRecord:
    """A task as positioned on the board."""

    id: str
    column_id: str
    title: str
    order_index: int
    description: Optional[str] = None
    priority: str = "medium"
    due_date: Optional[datetime] = None
    assignee_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TaskRecord":
        return cls(
            id=data["id"],
            column_id=data["column_id"],
            title=data["title"],
            order_index=data["order_index"],
            description=data.get("description"),
            priority=data.get("priority") or "medium",
            due_date=_parse_datetime(data.get("due_date")),
            assignee_id=data.get("assignee_id"),
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass(frozen=True)
class ColumnWithTasks:
    """A column together with its tasks in display order."""

    id: str
    board_id: str
    title: str
    order_index: int
    tasks: tuple[TaskRecord, ...] = ()
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ColumnWithTasks":
        tasks = sorted(
            (TaskRecord.from_dict(t) for t in data.get("tasks", [])),
            key=lambda t: t.order_index,
        )
        return cls(
            id=data["id"],
            board_id=data["board_id"],
            title=data["title"],
            order_index=data["order_index"],
            tasks=tuple(tasks),
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass(frozen=True)
class BoardSnapshot:
    """A board with all of its columns and tasks."""

    id: str
    title: str
    owner_id: str
    columns: tuple[ColumnWithTasks, ...] = ()
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "BoardSnapshot":
        columns = sorted(
            (ColumnWithTasks.from_dict(c) for c in data.get("columns", [])),
            key=lambda c: c.order_index,
        )
        return cls(
            id=data["id"],
            title=data["title"],
            owner_id=data["owner_id"],
            columns=tuple(columns),
            created_at=_parse_datetime(data.get("created_at")),
        )

    def column_position(self, column_id: str) -> Optional[int]:
        for i, column in enumerate(self.columns):
            if column.id == column_id:
                return i
        return None

    def get_column(self, column_id: str) -> Optional[ColumnWithTasks]:
        position = self.column_position(column_id)
        return None if position is None else self.columns[position]

    def find_task(self, task_id: str) -> Optional[TaskRecord]:
        for column in self.columns:
            for task in column.tasks:
                if task.id == task_id:
                    return task
        return None

    def all_tasks(self) -> list[TaskRecord]:
        return [task for column in self.columns for task in column.tasks]

    def replace_columns(self, *changed: ColumnWithTasks) -> "BoardSnapshot":
        """Return a copy with the given columns swapped in by ID."""
        by_id = {c.id: c for c in changed}
        return replace(self, columns=tuple(by_id.get(c.id, c) for c in self.columns))


@dataclass(frozen=True)
class MoveDescriptor:
    """A drag gesture moving one task between positions."""

    source_column_id: str
    source_index: int
    # None when the task was dropped outside any column
    destination_column_id: Optional[str] = None
    destination_index: Optional[int] = None

    @property
    def is_cancelled(self) -> bool:
        return self.destination_column_id is None or self.destination_index is None

    @property
    def is_noop(self) -> bool:
        return (
            self.source_column_id == self.destination_column_id
            and self.source_index == self.destination_index
        )


@dataclass(frozen=True)
class PositionUpdate:
    """One row of a persistence batch."""

    task_id: str
    column_id: str
    order_index: int


@dataclass(frozen=True)
class MovePlan:
    """Result of applying a move to a snapshot."""

    snapshot: BoardSnapshot
    task_id: str
    batch: tuple[PositionUpdate, ...]
    columns: frozenset[str] = field(default_factory=frozenset)


def reindex(tasks: list[TaskRecord], column_id: str) -> tuple[TaskRecord, ...]:
    """Rewrite column and order_index so they match list positions."""
    return tuple(
        task if task.column_id == column_id and task.order_index == i
        else replace(task, column_id=column_id, order_index=i)
        for i, task in enumerate(tasks)
    )


def plan_move(snapshot: BoardSnapshot, move: MoveDescriptor) -> Optional[MovePlan]:
    """
    Compute the snapshot and persistence batch for a task move.

    Returns None for cancelled, no-op and malformed moves. The batch covers
    every task in the destination column and, for cross-column moves, every
    task left in the source column.
    """
    if move.is_cancelled or move.is_noop:
        return None

    source = snapshot.get_column(move.source_column_id)
    destination = snapshot.get_column(move.destination_column_id)
    if source is None or destination is None:
        logger.debug(f"Ignoring move with unknown column: {move}")
        return None

    if not 0 <= move.source_index < len(source.tasks):
        logger.debug(f"Ignoring move with out-of-range source index: {move}")
        return None

    source_tasks = list(source.tasks)
    moved = source_tasks.pop(move.source_index)

    same_column = source.id == destination.id
    destination_tasks = source_tasks if same_column else list(destination.tasks)
    index = min(max(move.destination_index, 0), len(destination_tasks))
    destination_tasks.insert(index, moved)

    new_destination = replace(
        destination, tasks=reindex(destination_tasks, destination.id)
    )
    batch = [
        PositionUpdate(task.id, destination.id, task.order_index)
        for task in new_destination.tasks
    ]
    changed = [new_destination]

    if not same_column:
        new_source = replace(source, tasks=reindex(source_tasks, source.id))
        batch.extend(
            PositionUpdate(task.id, source.id, task.order_index)
            for task in new_source.tasks
        )
        changed.append(new_source)

    return MovePlan(
        snapshot=snapshot.replace_columns(*changed),
        task_id=moved.id,
        batch=tuple(batch),
        columns=frozenset({source.id, destination.id}),
    )


def plan_column_move(
    snapshot: BoardSnapshot, source_index: int, destination_index: int
) -> Optional[BoardSnapshot]:
    """Move a column to a new position and rewrite column indices."""
    if source_index == destination_index:
        return None
    if not 0 <= source_index < len(snapshot.columns):
        return None

    columns = list(snapshot.columns)
    moved = columns.pop(source_index)
    columns.insert(min(max(destination_index, 0), len(columns)), moved)

    return replace(
        snapshot,
        columns=tuple(
            c if c.order_index == i else replace(c, order_index=i)
            for i, c in enumerate(columns)
        ),
    )


def without_column(snapshot: BoardSnapshot, column_id: str) -> BoardSnapshot:
    """Drop a column and close the gap in column indices."""
    remaining = [c for c in snapshot.columns if c.id != column_id]
    return replace(
        snapshot,
        columns=tuple(replace(c, order_index=i) for i, c in enumerate(remaining)),
    )


def without_task(snapshot: BoardSnapshot, task_id: str) -> BoardSnapshot:
    """Drop a task and close the gap in its column."""
    task = snapshot.find_task(task_id)
    if task is None:
        return snapshot

    column = snapshot.get_column(task.column_id)
    tasks = [t for t in column.tasks if t.id != task_id]
    return snapshot.replace_columns(replace(column, tasks=reindex(tasks, column.id)))
