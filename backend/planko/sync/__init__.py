"""Client-side board state: snapshots, query cache, stores and the reconciler."""

from .cache import InMemoryQueryCache, QueryCache, QueryState
from .filters import NO_FILTER, TaskFilter, filter_board
from .http_store import HttpBoardStore
from .notifier import Notification, NotificationLevel, Notifier
from .reconciler import BoardReconciler
from .snapshot import (
    BoardSnapshot,
    ColumnWithTasks,
    MoveDescriptor,
    MovePlan,
    PositionUpdate,
    TaskRecord,
    plan_move,
)
from .sql_store import SqlBoardStore
from .stats import BoardStats, compute_board_stats
from .store import BoardStore, NotFoundError, StoreError

__all__ = [
    "InMemoryQueryCache",
    "QueryCache",
    "QueryState",
    "NO_FILTER",
    "TaskFilter",
    "filter_board",
    "HttpBoardStore",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "BoardReconciler",
    "BoardSnapshot",
    "ColumnWithTasks",
    "MoveDescriptor",
    "MovePlan",
    "PositionUpdate",
    "TaskRecord",
    "plan_move",
    "SqlBoardStore",
    "BoardStats",
    "compute_board_stats",
    "BoardStore",
    "NotFoundError",
    "StoreError",
]
