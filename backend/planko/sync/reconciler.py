"""
Board ordering reconciler.

Keeps the locally displayed board consistent with the store: changes are
published to the cache immediately (optimistic update), written to the
store in the background, and then superseded by a fresh read. When a write
fails the optimistic state is thrown away and the board is reloaded.

Known limitation: moves rewrite whole columns and the store applies them
row by row, so two clients reordering the same column at once end up with
whichever rows were written last. Nothing here detects that.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, Optional

from ..config import get_config
from .cache import InMemoryQueryCache, QueryCache, QueryState
from .filters import NO_FILTER, TaskFilter, filter_board
from .notifier import Notifier
from .snapshot import (
    BoardSnapshot,
    MoveDescriptor,
    MovePlan,
    plan_column_move,
    plan_move,
    without_column,
    without_task,
)
from .stats import BoardStats, compute_board_stats
from .store import BoardStore, StoreError

logger = logging.getLogger(__name__)

# Busy token for operations that change column order
COLUMN_ORDER = "__column_order__"

BoardListener = Callable[[Optional[BoardSnapshot], Optional[Exception]], None]


class BoardReconciler:
    """Optimistic board state for one board, backed by a store and a query cache."""

    def __init__(
        self,
        board_id: str,
        store: BoardStore,
        cache: Optional[QueryCache] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.board_id = board_id
        self.store = store
        self.cache = cache or InMemoryQueryCache()
        self.notifier = notifier or Notifier()
        self.key = ("board", board_id)

        self._filter: TaskFilter = NO_FILTER
        self._busy: set[str] = set()
        self._pending: set[asyncio.Task] = set()

        self.cache.register(self.key, self._fetch_board)

    async def _fetch_board(self) -> BoardSnapshot:
        return await self.store.read_board(self.board_id)

    # Observable state

    @property
    def board(self) -> Optional[BoardSnapshot]:
        return self.cache.get(self.key)

    @property
    def error(self) -> Optional[Exception]:
        return self.cache.get_state(self.key).error

    def subscribe(self, listener: BoardListener) -> Callable[[], None]:
        """Call ``listener(board, error)`` on every optimistic or confirmed change."""

        def on_change(_key, state: QueryState) -> None:
            listener(state.data, state.error)

        return self.cache.subscribe(self.key, on_change)

    def stats(self) -> Optional[BoardStats]:
        board = self.board
        return compute_board_stats(board) if board else None

    # Loading

    async def load(self) -> Optional[BoardSnapshot]:
        """Load the board from the store. Returns None if the read failed."""
        if not await self.refresh():
            self.notifier.error("Failed to load board", self.error)
            return None
        return self.board

    async def refresh(self) -> bool:
        """Force a refetch from the store."""
        return await self.cache.invalidate(self.key)

    def start_polling(self, interval: Optional[float] = None) -> None:
        """Refresh the board periodically. Poll results never clobber pending writes."""
        if interval is None:
            interval = get_config().sync.poll_interval_seconds
        self.cache.start_polling(self.key, interval)

    async def stop_polling(self) -> None:
        await self.cache.stop_polling(self.key)

    async def wait_idle(self) -> None:
        """Wait until every write started so far has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.stop_polling()
        await self.wait_idle()

    # Filtering

    @property
    def task_filter(self) -> TaskFilter:
        return self._filter

    def set_filter(self, task_filter: TaskFilter) -> None:
        self._filter = task_filter

    def clear_filters(self) -> None:
        self._filter = NO_FILTER

    @property
    def drag_enabled(self) -> bool:
        return not self._filter.is_active

    def filtered_board(self) -> Optional[BoardSnapshot]:
        board = self.board
        return filter_board(board, self._filter) if board else None

    def is_column_busy(self, column_id: str) -> bool:
        return column_id in self._busy

    # Mutations

    def apply_move(self, move: MoveDescriptor) -> Optional[asyncio.Task]:
        """
        Move a task as described by a drag gesture.

        The new order is visible immediately; the returned task resolves to
        True once the store confirmed it, or False after a rollback. Returns
        None when the move was ignored: filters active, cancelled or no-op
        gesture, malformed descriptor, or a write still pending on one of
        the columns involved.
        """
        if not self.drag_enabled:
            logger.debug("Ignoring move while filters are active")
            return None

        board = self.board
        if board is None:
            return None

        plan = plan_move(board, move)
        if plan is None:
            return None

        if self._busy & plan.columns:
            logger.info(f"Dropping move of task {plan.task_id}: column write in progress")
            return None

        return self._start(
            board,
            plan.snapshot,
            plan.columns,
            lambda: self._persist_batch(plan),
            "Failed to move task",
        )

    async def _persist_batch(self, plan: MovePlan) -> None:
        # One logical unit: the first failed write fails the whole move
        for update in plan.batch:
            await self.store.update_task_position(
                update.task_id, update.column_id, update.order_index
            )
        logger.debug(f"Persisted move of task {plan.task_id} ({len(plan.batch)} writes)")

    def move_column(self, source_index: int, destination_index: int) -> Optional[asyncio.Task]:
        """Move a column left or right and rewrite column order."""
        if not self.drag_enabled or self.board is None:
            return None
        if COLUMN_ORDER in self._busy:
            return None

        board = self.board
        optimistic = plan_column_move(board, source_index, destination_index)
        if optimistic is None:
            return None

        column_ids = [c.id for c in optimistic.columns]
        return self._start(
            board,
            optimistic,
            {COLUMN_ORDER},
            lambda: self.store.reorder_columns(self.board_id, column_ids),
            "Failed to move column",
        )

    def rename_column(self, column_id: str, title: str) -> Optional[asyncio.Task]:
        board = self.board
        column = board.get_column(column_id) if board else None
        if column is None or not title.strip() or column_id in self._busy:
            return None

        optimistic = board.replace_columns(replace(column, title=title.strip()))
        return self._start(
            board,
            optimistic,
            {column_id},
            lambda: self.store.rename_column(column_id, title.strip()),
            "Failed to rename column",
        )

    def delete_column(self, column_id: str) -> Optional[asyncio.Task]:
        board = self.board
        if board is None or board.get_column(column_id) is None:
            return None
        if self._busy & {column_id, COLUMN_ORDER}:
            return None

        return self._start(
            board,
            without_column(board, column_id),
            {column_id, COLUMN_ORDER},
            lambda: self.store.delete_column(column_id),
            "Failed to delete column",
        )

    def delete_task(self, task_id: str) -> Optional[asyncio.Task]:
        board = self.board
        task = board.find_task(task_id) if board else None
        if task is None or task.column_id in self._busy:
            return None

        return self._start(
            board,
            without_task(board, task_id),
            {task.column_id},
            lambda: self.store.delete_task(task_id),
            "Failed to delete task",
        )

    async def add_column(self, title: str) -> Optional[str]:
        """Append a column. Not optimistic: the board refreshes once it exists."""
        if not title.strip():
            return None
        return await self._create(
            lambda: self.store.create_column(self.board_id, title.strip()),
            "Failed to add column",
        )

    async def add_task(self, column_id: str, title: str) -> Optional[str]:
        """Append a task to a column."""
        if not title.strip():
            return None
        return await self._create(
            lambda: self.store.create_task(column_id, title.strip()),
            "Failed to add task",
        )

    async def _create(self, create: Callable[[], Awaitable[str]], failure_message: str) -> Optional[str]:
        try:
            new_id = await create()
        except StoreError as e:
            self.notifier.error(failure_message, e)
            return None

        if not self.cache.is_held(self.key):
            await self.cache.refetch_in_background(self.key)
        return new_id

    # Optimistic apply / confirm-or-rollback

    def _start(
        self,
        previous: BoardSnapshot,
        optimistic: BoardSnapshot,
        busy: set[str],
        persist: Callable[[], Awaitable[None]],
        failure_message: str,
    ) -> asyncio.Task:
        loop = asyncio.get_running_loop()

        self._busy |= busy
        self.cache.hold(self.key)
        self.cache.set(self.key, optimistic)

        task = loop.create_task(self._settle(previous, busy, persist, failure_message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _settle(
        self,
        previous: BoardSnapshot,
        busy: set[str],
        persist: Callable[[], Awaitable[None]],
        failure_message: str,
    ) -> bool:
        try:
            try:
                await persist()
                succeeded = True
            except StoreError as e:
                self.notifier.error(failure_message, e)
                succeeded = False
            except Exception as e:
                logger.error(f"Unexpected store error for board {self.board_id}: {e}")
                self.notifier.error(failure_message, e)
                succeeded = False
            finally:
                self.cache.release(self.key)

            if self.cache.is_held(self.key):
                # Another write is still pending; it refreshes when it settles
                logger.debug("Deferring board refresh until pending writes settle")
                return succeeded

            if not succeeded:
                self.cache.set(self.key, previous)
            # A write started while this read runs makes its result stale
            await self.cache.refetch_in_background(self.key)
            return succeeded
        finally:
            self._busy -= busy

