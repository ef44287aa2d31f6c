"""Test doubles and builders shared across test modules."""

import asyncio
from dataclasses import replace
from typing import Optional

import httpx

from planko.sync.snapshot import (
    BoardSnapshot,
    ColumnWithTasks,
    TaskRecord,
    without_column,
    without_task,
)
from planko.sync.store import BoardStore, NotFoundError, StoreError


def make_board(layout: dict[str, list[str]], board_id: str = "board-1") -> BoardSnapshot:
    """Build a snapshot from {column_id: [task_id, ...]} in display order."""
    return BoardSnapshot(
        id=board_id,
        title="Board",
        owner_id="user-1",
        columns=tuple(
            ColumnWithTasks(
                id=column_id,
                board_id=board_id,
                title=column_id.title(),
                order_index=i,
                tasks=tuple(
                    TaskRecord(id=task_id, column_id=column_id, title=f"Task {task_id}", order_index=j)
                    for j, task_id in enumerate(task_ids)
                ),
            )
            for i, (column_id, task_ids) in enumerate(layout.items())
        ),
    )


def layout_of(snapshot: BoardSnapshot) -> dict[str, list[str]]:
    return {c.id: [t.id for t in c.tasks] for c in snapshot.columns}


def assert_dense(snapshot: BoardSnapshot) -> None:
    assert [c.order_index for c in snapshot.columns] == list(range(len(snapshot.columns)))
    for column in snapshot.columns:
        assert [t.order_index for t in column.tasks] == list(range(len(column.tasks)))
        assert all(t.column_id == column.id for t in column.tasks)


class FakeBoardStore(BoardStore):
    """
    In-memory store recording every call.

    Writes can be made to fail by method name and can be held at a gate to
    keep them in flight. Reads take their snapshot first and can then be
    held at ``read_gate``, like a response that is already on the wire.
    """

    def __init__(self, snapshot: BoardSnapshot):
        self.snapshot = snapshot
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self.gate: Optional[asyncio.Event] = None
        self.read_gate: Optional[asyncio.Event] = None
        self.reads = 0
        self._next_id = 0

    async def _write(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.gate is not None:
            await self.gate.wait()
        if name in self.fail_on:
            raise StoreError(f"{name} failed")

    def writes(self, name: str) -> list[tuple]:
        return [c[1:] for c in self.calls if c[0] == name]

    async def read_board(self, board_id: str) -> BoardSnapshot:
        self.reads += 1
        snapshot = self.snapshot
        if self.read_gate is not None:
            await self.read_gate.wait()
        if "read_board" in self.fail_on:
            raise StoreError("read failed")
        if board_id != snapshot.id:
            raise NotFoundError(f"Board {board_id} not found")
        return snapshot

    async def update_task_position(self, task_id: str, column_id: str, order_index: int) -> None:
        await self._write("update_task_position", task_id, column_id, order_index)

        task = self.snapshot.find_task(task_id)
        moved = replace(task, column_id=column_id, order_index=order_index)
        columns = []
        for column in self.snapshot.columns:
            tasks = [t for t in column.tasks if t.id != task_id]
            if column.id == column_id:
                tasks.append(moved)
            columns.append(replace(column, tasks=tuple(sorted(tasks, key=lambda t: t.order_index))))
        self.snapshot = replace(self.snapshot, columns=tuple(columns))

    async def delete_column(self, column_id: str) -> None:
        await self._write("delete_column", column_id)
        self.snapshot = without_column(self.snapshot, column_id)

    async def delete_task(self, task_id: str) -> None:
        await self._write("delete_task", task_id)
        self.snapshot = without_task(self.snapshot, task_id)

    async def rename_column(self, column_id: str, title: str) -> None:
        await self._write("rename_column", column_id, title)
        column = self.snapshot.get_column(column_id)
        self.snapshot = self.snapshot.replace_columns(replace(column, title=title))

    async def reorder_columns(self, board_id: str, column_ids: list[str]) -> None:
        await self._write("reorder_columns", board_id, list(column_ids))
        by_id = {c.id: c for c in self.snapshot.columns}
        self.snapshot = replace(
            self.snapshot,
            columns=tuple(replace(by_id[c], order_index=i) for i, c in enumerate(column_ids)),
        )

    async def create_column(self, board_id: str, title: str) -> str:
        await self._write("create_column", board_id, title)
        self._next_id += 1
        column = ColumnWithTasks(
            id=f"new-column-{self._next_id}",
            board_id=board_id,
            title=title,
            order_index=len(self.snapshot.columns),
        )
        self.snapshot = replace(self.snapshot, columns=self.snapshot.columns + (column,))
        return column.id

    async def create_task(self, column_id: str, title: str) -> str:
        await self._write("create_task", column_id, title)
        self._next_id += 1
        column = self.snapshot.get_column(column_id)
        task = TaskRecord(
            id=f"new-task-{self._next_id}",
            column_id=column_id,
            title=title,
            order_index=len(column.tasks),
        )
        self.snapshot = self.snapshot.replace_columns(replace(column, tasks=column.tasks + (task,)))
        return task.id


async def signup(client: httpx.AsyncClient, email: str, password: str = "password123") -> dict:
    """Register an account through the API; the client keeps the session cookie."""
    response = await client.post(
        "/api/auth/signup",
        json={"email": email, "password": password, "full_name": email.split("@")[0].title()},
    )
    assert response.status_code == 200, response.text
    return response.json()
