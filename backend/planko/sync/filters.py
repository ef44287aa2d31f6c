"""Derived, filtered views of a board."""

from dataclasses import dataclass, replace

from .snapshot import BoardSnapshot, TaskRecord


@dataclass(frozen=True)
class TaskFilter:
    """Text and priority filter applied to the displayed board."""

    text: str = ""
    priorities: frozenset[str] = frozenset()

    @property
    def is_active(self) -> bool:
        return bool(self.text.strip()) or bool(self.priorities)

    def matches(self, task: TaskRecord) -> bool:
        if self.priorities and task.priority not in self.priorities:
            return False

        needle = self.text.strip().lower()
        if not needle:
            return True

        haystack = f"{task.title}\n{task.description or ''}".lower()
        return needle in haystack


NO_FILTER = TaskFilter()


def filter_board(snapshot: BoardSnapshot, task_filter: TaskFilter) -> BoardSnapshot:
    """
    Return the board as displayed under a filter.

    Positions in the result do not match sibling order in the real board,
    so moves must never be computed against it.
    """
    if not task_filter.is_active:
        return snapshot

    return replace(
        snapshot,
        columns=tuple(
            replace(column, tasks=tuple(t for t in column.tasks if task_filter.matches(t)))
            for column in snapshot.columns
        ),
    )
