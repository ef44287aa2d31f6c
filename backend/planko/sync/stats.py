"""Board statistics."""

from dataclasses import dataclass

from .snapshot import BoardSnapshot

PRIORITIES = ("high", "medium", "low")


@dataclass(frozen=True)
class ColumnCount:
    column_id: str
    title: str
    count: int


@dataclass(frozen=True)
class BoardStats:
    total: int
    tasks_per_column: list[ColumnCount]
    priorities: dict[str, int]
    completed: int
    completion_rate: int


def compute_board_stats(snapshot: BoardSnapshot) -> BoardStats:
    """
    Summarise a board.

    The last column counts as "done"; the completion rate is a whole
    percentage.
    """
    tasks = snapshot.all_tasks()
    total = len(tasks)

    priorities = {p: 0 for p in PRIORITIES}
    for task in tasks:
        priorities[task.priority] = priorities.get(task.priority, 0) + 1

    completed = len(snapshot.columns[-1].tasks) if snapshot.columns else 0
    completion_rate = round(completed / total * 100) if total else 0

    return BoardStats(
        total=total,
        tasks_per_column=[ColumnCount(c.id, c.title, len(c.tasks)) for c in snapshot.columns],
        priorities=priorities,
        completed=completed,
        completion_rate=completion_rate,
    )
