"""Tests for the database service layer."""
from datetime import datetime, timedelta

import pytest

from planko.models.board import MemberRole
from planko.services.board import BoardService
from planko.services.column import ColumnService
from planko.services.member import InviteError, MemberService
from planko.services.subtask import SubtaskService
from planko.services.task import TaskService
from planko.services.user import UserService


async def column_titles(db, board_id):
    return [c.title for c in await ColumnService(db).get_columns(board_id)]


async def task_titles(db, column_id):
    return [t.title for t in await TaskService(db).get_tasks_for_column(column_id)]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Boards and columns
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.asyncio
async def test_new_board_has_default_columns_and_owner(db, board, owner):
    assert await column_titles(db, board.id) == ["To Do", "In Progress", "Done"]

    members = await MemberService(db).get_members(board.id)
    assert [(m.user_id, m.role) for m in members] == [(owner.id, MemberRole.OWNER.value)]


@pytest.mark.asyncio
async def test_columns_and_tasks_are_appended(db, board):
    column = await ColumnService(db).create_column(board.id, "Backlog")
    assert column.order_index == 3

    tasks = TaskService(db)
    first = await tasks.create_task(column.id, "One")
    second = await tasks.create_task(column.id, "Two")
    assert (first.order_index, second.order_index) == (0, 1)


@pytest.mark.asyncio
async def test_board_details_are_ordered(db, board):
    columns = await ColumnService(db).get_columns(board.id)
    todo = columns[0]
    tasks = TaskService(db)
    a = await tasks.create_task(todo.id, "A")
    b = await tasks.create_task(todo.id, "B")
    await tasks.update_task_position(a.id, todo.id, 1)
    await tasks.update_task_position(b.id, todo.id, 0)
    await db.commit()

    details = await BoardService(db).get_board_details(board.id)

    assert [c.title for c in details.columns] == ["To Do", "In Progress", "Done"]
    assert [t.title for t in details.columns[0].tasks] == ["B", "A"]


@pytest.mark.asyncio
async def test_delete_column_cascades_and_closes_gap(db, board):
    columns = await ColumnService(db).get_columns(board.id)
    doing = columns[1]
    task = await TaskService(db).create_task(doing.id, "Review")
    subtask = await SubtaskService(db).add_subtask(task.id, "Read diff")
    await db.commit()

    assert await ColumnService(db).delete_column(doing.id) is True
    await db.commit()

    remaining = await ColumnService(db).get_columns(board.id)
    assert [(c.title, c.order_index) for c in remaining] == [("To Do", 0), ("Done", 1)]
    assert await TaskService(db).get_task_by_id(task.id) is None
    assert await SubtaskService(db).get_subtask_by_id(subtask.id) is None
    assert await ColumnService(db).delete_column(doing.id) is False


@pytest.mark.asyncio
async def test_delete_task_closes_gap(db, board):
    todo = (await ColumnService(db).get_columns(board.id))[0]
    tasks = TaskService(db)
    created = [await tasks.create_task(todo.id, title) for title in ("A", "B", "C")]

    assert await tasks.delete_task(created[1].id) is True

    remaining = await tasks.get_tasks_for_column(todo.id)
    assert [(t.title, t.order_index) for t in remaining] == [("A", 0), ("C", 1)]


@pytest.mark.asyncio
async def test_reorder_columns(db, board):
    service = ColumnService(db)
    todo, doing, done = await service.get_columns(board.id)

    ordered = await service.reorder_columns(board.id, [done.id, "not-a-column", todo.id])

    assert [c.id for c in ordered] == [done.id, todo.id, doing.id]
    assert [c.order_index for c in ordered] == [0, 1, 2]


@pytest.mark.asyncio
async def test_delete_board_removes_everything(db, board):
    todo = (await ColumnService(db).get_columns(board.id))[0]
    task = await TaskService(db).create_task(todo.id, "Ship")
    await MemberService(db).create_invite(board.id, board.owner_id)
    await db.commit()

    assert await BoardService(db).delete_board(board.id) is True
    await db.commit()

    assert await BoardService(db).get_board_by_id(board.id) is None
    assert await ColumnService(db).get_columns(board.id) == []
    assert await TaskService(db).get_task_by_id(task.id) is None
    assert await MemberService(db).get_members(board.id) == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tasks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.asyncio
async def test_update_task_only_touches_given_fields(db, board):
    todo = (await ColumnService(db).get_columns(board.id))[0]
    tasks = TaskService(db)
    task = await tasks.create_task(todo.id, "Draft", description="Outline", priority="high")

    await tasks.update_task(task.id, title="Final")
    assert (task.title, task.description, task.priority) == ("Final", "Outline", "high")

    await tasks.update_task(task.id, description=None)
    assert task.description is None

    with pytest.raises(ValueError):
        await tasks.update_task(task.id, order_index=5)


@pytest.mark.asyncio
async def test_tasks_cannot_move_between_boards(db, board, owner):
    other = await BoardService(db).create_board("Other", owner.id)
    here = (await ColumnService(db).get_columns(board.id))[0]
    there = (await ColumnService(db).get_columns(other.id))[0]
    task = await TaskService(db).create_task(here.id, "Stay")

    with pytest.raises(ValueError):
        await TaskService(db).update_task_position(task.id, there.id, 0)

    assert await TaskService(db).update_task_position(task.id, "missing", 0) is None
    assert await TaskService(db).update_task_position("missing", here.id, 0) is None


@pytest.mark.asyncio
async def test_subtasks(db, board):
    todo = (await ColumnService(db).get_columns(board.id))[0]
    task = await TaskService(db).create_task(todo.id, "Launch")
    service = SubtaskService(db)

    first = await service.add_subtask(task.id, "Write post")
    generated = await service.add_subtasks(task.id, ["Pick date", "Email list"])
    assert [s.order_index for s in [first, *generated]] == [0, 1, 2]

    updated = await service.update_subtask(first.id, is_completed=True)
    assert updated.is_completed is True
    assert updated.title == "Write post"

    assert await service.delete_subtask(first.id) is True
    assert [s.title for s in await service.get_subtasks(task.id)] == ["Pick date", "Email list"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Access, members and invites
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@pytest.mark.asyncio
async def test_access_and_board_listing(db, board, owner):
    stranger = await UserService(db).create_user("stranger@example.com", "password123")
    boards = BoardService(db)

    assert await boards.get_accessible_board(board.id, owner.id) is not None
    assert await boards.get_accessible_board(board.id, stranger.id) is None
    assert await boards.get_boards_for_user(stranger.id) == []

    invite = await MemberService(db).create_invite(board.id, owner.id)
    await MemberService(db).join_via_token(invite.token, stranger.id)

    assert await boards.get_accessible_board(board.id, stranger.id) is not None
    assert [b.id for b in await boards.get_boards_for_user(stranger.id)] == [board.id]


@pytest.mark.asyncio
async def test_invite_link_can_be_reused(db, board, owner):
    users = UserService(db)
    first = await users.create_user("a@example.com", "password123")
    second = await users.create_user("b@example.com", "password123")
    members = MemberService(db)

    invite = await members.create_invite(board.id, owner.id)
    assert await members.join_via_token(invite.token, first.id) == board.id
    assert await members.join_via_token(invite.token, second.id) == board.id
    # Joining twice keeps a single membership
    assert await members.join_via_token(invite.token, first.id) == board.id

    assert len(await members.get_members(board.id)) == 3


@pytest.mark.asyncio
async def test_email_invites_are_single_use(db, board, owner):
    users = UserService(db)
    invitee = await users.create_user("guest@example.com", "password123")
    latecomer = await users.create_user("late@example.com", "password123")
    members = MemberService(db)

    invite = await members.create_invite(board.id, owner.id, "Guest@Example.com")
    assert invite.email == "guest@example.com"

    await members.join_via_token(invite.token, invitee.id)
    assert invite.accepted_at is not None

    with pytest.raises(InviteError):
        await members.join_via_token(invite.token, latecomer.id)

    with pytest.raises(InviteError, match="already a member"):
        await members.create_invite(board.id, owner.id, "guest@example.com")


@pytest.mark.asyncio
async def test_invalid_and_expired_invites(db, board, owner):
    members = MemberService(db)

    with pytest.raises(InviteError, match="Invalid invite link"):
        await members.join_via_token("nope", owner.id)

    invite = await members.create_invite(board.id, owner.id)
    invite.expires_at = datetime.utcnow() - timedelta(minutes=1)
    await db.flush()

    with pytest.raises(InviteError, match="expired"):
        await members.join_via_token(invite.token, owner.id)


@pytest.mark.asyncio
async def test_owner_cannot_be_removed(db, board, owner):
    members = MemberService(db)
    guest = await UserService(db).create_user("guest@example.com", "password123")
    invite = await members.create_invite(board.id, owner.id)
    await members.join_via_token(invite.token, guest.id)

    owner_membership = await members.get_membership(board.id, owner.id)
    guest_membership = await members.get_membership(board.id, guest.id)

    with pytest.raises(InviteError):
        await members.remove_member(owner_membership.id)

    assert await members.remove_member(guest_membership.id) is True
    assert await members.get_membership(board.id, guest.id) is None


@pytest.mark.asyncio
async def test_delete_expired_invites(db, board, owner):
    members = MemberService(db)
    live = await members.create_invite(board.id, owner.id)
    stale = await members.create_invite(board.id, owner.id)
    stale.expires_at = datetime.utcnow() - timedelta(hours=1)
    await db.flush()

    assert await members.delete_expired_invites() == 1

    with pytest.raises(InviteError, match="Invalid invite link"):
        await members.join_via_token(stale.token, owner.id)
    assert await members.join_via_token(live.token, owner.id) == board.id
