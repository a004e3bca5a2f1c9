"""
Move handler tests
"""
import pytest

from app.core.exceptions import InsufficientPermissionsError, ResourceNotFoundError, ValidationError
from app.models.column import Column
from app.services.kanban_service import KanbanService


@pytest.mark.asyncio
async def test_move_appends_to_target_and_compacts_source(
    db_session, make_user, make_board, task_positions, task_location, assert_dense
):
    # Arrange
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": ["T1", "T2", "T3"], "B": []})
    t1, t2, t3 = (ids["tasks"][t] for t in ("T1", "T2", "T3"))
    column_a, column_b = ids["columns"]["A"], ids["columns"]["B"]

    # Act
    result = await KanbanService(db_session).move_task(owner, t2, column_b)

    # Assert
    assert result.moved is True
    assert result.task.id == t2
    assert result.task.column_id == column_b
    assert result.task.position == 0
    assert await task_location(t2) == (column_b, 0)
    source = await task_positions(column_a)
    assert source == {t1: 0, t3: 1}
    assert_dense(source)


@pytest.mark.asyncio
async def test_move_lands_after_existing_tasks(db_session, make_user, make_board, task_positions, assert_dense):
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": ["T1"], "B": ["T2", "T3"]})
    column_b = ids["columns"]["B"]

    await KanbanService(db_session).move_task(owner, ids["tasks"]["T1"], column_b)

    positions = await task_positions(column_b)
    assert positions[ids["tasks"]["T1"]] == 2
    assert_dense(positions)
    assert await task_positions(ids["columns"]["A"]) == {}


@pytest.mark.asyncio
async def test_move_to_current_column_is_a_no_op(db_session, make_user, make_board, task_positions):
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": ["T1", "T2"]})
    column_a = ids["columns"]["A"]
    before = await task_positions(column_a)

    result = await KanbanService(db_session).move_task(owner, ids["tasks"]["T1"], column_a)

    assert result.moved is False
    assert await task_positions(column_a) == before


@pytest.mark.asyncio
async def test_move_across_boards_is_rejected(db_session, make_user, make_board, task_location):
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": ["T1", "T2"]})
    other = await make_board(owner, {"Elsewhere": []}, name="Other Board")
    t2 = ids["tasks"]["T2"]

    with pytest.raises(ValidationError) as exc_info:
        await KanbanService(db_session).move_task(owner, t2, other["columns"]["Elsewhere"])

    assert exc_info.value.message == "Cross-board move not permitted"
    assert await task_location(t2) == (ids["columns"]["A"], 1)


@pytest.mark.asyncio
async def test_move_unknown_task_is_not_found(db_session, make_user, make_board):
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": []})

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await KanbanService(db_session).move_task(owner, 9999, ids["columns"]["A"])

    assert exc_info.value.message == "Task not found"


@pytest.mark.asyncio
async def test_move_to_unknown_column_is_not_found(db_session, make_user, make_board, task_location):
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": ["T1"]})

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await KanbanService(db_session).move_task(owner, ids["tasks"]["T1"], 9999)

    assert exc_info.value.message == "Column not found"
    assert await task_location(ids["tasks"]["T1"]) == (ids["columns"]["A"], 0)


@pytest.mark.asyncio
async def test_move_into_column_deleted_by_another_session_is_not_found(
    session_factory, db_session, make_user, make_board, task_location, task_positions
):
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": ["T1"], "B": ["T2"]})
    a, b = ids["columns"]["A"], ids["columns"]["B"]
    # the session under test still holds column B from an earlier read
    assert await db_session.get(Column, b) is not None

    async with session_factory() as other:
        await KanbanService(other).delete_column(owner, b)

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await KanbanService(db_session).move_task(owner, ids["tasks"]["T1"], b)

    assert exc_info.value.message == "Column not found"
    assert await task_location(ids["tasks"]["T1"]) == (a, 0)
    assert await task_positions(b) == {}


@pytest.mark.asyncio
async def test_move_by_non_owner_is_forbidden(db_session, make_user, make_board, task_location):
    owner = await make_user("owner@example.com")
    intruder = await make_user("intruder@example.com")
    ids = await make_board(owner, {"A": ["T1"], "B": []})

    with pytest.raises(InsufficientPermissionsError):
        await KanbanService(db_session).move_task(intruder, ids["tasks"]["T1"], ids["columns"]["B"])

    assert await task_location(ids["tasks"]["T1"]) == (ids["columns"]["A"], 0)


@pytest.mark.asyncio
async def test_positions_stay_dense_through_mixed_operations(
    db_session, make_user, make_board, task_positions, column_positions, assert_dense
):
    owner = await make_user("owner@example.com")
    ids = await make_board(owner, {"A": ["T1", "T2", "T3"], "B": ["T4"], "C": ["T5", "T6"]})
    a, b, c = (ids["columns"][name] for name in ("A", "B", "C"))
    service = KanbanService(db_session)

    await service.move_task(owner, ids["tasks"]["T1"], b)
    await service.move_task(owner, ids["tasks"]["T5"], a)
    await service.reorder_tasks(owner, b, [ids["tasks"]["T1"], ids["tasks"]["T4"]])
    await service.delete_task(owner, ids["tasks"]["T2"])
    new_task = await service.create_task(owner, c, title="T7")
    await service.delete_column(owner, a)

    assert new_task.position == 1
    for column_id in (b, c):
        assert_dense(await task_positions(column_id))
    columns = await column_positions(ids["board"])
    assert columns == {b: 0, c: 1}
    assert await task_positions(a) == {}
