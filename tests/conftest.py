"""
Shared test fixtures

Every test gets its own SQLite file. Seeding goes through separate sessions
so the session under test starts with an empty identity map.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ["ENVIRONMENT"] = "development"
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASS"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import Base, enable_sqlite_foreign_keys
from app.core.permissions import Actor
from app.core.security import hash_password
from app.models import Board, Column, Task, User
from app.models.user import ROLE_USER

TEST_PASSWORD = "password123"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'kanban.db'}",
        connect_args={"timeout": 15},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session_factory):
    """Insert a user and return it as an Actor"""
    async def _make_user(email: str, role: str = ROLE_USER) -> Actor:
        async with session_factory() as session:
            user = User(
                name=email.split("@")[0],
                email=email,
                password_hash=hash_password(TEST_PASSWORD),
                role=role,
            )
            session.add(user)
            await session.commit()
            return Actor(user_id=user.id, role=user.role)
    return _make_user


@pytest.fixture
def make_board(session_factory):
    """Insert a board whose columns and tasks are given in order.

    ``columns`` maps column name to task titles. Returns plain ids:
    ``{"board": id, "columns": {name: id}, "tasks": {title: id}}``.
    """
    async def _make_board(owner: Actor, columns: dict, name: str = "Test Board") -> dict:
        async with session_factory() as session:
            board = Board(owner_id=owner.user_id, name=name)
            session.add(board)
            await session.flush()

            ids = {"board": board.id, "columns": {}, "tasks": {}}
            for column_position, (column_name, titles) in enumerate(columns.items()):
                column = Column(board_id=board.id, name=column_name, position=column_position)
                session.add(column)
                await session.flush()
                ids["columns"][column_name] = column.id

                for task_position, title in enumerate(titles):
                    task = Task(column_id=column.id, title=title, position=task_position)
                    session.add(task)
                    await session.flush()
                    ids["tasks"][title] = task.id

            await session.commit()
            return ids
    return _make_board


@pytest.fixture
def task_order(session_factory):
    """Task ids of a column as stored, ordered by position"""
    async def _task_order(column_id: int) -> list:
        async with session_factory() as session:
            result = await session.execute(
                select(Task.id).where(Task.column_id == column_id).order_by(Task.position)
            )
            return list(result.scalars().all())
    return _task_order


@pytest.fixture
def task_positions(session_factory):
    """{task id: position} for a column as stored"""
    async def _task_positions(column_id: int) -> dict:
        async with session_factory() as session:
            result = await session.execute(
                select(Task.id, Task.position).where(Task.column_id == column_id)
            )
            return {task_id: position for task_id, position in result.all()}
    return _task_positions


@pytest.fixture
def column_positions(session_factory):
    """{column id: position} for a board as stored"""
    async def _column_positions(board_id: int) -> dict:
        async with session_factory() as session:
            result = await session.execute(
                select(Column.id, Column.position).where(Column.board_id == board_id)
            )
            return {column_id: position for column_id, position in result.all()}
    return _column_positions


@pytest.fixture
def task_location(session_factory):
    """(column id, position) of one task as stored"""
    async def _task_location(task_id: int):
        async with session_factory() as session:
            result = await session.execute(
                select(Task.column_id, Task.position).where(Task.id == task_id)
            )
            row = result.one_or_none()
            return tuple(row) if row is not None else None
    return _task_location


@pytest.fixture
def assert_dense():
    """Check that stored positions are exactly 0..n-1"""
    def _assert_dense(positions: dict) -> None:
        assert sorted(positions.values()) == list(range(len(positions)))
    return _assert_dense
