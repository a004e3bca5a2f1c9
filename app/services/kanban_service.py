"""
Kanban Board Service
Handles the ordering-sensitive board, column and task operations. Every write
goes through one transaction that locks the owning board first.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import (
    APIException,
    ResourceNotFoundError,
    TransactionFailureError,
    ValidationError,
)
from app.core.permissions import Actor, ensure_board_owner, ensure_board_reader
from app.models.board import Board
from app.models.column import Column as ColumnModel
from app.models.task import Task
from app.services.position_store import PositionStore

logger = logging.getLogger(__name__)


@dataclass
class MoveResult:
    task: Task
    moved: bool


class KanbanService:
    """Service for reordering, moving, inserting and deleting board children"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.positions = PositionStore(db)

    @asynccontextmanager
    async def _transaction(self, action: str):
        """Commit on success; roll back and re-raise on any failure."""
        try:
            yield
            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error(f"Failed to {action}, transaction rolled back", exc_info=True)
            raise TransactionFailureError(f"Failed to {action}") from exc
        except Exception:
            await self.db.rollback()
            logger.error(f"Unexpected error while trying to {action}, transaction rolled back", exc_info=True)
            raise

    async def _get_board(self, board_id: int) -> Board:
        board = await self.db.get(Board, board_id)
        if not board:
            raise ResourceNotFoundError("Board")
        return board

    async def _get_column(self, column_id: int) -> ColumnModel:
        column = await self.db.get(ColumnModel, column_id)
        if not column:
            raise ResourceNotFoundError("Column")
        return column

    async def _get_task(self, task_id: int) -> Task:
        task = await self.db.get(Task, task_id)
        if not task:
            raise ResourceNotFoundError("Task")
        return task

    async def _lock_board(self, board_id: int) -> Board:
        board = await self.positions.lock_board(board_id)
        if not board:
            raise ResourceNotFoundError("Board")
        return board

    # The _reload_* helpers run under the board lock and bypass the identity
    # map; rows checked before the lock may have been deleted since.

    async def _reload_column(self, column_id: int, board_id: int) -> ColumnModel:
        column = await self.db.get(ColumnModel, column_id, populate_existing=True)
        if not column or column.board_id != board_id:
            raise ResourceNotFoundError("Column")
        return column

    async def _reload_task(self, task_id: int) -> Task:
        task = await self.db.get(Task, task_id, populate_existing=True)
        if not task:
            raise ResourceNotFoundError("Task")
        return task

    # ------------------------------------------------------------------
    # Reads

    async def list_boards(self, actor: Actor) -> List[Board]:
        stmt = select(Board).order_by(Board.created_at.desc(), Board.id.desc())
        if not actor.is_admin:
            stmt = stmt.where(Board.owner_id == actor.user_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_board(self, actor: Actor, board_id: int) -> Board:
        """Board with its columns and tasks, both in position order."""
        result = await self.db.execute(
            select(Board)
            .options(selectinload(Board.columns).selectinload(ColumnModel.tasks))
            .where(Board.id == board_id)
            .execution_options(populate_existing=True)
        )
        board = result.scalar_one_or_none()
        if not board:
            raise ResourceNotFoundError("Board")
        ensure_board_reader(actor, board)
        return board

    # ------------------------------------------------------------------
    # Reorder

    async def reorder_columns(self, actor: Actor, board_id: int, column_ids: Sequence[int]) -> List[ColumnModel]:
        """Rewrite column positions of a board to match ``column_ids``."""
        board = await self._get_board(board_id)
        ensure_board_owner(actor, board)
        return await self._reorder(ColumnModel, board_id, board_id, column_ids)

    async def reorder_tasks(self, actor: Actor, column_id: int, task_ids: Sequence[int]) -> List[Task]:
        """Rewrite task positions of a column to match ``task_ids``."""
        column = await self._get_column(column_id)
        board = await self._get_board(column.board_id)
        ensure_board_owner(actor, board)
        return await self._reorder(Task, column_id, board.id, task_ids)

    async def _reorder(self, model, parent_id: int, board_id: int, ordered_ids: Sequence[int]) -> List:
        if not ordered_ids:
            raise ValidationError("Ordered id list must not be empty")

        kind = model.__name__.lower()
        async with self._transaction(f"reorder {kind}s"):
            await self._lock_board(board_id)
            if model is Task:
                await self._reload_column(parent_id, board_id)
            try:
                children = await self.positions.set_positions(model, parent_id, list(ordered_ids))
            except ValidationError as exc:
                logger.warning(
                    f"Rejected {kind} reorder for parent {parent_id}: {exc.details}",
                    extra={"board_id": board_id},
                )
                raise

        logger.info(
            f"Reordered {kind}s in parent {parent_id}: {list(ordered_ids)}",
            extra={"board_id": board_id},
        )
        return children

    # ------------------------------------------------------------------
    # Move

    async def move_task(self, actor: Actor, task_id: int, target_column_id: int) -> MoveResult:
        """Move a task to the end of another column on the same board."""
        task = await self._get_task(task_id)
        source_column_id = task.column_id

        if target_column_id == source_column_id:
            logger.info(f"Task {task_id} is already in column {target_column_id}, no move needed")
            return MoveResult(task=task, moved=False)

        source_column = await self._get_column(source_column_id)
        target_column = await self._get_column(target_column_id)

        if target_column.board_id != source_column.board_id:
            logger.warning(
                f"Rejected cross-board move of task {task_id}: "
                f"board {source_column.board_id} -> board {target_column.board_id}"
            )
            raise ValidationError(
                "Cross-board move not permitted",
                details={"task_board_id": source_column.board_id, "target_board_id": target_column.board_id},
            )

        board = await self._get_board(source_column.board_id)
        ensure_board_owner(actor, board)
        board_id = board.id

        async with self._transaction("move task"):
            await self._lock_board(board_id)
            # a concurrent move or delete may have won the lock first
            task = await self._reload_task(task_id)
            if task.column_id != source_column_id:
                raise ValidationError(
                    "Task was moved by another request",
                    details={"expected_column_id": source_column_id, "actual_column_id": task.column_id},
                )
            await self._reload_column(target_column_id, board_id)
            new_position = await self.positions.append_position(Task, target_column_id)
            await self.positions.relocate_child(task, target_column_id, new_position)
            await self.positions.compact(Task, source_column_id)

        logger.info(
            f"Moved task {task_id} from column {source_column_id} to column {target_column_id} at position {new_position}",
            extra={"board_id": board_id},
        )
        return MoveResult(task=task, moved=True)

    # ------------------------------------------------------------------
    # Insert at end

    async def create_board(self, actor: Actor, name: str, description: Optional[str] = None) -> Board:
        board = Board(owner_id=actor.user_id, name=name, description=description)
        async with self._transaction("create board"):
            self.db.add(board)
            await self.db.flush()
        await self.db.refresh(board)
        logger.info(f"Created board {board.id}", extra={"user_id": actor.user_id})
        return board

    async def create_column(self, actor: Actor, board_id: int, name: str) -> ColumnModel:
        board = await self._get_board(board_id)
        ensure_board_owner(actor, board)

        async with self._transaction("create column"):
            await self._lock_board(board_id)
            position = await self.positions.append_position(ColumnModel, board_id)
            column = ColumnModel(board_id=board_id, name=name, position=position)
            self.db.add(column)
            await self.db.flush()
        await self.db.refresh(column)
        logger.info(f"Created column {column.id} at position {position}", extra={"board_id": board_id})
        return column

    async def create_task(
        self,
        actor: Actor,
        column_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
        priority: Optional[str] = None,
    ) -> Task:
        column = await self._get_column(column_id)
        board = await self._get_board(column.board_id)
        ensure_board_owner(actor, board)
        board_id = board.id

        async with self._transaction("create task"):
            await self._lock_board(board_id)
            await self._reload_column(column_id, board_id)
            position = await self.positions.append_position(Task, column_id)
            task = Task(
                column_id=column_id,
                title=title,
                description=description,
                due_date=due_date,
                priority=priority,
                position=position,
                is_completed=False,
            )
            self.db.add(task)
            await self.db.flush()
        await self.db.refresh(task)
        logger.info(f"Created task {task.id} in column {column_id} at position {position}", extra={"board_id": board_id})
        return task

    # ------------------------------------------------------------------
    # Delete with renumbering

    async def delete_task(self, actor: Actor, task_id: int) -> None:
        task = await self._get_task(task_id)
        column = await self._get_column(task.column_id)
        board = await self._get_board(column.board_id)
        ensure_board_owner(actor, board)
        board_id = board.id

        async with self._transaction("delete task"):
            await self._lock_board(board_id)
            task = await self._reload_task(task_id)
            await self.positions.remove_child_and_renumber(task)
        logger.info(f"Deleted task {task_id}", extra={"board_id": board_id})

    async def delete_column(self, actor: Actor, column_id: int) -> None:
        column = await self._get_column(column_id)
        board = await self._get_board(column.board_id)
        ensure_board_owner(actor, board)
        board_id = board.id

        async with self._transaction("delete column"):
            await self._lock_board(board_id)
            column = await self._reload_column(column_id, board_id)
            for task in await self.positions.list_children(Task, column_id):
                await self.db.delete(task)
            await self.positions.remove_child_and_renumber(column)
        logger.info(f"Deleted column {column_id}", extra={"board_id": board_id})

    async def delete_board(self, actor: Actor, board_id: int) -> None:
        board = await self._get_board(board_id)
        ensure_board_owner(actor, board)

        async with self._transaction("delete board"):
            await self._lock_board(board_id)
            column_ids = select(ColumnModel.id).where(ColumnModel.board_id == board_id)
            await self.db.execute(delete(Task).where(Task.column_id.in_(column_ids)))
            await self.db.execute(delete(ColumnModel).where(ColumnModel.board_id == board_id))
            await self.db.execute(delete(Board).where(Board.id == board_id))
        logger.info(f"Deleted board {board_id}", extra={"user_id": actor.user_id})

    # ------------------------------------------------------------------
    # Task state

    async def toggle_task(self, actor: Actor, task_id: int) -> Task:
        task = await self._get_task(task_id)
        column = await self._get_column(task.column_id)
        board = await self._get_board(column.board_id)
        ensure_board_owner(actor, board)

        async with self._transaction("toggle task"):
            task.is_completed = not task.is_completed
        return task

    async def update_task(self, actor: Actor, task_id: int, title: str, description: Optional[str] = None) -> Task:
        """Replace a task's title and description; its position is untouched."""
        task = await self._get_task(task_id)
        column = await self._get_column(task.column_id)
        board = await self._get_board(column.board_id)
        ensure_board_owner(actor, board)
        board_id = board.id

        async with self._transaction("update task"):
            task.title = title
            task.description = description or None
        await self.db.refresh(task)
        logger.info(f"Updated task {task_id}", extra={"board_id": board_id})
        return task

    async def get_task_context(self, actor: Actor, task_id: int):
        """Task with its column and board, for read-only consumers."""
        task = await self._get_task(task_id)
        column = await self._get_column(task.column_id)
        board = await self._get_board(column.board_id)
        ensure_board_reader(actor, board)
        return task, column, board
