"""
Position store for ordered board children

Columns are ordered within their board and tasks within their column. For
every parent the set of child positions is kept dense and zero-based:
``{0, 1, ..., n-1}``. All helpers here work inside the caller's transaction
and only flush; committing or rolling back is the caller's job.
"""
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.models.board import Board
from app.models.column import Column as ColumnModel
from app.models.task import Task

# child model -> (parent model, foreign key attribute on the child)
SCOPES = {
    ColumnModel: (Board, "board_id"),
    Task: (ColumnModel, "column_id"),
}


def _scope(model):
    try:
        return SCOPES[model]
    except KeyError:
        raise ValueError(f"{model.__name__} is not an ordered child model")


def diff_child_ids(current_ids: Iterable[int], requested_ids: Sequence[int]) -> Optional[Dict[str, List[int]]]:
    """Compare a requested ordering against the actual children.

    Returns ``None`` when ``requested_ids`` is a permutation of
    ``current_ids``, otherwise a dict naming the missing, unexpected and
    duplicated ids.
    """
    current = set(current_ids)
    requested = set(requested_ids)
    duplicates = sorted(child_id for child_id, count in Counter(requested_ids).items() if count > 1)
    missing = sorted(current - requested)
    unexpected = sorted(requested - current)

    if not (missing or unexpected or duplicates):
        return None
    return {"missing": missing, "unexpected": unexpected, "duplicates": duplicates}


class PositionStore:
    """Reads and rewrites child positions for one session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_board(self, board_id: int) -> Optional[Board]:
        """Take a row lock on the board that scopes every structural write."""
        if self.db.get_bind().dialect.name == "sqlite":
            # no row locks in SQLite; a write takes the database write lock instead
            await self.db.execute(
                update(Board)
                .where(Board.id == board_id)
                .values(id=Board.id)
                .execution_options(synchronize_session=False)
            )
        result = await self.db.execute(
            select(Board).where(Board.id == board_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def list_children(self, model, parent_id: int) -> List:
        _, parent_field = _scope(model)
        result = await self.db.execute(
            select(model)
            .where(getattr(model, parent_field) == parent_id)
            .order_by(model.position, model.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def set_positions(self, model, parent_id: int, ordered_ids: Sequence[int]) -> List:
        """Rewrite every child's position to its index in ``ordered_ids``.

        Nothing is written unless ``ordered_ids`` names exactly the current
        children of ``parent_id``.
        """
        children = await self.list_children(model, parent_id)
        by_id = {child.id: child for child in children}

        mismatch = diff_child_ids(by_id.keys(), ordered_ids)
        if mismatch:
            raise ValidationError(
                f"{model.__name__} ids do not match the children of {_scope(model)[0].__name__.lower()} {parent_id}",
                details=mismatch,
            )

        for index, child_id in enumerate(ordered_ids):
            child = by_id[child_id]
            if child.position != index:
                child.position = index

        await self.db.flush()
        return [by_id[child_id] for child_id in ordered_ids]

    async def append_position(self, model, parent_id: int) -> int:
        """Position for a new last child: current max + 1, or 0 when empty."""
        _, parent_field = _scope(model)
        result = await self.db.execute(
            select(func.max(model.position)).where(getattr(model, parent_field) == parent_id)
        )
        max_position = result.scalar_one_or_none()
        return 0 if max_position is None else max_position + 1

    async def relocate_child(self, child, new_parent_id: int, new_position: int):
        """Point ``child`` at a new parent and position.

        The parent is read from the database, not the identity map, so a
        parent deleted by another transaction is reported as missing.
        """
        parent_model, parent_field = _scope(type(child))
        parent = await self.db.get(parent_model, new_parent_id, populate_existing=True)
        if parent is None:
            raise ResourceNotFoundError(parent_model.__name__)

        setattr(child, parent_field, new_parent_id)
        child.position = new_position
        await self.db.flush()
        return child

    async def compact(self, model, parent_id: int) -> List:
        """Renumber children to 0..n-1 keeping their relative order."""
        children = await self.list_children(model, parent_id)
        for index, child in enumerate(children):
            if child.position != index:
                child.position = index
        await self.db.flush()
        return children

    async def remove_child_and_renumber(self, child) -> None:
        """Delete ``child`` and shift later siblings down by one."""
        model = type(child)
        _, parent_field = _scope(model)
        parent_id = getattr(child, parent_field)
        removed_position = child.position

        await self.db.delete(child)
        await self.db.flush()

        result = await self.db.execute(
            select(model)
            .where(getattr(model, parent_field) == parent_id, model.position > removed_position)
            .order_by(model.position)
            .execution_options(populate_existing=True)
        )
        for sibling in result.scalars().all():
            sibling.position -= 1
        await self.db.flush()
