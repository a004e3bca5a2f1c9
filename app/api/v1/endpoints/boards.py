"""
Board endpoints
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_actor, no_store_headers
from app.core.permissions import Actor
from app.schemas.kanban import (
    BoardCreate,
    BoardDetailResponse,
    BoardResponse,
    ColumnCreate,
    ColumnReorderRequest,
    ColumnResponse,
    MessageResponse,
)
from app.services.kanban_service import KanbanService

router = APIRouter()


@router.get("", response_model=List[BoardResponse])
async def list_boards(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Boards owned by the caller; admins see every board"""
    boards = await KanbanService(db).list_boards(actor)
    return [BoardResponse.model_validate(board) for board in boards]


@router.post("", response_model=BoardResponse, status_code=201, dependencies=[Depends(no_store_headers)])
async def create_board(
    board_data: BoardCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    board = await KanbanService(db).create_board(actor, board_data.name, board_data.description)
    return BoardResponse.model_validate(board)


@router.get("/{board_id}", response_model=BoardDetailResponse, dependencies=[Depends(no_store_headers)])
async def get_board(
    board_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Board with its columns and tasks in position order"""
    board = await KanbanService(db).get_board(actor, board_id)
    return BoardDetailResponse.model_validate(board)


@router.delete("/{board_id}", response_model=MessageResponse, dependencies=[Depends(no_store_headers)])
async def delete_board(
    board_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    await KanbanService(db).delete_board(actor, board_id)
    return MessageResponse(message="Board deleted successfully")


@router.post(
    "/{board_id}/columns",
    response_model=ColumnResponse,
    status_code=201,
    dependencies=[Depends(no_store_headers)],
)
async def create_column(
    board_id: int,
    column_data: ColumnCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Append a column to the end of a board"""
    column = await KanbanService(db).create_column(actor, board_id, column_data.name)
    return ColumnResponse.model_validate(column)


@router.patch(
    "/{board_id}/columns/reorder",
    response_model=MessageResponse,
    dependencies=[Depends(no_store_headers)],
)
async def reorder_columns(
    board_id: int,
    order_data: ColumnReorderRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Reorder columns in a board"""
    await KanbanService(db).reorder_columns(actor, board_id, order_data.column_ids)
    return MessageResponse(message="Columns reordered successfully")
