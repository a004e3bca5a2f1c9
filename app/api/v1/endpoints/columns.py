"""
Column endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_actor, no_store_headers
from app.core.permissions import Actor
from app.schemas.kanban import MessageResponse, TaskCreate, TaskReorderRequest, TaskResponse
from app.services.kanban_service import KanbanService

router = APIRouter(dependencies=[Depends(no_store_headers)])


@router.delete("/{column_id}", response_model=MessageResponse)
async def delete_column(
    column_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Delete a column with its tasks and close the gap it leaves"""
    await KanbanService(db).delete_column(actor, column_id)
    return MessageResponse(message="Column deleted successfully")


@router.post("/{column_id}/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    column_id: int,
    task_data: TaskCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Append a task to the end of a column"""
    task = await KanbanService(db).create_task(
        actor,
        column_id,
        title=task_data.title,
        description=task_data.description,
        due_date=task_data.due_date,
        priority=task_data.priority,
    )
    return TaskResponse.model_validate(task)


@router.patch("/{column_id}/tasks/reorder", response_model=MessageResponse)
async def reorder_tasks(
    column_id: int,
    order_data: TaskReorderRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Reorder tasks in a column"""
    await KanbanService(db).reorder_tasks(actor, column_id, order_data.task_ids)
    return MessageResponse(message="Tasks reordered successfully")
