"""
Task endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_actor, get_current_user, no_store_headers
from app.core.permissions import Actor
from app.models.user import User
from app.schemas.kanban import (
    EmailResponse,
    MessageResponse,
    TaskMoveRequest,
    TaskMoveResponse,
    TaskResponse,
    TaskUpdate,
    TaskUpdateResponse,
)
from app.services.email_service import email_service
from app.services.kanban_service import KanbanService

router = APIRouter(dependencies=[Depends(no_store_headers)])


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    await KanbanService(db).delete_task(actor, task_id)
    return MessageResponse(message="Task deleted successfully")


@router.patch("/{task_id}", response_model=TaskUpdateResponse)
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Edit a task's title and description"""
    task = await KanbanService(db).update_task(actor, task_id, task_data.title, task_data.description)
    return TaskUpdateResponse(message="Task updated successfully", task=TaskResponse.model_validate(task))


@router.patch("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    task_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Flip a task's completion flag"""
    task = await KanbanService(db).toggle_task(actor, task_id)
    return TaskResponse.model_validate(task)


@router.patch("/{task_id}/move", response_model=TaskMoveResponse)
async def move_task(
    task_id: int,
    move_data: TaskMoveRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Move a task to the end of another column on the same board"""
    result = await KanbanService(db).move_task(actor, task_id, move_data.column_id)
    message = "Task moved successfully" if result.moved else "Task is already in this column"
    return TaskMoveResponse(message=message, task=TaskResponse.model_validate(result.task))


@router.post("/{task_id}/email", response_model=EmailResponse)
async def email_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Email a summary of the task to the caller"""
    task, column, board = await KanbanService(db).get_task_context(actor, task_id)
    sent = await email_service.send_task_notification(
        current_user.email, current_user.name, task, column, board
    )
    message = "Task notification sent" if sent else "Task notification was not delivered"
    return EmailResponse(message=message, sent=sent)
