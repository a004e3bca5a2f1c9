"""
Admin endpoints
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_actor, no_store_headers
from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.core.permissions import Actor, ensure_admin
from app.models.user import User
from app.schemas.user import RoleUpdate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    ensure_admin(actor)
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.patch("/users/{user_id}/role", response_model=UserResponse, dependencies=[Depends(no_store_headers)])
async def update_user_role(
    user_id: int,
    role_data: RoleUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Change another user's role"""
    ensure_admin(actor)
    if user_id == actor.user_id:
        raise ValidationError("You cannot change your own role")

    user = await db.get(User, user_id)
    if not user:
        raise ResourceNotFoundError("User")

    user.role = role_data.role
    await db.commit()
    await db.refresh(user)

    logger.info(f"Role of user {user_id} set to {role_data.role}", extra={"user_id": actor.user_id})
    return UserResponse.model_validate(user)
