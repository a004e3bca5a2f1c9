"""
Authentication endpoints
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.exceptions import AuthenticationError, DuplicateResourceError
from app.core.logging import log_security_event
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import ROLE_USER, User
from app.schemas.auth import TokenResponse, UserLogin, UserRegister
from app.schemas.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user account"""
    email = user_data.email.lower()
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise DuplicateResourceError("User with this email")

    user = User(
        name=user_data.name,
        email=email,
        password_hash=hash_password(user_data.password),
        role=ROLE_USER,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"Registered user {user.id}", extra={"user_id": user.id})
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email and password for a session token"""
    result = await db.execute(select(User).where(User.email == credentials.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        log_security_event(logger, "login_failed", email=credentials.email)
        raise AuthenticationError("Invalid email or password")

    access_token = create_access_token({"sub": str(user.id), "role": user.role})
    logger.info(f"User {user.id} logged in", extra={"user_id": user.id})

    return TokenResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return UserResponse.model_validate(current_user)
