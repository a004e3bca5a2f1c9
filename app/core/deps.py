"""
Dependency injection utilities
"""
from typing import Optional

from fastapi import Depends, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AuthenticationError
from app.core.permissions import Actor
from app.core.security import verify_token
from app.models.user import User


security = HTTPBearer(auto_error=False)

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Surrogate-Control": "no-store",
}


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the user named by the bearer session token
    """
    if not credentials:
        raise AuthenticationError("Authentication required")

    payload = verify_token(credentials.credentials)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token subject")

    user = await db.get(User, user_id)
    if not user:
        raise AuthenticationError("User no longer exists")
    return user


async def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """Acting user id and stored role, detached from the ORM session"""
    return Actor.from_user(current_user)


async def no_store_headers(response: Response) -> None:
    """Keep intermediaries from caching a board ordering"""
    response.headers.update(NO_STORE_HEADERS)
