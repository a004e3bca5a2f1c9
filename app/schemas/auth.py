"""
Authentication schemas
"""
from pydantic import BaseModel, EmailStr, validator
from typing import Optional

from app.config import settings
from app.schemas.user import UserResponse


class UserRegister(BaseModel):
    name: Optional[str] = None
    email: EmailStr
    password: str

    @validator('password')
    def validate_password(cls, v):
        if len(v) < settings.password_min_length:
            raise ValueError(
                f'Password must be at least {settings.password_min_length} characters long'
            )
        return v

    @validator('name')
    def validate_name(cls, v):
        if v is not None:
            return v.strip() or None
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
