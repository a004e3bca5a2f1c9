"""
User schemas
"""
from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime

from app.models.user import ROLES


class UserResponse(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    role: str
    created_at: datetime

    class Config:
        from_attributes = True


class RoleUpdate(BaseModel):
    role: str

    @validator('role')
    def validate_role(cls, v):
        if v not in ROLES:
            raise ValueError(f'Role must be one of: {", ".join(ROLES)}')
        return v
