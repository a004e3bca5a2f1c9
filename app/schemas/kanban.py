"""
Board, column and task schemas
"""
from pydantic import BaseModel, Field, StrictInt, validator
from typing import Optional, List
from datetime import datetime

from app.models.task import PRIORITIES


class BoardCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Board name cannot be empty')
        return v.strip()


class ColumnCreate(BaseModel):
    name: str

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Column name cannot be empty')
        return v.strip()


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Task title cannot be empty')
        return v.strip()

    @validator('priority')
    def validate_priority(cls, v):
        if v is not None and v not in PRIORITIES:
            raise ValueError(f'Priority must be one of: {", ".join(PRIORITIES)}')
        return v


class TaskUpdate(BaseModel):
    title: str
    description: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Task title cannot be empty')
        return v.strip()


class TaskReorderRequest(BaseModel):
    """Ordered ids of every task in one column"""
    task_ids: List[StrictInt] = Field(..., alias="taskIds", min_length=1)

    class Config:
        populate_by_name = True


class ColumnReorderRequest(BaseModel):
    """Ordered ids of every column in one board"""
    column_ids: List[StrictInt] = Field(..., alias="columnIds", min_length=1)

    class Config:
        populate_by_name = True


class TaskMoveRequest(BaseModel):
    column_id: StrictInt = Field(..., alias="columnId")

    class Config:
        populate_by_name = True


class TaskResponse(BaseModel):
    id: int
    column_id: int
    title: str
    description: Optional[str] = None
    position: int
    is_completed: bool
    due_date: Optional[datetime] = None
    priority: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ColumnResponse(BaseModel):
    id: int
    board_id: int
    name: str
    position: int
    created_at: datetime

    class Config:
        from_attributes = True


class ColumnWithTasks(ColumnResponse):
    tasks: List[TaskResponse] = []


class BoardResponse(BaseModel):
    id: int
    owner_id: int
    name: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class BoardDetailResponse(BoardResponse):
    columns: List[ColumnWithTasks] = []


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class TaskMoveResponse(MessageResponse):
    task: TaskResponse


class TaskUpdateResponse(MessageResponse):
    task: TaskResponse


class EmailResponse(MessageResponse):
    sent: bool
