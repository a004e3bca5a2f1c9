# Database models
from .user import User
from .board import Board
from .column import Column
from .task import Task

__all__ = [
    "User",
    "Board",
    "Column",
    "Task",
]
