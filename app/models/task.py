"""
Task model
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.core.database import Base


PRIORITIES = ("low", "medium", "high")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    column_id = Column(Integer, ForeignKey('columns.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    position = Column(Integer, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    priority = Column(String(20), nullable=True)  # low, medium, high
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    column = relationship("Column", back_populates="tasks")

    def __repr__(self):
        return f"<Task(id={self.id}, title={self.title}, position={self.position})>"
