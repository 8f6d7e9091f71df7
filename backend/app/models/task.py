"""
Task model definitions.

Tasks are the smallest trackable unit and belong to exactly one milestone.
"""

from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.enums import TaskStatus


def _settle_progress(status: Optional[TaskStatus], progress: Optional[int]) -> Optional[int]:
    """Percentage implied by a status, or the given one when the status allows it."""
    if status == TaskStatus.PENDING:
        return 0
    if status == TaskStatus.COMPLETED:
        return 100
    return progress


def settle_task_state(status: TaskStatus, progress: int) -> tuple[TaskStatus, int]:
    """
    Reconcile a merged (status, progress) pair so the task invariant holds.

    Partial progress reported on a pending task means work has started.
    """
    if status == TaskStatus.PENDING and progress > 0:
        return TaskStatus.IN_PROGRESS, progress
    settled = _settle_progress(status, progress)
    return status, settled if settled is not None else 0


class TaskBase(BaseModel):
    """Base task fields shared across create/read."""

    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    description: Optional[str] = Field(None, max_length=2000)
    due_date: Optional[Union[date, datetime]] = Field(
        None, description="Due instant, or a date meaning end of that day"
    )
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    order_index: int = Field(default=0, ge=0)


class TaskCreate(TaskBase):
    """Schema for creating a task."""

    milestone_id: UUID = Field(..., description="Parent milestone ID")
    status: TaskStatus = Field(TaskStatus.PENDING)
    progress_percentage: int = Field(default=0, ge=0, le=100)

    @model_validator(mode="after")
    def _check_progress(self) -> "TaskCreate":
        status, progress = settle_task_state(self.status, self.progress_percentage)
        if status != self.status:
            self.status = status
        if progress != self.progress_percentage:
            self.progress_percentage = progress
        return self


class TaskUpdate(BaseModel):
    """Schema for updating a task."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=2000)
    status: Optional[TaskStatus] = None
    progress_percentage: Optional[int] = Field(None, ge=0, le=100)
    due_date: Optional[Union[date, datetime]] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    order_index: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def _check_progress(self) -> "TaskUpdate":
        settled = _settle_progress(self.status, self.progress_percentage)
        if settled != self.progress_percentage:
            self.progress_percentage = settled
        return self


class Task(TaskBase):
    """Complete task model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    milestone_id: UUID
    status: TaskStatus = Field(TaskStatus.PENDING)
    progress_percentage: int = Field(default=0, ge=0, le=100)
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _check_progress(self) -> "Task":
        if self.status == TaskStatus.PENDING and self.progress_percentage != 0:
            raise ValueError("pending tasks must have 0% progress")
        if self.status == TaskStatus.COMPLETED and self.progress_percentage != 100:
            raise ValueError("completed tasks must have 100% progress")
        return self
