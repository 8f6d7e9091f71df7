"""
Milestone model definitions.

Milestones are weighted, ordered units of work within a booking.
"""

from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import MilestoneReviewAction, MilestoneStatus
from app.models.task import Task, TaskBase


class MilestoneBase(BaseModel):
    """Base milestone fields."""

    booking_id: UUID = Field(..., description="Booking ID")
    title: str = Field(..., min_length=1, max_length=200, description="Milestone title")
    description: Optional[str] = Field(None, max_length=2000, description="Milestone description")
    weight: float = Field(default=1.0, ge=0, description="Weight used in the booking rollup")
    order_index: int = Field(default=0, ge=0, description="Order within the booking")
    due_date: Optional[Union[date, datetime]] = Field(None, description="Target due date")
    estimated_hours: Optional[float] = Field(None, ge=0)


class MilestoneCreate(MilestoneBase):
    """Schema for creating a milestone."""

    progress_percentage: int = Field(default=0, ge=0, le=100)


class MilestoneUpdate(BaseModel):
    """Schema for updating a milestone."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status: Optional[MilestoneStatus] = None
    weight: Optional[float] = Field(None, ge=0)
    order_index: Optional[int] = Field(None, ge=0)
    due_date: Optional[Union[date, datetime]] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    # Only honoured while the milestone has no tasks.
    progress_percentage: Optional[int] = Field(None, ge=0, le=100)


class Milestone(MilestoneBase):
    """Complete milestone model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: MilestoneStatus = Field(MilestoneStatus.PENDING)
    progress_percentage: int = Field(default=0, ge=0, le=100)
    # Last value set by hand; restored when the milestone loses its tasks.
    manual_progress_percentage: int = Field(default=0, ge=0, le=100)
    review_feedback: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class MilestoneWithTasks(Milestone):
    """Milestone with its ordered tasks."""

    tasks: list[Task] = Field(default_factory=list)


class MilestoneSeedRequest(BaseModel):
    """Request body for seeding milestones from a template."""

    booking_id: UUID
    plan: str = Field(default="content_creation", max_length=100)


class MilestoneReviewRequest(BaseModel):
    """Client decision on delivered milestone work."""

    action: MilestoneReviewAction = MilestoneReviewAction.APPROVE
    feedback: Optional[str] = Field(None, max_length=1000)


class MilestonePlanItem(BaseModel):
    """A milestone together with the tasks to create under it."""

    milestone: MilestoneCreate
    tasks: list[TaskBase] = Field(default_factory=list)
