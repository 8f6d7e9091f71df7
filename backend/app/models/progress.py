"""
Derived read models for booking progress and summaries.

These are recomputed on read and never stored as a source of truth.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.enums import ApprovalStatus, BookingStatus, DisplayStatus, StatusTone


class StatusMeta(BaseModel):
    """Display label and tone for a canonical status."""

    label: str
    tone: StatusTone


class BookingProgress(BaseModel):
    """Aggregate progress snapshot for one booking."""

    booking_id: UUID
    overall_percentage: int = Field(default=0, ge=0, le=100)
    total_milestones: int = 0
    completed_milestones: int = 0
    in_progress_milestones: int = 0
    pending_milestones: int = 0
    rejected_milestones: int = 0
    overdue_milestones: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    in_progress_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0
    total_estimated_hours: float = 0
    total_actual_hours: float = 0
    avg_task_progress: int = 0
    milestone_percentages: dict[UUID, int] = Field(default_factory=dict)
    calculated_at: datetime


class BookingSummary(BaseModel):
    """Dashboard KPIs over a set of bookings."""

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    pending: int = 0
    approved: int = 0
    declined: int = 0
    cancelled: int = 0
    total_revenue: float = 0
    completion_rate: int = 0
    currency: str = "OMR"


class BookingStatusView(BaseModel):
    """Display metadata for one booking's current state."""

    status: BookingStatus
    approval_status: ApprovalStatus
    label: str
    tone: StatusTone
    display_status: DisplayStatus
    subtitle: str
    is_terminal: bool
    progress_percentage: int = Field(default=0, ge=0, le=100)
    formatted_amount: str
