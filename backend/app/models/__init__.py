"""Pydantic models (schemas) for the application."""

from app.models.enums import (
    ApprovalStatus,
    BookingAction,
    BookingStatus,
    DisplayStatus,
    MilestoneReviewAction,
    MilestoneStatus,
    StatusTone,
    TaskStatus,
)
from app.models.booking import Booking, BookingActionRequest, BookingCreate, BookingStatusUpdate
from app.models.task import Task, TaskCreate, TaskUpdate
from app.models.milestone import (
    Milestone,
    MilestoneCreate,
    MilestoneReviewRequest,
    MilestoneUpdate,
    MilestoneWithTasks,
)
from app.models.progress import BookingProgress, BookingStatusView, BookingSummary, StatusMeta
from app.models.results import (
    DomainError,
    ErrorCode,
    MilestoneReviewDecision,
    MilestoneReviewResult,
    TransitionDecision,
    TransitionResult,
)

__all__ = [
    # Enums
    "BookingStatus",
    "ApprovalStatus",
    "BookingAction",
    "DisplayStatus",
    "MilestoneReviewAction",
    "MilestoneStatus",
    "StatusTone",
    "TaskStatus",
    # Booking
    "Booking",
    "BookingCreate",
    "BookingActionRequest",
    "BookingStatusUpdate",
    # Task
    "Task",
    "TaskCreate",
    "TaskUpdate",
    # Milestone
    "Milestone",
    "MilestoneCreate",
    "MilestoneReviewRequest",
    "MilestoneUpdate",
    "MilestoneWithTasks",
    # Read models
    "BookingProgress",
    "BookingStatusView",
    "BookingSummary",
    "StatusMeta",
    # Results
    "DomainError",
    "ErrorCode",
    "MilestoneReviewDecision",
    "MilestoneReviewResult",
    "TransitionDecision",
    "TransitionResult",
]
