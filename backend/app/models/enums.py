"""
Enum definitions for the application.

These enums are used across models and provide type-safe status values.
"""

from enum import Enum


class BookingStatus(str, Enum):
    """Canonical booking lifecycle status."""

    DRAFT = "draft"
    PENDING_PROVIDER_APPROVAL = "pending_provider_approval"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DECLINED = "declined"
    RESCHEDULED = "rescheduled"
    PENDING = "pending"


class ApprovalStatus(str, Enum):
    """Provider's accept/decline decision, independent of the lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingAction(str, Enum):
    """Actions that move a booking between statuses."""

    SUBMIT = "submit"
    APPROVE = "approve"
    DECLINE = "decline"
    START = "start"
    HOLD = "hold"
    RESUME = "resume"
    COMPLETE = "complete"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


class MilestoneStatus(str, Enum):
    """Milestone status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class TaskStatus(str, Enum):
    """Task status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StatusTone(str, Enum):
    """Visual tone used when rendering a status badge."""

    NEUTRAL = "neutral"
    WARNING = "warning"
    INFO = "info"
    PROGRESS = "progress"
    SUCCESS = "success"
    DANGER = "danger"


class DisplayStatus(str, Enum):
    """Dashboard bucket shown for a booking."""

    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    IN_PRODUCTION = "in_production"
    DELIVERED = "delivered"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class MilestoneReviewAction(str, Enum):
    """Client sign-off decision on a milestone."""

    APPROVE = "approve"
    REJECT = "reject"
