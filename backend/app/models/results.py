"""
Result types for expected domain outcomes.

Transitions return these instead of raising so callers can map them
to transport-specific responses.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from app.models.booking import Booking, BookingStatusUpdate
from app.models.enums import MilestoneStatus
from app.models.milestone import Milestone


class ErrorCode(str, Enum):
    """Classification of a failed domain operation."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    UPDATE_FAILED = "UPDATE_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class DomainError(BaseModel):
    """Structured error with an optional diagnostic payload."""

    code: ErrorCode
    message: str
    details: Optional[Any] = None


class TransitionDecision(BaseModel):
    """Outcome of evaluating a transition without touching storage."""

    update: Optional[BookingStatusUpdate] = None
    error: Optional[DomainError] = None

    @property
    def allowed(self) -> bool:
        return self.error is None


class TransitionResult(BaseModel):
    """Outcome of a persisted transition."""

    ok: bool
    booking: Optional[Booking] = None
    error: Optional[DomainError] = None

    @classmethod
    def success(cls, booking: Booking) -> "TransitionResult":
        return cls(ok=True, booking=booking)

    @classmethod
    def failure(cls, code: ErrorCode, message: str, details: Any = None) -> "TransitionResult":
        return cls(ok=False, error=DomainError(code=code, message=message, details=details))


class MilestoneReviewDecision(BaseModel):
    """Outcome of evaluating a client's milestone review."""

    status: Optional[MilestoneStatus] = None
    changed: bool = False
    error: Optional[DomainError] = None

    @property
    def allowed(self) -> bool:
        return self.error is None


class MilestoneReviewResult(BaseModel):
    """Outcome of a persisted milestone review."""

    ok: bool
    changed: bool = False
    milestone: Optional[Milestone] = None
    error: Optional[DomainError] = None

    @classmethod
    def failure(cls, code: ErrorCode, message: str, details: Any = None) -> "MilestoneReviewResult":
        return cls(ok=False, error=DomainError(code=code, message=message, details=details))
