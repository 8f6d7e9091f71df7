"""
Client sign-off on milestones.

The booking's client approves delivered work (the milestone becomes
completed) or rejects it (the milestone goes back to the provider as
rejected). evaluate_milestone_review is pure; MilestoneReviewService
loads, evaluates and stores the outcome.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from app.core.exceptions import NotFoundError
from app.core.logger import setup_logger
from app.interfaces.booking_repository import IBookingRepository
from app.interfaces.milestone_repository import IMilestoneRepository
from app.models.booking import Booking
from app.models.enums import BookingStatus, MilestoneReviewAction, MilestoneStatus
from app.models.milestone import Milestone
from app.models.results import (
    DomainError,
    ErrorCode,
    MilestoneReviewDecision,
    MilestoneReviewResult,
)
from app.services.booking_status import normalize_status

logger = setup_logger(__name__)

_CLOSED_BOOKING_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.DECLINED})


def _reject(code: ErrorCode, message: str, **details) -> MilestoneReviewDecision:
    return MilestoneReviewDecision(
        error=DomainError(code=code, message=message, details=details or None)
    )


def evaluate_milestone_review(
    milestone: Milestone,
    booking: Booking,
    actor_id: str,
    action: MilestoneReviewAction,
) -> MilestoneReviewDecision:
    """
    Decide the outcome of a client's review of a milestone.

    Approving an already completed milestone succeeds without a change.
    Rejecting a completed milestone is refused.
    """
    if not actor_id or actor_id != booking.client_id:
        return _reject(
            ErrorCode.FORBIDDEN,
            "Only the booking's client can review its milestones",
            action=action.value,
        )

    booking_status = normalize_status(booking.status)
    if booking_status in _CLOSED_BOOKING_STATUSES:
        return _reject(
            ErrorCode.INVALID_STATE,
            f"Cannot review milestones of a {booking_status.value} booking",
            action=action.value,
            booking_status=booking_status.value,
        )

    if milestone.status == MilestoneStatus.CANCELLED:
        return _reject(
            ErrorCode.INVALID_STATE,
            "Cannot review a cancelled milestone",
            action=action.value,
            current_status=milestone.status.value,
        )

    if action == MilestoneReviewAction.APPROVE:
        return MilestoneReviewDecision(
            status=MilestoneStatus.COMPLETED,
            changed=milestone.status != MilestoneStatus.COMPLETED,
        )

    if milestone.status == MilestoneStatus.COMPLETED:
        return _reject(
            ErrorCode.INVALID_STATE,
            "Milestone is already completed",
            action=action.value,
            current_status=milestone.status.value,
        )
    return MilestoneReviewDecision(status=MilestoneStatus.REJECTED, changed=True)


class MilestoneReviewService:
    """Applies client reviews to stored milestones."""

    def __init__(self, booking_repo: IBookingRepository, milestone_repo: IMilestoneRepository):
        self._booking_repo = booking_repo
        self._milestone_repo = milestone_repo

    async def review(
        self,
        milestone_id: UUID,
        actor_id: str,
        action: MilestoneReviewAction,
        feedback: Optional[str] = None,
    ) -> MilestoneReviewResult:
        milestone = await self._milestone_repo.get(milestone_id)
        if milestone is None:
            return MilestoneReviewResult.failure(
                ErrorCode.NOT_FOUND, f"Milestone {milestone_id} not found"
            )
        booking = await self._booking_repo.get(milestone.booking_id)
        if booking is None:
            return MilestoneReviewResult.failure(
                ErrorCode.NOT_FOUND, f"Booking {milestone.booking_id} not found"
            )

        decision = evaluate_milestone_review(milestone, booking, actor_id, action)
        if not decision.allowed:
            logger.warning(
                f"Rejected milestone {action.value} on {milestone_id} by {actor_id}: "
                f"{decision.error.code.value} ({decision.error.message})"
            )
            return MilestoneReviewResult(ok=False, error=decision.error)

        if not decision.changed:
            return MilestoneReviewResult(ok=True, changed=False, milestone=milestone)

        try:
            updated = await self._milestone_repo.record_review(
                milestone_id, decision.status, feedback
            )
        except NotFoundError as exc:
            return MilestoneReviewResult.failure(ErrorCode.NOT_FOUND, exc.message)

        logger.info(
            f"Milestone {milestone_id} {action.value} by {actor_id}: "
            f"{milestone.status.value} -> {updated.status.value}"
        )
        return MilestoneReviewResult(ok=True, changed=True, milestone=updated)
