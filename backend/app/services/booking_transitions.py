"""
Booking transition guard.

Decides who may move a booking between statuses and what the resulting
state is. The decision is pure (evaluate_transition); BookingTransitionService
reads the booking, evaluates, and writes the update with a compare-and-set
on the status it read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from app.core.exceptions import InfrastructureError
from app.core.logger import setup_logger
from app.interfaces.booking_repository import IBookingRepository
from app.models.booking import Booking, BookingStatusUpdate
from app.models.enums import ApprovalStatus, BookingAction, BookingStatus
from app.models.results import DomainError, ErrorCode, TransitionDecision, TransitionResult
from app.services.booking_status import (
    AWAITING_PROVIDER_STATUSES,
    TERMINAL_STATUSES,
    is_consistent_state,
    normalize_status,
)
from app.utils.datetime_utils import now_utc

logger = setup_logger(__name__)


PROVIDER = "provider"
CLIENT = "client"

# action -> (roles allowed to perform it, source statuses it is legal from)
_TRANSITION_RULES: dict[BookingAction, tuple[frozenset[str], frozenset[BookingStatus]]] = {
    BookingAction.SUBMIT: (frozenset({CLIENT}), frozenset({BookingStatus.DRAFT})),
    BookingAction.APPROVE: (frozenset({PROVIDER}), AWAITING_PROVIDER_STATUSES),
    BookingAction.DECLINE: (frozenset({PROVIDER}), AWAITING_PROVIDER_STATUSES),
    BookingAction.START: (
        frozenset({PROVIDER}),
        frozenset({BookingStatus.APPROVED, BookingStatus.RESCHEDULED}),
    ),
    BookingAction.HOLD: (frozenset({PROVIDER}), frozenset({BookingStatus.IN_PROGRESS})),
    BookingAction.RESUME: (frozenset({PROVIDER}), frozenset({BookingStatus.ON_HOLD})),
    BookingAction.COMPLETE: (
        frozenset({PROVIDER}),
        frozenset({BookingStatus.APPROVED, BookingStatus.IN_PROGRESS}),
    ),
    BookingAction.CANCEL: (
        frozenset({CLIENT}),
        frozenset(set(BookingStatus) - TERMINAL_STATUSES),
    ),
    BookingAction.RESCHEDULE: (
        frozenset({CLIENT, PROVIDER}),
        frozenset(set(BookingStatus) - TERMINAL_STATUSES - {BookingStatus.DRAFT}),
    ),
}

_ROLE_LABELS = {
    frozenset({PROVIDER}): "the booking's provider",
    frozenset({CLIENT}): "the booking's client",
    frozenset({CLIENT, PROVIDER}): "a participant of the booking",
}


def _actor_roles(booking: Booking, actor_id: str) -> set[str]:
    roles = set()
    if actor_id and actor_id == booking.provider_id:
        roles.add(PROVIDER)
    if actor_id and actor_id == booking.client_id:
        roles.add(CLIENT)
    return roles


def _reject(code: ErrorCode, message: str, **details) -> TransitionDecision:
    return TransitionDecision(error=DomainError(code=code, message=message, details=details or None))


def evaluate_transition(
    booking: Booking,
    actor_id: str,
    action: BookingAction,
    now: Optional[datetime] = None,
    reason: Optional[str] = None,
    scheduled_date: Optional[datetime] = None,
) -> TransitionDecision:
    """
    Decide whether an actor may apply an action to a booking.

    The actor is checked before the source state, so a wrong actor is always
    reported as FORBIDDEN. Nothing is mutated.

    Returns:
        TransitionDecision carrying either the update to write or the error.
    """
    allowed_roles, allowed_sources = _TRANSITION_RULES[action]
    current = normalize_status(booking.status)

    if not _actor_roles(booking, actor_id) & allowed_roles:
        return _reject(
            ErrorCode.FORBIDDEN,
            f"Only {_ROLE_LABELS[allowed_roles]} can {action.value} this booking",
            action=action.value,
        )

    if current not in allowed_sources:
        return _reject(
            ErrorCode.INVALID_STATE,
            f"Cannot {action.value} a booking in status '{current.value}'",
            action=action.value,
            current_status=current.value,
            allowed_statuses=sorted(status.value for status in allowed_sources),
        )

    timestamp = now or now_utc()
    approval = booking.approval_status

    if action == BookingAction.SUBMIT:
        update = BookingStatusUpdate(
            status=BookingStatus.PENDING_PROVIDER_APPROVAL,
            approval_status=ApprovalStatus.PENDING,
            updated_at=timestamp,
            scheduled_date=scheduled_date,
        )
    elif action == BookingAction.APPROVE:
        update = BookingStatusUpdate(
            status=BookingStatus.APPROVED,
            approval_status=ApprovalStatus.APPROVED,
            updated_at=timestamp,
        )
    elif action == BookingAction.DECLINE:
        update = BookingStatusUpdate(
            status=BookingStatus.DECLINED,
            approval_status=ApprovalStatus.REJECTED,
            updated_at=timestamp,
            decline_reason=reason,
        )
    elif action in (BookingAction.START, BookingAction.RESUME):
        update = BookingStatusUpdate(
            status=BookingStatus.IN_PROGRESS,
            approval_status=ApprovalStatus.APPROVED,
            updated_at=timestamp,
        )
    elif action == BookingAction.HOLD:
        update = BookingStatusUpdate(
            status=BookingStatus.ON_HOLD,
            approval_status=ApprovalStatus.APPROVED,
            updated_at=timestamp,
        )
    elif action == BookingAction.COMPLETE:
        update = BookingStatusUpdate(
            status=BookingStatus.COMPLETED,
            approval_status=ApprovalStatus.APPROVED,
            updated_at=timestamp,
        )
    elif action == BookingAction.CANCEL:
        update = BookingStatusUpdate(
            status=BookingStatus.CANCELLED,
            approval_status=approval,
            updated_at=timestamp,
            cancel_reason=reason,
        )
    else:
        if scheduled_date is None:
            return _reject(
                ErrorCode.VALIDATION_ERROR,
                "scheduled_date is required to reschedule a booking",
                action=action.value,
            )
        if current in AWAITING_PROVIDER_STATUSES:
            # Still undecided: the new date goes back to the provider.
            update = BookingStatusUpdate(
                status=BookingStatus.PENDING_PROVIDER_APPROVAL,
                approval_status=ApprovalStatus.PENDING,
                updated_at=timestamp,
                scheduled_date=scheduled_date,
            )
        else:
            update = BookingStatusUpdate(
                status=BookingStatus.RESCHEDULED,
                approval_status=ApprovalStatus.APPROVED,
                updated_at=timestamp,
                scheduled_date=scheduled_date,
            )

    if not is_consistent_state(update.status, update.approval_status):
        return _reject(
            ErrorCode.INVALID_STATE,
            f"Cannot {action.value}: resulting state would be contradictory",
            status=update.status.value,
            approval_status=update.approval_status.value,
        )

    return TransitionDecision(update=update)


class BookingTransitionService:
    """Applies guarded transitions to stored bookings."""

    def __init__(self, repo: IBookingRepository):
        self._repo = repo

    async def approve(self, booking_id: UUID, actor_id: str) -> TransitionResult:
        return await self.apply(booking_id, actor_id, BookingAction.APPROVE)

    async def decline(
        self, booking_id: UUID, actor_id: str, reason: Optional[str] = None
    ) -> TransitionResult:
        return await self.apply(booking_id, actor_id, BookingAction.DECLINE, reason=reason)

    async def apply(
        self,
        booking_id: UUID,
        actor_id: str,
        action: BookingAction,
        reason: Optional[str] = None,
        scheduled_date: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Read, evaluate and write one transition.

        Expected failures come back as TransitionResult errors. Exceptions
        other than InfrastructureError propagate to the caller.
        """
        booking = await self._repo.get(booking_id)
        if booking is None:
            return TransitionResult.failure(
                ErrorCode.NOT_FOUND, f"Booking {booking_id} not found"
            )

        decision = evaluate_transition(
            booking,
            actor_id,
            action,
            reason=reason,
            scheduled_date=scheduled_date,
        )
        if not decision.allowed:
            logger.warning(
                f"Rejected {action.value} on booking {booking_id} by {actor_id}: "
                f"{decision.error.code.value} ({decision.error.message})"
            )
            return TransitionResult(ok=False, error=decision.error)

        expected = normalize_status(booking.status)
        try:
            updated = await self._repo.update_status(
                booking_id, decision.update, expected_status=expected
            )
        except InfrastructureError as exc:
            logger.error(f"Failed to write {action.value} for booking {booking_id}: {exc.message}")
            return TransitionResult.failure(
                ErrorCode.UPDATE_FAILED,
                "Failed to update booking",
                details={"cause": exc.message, "info": exc.details},
            )

        if updated is None:
            # Status changed (or row vanished) between read and write.
            logger.error(
                f"Compare-and-set failed for booking {booking_id}: expected status {expected.value}"
            )
            return TransitionResult.failure(
                ErrorCode.UPDATE_FAILED,
                "Failed to update booking",
                details={"cause": "booking status changed concurrently", "expected_status": expected.value},
            )

        logger.info(
            f"Booking {booking_id} {action.value} by {actor_id}: "
            f"{expected.value} -> {updated.status.value}"
        )
        return TransitionResult.success(updated)
