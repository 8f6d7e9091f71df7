from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException

from app.api.deps import BookingRepo, CurrentUser, MilestoneRepo
from app.api.errors import domain_http_error
from app.models.booking import Booking
from app.models.milestone import MilestoneWithTasks
from app.models.results import DomainError, ErrorCode


def _denied(code: ErrorCode, message: str) -> HTTPException:
    return domain_http_error(DomainError(code=code, message=message))


async def require_booking_participant(
    user: CurrentUser,
    booking_id: UUID,
    booking_repo: BookingRepo,
) -> Booking:
    booking = await booking_repo.get(booking_id)
    if booking is None:
        raise _denied(ErrorCode.NOT_FOUND, f"Booking {booking_id} not found")
    if not booking.is_participant(user.id):
        raise _denied(ErrorCode.FORBIDDEN, "Not a participant of this booking")
    return booking


async def require_booking_provider(
    user: CurrentUser,
    booking_id: UUID,
    booking_repo: BookingRepo,
) -> Booking:
    booking = await require_booking_participant(user, booking_id, booking_repo)
    if booking.provider_id != user.id:
        raise _denied(ErrorCode.FORBIDDEN, "Only the booking's provider can manage its plan")
    return booking


async def require_milestone_access(
    user: CurrentUser,
    milestone_id: UUID,
    milestone_repo: MilestoneRepo,
    booking_repo: BookingRepo,
    manage: bool = False,
    include_tasks: bool = False,
) -> MilestoneWithTasks:
    milestone = await milestone_repo.get(milestone_id, include_tasks=include_tasks)
    if milestone is None:
        raise _denied(ErrorCode.NOT_FOUND, f"Milestone {milestone_id} not found")
    if manage:
        await require_booking_provider(user, milestone.booking_id, booking_repo)
    else:
        await require_booking_participant(user, milestone.booking_id, booking_repo)
    return milestone
