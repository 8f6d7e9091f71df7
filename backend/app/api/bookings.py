"""
Booking API endpoints.

Creation, listing and the guarded status transitions.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.api.deps import AppSettings, BookingRepo, CurrentUser, MilestoneRepo
from app.api.errors import domain_http_error, exception_http_error
from app.api.permissions import require_booking_participant
from app.core.exceptions import NotFoundError
from app.core.logger import setup_logger
from app.models.booking import (
    Booking,
    BookingActionRequest,
    BookingCreate,
    DeclineRequest,
)
from app.models.progress import BookingProgress, BookingStatusView, BookingSummary
from app.models.results import TransitionResult
from app.services.booking_amounts import format_amount, summarize_bookings
from app.services.booking_status import (
    derive_display_status,
    get_status_meta,
    is_terminal,
    status_subtitle,
)
from app.services.booking_transitions import BookingTransitionService
from app.services.progress_calculator import ProgressService

logger = setup_logger(__name__)

router = APIRouter()


def _raise_on_failure(result: TransitionResult) -> TransitionResult:
    if not result.ok:
        raise domain_http_error(result.error)
    return result


@router.post("", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking: BookingCreate,
    user: CurrentUser,
    repo: BookingRepo,
) -> Booking:
    """Create a booking. The caller becomes its client."""
    created = await repo.create(user.id, booking)
    logger.info(f"Booking {created.id} created by {user.id} ({created.status.value})")
    return created


@router.get("", response_model=list[Booking])
async def list_bookings(
    user: CurrentUser,
    repo: BookingRepo,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> list[Booking]:
    """List bookings where the caller is client or provider."""
    return await repo.list_for_actor(user.id, limit=limit, offset=offset)


@router.get("/summary", response_model=BookingSummary)
async def get_booking_summary(
    user: CurrentUser,
    repo: BookingRepo,
    settings: AppSettings,
) -> BookingSummary:
    """Dashboard counts and revenue over the caller's bookings."""
    bookings = await repo.list_for_actor(user.id, limit=10000)
    return summarize_bookings(bookings, currency=settings.DEFAULT_CURRENCY)


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(
    booking_id: UUID,
    user: CurrentUser,
    repo: BookingRepo,
) -> Booking:
    """Get a booking by ID."""
    return await require_booking_participant(user, booking_id, repo)


@router.post("/{booking_id}/approve", response_model=TransitionResult)
async def approve_booking(
    booking_id: UUID,
    user: CurrentUser,
    repo: BookingRepo,
) -> TransitionResult:
    """Provider accepts a booking awaiting approval."""
    result = await BookingTransitionService(repo).approve(booking_id, user.id)
    return _raise_on_failure(result)


@router.post("/{booking_id}/decline", response_model=TransitionResult)
async def decline_booking(
    booking_id: UUID,
    user: CurrentUser,
    repo: BookingRepo,
    body: Optional[DeclineRequest] = None,
) -> TransitionResult:
    """Provider rejects a booking awaiting approval."""
    reason = body.reason if body else None
    result = await BookingTransitionService(repo).decline(booking_id, user.id, reason=reason)
    return _raise_on_failure(result)


@router.patch("/{booking_id}", response_model=TransitionResult)
async def apply_booking_action(
    booking_id: UUID,
    request: BookingActionRequest,
    user: CurrentUser,
    repo: BookingRepo,
) -> TransitionResult:
    """Apply a lifecycle action such as submit, start, hold or reschedule."""
    result = await BookingTransitionService(repo).apply(
        booking_id,
        user.id,
        request.action,
        reason=request.reason,
        scheduled_date=request.scheduled_date,
    )
    return _raise_on_failure(result)


@router.get("/{booking_id}/progress", response_model=BookingProgress)
async def get_booking_progress(
    booking_id: UUID,
    user: CurrentUser,
    repo: BookingRepo,
    milestone_repo: MilestoneRepo,
    settings: AppSettings,
) -> BookingProgress:
    """Recompute overall progress from milestones and tasks."""
    await require_booking_participant(user, booking_id, repo)
    service = ProgressService(repo, milestone_repo, timezone_name=settings.TIMEZONE)
    try:
        return await service.get_booking_progress(booking_id)
    except NotFoundError as exc:
        raise exception_http_error(exc) from exc


@router.get("/{booking_id}/status-meta", response_model=BookingStatusView)
async def get_booking_status_meta(
    booking_id: UUID,
    user: CurrentUser,
    repo: BookingRepo,
    milestone_repo: MilestoneRepo,
    settings: AppSettings,
) -> BookingStatusView:
    """Label, tone and dashboard bucket for the booking's current state."""
    booking = await require_booking_participant(user, booking_id, repo)
    service = ProgressService(repo, milestone_repo, timezone_name=settings.TIMEZONE)
    try:
        progress = await service.get_booking_progress(booking_id)
    except NotFoundError as exc:
        raise exception_http_error(exc) from exc

    meta = get_status_meta(booking.status)
    display = derive_display_status(
        booking.status, booking.approval_status, progress.overall_percentage
    )
    return BookingStatusView(
        status=booking.status,
        approval_status=booking.approval_status,
        label=meta.label,
        tone=meta.tone,
        display_status=display,
        subtitle=status_subtitle(display),
        is_terminal=is_terminal(booking.status),
        progress_percentage=progress.overall_percentage,
        formatted_amount=format_amount(
            booking.total_amount, booking.currency, settings.CURRENCY_LOCALE
        ),
    )
