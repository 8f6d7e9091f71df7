"""
Milestone API endpoints.

Provides CRUD operations for booking milestones, template seeding,
progress recalculation and the client's milestone review.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.api.deps import AppSettings, BookingRepo, CurrentUser, MilestoneRepo
from app.api.errors import domain_http_error, exception_http_error
from app.api.permissions import (
    require_booking_participant,
    require_booking_provider,
    require_milestone_access,
)
from app.core.exceptions import ConflictError, ForbiddenError, InfrastructureError, NotFoundError
from app.models.enums import MilestoneStatus
from app.models.milestone import (
    Milestone,
    MilestoneCreate,
    MilestoneReviewRequest,
    MilestoneSeedRequest,
    MilestoneUpdate,
    MilestoneWithTasks,
)
from app.models.results import DomainError, ErrorCode, MilestoneReviewResult
from app.services.milestone_reviews import MilestoneReviewService
from app.services.milestone_templates import seed_milestones
from app.services.progress_calculator import ProgressService

router = APIRouter(prefix="/milestones", tags=["milestones"])


@router.post("", response_model=Milestone, status_code=status.HTTP_201_CREATED)
async def create_milestone(
    milestone: MilestoneCreate,
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
) -> Milestone:
    """Create a new milestone on a booking."""
    await require_booking_provider(user, milestone.booking_id, booking_repo)
    return await repo.create(milestone)


@router.get("", response_model=list[MilestoneWithTasks])
async def list_milestones(
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
    booking_id: UUID = Query(..., description="Booking whose milestones to list"),
    include_tasks: bool = Query(False, description="Embed ordered tasks"),
) -> list[MilestoneWithTasks]:
    """List milestones of a booking in order."""
    await require_booking_participant(user, booking_id, booking_repo)
    return await repo.list_by_booking(booking_id, include_tasks=include_tasks)


@router.post("/seed", response_model=list[MilestoneWithTasks], status_code=status.HTTP_201_CREATED)
async def seed_booking_milestones(
    request: MilestoneSeedRequest,
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
) -> list[MilestoneWithTasks]:
    """Create a plan template's milestones and tasks for a booking."""
    booking = await require_booking_participant(user, request.booking_id, booking_repo)
    try:
        return await seed_milestones(booking, user.id, request.plan, repo)
    except (ForbiddenError, ConflictError, InfrastructureError) as exc:
        raise exception_http_error(exc) from exc


@router.get("/{milestone_id}", response_model=MilestoneWithTasks)
async def get_milestone(
    milestone_id: UUID,
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
) -> MilestoneWithTasks:
    """Get a milestone with its tasks."""
    return await require_milestone_access(
        user, milestone_id, repo, booking_repo, include_tasks=True
    )


@router.patch("/{milestone_id}", response_model=Milestone)
async def update_milestone(
    milestone_id: UUID,
    update: MilestoneUpdate,
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
) -> Milestone:
    """Update a milestone."""
    milestone = await require_milestone_access(
        user, milestone_id, repo, booking_repo, manage=True, include_tasks=True
    )
    if update.status == MilestoneStatus.REJECTED:
        raise domain_http_error(
            DomainError(
                code=ErrorCode.VALIDATION_ERROR,
                message="Milestones are rejected through the client's review",
            )
        )
    if update.progress_percentage is not None and milestone.tasks:
        raise domain_http_error(
            DomainError(
                code=ErrorCode.VALIDATION_ERROR,
                message="Progress of a milestone with tasks is derived from its tasks",
            )
        )
    try:
        return await repo.update(milestone_id, update)
    except NotFoundError as exc:
        raise exception_http_error(exc) from exc


@router.delete("/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_milestone(
    milestone_id: UUID,
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
):
    """Delete a milestone and its tasks."""
    await require_milestone_access(user, milestone_id, repo, booking_repo, manage=True)
    await repo.delete(milestone_id)


@router.post("/{milestone_id}/recalculate", response_model=Milestone)
async def recalculate_milestone(
    milestone_id: UUID,
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
    settings: AppSettings,
) -> Milestone:
    """Write the task-derived percentage back to the milestone."""
    await require_milestone_access(user, milestone_id, repo, booking_repo, manage=True)
    service = ProgressService(booking_repo, repo, timezone_name=settings.TIMEZONE)
    try:
        return await service.recalculate_milestone(milestone_id)
    except NotFoundError as exc:
        raise exception_http_error(exc) from exc


@router.post("/{milestone_id}/approve", response_model=MilestoneReviewResult)
async def review_milestone(
    milestone_id: UUID,
    user: CurrentUser,
    repo: MilestoneRepo,
    booking_repo: BookingRepo,
    body: Optional[MilestoneReviewRequest] = None,
) -> MilestoneReviewResult:
    """Client approves or rejects a milestone (defaults to approve)."""
    request = body or MilestoneReviewRequest()
    await require_milestone_access(user, milestone_id, repo, booking_repo)
    result = await MilestoneReviewService(booking_repo, repo).review(
        milestone_id, user.id, request.action, feedback=request.feedback
    )
    if not result.ok:
        raise domain_http_error(result.error)
    return result
