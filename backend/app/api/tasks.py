"""
Tasks API endpoints.

CRUD operations for milestone tasks. Every write recomputes the parent
milestone's percentage.
"""

from uuid import UUID

from fastapi import APIRouter, status

from app.api.deps import AppSettings, BookingRepo, CurrentUser, MilestoneRepo, TaskRepo
from app.api.errors import domain_http_error, exception_http_error
from app.api.permissions import require_milestone_access
from app.core.exceptions import NotFoundError
from app.models.results import DomainError, ErrorCode
from app.models.task import Task, TaskCreate, TaskUpdate
from app.services.progress_calculator import ProgressService

router = APIRouter()


async def _get_task_or_404(task_id: UUID, repo: TaskRepo) -> Task:
    task = await repo.get(task_id)
    if task is None:
        raise domain_http_error(
            DomainError(code=ErrorCode.NOT_FOUND, message=f"Task {task_id} not found")
        )
    return task


async def _recalculate(
    milestone_id: UUID,
    booking_repo: BookingRepo,
    milestone_repo: MilestoneRepo,
    settings: AppSettings,
) -> None:
    service = ProgressService(booking_repo, milestone_repo, timezone_name=settings.TIMEZONE)
    try:
        await service.recalculate_milestone(milestone_id)
    except NotFoundError as exc:
        raise exception_http_error(exc) from exc


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    user: CurrentUser,
    repo: TaskRepo,
    milestone_repo: MilestoneRepo,
    booking_repo: BookingRepo,
    settings: AppSettings,
) -> Task:
    """Create a task under a milestone."""
    await require_milestone_access(user, task.milestone_id, milestone_repo, booking_repo, manage=True)
    created = await repo.create(task)
    await _recalculate(created.milestone_id, booking_repo, milestone_repo, settings)
    return created


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: UUID,
    update: TaskUpdate,
    user: CurrentUser,
    repo: TaskRepo,
    milestone_repo: MilestoneRepo,
    booking_repo: BookingRepo,
    settings: AppSettings,
) -> Task:
    """Update a task."""
    task = await _get_task_or_404(task_id, repo)
    await require_milestone_access(user, task.milestone_id, milestone_repo, booking_repo, manage=True)
    try:
        updated = await repo.update(task_id, update)
    except NotFoundError as exc:
        raise exception_http_error(exc) from exc
    await _recalculate(updated.milestone_id, booking_repo, milestone_repo, settings)
    return updated


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    user: CurrentUser,
    repo: TaskRepo,
    milestone_repo: MilestoneRepo,
    booking_repo: BookingRepo,
    settings: AppSettings,
):
    """Delete a task."""
    task = await _get_task_or_404(task_id, repo)
    await require_milestone_access(user, task.milestone_id, milestone_repo, booking_repo, manage=True)
    await repo.delete(task_id)
    await _recalculate(task.milestone_id, booking_repo, milestone_repo, settings)
