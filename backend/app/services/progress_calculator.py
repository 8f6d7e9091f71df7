"""
Progress aggregation.

Derives completion percentages bottom-up (task -> milestone -> booking)
and builds the BookingProgress read model. Everything here except
ProgressService is pure.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal
from numbers import Real
from typing import Iterable, Optional, Sequence, Union
from uuid import UUID
from zoneinfo import ZoneInfo

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logger import setup_logger
from app.interfaces.booking_repository import IBookingRepository
from app.interfaces.milestone_repository import IMilestoneRepository
from app.models.enums import MilestoneStatus, TaskStatus
from app.models.milestone import Milestone, MilestoneWithTasks
from app.models.progress import BookingProgress
from app.models.task import Task
from app.utils.datetime_utils import due_instant, ensure_utc, now_utc

logger = setup_logger(__name__)

_CLOSED_STATUSES = {"completed", "cancelled"}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: Optional[float]) -> int:
    if value is None:
        return 0
    return max(0, min(100, round_half_up(float(value))))


def count_based_percent(completed: int, total: int) -> int:
    """
    Percentage of completed items.

    Returns 0 when there is nothing to count; never negative, never above 100.
    """
    if not total or total <= 0:
        return 0
    return clamp_percent(completed / total * 100)


def _validated_weight(weight: object) -> float:
    if weight is None:
        return 0.0
    if isinstance(weight, bool) or not isinstance(weight, (Real, Decimal)):
        raise ValidationError(f"Milestone weight must be numeric, got {weight!r}")
    if weight != weight or weight < 0:
        raise ValidationError(f"Milestone weight must be non-negative, got {weight!r}")
    return float(weight)


def weighted_booking_progress(items: Iterable[tuple[float, object]]) -> int:
    """
    Weighted rollup of (percentage, weight) pairs.

    Falls back to the plain mean when every weight is zero or missing.

    Raises:
        ValidationError: If a weight is negative or not a number
    """
    pairs = [(clamp_percent(percent), _validated_weight(weight)) for percent, weight in items]
    if not pairs:
        return 0
    total_weight = sum(weight for _, weight in pairs)
    if total_weight <= 0:
        return clamp_percent(sum(percent for percent, _ in pairs) / len(pairs))
    return clamp_percent(sum(percent * weight for percent, weight in pairs) / total_weight)


def task_progress(task: Task) -> int:
    if task.status == TaskStatus.COMPLETED:
        return 100
    if task.status == TaskStatus.PENDING:
        return 0
    return clamp_percent(task.progress_percentage)


def _counted_tasks(tasks: Sequence[Task]) -> list[Task]:
    return [task for task in tasks if task.status != TaskStatus.CANCELLED]


def milestone_progress(milestone: Milestone, tasks: Sequence[Task]) -> int:
    """
    Milestone percentage as the mean of its tasks' percentages.

    A milestone without (non-cancelled) tasks keeps its own stored percentage.
    """
    counted = _counted_tasks(tasks)
    if not counted:
        return clamp_percent(milestone.progress_percentage)
    return clamp_percent(sum(task_progress(task) for task in counted) / len(counted))


def milestone_progress_by_status(milestone: Milestone, tasks: Sequence[Task]) -> int:
    """Milestone percentage as the completed/total ratio of its tasks."""
    counted = _counted_tasks(tasks)
    if not counted:
        return clamp_percent(milestone.progress_percentage)
    completed = sum(1 for task in counted if task.status == TaskStatus.COMPLETED)
    return count_based_percent(completed, len(counted))


def is_overdue(
    due: Optional[Union[date, datetime]],
    status: Optional[Union[str, TaskStatus, MilestoneStatus]],
    now: Optional[datetime] = None,
    tz: Union[str, ZoneInfo] = "UTC",
) -> bool:
    """
    True when the due value lies strictly in the past and the item is still open.

    Date-only due values expire at the end of that day in `tz`.
    """
    if due is None:
        return False
    status_value = str(getattr(status, "value", status) or "").lower()
    if status_value in _CLOSED_STATUSES:
        return False
    current = ensure_utc(now) if now is not None else now_utc()
    return due_instant(due, tz) < current


def compute_booking_progress(
    booking_id: UUID,
    milestones: Sequence[MilestoneWithTasks],
    now: Optional[datetime] = None,
    tz: Union[str, ZoneInfo] = "UTC",
) -> BookingProgress:
    """Build the aggregate progress snapshot for a booking."""
    current = ensure_utc(now) if now is not None else now_utc()

    percentages: dict[UUID, int] = {}
    rollup: list[tuple[int, float]] = []
    all_tasks: list[Task] = []
    overdue_milestones = 0

    for milestone in milestones:
        percent = milestone_progress(milestone, milestone.tasks)
        percentages[milestone.id] = percent
        rollup.append((percent, milestone.weight))
        all_tasks.extend(milestone.tasks)
        if is_overdue(milestone.due_date, milestone.status, current, tz):
            overdue_milestones += 1

    def count_milestones(status: MilestoneStatus) -> int:
        return sum(1 for m in milestones if m.status == status)

    def count_tasks(status: TaskStatus) -> int:
        return sum(1 for t in all_tasks if t.status == status)

    avg_task = (
        clamp_percent(sum(task_progress(t) for t in all_tasks) / len(all_tasks)) if all_tasks else 0
    )

    return BookingProgress(
        booking_id=booking_id,
        overall_percentage=weighted_booking_progress(rollup),
        total_milestones=len(milestones),
        completed_milestones=count_milestones(MilestoneStatus.COMPLETED),
        in_progress_milestones=count_milestones(MilestoneStatus.IN_PROGRESS),
        pending_milestones=count_milestones(MilestoneStatus.PENDING),
        rejected_milestones=count_milestones(MilestoneStatus.REJECTED),
        overdue_milestones=overdue_milestones,
        total_tasks=len(all_tasks),
        completed_tasks=count_tasks(TaskStatus.COMPLETED),
        in_progress_tasks=count_tasks(TaskStatus.IN_PROGRESS),
        pending_tasks=count_tasks(TaskStatus.PENDING),
        overdue_tasks=sum(1 for t in all_tasks if is_overdue(t.due_date, t.status, current, tz)),
        total_estimated_hours=sum(t.estimated_hours or 0 for t in all_tasks),
        total_actual_hours=sum(t.actual_hours or 0 for t in all_tasks),
        avg_task_progress=avg_task,
        milestone_percentages=percentages,
        calculated_at=current,
    )


class ProgressService:
    """Reads milestones/tasks and keeps derived percentages current."""

    def __init__(
        self,
        booking_repo: IBookingRepository,
        milestone_repo: IMilestoneRepository,
        timezone_name: str = "UTC",
    ):
        self._booking_repo = booking_repo
        self._milestone_repo = milestone_repo
        self._tz = timezone_name

    async def get_booking_progress(self, booking_id: UUID, now: Optional[datetime] = None) -> BookingProgress:
        """
        Recompute progress for a booking from its milestones and tasks.

        Raises:
            NotFoundError: If the booking does not exist
        """
        booking = await self._booking_repo.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        milestones = await self._milestone_repo.list_by_booking(booking_id, include_tasks=True)
        return compute_booking_progress(booking_id, milestones, now=now, tz=self._tz)

    async def recalculate_milestone(self, milestone_id: UUID) -> Milestone:
        """
        Write the task-derived percentage back to a milestone.

        A milestone without counted tasks falls back to its last manually
        set percentage.

        Raises:
            NotFoundError: If the milestone does not exist
        """
        milestone = await self._milestone_repo.get(milestone_id, include_tasks=True)
        if milestone is None:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        if _counted_tasks(milestone.tasks):
            percent = milestone_progress(milestone, milestone.tasks)
        else:
            percent = clamp_percent(milestone.manual_progress_percentage)
        if percent == milestone.progress_percentage:
            return milestone

        logger.info(
            f"Milestone {milestone_id} progress {milestone.progress_percentage}% -> {percent}%"
        )
        return await self._milestone_repo.set_progress(milestone_id, percent)
