"""
Unit tests for milestone template seeding.
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ForbiddenError, InfrastructureError
from app.infrastructure.local.milestone_repository import SqliteMilestoneRepository
from app.models.enums import ApprovalStatus, BookingStatus
from app.services.milestone_templates import DEFAULT_PLAN, get_plan, seed_milestones

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_unknown_plan_falls_back_to_default():
    assert get_plan("no-such-plan").key == DEFAULT_PLAN
    assert get_plan(None).key == DEFAULT_PLAN


@pytest.mark.asyncio
async def test_seed_creates_milestones_and_tasks(session_factory, booking_factory):
    booking = booking_factory()
    milestone_repo = SqliteMilestoneRepository(session_factory=session_factory)

    seeded = await seed_milestones(booking, "provider-1", "content_creation", milestone_repo, now=NOW)

    assert [m.title for m in seeded] == [
        "Research & Strategy",
        "Content Drafting",
        "Review & Feedback",
        "Final Delivery",
    ]
    assert all(len(m.tasks) == 3 for m in seeded)
    assert [t.order_index for t in seeded[0].tasks] == [0, 1, 2]
    assert seeded[0].due_date == date(2026, 3, 6)
    assert seeded[1].weight == 2.0
    assert [m.order_index for m in seeded] == [0, 1, 2, 3]

    stored = await milestone_repo.list_by_booking(booking.id, include_tasks=True)
    assert [m.id for m in stored] == [m.id for m in seeded]


@pytest.mark.asyncio
async def test_only_provider_can_seed(session_factory, booking_factory):
    milestone_repo = SqliteMilestoneRepository(session_factory=session_factory)

    with pytest.raises(ForbiddenError):
        await seed_milestones(booking_factory(), "client-1", None, milestone_repo, now=NOW)


@pytest.mark.asyncio
async def test_seeding_twice_conflicts(session_factory, booking_factory):
    booking = booking_factory()
    milestone_repo = SqliteMilestoneRepository(session_factory=session_factory)
    await seed_milestones(booking, "provider-1", "website_build", milestone_repo, now=NOW)

    with pytest.raises(ConflictError):
        await seed_milestones(booking, "provider-1", "website_build", milestone_repo)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, approval",
    [
        (BookingStatus.DECLINED, ApprovalStatus.REJECTED),
        (BookingStatus.CANCELLED, ApprovalStatus.PENDING),
        (BookingStatus.COMPLETED, ApprovalStatus.APPROVED),
    ],
)
async def test_closed_booking_cannot_be_seeded(booking_factory, status, approval):
    milestone_repo = AsyncMock()

    with pytest.raises(ConflictError) as exc_info:
        await seed_milestones(booking_factory(status, approval), "provider-1", None, milestone_repo)

    assert exc_info.value.details == {"current_status": status.value}
    milestone_repo.create_plan.assert_not_called()


@pytest.mark.asyncio
async def test_failed_seed_leaves_nothing_behind(session_factory, booking_factory, monkeypatch):
    booking = booking_factory()
    milestone_repo = SqliteMilestoneRepository(session_factory=session_factory)
    monkeypatch.setattr(
        AsyncSession,
        "commit",
        AsyncMock(side_effect=OperationalError("INSERT INTO tasks", {}, Exception("disk I/O error"))),
    )

    with pytest.raises(InfrastructureError):
        await seed_milestones(booking, "provider-1", None, milestone_repo, now=NOW)

    monkeypatch.undo()
    assert await milestone_repo.count_by_booking(booking.id) == 0

    retried = await seed_milestones(booking, "provider-1", None, milestone_repo, now=NOW)
    assert len(retried) == 4
