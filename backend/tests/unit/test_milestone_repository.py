"""
Unit tests for Milestone and Task repositories.
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from app.core.exceptions import NotFoundError
from app.infrastructure.local.booking_repository import SqliteBookingRepository
from app.infrastructure.local.milestone_repository import SqliteMilestoneRepository
from app.infrastructure.local.task_repository import SqliteTaskRepository
from app.models.booking import BookingCreate
from app.models.enums import MilestoneStatus, TaskStatus
from app.models.milestone import MilestoneCreate, MilestoneUpdate
from app.models.task import TaskCreate, TaskUpdate
from app.services.progress_calculator import ProgressService


@pytest.fixture
async def booking(session_factory, test_user_id):
    repo = SqliteBookingRepository(session_factory=session_factory)
    return await repo.create(
        test_user_id, BookingCreate(provider_id="provider-1", title="Podcast edit")
    )


@pytest.mark.asyncio
async def test_create_and_get_milestone(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)

    created = await repo.create(
        MilestoneCreate(
            booking_id=booking.id,
            title="Recording",
            weight=2,
            due_date=date(2026, 3, 20),
        )
    )
    fetched = await repo.get(created.id)

    assert fetched.title == "Recording"
    assert fetched.weight == 2
    assert fetched.status == MilestoneStatus.PENDING
    assert fetched.due_date == date(2026, 3, 20)
    assert fetched.tasks == []


@pytest.mark.asyncio
async def test_datetime_due_date_round_trips_as_utc(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    due = datetime(2026, 3, 20, 15, 30, tzinfo=timezone.utc)

    created = await repo.create(MilestoneCreate(booking_id=booking.id, title="Mix", due_date=due))

    assert created.due_date == due


@pytest.mark.asyncio
async def test_list_by_booking_orders_and_embeds_tasks(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    task_repo = SqliteTaskRepository(session_factory=session_factory)
    second = await repo.create(MilestoneCreate(booking_id=booking.id, title="Second", order_index=1))
    first = await repo.create(MilestoneCreate(booking_id=booking.id, title="First", order_index=0))
    await task_repo.create(TaskCreate(milestone_id=first.id, title="B", order_index=1))
    await task_repo.create(TaskCreate(milestone_id=first.id, title="A", order_index=0))

    milestones = await repo.list_by_booking(booking.id, include_tasks=True)

    assert [m.id for m in milestones] == [first.id, second.id]
    assert [t.title for t in milestones[0].tasks] == ["A", "B"]
    assert milestones[1].tasks == []
    assert await repo.count_by_booking(booking.id) == 2


@pytest.mark.asyncio
async def test_update_sets_completed_at(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    milestone = await repo.create(MilestoneCreate(booking_id=booking.id, title="Delivery"))

    completed = await repo.update(milestone.id, MilestoneUpdate(status=MilestoneStatus.COMPLETED))
    assert completed.status == MilestoneStatus.COMPLETED
    assert completed.completed_at is not None

    reopened = await repo.update(milestone.id, MilestoneUpdate(status=MilestoneStatus.IN_PROGRESS))
    assert reopened.completed_at is None


@pytest.mark.asyncio
async def test_update_missing_milestone_raises(session_factory):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    with pytest.raises(NotFoundError):
        await repo.update(uuid4(), MilestoneUpdate(title="Nope"))


@pytest.mark.asyncio
async def test_delete_removes_tasks(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    task_repo = SqliteTaskRepository(session_factory=session_factory)
    milestone = await repo.create(MilestoneCreate(booking_id=booking.id, title="Cut"))
    task = await task_repo.create(TaskCreate(milestone_id=milestone.id, title="Rough cut"))

    assert await repo.delete(milestone.id) is True
    assert await repo.get(milestone.id) is None
    assert await task_repo.get(task.id) is None
    assert await repo.delete(milestone.id) is False


@pytest.mark.asyncio
async def test_task_update_keeps_invariant(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    task_repo = SqliteTaskRepository(session_factory=session_factory)
    milestone = await repo.create(MilestoneCreate(booking_id=booking.id, title="Color"))
    task = await task_repo.create(TaskCreate(milestone_id=milestone.id, title="Grade"))

    started = await task_repo.update(task.id, TaskUpdate(progress_percentage=40))
    assert started.status == TaskStatus.IN_PROGRESS
    assert started.progress_percentage == 40

    done = await task_repo.update(task.id, TaskUpdate(status=TaskStatus.COMPLETED))
    assert done.progress_percentage == 100

    reset = await task_repo.update(task.id, TaskUpdate(status=TaskStatus.PENDING))
    assert reset.progress_percentage == 0


@pytest.mark.asyncio
async def test_task_update_missing_raises(session_factory):
    task_repo = SqliteTaskRepository(session_factory=session_factory)
    with pytest.raises(NotFoundError):
        await task_repo.update(uuid4(), TaskUpdate(title="Ghost"))


@pytest.mark.asyncio
async def test_derived_progress_does_not_replace_manual_value(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    milestone = await repo.create(
        MilestoneCreate(booking_id=booking.id, title="Script", progress_percentage=10)
    )
    assert milestone.manual_progress_percentage == 10

    edited = await repo.update(milestone.id, MilestoneUpdate(progress_percentage=25))
    assert edited.manual_progress_percentage == 25

    derived = await repo.set_progress(milestone.id, 80)
    assert derived.progress_percentage == 80
    assert derived.manual_progress_percentage == 25

    with pytest.raises(NotFoundError):
        await repo.set_progress(uuid4(), 10)


@pytest.mark.asyncio
async def test_deleting_last_task_restores_manual_progress(session_factory, booking):
    booking_repo = SqliteBookingRepository(session_factory=session_factory)
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    task_repo = SqliteTaskRepository(session_factory=session_factory)
    service = ProgressService(booking_repo, repo)
    milestone = await repo.create(
        MilestoneCreate(booking_id=booking.id, title="Voice-over", progress_percentage=20)
    )
    task = await task_repo.create(
        TaskCreate(milestone_id=milestone.id, title="Record", status=TaskStatus.COMPLETED)
    )

    assert (await service.recalculate_milestone(milestone.id)).progress_percentage == 100

    await task_repo.delete(task.id)
    restored = await service.recalculate_milestone(milestone.id)

    assert restored.progress_percentage == 20


@pytest.mark.asyncio
async def test_record_review_sets_status_and_feedback(session_factory, booking):
    repo = SqliteMilestoneRepository(session_factory=session_factory)
    milestone = await repo.create(MilestoneCreate(booking_id=booking.id, title="Teaser"))

    rejected = await repo.record_review(milestone.id, MilestoneStatus.REJECTED, "Logo is cropped")
    assert rejected.status == MilestoneStatus.REJECTED
    assert rejected.review_feedback == "Logo is cropped"
    assert rejected.completed_at is None

    approved = await repo.record_review(milestone.id, MilestoneStatus.COMPLETED)
    assert approved.status == MilestoneStatus.COMPLETED
    assert approved.completed_at is not None
    assert approved.review_feedback is None
