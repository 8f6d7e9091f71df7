"""
SQLite implementation of Milestone repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import InfrastructureError, NotFoundError
from app.infrastructure.local.database import MilestoneORM, TaskORM, get_session_factory
from app.infrastructure.local.task_repository import task_orm_to_model
from app.interfaces.milestone_repository import IMilestoneRepository
from app.models.enums import MilestoneStatus, TaskStatus
from app.models.milestone import (
    Milestone,
    MilestoneCreate,
    MilestonePlanItem,
    MilestoneUpdate,
    MilestoneWithTasks,
)
from app.models.task import Task
from app.utils.datetime_utils import ensure_utc, join_due_value, split_due_value


class SqliteMilestoneRepository(IMilestoneRepository):
    """SQLite implementation of milestone repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: MilestoneORM, tasks: Optional[list[Task]] = None) -> MilestoneWithTasks:
        """Convert ORM object to Pydantic model."""
        return MilestoneWithTasks(
            id=UUID(orm.id),
            booking_id=UUID(orm.booking_id),
            title=orm.title,
            description=orm.description,
            status=orm.status,
            weight=orm.weight if orm.weight is not None else 1.0,
            order_index=orm.order_index or 0,
            progress_percentage=orm.progress_percentage or 0,
            manual_progress_percentage=orm.manual_progress_percentage or 0,
            review_feedback=orm.review_feedback,
            due_date=join_due_value(orm.due_date, bool(orm.due_date_only)),
            estimated_hours=orm.estimated_hours,
            completed_at=ensure_utc(orm.completed_at),
            created_at=ensure_utc(orm.created_at),
            updated_at=ensure_utc(orm.updated_at),
            tasks=tasks or [],
        )

    async def _tasks_by_milestone(self, session, milestone_ids: list[str]) -> dict[str, list[Task]]:
        grouped: dict[str, list[Task]] = {mid: [] for mid in milestone_ids}
        if not milestone_ids:
            return grouped
        result = await session.execute(
            select(TaskORM)
            .where(TaskORM.milestone_id.in_(milestone_ids))
            .order_by(TaskORM.order_index, TaskORM.created_at)
        )
        for orm in result.scalars().all():
            grouped[orm.milestone_id].append(task_orm_to_model(orm))
        return grouped

    def _new_orm(self, milestone: MilestoneCreate) -> MilestoneORM:
        due_date, due_date_only = split_due_value(milestone.due_date)
        return MilestoneORM(
            id=str(uuid4()),
            booking_id=str(milestone.booking_id),
            title=milestone.title,
            description=milestone.description,
            status=MilestoneStatus.PENDING.value,
            weight=milestone.weight,
            order_index=milestone.order_index,
            progress_percentage=milestone.progress_percentage,
            manual_progress_percentage=milestone.progress_percentage,
            due_date=due_date,
            due_date_only=due_date_only,
            estimated_hours=milestone.estimated_hours,
        )

    async def create(self, milestone: MilestoneCreate) -> Milestone:
        """Create a new milestone."""
        async with self._session_factory() as session:
            orm = self._new_orm(milestone)
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def create_plan(self, items: list[MilestonePlanItem]) -> list[MilestoneWithTasks]:
        """Create milestones and their tasks in a single transaction."""
        async with self._session_factory() as session:
            rows: list[MilestoneORM] = []
            try:
                for item in items:
                    orm = self._new_orm(item.milestone)
                    session.add(orm)
                    rows.append(orm)
                    for task in item.tasks:
                        due_date, due_date_only = split_due_value(task.due_date)
                        session.add(
                            TaskORM(
                                id=str(uuid4()),
                                milestone_id=orm.id,
                                title=task.title,
                                description=task.description,
                                status=TaskStatus.PENDING.value,
                                progress_percentage=0,
                                order_index=task.order_index,
                                due_date=due_date,
                                due_date_only=due_date_only,
                                estimated_hours=task.estimated_hours,
                                actual_hours=task.actual_hours,
                            )
                        )
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise InfrastructureError(
                    f"Failed to create milestone plan: {exc}",
                    details={"error_type": type(exc).__name__},
                ) from exc

            grouped = await self._tasks_by_milestone(session, [orm.id for orm in rows])
            return [self._orm_to_model(orm, grouped[orm.id]) for orm in rows]

    async def get(self, milestone_id: UUID, include_tasks: bool = False) -> Optional[MilestoneWithTasks]:
        """Get a milestone by ID, optionally with its ordered tasks."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(MilestoneORM).where(MilestoneORM.id == str(milestone_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return None
            tasks = None
            if include_tasks:
                tasks = (await self._tasks_by_milestone(session, [orm.id]))[orm.id]
            return self._orm_to_model(orm, tasks)

    async def list_by_booking(self, booking_id: UUID, include_tasks: bool = False) -> list[MilestoneWithTasks]:
        """List milestones for a booking."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(MilestoneORM)
                .where(MilestoneORM.booking_id == str(booking_id))
                .order_by(MilestoneORM.order_index, MilestoneORM.created_at)
            )
            rows = result.scalars().all()
            grouped: dict[str, list[Task]] = {}
            if include_tasks:
                grouped = await self._tasks_by_milestone(session, [orm.id for orm in rows])
            return [self._orm_to_model(orm, grouped.get(orm.id)) for orm in rows]

    async def count_by_booking(self, booking_id: UUID) -> int:
        """Count milestones for a booking."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(MilestoneORM.id)).where(MilestoneORM.booking_id == str(booking_id))
            )
            return int(result.scalar_one() or 0)

    async def update(self, milestone_id: UUID, update: MilestoneUpdate) -> Milestone:
        """Update a milestone."""
        async with self._session_factory() as session:
            orm = await self._load(session, milestone_id)

            update_data = update.model_dump(exclude_unset=True)
            if "due_date" in update_data:
                orm.due_date, orm.due_date_only = split_due_value(update_data.pop("due_date"))
            if update_data.get("progress_percentage") is not None:
                orm.manual_progress_percentage = update_data["progress_percentage"]
            for field, value in update_data.items():
                if value is not None:
                    if hasattr(value, "value"):
                        value = value.value
                    setattr(orm, field, value)

            if update.status == MilestoneStatus.COMPLETED and orm.completed_at is None:
                orm.completed_at = datetime.utcnow()
            elif update.status is not None and update.status != MilestoneStatus.COMPLETED:
                orm.completed_at = None

            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def _load(self, session, milestone_id: UUID) -> MilestoneORM:
        result = await session.execute(
            select(MilestoneORM).where(MilestoneORM.id == str(milestone_id))
        )
        orm = result.scalar_one_or_none()
        if not orm:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        return orm

    async def set_progress(self, milestone_id: UUID, progress_percentage: int) -> Milestone:
        """Write a derived percentage, leaving the manual value untouched."""
        async with self._session_factory() as session:
            orm = await self._load(session, milestone_id)
            orm.progress_percentage = progress_percentage
            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def record_review(
        self,
        milestone_id: UUID,
        status: MilestoneStatus,
        feedback: Optional[str] = None,
    ) -> Milestone:
        """Store a client review outcome and its feedback."""
        async with self._session_factory() as session:
            orm = await self._load(session, milestone_id)
            orm.status = status.value
            orm.review_feedback = feedback
            if status == MilestoneStatus.COMPLETED:
                orm.completed_at = orm.completed_at or datetime.utcnow()
            else:
                orm.completed_at = None
            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, milestone_id: UUID) -> bool:
        """Delete a milestone and its tasks. Returns True if deleted, False if not found."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(MilestoneORM).where(MilestoneORM.id == str(milestone_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return False

            await session.execute(delete(TaskORM).where(TaskORM.milestone_id == str(milestone_id)))
            await session.delete(orm)
            await session.commit()
            return True
