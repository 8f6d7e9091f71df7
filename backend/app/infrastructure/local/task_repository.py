"""
SQLite implementation of Task repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select

from app.core.exceptions import NotFoundError
from app.infrastructure.local.database import TaskORM, get_session_factory
from app.interfaces.task_repository import ITaskRepository
from app.models.enums import TaskStatus
from app.models.task import Task, TaskCreate, TaskUpdate, settle_task_state
from app.utils.datetime_utils import ensure_utc, join_due_value, split_due_value


def task_orm_to_model(orm: TaskORM) -> Task:
    """Convert ORM object to Pydantic model."""
    return Task(
        id=UUID(orm.id),
        milestone_id=UUID(orm.milestone_id),
        title=orm.title,
        description=orm.description,
        status=orm.status,
        progress_percentage=orm.progress_percentage or 0,
        order_index=orm.order_index or 0,
        due_date=join_due_value(orm.due_date, bool(orm.due_date_only)),
        estimated_hours=orm.estimated_hours,
        actual_hours=orm.actual_hours,
        created_at=ensure_utc(orm.created_at),
        updated_at=ensure_utc(orm.updated_at),
    )


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    async def create(self, task: TaskCreate) -> Task:
        """Create a new task."""
        due_date, due_date_only = split_due_value(task.due_date)
        async with self._session_factory() as session:
            orm = TaskORM(
                id=str(uuid4()),
                milestone_id=str(task.milestone_id),
                title=task.title,
                description=task.description,
                status=task.status.value,
                progress_percentage=task.progress_percentage,
                order_index=task.order_index,
                due_date=due_date,
                due_date_only=due_date_only,
                estimated_hours=task.estimated_hours,
                actual_hours=task.actual_hours,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return task_orm_to_model(orm)

    async def get(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            return task_orm_to_model(orm) if orm else None

    async def list_by_milestone(self, milestone_id: UUID) -> list[Task]:
        """List tasks of a milestone."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(TaskORM)
                .where(TaskORM.milestone_id == str(milestone_id))
                .order_by(TaskORM.order_index, TaskORM.created_at)
            )
            return [task_orm_to_model(orm) for orm in result.scalars().all()]

    async def update(self, task_id: UUID, update: TaskUpdate) -> Task:
        """Update a task, reconciling status and progress afterwards."""
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Task {task_id} not found")

            update_data = update.model_dump(exclude_unset=True)
            if "due_date" in update_data:
                orm.due_date, orm.due_date_only = split_due_value(update_data.pop("due_date"))
            for field, value in update_data.items():
                if value is not None:
                    if hasattr(value, "value"):
                        value = value.value
                    setattr(orm, field, value)

            status, progress = settle_task_state(
                TaskStatus(orm.status), orm.progress_percentage or 0
            )
            orm.status = status.value
            orm.progress_percentage = progress

            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return task_orm_to_model(orm)

    async def delete(self, task_id: UUID) -> bool:
        """Delete a task. Returns True if deleted, False if not found."""
        async with self._session_factory() as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                return False
            await session.delete(orm)
            await session.commit()
            return True
