"""
Task repository interface.

Defines the contract for task data operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from app.models.task import Task, TaskCreate, TaskUpdate


class ITaskRepository(ABC):
    """Interface for task repository operations."""

    @abstractmethod
    async def create(self, task: TaskCreate) -> Task:
        """Create a new task."""
        pass

    @abstractmethod
    async def get(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID."""
        pass

    @abstractmethod
    async def list_by_milestone(self, milestone_id: UUID) -> list[Task]:
        """List tasks of a milestone ordered by order_index."""
        pass

    @abstractmethod
    async def update(self, task_id: UUID, update: TaskUpdate) -> Task:
        """Update a task keeping the status/progress invariant. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def delete(self, task_id: UUID) -> bool:
        """Delete a task. Returns True if deleted, False if not found."""
        pass
