"""
Milestone repository interface.

Defines the contract for milestone data operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from app.models.enums import MilestoneStatus
from app.models.milestone import (
    Milestone,
    MilestoneCreate,
    MilestonePlanItem,
    MilestoneUpdate,
    MilestoneWithTasks,
)


class IMilestoneRepository(ABC):
    """Interface for milestone repository operations."""

    @abstractmethod
    async def create(self, milestone: MilestoneCreate) -> Milestone:
        """Create a new milestone."""
        pass

    @abstractmethod
    async def create_plan(self, items: list[MilestonePlanItem]) -> list[MilestoneWithTasks]:
        """Create milestones with their tasks atomically. Raises InfrastructureError on failure."""
        pass

    @abstractmethod
    async def get(self, milestone_id: UUID, include_tasks: bool = False) -> Optional[MilestoneWithTasks]:
        """Get a milestone by ID, optionally with its ordered tasks."""
        pass

    @abstractmethod
    async def list_by_booking(self, booking_id: UUID, include_tasks: bool = False) -> list[MilestoneWithTasks]:
        """List milestones for a booking ordered by order_index."""
        pass

    @abstractmethod
    async def count_by_booking(self, booking_id: UUID) -> int:
        """Count milestones for a booking."""
        pass

    @abstractmethod
    async def update(self, milestone_id: UUID, update: MilestoneUpdate) -> Milestone:
        """Update a milestone. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def set_progress(self, milestone_id: UUID, progress_percentage: int) -> Milestone:
        """Write a derived percentage without changing the manual one. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def record_review(
        self,
        milestone_id: UUID,
        status: MilestoneStatus,
        feedback: Optional[str] = None,
    ) -> Milestone:
        """Store the client's review outcome. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def delete(self, milestone_id: UUID) -> bool:
        """Delete a milestone and its tasks. Returns True if deleted, False if not found."""
        pass
