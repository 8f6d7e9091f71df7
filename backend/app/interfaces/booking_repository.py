"""
Booking repository interface.

Defines the contract for booking data operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from app.models.booking import Booking, BookingCreate, BookingStatusUpdate
from app.models.enums import BookingStatus


class IBookingRepository(ABC):
    """Interface for booking repository operations."""

    @abstractmethod
    async def create(self, client_id: str, booking: BookingCreate) -> Booking:
        """Create a new booking owned by the given client."""
        pass

    @abstractmethod
    async def get(self, booking_id: UUID) -> Optional[Booking]:
        """Get a booking by ID."""
        pass

    @abstractmethod
    async def list_for_actor(self, actor_id: str, limit: int = 100, offset: int = 0) -> list[Booking]:
        """List bookings where the actor is the client or the provider."""
        pass

    @abstractmethod
    async def update_status(
        self,
        booking_id: UUID,
        update: BookingStatusUpdate,
        expected_status: Optional[BookingStatus] = None,
    ) -> Optional[Booking]:
        """
        Write status, approval_status and updated_at together.

        When expected_status is given the write only happens if the stored
        status still normalizes to it. Returns None when nothing was written.
        Raises InfrastructureError when the store rejects the write.
        """
        pass
