"""Abstract interfaces for infrastructure abstraction."""

from app.interfaces.auth_provider import IAuthProvider
from app.interfaces.booking_repository import IBookingRepository
from app.interfaces.milestone_repository import IMilestoneRepository
from app.interfaces.task_repository import ITaskRepository

__all__ = [
    "IAuthProvider",
    "IBookingRepository",
    "IMilestoneRepository",
    "ITaskRepository",
]
