"""API routers."""

from app.api import bookings, milestones, tasks

__all__ = [
    "bookings",
    "milestones",
    "tasks",
]
