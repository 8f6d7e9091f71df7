"""
SQLite implementation of Booking repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import InfrastructureError
from app.infrastructure.local.database import BookingORM, get_session_factory
from app.interfaces.booking_repository import IBookingRepository
from app.models.booking import Booking, BookingCreate, BookingStatusUpdate
from app.models.enums import ApprovalStatus, BookingStatus
from app.services.booking_amounts import booking_from_record
from app.services.booking_status import status_aliases
from app.utils.datetime_utils import ensure_utc, now_utc, to_naive_utc


class SqliteBookingRepository(IBookingRepository):
    """SQLite implementation of booking repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: BookingORM) -> Booking:
        """Convert ORM row to Booking, normalizing legacy status values."""
        return booking_from_record(
            {
                "id": orm.id,
                "client_id": orm.client_id,
                "provider_id": orm.provider_id,
                "title": orm.title,
                "status": orm.status,
                "approval_status": orm.approval_status,
                "total_amount": orm.total_amount,
                "currency": orm.currency,
                "scheduled_date": ensure_utc(orm.scheduled_date),
                "decline_reason": orm.decline_reason,
                "cancel_reason": orm.cancel_reason,
                "created_at": ensure_utc(orm.created_at),
                "updated_at": ensure_utc(orm.updated_at),
            }
        )

    async def create(self, client_id: str, booking: BookingCreate) -> Booking:
        """Create a new booking owned by the given client."""
        now = to_naive_utc(now_utc())
        status = BookingStatus.PENDING_PROVIDER_APPROVAL if booking.submit else BookingStatus.DRAFT
        async with self._session_factory() as session:
            orm = BookingORM(
                id=str(uuid4()),
                client_id=client_id,
                provider_id=booking.provider_id,
                title=booking.title,
                status=status.value,
                approval_status=ApprovalStatus.PENDING.value,
                total_amount=booking.total_amount,
                currency=booking.currency.upper(),
                scheduled_date=to_naive_utc(booking.scheduled_date),
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, booking_id: UUID) -> Optional[Booking]:
        """Get a booking by ID."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(BookingORM).where(BookingORM.id == str(booking_id))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_for_actor(self, actor_id: str, limit: int = 100, offset: int = 0) -> list[Booking]:
        """List bookings where the actor is the client or the provider."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(BookingORM)
                .where(or_(BookingORM.client_id == actor_id, BookingORM.provider_id == actor_id))
                .order_by(BookingORM.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def update_status(
        self,
        booking_id: UUID,
        update_data: BookingStatusUpdate,
        expected_status: Optional[BookingStatus] = None,
    ) -> Optional[Booking]:
        """Write status fields together, guarded by the expected current status."""
        values = {
            "status": update_data.status.value,
            "approval_status": update_data.approval_status.value,
            "updated_at": to_naive_utc(update_data.updated_at),
        }
        if update_data.scheduled_date is not None:
            values["scheduled_date"] = to_naive_utc(update_data.scheduled_date)
        if update_data.decline_reason is not None:
            values["decline_reason"] = update_data.decline_reason
        if update_data.cancel_reason is not None:
            values["cancel_reason"] = update_data.cancel_reason

        stmt = update(BookingORM).where(BookingORM.id == str(booking_id))
        if expected_status is not None:
            stmt = stmt.where(
                func.lower(func.trim(BookingORM.status)).in_(sorted(status_aliases(expected_status)))
            )

        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    stmt.values(**values).execution_options(synchronize_session=False)
                )
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise InfrastructureError(
                    f"Failed to update booking {booking_id}: {exc}",
                    details={"error_type": type(exc).__name__},
                ) from exc

            if result.rowcount == 0:
                return None

            refreshed = await session.execute(
                select(BookingORM)
                .where(BookingORM.id == str(booking_id))
                .execution_options(populate_existing=True)
            )
            return self._orm_to_model(refreshed.scalar_one())
