"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
Datetimes are stored as naive UTC.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.core.config import get_settings


def _utcnow() -> datetime:
    return datetime.utcnow()


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class BookingORM(Base):
    """Booking ORM model."""

    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    client_id = Column(String(255), nullable=False, index=True)
    provider_id = Column(String(255), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    status = Column(String(40), default="draft", index=True)
    approval_status = Column(String(20), default="pending")
    total_amount = Column(Float, default=0)
    currency = Column(String(3), default="OMR")
    scheduled_date = Column(DateTime, nullable=True)
    decline_reason = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow)


class MilestoneORM(Base):
    """Milestone ORM model."""

    __tablename__ = "milestones"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="pending", index=True)
    weight = Column(Float, default=1.0)
    order_index = Column(Integer, default=0)
    progress_percentage = Column(Integer, default=0)
    manual_progress_percentage = Column(Integer, default=0)
    review_feedback = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=True)
    due_date_only = Column(Boolean, default=False)
    estimated_hours = Column(Float, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    milestone_id = Column(String(36), ForeignKey("milestones.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="pending", index=True)
    progress_percentage = Column(Integer, default=0)
    order_index = Column(Integer, default=0)
    due_date = Column(DateTime, nullable=True)
    due_date_only = Column(Boolean, default=False)
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


# ===========================================
# Database Session Management
# ===========================================


def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.database_url, echo=settings.DEBUG)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
