"""
Shared fixtures for backend tests.
"""

import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("AUTH_PROVIDER", "mock")
os.environ.setdefault("LOCAL_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.infrastructure.local.database import Base
from app.models.booking import Booking
from app.models.enums import ApprovalStatus, BookingStatus


@pytest.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def session_factory(db_session):
    @asynccontextmanager
    async def factory():
        yield db_session

    return factory


@pytest.fixture
def test_user_id() -> str:
    return "client-1"


@pytest.fixture
def provider_id() -> str:
    return "provider-1"


def make_booking(
    status: BookingStatus | str = BookingStatus.PENDING_PROVIDER_APPROVAL,
    approval_status: ApprovalStatus = ApprovalStatus.PENDING,
    client_id: str = "client-1",
    provider_id: str = "provider-1",
    booking_id: Optional[UUID] = None,
    total_amount: float = 120.0,
) -> Booking:
    timestamp = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    return Booking(
        id=booking_id or uuid4(),
        client_id=client_id,
        provider_id=provider_id,
        title="Product photo shoot",
        status=status,
        approval_status=approval_status,
        total_amount=total_amount,
        created_at=timestamp,
        updated_at=timestamp,
    )


@pytest.fixture
def booking_factory():
    return make_booking
