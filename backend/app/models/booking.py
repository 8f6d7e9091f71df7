"""
Booking model definitions.

A booking is a client-provider service engagement.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ApprovalStatus, BookingAction, BookingStatus


class BookingBase(BaseModel):
    """Base booking fields."""

    provider_id: str = Field(..., min_length=1, description="Assigned provider user ID")
    title: str = Field(..., min_length=1, max_length=200, description="Booking title")
    total_amount: float = Field(default=0, ge=0, description="Booking total")
    currency: str = Field(default="OMR", min_length=3, max_length=3, description="ISO 4217 code")
    scheduled_date: Optional[datetime] = Field(None, description="Scheduled service date")


class BookingCreate(BookingBase):
    """Schema for creating a booking. The creating actor becomes the client."""

    submit: bool = Field(
        default=True,
        description="Submit straight to the provider instead of keeping a draft",
    )


class BookingStatusUpdate(BaseModel):
    """Fields written by a status transition, applied together."""

    status: BookingStatus
    approval_status: ApprovalStatus
    updated_at: datetime
    scheduled_date: Optional[datetime] = None
    decline_reason: Optional[str] = None
    cancel_reason: Optional[str] = None


class BookingActionRequest(BaseModel):
    """Request body for PATCH /bookings/{id}."""

    action: BookingAction
    reason: Optional[str] = Field(None, max_length=500)
    scheduled_date: Optional[datetime] = None


class DeclineRequest(BaseModel):
    """Optional body for the decline endpoint."""

    reason: Optional[str] = Field(None, max_length=500)


class Booking(BookingBase):
    """Complete booking model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: str = Field(..., description="Client user ID")
    status: BookingStatus = Field(BookingStatus.DRAFT)
    approval_status: ApprovalStatus = Field(ApprovalStatus.PENDING)
    decline_reason: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    def is_participant(self, actor_id: str) -> bool:
        return actor_id in (self.client_id, self.provider_id)
