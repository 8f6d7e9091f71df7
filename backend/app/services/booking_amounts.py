"""
Booking amount and currency resolution.

Loosely shaped booking records (legacy imports, external payloads) carry the
total under several field names. This module is the only place that knows
those names; booking_from_record turns such a record into a typed Booking.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from numbers import Real
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from babel.core import UnknownLocaleError
from babel.numbers import format_currency, is_currency

from app.core.exceptions import ValidationError
from app.core.logger import setup_logger
from app.models.booking import Booking
from app.models.enums import ApprovalStatus, BookingStatus
from app.models.progress import BookingSummary
from app.services.booking_status import normalize_status
from app.services.progress_calculator import count_based_percent
from app.utils.datetime_utils import now_utc

logger = setup_logger(__name__)

DEFAULT_CURRENCY = "OMR"
DEFAULT_LOCALE = "en_US"

# Precedence order: first present numeric value wins.
AMOUNT_FIELDS: tuple[str, ...] = ("total_amount", "totalAmount", "amount", "total_price")

_REPORTING_APPROVED_STATUSES = frozenset(
    {BookingStatus.APPROVED, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED}
)


def _numeric(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (Real, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _get(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def resolve_total_amount(record: Any) -> float:
    """
    Authoritative total of a booking-like record.

    Checks total_amount, totalAmount, amount, total_price in that order and
    returns the first numeric value; 0 when none is present.
    """
    for field in AMOUNT_FIELDS:
        number = _numeric(_get(record, field))
        if number is not None:
            return number
    return 0.0


def is_booking_approved(record: Any) -> bool:
    """
    Whether a booking counts as approved for reporting.

    approval_status == "approved" wins; otherwise the status must be one of
    approved/confirmed/in_progress/completed.
    """
    approval = _get(record, "approval_status")
    approval_value = str(getattr(approval, "value", approval) or "").strip().lower()
    if approval_value == ApprovalStatus.APPROVED.value:
        return True
    raw_status = _get(record, "status")
    raw_value = str(getattr(raw_status, "value", raw_status) or "").strip().lower()
    if raw_value == "confirmed":
        return True
    return normalize_status(raw_value) in _REPORTING_APPROVED_STATUSES


def format_amount(
    amount: float,
    currency: Optional[str] = None,
    locale: Optional[str] = None,
) -> str:
    """
    Locale-aware currency string, e.g. "OMR 12.500".

    Unknown currencies or formatting failures degrade to "<amount:.2f> <currency>".
    """
    code = (currency or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY
    try:
        if not is_currency(code):
            raise ValueError(f"Unknown currency {code}")
        return format_currency(amount, code, locale=locale or DEFAULT_LOCALE)
    except (ValueError, TypeError, UnknownLocaleError) as exc:
        logger.debug(f"Falling back to plain amount formatting for {code}: {exc}")
        return f"{float(amount):.2f} {code}"


def _parse_uuid(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid booking id {value!r}") from exc


def _approval_from(value: Any) -> ApprovalStatus:
    raw = str(getattr(value, "value", value) or "").strip().lower()
    if raw in ("declined", "rejected"):
        return ApprovalStatus.REJECTED
    try:
        return ApprovalStatus(raw)
    except ValueError:
        return ApprovalStatus.PENDING


def booking_from_record(record: Mapping[str, Any]) -> Booking:
    """
    Normalize a loosely shaped booking record into a Booking.

    Raises:
        ValidationError: If identity or participant fields are missing/invalid
    """
    for key in ("id", "client_id", "provider_id"):
        if not record.get(key):
            raise ValidationError(f"Booking record is missing '{key}'", details={"field": key})

    created_at = record.get("created_at") or now_utc()
    updated_at: datetime = record.get("updated_at") or created_at
    amount = resolve_total_amount(record)
    if amount < 0:
        raise ValidationError("Booking total must not be negative", details={"amount": amount})

    return Booking(
        id=_parse_uuid(record["id"]),
        client_id=str(record["client_id"]),
        provider_id=str(record["provider_id"]),
        title=record.get("title") or "Booking",
        status=normalize_status(record.get("status")),
        approval_status=_approval_from(record.get("approval_status")),
        total_amount=amount,
        currency=(record.get("currency") or DEFAULT_CURRENCY).upper(),
        scheduled_date=record.get("scheduled_date"),
        decline_reason=record.get("decline_reason"),
        cancel_reason=record.get("cancel_reason"),
        created_at=created_at,
        updated_at=updated_at,
    )


def summarize_bookings(bookings: Iterable[Any], currency: str = DEFAULT_CURRENCY) -> BookingSummary:
    """Dashboard KPIs; revenue counts bookings approved for reporting."""
    summary = BookingSummary(currency=currency)
    for booking in bookings:
        status = normalize_status(_get(booking, "status"))
        summary.total += 1
        if status == BookingStatus.COMPLETED:
            summary.completed += 1
        elif status == BookingStatus.IN_PROGRESS:
            summary.in_progress += 1
        elif status in (BookingStatus.PENDING_PROVIDER_APPROVAL, BookingStatus.PENDING):
            summary.pending += 1
        elif status == BookingStatus.DECLINED:
            summary.declined += 1
            continue
        elif status == BookingStatus.CANCELLED:
            summary.cancelled += 1
            continue
        if is_booking_approved(booking):
            summary.approved += 1
            summary.total_revenue += resolve_total_amount(booking)
    summary.completion_rate = count_based_percent(summary.completed, summary.total)
    return summary
