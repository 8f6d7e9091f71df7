"""
Booking status vocabulary.

Normalizes raw/legacy status strings to the canonical enumeration, supplies
display metadata, and defines which (status, approval_status) pairs may
coexist on one booking.
"""

from __future__ import annotations

from typing import Optional

from app.core.logger import setup_logger
from app.models.enums import ApprovalStatus, BookingStatus, DisplayStatus, StatusTone
from app.models.progress import StatusMeta

logger = setup_logger(__name__)


# Legacy spellings and the canonical value they stand for.
STATUS_SYNONYMS: dict[str, BookingStatus] = {
    "pending": BookingStatus.PENDING_PROVIDER_APPROVAL,
    "provider_review": BookingStatus.PENDING_PROVIDER_APPROVAL,
    "active": BookingStatus.IN_PROGRESS,
    "started": BookingStatus.IN_PROGRESS,
}

_CANONICAL_BY_VALUE: dict[str, BookingStatus] = {status.value: status for status in BookingStatus}

STATUS_META: dict[BookingStatus, StatusMeta] = {
    BookingStatus.DRAFT: StatusMeta(label="Draft", tone=StatusTone.NEUTRAL),
    BookingStatus.PENDING_PROVIDER_APPROVAL: StatusMeta(
        label="Pending Provider Approval", tone=StatusTone.WARNING
    ),
    BookingStatus.APPROVED: StatusMeta(label="Approved", tone=StatusTone.INFO),
    BookingStatus.IN_PROGRESS: StatusMeta(label="In Progress", tone=StatusTone.PROGRESS),
    BookingStatus.ON_HOLD: StatusMeta(label="On Hold", tone=StatusTone.WARNING),
    BookingStatus.COMPLETED: StatusMeta(label="Completed", tone=StatusTone.SUCCESS),
    BookingStatus.CANCELLED: StatusMeta(label="Cancelled", tone=StatusTone.DANGER),
    BookingStatus.DECLINED: StatusMeta(label="Declined", tone=StatusTone.DANGER),
    BookingStatus.RESCHEDULED: StatusMeta(label="Rescheduled", tone=StatusTone.INFO),
    BookingStatus.PENDING: StatusMeta(label="Pending", tone=StatusTone.WARNING),
}

_missing_meta = set(BookingStatus) - set(STATUS_META)
if _missing_meta:
    raise RuntimeError(f"STATUS_META is missing entries for: {sorted(s.value for s in _missing_meta)}")

TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.DECLINED}
)

AWAITING_PROVIDER_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING_PROVIDER_APPROVAL, BookingStatus.PENDING}
)

_ANY_APPROVAL = frozenset(ApprovalStatus)

# Legal (status, approval_status) combinations.
ALLOWED_APPROVAL_STATES: dict[BookingStatus, frozenset[ApprovalStatus]] = {
    BookingStatus.DRAFT: frozenset({ApprovalStatus.PENDING}),
    BookingStatus.PENDING: frozenset({ApprovalStatus.PENDING}),
    BookingStatus.PENDING_PROVIDER_APPROVAL: frozenset({ApprovalStatus.PENDING}),
    BookingStatus.APPROVED: frozenset({ApprovalStatus.APPROVED}),
    BookingStatus.IN_PROGRESS: frozenset({ApprovalStatus.APPROVED}),
    BookingStatus.ON_HOLD: frozenset({ApprovalStatus.APPROVED}),
    BookingStatus.COMPLETED: frozenset({ApprovalStatus.APPROVED}),
    BookingStatus.RESCHEDULED: frozenset({ApprovalStatus.APPROVED}),
    BookingStatus.DECLINED: frozenset({ApprovalStatus.REJECTED}),
    BookingStatus.CANCELLED: _ANY_APPROVAL,
}

_missing_states = set(BookingStatus) - set(ALLOWED_APPROVAL_STATES)
if _missing_states:
    raise RuntimeError(
        f"ALLOWED_APPROVAL_STATES is missing entries for: {sorted(s.value for s in _missing_states)}"
    )


def normalize_status(raw: Optional[str | BookingStatus]) -> BookingStatus:
    """
    Map any raw status string to exactly one canonical status.

    Matching is case-insensitive. Empty input means draft, legacy synonyms
    map through STATUS_SYNONYMS, and unknown values fall back to draft.

    Args:
        raw: Raw status value (may be None)

    Returns:
        Canonical BookingStatus
    """
    if raw is None:
        return BookingStatus.DRAFT
    key = (raw.value if isinstance(raw, BookingStatus) else str(raw)).strip().lower()
    if not key:
        return BookingStatus.DRAFT
    if key in STATUS_SYNONYMS:
        return STATUS_SYNONYMS[key]
    canonical = _CANONICAL_BY_VALUE.get(key)
    if canonical is None:
        logger.debug(f"Unrecognized booking status {raw!r}, treating as draft")
        return BookingStatus.DRAFT
    return canonical


def status_aliases(status: BookingStatus) -> frozenset[str]:
    """All lowercase raw spellings that normalize to the given status."""
    aliases = {alias for alias, canonical in STATUS_SYNONYMS.items() if canonical == status}
    if status.value not in STATUS_SYNONYMS:
        aliases.add(status.value)
    return frozenset(aliases)


def get_status_meta(raw: Optional[str | BookingStatus]) -> StatusMeta:
    return STATUS_META[normalize_status(raw)]


def is_terminal(raw: Optional[str | BookingStatus]) -> bool:
    return normalize_status(raw) in TERMINAL_STATUSES


def is_awaiting_provider(raw: Optional[str | BookingStatus]) -> bool:
    return normalize_status(raw) in AWAITING_PROVIDER_STATUSES


def is_consistent_state(
    status: Optional[str | BookingStatus],
    approval_status: Optional[str | ApprovalStatus],
) -> bool:
    """
    Check whether a status and approval status may coexist.

    A missing approval status counts as pending; an unrecognized one is
    never consistent.
    """
    canonical = normalize_status(status)
    if approval_status is None or approval_status == "":
        approval = ApprovalStatus.PENDING
    else:
        try:
            approval = ApprovalStatus(str(getattr(approval_status, "value", approval_status)).lower())
        except ValueError:
            return False
    return approval in ALLOWED_APPROVAL_STATES[canonical]


def derive_display_status(
    status: Optional[str | BookingStatus],
    approval_status: Optional[str | ApprovalStatus] = None,
    progress_percentage: Optional[int] = None,
) -> DisplayStatus:
    """Dashboard bucket for a booking; full progress always reads as delivered."""
    if progress_percentage is not None and progress_percentage >= 100:
        return DisplayStatus.DELIVERED

    canonical = normalize_status(status)
    if canonical == BookingStatus.COMPLETED:
        return DisplayStatus.DELIVERED
    if canonical == BookingStatus.IN_PROGRESS:
        return DisplayStatus.IN_PRODUCTION
    if canonical in (BookingStatus.DECLINED, BookingStatus.CANCELLED):
        return DisplayStatus.CANCELLED
    if canonical == BookingStatus.ON_HOLD:
        return DisplayStatus.ON_HOLD
    approval = getattr(approval_status, "value", approval_status)
    if canonical == BookingStatus.APPROVED or approval == ApprovalStatus.APPROVED.value:
        return DisplayStatus.APPROVED
    return DisplayStatus.PENDING_REVIEW


_DISPLAY_SUBTITLES: dict[DisplayStatus, str] = {
    DisplayStatus.DELIVERED: "Project successfully delivered",
    DisplayStatus.IN_PRODUCTION: "Active development in progress",
    DisplayStatus.APPROVED: "Approved and ready for next steps",
    DisplayStatus.PENDING_REVIEW: "Awaiting provider approval",
    DisplayStatus.ON_HOLD: "Project paused",
    DisplayStatus.CANCELLED: "Project cancelled",
}


def status_subtitle(display: DisplayStatus) -> str:
    return _DISPLAY_SUBTITLES[display]
