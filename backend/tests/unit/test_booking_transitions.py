"""
Unit tests for the approval/decline transition guard.
"""

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.core.exceptions import InfrastructureError
from app.models.enums import ApprovalStatus, BookingAction, BookingStatus
from app.models.results import ErrorCode
from app.services.booking_status import TERMINAL_STATUSES, is_consistent_state, normalize_status
from app.services.booking_transitions import BookingTransitionService, evaluate_transition

NOW = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)

_APPROVAL_FOR = {
    BookingStatus.APPROVED: ApprovalStatus.APPROVED,
    BookingStatus.IN_PROGRESS: ApprovalStatus.APPROVED,
    BookingStatus.ON_HOLD: ApprovalStatus.APPROVED,
    BookingStatus.COMPLETED: ApprovalStatus.APPROVED,
    BookingStatus.RESCHEDULED: ApprovalStatus.APPROVED,
    BookingStatus.DECLINED: ApprovalStatus.REJECTED,
}


class TestEvaluateTransition:
    def test_provider_approves_pending_booking(self, booking_factory):
        booking = booking_factory()
        decision = evaluate_transition(booking, "provider-1", BookingAction.APPROVE, now=NOW)

        assert decision.allowed
        assert decision.update.status == BookingStatus.APPROVED
        assert decision.update.approval_status == ApprovalStatus.APPROVED
        assert decision.update.updated_at == NOW

    def test_non_provider_cannot_approve(self, booking_factory):
        booking = booking_factory()
        decision = evaluate_transition(booking, "client-1", BookingAction.APPROVE)

        assert not decision.allowed
        assert decision.error.code == ErrorCode.FORBIDDEN

    def test_approving_approved_booking_is_invalid_state(self, booking_factory):
        booking = booking_factory(BookingStatus.APPROVED, ApprovalStatus.APPROVED)
        decision = evaluate_transition(booking, "provider-1", BookingAction.APPROVE)

        assert decision.error.code == ErrorCode.INVALID_STATE
        assert decision.error.details["current_status"] == "approved"
        assert "pending_provider_approval" in decision.error.details["allowed_statuses"]

    def test_wrong_actor_reported_before_wrong_state(self, booking_factory):
        booking = booking_factory(BookingStatus.COMPLETED, ApprovalStatus.APPROVED)
        decision = evaluate_transition(booking, "stranger", BookingAction.APPROVE)

        assert decision.error.code == ErrorCode.FORBIDDEN

    def test_decline_legacy_pending_sets_both_fields(self, booking_factory):
        booking = booking_factory(BookingStatus.PENDING)
        decision = evaluate_transition(
            booking, "provider-1", BookingAction.DECLINE, reason="Fully booked"
        )

        assert decision.update.status == BookingStatus.DECLINED
        assert decision.update.approval_status == ApprovalStatus.REJECTED
        assert decision.update.decline_reason == "Fully booked"

    def test_client_cancels_with_reason(self, booking_factory):
        booking = booking_factory(BookingStatus.APPROVED, ApprovalStatus.APPROVED)
        decision = evaluate_transition(booking, "client-1", BookingAction.CANCEL, reason="Budget")

        assert decision.update.status == BookingStatus.CANCELLED
        assert decision.update.approval_status == ApprovalStatus.APPROVED
        assert decision.update.cancel_reason == "Budget"

    def test_provider_cannot_cancel(self, booking_factory):
        booking = booking_factory(BookingStatus.APPROVED, ApprovalStatus.APPROVED)
        decision = evaluate_transition(booking, "provider-1", BookingAction.CANCEL)

        assert decision.error.code == ErrorCode.FORBIDDEN

    def test_start_and_complete(self, booking_factory):
        approved = booking_factory(BookingStatus.APPROVED, ApprovalStatus.APPROVED)
        started = evaluate_transition(approved, "provider-1", BookingAction.START)
        assert started.update.status == BookingStatus.IN_PROGRESS

        running = booking_factory(BookingStatus.IN_PROGRESS, ApprovalStatus.APPROVED)
        completed = evaluate_transition(running, "provider-1", BookingAction.COMPLETE)
        assert completed.update.status == BookingStatus.COMPLETED
        assert completed.update.approval_status == ApprovalStatus.APPROVED

    def test_cannot_start_pending_booking(self, booking_factory):
        decision = evaluate_transition(booking_factory(), "provider-1", BookingAction.START)

        assert decision.error.code == ErrorCode.INVALID_STATE

    def test_reschedule_requires_date(self, booking_factory):
        booking = booking_factory(BookingStatus.APPROVED, ApprovalStatus.APPROVED)
        decision = evaluate_transition(booking, "client-1", BookingAction.RESCHEDULE)

        assert decision.error.code == ErrorCode.VALIDATION_ERROR

    def test_reschedule_approved_booking(self, booking_factory):
        booking = booking_factory(BookingStatus.APPROVED, ApprovalStatus.APPROVED)
        new_date = datetime(2026, 4, 1, 8, 0, tzinfo=timezone.utc)
        decision = evaluate_transition(
            booking, "client-1", BookingAction.RESCHEDULE, scheduled_date=new_date
        )

        assert decision.update.status == BookingStatus.RESCHEDULED
        assert decision.update.approval_status == ApprovalStatus.APPROVED
        assert decision.update.scheduled_date == new_date

    def test_reschedule_awaiting_booking_stays_with_provider(self, booking_factory):
        new_date = datetime(2026, 4, 1, 8, 0, tzinfo=timezone.utc)
        decision = evaluate_transition(
            booking_factory(), "client-1", BookingAction.RESCHEDULE, scheduled_date=new_date
        )

        assert decision.update.status == BookingStatus.PENDING_PROVIDER_APPROVAL
        assert decision.update.approval_status == ApprovalStatus.PENDING

    def test_client_submits_draft(self, booking_factory):
        booking = booking_factory(BookingStatus.DRAFT)
        new_date = datetime(2026, 4, 1, 8, 0, tzinfo=timezone.utc)
        decision = evaluate_transition(
            booking, "client-1", BookingAction.SUBMIT, now=NOW, scheduled_date=new_date
        )

        assert decision.update.status == BookingStatus.PENDING_PROVIDER_APPROVAL
        assert decision.update.approval_status == ApprovalStatus.PENDING
        assert decision.update.scheduled_date == new_date

    def test_provider_cannot_submit_draft(self, booking_factory):
        booking = booking_factory(BookingStatus.DRAFT)
        decision = evaluate_transition(booking, "provider-1", BookingAction.SUBMIT)

        assert decision.error.code == ErrorCode.FORBIDDEN

    def test_submit_only_from_draft(self, booking_factory):
        decision = evaluate_transition(booking_factory(), "client-1", BookingAction.SUBMIT)

        assert decision.error.code == ErrorCode.INVALID_STATE
        assert decision.error.details["allowed_statuses"] == ["draft"]

    def test_hold_and_resume(self, booking_factory):
        running = booking_factory(BookingStatus.IN_PROGRESS, ApprovalStatus.APPROVED)
        held = evaluate_transition(running, "provider-1", BookingAction.HOLD)
        assert held.update.status == BookingStatus.ON_HOLD
        assert held.update.approval_status == ApprovalStatus.APPROVED

        paused = booking_factory(BookingStatus.ON_HOLD, ApprovalStatus.APPROVED)
        resumed = evaluate_transition(paused, "provider-1", BookingAction.RESUME)
        assert resumed.update.status == BookingStatus.IN_PROGRESS

    def test_client_cannot_hold(self, booking_factory):
        running = booking_factory(BookingStatus.IN_PROGRESS, ApprovalStatus.APPROVED)
        decision = evaluate_transition(running, "client-1", BookingAction.HOLD)

        assert decision.error.code == ErrorCode.FORBIDDEN

    def test_cannot_resume_running_booking(self, booking_factory):
        running = booking_factory(BookingStatus.IN_PROGRESS, ApprovalStatus.APPROVED)
        decision = evaluate_transition(running, "provider-1", BookingAction.RESUME)

        assert decision.error.code == ErrorCode.INVALID_STATE

    def test_draft_reaches_completion(self, booking_factory):
        steps = [
            ("client-1", BookingAction.SUBMIT),
            ("provider-1", BookingAction.APPROVE),
            ("provider-1", BookingAction.START),
            ("provider-1", BookingAction.HOLD),
            ("provider-1", BookingAction.RESUME),
            ("provider-1", BookingAction.COMPLETE),
        ]
        booking = booking_factory(BookingStatus.DRAFT)
        for actor, action in steps:
            decision = evaluate_transition(booking, actor, action, now=NOW)
            assert decision.allowed, (action, decision.error)
            booking = booking.model_copy(
                update={
                    "status": decision.update.status,
                    "approval_status": decision.update.approval_status,
                }
            )

        assert booking.status == BookingStatus.COMPLETED

    @pytest.mark.parametrize("status", [s for s in BookingStatus if s not in TERMINAL_STATUSES])
    def test_every_open_status_has_a_way_forward(self, booking_factory, status):
        approval = _APPROVAL_FOR.get(status, ApprovalStatus.PENDING)
        booking = booking_factory(status, approval)
        moves = {
            evaluate_transition(booking, actor, action, scheduled_date=NOW).update.status
            for actor in ("client-1", "provider-1")
            for action in BookingAction
            if evaluate_transition(booking, actor, action, scheduled_date=NOW).allowed
        }

        assert moves - {BookingStatus.CANCELLED, normalize_status(status)}

    @pytest.mark.parametrize("action", list(BookingAction))
    @pytest.mark.parametrize("status", list(BookingStatus))
    def test_every_allowed_update_is_consistent(self, booking_factory, status, action):
        approval = _APPROVAL_FOR.get(status, ApprovalStatus.PENDING)
        booking = booking_factory(status, approval, client_id="both", provider_id="both")
        decision = evaluate_transition(booking, "both", action, scheduled_date=NOW, now=NOW)

        if decision.allowed:
            assert is_consistent_state(decision.update.status, decision.update.approval_status)
        else:
            assert decision.error.code == ErrorCode.INVALID_STATE


class TestBookingTransitionService:
    @pytest.mark.asyncio
    async def test_missing_booking_is_not_found(self):
        repo = AsyncMock()
        repo.get.return_value = None

        result = await BookingTransitionService(repo).approve(uuid4(), "provider-1")

        assert not result.ok
        assert result.error.code == ErrorCode.NOT_FOUND
        repo.update_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejected_decision_does_not_write(self, booking_factory):
        repo = AsyncMock()
        repo.get.return_value = booking_factory()

        result = await BookingTransitionService(repo).approve(uuid4(), "someone-else")

        assert result.error.code == ErrorCode.FORBIDDEN
        repo.update_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_approve_writes_with_expected_status(self, booking_factory):
        booking = booking_factory(BookingStatus.PENDING)
        approved = booking.model_copy(
            update={"status": BookingStatus.APPROVED, "approval_status": ApprovalStatus.APPROVED}
        )
        repo = AsyncMock()
        repo.get.return_value = booking
        repo.update_status.return_value = approved

        result = await BookingTransitionService(repo).approve(booking.id, "provider-1")

        assert result.ok
        assert result.booking.status == BookingStatus.APPROVED
        args, kwargs = repo.update_status.call_args
        assert args[0] == booking.id
        assert args[1].status == BookingStatus.APPROVED
        assert kwargs["expected_status"] == BookingStatus.PENDING_PROVIDER_APPROVAL

    @pytest.mark.asyncio
    async def test_storage_failure_is_update_failed(self, booking_factory):
        repo = AsyncMock()
        repo.get.return_value = booking_factory()
        repo.update_status.side_effect = InfrastructureError(
            "disk I/O error", details={"error_type": "OperationalError"}
        )

        result = await BookingTransitionService(repo).decline(uuid4(), "provider-1")

        assert not result.ok
        assert result.error.code == ErrorCode.UPDATE_FAILED
        assert result.error.details["cause"] == "disk I/O error"
        assert result.error.details["info"] == {"error_type": "OperationalError"}

    @pytest.mark.asyncio
    async def test_lost_race_is_update_failed(self, booking_factory):
        repo = AsyncMock()
        repo.get.return_value = booking_factory()
        repo.update_status.return_value = None

        result = await BookingTransitionService(repo).approve(uuid4(), "provider-1")

        assert result.error.code == ErrorCode.UPDATE_FAILED
        assert result.error.details["cause"] == "booking status changed concurrently"

    @pytest.mark.asyncio
    async def test_rejection_is_logged_as_warning(self, booking_factory, caplog):
        repo = AsyncMock()
        repo.get.return_value = booking_factory()

        with caplog.at_level(logging.WARNING, logger="app.services.booking_transitions"):
            await BookingTransitionService(repo).approve(uuid4(), "someone-else")

        assert any(
            record.levelno == logging.WARNING and "FORBIDDEN" in record.getMessage()
            for record in caplog.records
        )

    @pytest.mark.asyncio
    async def test_lost_race_is_logged_as_error(self, booking_factory, caplog):
        repo = AsyncMock()
        repo.get.return_value = booking_factory()
        repo.update_status.return_value = None

        with caplog.at_level(logging.ERROR, logger="app.services.booking_transitions"):
            await BookingTransitionService(repo).approve(uuid4(), "provider-1")

        assert "Compare-and-set failed" in caplog.text
