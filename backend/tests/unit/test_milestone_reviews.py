"""
Unit tests for the client's milestone review.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.models.enums import ApprovalStatus, BookingStatus, MilestoneReviewAction, MilestoneStatus
from app.models.milestone import Milestone
from app.models.results import ErrorCode
from app.services.milestone_reviews import MilestoneReviewService, evaluate_milestone_review

NOW = datetime(2026, 3, 12, 9, 0, tzinfo=timezone.utc)

APPROVE = MilestoneReviewAction.APPROVE
REJECT = MilestoneReviewAction.REJECT


def _milestone(status=MilestoneStatus.IN_PROGRESS, booking_id=None) -> Milestone:
    return Milestone(
        id=uuid4(),
        booking_id=booking_id or uuid4(),
        title="First cut",
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def running_booking(booking_factory):
    return booking_factory(BookingStatus.IN_PROGRESS, ApprovalStatus.APPROVED)


class TestEvaluateMilestoneReview:
    def test_client_approves(self, running_booking):
        decision = evaluate_milestone_review(_milestone(), running_booking, "client-1", APPROVE)

        assert decision.allowed
        assert decision.changed
        assert decision.status == MilestoneStatus.COMPLETED

    def test_approving_completed_milestone_changes_nothing(self, running_booking):
        milestone = _milestone(MilestoneStatus.COMPLETED)
        decision = evaluate_milestone_review(milestone, running_booking, "client-1", APPROVE)

        assert decision.allowed
        assert not decision.changed

    def test_client_rejects(self, running_booking):
        decision = evaluate_milestone_review(_milestone(), running_booking, "client-1", REJECT)

        assert decision.status == MilestoneStatus.REJECTED
        assert decision.changed

    def test_rejecting_completed_milestone_is_invalid_state(self, running_booking):
        milestone = _milestone(MilestoneStatus.COMPLETED)
        decision = evaluate_milestone_review(milestone, running_booking, "client-1", REJECT)

        assert decision.error.code == ErrorCode.INVALID_STATE
        assert decision.error.details["current_status"] == "completed"

    def test_rejected_milestone_can_be_approved_after_rework(self, running_booking):
        milestone = _milestone(MilestoneStatus.REJECTED)
        decision = evaluate_milestone_review(milestone, running_booking, "client-1", APPROVE)

        assert decision.status == MilestoneStatus.COMPLETED

    @pytest.mark.parametrize("actor", ["provider-1", "stranger", ""])
    def test_only_client_reviews(self, running_booking, actor):
        decision = evaluate_milestone_review(_milestone(), running_booking, actor, APPROVE)

        assert decision.error.code == ErrorCode.FORBIDDEN

    def test_wrong_actor_reported_before_cancelled_milestone(self, running_booking):
        milestone = _milestone(MilestoneStatus.CANCELLED)
        decision = evaluate_milestone_review(milestone, running_booking, "provider-1", REJECT)

        assert decision.error.code == ErrorCode.FORBIDDEN

    def test_cancelled_milestone_cannot_be_reviewed(self, running_booking):
        milestone = _milestone(MilestoneStatus.CANCELLED)
        decision = evaluate_milestone_review(milestone, running_booking, "client-1", APPROVE)

        assert decision.error.code == ErrorCode.INVALID_STATE

    @pytest.mark.parametrize("status", [BookingStatus.DECLINED, BookingStatus.CANCELLED])
    def test_closed_booking_cannot_be_reviewed(self, booking_factory, status):
        booking = booking_factory(status, ApprovalStatus.REJECTED)
        decision = evaluate_milestone_review(_milestone(), booking, "client-1", APPROVE)

        assert decision.error.code == ErrorCode.INVALID_STATE


class TestMilestoneReviewService:
    @pytest.mark.asyncio
    async def test_missing_milestone_is_not_found(self):
        milestone_repo = AsyncMock()
        milestone_repo.get.return_value = None

        result = await MilestoneReviewService(AsyncMock(), milestone_repo).review(
            uuid4(), "client-1", APPROVE
        )

        assert result.error.code == ErrorCode.NOT_FOUND
        milestone_repo.record_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_reject_stores_feedback(self, running_booking):
        milestone = _milestone(booking_id=running_booking.id)
        rejected = milestone.model_copy(
            update={"status": MilestoneStatus.REJECTED, "review_feedback": "Audio clips"}
        )
        booking_repo = AsyncMock()
        booking_repo.get.return_value = running_booking
        milestone_repo = AsyncMock()
        milestone_repo.get.return_value = milestone
        milestone_repo.record_review.return_value = rejected

        result = await MilestoneReviewService(booking_repo, milestone_repo).review(
            milestone.id, "client-1", REJECT, feedback="Audio clips"
        )

        assert result.ok
        assert result.changed
        assert result.milestone.status == MilestoneStatus.REJECTED
        milestone_repo.record_review.assert_awaited_once_with(
            milestone.id, MilestoneStatus.REJECTED, "Audio clips"
        )

    @pytest.mark.asyncio
    async def test_repeat_approval_does_not_write(self, running_booking):
        milestone = _milestone(MilestoneStatus.COMPLETED, booking_id=running_booking.id)
        booking_repo = AsyncMock()
        booking_repo.get.return_value = running_booking
        milestone_repo = AsyncMock()
        milestone_repo.get.return_value = milestone

        result = await MilestoneReviewService(booking_repo, milestone_repo).review(
            milestone.id, "client-1", APPROVE
        )

        assert result.ok
        assert not result.changed
        assert result.milestone == milestone
        milestone_repo.record_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_review_is_forbidden(self, running_booking):
        booking_repo = AsyncMock()
        booking_repo.get.return_value = running_booking
        milestone_repo = AsyncMock()
        milestone_repo.get.return_value = _milestone(booking_id=running_booking.id)

        result = await MilestoneReviewService(booking_repo, milestone_repo).review(
            uuid4(), "provider-1", APPROVE
        )

        assert not result.ok
        assert result.error.code == ErrorCode.FORBIDDEN
        milestone_repo.record_review.assert_not_called()
