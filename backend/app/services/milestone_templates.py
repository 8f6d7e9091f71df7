"""
Milestone templates used to seed a booking's plan of work.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from app.core.exceptions import ConflictError, ForbiddenError
from app.core.logger import setup_logger
from app.interfaces.milestone_repository import IMilestoneRepository
from app.models.booking import Booking
from app.models.milestone import MilestoneCreate, MilestonePlanItem, MilestoneWithTasks
from app.models.task import TaskBase
from app.services.booking_status import TERMINAL_STATUSES, normalize_status
from app.utils.datetime_utils import now_utc

logger = setup_logger(__name__)


@dataclass(frozen=True)
class MilestoneTemplate:
    title: str
    plus_days: int
    estimated_hours: float
    tasks: tuple[str, ...]
    weight: float = 1.0
    description: Optional[str] = None


@dataclass(frozen=True)
class PlanTemplate:
    key: str
    milestones: tuple[MilestoneTemplate, ...] = field(default_factory=tuple)


DEFAULT_PLAN = "content_creation"

PLAN_TEMPLATES: dict[str, PlanTemplate] = {
    "content_creation": PlanTemplate(
        key="content_creation",
        milestones=(
            MilestoneTemplate(
                title="Research & Strategy",
                plus_days=5,
                estimated_hours=8,
                tasks=(
                    "Collect client requirements",
                    "Research audience & competitors",
                    "Draft content strategy outline",
                ),
            ),
            MilestoneTemplate(
                title="Content Drafting",
                plus_days=15,
                estimated_hours=15,
                weight=2.0,
                tasks=("Blog drafts", "Website copywriting", "Social media posts"),
            ),
            MilestoneTemplate(
                title="Review & Feedback",
                plus_days=19,
                estimated_hours=6,
                tasks=("Submit drafts to client", "Collect feedback", "Apply revisions"),
            ),
            MilestoneTemplate(
                title="Final Delivery",
                plus_days=22,
                estimated_hours=4,
                tasks=(
                    "Deliver final approved content package",
                    "Handover documents/files",
                    "Mark project as complete",
                ),
            ),
        ),
    ),
    "website_build": PlanTemplate(
        key="website_build",
        milestones=(
            MilestoneTemplate(
                title="Discovery",
                plus_days=3,
                estimated_hours=6,
                tasks=("Kickoff call", "Sitemap and page inventory"),
            ),
            MilestoneTemplate(
                title="Design",
                plus_days=10,
                estimated_hours=20,
                weight=2.0,
                tasks=("Wireframes", "Visual design", "Client sign-off"),
            ),
            MilestoneTemplate(
                title="Build & Launch",
                plus_days=24,
                estimated_hours=40,
                weight=3.0,
                tasks=("Implement pages", "QA pass", "Go live"),
            ),
        ),
    ),
}


def get_plan(plan: Optional[str]) -> PlanTemplate:
    """Look up a plan; unknown keys fall back to the default plan."""
    return PLAN_TEMPLATES.get(plan or DEFAULT_PLAN, PLAN_TEMPLATES[DEFAULT_PLAN])


async def seed_milestones(
    booking: Booking,
    actor_id: str,
    plan: Optional[str],
    milestone_repo: IMilestoneRepository,
    now: Optional[datetime] = None,
) -> list[MilestoneWithTasks]:
    """
    Create a template's milestones and tasks for a booking in one transaction.

    Raises:
        ForbiddenError: If the actor is not the booking's provider
        ConflictError: If the booking is closed or already has milestones
        InfrastructureError: If the plan could not be stored (nothing is kept)
    """
    if actor_id != booking.provider_id:
        raise ForbiddenError("Only the booking's provider can seed milestones")
    status = normalize_status(booking.status)
    if status in TERMINAL_STATUSES:
        raise ConflictError(
            f"Cannot seed milestones for a {status.value} booking",
            details={"current_status": status.value},
        )
    if await milestone_repo.count_by_booking(booking.id) > 0:
        raise ConflictError(f"Milestones already exist for booking {booking.id}")

    template = get_plan(plan)
    base = now or now_utc()
    items = [
        MilestonePlanItem(
            milestone=MilestoneCreate(
                booking_id=booking.id,
                title=tpl.title,
                description=tpl.description,
                weight=tpl.weight,
                order_index=order,
                due_date=(base + timedelta(days=tpl.plus_days)).date(),
                estimated_hours=tpl.estimated_hours,
            ),
            tasks=[
                TaskBase(title=task_title, order_index=task_order)
                for task_order, task_title in enumerate(tpl.tasks)
            ],
        )
        for order, tpl in enumerate(template.milestones)
    ]
    created = await milestone_repo.create_plan(items)

    logger.info(f"Seeded {len(created)} milestones for booking {booking.id} from plan {template.key}")
    return created
