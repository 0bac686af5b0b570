"""
Career goals and review cadence service
"""

from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from skillsprint.api.supabase_client import Filter
from skillsprint.config.constants import (
    TABLE_CAREER_GOALS,
    TABLE_REVIEW_CADENCE,
    TABLE_REVIEW_SESSIONS,
    ONE_ON_ONE_SESSIONS_AHEAD,
    UPCOMING_SESSIONS_LIMIT,
)
from skillsprint.models.career import (
    CareerGoal,
    CareerGoalCreate,
    OneOnOneCadence,
    PerformanceCadence,
    ReviewCadence,
    ReviewSession,
    ReviewSessionType,
)
from skillsprint.models.response import MutationResponse
from skillsprint.services.mutation_gateway import MutationGateway
from skillsprint.utils.date_utils import add_months, add_weeks, get_current_date
from skillsprint.utils.error_handler import from_pydantic
from skillsprint.utils.formatters import format_created, format_deleted
from skillsprint.utils.logger import logger

PERFORMANCE_MONTHS = {
    PerformanceCadence.QUARTERLY: 3,
    PerformanceCadence.ANNUAL: 12,
}


def _one_on_one_date(start: date, cadence: OneOnOneCadence, i: int) -> date:
    if cadence == OneOnOneCadence.WEEKLY:
        return add_weeks(start, i)
    if cadence == OneOnOneCadence.BIWEEKLY:
        return add_weeks(start, i * 2)
    return add_months(start, i)


def generate_review_sessions(
    cadence: ReviewCadence,
    start: Optional[date] = None,
) -> List[ReviewSession]:
    """
    Build the next review sessions for a cadence

    Four one-on-ones (weekly: +i weeks, biweekly: +2i weeks, monthly: +i
    months, for i = 1..4) followed by one performance review (quarterly: +3
    months, annual: +12 months).

    Args:
        cadence: Review cadence
        start: Reference date (defaults to today)

    Returns:
        Sessions in scheduling order
    """
    start = start or get_current_date()
    sessions = [
        ReviewSession(
            type=ReviewSessionType.ONE_ON_ONE,
            scheduled_date=_one_on_one_date(start, cadence.one_on_one, i),
            user_id=cadence.user_id,
        )
        for i in range(1, ONE_ON_ONE_SESSIONS_AHEAD + 1)
    ]
    sessions.append(
        ReviewSession(
            type=ReviewSessionType.PERFORMANCE,
            scheduled_date=add_months(start, PERFORMANCE_MONTHS[cadence.performance]),
            user_id=cadence.user_id,
        )
    )
    return sessions


class ReviewManager:
    """Service for career goals, review cadence and review sessions"""

    def __init__(self, gateway: MutationGateway):
        """
        Initialize review manager

        Args:
            gateway: Mutation gateway
        """
        self.gateway = gateway
        self.logger = logger

    # ---- career goals ----

    async def list_goals(self) -> List[CareerGoal]:
        """Get career goals ordered by target date"""
        rows = await self.gateway.select(TABLE_CAREER_GOALS, order=[("target_date", True)])
        return [CareerGoal.model_validate(row) for row in rows]

    async def create_goal(self, data: Union[CareerGoalCreate, Dict[str, Any]]) -> MutationResponse:
        """
        Create a career goal

        Args:
            data: Goal fields (title and target date required)

        Returns:
            MutationResponse with the created goal in data
        """
        try:
            draft = data if isinstance(data, CareerGoalCreate) else CareerGoalCreate.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic(e, operation="create career goal") from e

        stored = await self.gateway.create(TABLE_CAREER_GOALS, draft.model_dump(), entity=draft.title)
        goal = CareerGoal.model_validate(stored)
        self.logger.info(f"[ReviewManager] Created goal '{goal.title}' due {goal.target_date}")
        return MutationResponse(message=format_created("goal", goal.title), data=goal.model_dump(mode="json"))

    async def delete_goal(self, goal_id: str) -> MutationResponse:
        stored = await self.gateway.delete(TABLE_CAREER_GOALS, goal_id)
        title = stored.get("title", goal_id)
        self.logger.info(f"[ReviewManager] Deleted goal '{title}'")
        return MutationResponse(message=format_deleted("goal", title))

    # ---- cadence and sessions ----

    async def get_cadence(self) -> Optional[ReviewCadence]:
        """Get the user's review cadence, None if never saved"""
        rows = await self.gateway.select(
            TABLE_REVIEW_CADENCE,
            filters={"user_id": self.gateway.session.user_id},
        )
        return ReviewCadence.model_validate(rows[0]) if rows else None

    async def save_cadence(
        self,
        one_on_one: OneOnOneCadence,
        performance: PerformanceCadence,
        today: Optional[date] = None,
    ) -> MutationResponse:
        """
        Save the review cadence and regenerate upcoming sessions

        Sessions scheduled today or later are replaced by freshly generated
        ones; past sessions are kept.

        Args:
            one_on_one: weekly, biweekly or monthly
            performance: quarterly or annual
            today: Reference date (defaults to today)

        Returns:
            MutationResponse with the generated sessions in data
        """
        try:
            cadence = ReviewCadence(
                user_id=self.gateway.session.user_id,
                one_on_one=one_on_one,
                performance=performance,
            )
        except PydanticValidationError as e:
            raise from_pydantic(e, operation="save review cadence") from e

        await self.gateway.upsert(
            TABLE_REVIEW_CADENCE,
            cadence.model_dump(mode="json", exclude={"user_id"}),
            on_conflict="user_id",
        )

        today = today or get_current_date()
        sessions = generate_review_sessions(cadence, today)
        await self.gateway.delete_where(
            TABLE_REVIEW_SESSIONS,
            {
                "user_id": self.gateway.session.user_id,
                "scheduled_date": Filter("gte", today),
            },
        )
        await self.gateway.insert_many(
            TABLE_REVIEW_SESSIONS,
            [session.model_dump(mode="json", exclude={"id", "user_id"}) for session in sessions],
        )

        self.logger.info(
            f"[ReviewManager] Cadence saved ({cadence.one_on_one.value}/{cadence.performance.value}), "
            f"{len(sessions)} sessions scheduled"
        )
        return MutationResponse(
            message="✓ Review cadence updated",
            data={"sessions": [session.model_dump(mode="json") for session in sessions]},
        )

    async def list_sessions(self) -> List[ReviewSession]:
        """All review sessions ordered by date"""
        rows = await self.gateway.select(TABLE_REVIEW_SESSIONS, order=[("scheduled_date", True)])
        return [ReviewSession.model_validate(row) for row in rows]

    async def upcoming_sessions(
        self,
        limit: int = UPCOMING_SESSIONS_LIMIT,
        today: Optional[date] = None,
    ) -> List[ReviewSession]:
        """Sessions from today on, soonest first"""
        today = today or get_current_date()
        rows = await self.gateway.select(
            TABLE_REVIEW_SESSIONS,
            filters={"scheduled_date": Filter("gte", today)},
            order=[("scheduled_date", True)],
            limit=limit,
        )
        return [ReviewSession.model_validate(row) for row in rows]
