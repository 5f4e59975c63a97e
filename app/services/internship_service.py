"""
Internship lifecycle after a match: daily reports, completion, evaluations.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import (
    DuplicateEvaluationError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.core.security import Principal, Role
from app.db.base import utcnow
from app.models.daily_report import DailyReport
from app.models.evaluation import Evaluation
from app.models.match import Match
from app.services.lifecycle import MatchAction, resolve_match_transition
from app.services.notification_service import NotificationService, NotificationTarget
from app.utils.constants import (
    MAX_EVALUATION_SCORE,
    MIN_EVALUATION_SCORE,
    MatchStatus,
    NotificationType,
)

logger = structlog.get_logger(__name__)


def _is_participant(actor: Principal, match: Match) -> bool:
    return actor.user_id in match.participant_ids()


class InternshipService:
    """Guarded CRUD around an existing Match."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    # ==================== Match ====================

    async def get_match(self, actor: Principal, match_id: UUID) -> Match:
        async with self.session_factory() as session:
            match = await self._get_match(session, match_id)
            self._ensure_can_view(actor, match)
            return match

    async def list_matches(self, actor: Principal, status: Optional[MatchStatus] = None) -> List[Match]:
        query = select(Match)
        if actor.role == Role.STUDENT:
            query = query.where(Match.student_id == actor.user_id)
        elif actor.role == Role.COMPANY:
            query = query.where(Match.company_id == actor.user_id)
        if status is not None:
            query = query.where(Match.status == MatchStatus(status).value)

        async with self.session_factory() as session:
            result = await session.execute(query.order_by(Match.start_date.desc()))
            return list(result.scalars().all())

    async def complete_internship(self, actor: Principal, match_id: UUID) -> Match:
        """active -> completed. Irreversible."""
        async with self.session_factory() as session, session.begin():
            match = await self._get_match(session, match_id, for_update=True)
            transition = resolve_match_transition(match, MatchAction.COMPLETE, actor)

            now = utcnow()
            match.status = transition.target
            match.end_date = now
            match.updated_at = now

            await NotificationService.append(
                session,
                NotificationTarget.user(match.student_id),
                NotificationType.INTERNSHIP_COMPLETED,
                title="Internship completed",
                message="Your internship has been marked as completed. Please submit your evaluation.",
                link=f"/student/intern/{match.id}",
            )

        logger.info("internship_completed", match_id=str(match.id), actor_id=str(actor.user_id))
        return match

    # ==================== Daily reports ====================

    async def create_report(
        self,
        actor: Principal,
        match_id: UUID,
        report_date: date,
        content: str,
        learning: str,
        next_goals: str,
    ) -> DailyReport:
        """Add the student's report for a day. Several reports per day are allowed."""
        async with self.session_factory() as session, session.begin():
            match = await self._get_match(session, match_id, for_update=True)
            if actor.role != Role.STUDENT or match.student_id != actor.user_id:
                raise UnauthorizedError("Only the matched student can write reports")
            if match.status != MatchStatus.ACTIVE.value:
                raise InvalidStateError("Reports can only be added to an active internship")

            report = DailyReport(
                match_id=match.id,
                student_id=actor.user_id,
                date=report_date,
                content=content,
                learning=learning,
                next_goals=next_goals,
            )
            session.add(report)
            await session.flush()

            await NotificationService.append(
                session,
                NotificationTarget.user(match.company_id),
                NotificationType.REPORT_SUBMITTED,
                title="New daily report",
                message=f"Your intern submitted a report for {report_date.isoformat()}.",
                link=f"/company/intern/{match.id}",
            )

        logger.info("daily_report_created", report_id=str(report.id), match_id=str(match_id))
        return report

    async def get_reports(self, actor: Principal, match_id: UUID) -> List[DailyReport]:
        """Reports of a match, newest date first."""
        async with self.session_factory() as session:
            match = await self._get_match(session, match_id)
            self._ensure_can_view(actor, match)

            result = await session.execute(
                select(DailyReport)
                .where(DailyReport.match_id == match_id)
                .order_by(DailyReport.date.desc(), DailyReport.created_at.desc())
            )
            return list(result.scalars().all())

    async def add_company_comment(self, actor: Principal, report_id: UUID, comment: str) -> DailyReport:
        async with self.session_factory() as session, session.begin():
            result = await session.execute(
                select(DailyReport).where(DailyReport.id == report_id).with_for_update()
            )
            report = result.scalar_one_or_none()
            if report is None:
                raise NotFoundError("Daily report not found")

            match = await self._get_match(session, report.match_id)
            if actor.role != Role.COMPANY or match.company_id != actor.user_id:
                raise UnauthorizedError("Only the matched company can comment on reports")

            if report.company_comment:
                logger.info("company_comment_overwritten", report_id=str(report.id))

            report.company_comment = comment
            report.updated_at = utcnow()

            await NotificationService.append(
                session,
                NotificationTarget.user(match.student_id),
                NotificationType.REPORT_COMMENTED,
                title="New comment on your report",
                message=f"The company commented on your report for {report.date.isoformat()}.",
                link=f"/student/intern/{match.id}",
            )

        return report

    # ==================== Evaluations ====================

    async def submit_evaluation(
        self, actor: Principal, match_id: UUID, score: int, comment: str = ""
    ) -> Evaluation:
        """
        Rate the other participant of a completed match.

        Each side evaluates exactly once; a second submission raises
        DuplicateEvaluationError and the first one is kept.
        """
        if isinstance(score, bool) or not isinstance(score, int):
            raise ValidationError("Score must be an integer")
        if not MIN_EVALUATION_SCORE <= score <= MAX_EVALUATION_SCORE:
            raise ValidationError(
                f"Score must be between {MIN_EVALUATION_SCORE} and {MAX_EVALUATION_SCORE}"
            )

        try:
            async with self.session_factory() as session, session.begin():
                match = await self._get_match(session, match_id, for_update=True)
                if not _is_participant(actor, match):
                    raise UnauthorizedError("Only match participants can submit evaluations")
                if match.status != MatchStatus.COMPLETED.value:
                    raise InvalidStateError("Evaluations open once the internship is completed")

                existing = await session.scalar(
                    select(Evaluation.id).where(
                        Evaluation.match_id == match_id,
                        Evaluation.from_id == actor.user_id,
                    )
                )
                if existing is not None:
                    raise DuplicateEvaluationError("You have already evaluated this internship")

                to_id = match.company_id if actor.user_id == match.student_id else match.student_id
                evaluation = Evaluation(
                    match_id=match.id,
                    from_id=actor.user_id,
                    to_id=to_id,
                    score=score,
                    comment=comment or "",
                )
                session.add(evaluation)
        except IntegrityError as e:
            raise DuplicateEvaluationError("You have already evaluated this internship") from e

        logger.info(
            "evaluation_submitted",
            match_id=str(match_id),
            from_id=str(actor.user_id),
            score=score,
        )
        return evaluation

    async def get_evaluation(
        self, actor: Principal, match_id: UUID, from_id: UUID
    ) -> Optional[Evaluation]:
        async with self.session_factory() as session:
            match = await self._get_match(session, match_id)
            self._ensure_can_view(actor, match)
            return await session.scalar(
                select(Evaluation).where(
                    Evaluation.match_id == match_id,
                    Evaluation.from_id == from_id,
                )
            )

    # ==================== Internals ====================

    @staticmethod
    async def _get_match(session: AsyncSession, match_id: UUID, for_update: bool = False) -> Match:
        query = select(Match).where(Match.id == match_id)
        if for_update:
            query = query.with_for_update()
        result = await session.execute(query)
        match = result.scalar_one_or_none()
        if match is None:
            raise NotFoundError("Match not found")
        return match

    @staticmethod
    def _ensure_can_view(actor: Principal, match: Match) -> None:
        if actor.role != Role.ADMIN and not _is_participant(actor, match):
            raise UnauthorizedError("Not allowed to view this internship")
