"""
Application lifecycle engine.

Student applies -> admin approves -> company offers -> student accepts.
Each operation is one database transaction that reads the application
under a row lock, resolves the move against the transition table in
app.services.lifecycle, writes the new status and appends notifications
in the same unit. Emails are only recorded in the outbox here; the
OutboxDispatcher delivers them after commit.

The one-active-application rule is held by the ActiveApplication row of
each student: apply_job locks (or creates) it and every transition that
leaves the active-status set clears it, all inside the transition's own
transaction.
"""

from typing import Awaitable, Callable, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import (
    ConflictError,
    DuplicateApplicationError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.core.security import Principal, Role
from app.db.base import utcnow
from app.models.active_application import ActiveApplication
from app.models.application import Application
from app.models.company import Company
from app.models.job_posting import JobPosting
from app.models.match import Match
from app.models.student import Student
from app.models.user import User
from app.services.lifecycle import (
    ApplicationAction,
    Transition,
    resolve_application_transition,
)
from app.services.notification_service import (
    ADMIN_POOL,
    NotificationService,
    NotificationTarget,
)
from app.services.outbox import enqueue_email
from app.utils.constants import (
    ApplicationStatus,
    EmailTemplate,
    JobStatus,
    MatchStatus,
    NotificationType,
)

logger = structlog.get_logger(__name__)

# Statuses a company never sees: the application has not reached it
_HIDDEN_FROM_COMPANY = (
    ApplicationStatus.PENDING_ADMIN.value,
    ApplicationStatus.REJECTED_BY_ADMIN.value,
)

SideEffect = Callable[[AsyncSession, Application, Transition], Awaitable[None]]

# PostgreSQL reports the constraint name, SQLite the column list
_DUPLICATE_APPLICATION_MARKERS = ("unique_student_job_application", "applications.job_id")


def _is_duplicate_application(error: IntegrityError) -> bool:
    message = str(error.orig)
    return any(marker in message for marker in _DUPLICATE_APPLICATION_MARKERS)


class MatchingService:
    """Owns every state change of an Application."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self.notifications = NotificationService

    # ==================== Student actions ====================

    async def apply_job(
        self,
        actor: Principal,
        job_id: UUID,
        message: str = "",
        company_id: Optional[UUID] = None,
    ) -> Application:
        """
        Create a pending_admin application and notify the admin pool.

        Raises:
            UnauthorizedError: actor is not a student
            NotFoundError: job does not exist
            ValidationError: company_id given and not the job's owner
            InvalidStateError: job is not published
            ConflictError: student already holds an active application
            DuplicateApplicationError: student applied to this job before
        """
        if actor.role != Role.STUDENT:
            raise UnauthorizedError("Only students can apply to jobs")

        try:
            async with self.session_factory() as session, session.begin():
                job = await session.get(JobPosting, job_id)
                if job is None:
                    raise NotFoundError("Job posting not found")
                if company_id is not None and company_id != job.company_id:
                    raise ValidationError("Company does not own this job posting")
                if job.status != JobStatus.PUBLISHED.value:
                    raise InvalidStateError("Job posting is not open for applications")

                slot = await self._lock_active_slot(session, actor.user_id)
                if slot.application_id is not None:
                    raise ConflictError("You already have an active application")

                previous = await session.scalar(
                    select(Application.id).where(
                        Application.student_id == actor.user_id,
                        Application.job_id == job_id,
                    )
                )
                if previous is not None:
                    raise DuplicateApplicationError("You have already applied to this job")

                now = utcnow()
                application = Application(
                    job_id=job.id,
                    student_id=actor.user_id,
                    company_id=job.company_id,
                    status=ApplicationStatus.PENDING_ADMIN.value,
                    message=message or "",
                    created_at=now,
                    updated_at=now,
                )
                session.add(application)
                await session.flush()

                slot.application_id = application.id
                slot.updated_at = now

                await self.notifications.append(
                    session,
                    ADMIN_POOL,
                    NotificationType.JOB_APPLIED,
                    title="New application received",
                    message=f"A new application was submitted for \"{job.title}\".",
                    link=f"/admin/applications/{application.id}",
                )
        except IntegrityError as e:
            # Lost a race creating the slot row or the (student, job) row
            logger.warning(
                "apply_job_conflict",
                student_id=str(actor.user_id),
                job_id=str(job_id),
                error=str(e.orig),
            )
            if _is_duplicate_application(e):
                raise DuplicateApplicationError("You have already applied to this job") from e
            raise ConflictError("You already have an active application") from e

        logger.info(
            "application_created",
            application_id=str(application.id),
            student_id=str(actor.user_id),
            job_id=str(job_id),
        )
        return application

    async def accept_match_by_student(self, actor: Principal, application_id: UUID) -> Application:
        """pending_student -> matched, creating the Match and linking it back in one commit."""
        return await self._transition(
            actor, application_id, ApplicationAction.STUDENT_ACCEPT, self._create_match
        )

    async def decline_offer_by_student(self, actor: Principal, application_id: UUID) -> Application:
        return await self._transition(
            actor, application_id, ApplicationAction.STUDENT_DECLINE, self._on_declined
        )

    async def cancel_application(self, actor: Principal, application_id: UUID) -> Application:
        """Withdraw a pending application."""
        return await self._transition(
            actor, application_id, ApplicationAction.STUDENT_CANCEL, self._on_cancelled
        )

    # ==================== Admin actions ====================

    async def approve_by_admin(self, actor: Principal, application_id: UUID) -> Application:
        return await self._transition(
            actor, application_id, ApplicationAction.ADMIN_APPROVE, self._on_admin_approved
        )

    async def reject_by_admin(self, actor: Principal, application_id: UUID) -> Application:
        return await self._transition(
            actor, application_id, ApplicationAction.ADMIN_REJECT, self._on_rejected
        )

    # ==================== Company actions ====================

    async def approve_by_company(
        self, actor: Principal, application_id: UUID, message: str = ""
    ) -> Application:
        """Send the student a matching offer."""

        async def on_offer(session, application, transition):
            await self._on_offered(session, application, transition, message)

        return await self._transition(
            actor, application_id, ApplicationAction.COMPANY_APPROVE, on_offer
        )

    async def reject_by_company(self, actor: Principal, application_id: UUID) -> Application:
        return await self._transition(
            actor, application_id, ApplicationAction.COMPANY_REJECT, self._on_rejected
        )

    # ==================== Reads ====================

    async def get_application(self, actor: Principal, application_id: UUID) -> Application:
        async with self.session_factory() as session:
            application = await session.get(Application, application_id)
            if application is None:
                raise NotFoundError("Application not found")
            if not self._can_view(actor, application):
                raise UnauthorizedError("Not allowed to view this application")
            return application

    async def list_applications(
        self,
        actor: Principal,
        status: Optional[ApplicationStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Application]:
        """Applications visible to the actor, newest first."""
        query = select(Application)

        if actor.role == Role.STUDENT:
            query = query.where(Application.student_id == actor.user_id)
        elif actor.role == Role.COMPANY:
            query = query.where(
                Application.company_id == actor.user_id,
                Application.status.notin_(_HIDDEN_FROM_COMPANY),
            )

        if status is not None:
            query = query.where(Application.status == ApplicationStatus(status).value)

        query = query.order_by(Application.created_at.desc()).offset(offset).limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_pending_for_admin(self, actor: Principal) -> List[Application]:
        """Admin review queue, oldest first."""
        if actor.role != Role.ADMIN:
            raise UnauthorizedError("Admin access required")

        async with self.session_factory() as session:
            result = await session.execute(
                select(Application)
                .where(Application.status == ApplicationStatus.PENDING_ADMIN.value)
                .order_by(Application.created_at.asc())
            )
            return list(result.scalars().all())

    async def get_active_application(self, actor: Principal) -> Optional[Application]:
        """The application currently holding the student's active slot, if any."""
        if actor.role != Role.STUDENT:
            raise UnauthorizedError("Only students have an active application")

        async with self.session_factory() as session:
            return await session.scalar(
                select(Application)
                .join(ActiveApplication, ActiveApplication.application_id == Application.id)
                .where(ActiveApplication.student_id == actor.user_id)
            )

    # ==================== Internals ====================

    async def _transition(
        self,
        actor: Principal,
        application_id: UUID,
        action: ApplicationAction,
        side_effect: Optional[SideEffect] = None,
    ) -> Application:
        async with self.session_factory() as session, session.begin():
            result = await session.execute(
                select(Application).where(Application.id == application_id).with_for_update()
            )
            application = result.scalar_one_or_none()
            if application is None:
                raise NotFoundError("Application not found")

            transition = resolve_application_transition(application, action, actor)

            application.status = transition.target
            application.updated_at = utcnow()

            if transition.leaves_active_set:
                await self._release_active_slot(session, application)

            if side_effect is not None:
                await side_effect(session, application, transition)

        logger.info(
            "application_transition",
            application_id=str(application.id),
            action=action.value,
            from_status=transition.source,
            to_status=transition.target,
            actor_id=str(actor.user_id),
        )
        return application

    @staticmethod
    async def _lock_active_slot(session: AsyncSession, student_id: UUID) -> ActiveApplication:
        """Lock the student's slot row, creating it on first use."""
        result = await session.execute(
            select(ActiveApplication)
            .where(ActiveApplication.student_id == student_id)
            .with_for_update()
        )
        slot = result.scalar_one_or_none()
        if slot is None:
            slot = ActiveApplication(student_id=student_id, application_id=None)
            session.add(slot)
            # A concurrent first application fails here on the unique key
            await session.flush()
        return slot

    async def _release_active_slot(self, session: AsyncSession, application: Application) -> None:
        slot = await self._lock_active_slot(session, application.student_id)
        if slot.application_id == application.id:
            slot.application_id = None
            slot.updated_at = utcnow()

    @staticmethod
    def _can_view(actor: Principal, application: Application) -> bool:
        if actor.role == Role.ADMIN:
            return True
        if actor.role == Role.STUDENT:
            return application.student_id == actor.user_id
        if actor.role == Role.COMPANY:
            return (
                application.company_id == actor.user_id
                and application.status not in _HIDDEN_FROM_COMPANY
            )
        return False

    @staticmethod
    async def _email_context(session: AsyncSession, application: Application) -> Dict[str, str]:
        """Names used in notification texts and email templates."""
        job = await session.get(JobPosting, application.job_id)
        company_name = await session.scalar(
            select(Company.name).where(Company.user_id == application.company_id)
        )
        student_name = await session.scalar(
            select(Student.name).where(Student.user_id == application.student_id)
        )
        if company_name is None:
            company_name = await session.scalar(select(User.name).where(User.id == application.company_id))
        if student_name is None:
            student_name = await session.scalar(select(User.name).where(User.id == application.student_id))

        return {
            "job_title": job.title if job else "",
            "company_name": company_name or "",
            "student_name": student_name or "",
        }

    # ----- side effects, run inside the transition's transaction -----

    async def _on_admin_approved(self, session, application, transition) -> None:
        await self.notifications.append(
            session,
            NotificationTarget.user(application.company_id),
            NotificationType.APPLICATION_APPROVED_ADMIN,
            title="New applicant",
            message="An application approved by the administrators is waiting for your review.",
            link="/company/applicants",
        )

    async def _on_offered(self, session, application, transition, message: str) -> None:
        context = await self._email_context(session, application)
        company = context["company_name"] or "A company"
        await self.notifications.append(
            session,
            NotificationTarget.user(application.student_id),
            NotificationType.OFFER_RECEIVED,
            title="You received a matching offer!",
            message=f"{company} is interested in your application. Please review the offer.",
            link="/student/applications",
        )
        enqueue_email(
            session,
            application.student_id,
            EmailTemplate.OFFER,
            {**context, "message": message or "", "application_id": application.id},
        )

    async def _on_rejected(self, session, application, transition) -> None:
        context = await self._email_context(session, application)
        await self.notifications.append(
            session,
            NotificationTarget.user(application.student_id),
            NotificationType.OFFER_REJECTED,
            title="Application result",
            message=f"Unfortunately your application for \"{context['job_title']}\" was not accepted.",
            link="/student/applications",
        )
        enqueue_email(
            session,
            application.student_id,
            EmailTemplate.REJECTION,
            {**context, "application_id": application.id},
        )

    async def _create_match(self, session, application, transition) -> None:
        if application.match_id is not None:
            raise InvalidStateError("Application is already linked to a match")

        match = Match(
            application_id=application.id,
            job_id=application.job_id,
            student_id=application.student_id,
            company_id=application.company_id,
            status=MatchStatus.ACTIVE.value,
            start_date=utcnow(),
        )
        session.add(match)
        await session.flush()

        application.match_id = match.id

        context = await self._email_context(session, application)
        await self.notifications.append(
            session,
            NotificationTarget.user(application.company_id),
            NotificationType.OFFER_ACCEPTED,
            title="It's a match!",
            message="The student accepted your offer. Time to prepare the internship.",
            link=f"/company/intern/{match.id}",
        )
        enqueue_email(
            session,
            application.company_id,
            EmailTemplate.OFFER_ACCEPTED,
            {**context, "match_id": match.id},
        )
        logger.info(
            "match_created",
            match_id=str(match.id),
            application_id=str(application.id),
        )

    async def _on_declined(self, session, application, transition) -> None:
        await self.notifications.append(
            session,
            NotificationTarget.user(application.company_id),
            NotificationType.OFFER_DECLINED,
            title="Offer declined",
            message="The student declined your matching offer.",
            link="/company/applicants",
        )

    async def _on_cancelled(self, session, application, transition) -> None:
        # Whoever currently owns the next step hears about the withdrawal
        if transition.source == ApplicationStatus.PENDING_ADMIN.value:
            target, link = ADMIN_POOL, f"/admin/applications/{application.id}"
        else:
            target, link = NotificationTarget.user(application.company_id), "/company/applicants"

        await self.notifications.append(
            session,
            target,
            NotificationType.APPLICATION_CANCELLED,
            title="Application withdrawn",
            message="The student withdrew their application.",
            link=link,
        )
