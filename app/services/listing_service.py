"""
Listing and company gates the lifecycle engine depends on, plus admin stats.

Job postings are created in pending_approval by approved companies and
published by an admin; only published jobs accept applications.
"""

from typing import Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.exceptions import InvalidStateError, NotFoundError, UnauthorizedError
from app.core.security import Principal, Role
from app.db.base import utcnow
from app.models.application import Application
from app.models.company import Company
from app.models.job_posting import JobPosting
from app.models.match import Match
from app.models.user import User
from app.services.notification_service import NotificationService, NotificationTarget
from app.utils.constants import ApplicationStatus, JobStatus, NotificationType

logger = structlog.get_logger(__name__)


def _require_admin(actor: Principal) -> None:
    if actor.role != Role.ADMIN:
        raise UnauthorizedError("Admin access required")


class ListingService:
    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def create_job_posting(
        self,
        actor: Principal,
        title: str,
        content: str,
        requirements: Optional[List[str]] = None,
        salary: Optional[str] = None,
        location: Optional[str] = None,
    ) -> JobPosting:
        """Submit a posting for admin review. The company must be approved."""
        if actor.role != Role.COMPANY:
            raise UnauthorizedError("Only companies can post jobs")

        async with self.session_factory() as session, session.begin():
            company = await session.scalar(select(Company).where(Company.user_id == actor.user_id))
            if company is None:
                raise NotFoundError("Company profile not found")
            if not company.is_approved:
                raise InvalidStateError("Company must be approved before posting jobs")

            job = JobPosting(
                company_id=actor.user_id,
                title=title,
                content=content,
                requirements=requirements or [],
                salary=salary,
                location=location,
                status=JobStatus.PENDING_APPROVAL.value,
            )
            session.add(job)

        logger.info("job_posting_created", job_id=str(job.id), company_id=str(actor.user_id))
        return job

    async def list_pending_jobs(self, actor: Principal) -> List[JobPosting]:
        _require_admin(actor)
        async with self.session_factory() as session:
            result = await session.execute(
                select(JobPosting)
                .where(JobPosting.status == JobStatus.PENDING_APPROVAL.value)
                .order_by(JobPosting.created_at.asc())
            )
            return list(result.scalars().all())

    async def approve_job(self, actor: Principal, job_id: UUID) -> JobPosting:
        return await self._review_job(actor, job_id, JobStatus.PUBLISHED)

    async def reject_job(self, actor: Principal, job_id: UUID) -> JobPosting:
        """Send the posting back to draft so the company can fix it."""
        return await self._review_job(actor, job_id, JobStatus.DRAFT)

    async def _review_job(self, actor: Principal, job_id: UUID, target: JobStatus) -> JobPosting:
        _require_admin(actor)

        async with self.session_factory() as session, session.begin():
            result = await session.execute(
                select(JobPosting).where(JobPosting.id == job_id).with_for_update()
            )
            job = result.scalar_one_or_none()
            if job is None:
                raise NotFoundError("Job posting not found")
            if job.status != JobStatus.PENDING_APPROVAL.value:
                raise InvalidStateError(f"Job posting is '{job.status}', not pending approval")

            job.status = target.value
            job.updated_at = utcnow()

            if target == JobStatus.PUBLISHED:
                await NotificationService.append(
                    session,
                    NotificationTarget.user(job.company_id),
                    NotificationType.JOB_APPROVED_ADMIN,
                    title="Job posting published",
                    message=f"\"{job.title}\" was approved and is now open for applications.",
                    link=f"/company/jobs/{job.id}",
                )

        logger.info("job_posting_reviewed", job_id=str(job_id), status=target.value)
        return job

    async def set_company_approval(
        self, actor: Principal, company_user_id: UUID, approved: bool
    ) -> Company:
        _require_admin(actor)

        async with self.session_factory() as session, session.begin():
            company = await session.scalar(
                select(Company).where(Company.user_id == company_user_id).with_for_update()
            )
            if company is None:
                raise NotFoundError("Company profile not found")
            company.is_approved = approved
            company.updated_at = utcnow()

        logger.info("company_approval_set", company_user_id=str(company_user_id), approved=approved)
        return company

    async def get_stats(self, actor: Principal) -> Dict[str, int]:
        """Dashboard counters for admins."""
        _require_admin(actor)

        async def count(session, model, *where) -> int:
            query = select(func.count()).select_from(model)
            if where:
                query = query.where(*where)
            return (await session.scalar(query)) or 0

        async with self.session_factory() as session:
            return {
                "total_users": await count(session, User),
                "total_companies": await count(session, Company),
                "pending_jobs": await count(
                    session, JobPosting, JobPosting.status == JobStatus.PENDING_APPROVAL.value
                ),
                "active_jobs": await count(
                    session, JobPosting, JobPosting.status == JobStatus.PUBLISHED.value
                ),
                "pending_applications": await count(
                    session,
                    Application,
                    Application.status == ApplicationStatus.PENDING_ADMIN.value,
                ),
                "total_matches": await count(session, Match),
            }
