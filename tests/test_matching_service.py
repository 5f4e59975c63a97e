"""Tests for the application lifecycle engine.

Covers the approval workflow end to end against an in-memory database:
- one active application per student
- match_id is set exactly when an application is matched
- repeated and out-of-order transitions fail without side effects
- notifications and outbox emails are written with the transition
"""

import asyncio
import uuid
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy import event, func, insert, select
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ConflictError,
    DuplicateApplicationError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.models.active_application import ActiveApplication
from app.models.application import Application
from app.models.job_posting import JobPosting
from app.models.match import Match
from app.models.notification import Notification
from app.models.outbox_event import OutboxEvent
from app.services.matching_service import MatchingService
from app.utils.constants import (
    ACTIVE_APPLICATION_STATUSES,
    ApplicationStatus,
    EmailTemplate,
    JobStatus,
    MatchStatus,
    NotificationType,
)
from tests.conftest import make_session_factory, seed_database


@pytest.fixture
def service(session_factory):
    return MatchingService(session_factory)


# =============================================================================
# Helpers
# =============================================================================


async def _count(session_factory, model, *where) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model).where(*where))


async def _active_count(session_factory, student_id) -> int:
    return await _count(
        session_factory,
        Application,
        Application.student_id == student_id,
        Application.status.in_([s.value for s in ACTIVE_APPLICATION_STATUSES]),
    )


async def _reload(session_factory, application_id) -> Application:
    async with session_factory() as session:
        return await session.get(Application, application_id)


async def _offer(service, seed, job_id=None):
    """Drive a fresh application to pending_student."""
    application = await service.apply_job(seed.student, job_id or seed.job_id, message="Hello")
    await service.approve_by_admin(seed.admin, application.id)
    return await service.approve_by_company(seed.company, application.id, message="Join us")


# =============================================================================
# apply_job
# =============================================================================


async def test_apply_creates_pending_admin_and_notifies_admin_pool(service, seed, session_factory):
    application = await service.apply_job(seed.student, seed.job_id, message="Motivated")

    assert application.status == ApplicationStatus.PENDING_ADMIN.value
    assert application.company_id == seed.company.user_id
    assert application.match_id is None

    admin_notes = await _count(
        session_factory,
        Notification,
        Notification.recipient_role == "admin",
        Notification.type == NotificationType.JOB_APPLIED.value,
    )
    assert admin_notes == 1

    async with session_factory() as session:
        slot = await session.scalar(
            select(ActiveApplication).where(ActiveApplication.student_id == seed.student.user_id)
        )
    assert slot.application_id == application.id


async def test_second_application_while_active_conflicts(service, seed, session_factory):
    await service.apply_job(seed.student, seed.job_id)

    with pytest.raises(ConflictError) as exc_info:
        await service.apply_job(seed.student, seed.second_job_id)

    assert exc_info.value.code == "active_application_exists"
    assert await _active_count(session_factory, seed.student.user_id) == 1


async def test_other_students_are_independent(service, seed, session_factory):
    await service.apply_job(seed.student, seed.job_id)
    await service.apply_job(seed.other_student, seed.job_id)

    assert await _active_count(session_factory, seed.student.user_id) == 1
    assert await _active_count(session_factory, seed.other_student.user_id) == 1


async def test_apply_requires_student(service, seed):
    with pytest.raises(UnauthorizedError):
        await service.apply_job(seed.company, seed.job_id)


async def test_apply_to_missing_job(service, seed):
    with pytest.raises(NotFoundError):
        await service.apply_job(seed.student, uuid.uuid4())


async def test_apply_to_unpublished_job(service, seed, session_factory):
    async with session_factory() as session, session.begin():
        job = await session.get(JobPosting, seed.job_id)
        job.status = JobStatus.PENDING_APPROVAL.value

    with pytest.raises(InvalidStateError):
        await service.apply_job(seed.student, seed.job_id)


async def test_apply_with_mismatched_company(service, seed):
    with pytest.raises(ValidationError):
        await service.apply_job(
            seed.student, seed.job_id, company_id=seed.other_company.user_id
        )


# =============================================================================
# Admin review
# =============================================================================


async def test_admin_approve_twice_fails_without_double_notification(service, seed, session_factory):
    application = await service.apply_job(seed.student, seed.job_id)
    approved = await service.approve_by_admin(seed.admin, application.id)
    assert approved.status == ApplicationStatus.PENDING_COMPANY.value

    with pytest.raises(InvalidStateError):
        await service.approve_by_admin(seed.admin, application.id)

    company_notes = await _count(
        session_factory,
        Notification,
        Notification.recipient_user_id == seed.company.user_id,
        Notification.type == NotificationType.APPLICATION_APPROVED_ADMIN.value,
    )
    assert company_notes == 1


async def test_admin_reject_frees_the_slot(service, seed, session_factory):
    application = await service.apply_job(seed.student, seed.job_id)
    rejected = await service.reject_by_admin(seed.admin, application.id)
    assert rejected.status == ApplicationStatus.REJECTED_BY_ADMIN.value

    emails = await _count(
        session_factory, OutboxEvent, OutboxEvent.event_type == EmailTemplate.REJECTION.value
    )
    assert emails == 1

    # Slot released, so a different job is open again
    again = await service.apply_job(seed.student, seed.second_job_id)
    assert again.status == ApplicationStatus.PENDING_ADMIN.value


async def test_company_cannot_act_before_admin(service, seed):
    application = await service.apply_job(seed.student, seed.job_id)
    with pytest.raises(InvalidStateError):
        await service.approve_by_company(seed.company, application.id)


async def test_company_does_not_see_pending_admin(service, seed):
    application = await service.apply_job(seed.student, seed.job_id)

    with pytest.raises(UnauthorizedError):
        await service.get_application(seed.company, application.id)
    assert await service.list_applications(seed.company) == []

    await service.approve_by_admin(seed.admin, application.id)
    visible = await service.list_applications(seed.company)
    assert [a.id for a in visible] == [application.id]


# =============================================================================
# Company review
# =============================================================================


async def test_wrong_company_is_unauthorized_and_status_unchanged(service, seed, session_factory):
    application = await service.apply_job(seed.student, seed.job_id)
    await service.approve_by_admin(seed.admin, application.id)

    with pytest.raises(UnauthorizedError):
        await service.approve_by_company(seed.other_company, application.id)

    reloaded = await _reload(session_factory, application.id)
    assert reloaded.status == ApplicationStatus.PENDING_COMPANY.value


async def test_company_offer_notifies_and_enqueues_email(service, seed, session_factory):
    offered = await _offer(service, seed)
    assert offered.status == ApplicationStatus.PENDING_STUDENT.value

    async with session_factory() as session:
        event = await session.scalar(
            select(OutboxEvent).where(OutboxEvent.event_type == EmailTemplate.OFFER.value)
        )
    assert event.recipient_user_id == seed.student.user_id
    assert event.payload["company_name"] == "Acme"
    assert event.payload["job_title"] == "Backend Intern"
    assert event.payload["message"] == "Join us"

    offers = await _count(
        session_factory,
        Notification,
        Notification.recipient_user_id == seed.student.user_id,
        Notification.type == NotificationType.OFFER_RECEIVED.value,
    )
    assert offers == 1


async def test_company_reject_then_reapply_rules(service, seed):
    application = await service.apply_job(seed.student, seed.job_id)
    await service.approve_by_admin(seed.admin, application.id)
    rejected = await service.reject_by_company(seed.company, application.id)
    assert rejected.status == ApplicationStatus.REJECTED_BY_COMPANY.value

    with pytest.raises(InvalidStateError):
        await service.approve_by_company(seed.company, application.id)

    with pytest.raises(DuplicateApplicationError) as exc_info:
        await service.apply_job(seed.student, seed.job_id)
    assert exc_info.value.code == "duplicate_application"

    other = await service.apply_job(seed.student, seed.second_job_id)
    assert other.status == ApplicationStatus.PENDING_ADMIN.value


# =============================================================================
# Student response
# =============================================================================


async def test_accept_creates_match_round_trip(service, seed, session_factory):
    offered = await _offer(service, seed)
    accepted = await service.accept_match_by_student(seed.student, offered.id)

    reloaded = await _reload(session_factory, offered.id)
    assert reloaded.status == ApplicationStatus.MATCHED.value
    assert reloaded.match_id is not None
    assert reloaded.match_id == accepted.match_id

    async with session_factory() as session:
        match = await session.get(Match, reloaded.match_id)
    assert match.application_id == offered.id
    assert match.status == MatchStatus.ACTIVE.value
    assert match.student_id == seed.student.user_id
    assert match.company_id == seed.company.user_id

    assert await _count(session_factory, Match, Match.application_id == offered.id) == 1
    assert await _count(
        session_factory, OutboxEvent, OutboxEvent.event_type == EmailTemplate.OFFER_ACCEPTED.value
    ) == 1


async def test_accept_twice_creates_one_match(service, seed, session_factory):
    offered = await _offer(service, seed)
    await service.accept_match_by_student(seed.student, offered.id)

    with pytest.raises(InvalidStateError):
        await service.accept_match_by_student(seed.student, offered.id)

    assert await _count(session_factory, Match, Match.application_id == offered.id) == 1


async def test_matched_application_keeps_the_slot(service, seed):
    offered = await _offer(service, seed)
    await service.accept_match_by_student(seed.student, offered.id)

    active = await service.get_active_application(seed.student)
    assert active.id == offered.id

    with pytest.raises(ConflictError):
        await service.apply_job(seed.student, seed.other_company_job_id)


async def test_only_the_owner_can_accept(service, seed, session_factory):
    offered = await _offer(service, seed)

    with pytest.raises(UnauthorizedError):
        await service.accept_match_by_student(seed.other_student, offered.id)

    reloaded = await _reload(session_factory, offered.id)
    assert reloaded.status == ApplicationStatus.PENDING_STUDENT.value
    assert reloaded.match_id is None


async def test_decline_frees_the_slot(service, seed, session_factory):
    offered = await _offer(service, seed)
    declined = await service.decline_offer_by_student(seed.student, offered.id)

    assert declined.status == ApplicationStatus.DECLINED_BY_STUDENT.value
    assert declined.match_id is None
    assert await service.get_active_application(seed.student) is None

    company_notes = await _count(
        session_factory,
        Notification,
        Notification.recipient_user_id == seed.company.user_id,
        Notification.type == NotificationType.OFFER_DECLINED.value,
    )
    assert company_notes == 1


async def test_cancel_pending_application(service, seed, session_factory):
    application = await service.apply_job(seed.student, seed.job_id)
    cancelled = await service.cancel_application(seed.student, application.id)
    assert cancelled.status == ApplicationStatus.CANCELLED.value

    # Withdrawal before admin review goes to the admin pool
    assert await _count(
        session_factory,
        Notification,
        Notification.recipient_role == "admin",
        Notification.type == NotificationType.APPLICATION_CANCELLED.value,
    ) == 1

    with pytest.raises(InvalidStateError):
        await service.cancel_application(seed.student, application.id)


async def test_match_id_set_only_when_matched(service, seed, session_factory):
    offered = await _offer(service, seed)
    await service.accept_match_by_student(seed.student, offered.id)

    rejected = await service.apply_job(seed.other_student, seed.second_job_id)
    await service.reject_by_admin(seed.admin, rejected.id)

    async with session_factory() as session:
        applications = (await session.execute(select(Application))).scalars().all()

    for application in applications:
        assert (application.match_id is not None) == (
            application.status == ApplicationStatus.MATCHED.value
        )


async def test_missing_application(service, seed):
    with pytest.raises(NotFoundError):
        await service.approve_by_admin(seed.admin, uuid.uuid4())


async def test_pending_queue_for_admin(service, seed):
    first = await service.apply_job(seed.student, seed.job_id)
    second = await service.apply_job(seed.other_student, seed.job_id)
    await service.approve_by_admin(seed.admin, second.id)

    queue = await service.list_pending_for_admin(seed.admin)
    assert [a.id for a in queue] == [first.id]

    with pytest.raises(UnauthorizedError):
        await service.list_pending_for_admin(seed.student)


# =============================================================================
# Concurrency
# =============================================================================


@pytest_asyncio.fixture
async def serialized(serialized_engine):
    """Service and seed on an engine whose sessions really run side by side."""
    factory = make_session_factory(serialized_engine)
    seed = await seed_database(factory)
    return SimpleNamespace(service=MatchingService(factory), factory=factory, seed=seed)


def _split(results):
    won = [r for r in results if not isinstance(r, BaseException)]
    lost = [r for r in results if isinstance(r, BaseException)]
    return won, lost


def _racing_factory(engine, model, competitor):
    """Sessions whose first flush of a new `model` row finds competitor(row) already stored."""

    class RacingSession(Session):
        pass

    raced = []

    @event.listens_for(RacingSession, "before_flush")
    def _insert_competitor(session, flush_context, instances):
        for obj in list(session.new):
            if isinstance(obj, model) and not raced:
                raced.append(obj)
                session.connection().execute(insert(model.__table__).values(**competitor(obj)))

    return make_session_factory(engine, sync_session_class=RacingSession)


async def test_concurrent_admin_decisions_have_one_winner(serialized):
    service, seed = serialized.service, serialized.seed
    application = await service.apply_job(seed.student, seed.job_id)

    results = await asyncio.gather(
        service.approve_by_admin(seed.admin, application.id),
        service.reject_by_admin(seed.admin, application.id),
        return_exceptions=True,
    )

    won, lost = _split(results)
    assert len(won) == 1
    assert len(lost) == 1
    assert isinstance(lost[0], InvalidStateError)
    assert (await _reload(serialized.factory, application.id)).status == won[0].status


async def test_concurrent_accepts_create_one_match(serialized):
    service, seed = serialized.service, serialized.seed
    application = await _offer(service, seed)

    results = await asyncio.gather(
        service.accept_match_by_student(seed.student, application.id),
        service.accept_match_by_student(seed.student, application.id),
        return_exceptions=True,
    )

    won, lost = _split(results)
    assert len(won) == 1
    assert isinstance(lost[0], InvalidStateError)
    assert await _count(serialized.factory, Match) == 1
    assert (await _reload(serialized.factory, application.id)).match_id == won[0].match_id


async def test_concurrent_applies_by_one_student(serialized):
    service, seed = serialized.service, serialized.seed

    results = await asyncio.gather(
        service.apply_job(seed.student, seed.job_id),
        service.apply_job(seed.student, seed.second_job_id),
        return_exceptions=True,
    )

    won, lost = _split(results)
    assert len(won) == 1
    assert len(lost) == 1
    assert type(lost[0]) is ConflictError
    assert await _active_count(serialized.factory, seed.student.user_id) == 1

    async with serialized.factory() as session:
        slot = await session.scalar(
            select(ActiveApplication).where(ActiveApplication.student_id == seed.student.user_id)
        )
    assert slot.application_id == won[0].id


async def test_losing_the_slot_creation_race_is_a_conflict(engine, seed, session_factory):
    racing = _racing_factory(engine, ActiveApplication, lambda slot: {"student_id": slot.student_id})

    with pytest.raises(ConflictError) as exc_info:
        await MatchingService(racing).apply_job(seed.student, seed.job_id)

    assert exc_info.value.code == "active_application_exists"
    # The whole transaction rolled back, the competing row included
    assert await _count(session_factory, Application) == 0
    assert await _count(session_factory, ActiveApplication) == 0


async def test_losing_the_student_job_race_is_a_duplicate(engine, seed, session_factory):
    racing = _racing_factory(
        engine,
        Application,
        lambda application: {
            "job_id": application.job_id,
            "student_id": application.student_id,
            "company_id": application.company_id,
            "status": ApplicationStatus.CANCELLED.value,
            "message": "",
        },
    )

    with pytest.raises(DuplicateApplicationError) as exc_info:
        await MatchingService(racing).apply_job(seed.student, seed.job_id)

    assert exc_info.value.code == "duplicate_application"
    assert await _count(session_factory, Application) == 0
    assert await _active_count(session_factory, seed.student.user_id) == 0
