"""Tests for reports, completion and evaluations on a match."""

import uuid
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from app.core.exceptions import (
    DuplicateEvaluationError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.models.evaluation import Evaluation
from app.models.notification import Notification
from app.services.internship_service import InternshipService
from app.services.matching_service import MatchingService
from app.utils.constants import MatchStatus, NotificationType


@pytest.fixture
def internships(session_factory):
    return InternshipService(session_factory)


@pytest_asyncio.fixture
async def match_id(session_factory, seed):
    """An active match between seed.student and seed.company."""
    matching = MatchingService(session_factory)
    application = await matching.apply_job(seed.student, seed.job_id)
    await matching.approve_by_admin(seed.admin, application.id)
    await matching.approve_by_company(seed.company, application.id)
    accepted = await matching.accept_match_by_student(seed.student, application.id)
    return accepted.match_id


@pytest_asyncio.fixture
async def completed_match_id(internships, seed, match_id):
    await internships.complete_internship(seed.company, match_id)
    return match_id


# =============================================================================
# Match reads and completion
# =============================================================================


async def test_participants_and_admin_can_view(internships, seed, match_id):
    for actor in (seed.student, seed.company, seed.admin):
        match = await internships.get_match(actor, match_id)
        assert match.id == match_id

    with pytest.raises(UnauthorizedError):
        await internships.get_match(seed.other_company, match_id)


async def test_list_matches_is_scoped(internships, seed, match_id):
    assert [m.id for m in await internships.list_matches(seed.student)] == [match_id]
    assert [m.id for m in await internships.list_matches(seed.company)] == [match_id]
    assert await internships.list_matches(seed.other_company) == []
    assert await internships.list_matches(seed.company, status=MatchStatus.COMPLETED) == []


async def test_complete_internship(internships, seed, match_id, session_factory):
    completed = await internships.complete_internship(seed.company, match_id)

    assert completed.status == MatchStatus.COMPLETED.value
    assert completed.end_date is not None

    async with session_factory() as session:
        notes = await session.scalar(
            select(func.count(Notification.id)).where(
                Notification.recipient_user_id == seed.student.user_id,
                Notification.type == NotificationType.INTERNSHIP_COMPLETED.value,
            )
        )
    assert notes == 1

    with pytest.raises(InvalidStateError):
        await internships.complete_internship(seed.company, match_id)


async def test_student_cannot_complete(internships, seed, match_id):
    with pytest.raises(UnauthorizedError):
        await internships.complete_internship(seed.student, match_id)


# =============================================================================
# Daily reports
# =============================================================================


async def test_reports_sorted_newest_first_and_duplicates_allowed(internships, seed, match_id):
    await internships.create_report(
        seed.student, match_id, date(2026, 4, 1), "Set up env", "Docker", "Write tests"
    )
    await internships.create_report(
        seed.student, match_id, date(2026, 4, 3), "Wrote tests", "pytest", "Refactor"
    )
    await internships.create_report(
        seed.student, match_id, date(2026, 4, 3), "Fixed a bug", "Logging", ""
    )

    reports = await internships.get_reports(seed.company, match_id)
    assert [r.date for r in reports] == [date(2026, 4, 3), date(2026, 4, 3), date(2026, 4, 1)]


async def test_only_matched_student_writes_reports(internships, seed, match_id):
    with pytest.raises(UnauthorizedError):
        await internships.create_report(seed.company, match_id, date(2026, 4, 1), "x", "", "")
    with pytest.raises(UnauthorizedError):
        await internships.create_report(seed.other_student, match_id, date(2026, 4, 1), "x", "", "")


async def test_no_reports_after_completion(internships, seed, completed_match_id):
    with pytest.raises(InvalidStateError):
        await internships.create_report(
            seed.student, completed_match_id, date(2026, 4, 1), "x", "", ""
        )


async def test_company_comment(internships, seed, match_id):
    report = await internships.create_report(
        seed.student, match_id, date(2026, 4, 1), "Set up env", "", ""
    )

    commented = await internships.add_company_comment(seed.company, report.id, "Good start")
    assert commented.company_comment == "Good start"

    # A later comment replaces the earlier one
    commented = await internships.add_company_comment(seed.company, report.id, "Great week")
    assert commented.company_comment == "Great week"

    with pytest.raises(UnauthorizedError):
        await internships.add_company_comment(seed.other_company, report.id, "Hi")
    with pytest.raises(UnauthorizedError):
        await internships.add_company_comment(seed.student, report.id, "Hi")


async def test_comment_on_missing_report(internships, seed, match_id):
    with pytest.raises(NotFoundError):
        await internships.add_company_comment(seed.company, uuid.uuid4(), "Hi")


# =============================================================================
# Evaluations
# =============================================================================


async def test_evaluations_require_completion(internships, seed, match_id):
    with pytest.raises(InvalidStateError):
        await internships.submit_evaluation(seed.student, match_id, 5)


async def test_both_sides_evaluate_once(internships, seed, completed_match_id, session_factory):
    by_student = await internships.submit_evaluation(seed.student, completed_match_id, 5, "Great team")
    by_company = await internships.submit_evaluation(seed.company, completed_match_id, 4)

    assert by_student.to_id == seed.company.user_id
    assert by_company.to_id == seed.student.user_id

    with pytest.raises(DuplicateEvaluationError) as exc_info:
        await internships.submit_evaluation(seed.student, completed_match_id, 1, "Changed my mind")
    assert exc_info.value.code == "evaluation_already_submitted"

    with pytest.raises(DuplicateEvaluationError):
        await internships.submit_evaluation(seed.company, completed_match_id, 2)

    async with session_factory() as session:
        total = await session.scalar(
            select(func.count(Evaluation.id)).where(Evaluation.match_id == completed_match_id)
        )
    assert total == 2

    # The first submission is the one that is kept
    kept = await internships.get_evaluation(seed.admin, completed_match_id, seed.student.user_id)
    assert kept.score == 5
    assert kept.comment == "Great team"


@pytest.mark.parametrize("score", [0, 6, -1, 2.5, "4", True])
async def test_score_must_be_integer_in_range(internships, seed, completed_match_id, score):
    with pytest.raises(ValidationError):
        await internships.submit_evaluation(seed.student, completed_match_id, score)


async def test_outsider_cannot_evaluate(internships, seed, completed_match_id):
    with pytest.raises(UnauthorizedError):
        await internships.submit_evaluation(seed.other_student, completed_match_id, 3)


async def test_get_evaluation_missing_returns_none(internships, seed, completed_match_id):
    assert await internships.get_evaluation(seed.student, completed_match_id, seed.company.user_id) is None
