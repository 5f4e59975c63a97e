"""
Internship API
Match details, daily reports, company comments and evaluations
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import Principal, get_current_principal, get_internship_service
from app.schemas.internship import (
    CompanyCommentCreate,
    DailyReportCreate,
    DailyReportListResponse,
    DailyReportResponse,
    EvaluationCreate,
    EvaluationResponse,
    MatchResponse,
)
from app.services.internship_service import InternshipService
from app.utils.constants import MatchStatus

router = APIRouter()


@router.get("", response_model=List[MatchResponse])
async def list_matches(
    status_filter: Optional[MatchStatus] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    return await service.list_matches(principal, status=status_filter)


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(
    match_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    return await service.get_match(principal, match_id)


@router.post("/{match_id}/complete", response_model=MatchResponse)
async def complete_internship(
    match_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    """
    Mark the internship as completed

    **Auth**: the matched company. Irreversible; opens evaluations.
    """
    return await service.complete_internship(principal, match_id)


# ==================== Daily reports ====================

@router.post(
    "/{match_id}/reports",
    response_model=DailyReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_report(
    match_id: UUID,
    report_in: DailyReportCreate,
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    return await service.create_report(
        principal,
        match_id,
        report_date=report_in.date,
        content=report_in.content,
        learning=report_in.learning,
        next_goals=report_in.next_goals,
    )


@router.get("/{match_id}/reports", response_model=DailyReportListResponse)
async def list_reports(
    match_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    reports = await service.get_reports(principal, match_id)
    return DailyReportListResponse(reports=reports, total=len(reports))


@router.put("/reports/{report_id}/comment", response_model=DailyReportResponse)
async def add_company_comment(
    report_id: UUID,
    comment_in: CompanyCommentCreate,
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    return await service.add_company_comment(principal, report_id, comment_in.comment)


# ==================== Evaluations ====================

@router.post(
    "/{match_id}/evaluations",
    response_model=EvaluationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_evaluation(
    match_id: UUID,
    evaluation_in: EvaluationCreate,
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    """
    Rate the other side of a completed internship (score 1-5)

    A second submission by the same participant returns 409 `evaluation_already_submitted`.
    """
    return await service.submit_evaluation(
        principal, match_id, evaluation_in.score, evaluation_in.comment
    )


@router.get("/{match_id}/evaluations/{from_id}", response_model=Optional[EvaluationResponse])
async def get_evaluation(
    match_id: UUID,
    from_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: InternshipService = Depends(get_internship_service),
):
    return await service.get_evaluation(principal, match_id, from_id)
