"""
Applications API
Apply, review and accept: the approval workflow between student, admin and company
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import Principal, get_current_principal, get_matching_service
from app.config import settings
from app.schemas.application import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    CompanyDecision,
)
from app.services.matching_service import MatchingService
from app.utils.constants import ApplicationStatus

router = APIRouter()


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def apply_job(
    application_in: ApplicationCreate,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    """
    Apply to a published job

    **Auth**: Student

    Fails with 409 `active_application_exists` while another application is
    in progress, and 409 `duplicate_application` when re-applying to the same job.
    """
    return await service.apply_job(
        principal,
        application_in.job_id,
        message=application_in.message,
        company_id=application_in.company_id,
    )


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    """
    List applications visible to the caller

    Students see their own, companies see the ones that reached them, admins see all.
    """
    applications = await service.list_applications(
        principal, status=status_filter, limit=limit, offset=offset
    )
    return ApplicationListResponse(applications=applications, total=len(applications))


@router.get("/active", response_model=Optional[ApplicationResponse])
async def get_active_application(
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    """The student's in-progress or matched application, or null."""
    return await service.get_active_application(principal)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.get_application(principal, application_id)


# ==================== Admin review ====================

@router.post("/{application_id}/admin-approve", response_model=ApplicationResponse)
async def approve_by_admin(
    application_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    """Forward a pending_admin application to the company."""
    return await service.approve_by_admin(principal, application_id)


@router.post("/{application_id}/admin-reject", response_model=ApplicationResponse)
async def reject_by_admin(
    application_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.reject_by_admin(principal, application_id)


# ==================== Company review ====================

@router.post("/{application_id}/company-approve", response_model=ApplicationResponse)
async def approve_by_company(
    application_id: UUID,
    decision: Optional[CompanyDecision] = None,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    """Send the student a matching offer."""
    message = decision.message if decision else ""
    return await service.approve_by_company(principal, application_id, message=message)


@router.post("/{application_id}/company-reject", response_model=ApplicationResponse)
async def reject_by_company(
    application_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.reject_by_company(principal, application_id)


# ==================== Student response ====================

@router.post("/{application_id}/accept", response_model=ApplicationResponse)
async def accept_offer(
    application_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    """Accept the offer; the response carries the new match_id."""
    return await service.accept_match_by_student(principal, application_id)


@router.post("/{application_id}/decline", response_model=ApplicationResponse)
async def decline_offer(
    application_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.decline_offer_by_student(principal, application_id)


@router.post("/{application_id}/cancel", response_model=ApplicationResponse)
async def cancel_application(
    application_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: MatchingService = Depends(get_matching_service),
):
    """Withdraw a pending application."""
    return await service.cancel_application(principal, application_id)
