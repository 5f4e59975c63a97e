"""Admin API endpoints: review queues, job and company approval, stats."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import (
    Principal,
    get_listing_service,
    get_matching_service,
    require_admin,
)
from app.schemas.admin import (
    CompanyApprovalUpdate,
    CompanyResponse,
    DashboardStats,
    JobPostingResponse,
)
from app.schemas.application import ApplicationResponse
from app.services.listing_service import ListingService
from app.services.matching_service import MatchingService

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    principal: Principal = Depends(require_admin),
    service: ListingService = Depends(get_listing_service),
):
    return await service.get_stats(principal)


# ==================== Applications ====================

@router.get("/applications/pending", response_model=List[ApplicationResponse])
async def list_pending_applications(
    principal: Principal = Depends(require_admin),
    service: MatchingService = Depends(get_matching_service),
):
    """Applications waiting for admin review, oldest first."""
    return await service.list_pending_for_admin(principal)


# ==================== Job postings ====================

@router.get("/jobs/pending", response_model=List[JobPostingResponse])
async def list_pending_jobs(
    principal: Principal = Depends(require_admin),
    service: ListingService = Depends(get_listing_service),
):
    return await service.list_pending_jobs(principal)


@router.post("/jobs/{job_id}/approve", response_model=JobPostingResponse)
async def approve_job(
    job_id: UUID,
    principal: Principal = Depends(require_admin),
    service: ListingService = Depends(get_listing_service),
):
    """Publish a job posting so students can apply."""
    return await service.approve_job(principal, job_id)


@router.post("/jobs/{job_id}/reject", response_model=JobPostingResponse)
async def reject_job(
    job_id: UUID,
    principal: Principal = Depends(require_admin),
    service: ListingService = Depends(get_listing_service),
):
    """Send a job posting back to draft."""
    return await service.reject_job(principal, job_id)


# ==================== Companies ====================

@router.put("/companies/{company_user_id}/approval", response_model=CompanyResponse)
async def set_company_approval(
    company_user_id: UUID,
    approval: CompanyApprovalUpdate,
    principal: Principal = Depends(require_admin),
    service: ListingService = Depends(get_listing_service),
):
    return await service.set_company_approval(principal, company_user_id, approval.is_approved)
