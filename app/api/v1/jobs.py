"""Job posting API (company side)."""

from fastapi import APIRouter, Depends, status

from app.api.deps import Principal, get_current_principal, get_listing_service
from app.schemas.admin import JobPostingCreate, JobPostingResponse
from app.services.listing_service import ListingService

router = APIRouter()


@router.post("", response_model=JobPostingResponse, status_code=status.HTTP_201_CREATED)
async def create_job_posting(
    job_in: JobPostingCreate,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
):
    """
    Submit a job posting for admin review

    **Auth**: Company. The company profile must be approved by an admin first.
    """
    return await service.create_job_posting(
        principal,
        title=job_in.title,
        content=job_in.content,
        requirements=job_in.requirements,
        salary=job_in.salary,
        location=job_in.location,
    )
