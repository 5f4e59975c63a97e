"""Application schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ApplicationCreate(BaseModel):
    job_id: UUID
    company_id: Optional[UUID] = Field(
        None, description="Optional; must match the job's company when given"
    )
    message: str = Field("", max_length=2000, description="Motivation message to the company")


class CompanyDecision(BaseModel):
    message: str = Field("", max_length=2000, description="Message included in the offer email")


class ApplicationResponse(BaseModel):
    id: UUID
    job_id: UUID
    student_id: UUID
    company_id: UUID
    status: str
    message: str
    match_id: Optional[UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationResponse]
    total: int
