"""Admin and job posting schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    total_users: int
    total_companies: int
    pending_jobs: int
    active_jobs: int
    pending_applications: int
    total_matches: int


class JobPostingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    requirements: List[str] = Field(default_factory=list)
    salary: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)


class JobPostingResponse(BaseModel):
    id: UUID
    company_id: UUID
    title: str
    content: str
    requirements: List[str] = Field(default_factory=list)
    salary: Optional[str] = None
    location: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class CompanyApprovalUpdate(BaseModel):
    is_approved: bool


class CompanyResponse(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    industry: Optional[str] = None
    is_approved: bool

    class Config:
        from_attributes = True
