"""Match, daily report and evaluation schemas."""

from datetime import date as date_type, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class MatchResponse(BaseModel):
    id: UUID
    application_id: UUID
    job_id: UUID
    student_id: UUID
    company_id: UUID
    status: str
    start_date: datetime
    end_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class DailyReportCreate(BaseModel):
    date: date_type
    content: str = Field(..., min_length=1, description="What was done today")
    learning: str = Field("", description="What was learned")
    next_goals: str = Field("", description="Goals for the next day")


class CompanyCommentCreate(BaseModel):
    comment: str = Field(..., min_length=1, max_length=5000)


class DailyReportResponse(BaseModel):
    id: UUID
    match_id: UUID
    student_id: UUID
    date: date_type
    content: str
    learning: str
    next_goals: str
    company_comment: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DailyReportListResponse(BaseModel):
    reports: List[DailyReportResponse]
    total: int


class EvaluationCreate(BaseModel):
    # Range is enforced by the service so the error carries the domain code
    score: int
    comment: str = Field("", max_length=5000)


class EvaluationResponse(BaseModel):
    id: UUID
    match_id: UUID
    from_id: UUID
    to_id: UUID
    score: int
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True
