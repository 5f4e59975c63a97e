"""Job posting model."""

from sqlalchemy import JSON, Column, ForeignKey, String, Text, Uuid

from app.db.base import Base
from app.utils.constants import JobStatus


class JobPosting(Base):
    """Internship listing published by a company."""

    __tablename__ = "job_postings"

    company_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False, default="")
    requirements = Column(JSON, default=list)  # ["Python", "SQL", ...]
    salary = Column(String(100))
    location = Column(String(255))

    # draft, pending_approval, published, closed
    status = Column(String(20), nullable=False, default=JobStatus.PENDING_APPROVAL.value, index=True)

    def __repr__(self):
        return f"<JobPosting {self.title} ({self.status})>"
