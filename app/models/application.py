"""Application model."""

from sqlalchemy import Column, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.utils.constants import ApplicationStatus


class Application(Base):
    """One student's candidacy for one job posting."""

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("student_id", "job_id", name="unique_student_job_application"),
        Index("idx_applications_student_status", "student_id", "status"),
        Index("idx_applications_company_status", "company_id", "status"),
    )

    job_id = Column(Uuid(as_uuid=True), ForeignKey("job_postings.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Status tracking, see app.services.lifecycle for the legal transitions
    status = Column(String(30), nullable=False, default=ApplicationStatus.PENDING_ADMIN.value)
    message = Column(Text, nullable=False, default="")

    # Set exactly once, when the student accepts the offer
    match_id = Column(Uuid(as_uuid=True), unique=True, nullable=True)

    # Relationships
    job = relationship("JobPosting")

    def __repr__(self):
        return f"<Application {self.student_id} -> {self.job_id} ({self.status})>"
