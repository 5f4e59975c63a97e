"""Match model."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid

from app.db.base import Base
from app.utils.constants import MatchStatus


class Match(Base):
    """Confirmed pairing of a student and a company, derived from an accepted application."""

    __tablename__ = "matches"

    application_id = Column(
        Uuid(as_uuid=True), ForeignKey("applications.id"), unique=True, nullable=False
    )
    job_id = Column(Uuid(as_uuid=True), ForeignKey("job_postings.id"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=MatchStatus.ACTIVE.value)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)

    def participant_ids(self):
        return (self.student_id, self.company_id)

    def __repr__(self):
        return f"<Match {self.student_id} <-> {self.company_id} ({self.status})>"
