"""Daily report model."""

from sqlalchemy import Column, Date, ForeignKey, Index, Text, Uuid

from app.db.base import Base


class DailyReport(Base):
    """Dated journal entry written by the student during an active match."""

    __tablename__ = "daily_reports"
    __table_args__ = (
        # Not unique: several reports for the same day are allowed
        Index("idx_daily_reports_match_date", "match_id", "date"),
    )

    match_id = Column(Uuid(as_uuid=True), ForeignKey("matches.id"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    date = Column(Date, nullable=False)

    content = Column(Text, nullable=False, default="")  # What was done
    learning = Column(Text, nullable=False, default="")  # What was learned
    next_goals = Column(Text, nullable=False, default="")

    company_comment = Column(Text, nullable=True)

    def __repr__(self):
        return f"<DailyReport {self.match_id} {self.date}>"
