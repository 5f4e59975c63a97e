"""Per-student pointer to the application that holds the active slot."""

from sqlalchemy import Column, ForeignKey, Uuid

from app.db.base import Base


class ActiveApplication(Base):
    """
    Singleton row per student.

    application_id is non-null while the student has an application in the
    active-status set. The row is locked and rewritten in the same
    transaction as every transition entering or leaving that set, so the
    one-active-application rule is a single-row compare-and-swap.
    """

    __tablename__ = "active_applications"

    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    application_id = Column(Uuid(as_uuid=True), ForeignKey("applications.id"), nullable=True)

    def __repr__(self):
        return f"<ActiveApplication {self.student_id} -> {self.application_id}>"
