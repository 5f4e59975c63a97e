"""Company model."""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.base import Base


class Company(Base):
    """Company profile model, keyed by the company's user account."""

    __tablename__ = "companies"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False, index=True)
    website = Column(String(500))
    industry = Column(String(100))
    address = Column(String(500))
    description = Column(Text)

    # Set by an admin; required before the company can post jobs
    is_approved = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User")

    def __repr__(self):
        return f"<Company {self.name}>"
