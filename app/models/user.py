"""User model."""

from sqlalchemy import Boolean, Column, String

from app.db.base import Base


class User(Base):
    """Account record shared by students, companies and admins."""

    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default="student")  # student, company, admin
    is_active = Column(Boolean, default=True, nullable=False)

    # Notification settings
    email_notifications = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
