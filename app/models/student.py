"""Student model."""

from sqlalchemy import JSON, Column, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.base import Base


class Student(Base):
    """Student profile model."""

    __tablename__ = "students"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    university = Column(String(255))
    grade = Column(String(50))
    bio = Column(Text)

    # JSON fields
    skills = Column(JSON, default=list)  # ["Python", "React", ...]
    links = Column(JSON, default=list)

    # Relationships
    user = relationship("User")

    def __repr__(self):
        return f"<Student {self.name}>"
