"""Evaluation model."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Text, UniqueConstraint, Uuid

from app.db.base import Base


class Evaluation(Base):
    """One-directional rating from one match participant about the other."""

    __tablename__ = "evaluations"
    __table_args__ = (
        UniqueConstraint("match_id", "from_id", name="unique_match_evaluator"),
        CheckConstraint("score BETWEEN 1 AND 5", name="evaluation_score_range"),
    )

    match_id = Column(Uuid(as_uuid=True), ForeignKey("matches.id"), nullable=False, index=True)
    from_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    to_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    score = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=False, default="")

    def __repr__(self):
        return f"<Evaluation {self.from_id} -> {self.to_id}: {self.score}>"
