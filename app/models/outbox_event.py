"""Outbox event model."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid

from app.db.base import Base, utcnow
from app.utils.constants import OutboxStatus


class OutboxEvent(Base):
    """
    Email written in the same transaction as the state change that caused it.

    The dispatcher delivers it later; delivery outcome never affects the
    originating transition.
    """

    __tablename__ = "outbox_events"
    __table_args__ = (
        Index("idx_outbox_status_next_attempt", "status", "next_attempt_at"),
    )

    event_type = Column(String(50), nullable=False)  # Email template name
    recipient_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    payload = Column(JSON, nullable=False, default=dict)

    # Delivery tracking
    status = Column(String(20), nullable=False, default=OutboxStatus.PENDING.value)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    next_attempt_at = Column(DateTime, nullable=False, default=utcnow)
    dispatched_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<OutboxEvent {self.event_type} -> {self.recipient_user_id} ({self.status})>"
