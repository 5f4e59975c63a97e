"""
Notification model
Per-user (or per-role) message log shown in the notification bell
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text, Uuid

from app.db.base import Base


class Notification(Base):
    """
    In-app notification.

    Addressed either to a single user (recipient_user_id) or to every holder
    of a role (recipient_role), never both. The admin pool is the role
    target "admin".
    """

    __tablename__ = "notifications"

    recipient_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    recipient_role = Column(String(20), nullable=True)

    # Notification type (job_applied, offer_received, ...)
    type = Column(String(50), nullable=False)

    # Content
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)  # Path to navigate to

    # Status
    read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(recipient_user_id IS NULL) <> (recipient_role IS NULL)",
            name="notification_single_target",
        ),
        Index("idx_notifications_user_unread", "recipient_user_id", "read"),
        Index("idx_notifications_role_unread", "recipient_role", "read"),
        Index("idx_notifications_created_at", "created_at"),
    )

    def __repr__(self):
        target = self.recipient_user_id or f"role:{self.recipient_role}"
        return f"<Notification(target={target}, type={self.type}, read={self.read})>"
