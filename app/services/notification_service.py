"""
Notification sink.

append() writes inside the caller's transaction so a notification commits
or rolls back together with the state change it announces. The read side
backs the notification bell: recent items, unread count, mark as read.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.core.exceptions import NotFoundError, UnauthorizedError
from app.core.security import Principal, Role
from app.db.base import utcnow
from app.models.notification import Notification
from app.utils.constants import NotificationType

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class NotificationTarget:
    """Recipient of a notification: one user, or every holder of a role."""

    user_id: Optional[UUID] = None
    role: Optional[Role] = None

    @classmethod
    def user(cls, user_id: UUID) -> "NotificationTarget":
        return cls(user_id=user_id)

    @classmethod
    def for_role(cls, role: Role) -> "NotificationTarget":
        return cls(role=role)

    def __post_init__(self):
        if (self.user_id is None) == (self.role is None):
            raise ValueError("NotificationTarget needs exactly one of user_id or role")


ADMIN_POOL = NotificationTarget.for_role(Role.ADMIN)


def _addressed_to(principal: Principal):
    """Filter for notifications visible to this principal."""
    clauses = [Notification.recipient_user_id == principal.user_id]
    if principal.role == Role.ADMIN:
        clauses.append(Notification.recipient_role == Role.ADMIN.value)
    return or_(*clauses)


class NotificationService:
    """Append and read in-app notifications."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @staticmethod
    async def append(
        session: AsyncSession,
        target: NotificationTarget,
        type: NotificationType,
        title: str,
        message: str,
        link: Optional[str] = None,
    ) -> Notification:
        """Add a notification to the caller's open transaction."""
        notification = Notification(
            recipient_user_id=target.user_id,
            recipient_role=target.role.value if target.role else None,
            type=NotificationType(type).value,
            title=title,
            message=message,
            link=link,
            read=False,
        )
        session.add(notification)
        logger.debug(
            "notification_appended",
            type=notification.type,
            recipient_user_id=str(target.user_id) if target.user_id else None,
            recipient_role=notification.recipient_role,
        )
        return notification

    async def list_for(
        self,
        principal: Principal,
        limit: Optional[int] = None,
        unread_only: bool = False,
    ) -> Dict:
        """Most recent notifications for the principal plus the unread total."""
        limit = limit or settings.NOTIFICATION_PAGE_SIZE

        async with self.session_factory() as session:
            query = select(Notification).where(_addressed_to(principal))
            if unread_only:
                query = query.where(Notification.read.is_(False))
            query = query.order_by(Notification.created_at.desc()).limit(limit)

            result = await session.execute(query)
            notifications: List[Notification] = list(result.scalars().all())

            unread_count = await session.scalar(
                select(func.count(Notification.id)).where(
                    and_(_addressed_to(principal), Notification.read.is_(False))
                )
            )

        return {"notifications": notifications, "unread_count": unread_count or 0}

    async def mark_as_read(self, principal: Principal, notification_id: UUID) -> Notification:
        async with self.session_factory() as session, session.begin():
            notification = await session.get(Notification, notification_id, with_for_update=True)
            if notification is None:
                raise NotFoundError("Notification not found")

            visible = notification.recipient_user_id == principal.user_id or (
                principal.role == Role.ADMIN
                and notification.recipient_role == Role.ADMIN.value
            )
            if not visible:
                raise UnauthorizedError("Notification belongs to another user")

            if not notification.read:
                notification.read = True
                notification.read_at = utcnow()

        return notification

    async def mark_all_as_read(self, principal: Principal) -> int:
        """Mark every unread notification visible to the principal; returns the count."""
        async with self.session_factory() as session, session.begin():
            result = await session.execute(
                update(Notification)
                .where(and_(_addressed_to(principal), Notification.read.is_(False)))
                .values(read=True, read_at=utcnow(), updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )

        logger.info(
            "notifications_marked_read",
            user_id=str(principal.user_id),
            count=result.rowcount,
        )
        return result.rowcount
