"""
Outbox dispatcher.

Delivers pending OutboxEvents one at a time, each in its own short
transaction. Delivery failures are logged and rescheduled with backoff;
they never touch applications or matches.
"""

from datetime import timedelta
from typing import Dict, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import Settings, settings as default_settings
from app.core.exceptions import DeliverySoftError
from app.db.base import utcnow
from app.models.outbox_event import OutboxEvent
from app.models.user import User
from app.services.email_service import EmailSender, render_email
from app.utils.constants import OutboxStatus

logger = structlog.get_logger(__name__)


class OutboxDispatcher:
    """Consume pending outbox events and hand them to the EmailSender."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        sender: Optional[EmailSender] = None,
        config: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.settings = config or default_settings
        self.sender = sender or EmailSender(self.settings)

    async def dispatch_pending(self, batch_size: Optional[int] = None) -> Dict[str, int]:
        """
        Deliver up to batch_size due events.

        Returns:
            Counts per outcome: sent, skipped, retried, failed
        """
        batch_size = batch_size or self.settings.OUTBOX_BATCH_SIZE
        stats = {"sent": 0, "skipped": 0, "retried": 0, "failed": 0}

        async with self.session_factory() as session:
            result = await session.execute(
                select(OutboxEvent.id)
                .where(
                    OutboxEvent.status == OutboxStatus.PENDING.value,
                    OutboxEvent.next_attempt_at <= utcnow(),
                )
                .order_by(OutboxEvent.created_at)
                .limit(batch_size)
            )
            event_ids = list(result.scalars().all())

        for event_id in event_ids:
            try:
                outcome = await self._dispatch_one(event_id)
            except Exception as e:
                logger.exception("outbox_dispatch_error", event_id=str(event_id), error=str(e))
                outcome = await self._mark_failed(event_id, e)
            if outcome:
                stats[outcome] += 1

        if event_ids:
            logger.info("outbox_dispatch_finished", **stats)
        return stats

    async def _dispatch_one(self, event_id) -> Optional[str]:
        async with self.session_factory() as session, session.begin():
            # SKIP LOCKED lets several dispatchers run side by side
            result = await session.execute(
                select(OutboxEvent)
                .where(
                    OutboxEvent.id == event_id,
                    OutboxEvent.status == OutboxStatus.PENDING.value,
                )
                .with_for_update(skip_locked=True)
            )
            event = result.scalar_one_or_none()
            if event is None:
                return None

            recipient = await session.get(User, event.recipient_user_id)
            skip_reason = None
            if not self.sender.enabled:
                skip_reason = "email_disabled"
            elif recipient is None or not recipient.email:
                skip_reason = "no_address"
            elif not recipient.email_notifications:
                skip_reason = "opted_out"

            if skip_reason:
                event.status = OutboxStatus.SKIPPED.value
                event.dispatched_at = utcnow()
                logger.info(
                    "outbox_event_skipped",
                    event_id=str(event.id),
                    template=event.event_type,
                    reason=skip_reason,
                )
                return "skipped"

            context = dict(event.payload or {})
            context.setdefault("recipient_name", recipient.name)
            subject, body = render_email(event.event_type, context, self.settings.APP_URL)

            event.attempts += 1
            try:
                await self.sender.send(recipient.email, subject, body)
            except DeliverySoftError as e:
                event.last_error = str(e)
                logger.warning(
                    "outbox_delivery_failed",
                    event_id=str(event.id),
                    template=event.event_type,
                    attempts=event.attempts,
                    error=str(e),
                )
                if not e.retryable or event.attempts >= self.settings.OUTBOX_MAX_ATTEMPTS:
                    event.status = OutboxStatus.FAILED.value
                    return "failed"
                delay = self.settings.OUTBOX_RETRY_DELAY_SECONDS * (2 ** (event.attempts - 1))
                event.next_attempt_at = utcnow() + timedelta(seconds=delay)
                return "retried"

            event.status = OutboxStatus.SENT.value
            event.dispatched_at = utcnow()
            event.last_error = None
            return "sent"

    async def _mark_failed(self, event_id, error: Exception) -> Optional[str]:
        """Park an event whose dispatch raised, so later events still go out."""
        async with self.session_factory() as session, session.begin():
            event = await session.get(OutboxEvent, event_id, with_for_update=True)
            if event is None or event.status != OutboxStatus.PENDING.value:
                return None
            event.attempts += 1
            event.status = OutboxStatus.FAILED.value
            event.last_error = repr(error)
            return "failed"
