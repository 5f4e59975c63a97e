"""Write side of the email outbox."""

from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.outbox_event import OutboxEvent
from app.utils.constants import EmailTemplate, OutboxStatus

logger = structlog.get_logger(__name__)


def enqueue_email(
    session: AsyncSession,
    recipient_user_id: UUID,
    template: EmailTemplate,
    context: Optional[Dict[str, Any]] = None,
) -> OutboxEvent:
    """Record an email in the caller's transaction; OutboxDispatcher sends it later."""
    event = OutboxEvent(
        event_type=EmailTemplate(template).value,
        recipient_user_id=recipient_user_id,
        payload={key: str(value) for key, value in (context or {}).items()},
        status=OutboxStatus.PENDING.value,
        attempts=0,
    )
    session.add(event)
    logger.debug("email_enqueued", template=event.event_type, recipient=str(recipient_user_id))
    return event
