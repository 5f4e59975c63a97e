"""
API Dependencies
Identity resolution and service construction for the routers
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.security import Principal, Role, get_current_principal, require_role
from app.db.session import get_session_factory
from app.services.internship_service import InternshipService
from app.services.listing_service import ListingService
from app.services.matching_service import MatchingService
from app.services.notification_service import NotificationService

__all__ = [
    "Principal",
    "get_current_principal",
    "require_admin",
    "get_matching_service",
    "get_internship_service",
    "get_notification_service",
    "get_listing_service",
]

# Role-based access control shortcut
require_admin = require_role(Role.ADMIN)


def get_matching_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> MatchingService:
    return MatchingService(session_factory)


def get_internship_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> InternshipService:
    return InternshipService(session_factory)


def get_notification_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> NotificationService:
    return NotificationService(session_factory)


def get_listing_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> ListingService:
    return ListingService(session_factory)
