"""Database models."""

# Import all models in dependency order to ensure proper relationship initialization

# Base models (no foreign keys)
from app.models.user import User

# Profiles and listings
from app.models.student import Student
from app.models.company import Company
from app.models.job_posting import JobPosting

# Application lifecycle
from app.models.application import Application
from app.models.active_application import ActiveApplication
from app.models.match import Match
from app.models.daily_report import DailyReport
from app.models.evaluation import Evaluation

# Side channels
from app.models.notification import Notification
from app.models.outbox_event import OutboxEvent

# Export all models
__all__ = [
    "User",
    "Student",
    "Company",
    "JobPosting",
    "Application",
    "ActiveApplication",
    "Match",
    "DailyReport",
    "Evaluation",
    "Notification",
    "OutboxEvent",
]
