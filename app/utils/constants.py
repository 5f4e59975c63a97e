"""Common constants."""

from enum import Enum


class ApplicationStatus(str, Enum):
    """Approval workflow status of an application."""

    PENDING_ADMIN = "pending_admin"  # Waiting for admin check
    PENDING_COMPANY = "pending_company"  # Waiting for company approval
    PENDING_STUDENT = "pending_student"  # Offer sent, waiting for the student
    MATCHED = "matched"
    REJECTED_BY_ADMIN = "rejected_by_admin"
    REJECTED_BY_COMPANY = "rejected_by_company"
    DECLINED_BY_STUDENT = "declined_by_student"
    CANCELLED = "cancelled"


# Statuses that count toward the one-application-per-student limit
ACTIVE_APPLICATION_STATUSES = frozenset(
    {
        ApplicationStatus.PENDING_ADMIN,
        ApplicationStatus.PENDING_COMPANY,
        ApplicationStatus.PENDING_STUDENT,
        ApplicationStatus.MATCHED,
    }
)

TERMINAL_APPLICATION_STATUSES = frozenset(
    {
        ApplicationStatus.REJECTED_BY_ADMIN,
        ApplicationStatus.REJECTED_BY_COMPANY,
        ApplicationStatus.DECLINED_BY_STUDENT,
        ApplicationStatus.CANCELLED,
    }
)


class MatchStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JobStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    PUBLISHED = "published"
    CLOSED = "closed"


class NotificationType(str, Enum):
    JOB_APPLIED = "job_applied"
    JOB_APPROVED_ADMIN = "job_approved_admin"
    APPLICATION_APPROVED_ADMIN = "application_approved_admin"
    OFFER_RECEIVED = "offer_received"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_REJECTED = "offer_rejected"
    OFFER_DECLINED = "offer_declined"
    APPLICATION_CANCELLED = "application_cancelled"
    REPORT_SUBMITTED = "report_submitted"
    REPORT_COMMENTED = "report_commented"
    INTERNSHIP_COMPLETED = "internship_completed"
    SYSTEM = "system"


class OutboxStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


class EmailTemplate(str, Enum):
    OFFER = "offer"
    REJECTION = "rejection"
    OFFER_ACCEPTED = "offer_accepted"


# Evaluation score bounds (inclusive)
MIN_EVALUATION_SCORE = 1
MAX_EVALUATION_SCORE = 5
