from database.models.users import User, UserRole
from database.models.jobs import Job
from database.models.applications import (
    Application,
    ApplicationLog,
    ApplicationLogAction,
    ApplicationStatus,
    Schedule,
    SCREENING_VERDICTS,
)
from database.models.notifications import Notification, Resume

__all__ = [
    "User",
    "UserRole",
    "Job",
    "Application",
    "ApplicationLog",
    "ApplicationLogAction",
    "ApplicationStatus",
    "Schedule",
    "SCREENING_VERDICTS",
    "Notification",
    "Resume",
]
