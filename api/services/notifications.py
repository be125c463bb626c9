"""
Notifications and application activity log.

Both are side records of a workflow action: a failure to write them is
logged and never fails the action itself. They are written in their own
session so a failed insert cannot roll back (or expire) the caller's state.
"""

from typing import Any, Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.applications import ApplicationLog, ApplicationLogAction
from database.models.notifications import Notification, Resume

logger = logging.getLogger(__name__)


async def _write_best_effort(db: AsyncSession, row: Any, what: str) -> bool:
    async with AsyncSession(db.bind, expire_on_commit=False) as side:
        side.add(row)
        try:
            await side.commit()
        except SQLAlchemyError:
            await side.rollback()
            logger.exception(f"Failed to create {what}")
            return False
    return True


async def create_notification(db: AsyncSession, user_id: uuid.UUID, message: str) -> bool:
    """Queue a message for a user. Returns False if it could not be stored."""
    return await _write_best_effort(
        db, Notification(user_id=user_id, message=message), "notification"
    )


async def create_application_log(
    db: AsyncSession,
    application_id: uuid.UUID,
    action: ApplicationLogAction,
    performed_by: uuid.UUID,
    details: Optional[dict[str, Any]] = None,
) -> bool:
    """Append an entry to an application's activity log."""
    entry = ApplicationLog(
        application_id=application_id,
        action=action.value,
        performed_by=performed_by,
        details=details,
    )
    return await _write_best_effort(db, entry, "application log")


async def record_resume(db: AsyncSession, user_id: uuid.UUID, file_url: str) -> bool:
    """Remember a stored resume file for the candidate."""
    return await _write_best_effort(db, Resume(user_id=user_id, file_url=file_url), "resume record")


async def list_notifications(db: AsyncSession, user_id: uuid.UUID) -> list[Notification]:
    """Notifications for one user, newest first."""
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    return list(result.scalars().all())
