"""Admin statistics."""

from typing import Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job


async def get_stats(db: AsyncSession) -> dict[str, Any]:
    """Count jobs and applications, with a per-status breakdown."""
    total_jobs = await db.scalar(select(func.count()).select_from(Job)) or 0

    result = await db.execute(
        select(Application.status, func.count()).group_by(Application.status)
    )
    status_breakdown: dict[str, int] = {}
    for status, count in result.all():
        key = status or "unknown"
        status_breakdown[key] = status_breakdown.get(key, 0) + count

    def count_of(status: ApplicationStatus) -> int:
        return status_breakdown.get(status.value, 0)

    return {
        "total_jobs": total_jobs,
        "total_applications": sum(status_breakdown.values()),
        "hired_count": count_of(ApplicationStatus.HIRED),
        "rejected_count": count_of(ApplicationStatus.REJECTED),
        "shortlisted_count": count_of(ApplicationStatus.SHORTLISTED),
        "interview_scheduled_count": count_of(ApplicationStatus.INTERVIEW_SCHEDULED),
        "offer_sent_count": count_of(ApplicationStatus.OFFER_SENT),
        "status_breakdown": status_breakdown,
    }
