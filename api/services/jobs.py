"""Job service functions."""

from typing import Optional
import logging
import uuid

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.jobs import JobCreateRequest
from core.middleware.error_handling import NotFoundError
from database.models.jobs import Job
from database.models.users import User

logger = logging.getLogger(__name__)


async def create_job(db: AsyncSession, payload: JobCreateRequest, recruiter: User) -> Job:
    """Create a job posting owned by `recruiter`."""
    job = Job(
        title=payload.title,
        description=payload.description,
        requirements=payload.requirements,
        location=payload.location,
        posted_by=recruiter.id,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)

    logger.info(f"Job {job.id} created by {recruiter.id}")
    return job


async def list_jobs(
    db: AsyncSession,
    location: Optional[str] = None,
    search: Optional[str] = None,
) -> list[Job]:
    """
    List job postings, newest first.

    Args:
        location: Case-insensitive substring of the location
        search: Case-insensitive substring of the title or description
    """
    query = select(Job)

    if location:
        query = query.where(Job.location.ilike(f"%{location}%"))

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Job.title.ilike(pattern), Job.description.ilike(pattern)))

    result = await db.execute(query.order_by(Job.created_at.desc()))
    return list(result.scalars().all())


async def get_job(db: AsyncSession, job_id: uuid.UUID) -> Job:
    job = await db.get(Job, job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job
