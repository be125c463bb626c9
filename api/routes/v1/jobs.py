"""
Job board endpoints.

Listing and viewing jobs is public; posting requires the recruiter role.
"""

from typing import Optional
import uuid

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_recruiter
from api.schemas.jobs import JobCreateRequest, JobResponse
from api.services import jobs as job_service
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Job",
    description="Post a new job. Requires the recruiter role.",
)
async def create_job(
    payload: JobCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_recruiter),
) -> JobResponse:
    job = await job_service.create_job(db, payload, current_user)
    return JobResponse.model_validate(job)


@router.get(
    "",
    response_model=list[JobResponse],
    summary="List Jobs",
    description="List job postings, newest first.",
)
async def list_jobs(
    location: Optional[str] = Query(None, description="Case-insensitive location filter"),
    search: Optional[str] = Query(None, description="Search title and description"),
    db: AsyncSession = Depends(get_db),
) -> list[JobResponse]:
    jobs = await job_service.list_jobs(db, location=location, search=search)
    return [JobResponse.model_validate(job) for job in jobs]


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get Job Details",
)
async def get_job(
    job_id: uuid.UUID = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    """Retrieve a single job posting."""
    job = await job_service.get_job(db, job_id)
    return JobResponse.model_validate(job)
