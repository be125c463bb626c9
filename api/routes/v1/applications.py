"""
Application workflow endpoints.

Candidates apply, upload a resume and trigger screening; recruiters who own
the job take it from shortlisting through to hiring. Each action is guarded
by the application's current status.
"""

from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, File, Path, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_ai_backend,
    get_storage,
    require_candidate,
    require_recruiter,
    require_recruiter_or_admin,
)
from api.schemas.applications import (
    ApplicationCreateRequest,
    ApplicationDetailResponse,
    ApplicationLogResponse,
    ApplicationResponse,
    ApplicationWithCandidateResponse,
    ComplianceRequest,
    OfferRequest,
    ResumeUploadResponse,
    ScheduleRequest,
    ScreeningResponse,
    ShortlistRequest,
)
from api.services import applications as application_service
from core.config import settings
from core.integrations.ai_backend import AIBackendClient
from core.middleware.error_handling import BadRequestError
from core.storage import ResumeStorage
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["applications"])

PDF_CONTENT_TYPE = "application/pdf"


# ==================== Candidate ===================== #
@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to Job",
    description="Create an application for the current candidate. One application per job.",
)
async def create_application(
    payload: ApplicationCreateRequest,
    db: AsyncSession = Depends(get_db),
    ai: AIBackendClient = Depends(get_ai_backend),
    current_user: User = Depends(require_candidate),
) -> ApplicationResponse:
    application = await application_service.create_application(
        db, ai, current_user, payload.job_id
    )
    return ApplicationResponse.model_validate(application)


@router.get(
    "",
    response_model=list[ApplicationResponse],
    summary="List My Applications",
)
async def list_my_applications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_candidate),
) -> list[ApplicationResponse]:
    applications = await application_service.list_own_applications(db, current_user)
    return [ApplicationResponse.model_validate(a) for a in applications]


@router.post(
    "/{application_id}/resume",
    response_model=ResumeUploadResponse,
    summary="Upload Resume",
    description="Upload a PDF resume (multipart field `resume`, 10 MB max).",
)
async def upload_resume(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    resume: Optional[UploadFile] = File(None, description="Resume PDF"),
    db: AsyncSession = Depends(get_db),
    ai: AIBackendClient = Depends(get_ai_backend),
    storage: ResumeStorage = Depends(get_storage),
    current_user: User = Depends(require_candidate),
) -> ResumeUploadResponse:
    """
    Store the resume and forward it to the AI backend.

    - 400 when no file is sent, it is not a PDF or it is too large
    - 500 with `resume_file_url` when the file was stored but the AI backend failed
    """
    if resume is None:
        raise BadRequestError("No file uploaded")
    if resume.content_type != PDF_CONTENT_TYPE:
        raise BadRequestError("Only PDF files are allowed")

    content = await resume.read(settings.max_resume_size_bytes + 1)
    if len(content) > settings.max_resume_size_bytes:
        raise BadRequestError(
            "File too large",
            details={"max_size_bytes": settings.max_resume_size_bytes},
        )

    result = await application_service.upload_resume(
        db, ai, storage, current_user, application_id, resume.filename, content
    )
    return ResumeUploadResponse(**result)


@router.post(
    "/{application_id}/screen",
    response_model=ScreeningResponse,
    summary="Run Screening",
    description="Ask the AI backend to screen the uploaded resume.",
)
async def screen_application(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    ai: AIBackendClient = Depends(get_ai_backend),
    current_user: User = Depends(require_candidate),
) -> ScreeningResponse:
    result = await application_service.screen_application(db, ai, current_user, application_id)
    return ScreeningResponse(**result)


# ==================== Recruiter ===================== #
@router.get(
    "/jobs/{job_id}/applications",
    response_model=list[ApplicationWithCandidateResponse],
    summary="List Job Applications",
    description="Applications to one of the recruiter's jobs, with candidate info.",
)
async def list_job_applications(
    job_id: uuid.UUID = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_recruiter),
) -> list[ApplicationWithCandidateResponse]:
    applications = await application_service.list_job_applications(db, current_user, job_id)
    return [ApplicationWithCandidateResponse.model_validate(a) for a in applications]


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application",
)
async def get_application(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_recruiter),
) -> ApplicationDetailResponse:
    """Retrieve an application with its job and candidate."""
    application = await application_service.get_application_detail(
        db, current_user, application_id
    )
    return ApplicationDetailResponse.model_validate(application)


@router.put(
    "/{application_id}/shortlist",
    response_model=ApplicationResponse,
    summary="Shortlist or Reject",
)
async def shortlist_application(
    payload: ShortlistRequest,
    application_id: uuid.UUID = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    ai: AIBackendClient = Depends(get_ai_backend),
    current_user: User = Depends(require_recruiter),
) -> ApplicationResponse:
    """`hire` shortlists the candidate, `reject` rejects them."""
    application = await application_service.shortlist_application(
        db, ai, current_user, application_id, payload.decision
    )
    return ApplicationResponse.model_validate(application)


@router.post(
    "/{application_id}/schedule",
    response_model=ApplicationResponse,
    summary="Schedule Interview",
)
async def schedule_interview(
    payload: ScheduleRequest,
    application_id: uuid.UUID = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    ai: AIBackendClient = Depends(get_ai_backend),
    current_user: User = Depends(require_recruiter),
) -> ApplicationResponse:
    application = await application_service.schedule_interview(
        db, ai, current_user, application_id, payload.scheduled_at, payload.timezone
    )
    return ApplicationResponse.model_validate(application)


@router.post(
    "/{application_id}/offer",
    response_model=ApplicationResponse,
    summary="Send Offer",
)
async def send_offer(
    payload: OfferRequest,
    application_id: uuid.UUID = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    ai: AIBackendClient = Depends(get_ai_backend),
    current_user: User = Depends(require_recruiter),
) -> ApplicationResponse:
    application = await application_service.send_offer(
        db, ai, current_user, application_id, payload
    )
    return ApplicationResponse.model_validate(application)


@router.post(
    "/{application_id}/compliance",
    response_model=ApplicationResponse,
    summary="Complete Compliance",
    description="Record the compliance check and mark the candidate hired.",
)
async def complete_compliance(
    payload: Optional[ComplianceRequest] = None,
    application_id: uuid.UUID = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    ai: AIBackendClient = Depends(get_ai_backend),
    current_user: User = Depends(require_recruiter),
) -> ApplicationResponse:
    notes = payload.notes if payload else None
    application = await application_service.complete_compliance(
        db, ai, current_user, application_id, notes
    )
    return ApplicationResponse.model_validate(application)


@router.get(
    "/{application_id}/logs",
    response_model=list[ApplicationLogResponse],
    summary="Application Activity Log",
    description="Newest first. Recruiters may only read logs for their own jobs.",
)
async def get_application_logs(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_recruiter_or_admin),
) -> list[ApplicationLogResponse]:
    logs = await application_service.get_application_logs(db, current_user, application_id)
    return [ApplicationLogResponse(**entry) for entry in logs]
