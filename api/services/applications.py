"""
Application workflow service.

Every action follows the same shape: load the application and check the
caller may touch it, check it is synced with the AI backend, check its
current status, make one AI backend call, then persist the new state and
record the side effects (log entry, candidate notification).
"""

from typing import Any, Optional, Sequence
import logging
import time
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.schemas.applications import OfferRequest, ShortlistDecision
from api.services.notifications import (
    create_application_log,
    create_notification,
    record_resume,
)
from core.config import settings
from core.integrations.ai_backend import AIBackendClient, AIBackendError
from core.middleware.error_handling import (
    APIError,
    BadRequestError,
    ForbiddenError,
    InvalidStatusTransitionError,
    NotFoundError,
    UpstreamServiceError,
)
from core.storage import ResumeStorage, StorageError
from database.engine import utcnow
from database.errors import is_missing_relation_error
from database.models.applications import (
    Application,
    ApplicationLog,
    ApplicationLogAction,
    ApplicationStatus,
    Schedule,
    SCREENING_VERDICTS,
)
from database.models.jobs import Job
from database.models.users import User, UserRole

logger = logging.getLogger(__name__)

RESUME_UPLOAD_STATUSES = (
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.RESUME_UPLOADED,
    ApplicationStatus.SCREENING_FAILED,
)

DUPLICATE_APPLICATION_MESSAGE = "Application already exists for this job"


# ==================== Guards ===================== #
async def _get_own_application(
    db: AsyncSession, application_id: uuid.UUID, candidate: User
) -> Application:
    application = await db.scalar(
        select(Application).where(
            Application.id == application_id,
            Application.user_id == candidate.id,
        )
    )
    if not application:
        raise NotFoundError("Application not found")
    return application


async def _get_application_for_recruiter(
    db: AsyncSession, application_id: uuid.UUID, recruiter: User
) -> Application:
    """Load an application whose job was posted by `recruiter`."""
    application = await db.scalar(
        select(Application)
        .options(selectinload(Application.job))
        .where(Application.id == application_id)
    )
    if not application:
        raise NotFoundError("Application not found")
    if application.job is None or application.job.posted_by != recruiter.id:
        raise ForbiddenError("Access denied")
    return application


def _require_synced(application: Application) -> str:
    if not application.ai_application_id:
        raise BadRequestError("Application not synced with AI backend", code="NOT_SYNCED")
    return application.ai_application_id


def _require_status(
    application: Application,
    allowed: Sequence[ApplicationStatus],
    message: str,
) -> None:
    allowed_values = [status.value for status in allowed]
    if application.status not in allowed_values:
        raise InvalidStatusTransitionError(
            message,
            details={
                "current_status": application.status,
                "required_status": allowed_values,
            },
        )


def _passthrough_error(exc: AIBackendError, fallback: str) -> APIError:
    """Upstream validation errors (400) reach the client as 400, anything else as 500."""
    status_code = 400 if exc.status_code == 400 else 500
    return APIError(
        exc.message or fallback,
        details=exc.payload if exc.payload else exc.message,
        status_code=status_code,
        code="BAD_REQUEST" if status_code == 400 else "UPSTREAM_ERROR",
    )


# ==================== AI sync ===================== #
async def _register_with_ai(ai: AIBackendClient, job: Job) -> str:
    """
    Register an application with the AI backend and return its id there.

    Raises:
        AIBackendError: If the call fails or no application_id comes back
    """
    response = await ai.create_application(
        job_id=str(job.id),
        job_description=job.description or job.title or "",
        resume_text="",
    )
    ai_application_id = response.get("application_id")
    if not ai_application_id:
        logger.error(f"AI backend response missing application_id: {response}")
        raise AIBackendError("AI backend did not return application_id", payload=response)
    return str(ai_application_id)


# ==================== Queries ===================== #
async def list_own_applications(db: AsyncSession, candidate: User) -> list[Application]:
    result = await db.execute(
        select(Application)
        .where(Application.user_id == candidate.id)
        .order_by(Application.created_at.desc())
    )
    return list(result.scalars().all())


async def list_job_applications(
    db: AsyncSession, recruiter: User, job_id: uuid.UUID
) -> list[Application]:
    """Applications to a job posted by `recruiter`, each with its candidate."""
    job = await db.scalar(
        select(Job).where(Job.id == job_id, Job.posted_by == recruiter.id)
    )
    if not job:
        raise NotFoundError("Job not found or access denied")

    result = await db.execute(
        select(Application)
        .options(selectinload(Application.candidate))
        .where(Application.job_id == job_id)
        .order_by(Application.created_at.desc())
    )
    return list(result.scalars().all())


async def get_application_detail(
    db: AsyncSession, recruiter: User, application_id: uuid.UUID
) -> Application:
    application = await db.scalar(
        select(Application)
        .options(selectinload(Application.job), selectinload(Application.candidate))
        .where(Application.id == application_id)
    )
    if not application:
        raise NotFoundError("Application not found")
    if application.job.posted_by != recruiter.id:
        raise ForbiddenError("Access denied")
    return application


async def get_application_logs(
    db: AsyncSession, user: User, application_id: uuid.UUID
) -> list[dict[str, Any]]:
    """
    Activity log of an application, newest first.

    Recruiters only see logs for their own jobs; admins see all. When the
    log table has not been migrated yet the log is reported as empty.
    """
    application = await db.scalar(
        select(Application)
        .options(selectinload(Application.job))
        .where(Application.id == application_id)
    )
    if not application:
        raise NotFoundError("Application not found")

    if user.role == UserRole.RECRUITER.value:
        if application.job is None or application.job.posted_by != user.id:
            raise ForbiddenError("Access denied")

    try:
        result = await db.execute(
            select(ApplicationLog, User.email)
            .join(User, ApplicationLog.performed_by == User.id)
            .where(ApplicationLog.application_id == application_id)
            .order_by(ApplicationLog.created_at.desc())
        )
        rows = result.all()
    except DBAPIError as e:
        if not is_missing_relation_error(e):
            raise
        await db.rollback()
        logger.warning("application_logs table not found, returning empty log")
        return []

    return [
        {
            "id": log.id,
            "action": log.action,
            "performed_by": email,
            "details": log.details,
            "created_at": log.created_at,
        }
        for log, email in rows
    ]


# ==================== Candidate actions ===================== #
async def _application_exists(db: AsyncSession, job_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    existing = await db.scalar(
        select(Application.id).where(
            Application.job_id == job_id,
            Application.user_id == user_id,
        )
    )
    return existing is not None


async def create_application(
    db: AsyncSession,
    ai: AIBackendClient,
    candidate: User,
    job_id: uuid.UUID,
) -> Application:
    """
    Apply to a job.

    The application is stored first; registering it with the AI backend is
    attempted afterwards and a failure there only leaves it unsynced (the
    next resume upload retries).
    """
    job = await db.get(Job, job_id)
    if not job:
        raise NotFoundError("Job not found")

    if await _application_exists(db, job.id, candidate.id):
        raise BadRequestError(DUPLICATE_APPLICATION_MESSAGE)

    application = Application(
        job_id=job.id,
        user_id=candidate.id,
        status=ApplicationStatus.SUBMITTED.value,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent apply; uq_applications_job_user caught it
        await db.rollback()
        raise BadRequestError(DUPLICATE_APPLICATION_MESSAGE)
    logger.info(f"Application {application.id} created for job {job.id}")

    try:
        application.ai_application_id = await _register_with_ai(ai, job)
        await db.commit()
        logger.info(
            f"Application {application.id} synced with AI backend "
            f"as {application.ai_application_id}"
        )
    except AIBackendError as e:
        logger.warning(f"Failed to sync application {application.id} with AI backend: {e}")
    except SQLAlchemyError:
        logger.exception(f"Failed to store AI backend id for application {application.id}")
        await db.rollback()

    await db.refresh(application)

    await create_application_log(
        db,
        application.id,
        ApplicationLogAction.SUBMITTED,
        candidate.id,
        {"job_id": str(job.id), "synced": bool(application.ai_application_id)},
    )
    return application


async def upload_resume(
    db: AsyncSession,
    ai: AIBackendClient,
    storage: ResumeStorage,
    candidate: User,
    application_id: uuid.UUID,
    filename: Optional[str],
    content: bytes,
) -> dict[str, Any]:
    """
    Store a resume PDF and forward it to the AI backend.

    Once the file is in storage its URL is saved on the application even if
    the AI backend then fails; that failure is reported with the URL.
    """
    application = await _get_own_application(db, application_id, candidate)
    _require_status(
        application,
        RESUME_UPLOAD_STATUSES,
        "Resume can no longer be changed for this application",
    )

    if not application.ai_application_id:
        logger.info(f"Application {application.id} missing AI backend ID, syncing now")
        job = await db.get(Job, application.job_id)
        try:
            if not job:
                raise AIBackendError("Job not found for application")
            application.ai_application_id = await _register_with_ai(ai, job)
        except AIBackendError as e:
            logger.error(f"Failed to sync application {application.id} with AI backend: {e}")
            raise UpstreamServiceError(
                "Failed to sync with AI backend. Please try again later.",
                details=e.message,
            )
        await db.commit()

    key = f"{application.id}-{int(time.time() * 1000)}.pdf"
    try:
        await storage.upload(key, content, content_type="application/pdf")
    except StorageError as e:
        logger.error(f"Resume storage upload failed for {application.id}: {e}")
        raise UpstreamServiceError("Failed to upload resume to storage")

    resume_file_url = storage.public_url(key)

    try:
        ai_response = await ai.upload_resume(
            application.ai_application_id, filename or "resume.pdf", content
        )
    except AIBackendError as e:
        application.resume_file_url = resume_file_url
        application.status = ApplicationStatus.RESUME_UPLOADED.value
        await db.commit()
        await record_resume(db, candidate.id, resume_file_url)
        await create_application_log(
            db,
            application.id,
            ApplicationLogAction.RESUME_UPLOAD,
            candidate.id,
            {"resume_file_url": resume_file_url, "synced": False, "error": e.message},
        )
        raise UpstreamServiceError(
            "Resume uploaded but failed to sync with AI backend",
            details=e.message,
            extra={"resume_file_url": resume_file_url},
        )

    application.resume_file_url = resume_file_url
    application.resume_text = ai_response.get("resume_text_preview") or ""
    application.status = ApplicationStatus.RESUME_UPLOADED.value
    await db.commit()
    await record_resume(db, candidate.id, resume_file_url)

    await create_application_log(
        db,
        application.id,
        ApplicationLogAction.RESUME_UPLOAD,
        candidate.id,
        {"resume_file_url": resume_file_url, "synced": True},
    )

    return {
        "status": ApplicationStatus.RESUME_UPLOADED.value,
        "resume_file_url": resume_file_url,
        "message": "Resume uploaded successfully",
    }


def _coerce_score(value: Any) -> int:
    """Screening scores are whole numbers in 0-100; anything else counts as 0."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


def screening_outcome(ai_status: Any, score: int, pass_score: int) -> str:
    """
    Resolve the status after screening.

    The AI backend's verdict wins when it gives one; otherwise the score is
    compared against the pass mark.
    """
    verdicts = [status.value for status in SCREENING_VERDICTS]
    if ai_status in verdicts:
        return ai_status
    if score >= pass_score:
        return ApplicationStatus.SCREENING_PASSED.value
    return ApplicationStatus.SCREENING_FAILED.value


async def screen_application(
    db: AsyncSession,
    ai: AIBackendClient,
    candidate: User,
    application_id: uuid.UUID,
) -> dict[str, Any]:
    application = await _get_own_application(db, application_id, candidate)
    ai_application_id = _require_synced(application)
    _require_status(
        application,
        (ApplicationStatus.RESUME_UPLOADED,),
        "Resume must be uploaded before screening",
    )

    try:
        ai_response = await ai.screen(ai_application_id)
    except AIBackendError as e:
        application.status = ApplicationStatus.SCREENING_FAILED.value
        await db.commit()
        await create_application_log(
            db,
            application.id,
            ApplicationLogAction.SCREENING,
            candidate.id,
            {"status": application.status, "error": e.message},
        )
        raise UpstreamServiceError("Screening failed", details=e.message)

    screening_report = ai_response.get("screening_report") or {}
    if not isinstance(screening_report, dict):
        screening_report = {"report": screening_report}
    score = _coerce_score(screening_report.get("score", 0))
    status = screening_outcome(ai_response.get("status"), score, settings.screening_pass_score)

    application.screening_score = score
    application.screening_report = screening_report
    application.status = status
    await db.commit()

    await create_application_log(
        db,
        application.id,
        ApplicationLogAction.SCREENING,
        candidate.id,
        {
            "score": score,
            "status": status,
            "screening_report": screening_report,
            "ai_response": ai_response,
        },
    )

    return {"status": status, "screening_report": screening_report, "score": score}


# ==================== Recruiter actions ===================== #
async def shortlist_application(
    db: AsyncSession,
    ai: AIBackendClient,
    recruiter: User,
    application_id: uuid.UUID,
    decision: ShortlistDecision,
) -> Application:
    application = await _get_application_for_recruiter(db, application_id, recruiter)
    ai_application_id = _require_synced(application)
    _require_status(
        application,
        SCREENING_VERDICTS,
        "Application must be screened before a shortlist decision",
    )

    try:
        ai_response = await ai.shortlist(ai_application_id, decision)
    except AIBackendError as e:
        raise UpstreamServiceError(
            "Failed to update decision in AI backend", details=e.message
        )

    if decision == "hire":
        application.status = ApplicationStatus.SHORTLISTED.value
        message = f"Good news! You have been shortlisted for {application.job.title}."
    else:
        application.status = ApplicationStatus.REJECTED.value
        message = (
            f"Thank you for applying to {application.job.title}. "
            "We will not be moving forward with your application."
        )
    await db.commit()

    await create_notification(db, application.user_id, message)
    await create_application_log(
        db,
        application.id,
        ApplicationLogAction.SHORTLIST,
        recruiter.id,
        {"decision": decision, "status": application.status, "ai_response": ai_response},
    )
    return application


async def schedule_interview(
    db: AsyncSession,
    ai: AIBackendClient,
    recruiter: User,
    application_id: uuid.UUID,
    scheduled_at: datetime,
    timezone: str = "UTC",
) -> Application:
    application = await _get_application_for_recruiter(db, application_id, recruiter)
    ai_application_id = _require_synced(application)
    _require_status(
        application,
        (ApplicationStatus.SHORTLISTED,),
        "Application must be shortlisted before scheduling interview",
    )

    try:
        ai_response = await ai.schedule(ai_application_id, scheduled_at.isoformat(), timezone)
    except AIBackendError as e:
        raise _passthrough_error(e, "Failed to schedule interview")

    interview_link = ai_response.get("interview_link") or ai_response.get("calendly_link") or None

    application.interview_scheduled_at = scheduled_at
    application.interview_link = interview_link
    application.status = ApplicationStatus.INTERVIEW_SCHEDULED.value
    db.add(Schedule(application_id=application.id, scheduled_at=scheduled_at))
    await db.commit()

    message = f"Interview scheduled for {scheduled_at.date().isoformat()}."
    if interview_link:
        message = f"{message} Link: {interview_link}"
    await create_notification(db, application.user_id, message)
    await create_application_log(
        db,
        application.id,
        ApplicationLogAction.SCHEDULE,
        recruiter.id,
        {
            "scheduled_at": scheduled_at.isoformat(),
            "timezone": timezone,
            "interview_link": interview_link,
            "ai_response": ai_response,
        },
    )
    return application


async def send_offer(
    db: AsyncSession,
    ai: AIBackendClient,
    recruiter: User,
    application_id: uuid.UUID,
    offer: OfferRequest,
) -> Application:
    application = await _get_application_for_recruiter(db, application_id, recruiter)
    ai_application_id = _require_synced(application)
    _require_status(
        application,
        (ApplicationStatus.INTERVIEW_SCHEDULED,),
        "Interview must be scheduled before sending offer",
    )

    offer_details = offer.to_backend_payload()
    try:
        ai_response = await ai.send_offer(ai_application_id, offer_details)
    except AIBackendError as e:
        raise UpstreamServiceError("Failed to send offer in AI backend", details=e.message)

    application.offer_sent_at = utcnow()
    application.offer_details = offer_details
    application.status = ApplicationStatus.OFFER_SENT.value
    await db.commit()

    await create_notification(
        db,
        application.user_id,
        f"Offer sent for {offer.position}. Salary: {offer.salary}, "
        f"Start Date: {offer.start_date.isoformat()}",
    )
    await create_application_log(
        db,
        application.id,
        ApplicationLogAction.OFFER,
        recruiter.id,
        {"offer_details": offer_details, "ai_response": ai_response},
    )
    return application


async def complete_compliance(
    db: AsyncSession,
    ai: AIBackendClient,
    recruiter: User,
    application_id: uuid.UUID,
    notes: Optional[str] = None,
) -> Application:
    """Record the compliance check and mark the candidate hired."""
    application = await _get_application_for_recruiter(db, application_id, recruiter)
    ai_application_id = _require_synced(application)
    _require_status(
        application,
        (ApplicationStatus.OFFER_SENT,),
        "Offer must be sent before marking as hired",
    )

    try:
        ai_response = await ai.complete_compliance(ai_application_id, notes or None)
    except AIBackendError as e:
        raise _passthrough_error(e, "Failed to process compliance")

    now = utcnow()
    application.compliance_checked_at = now
    application.hired_at = now
    application.status = ApplicationStatus.HIRED.value
    await db.commit()

    await create_notification(
        db,
        application.user_id,
        "Congratulations! You have been hired. Welcome to the team!",
    )
    await create_application_log(
        db,
        application.id,
        ApplicationLogAction.COMPLIANCE,
        recruiter.id,
        {"notes": notes, "ai_response": ai_response},
    )
    return application
