"""Application workflow API schemas."""

from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from api.schemas.jobs import JobResponse

ShortlistDecision = Literal["hire", "reject"]

# Amount or free text such as "95k EUR"; never empty or zero
Salary = Union[
    Annotated[int, Field(gt=0)],
    Annotated[float, Field(gt=0)],
    Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)],
]


# ==================== Requests ===================== #
class ApplicationCreateRequest(BaseModel):
    """Schema for applying to a job."""

    job_id: uuid.UUID


class ShortlistRequest(BaseModel):
    decision: ShortlistDecision


class ScheduleRequest(BaseModel):
    """Schema for scheduling an interview."""

    scheduled_at: datetime = Field(..., description="Interview start, ISO 8601")
    timezone: str = Field(default="UTC", min_length=1, max_length=64)


class OfferRequest(BaseModel):
    """Schema for sending an offer."""

    salary: Salary
    start_date: date
    position: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None

    def to_backend_payload(self) -> dict[str, Any]:
        """Offer details in the shape the AI backend and stored record use."""
        return {
            "salary": self.salary,
            "startDate": self.start_date.isoformat(),
            "position": self.position,
            "notes": self.notes or None,
        }


class ComplianceRequest(BaseModel):
    notes: Optional[str] = None


# ==================== Responses ===================== #
class CandidateSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str


class ApplicationResponse(BaseModel):
    """Schema for an application row."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    job_id: uuid.UUID
    user_id: uuid.UUID
    status: Optional[str] = None
    ai_application_id: Optional[str] = None
    screening_score: Optional[int] = None
    screening_report: Optional[dict[str, Any]] = None
    resume_text: Optional[str] = None
    resume_file_url: Optional[str] = None
    interview_scheduled_at: Optional[datetime] = None
    interview_link: Optional[str] = None
    offer_sent_at: Optional[datetime] = None
    offer_details: Optional[dict[str, Any]] = None
    compliance_checked_at: Optional[datetime] = None
    hired_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ApplicationWithCandidateResponse(ApplicationResponse):
    candidate: CandidateSummary


class ApplicationDetailResponse(ApplicationResponse):
    """Application with its job and candidate, for recruiters."""

    job: JobResponse
    candidate: CandidateSummary


class ResumeUploadResponse(BaseModel):
    status: str
    resume_file_url: str
    message: str


class ScreeningResponse(BaseModel):
    status: str
    screening_report: dict[str, Any]
    score: int


class ApplicationLogResponse(BaseModel):
    """One entry of an application's activity log."""

    id: uuid.UUID
    action: str
    performed_by: Optional[str] = Field(None, description="Email of the acting user")
    details: Optional[dict[str, Any]] = None
    created_at: datetime
