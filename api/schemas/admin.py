"""Admin dashboard schemas."""

from pydantic import BaseModel, Field


class AdminStatsResponse(BaseModel):
    """Platform-wide hiring statistics."""

    total_jobs: int = Field(ge=0)
    total_applications: int = Field(ge=0)
    hired_count: int = Field(ge=0)
    rejected_count: int = Field(ge=0)
    shortlisted_count: int = Field(ge=0)
    interview_scheduled_count: int = Field(ge=0)
    offer_sent_count: int = Field(ge=0)
    status_breakdown: dict[str, int]
