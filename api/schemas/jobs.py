"""Job posting API schemas."""

from datetime import datetime
from typing import Any, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobCreateRequest(BaseModel):
    """Schema for creating a job posting."""

    title: str = Field(..., min_length=3, max_length=255, description="Job title")
    description: Optional[str] = Field(None, description="Full job description")
    requirements: Optional[dict[str, Any]] = Field(
        None, description="Free-form requirements, e.g. {\"skills\": [...]}"
    )
    location: Optional[str] = Field(None, max_length=255)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Strip whitespace before the length check."""
        if isinstance(v, str):
            return v.strip()
        return v


class JobResponse(BaseModel):
    """Schema for a job posting."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    requirements: Optional[dict[str, Any]] = None
    location: Optional[str] = None
    posted_by: Optional[uuid.UUID] = None
    created_at: datetime
