"""Common Pydantic schemas shared across the API."""

from typing import Any, Optional
from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    """Inner error object of the error envelope."""

    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human readable message")
    path: str
    method: str
    details: Optional[Any] = Field(None, description="Structured details, e.g. upstream payload")


class ErrorResponse(BaseModel):
    """Error response model."""

    error: ErrorBody
