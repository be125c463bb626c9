"""
Core middleware package.

- Error handling with typed API errors and sensitive data sanitization
- Structured request logging with PII masking
"""

from core.middleware.error_handling import (
    APIError,
    BadRequestError,
    ErrorHandlingMiddleware,
    ForbiddenError,
    InvalidStatusTransitionError,
    NotFoundError,
    UnauthorizedError,
    UpstreamServiceError,
    sanitize_error_message,
    setup_error_handlers,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
)

__all__ = [
    # Error handling
    "APIError",
    "BadRequestError",
    "ErrorHandlingMiddleware",
    "ForbiddenError",
    "InvalidStatusTransitionError",
    "NotFoundError",
    "UnauthorizedError",
    "UpstreamServiceError",
    "sanitize_error_message",
    "setup_error_handlers",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
]
