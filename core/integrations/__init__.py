"""Clients for external services."""

from core.integrations.ai_backend import AIBackendClient, AIBackendError
from core.integrations.identity import (
    IdentityProviderClient,
    IdentityProviderError,
    IdentityUser,
    InvalidTokenError,
)

__all__ = [
    "AIBackendClient",
    "AIBackendError",
    "IdentityProviderClient",
    "IdentityProviderError",
    "IdentityUser",
    "InvalidTokenError",
]
