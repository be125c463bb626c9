"""FastAPI dependencies for dependency injection."""

import logging
import uuid
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.integrations.ai_backend import AIBackendClient
from core.integrations.identity import (
    IdentityProviderClient,
    IdentityProviderError,
    InvalidTokenError,
)
from core.middleware.error_handling import (
    APIError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from core.storage import ResumeStorage, get_storage as build_storage
from database.engine import get_db
from database.models.users import User, UserRole

logger = logging.getLogger(__name__)


# ==================== Collaborators ===================== #
def get_identity_provider() -> IdentityProviderClient:
    return IdentityProviderClient(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        timeout=settings.identity_timeout_seconds,
    )


def get_ai_backend() -> AIBackendClient:
    return AIBackendClient(
        base_url=settings.ai_backend_url,
        timeout=settings.ai_backend_timeout_seconds,
    )


def get_storage() -> ResumeStorage:
    return build_storage()


# ==================== Authentication ===================== #
def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization")
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProviderClient = Depends(get_identity_provider),
) -> User:
    """
    Resolve the bearer token to the local user row.

    Raises:
        UnauthorizedError: Missing header or token rejected by the provider
        NotFoundError: Token is valid but no local user row exists
        APIError: Identity provider unavailable
    """
    token = _bearer_token(request)
    if not token:
        raise UnauthorizedError("Missing or invalid authorization header")

    try:
        identity_user = await identity.get_user(token)
    except InvalidTokenError:
        raise UnauthorizedError("Invalid or expired token")
    except IdentityProviderError as e:
        logger.error(f"Authentication error: {e}")
        raise APIError("Authentication failed", code="AUTHENTICATION_ERROR")

    try:
        user_id = uuid.UUID(identity_user.id)
    except ValueError:
        raise UnauthorizedError("Invalid or expired token")

    user = await db.scalar(select(User).where(User.id == user_id))
    if not user:
        raise NotFoundError("User not found")

    request.state.user_id = str(user.id)
    return user


def require_role(*roles: UserRole) -> Callable:
    """
    Build a dependency that only admits users holding one of `roles`.

    Usage:
        @router.post("/jobs")
        async def create_job(user: User = Depends(require_role(UserRole.RECRUITER))):
            ...
    """
    allowed = [role.value for role in roles]

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError(
                "Forbidden: Insufficient permissions",
                details={
                    "message": (
                        f"Required role: {' or '.join(allowed)}, "
                        f"but user has role: {current_user.role}"
                    ),
                    "user_role": current_user.role,
                    "required_roles": allowed,
                },
            )
        return current_user

    return dependency


require_candidate = require_role(UserRole.CANDIDATE)
require_recruiter = require_role(UserRole.RECRUITER)
require_admin = require_role(UserRole.ADMIN)
require_recruiter_or_admin = require_role(UserRole.RECRUITER, UserRole.ADMIN)
