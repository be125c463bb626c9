"""Authentication endpoints. Sign-in itself happens at the identity provider."""

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user
from api.schemas.users import CurrentUser, CurrentUserResponse
from database.models.users import User

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Current User",
    description="Return the local user behind the bearer token.",
)
async def get_me(current_user: User = Depends(get_current_user)) -> CurrentUserResponse:
    return CurrentUserResponse(user=CurrentUser.model_validate(current_user))
