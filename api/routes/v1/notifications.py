"""Notification inbox."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.users import NotificationResponse
from api.services import notifications as notification_service
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=list[NotificationResponse],
    summary="List Notifications",
    description="Notifications addressed to the current user, newest first.",
)
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationResponse]:
    notifications = await notification_service.list_notifications(db, current_user.id)
    return [NotificationResponse.model_validate(n) for n in notifications]
