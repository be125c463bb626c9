"""Admin dashboard endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_admin
from api.schemas.admin import AdminStatsResponse
from api.services import admin as admin_service
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/stats",
    response_model=AdminStatsResponse,
    summary="Platform Statistics",
    description="Job and application counts with a per-status breakdown. Requires the admin role.",
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> AdminStatsResponse:
    return AdminStatsResponse(**await admin_service.get_stats(db))
