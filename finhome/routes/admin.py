"""Admin back-office endpoints. Every route requires an admin account."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_admin
from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.schemas.admin import AdminUserListResponse, AdminUserUpdate, SystemStatusResponse
from finhome.schemas.auth import UserResponse
from finhome.schemas.common import Pagination
from finhome.services.admin_service import AdminService

logger = get_logger(__name__)

router = APIRouter()


async def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    """Get admin service instance."""
    return AdminService(db)


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: User = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service),
) -> AdminUserListResponse:
    try:
        users, total = await service.list_users(search=search, limit=limit, offset=offset)
        return AdminUserListResponse(
            items=[UserResponse.model_validate(u) for u in users],
            pagination=Pagination.build(total, limit, offset),
        )
    except Exception as e:
        logger.error("Failed to list users", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list users")


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    user_update: AdminUserUpdate,
    admin: User = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service),
) -> UserResponse:
    """Change a user's subscription tier, activation or admin flag."""
    try:
        user = await service.update_user(
            user_id, admin.id, **user_update.model_dump(exclude_unset=True)
        )
        return UserResponse.model_validate(user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update user", user_id=str(user_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update user")


@router.get("/status", response_model=SystemStatusResponse)
async def get_system_status(
    admin: User = Depends(get_current_admin),
    service: AdminService = Depends(get_admin_service),
) -> SystemStatusResponse:
    """Record counts and dependency health."""
    try:
        return SystemStatusResponse(**await service.get_system_status())
    except Exception as e:
        logger.error("Failed to get system status", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get system status")
