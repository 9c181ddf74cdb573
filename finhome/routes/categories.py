"""Category API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user_id
from finhome.exceptions import NotFoundError, PermissionDeniedError
from finhome.logging_config import get_logger
from finhome.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from finhome.schemas.common import MessageResponse
from finhome.services.category_service import CategoryService

logger = get_logger(__name__)

router = APIRouter()


async def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    """Get category service instance."""
    return CategoryService(db)


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    type: str = Query("all", description="expense, income or all"),
    user_id: UUID = Depends(get_current_user_id),
    service: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    """List system categories and the user's own categories."""
    try:
        categories = await service.list_categories(user_id, type)
        return [CategoryResponse.model_validate(c) for c in categories]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to list categories", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list categories")


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    category: CategoryCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    """Create a custom category."""
    try:
        created = await service.create_category(user_id, **category.model_dump())
        return CategoryResponse.model_validate(created)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create category", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create category")


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    category_update: CategoryUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    """Update a custom category. System categories are read-only."""
    try:
        updated = await service.update_category(
            category_id, user_id, **category_update.model_dump(exclude_unset=True)
        )
        return CategoryResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update category", category_id=str(category_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update category")


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: CategoryService = Depends(get_category_service),
) -> MessageResponse:
    """Deactivate a custom category."""
    try:
        await service.delete_category(category_id, user_id)
        return MessageResponse(message="Category deleted")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete category", category_id=str(category_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete category")
