"""Budget API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user_id
from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.schemas.budget import (
    BudgetAlertResponse,
    BudgetCreate,
    BudgetFromMethodCreate,
    BudgetFromMethodResponse,
    BudgetPeriod,
    BudgetProgressResponse,
    BudgetResponse,
    BudgetUpdate,
    CategoryProgressResponse,
)
from finhome.services.budget_service import BudgetProgress, BudgetService

logger = get_logger(__name__)

router = APIRouter()


async def get_budget_service(db: AsyncSession = Depends(get_db)) -> BudgetService:
    """Get budget service instance."""
    return BudgetService(db)


def _progress_response(progress: BudgetProgress) -> BudgetProgressResponse:
    return BudgetProgressResponse(
        budget=BudgetResponse.model_validate(progress.budget),
        current_spent=progress.current_spent,
        remaining_amount=progress.remaining_amount,
        progress_percentage=progress.progress_percentage,
        status=progress.status,
        categories=[CategoryProgressResponse(**vars(c)) for c in progress.categories],
    )


@router.post("", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
async def create_budget(
    budget: BudgetCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetResponse:
    """Create a new budget.

    Raises:
        HTTPException: 400 if the category allocations exceed the total
    """
    try:
        data = budget.model_dump()
        data["category_budgets"] = {str(k): v for k, v in data["category_budgets"].items()}
        created = await service.create_budget(user_id=user_id, **data)
        return BudgetResponse.model_validate(created)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create budget", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create budget")


@router.post("/from-method", response_model=BudgetFromMethodResponse, status_code=status.HTTP_201_CREATED)
async def create_budget_from_method(
    request_data: BudgetFromMethodCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetFromMethodResponse:
    """Create a budget whose category allocations follow a template."""
    try:
        mapping = None
        if request_data.category_mapping is not None:
            mapping = {str(k): v for k, v in request_data.category_mapping.items()}
        budget, allocation = await service.create_budget_from_method(
            user_id=user_id,
            name=request_data.name,
            method=request_data.method,
            income=request_data.income,
            start_date=request_data.start_date,
            end_date=request_data.end_date,
            budget_period=request_data.budget_period,
            category_mapping=mapping,
        )
        return BudgetFromMethodResponse(budget=BudgetResponse.model_validate(budget), allocation=allocation)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create budget from method", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create budget")


@router.get("", response_model=list[BudgetResponse])
async def list_budgets(
    active: bool = Query(False, description="Only active budgets"),
    period: Optional[BudgetPeriod] = Query(None, description="Filter by period"),
    user_id: UUID = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
) -> list[BudgetResponse]:
    """List budgets for the user."""
    try:
        budgets = await service.list_budgets(user_id, active_only=active, period=period)
        return [BudgetResponse.model_validate(b) for b in budgets]
    except Exception as e:
        logger.error("Failed to list budgets", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list budgets")


@router.get("/alerts", response_model=list[BudgetAlertResponse])
async def budget_alerts(
    user_id: UUID = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
) -> list[BudgetAlertResponse]:
    """Budgets and categories that crossed their alert threshold."""
    try:
        alerts = await service.get_alerts(user_id)
        return [BudgetAlertResponse(**alert) for alert in alerts]
    except Exception as e:
        logger.error("Failed to get budget alerts", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get budget alerts")


@router.get("/{budget_id}", response_model=BudgetProgressResponse)
async def get_budget(
    budget_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetProgressResponse:
    """Get a budget with its spending progress."""
    try:
        budget = await service.get_budget(budget_id, user_id)
        if not budget:
            raise HTTPException(status_code=404, detail=f"Budget {budget_id} not found")
        return _progress_response(await service.get_budget_progress(budget))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get budget", budget_id=str(budget_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get budget")


@router.put("/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: UUID,
    budget_update: BudgetUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
) -> BudgetResponse:
    """Update a budget."""
    try:
        updates = budget_update.model_dump(exclude_unset=True)
        if updates.get("category_budgets") is not None:
            updates["category_budgets"] = {str(k): v for k, v in updates["category_budgets"].items()}
        updated = await service.update_budget(budget_id, user_id, **updates)
        return BudgetResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update budget", budget_id=str(budget_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update budget")


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(
    budget_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: BudgetService = Depends(get_budget_service),
) -> None:
    """Delete a budget."""
    try:
        await service.delete_budget(budget_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete budget", budget_id=str(budget_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete budget")
