"""Goal API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user_id
from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.models.goal import Goal
from finhome.schemas.goal import (
    GoalContributionCreate,
    GoalContributionResponse,
    GoalContributionResult,
    GoalCreate,
    GoalResponse,
    GoalStatus,
    GoalType,
    GoalUpdate,
)
from finhome.services.goal_service import GoalService, calculate_goal_metrics

logger = get_logger(__name__)

router = APIRouter()


async def get_goal_service(db: AsyncSession = Depends(get_db)) -> GoalService:
    """Get goal service instance."""
    return GoalService(db)


def _goal_response(goal: Goal) -> GoalResponse:
    metrics = calculate_goal_metrics(goal)
    return GoalResponse.model_validate(goal).model_copy(update=vars(metrics))


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Create a new savings goal.

    Args:
        goal: Goal data
        user_id: Authenticated user ID
        service: Goal service

    Returns:
        Created goal

    Raises:
        HTTPException: If creation fails
    """
    try:
        created = await service.create_goal(user_id=user_id, **goal.model_dump())
        return _goal_response(created)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create goal", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create goal")


@router.get("", response_model=list[GoalResponse])
async def list_goals(
    status: Optional[GoalStatus] = Query(None, description="Filter by status"),
    goal_type: Optional[GoalType] = Query(None, description="Filter by goal type"),
    user_id: UUID = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
) -> list[GoalResponse]:
    """List goals with progress figures."""
    try:
        goals = await service.list_goals(user_id, status=status, goal_type=goal_type)
        return [_goal_response(g) for g in goals]
    except Exception as e:
        logger.error("Failed to list goals", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list goals")


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(
    goal_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Get a single goal by ID."""
    try:
        goal = await service.get_goal(goal_id, user_id)
        if not goal:
            raise HTTPException(status_code=404, detail=f"Goal {goal_id} not found")
        return _goal_response(goal)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get goal", goal_id=str(goal_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get goal")


@router.put("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: UUID,
    goal_update: GoalUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Update a goal."""
    try:
        updated = await service.update_goal(goal_id, user_id, **goal_update.model_dump(exclude_unset=True))
        return _goal_response(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update goal", goal_id=str(goal_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update goal")


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
) -> None:
    """Delete a goal."""
    try:
        await service.delete_goal(goal_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete goal", goal_id=str(goal_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete goal")


@router.post(
    "/{goal_id}/contributions",
    response_model=GoalContributionResult,
    status_code=status.HTTP_201_CREATED,
)
async def add_contribution(
    goal_id: UUID,
    contribution: GoalContributionCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
) -> GoalContributionResult:
    """Add money to a goal, optionally debiting a wallet.

    Raises:
        HTTPException: 400 if the goal is not active or the wallet balance is too low
    """
    try:
        goal, created = await service.add_contribution(
            goal_id=goal_id, user_id=user_id, **contribution.model_dump()
        )
        return GoalContributionResult(
            goal=_goal_response(goal), contribution=GoalContributionResponse.model_validate(created)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to add goal contribution", goal_id=str(goal_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add contribution")


@router.get("/{goal_id}/contributions", response_model=list[GoalContributionResponse])
async def list_contributions(
    goal_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: GoalService = Depends(get_goal_service),
) -> list[GoalContributionResponse]:
    """Contribution history for a goal."""
    try:
        contributions = await service.list_contributions(goal_id, user_id)
        return [GoalContributionResponse.model_validate(c) for c in contributions]
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to list contributions", goal_id=str(goal_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list contributions")
