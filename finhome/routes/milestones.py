"""Milestone API endpoints addressed by milestone ID."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from finhome.dependencies import get_current_user
from finhome.exceptions import NotFoundError, PermissionDeniedError
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.routes.plans import get_plan_service
from finhome.schemas.plan import MilestoneResponse, MilestoneUpdate
from finhome.services.plan_service import PlanService

logger = get_logger(__name__)

router = APIRouter()


@router.patch("/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone(
    milestone_id: UUID,
    milestone_update: MilestoneUpdate,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> MilestoneResponse:
    """Update a milestone on one of the user's plans.

    Raises:
        HTTPException: 404 if the milestone is missing, 403 if the plan belongs to someone else
    """
    try:
        milestone = await service.update_milestone(
            milestone_id, current_user.id, **milestone_update.model_dump(exclude_unset=True)
        )
        return MilestoneResponse.model_validate(milestone)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update milestone", milestone_id=str(milestone_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update milestone")


@router.delete("/{milestone_id}", status_code=204)
async def delete_milestone(
    milestone_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PlanService = Depends(get_plan_service),
) -> None:
    try:
        await service.delete_milestone(milestone_id, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete milestone", milestone_id=str(milestone_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete milestone")
