"""Subscription API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.schemas.subscription import SubscriptionResponse, TierResponse
from finhome.services.subscription_service import SubscriptionService, tier_catalogue

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=SubscriptionResponse)
async def get_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SubscriptionResponse:
    """Current tier, its limits and how much of each limit is used."""
    try:
        usage = await SubscriptionService(db).get_usage(current_user)
        return SubscriptionResponse(**usage)
    except Exception as e:
        logger.error("Failed to get subscription", user_id=str(current_user.id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get subscription")


@router.get("/plans", response_model=List[TierResponse])
async def list_subscription_plans(
    current_user: User = Depends(get_current_user),
) -> List[TierResponse]:
    """Available tiers, priced in the user's preferred currency."""
    return [TierResponse(**tier) for tier in tier_catalogue(current_user.preferred_currency)]
