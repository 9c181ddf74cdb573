"""Gamification API endpoints: levels and achievements."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.schemas.achievement import (
    AchievementCheckResponse,
    AchievementOverviewResponse,
    LevelResponse,
    UnlockedAchievement,
)
from finhome.services.achievement_engine import get_level
from finhome.services.gamification_service import GamificationService

logger = get_logger(__name__)

router = APIRouter()


async def get_gamification_service(db: AsyncSession = Depends(get_db)) -> GamificationService:
    """Get gamification service instance."""
    return GamificationService(db)


@router.get("", response_model=AchievementOverviewResponse)
async def get_achievements(
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_gamification_service),
) -> AchievementOverviewResponse:
    """Level, streaks and every achievement with the user's progress towards it."""
    try:
        overview = await service.get_overview(current_user)
        overview["level"] = LevelResponse.model_validate(overview["level"])
        return AchievementOverviewResponse(**overview)
    except Exception as e:
        logger.error("Failed to get achievements", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get achievements")


@router.post("/check", response_model=AchievementCheckResponse)
async def check_achievements(
    current_user: User = Depends(get_current_user),
    service: GamificationService = Depends(get_gamification_service),
) -> AchievementCheckResponse:
    """Unlock any achievements the user now qualifies for."""
    try:
        unlocked = await service.check_and_award(current_user)
        return AchievementCheckResponse(
            new_achievements=[UnlockedAchievement.model_validate(a) for a in unlocked],
            level=LevelResponse.model_validate(get_level(current_user.experience_points)),
        )
    except Exception as e:
        logger.error("Failed to check achievements", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to check achievements")
