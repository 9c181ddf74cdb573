"""Gamification schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class LevelResponse(BaseModel):
    level: int
    title: str
    points: int
    current_level_points: int
    next_level_points: Optional[int]
    points_to_next: int
    progress_percent: float

    model_config = {"from_attributes": True}


class AchievementResponse(BaseModel):
    id: str
    name: str
    description: str
    category: str
    icon: str
    points: int
    unlocked: bool
    unlocked_at: Optional[datetime]
    progress_percent: float


class AchievementOverviewResponse(BaseModel):
    """Level info and the achievement catalogue annotated with progress."""

    level: LevelResponse
    current_streak: int
    longest_streak: int
    unlocked_count: int
    total_count: int
    achievements: List[AchievementResponse]


class UnlockedAchievement(BaseModel):
    id: str
    name: str
    points: int

    model_config = {"from_attributes": True}


class AchievementCheckResponse(BaseModel):
    new_achievements: List[UnlockedAchievement]
    level: LevelResponse
