"""Achievement catalogue and level rules.

Pure functions over a progress dict. Persisting unlocks and awarding points
is done by :mod:`finhome.services.gamification_service`.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional


@dataclass(frozen=True)
class Achievement:
    """Achievement definition."""

    id: str
    name: str
    description: str
    category: str
    points: int
    metric: str
    threshold: float
    comparison: str = "gte"  # gte or lte
    icon: str = "trophy"


@dataclass
class LevelInfo:
    level: int
    title: str
    points: int
    current_level_points: int
    next_level_points: Optional[int]
    points_to_next: int
    progress_percent: float


ACHIEVEMENTS: List[Achievement] = [
    Achievement("first_plan", "First Plan", "Create your first financial plan", "planning", 100, "plans_created", 1, icon="map"),
    Achievement("planning_expert", "Planning Expert", "Create 5 financial plans", "planning", 300, "plans_created", 5, icon="clipboard"),
    Achievement("master_planner", "Master Planner", "Create 10 financial plans", "planning", 500, "plans_created", 10, icon="crown"),
    Achievement("optimizer", "Optimizer", "Save 100 million VND through optimization", "savings", 750, "total_savings_optimized", 100_000_000, icon="trending-down"),
    Achievement("mega_optimizer", "Mega Optimizer", "Save 500 million VND through optimization", "savings", 1500, "total_savings_optimized", 500_000_000, icon="gem"),
    Achievement("smart_investor", "Smart Investor", "Create an investment plan with positive ROI", "investment", 400, "best_roi", 0, icon="line-chart"),
    Achievement("high_roi_master", "High ROI Master", "Create a plan with ROI of 15% or more", "investment", 800, "best_roi", 15, icon="rocket"),
    Achievement("debt_destroyer", "Debt Destroyer", "Plan a loan paid off within 5 years", "debt", 600, "fastest_payoff_years", 5, comparison="lte", icon="hammer"),
    Achievement("completion_champion", "Completion Champion", "Complete 3 financial plans", "planning", 900, "plans_completed", 3, icon="flag"),
    Achievement("sharing_master", "Sharing Master", "Export or share 10 reports", "social", 300, "exports_generated", 10, icon="share"),
    Achievement("consistent_user", "Consistent User", "Stay active 30 days in a row", "engagement", 500, "streak_days", 30, icon="flame"),
    Achievement("first_transaction", "First Step", "Record your first transaction", "tracking", 50, "transactions_created", 1, icon="receipt"),
    Achievement("budget_keeper", "Budget Keeper", "Create your first budget", "tracking", 100, "budgets_created", 1, icon="pie-chart"),
    Achievement("goal_achiever", "Goal Achiever", "Reach a savings goal", "savings", 300, "goals_completed", 1, icon="target"),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}

LEVEL_THRESHOLDS: Dict[int, int] = {
    1: 0,
    2: 500,
    3: 1000,
    4: 2000,
    5: 4000,
    6: 7000,
    7: 10000,
}

LEVEL_TITLES: Dict[int, str] = {
    1: "Beginner",
    2: "Planner",
    3: "Saver",
    4: "Strategist",
    5: "Expert",
    6: "Master",
    7: "Legend",
}


def is_achieved(achievement: Achievement, progress: Mapping[str, Optional[float]]) -> bool:
    value = progress.get(achievement.metric)
    if value is None:
        return False
    if achievement.comparison == "lte":
        return value <= achievement.threshold
    return value >= achievement.threshold


def get_achievement_progress(
    achievement: Achievement, progress: Mapping[str, Optional[float]]
) -> float:
    """Completion percentage for an achievement, capped at 100."""
    if is_achieved(achievement, progress):
        return 100.0

    value = progress.get(achievement.metric)
    if value is None or achievement.comparison == "lte" or achievement.threshold <= 0:
        return 0.0
    return round(min(100.0, max(0.0, value / achievement.threshold * 100)), 1)


def check_achievements(
    progress: Mapping[str, Optional[float]], unlocked: Iterable[str] = ()
) -> List[Achievement]:
    """Achievements satisfied by ``progress`` that are not already unlocked."""
    unlocked_ids = set(unlocked)
    return [
        achievement
        for achievement in ACHIEVEMENTS
        if achievement.id not in unlocked_ids and is_achieved(achievement, progress)
    ]


def get_level(points: int) -> LevelInfo:
    """Level reached with ``points`` experience points."""
    level = 1
    for candidate, threshold in sorted(LEVEL_THRESHOLDS.items()):
        if points >= threshold:
            level = candidate

    current_threshold = LEVEL_THRESHOLDS[level]
    next_threshold = LEVEL_THRESHOLDS.get(level + 1)

    if next_threshold is None:
        points_to_next = 0
        progress = 100.0
    else:
        points_to_next = next_threshold - points
        span = next_threshold - current_threshold
        progress = round((points - current_threshold) / span * 100, 1)

    return LevelInfo(
        level=level,
        title=LEVEL_TITLES[level],
        points=points,
        current_level_points=current_threshold,
        next_level_points=next_threshold,
        points_to_next=points_to_next,
        progress_percent=progress,
    )


def get_level_progress(points: int) -> float:
    """Percent of the way from the current level to the next one."""
    return get_level(points).progress_percent
