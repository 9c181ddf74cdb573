"""Subscription schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel


class TierLimitsResponse(BaseModel):
    """Per-tier quotas. Null means unlimited."""

    max_wallets: Optional[int]
    max_active_plans: Optional[int]
    max_draft_plans: Optional[int]
    max_scenarios: Optional[int]


class SubscriptionResponse(BaseModel):
    tier: str
    tier_name: str
    status: str
    billing_cycle: Optional[str]
    current_period_end: Optional[datetime]
    cancel_at_period_end: bool
    limits: TierLimitsResponse
    usage: Dict[str, int]


class TierResponse(BaseModel):
    key: str
    name: str
    monthly_price: Decimal
    yearly_price: Decimal
    monthly_price_display: str
    yearly_price_display: str
    yearly_savings_percent: int
    limits: TierLimitsResponse
    features: List[str]
