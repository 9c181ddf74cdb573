"""Goal schemas for request/response validation."""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from finhome.schemas.common import reject_null

GoalType = Literal[
    "general_savings", "emergency_fund", "vacation", "education", "buy_house", "buy_car", "other"
]
GoalStatus = Literal["active", "completed", "paused", "cancelled"]


class GoalCreate(BaseModel):
    """Schema for creating a new goal."""

    name: str = Field(..., min_length=1, max_length=100, description="Goal name")
    description: Optional[str] = Field(None, max_length=500)
    goal_type: GoalType = "general_savings"
    target_amount: Decimal = Field(..., gt=0, description="Target amount to achieve")
    monthly_target: Optional[Decimal] = Field(None, gt=0)
    start_date: Optional[date_type] = Field(None, description="Defaults to today")
    deadline: Optional[date_type] = Field(None, description="Optional deadline date")
    initial_amount: Decimal = Field(default=Decimal(0), ge=0, description="Initial amount (default: 0)")

    @field_validator("target_amount", "initial_amount")
    @classmethod
    def validate_amounts(cls, v: Decimal) -> Decimal:
        """Validate amounts are properly formatted."""
        return round(v, 2)


class GoalUpdate(BaseModel):
    """Schema for updating a goal."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    goal_type: Optional[GoalType] = None
    target_amount: Optional[Decimal] = Field(None, gt=0)
    monthly_target: Optional[Decimal] = Field(None, gt=0)
    deadline: Optional[date_type] = None
    status: Optional[GoalStatus] = None

    @field_validator("name", "goal_type", "target_amount", "status")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class GoalContributionCreate(BaseModel):
    """Schema for adding money to a goal."""

    amount: Decimal = Field(..., gt=0, description="Amount to add to progress")
    wallet_id: Optional[UUID] = Field(None, description="Wallet debited for the contribution")
    description: Optional[str] = Field(None, max_length=500)
    contribution_date: Optional[date_type] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        return round(v, 2)


class GoalResponse(BaseModel):
    """Schema for goal response, including derived progress figures."""

    id: UUID
    user_id: UUID
    name: str
    description: Optional[str]
    goal_type: str
    target_amount: Decimal
    current_amount: Decimal
    monthly_target: Optional[Decimal]
    start_date: date_type
    deadline: Optional[date_type]
    status: str
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    progress_percent: float = 0.0
    remaining_amount: Optional[Decimal] = None
    months_remaining: Optional[int] = None
    required_monthly_savings: Optional[Decimal] = None
    is_on_track: bool = True

    model_config = {"from_attributes": True}


class GoalContributionResponse(BaseModel):
    id: UUID
    goal_id: UUID
    wallet_id: Optional[UUID]
    amount: Decimal
    description: Optional[str]
    contribution_date: date_type
    created_at: datetime

    model_config = {"from_attributes": True}


class GoalContributionResult(BaseModel):
    goal: GoalResponse
    contribution: GoalContributionResponse
