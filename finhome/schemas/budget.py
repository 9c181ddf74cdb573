"""Budget schemas for request/response validation."""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from finhome.schemas.common import reject_null

BudgetPeriod = Literal["weekly", "monthly", "yearly"]


class BudgetCreate(BaseModel):
    """Schema for creating a budget."""

    name: str = Field(..., min_length=1, max_length=100, description="Budget name")
    description: Optional[str] = Field(None, max_length=500)
    budget_period: BudgetPeriod = "monthly"
    start_date: date_type
    end_date: date_type
    total_budget: Decimal = Field(..., gt=0)
    category_budgets: Dict[UUID, Decimal] = Field(
        default_factory=dict, description="Category ID to allocated amount"
    )
    alert_threshold_percentage: int = Field(default=80, ge=1, le=100)

    @field_validator("category_budgets")
    @classmethod
    def validate_allocations(cls, v: Dict[UUID, Decimal]) -> Dict[UUID, Decimal]:
        """Ensure all allocation amounts are non-negative."""
        for category_id, amount in v.items():
            if amount < 0:
                raise ValueError(f"Allocation for {category_id} must be non-negative")
        return {category_id: round(amount, 2) for category_id, amount in v.items()}

    @model_validator(mode="after")
    def check_dates(self) -> "BudgetCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class BudgetFromMethodCreate(BaseModel):
    """Schema for creating a budget from a template such as 50/30/20."""

    name: str = Field(..., min_length=1, max_length=100)
    method: Literal["50_30_20", "6_jars"]
    income: Decimal = Field(..., gt=0, description="Monthly income to split")
    budget_period: BudgetPeriod = "monthly"
    start_date: date_type
    end_date: date_type
    category_mapping: Optional[Dict[UUID, str]] = Field(
        None, description="Category ID to method group; inferred when omitted"
    )

    @model_validator(mode="after")
    def check_dates(self) -> "BudgetFromMethodCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class BudgetUpdate(BaseModel):
    """Schema for updating a budget."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    budget_period: Optional[BudgetPeriod] = None
    start_date: Optional[date_type] = None
    end_date: Optional[date_type] = None
    total_budget: Optional[Decimal] = Field(None, gt=0)
    category_budgets: Optional[Dict[UUID, Decimal]] = None
    alert_threshold_percentage: Optional[int] = Field(None, ge=1, le=100)
    is_active: Optional[bool] = None

    @field_validator(
        "name",
        "budget_period",
        "start_date",
        "end_date",
        "total_budget",
        "category_budgets",
        "alert_threshold_percentage",
        "is_active",
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class BudgetResponse(BaseModel):
    """Schema for budget response."""

    id: UUID
    user_id: UUID
    name: str
    description: Optional[str]
    budget_period: str
    budget_method: str
    start_date: date_type
    end_date: date_type
    total_budget: Decimal
    category_budgets: Dict[str, Decimal]
    alert_threshold_percentage: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CategoryProgressResponse(BaseModel):
    category_id: str
    allocated: Decimal
    spent: Decimal
    remaining: Decimal
    percent_used: float
    status: str


class BudgetProgressResponse(BaseModel):
    """Budget with spending progress."""

    budget: BudgetResponse
    current_spent: Decimal
    remaining_amount: Decimal
    progress_percentage: float
    status: str
    categories: List[CategoryProgressResponse]


class BudgetFromMethodResponse(BaseModel):
    budget: BudgetResponse
    allocation: Dict[str, Decimal]


class BudgetAlertResponse(BaseModel):
    budget_id: UUID
    budget_name: str
    category_id: Optional[str]
    status: str
    percent_used: float
    message: str
