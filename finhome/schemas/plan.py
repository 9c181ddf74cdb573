"""Financial plan and milestone schemas."""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from finhome.schemas.common import reject_null

PlanType = Literal["home_purchase", "investment", "upgrade", "refinance"]
PlanStatus = Literal["draft", "active", "completed", "archived"]
MilestoneCategory = Literal["financial", "legal", "property", "admin", "personal"]
MilestoneStatus = Literal["pending", "in_progress", "completed", "cancelled"]
MilestonePriority = Literal["low", "medium", "high"]


class PlanCreate(BaseModel):
    """Schema for creating a financial plan.

    Minimums reflect a realistic Vietnamese home purchase in VND.
    """

    plan_name: str = Field(..., min_length=1, max_length=255)
    plan_description: Optional[str] = Field(None, max_length=2000)
    plan_type: PlanType = "home_purchase"
    purchase_price: Decimal = Field(..., ge=100_000_000)
    down_payment: Decimal = Field(..., ge=10_000_000)
    additional_costs: Decimal = Field(default=Decimal(0), ge=0)
    monthly_income: Decimal = Field(..., ge=5_000_000)
    monthly_expenses: Decimal = Field(..., ge=1_000_000)
    current_savings: Decimal = Field(default=Decimal(0), ge=0)
    other_debts: Decimal = Field(default=Decimal(0), ge=0)
    expected_rental_income: Optional[Decimal] = Field(None, ge=0)
    expected_appreciation_rate: Optional[Decimal] = Field(None, ge=0, le=30)
    investment_horizon_years: Optional[int] = Field(None, ge=1, le=30)
    is_public: bool = False

    @model_validator(mode="after")
    def check_down_payment(self) -> "PlanCreate":
        if self.down_payment >= self.purchase_price:
            raise ValueError("down_payment must be less than purchase_price")
        return self


class PlanUpdate(BaseModel):
    """Schema for updating plan inputs. Cross-field rules are checked by the service."""

    plan_name: Optional[str] = Field(None, min_length=1, max_length=255)
    plan_description: Optional[str] = Field(None, max_length=2000)
    plan_type: Optional[PlanType] = None
    purchase_price: Optional[Decimal] = Field(None, ge=100_000_000)
    down_payment: Optional[Decimal] = Field(None, ge=10_000_000)
    additional_costs: Optional[Decimal] = Field(None, ge=0)
    monthly_income: Optional[Decimal] = Field(None, ge=5_000_000)
    monthly_expenses: Optional[Decimal] = Field(None, ge=1_000_000)
    current_savings: Optional[Decimal] = Field(None, ge=0)
    other_debts: Optional[Decimal] = Field(None, ge=0)
    expected_rental_income: Optional[Decimal] = Field(None, ge=0)
    expected_appreciation_rate: Optional[Decimal] = Field(None, ge=0, le=30)
    investment_horizon_years: Optional[int] = Field(None, ge=1, le=30)

    @field_validator(
        "plan_name",
        "plan_type",
        "purchase_price",
        "down_payment",
        "additional_costs",
        "monthly_income",
        "monthly_expenses",
        "current_savings",
        "other_debts",
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class PlanStatusUpdate(BaseModel):
    status: PlanStatus
    note: Optional[str] = Field(None, max_length=500)


class PlanVisibilityUpdate(BaseModel):
    is_public: bool


class PlanResponse(BaseModel):
    """Schema for plan response with cached metrics."""

    id: UUID
    user_id: UUID
    plan_name: str
    plan_description: Optional[str]
    plan_type: str
    status: str
    purchase_price: Decimal
    down_payment: Decimal
    additional_costs: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    current_savings: Decimal
    other_debts: Decimal
    expected_rental_income: Optional[Decimal]
    expected_appreciation_rate: Optional[Decimal]
    investment_horizon_years: Optional[int]
    is_public: bool
    cached_calculations: Optional[Dict[str, Any]]
    calculations_last_updated: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedPlanResponse(BaseModel):
    items: List[PlanResponse]
    total: int
    limit: int
    offset: int


class PlanStatusHistoryResponse(BaseModel):
    previous_status: Optional[str]
    status: str
    changed_by: UUID
    note: Optional[str]
    changed_at: datetime

    model_config = {"from_attributes": True}


class ScheduleItemResponse(BaseModel):
    month: int
    payment: float
    principal: float
    interest: float
    extra_payment: float
    balance: float
    is_promotional: bool

    model_config = {"from_attributes": True}


class PlanScheduleResponse(BaseModel):
    plan_id: UUID
    loan_amount: float
    schedule: List[ScheduleItemResponse]


class MilestoneCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    category: MilestoneCategory
    priority: MilestonePriority = "medium"
    required_amount: Optional[Decimal] = Field(None, ge=0)
    current_amount: Decimal = Field(default=Decimal(0), ge=0)
    target_date: Optional[date_type] = None


class MilestoneUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[MilestoneCategory] = None
    status: Optional[MilestoneStatus] = None
    priority: Optional[MilestonePriority] = None
    required_amount: Optional[Decimal] = Field(None, ge=0)
    current_amount: Optional[Decimal] = Field(None, ge=0)
    target_date: Optional[date_type] = None

    @field_validator("title", "category", "status", "priority", "current_amount")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class MilestoneResponse(BaseModel):
    id: UUID
    plan_id: UUID
    title: str
    description: Optional[str]
    category: str
    status: str
    priority: str
    required_amount: Optional[Decimal]
    current_amount: Decimal
    target_date: Optional[date_type]
    completed_date: Optional[date_type]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


ScenarioId = Literal["optimistic", "pessimistic", "early_payoff", "market_crash", "career_growth"]


class CustomScenario(BaseModel):
    """A user-defined scenario. Unset loan values keep the plan's own."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    scenario_type: Literal["optimistic", "pessimistic", "alternative", "stress_test"] = "alternative"
    property_market_trend: Literal["bull", "bear", "stable"] = "stable"
    loan_amount: Optional[float] = Field(None, gt=0)
    interest_rate: Optional[float] = Field(None, ge=0, le=50)
    loan_term_years: Optional[int] = Field(None, ge=1, le=50)
    monthly_income_change: float = 0.0
    monthly_expense_change: float = 0.0
    rental_income_change: float = 0.0
    property_expense_change: float = 0.0
    appreciation_rate_change: float = Field(default=0.0, ge=-50, le=50)
    prepayments: Dict[int, float] = Field(default_factory=dict, description="Month number to lump-sum amount")

    @field_validator("prepayments")
    @classmethod
    def check_prepayments(cls, v: Dict[int, float]) -> Dict[int, float]:
        for month, amount in v.items():
            if month < 1 or amount <= 0:
                raise ValueError("Prepayments need a month of at least 1 and a positive amount")
        return v


class ScenarioRequest(BaseModel):
    scenario_ids: List[ScenarioId] = Field(default_factory=list, max_length=5)
    custom_scenarios: List[CustomScenario] = Field(default_factory=list, max_length=10)


class ScenarioMetricsResponse(BaseModel):
    monthly_payment: float
    total_interest: float
    total_cost: float
    payoff_months: int
    debt_to_income_ratio: float
    affordability_score: int
    roi: Optional[float] = None
    payback_period_years: Optional[float] = None

    model_config = {"from_attributes": True}


class CashFlowItemResponse(BaseModel):
    month: int
    principal_payment: float
    interest_payment: float
    total_payment: float
    extra_payment: float
    remaining_balance: float
    rental_income: float
    property_expenses: float
    net_cash_flow: float
    cumulative_cash_flow: float
    property_value: float
    equity: float

    model_config = {"from_attributes": True}


class ScenarioComparisonResponse(BaseModel):
    monthly_savings: float
    total_interest_difference: float
    payoff_time_difference: int
    net_worth_difference: float
    affordability_score_difference: int

    model_config = {"from_attributes": True}


class ScenarioResultResponse(BaseModel):
    id: str
    name: str
    scenario_type: str
    description: str
    risk_level: str
    metrics: ScenarioMetricsResponse
    key_insights: List[str]
    risk_factors: List[str]
    opportunities: List[str]
    comparison: Optional[ScenarioComparisonResponse] = None
    cash_flow: Optional[List[CashFlowItemResponse]] = None


class PlanScenariosResponse(BaseModel):
    plan_id: UUID
    baseline: ScenarioResultResponse
    scenarios: List[ScenarioResultResponse]


class PlanCashFlowResponse(BaseModel):
    plan_id: UUID
    months: List[CashFlowItemResponse]


class TimelineEventResponse(BaseModel):
    key: str
    event_type: str
    name: str
    description: str
    month: int
    scheduled_date: date_type
    priority: int
    financial_impact: Optional[float] = None
    balance_after: Optional[float] = None


class PlanTimelineResponse(BaseModel):
    plan_id: UUID
    scenario_id: Optional[str] = None
    events: List[TimelineEventResponse]
