"""Schemas for the stateless calculator endpoints."""

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from finhome.schemas.plan import ScheduleItemResponse


class LoanInput(BaseModel):
    """Loan definition shared by the calculators. Rates are annual percentages."""

    principal: float = Field(..., ge=0, description="Loan amount")
    annual_rate: float = Field(..., ge=0, le=50, description="Annual interest rate, percent")
    term_months: int = Field(..., ge=1, le=600)
    promotional_rate: Optional[float] = Field(None, ge=0, le=50)
    promotional_period_months: int = Field(default=0, ge=0, le=600)


class LoanCalculationRequest(LoanInput):
    include_schedule: bool = False


class LoanCalculationResponse(BaseModel):
    monthly_payment: float
    promotional_payment: Optional[float]
    regular_payment: float
    total_interest: float
    total_payments: float
    payoff_months: int
    schedule: Optional[List[ScheduleItemResponse]] = None


class AffordabilityRequest(BaseModel):
    monthly_income: float = Field(..., gt=0)
    monthly_expenses: float = Field(..., ge=0)
    monthly_payment: float = Field(..., ge=0)
    current_savings: float = Field(default=0, ge=0)
    other_debts: float = Field(default=0, ge=0)


class AffordabilityResponse(BaseModel):
    score: str
    debt_to_income_ratio: float
    monthly_leftover: float
    max_affordable_price: float
    recommendations: List[str]
    warnings: List[str]

    model_config = {"from_attributes": True}


class MetricsResponse(BaseModel):
    monthly_payment: float
    total_interest: float
    total_cost: float
    payoff_months: int
    debt_to_income_ratio: float
    affordability_score: int
    roi: Optional[float] = None
    payback_period_years: Optional[float] = None

    model_config = {"from_attributes": True}


class StressTestRequest(LoanInput):
    monthly_income: float = Field(..., gt=0)
    monthly_expenses: float = Field(..., ge=0)
    other_debts: float = Field(default=0, ge=0)
    rate_increase: float = Field(default=2.0, ge=0, le=20)
    income_reduction: float = Field(default=20.0, ge=0, le=100)
    expense_increase: float = Field(default=10.0, ge=0, le=200)


class StressTestResponse(BaseModel):
    base: MetricsResponse
    stressed: MetricsResponse
    risk_level: str
    recommendations: List[str]

    model_config = {"from_attributes": True}


class PrepaymentRequest(LoanInput):
    prepayment_amount: float = Field(..., gt=0)
    prepayment_month: int = Field(..., ge=1)


class PrepaymentResponse(BaseModel):
    interest_saved: float
    months_saved: int
    original_total_interest: float
    new_total_interest: float
    new_payoff_months: int

    model_config = {"from_attributes": True}


class LoanOfferInput(BaseModel):
    bank: str = Field(..., min_length=1, max_length=100)
    promotional_rate: float = Field(..., ge=0, le=50)
    regular_rate: float = Field(..., ge=0, le=50)
    term_years: int = Field(..., ge=1, le=50)
    min_down_payment_percent: float = Field(..., ge=0, le=100)
    promotional_period_months: int = Field(default=24, ge=0, le=600)


class LoanOptionsRequest(BaseModel):
    property_price: float = Field(..., gt=0)
    available_down_payment: float = Field(..., ge=0)
    monthly_income: float = Field(..., gt=0)
    monthly_expenses: float = Field(..., ge=0)
    other_debts: float = Field(default=0, ge=0)
    offers: List[LoanOfferInput] = Field(..., min_length=1, max_length=20)


class LoanRecommendationResponse(BaseModel):
    bank: str
    recommendation: Literal["highly_recommended", "suitable", "consider_carefully", "not_recommended"]
    loan_amount: float
    down_payment: float
    monthly_payment: float
    total_cost: float
    debt_to_income_ratio: float
    affordability_score: int
    pros: List[str]
    cons: List[str]

    model_config = {"from_attributes": True}


class CurrencyFormatRequest(BaseModel):
    amount: Decimal
    currency: Literal["VND", "USD"] = "VND"
    show_symbol: bool = True
    compact: bool = False


class CurrencyFormatResponse(BaseModel):
    formatted: str
    words: Optional[str] = Field(None, description="Vietnamese short form, VND only")


class CurrencyParseRequest(BaseModel):
    text: str = Field(..., max_length=100)
    currency: Optional[Literal["VND", "USD"]] = None


class CurrencyParseResponse(BaseModel):
    amount: Decimal
    formatted: str
