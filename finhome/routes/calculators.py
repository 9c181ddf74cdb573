"""Stateless calculator endpoints for loans, affordability and currency."""

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, HTTPException

from finhome.financial.calculations import (
    LoanOffer,
    LoanParameters,
    analyze_affordability,
    calculate_monthly_payment,
    calculate_prepayment_impact,
    calculate_promotional_loan_payment,
    generate_payment_schedule,
    optimize_loan_structure,
    stress_test_plan,
)
from finhome.financial.currency import format_currency, format_vnd_words, parse_currency
from finhome.logging_config import get_logger
from finhome.schemas.calculator import (
    AffordabilityRequest,
    AffordabilityResponse,
    CurrencyFormatRequest,
    CurrencyFormatResponse,
    CurrencyParseRequest,
    CurrencyParseResponse,
    LoanCalculationRequest,
    LoanCalculationResponse,
    LoanInput,
    LoanOptionsRequest,
    LoanRecommendationResponse,
    PrepaymentRequest,
    PrepaymentResponse,
    StressTestRequest,
    StressTestResponse,
)
from finhome.schemas.plan import ScheduleItemResponse

logger = get_logger(__name__)

router = APIRouter()


def _loan_parameters(request: LoanInput) -> LoanParameters:
    return LoanParameters(
        principal=request.principal,
        annual_rate=request.annual_rate,
        term_months=request.term_months,
        promotional_rate=request.promotional_rate,
        promotional_period_months=request.promotional_period_months,
    )


@router.post("/loan", response_model=LoanCalculationResponse)
async def calculate_loan(request: LoanCalculationRequest) -> LoanCalculationResponse:
    """Monthly payment and totals for a loan, with an optional amortisation schedule.

    When a promotional period is set, ``monthly_payment`` is the payment during
    the promotion and ``regular_payment`` the one after it.
    """
    if request.promotional_period_months > request.term_months:
        raise HTTPException(status_code=400, detail="Promotional period cannot exceed the loan term")

    params = _loan_parameters(request)
    breakdown = calculate_promotional_loan_payment(params)
    if params.has_promotion:
        monthly_payment = breakdown.promotional_payment
    else:
        monthly_payment = round(
            calculate_monthly_payment(params.principal, params.annual_rate, params.term_months), 2
        )

    schedule = None
    if request.include_schedule:
        schedule = [
            ScheduleItemResponse.model_validate(item) for item in generate_payment_schedule(params)
        ]

    return LoanCalculationResponse(
        monthly_payment=monthly_payment,
        schedule=schedule,
        **asdict(breakdown),
    )


@router.post("/affordability", response_model=AffordabilityResponse)
async def check_affordability(request: AffordabilityRequest) -> AffordabilityResponse:
    analysis = analyze_affordability(
        monthly_income=request.monthly_income,
        monthly_expenses=request.monthly_expenses,
        monthly_payment=request.monthly_payment,
        current_savings=request.current_savings,
        other_debts=request.other_debts,
    )
    return AffordabilityResponse.model_validate(analysis)


@router.post("/stress-test", response_model=StressTestResponse)
async def run_stress_test(request: StressTestRequest) -> StressTestResponse:
    """Compare loan metrics under higher rates, lower income and higher expenses."""
    result = stress_test_plan(
        _loan_parameters(request),
        monthly_income=request.monthly_income,
        monthly_expenses=request.monthly_expenses,
        rate_increase=request.rate_increase,
        income_reduction=request.income_reduction,
        expense_increase=request.expense_increase,
        other_debts=request.other_debts,
    )
    return StressTestResponse.model_validate(result)


@router.post("/prepayment", response_model=PrepaymentResponse)
async def calculate_prepayment(request: PrepaymentRequest) -> PrepaymentResponse:
    """Interest and months saved by a one-off extra payment."""
    if request.prepayment_month > request.term_months:
        raise HTTPException(status_code=400, detail="Prepayment month is beyond the loan term")

    impact = calculate_prepayment_impact(
        _loan_parameters(request), request.prepayment_amount, request.prepayment_month
    )
    return PrepaymentResponse.model_validate(impact)


@router.post("/loan-options", response_model=List[LoanRecommendationResponse])
async def compare_loan_options(request: LoanOptionsRequest) -> List[LoanRecommendationResponse]:
    """Rank bank offers for a purchase, most affordable first.

    Offers whose minimum down payment already covers the price are left out.
    """
    recommendations = optimize_loan_structure(
        property_price=request.property_price,
        available_down_payment=request.available_down_payment,
        monthly_income=request.monthly_income,
        monthly_expenses=request.monthly_expenses,
        offers=[LoanOffer(**offer.model_dump()) for offer in request.offers],
        other_debts=request.other_debts,
    )
    logger.info("Loan options compared", offers=len(request.offers), eligible=len(recommendations))
    return [LoanRecommendationResponse.model_validate(item) for item in recommendations]


@router.post("/currency/format", response_model=CurrencyFormatResponse)
async def format_amount(request: CurrencyFormatRequest) -> CurrencyFormatResponse:
    formatted = format_currency(
        request.amount, request.currency, show_symbol=request.show_symbol, compact=request.compact
    )
    words = format_vnd_words(request.amount) if request.currency == "VND" else None
    return CurrencyFormatResponse(formatted=formatted, words=words)


@router.post("/currency/parse", response_model=CurrencyParseResponse)
async def parse_amount(request: CurrencyParseRequest) -> CurrencyParseResponse:
    """Parse typed or formatted text such as ``2.5 tỷ`` or ``$1,234.56``."""
    try:
        amount = parse_currency(request.text, request.currency)
    except ValueError as e:
        logger.warning("Currency parse failed", text=request.text, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    return CurrencyParseResponse(
        amount=amount, formatted=format_currency(amount, request.currency or "VND")
    )
