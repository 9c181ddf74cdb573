"""Loan and affordability math.

Every function here is pure and works on floats. Interest rates are annual
percentages (``8.5`` means 8.5 % per year) and terms are in months.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Debt-to-income bands used to label affordability (fraction of gross income)
DTI_EXCELLENT = 0.28
DTI_GOOD = 0.33
DTI_ACCEPTABLE = 0.40
DTI_RISKY = 0.50

# Assumptions for the "how much could I afford" estimate
MAX_AFFORDABLE_DTI = 0.30
REFERENCE_RATE = 8.5
REFERENCE_TERM_MONTHS = 20 * 12
SAVINGS_AVAILABLE_FOR_PURCHASE = 0.8

RISK_DTI_HIGH = 50.0
RISK_DTI_MEDIUM = 35.0

# Offer ranking thresholds (DTI in percent)
SAFE_DTI_PERCENT = 30.0
HIGH_DTI_PERCENT = 40.0
MAX_DTI_PERCENT = 50.0
LOW_PROMOTIONAL_RATE = 8.0
SHORT_TERM_YEARS = 20


@dataclass
class LoanParameters:
    """Loan definition, optionally with a promotional rate for the first months."""

    principal: float
    annual_rate: float
    term_months: int
    promotional_rate: Optional[float] = None
    promotional_period_months: int = 0

    @property
    def has_promotion(self) -> bool:
        return self.promotional_rate is not None and self.promotional_period_months > 0


@dataclass
class PaymentScheduleItem:
    """One month of an amortization schedule."""

    month: int
    payment: float
    principal: float
    interest: float
    extra_payment: float
    balance: float
    is_promotional: bool


@dataclass
class LoanPaymentBreakdown:
    promotional_payment: Optional[float]
    regular_payment: float
    total_interest: float
    total_payments: float
    payoff_months: int


@dataclass
class InvestmentParameters:
    """Rental/appreciation assumptions used to compute ROI."""

    purchase_price: float
    initial_investment: float
    monthly_rental_income: float = 0.0
    monthly_property_expenses: float = 0.0
    appreciation_rate: float = 0.0
    horizon_years: int = 10


@dataclass
class FinancialMetrics:
    monthly_payment: float
    total_interest: float
    total_cost: float
    payoff_months: int
    debt_to_income_ratio: float
    affordability_score: int
    roi: Optional[float] = None
    payback_period_years: Optional[float] = None


@dataclass
class AffordabilityAnalysis:
    score: str
    debt_to_income_ratio: float
    monthly_leftover: float
    max_affordable_price: float
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class PrepaymentImpact:
    interest_saved: float
    months_saved: int
    original_total_interest: float
    new_total_interest: float
    new_payoff_months: int


@dataclass
class StressTestResult:
    base: FinancialMetrics
    stressed: FinancialMetrics
    risk_level: str
    recommendations: List[str] = field(default_factory=list)


@dataclass
class CashFlowProjection:
    """Household cash position for one month of the loan."""

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


@dataclass
class LoanOffer:
    """A bank's mortgage package."""

    bank: str
    promotional_rate: float
    regular_rate: float
    term_years: int
    min_down_payment_percent: float
    promotional_period_months: int = 24


@dataclass
class LoanRecommendation:
    bank: str
    recommendation: str
    loan_amount: float
    down_payment: float
    monthly_payment: float
    total_cost: float
    debt_to_income_ratio: float
    affordability_score: int
    pros: List[str] = field(default_factory=list)
    cons: List[str] = field(default_factory=list)


def _monthly_rate(annual_rate: float) -> float:
    return annual_rate / 100 / 12


def calculate_monthly_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """Fixed monthly payment that amortizes ``principal`` over ``term_months``.

    Uses ``P * i * (1 + i)^n / ((1 + i)^n - 1)`` with ``i`` the monthly rate.
    A zero rate degrades to simple division.

    Args:
        principal: Amount borrowed
        annual_rate: Annual interest rate in percent
        term_months: Number of monthly payments

    Returns:
        Monthly payment (unrounded)

    Raises:
        ValueError: If the term is shorter than one month or an input is negative
    """
    if term_months < 1:
        raise ValueError("Loan term must be at least 1 month")
    if principal < 0:
        raise ValueError("Principal cannot be negative")
    if annual_rate < 0:
        raise ValueError("Interest rate cannot be negative")

    if principal == 0:
        return 0.0
    if annual_rate == 0:
        return principal / term_months

    i = _monthly_rate(annual_rate)
    factor = (1 + i) ** term_months
    return principal * i * factor / (factor - 1)


def calculate_remaining_balance(
    principal: float, annual_rate: float, months_paid: int, monthly_payment: float
) -> float:
    """Outstanding balance after ``months_paid`` regular payments."""
    if annual_rate == 0:
        return max(0.0, principal - monthly_payment * months_paid)

    i = _monthly_rate(annual_rate)
    growth = (1 + i) ** months_paid
    balance = principal * growth - monthly_payment * (growth - 1) / i
    return max(0.0, balance)


def calculate_max_loan_amount(monthly_payment: float, annual_rate: float, term_months: int) -> float:
    """Largest principal a given monthly payment can amortize. Inverse of the payment formula."""
    if term_months < 1:
        raise ValueError("Loan term must be at least 1 month")
    if monthly_payment <= 0:
        return 0.0
    if annual_rate == 0:
        return monthly_payment * term_months

    i = _monthly_rate(annual_rate)
    factor = (1 + i) ** term_months
    return monthly_payment * (factor - 1) / (i * factor)


def generate_payment_schedule(
    params: LoanParameters, extra_payments: Optional[Dict[int, float]] = None
) -> List[PaymentScheduleItem]:
    """Build the month-by-month amortization schedule.

    During a promotional period the payment is computed at the promotional
    rate over the full term. Afterwards the remaining balance is re-amortized
    at the regular rate over the remaining months. Extra payments go straight
    to principal and shorten the loan. The last row always leaves a zero balance.

    Args:
        params: Loan definition
        extra_payments: Optional map of month number to lump-sum prepayment

    Returns:
        Schedule rows, one per month until the loan is paid off
    """
    extra_payments = extra_payments or {}
    promo_months = (
        min(params.promotional_period_months, params.term_months) if params.has_promotion else 0
    )

    balance = float(params.principal)
    first_rate = params.promotional_rate if promo_months else params.annual_rate
    payment = calculate_monthly_payment(balance, first_rate, params.term_months)

    schedule: List[PaymentScheduleItem] = []
    for month in range(1, params.term_months + 1):
        if balance <= 0:
            break

        in_promo = month <= promo_months
        if promo_months and month == promo_months + 1:
            payment = calculate_monthly_payment(
                balance, params.annual_rate, params.term_months - promo_months
            )

        rate = params.promotional_rate if in_promo else params.annual_rate
        interest = balance * _monthly_rate(rate)
        principal_part = payment - interest

        if month == params.term_months or principal_part >= balance:
            principal_part = balance

        extra = min(float(extra_payments.get(month, 0.0)), balance - principal_part)
        extra = max(extra, 0.0)
        balance -= principal_part + extra
        if balance < 0.005:
            balance = 0.0

        schedule.append(
            PaymentScheduleItem(
                month=month,
                payment=principal_part + interest,
                principal=principal_part,
                interest=interest,
                extra_payment=extra,
                balance=balance,
                is_promotional=in_promo,
            )
        )

    return schedule


def calculate_promotional_loan_payment(
    params: LoanParameters, extra_payments: Optional[Dict[int, float]] = None
) -> LoanPaymentBreakdown:
    """Payments and totals for a loan, split into promotional and regular phases."""
    schedule = generate_payment_schedule(params, extra_payments)
    total_interest = sum(item.interest for item in schedule)
    total_payments = sum(item.payment + item.extra_payment for item in schedule)

    promo_months = params.promotional_period_months if params.has_promotion else 0
    promotional_payment = schedule[0].payment if promo_months and schedule else None
    regular_rows = [item for item in schedule if not item.is_promotional]
    if regular_rows:
        regular_payment = regular_rows[0].payment
    else:
        regular_payment = calculate_monthly_payment(
            params.principal, params.annual_rate, params.term_months
        )

    return LoanPaymentBreakdown(
        promotional_payment=promotional_payment,
        regular_payment=regular_payment,
        total_interest=total_interest,
        total_payments=total_payments,
        payoff_months=len(schedule),
    )


def calculate_debt_to_income_ratio(monthly_debt: float, monthly_income: float) -> float:
    """Debt-to-income ratio in percent, rounded to 2 decimals. Zero when there is no income."""
    if monthly_income <= 0:
        return 0.0
    return round(monthly_debt / monthly_income * 100, 2)


def calculate_affordability_score(
    monthly_payment: float, monthly_income: float, monthly_expenses: float
) -> int:
    """Score from 1 (unaffordable) to 10 based on the payment's share of net income."""
    net_income = monthly_income - monthly_expenses
    if net_income <= 0:
        return 1

    ratio = monthly_payment / net_income
    if ratio > 0.8:
        return 1
    if ratio > 0.6:
        return 3
    if ratio > 0.4:
        return 5
    if ratio > 0.3:
        return 7
    if ratio > 0.2:
        return 8
    return 10


def calculate_appreciation(value: float, annual_rate: float, years: float) -> float:
    """Future value after compounding ``annual_rate`` percent for ``years``."""
    return value * (1 + annual_rate / 100) ** years


def calculate_investment_return(
    investment: InvestmentParameters, monthly_payment: float
) -> tuple[float, Optional[float]]:
    """ROI over the horizon (percent) and payback period (years, None when cash flow is negative)."""
    annual_cash_flow = (
        investment.monthly_rental_income - investment.monthly_property_expenses - monthly_payment
    ) * 12
    appreciation_gain = (
        calculate_appreciation(
            investment.purchase_price, investment.appreciation_rate, investment.horizon_years
        )
        - investment.purchase_price
    )
    total_return = annual_cash_flow * investment.horizon_years + appreciation_gain

    if investment.initial_investment <= 0:
        roi = 0.0
    else:
        roi = round(total_return / investment.initial_investment * 100, 2)

    payback = None
    if annual_cash_flow > 0 and investment.initial_investment > 0:
        payback = round(investment.initial_investment / annual_cash_flow, 2)

    return roi, payback


def calculate_financial_metrics(
    params: LoanParameters,
    monthly_income: float,
    monthly_expenses: float,
    other_debts: float = 0.0,
    investment: Optional[InvestmentParameters] = None,
    extra_payments: Optional[Dict[int, float]] = None,
) -> FinancialMetrics:
    """Derive the headline metrics stored on a financial plan.

    The monthly payment reported is the larger of the promotional and regular
    payments, so DTI and affordability reflect the heavier phase. Extra payments
    shorten the loan and are counted in the total cost.
    """
    breakdown = calculate_promotional_loan_payment(params, extra_payments)
    monthly_payment = max(breakdown.regular_payment, breakdown.promotional_payment or 0.0)

    roi = None
    payback = None
    if investment is not None:
        roi, payback = calculate_investment_return(investment, monthly_payment)

    return FinancialMetrics(
        monthly_payment=round(monthly_payment, 2),
        total_interest=round(breakdown.total_interest, 2),
        total_cost=round(breakdown.total_payments, 2),
        payoff_months=breakdown.payoff_months,
        debt_to_income_ratio=calculate_debt_to_income_ratio(
            monthly_payment + other_debts, monthly_income
        ),
        affordability_score=calculate_affordability_score(
            monthly_payment + other_debts, monthly_income, monthly_expenses
        ),
        roi=roi,
        payback_period_years=payback,
    )


def calculate_prepayment_impact(
    params: LoanParameters, prepayment_amount: float, prepayment_month: int
) -> PrepaymentImpact:
    """Compare the loan with and without a single lump-sum prepayment."""
    if prepayment_amount <= 0:
        raise ValueError("Prepayment amount must be positive")
    if not 1 <= prepayment_month <= params.term_months:
        raise ValueError("Prepayment month must fall within the loan term")

    original = generate_payment_schedule(params)
    adjusted = generate_payment_schedule(params, {prepayment_month: prepayment_amount})

    original_interest = sum(item.interest for item in original)
    new_interest = sum(item.interest for item in adjusted)

    return PrepaymentImpact(
        interest_saved=round(original_interest - new_interest, 2),
        months_saved=len(original) - len(adjusted),
        original_total_interest=round(original_interest, 2),
        new_total_interest=round(new_interest, 2),
        new_payoff_months=len(adjusted),
    )


def stress_test_plan(
    params: LoanParameters,
    monthly_income: float,
    monthly_expenses: float,
    rate_increase: float = 2.0,
    income_reduction: float = 20.0,
    expense_increase: float = 10.0,
    other_debts: float = 0.0,
) -> StressTestResult:
    """Re-run the plan metrics under higher rates, lower income and higher expenses.

    Args:
        params: Loan definition
        monthly_income: Gross monthly income
        monthly_expenses: Monthly living expenses
        rate_increase: Percentage points added to every rate
        income_reduction: Percent cut applied to income
        expense_increase: Percent increase applied to expenses
        other_debts: Other monthly debt payments

    Returns:
        Base and stressed metrics with a risk level of low, medium or high
    """
    base = calculate_financial_metrics(params, monthly_income, monthly_expenses, other_debts)

    stressed_params = LoanParameters(
        principal=params.principal,
        annual_rate=params.annual_rate + rate_increase,
        term_months=params.term_months,
        promotional_rate=(
            params.promotional_rate + rate_increase if params.promotional_rate is not None else None
        ),
        promotional_period_months=params.promotional_period_months,
    )
    stressed = calculate_financial_metrics(
        stressed_params,
        monthly_income * (1 - income_reduction / 100),
        monthly_expenses * (1 + expense_increase / 100),
        other_debts,
    )

    risk_level = "low"
    if stressed.debt_to_income_ratio > RISK_DTI_HIGH:
        risk_level = "high"
    elif stressed.debt_to_income_ratio > RISK_DTI_MEDIUM:
        risk_level = "medium"
    if risk_level == "low" and stressed.affordability_score < 5:
        risk_level = "medium"

    recommendations: List[str] = []
    if risk_level == "high":
        recommendations.append("Increase the down payment to reduce the loan amount")
        recommendations.append("Consider a longer loan term to lower monthly payments")
    if risk_level != "low":
        recommendations.append("Build an emergency fund covering at least 6 months of expenses")
    if stressed.monthly_payment - base.monthly_payment > base.monthly_payment * 0.15:
        recommendations.append("Look for a fixed-rate period to limit interest rate exposure")

    return StressTestResult(
        base=base, stressed=stressed, risk_level=risk_level, recommendations=recommendations
    )


def analyze_affordability(
    monthly_income: float,
    monthly_expenses: float,
    monthly_payment: float,
    current_savings: float = 0.0,
    other_debts: float = 0.0,
) -> AffordabilityAnalysis:
    """Label how affordable a monthly payment is and estimate the maximum affordable price."""
    if monthly_income <= 0:
        raise ValueError("Monthly income must be positive")

    dti = (monthly_payment + other_debts) / monthly_income
    if dti <= DTI_EXCELLENT:
        score = "excellent"
    elif dti <= DTI_GOOD:
        score = "good"
    elif dti <= DTI_ACCEPTABLE:
        score = "acceptable"
    elif dti <= DTI_RISKY:
        score = "risky"
    else:
        score = "unaffordable"

    monthly_leftover = monthly_income - monthly_expenses - monthly_payment - other_debts

    max_payment = max(0.0, monthly_income * MAX_AFFORDABLE_DTI - other_debts)
    max_loan = calculate_max_loan_amount(max_payment, REFERENCE_RATE, REFERENCE_TERM_MONTHS)
    max_affordable_price = max_loan + current_savings * SAVINGS_AVAILABLE_FOR_PURCHASE

    recommendations: List[str] = []
    warnings: List[str] = []

    if score in ("risky", "unaffordable"):
        recommendations.append("Reduce the loan amount or extend the loan term")
        recommendations.append("Pay down existing debts before taking a new loan")
    elif score == "acceptable":
        recommendations.append("Keep a cash buffer for rate increases")
    else:
        recommendations.append("The payment fits comfortably within your income")

    if monthly_leftover < 0:
        warnings.append("Expenses and loan payments exceed monthly income")
    elif monthly_leftover < monthly_income * 0.1:
        warnings.append("Less than 10% of income remains after expenses and loan payments")

    if current_savings < monthly_expenses * 6:
        warnings.append("Savings cover less than 6 months of expenses")

    return AffordabilityAnalysis(
        score=score,
        debt_to_income_ratio=round(dti * 100, 2),
        monthly_leftover=round(monthly_leftover, 2),
        max_affordable_price=round(max_affordable_price, 2),
        recommendations=recommendations,
        warnings=warnings,
    )


def calculate_cash_flow_projections(
    params: LoanParameters,
    monthly_income: float,
    monthly_expenses: float,
    other_debts: float = 0.0,
    investment: Optional[InvestmentParameters] = None,
    property_value: Optional[float] = None,
    extra_payments: Optional[Dict[int, float]] = None,
) -> List[CashFlowProjection]:
    """Project the household's monthly cash flow while the loan is repaid.

    Net cash flow is income less living expenses, other debts and the month's
    loan payment (extra payments included), plus rental income net of property
    expenses. The property value compounds monthly at the investment's
    appreciation rate, and equity is that value less the outstanding balance.

    Args:
        params: Loan definition
        monthly_income: Gross monthly income
        monthly_expenses: Monthly living expenses
        other_debts: Other monthly debt payments
        investment: Rental and appreciation assumptions, if any
        property_value: Starting property value; defaults to the investment's purchase price
        extra_payments: Optional map of month number to lump-sum prepayment

    Returns:
        One projection per month of the repayment schedule
    """
    schedule = generate_payment_schedule(params, extra_payments)

    rental_income = investment.monthly_rental_income if investment else 0.0
    property_expenses = investment.monthly_property_expenses if investment else 0.0
    appreciation = _monthly_rate(investment.appreciation_rate) if investment else 0.0
    if property_value is None:
        property_value = investment.purchase_price if investment else 0.0

    projections: List[CashFlowProjection] = []
    cumulative = 0.0
    for item in schedule:
        total_payment = item.payment + item.extra_payment
        net_cash_flow = (
            monthly_income
            - monthly_expenses
            - other_debts
            - total_payment
            + rental_income
            - property_expenses
        )
        cumulative += net_cash_flow
        value = property_value * (1 + appreciation) ** item.month

        projections.append(
            CashFlowProjection(
                month=item.month,
                principal_payment=round(item.principal, 2),
                interest_payment=round(item.interest, 2),
                total_payment=round(total_payment, 2),
                extra_payment=round(item.extra_payment, 2),
                remaining_balance=round(item.balance, 2),
                rental_income=rental_income,
                property_expenses=property_expenses,
                net_cash_flow=round(net_cash_flow, 2),
                cumulative_cash_flow=round(cumulative, 2),
                property_value=round(value, 2),
                equity=round(value - item.balance, 2),
            )
        )

    return projections


def optimize_loan_structure(
    property_price: float,
    available_down_payment: float,
    monthly_income: float,
    monthly_expenses: float,
    offers: List[LoanOffer],
    other_debts: float = 0.0,
) -> List[LoanRecommendation]:
    """Rank bank offers for a purchase, most affordable first.

    Each offer uses the larger of the buyer's down payment and the bank's
    minimum. Offers that would need no loan are skipped. Equal affordability
    scores are ordered by total cost.
    """
    recommendations: List[LoanRecommendation] = []

    for offer in offers:
        down_payment = max(property_price * offer.min_down_payment_percent / 100, available_down_payment)
        loan_amount = property_price - down_payment
        if loan_amount <= 0:
            continue

        params = LoanParameters(
            principal=loan_amount,
            annual_rate=offer.regular_rate,
            term_months=offer.term_years * 12,
            promotional_rate=offer.promotional_rate,
            promotional_period_months=offer.promotional_period_months,
        )
        breakdown = calculate_promotional_loan_payment(params)
        metrics = calculate_financial_metrics(params, monthly_income, monthly_expenses, other_debts)
        dti = metrics.debt_to_income_ratio
        score = metrics.affordability_score

        pros: List[str] = []
        cons: List[str] = []
        if offer.promotional_rate < LOW_PROMOTIONAL_RATE:
            pros.append(f"Low promotional rate of {offer.promotional_rate}%")
        if dti < SAFE_DTI_PERCENT:
            pros.append("Debt-to-income ratio stays in the safe range")
        elif dti > HIGH_DTI_PERCENT:
            cons.append("High debt-to-income ratio")
        if score >= 7:
            pros.append("Payments are comfortably affordable")
        elif score < 5:
            cons.append("Limited room in the budget for the payments")
        if offer.term_years <= SHORT_TERM_YEARS:
            pros.append("Shorter term keeps total interest down")
        else:
            cons.append("Long loan term")

        if score >= 8 and dti < SAFE_DTI_PERCENT:
            label = "highly_recommended"
        elif score < 5 or dti > MAX_DTI_PERCENT:
            label = "not_recommended"
        elif score < 7 or dti > HIGH_DTI_PERCENT:
            label = "consider_carefully"
        else:
            label = "suitable"

        recommendations.append(
            LoanRecommendation(
                bank=offer.bank,
                recommendation=label,
                loan_amount=round(loan_amount, 2),
                down_payment=round(down_payment, 2),
                monthly_payment=round(breakdown.regular_payment, 2),
                total_cost=round(loan_amount + breakdown.total_interest, 2),
                debt_to_income_ratio=dti,
                affordability_score=score,
                pros=pros,
                cons=cons,
            )
        )

    recommendations.sort(key=lambda item: (-item.affordability_score, item.total_cost))
    return recommendations
