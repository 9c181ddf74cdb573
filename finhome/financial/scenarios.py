"""What-if scenarios for a home purchase plan.

A scenario adjusts the plan's loan, household budget or investment
assumptions, then re-runs the metrics and the cash flow projection. Every
scenario except the baseline is compared against the unmodified plan.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Literal, Optional

from finhome.financial.calculations import (
    CashFlowProjection,
    FinancialMetrics,
    InvestmentParameters,
    LoanParameters,
    calculate_cash_flow_projections,
    calculate_financial_metrics,
)

ScenarioType = Literal["baseline", "optimistic", "pessimistic", "alternative", "stress_test"]
MarketTrend = Literal["bull", "bear", "stable"]

PREDEFINED_SCENARIO_IDS = ("optimistic", "pessimistic", "early_payoff", "market_crash", "career_growth")

# Cash flow swings worth flagging, in VND per month
LARGE_CASH_FLOW = 5_000_000


@dataclass
class ScenarioParameters:
    """Changes applied on top of the plan. Unset values keep the plan's own."""

    loan_amount: Optional[float] = None
    interest_rate: Optional[float] = None
    loan_term_years: Optional[int] = None
    monthly_income_change: float = 0.0
    monthly_expense_change: float = 0.0
    rental_income_change: float = 0.0
    property_expense_change: float = 0.0
    appreciation_rate_change: float = 0.0
    prepayments: Dict[int, float] = field(default_factory=dict)


@dataclass
class ScenarioAssumptions:
    economic_growth: Optional[float] = None
    inflation_rate: Optional[float] = None
    property_market_trend: MarketTrend = "stable"
    personal_career_growth: Optional[float] = None
    emergency_fund_months: Optional[int] = None
    additional_investments: bool = False


@dataclass
class ScenarioDefinition:
    id: str
    name: str
    scenario_type: ScenarioType
    description: str
    parameters: ScenarioParameters = field(default_factory=ScenarioParameters)
    assumptions: ScenarioAssumptions = field(default_factory=ScenarioAssumptions)


@dataclass
class ScenarioComparison:
    """Scenario minus baseline. Positive savings mean the scenario is cheaper."""

    monthly_savings: float
    total_interest_difference: float
    payoff_time_difference: int
    net_worth_difference: float
    affordability_score_difference: int


@dataclass
class ScenarioResult:
    scenario: ScenarioDefinition
    metrics: FinancialMetrics
    cash_flow: List[CashFlowProjection]
    key_insights: List[str] = field(default_factory=list)
    risk_factors: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    comparison: Optional[ScenarioComparison] = None


class ScenarioEngine:
    """Runs scenarios against a fixed baseline plan.

    Args:
        loan: Loan implied by the plan
        monthly_income: Household gross monthly income
        monthly_expenses: Monthly living expenses
        other_debts: Other monthly debt payments
        investment: Rental and appreciation assumptions, if the plan has any
        property_value: Purchase price, used for equity
    """

    def __init__(
        self,
        loan: LoanParameters,
        monthly_income: float,
        monthly_expenses: float,
        other_debts: float = 0.0,
        investment: Optional[InvestmentParameters] = None,
        property_value: Optional[float] = None,
    ):
        self.loan = loan
        self.monthly_income = monthly_income
        self.monthly_expenses = monthly_expenses
        self.other_debts = other_debts
        self.investment = investment
        self.property_value = property_value
        self._baseline: Optional[ScenarioResult] = None

    def baseline(self) -> ScenarioResult:
        if self._baseline is None:
            self._baseline = self.generate_scenario(
                ScenarioDefinition(
                    id="baseline",
                    name="Baseline",
                    scenario_type="baseline",
                    description="The plan as entered",
                )
            )
        return self._baseline

    def generate_scenario(self, definition: ScenarioDefinition) -> ScenarioResult:
        """Apply a scenario's changes and evaluate it.

        Raises:
            ValueError: If the changes leave the loan or budget invalid
        """
        params = definition.parameters
        loan = self._modified_loan(params)
        income = self.monthly_income + params.monthly_income_change
        expenses = self.monthly_expenses + params.monthly_expense_change
        if income < 0 or expenses < 0:
            raise ValueError("Scenario leaves income or expenses negative")
        investment = self._modified_investment(params)
        prepayments = {int(month): float(amount) for month, amount in params.prepayments.items()}

        metrics = calculate_financial_metrics(
            loan, income, expenses, self.other_debts, investment, extra_payments=prepayments
        )
        cash_flow = calculate_cash_flow_projections(
            loan,
            income,
            expenses,
            self.other_debts,
            investment,
            property_value=self.property_value,
            extra_payments=prepayments,
        )

        result = ScenarioResult(scenario=definition, metrics=metrics, cash_flow=cash_flow)
        result.key_insights = self._insights(result, income)
        result.risk_factors = self._risk_factors(result)
        result.opportunities = self._opportunities(result)
        if definition.scenario_type != "baseline":
            result.comparison = self.compare_to_baseline(result)
        return result

    def generate_predefined(self, scenario_ids: Optional[List[str]] = None) -> List[ScenarioResult]:
        """Evaluate the built-in scenarios, all of them when no ids are given.

        Raises:
            ValueError: If an id is not a built-in scenario
        """
        catalogue = self.predefined_scenarios()
        scenario_ids = list(scenario_ids) if scenario_ids else list(PREDEFINED_SCENARIO_IDS)
        unknown = [scenario_id for scenario_id in scenario_ids if scenario_id not in catalogue]
        if unknown:
            raise ValueError(f"Unknown scenarios: {', '.join(unknown)}")
        return [self.generate_scenario(catalogue[scenario_id]) for scenario_id in scenario_ids]

    def compare_to_baseline(self, result: ScenarioResult) -> ScenarioComparison:
        base = self.baseline()
        base_equity = base.cash_flow[-1].equity if base.cash_flow else 0.0
        equity = result.cash_flow[-1].equity if result.cash_flow else 0.0
        return ScenarioComparison(
            monthly_savings=round(base.metrics.monthly_payment - result.metrics.monthly_payment, 2),
            total_interest_difference=round(base.metrics.total_interest - result.metrics.total_interest, 2),
            payoff_time_difference=base.metrics.payoff_months - result.metrics.payoff_months,
            net_worth_difference=round(equity - base_equity, 2),
            affordability_score_difference=result.metrics.affordability_score - base.metrics.affordability_score,
        )

    def predefined_scenarios(self) -> Dict[str, ScenarioDefinition]:
        income = self.monthly_income
        expenses = self.monthly_expenses
        rent = self.investment.monthly_rental_income if self.investment else 0.0

        # Yearly lump sum of 10% of income, for the first ten years
        yearly_prepayment = income * 0.1 * 12
        prepayments = {year * 12: yearly_prepayment for year in range(1, 11)}

        scenarios = [
            ScenarioDefinition(
                id="optimistic",
                name="Optimistic",
                scenario_type="optimistic",
                description="Income grows and the property market is strong",
                parameters=ScenarioParameters(
                    monthly_income_change=income * 0.05,
                    rental_income_change=rent * 0.1,
                    appreciation_rate_change=2,
                ),
                assumptions=ScenarioAssumptions(
                    economic_growth=7,
                    inflation_rate=3,
                    property_market_trend="bull",
                    personal_career_growth=8,
                    emergency_fund_months=6,
                    additional_investments=True,
                ),
            ),
            ScenarioDefinition(
                id="pessimistic",
                name="Pessimistic",
                scenario_type="pessimistic",
                description="Economic downturn: lower income, higher costs and rates",
                parameters=ScenarioParameters(
                    monthly_income_change=-income * 0.15,
                    monthly_expense_change=expenses * 0.1,
                    interest_rate=self.loan.annual_rate + 2,
                    rental_income_change=-rent * 0.2,
                    appreciation_rate_change=-3,
                ),
                assumptions=ScenarioAssumptions(
                    economic_growth=-2,
                    inflation_rate=6,
                    property_market_trend="bear",
                    personal_career_growth=-5,
                    emergency_fund_months=12,
                ),
            ),
            ScenarioDefinition(
                id="early_payoff",
                name="Early payoff",
                scenario_type="alternative",
                description="A yearly prepayment of 10% of income for ten years",
                parameters=ScenarioParameters(prepayments=prepayments),
                assumptions=ScenarioAssumptions(
                    economic_growth=5,
                    inflation_rate=4,
                    personal_career_growth=5,
                    emergency_fund_months=8,
                ),
            ),
            ScenarioDefinition(
                id="market_crash",
                name="Market crash",
                scenario_type="stress_test",
                description="Financial crisis with falling property prices",
                parameters=ScenarioParameters(
                    monthly_income_change=-income * 0.3,
                    interest_rate=self.loan.annual_rate + 3,
                    rental_income_change=-rent * 0.4,
                    appreciation_rate_change=-15,
                ),
                assumptions=ScenarioAssumptions(
                    economic_growth=-5,
                    inflation_rate=8,
                    property_market_trend="bear",
                    personal_career_growth=-20,
                    emergency_fund_months=18,
                ),
            ),
            ScenarioDefinition(
                id="career_growth",
                name="Career growth",
                scenario_type="optimistic",
                description="A promotion lifts income, with some lifestyle inflation",
                parameters=ScenarioParameters(
                    monthly_income_change=income * 0.5,
                    monthly_expense_change=expenses * 0.2,
                ),
                assumptions=ScenarioAssumptions(
                    economic_growth=6,
                    inflation_rate=4,
                    personal_career_growth=15,
                    emergency_fund_months=9,
                    additional_investments=True,
                ),
            ),
        ]
        return {scenario.id: scenario for scenario in scenarios}

    def _modified_loan(self, params: ScenarioParameters) -> LoanParameters:
        return replace(
            self.loan,
            principal=params.loan_amount if params.loan_amount is not None else self.loan.principal,
            annual_rate=params.interest_rate if params.interest_rate is not None else self.loan.annual_rate,
            term_months=params.loan_term_years * 12 if params.loan_term_years else self.loan.term_months,
        )

    def _modified_investment(self, params: ScenarioParameters) -> Optional[InvestmentParameters]:
        if self.investment is None:
            return None
        return replace(
            self.investment,
            monthly_rental_income=max(0.0, self.investment.monthly_rental_income + params.rental_income_change),
            monthly_property_expenses=max(
                0.0, self.investment.monthly_property_expenses + params.property_expense_change
            ),
            appreciation_rate=self.investment.appreciation_rate + params.appreciation_rate_change,
        )

    def _insights(self, result: ScenarioResult, income: float) -> List[str]:
        metrics = result.metrics
        insights = []

        if metrics.monthly_payment > income * 0.3:
            insights.append(f"Loan payments take {round(metrics.debt_to_income_ratio)}% of income")

        negative_months = sum(1 for month in result.cash_flow if month.net_cash_flow < 0)
        if negative_months:
            insights.append(f"{negative_months} months with negative cash flow")

        if metrics.affordability_score >= 8:
            insights.append("Payments are very affordable; extra investment is possible")
        elif metrics.affordability_score < 5:
            insights.append("Affordability is limited; review the plan")

        if metrics.roi is not None:
            if metrics.roi > 8:
                insights.append(f"ROI of {metrics.roi}% beats bank deposit rates")
            elif metrics.roi < 5:
                insights.append(f"ROI of {metrics.roi}% is low; compare other investments")

        return insights

    def _risk_factors(self, result: ScenarioResult) -> List[str]:
        metrics = result.metrics
        risks = []

        if metrics.debt_to_income_ratio > 40:
            risks.append("Debt-to-income ratio above 40%")
        if metrics.affordability_score < 5:
            risks.append("Low affordability score")
        if result.cash_flow and min(month.net_cash_flow for month in result.cash_flow) < -LARGE_CASH_FLOW:
            risks.append("Large negative cash flow in some months")
        if result.scenario.assumptions.property_market_trend == "bear":
            risks.append("Falling property market")

        return risks

    def _opportunities(self, result: ScenarioResult) -> List[str]:
        metrics = result.metrics
        opportunities = []

        if metrics.affordability_score >= 8:
            opportunities.append("Room to prepay and cut interest")

        positive = [month.net_cash_flow for month in result.cash_flow if month.net_cash_flow > 0]
        if positive and sum(positive) / len(positive) > LARGE_CASH_FLOW:
            opportunities.append("Strong positive cash flow available to invest")

        if metrics.roi is not None and metrics.roi > 10:
            opportunities.append("High ROI; consider growing the portfolio")

        growth = result.scenario.assumptions.personal_career_growth
        if growth is not None and growth > 10:
            opportunities.append("Strong career outlook supports a larger loan")

        return opportunities
