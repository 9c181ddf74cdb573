"""Tests for loan and affordability calculations."""

import pytest

from finhome.financial.calculations import (
    InvestmentParameters,
    LoanParameters,
    analyze_affordability,
    calculate_affordability_score,
    calculate_debt_to_income_ratio,
    calculate_financial_metrics,
    calculate_investment_return,
    calculate_max_loan_amount,
    calculate_monthly_payment,
    calculate_prepayment_impact,
    calculate_promotional_loan_payment,
    calculate_remaining_balance,
    generate_payment_schedule,
    stress_test_plan,
)


class TestMonthlyPayment:
    """Test the amortization formula."""

    def test_standard_loan(self):
        """1,000,000,000 VND at 12% over 12 months."""
        payment = calculate_monthly_payment(1_000_000_000, 12, 12)
        assert payment == pytest.approx(88_848_788.68, abs=1)

    def test_zero_rate_is_simple_division(self):
        assert calculate_monthly_payment(1_200_000, 0, 12) == pytest.approx(100_000)

    def test_zero_principal(self):
        assert calculate_monthly_payment(0, 10, 240) == 0.0

    def test_invalid_term(self):
        with pytest.raises(ValueError, match="at least 1 month"):
            calculate_monthly_payment(1_000_000, 10, 0)

    def test_negative_inputs(self):
        with pytest.raises(ValueError):
            calculate_monthly_payment(-1, 10, 12)
        with pytest.raises(ValueError):
            calculate_monthly_payment(1_000_000, -1, 12)

    def test_max_loan_inverts_payment(self):
        payment = calculate_monthly_payment(2_000_000_000, 9.5, 240)
        assert calculate_max_loan_amount(payment, 9.5, 240) == pytest.approx(2_000_000_000, rel=1e-9)

    def test_max_loan_without_payment(self):
        assert calculate_max_loan_amount(0, 9.5, 240) == 0.0

    @pytest.mark.parametrize(
        "principal, annual_rate, term_months",
        [
            (500_000_000, 8, 120),
            (1_000_000, 0, 12),
            (2_500_000_000, 10.5, 240),
            (5_000_000_000, 12, 360),
            (80_000_000, 6.9, 1),
            (15_000_000, 0, 1),
            (300_000_000, 0.5, 60),
        ],
    )
    def test_remaining_balance_after_full_term(self, principal, annual_rate, term_months):
        payment = calculate_monthly_payment(principal, annual_rate, term_months)
        assert calculate_remaining_balance(principal, annual_rate, term_months, payment) == pytest.approx(0, abs=1)

        schedule = generate_payment_schedule(
            LoanParameters(principal=principal, annual_rate=annual_rate, term_months=term_months)
        )
        assert len(schedule) == term_months
        assert schedule[-1].balance == 0.0
        assert sum(item.principal for item in schedule) == pytest.approx(principal, abs=1)

    def test_remaining_balance_zero_rate(self):
        assert calculate_remaining_balance(1_200_000, 0, 3, 100_000) == pytest.approx(900_000)


class TestPaymentSchedule:
    """Test schedule generation."""

    def test_schedule_pays_off_loan(self):
        params = LoanParameters(principal=100_000_000, annual_rate=10, term_months=24)
        schedule = generate_payment_schedule(params)

        assert len(schedule) == 24
        assert schedule[-1].balance == 0.0
        assert sum(item.principal for item in schedule) == pytest.approx(100_000_000, abs=1)
        assert all(not item.is_promotional for item in schedule)

    def test_promotional_period_reamortizes(self):
        params = LoanParameters(
            principal=1_000_000_000,
            annual_rate=11,
            term_months=240,
            promotional_rate=7,
            promotional_period_months=24,
        )
        schedule = generate_payment_schedule(params)

        assert schedule[0].is_promotional is True
        assert schedule[23].is_promotional is True
        assert schedule[24].is_promotional is False
        # Regular rate is higher, so the payment goes up after the promotion
        assert schedule[24].payment > schedule[0].payment
        assert schedule[-1].balance == 0.0

    def test_extra_payment_shortens_loan(self):
        params = LoanParameters(principal=100_000_000, annual_rate=10, term_months=60)
        schedule = generate_payment_schedule(params, {12: 50_000_000})

        assert schedule[11].extra_payment == pytest.approx(50_000_000)
        assert len(schedule) < 60
        assert schedule[-1].balance == 0.0

    def test_promotional_breakdown(self):
        params = LoanParameters(
            principal=1_000_000_000,
            annual_rate=11,
            term_months=240,
            promotional_rate=7,
            promotional_period_months=24,
        )
        breakdown = calculate_promotional_loan_payment(params)

        assert breakdown.promotional_payment == pytest.approx(calculate_monthly_payment(1_000_000_000, 7, 240))
        assert breakdown.regular_payment > breakdown.promotional_payment
        assert breakdown.payoff_months == 240
        assert breakdown.total_payments == pytest.approx(1_000_000_000 + breakdown.total_interest, abs=1)

    def test_breakdown_without_promotion(self):
        params = LoanParameters(principal=500_000_000, annual_rate=9, term_months=180)
        breakdown = calculate_promotional_loan_payment(params)

        assert breakdown.promotional_payment is None
        assert breakdown.regular_payment == pytest.approx(calculate_monthly_payment(500_000_000, 9, 180))


class TestRatios:
    """Test DTI and affordability scoring."""

    def test_debt_to_income(self):
        assert calculate_debt_to_income_ratio(10_000_000, 40_000_000) == 25.0

    def test_debt_to_income_without_income(self):
        assert calculate_debt_to_income_ratio(10_000_000, 0) == 0.0

    @pytest.mark.parametrize(
        "payment,expected",
        [(1_000_000, 10), (2_500_000, 8), (3_500_000, 7), (5_000_000, 5), (7_000_000, 3), (9_000_000, 1)],
    )
    def test_affordability_score_bands(self, payment, expected):
        # Net income is 10,000,000
        assert calculate_affordability_score(payment, 30_000_000, 20_000_000) == expected

    def test_affordability_score_no_net_income(self):
        assert calculate_affordability_score(1_000_000, 10_000_000, 10_000_000) == 1


class TestInvestment:
    """Test rental ROI."""

    def test_positive_cash_flow_has_payback(self):
        investment = InvestmentParameters(
            purchase_price=2_000_000_000,
            initial_investment=600_000_000,
            monthly_rental_income=20_000_000,
            monthly_property_expenses=2_000_000,
            appreciation_rate=0,
            horizon_years=10,
        )
        roi, payback = calculate_investment_return(investment, monthly_payment=8_000_000)

        # Annual cash flow 120,000,000 over 10 years on 600,000,000
        assert roi == 200.0
        assert payback == 5.0

    def test_negative_cash_flow_has_no_payback(self):
        investment = InvestmentParameters(
            purchase_price=2_000_000_000,
            initial_investment=600_000_000,
            monthly_rental_income=5_000_000,
        )
        _, payback = calculate_investment_return(investment, monthly_payment=15_000_000)
        assert payback is None

    def test_metrics_use_heavier_payment(self):
        params = LoanParameters(
            principal=1_000_000_000,
            annual_rate=11,
            term_months=240,
            promotional_rate=7,
            promotional_period_months=24,
        )
        metrics = calculate_financial_metrics(params, monthly_income=60_000_000, monthly_expenses=20_000_000)
        breakdown = calculate_promotional_loan_payment(params)

        assert metrics.monthly_payment == round(breakdown.regular_payment, 2)
        assert metrics.payoff_months == 240
        assert metrics.roi is None


class TestScenarios:
    """Test prepayment, stress testing and affordability analysis."""

    def test_prepayment_saves_interest(self):
        params = LoanParameters(principal=1_000_000_000, annual_rate=10, term_months=240)
        impact = calculate_prepayment_impact(params, 200_000_000, 12)

        assert impact.interest_saved > 0
        assert impact.months_saved > 0
        assert impact.new_payoff_months == 240 - impact.months_saved
        assert impact.new_total_interest < impact.original_total_interest

    def test_prepayment_validation(self):
        params = LoanParameters(principal=1_000_000_000, annual_rate=10, term_months=120)
        with pytest.raises(ValueError):
            calculate_prepayment_impact(params, 0, 12)
        with pytest.raises(ValueError):
            calculate_prepayment_impact(params, 1_000_000, 121)

    def test_stress_test_raises_payment(self):
        params = LoanParameters(principal=1_500_000_000, annual_rate=10, term_months=240)
        result = stress_test_plan(params, monthly_income=50_000_000, monthly_expenses=15_000_000)

        assert result.stressed.monthly_payment > result.base.monthly_payment
        assert result.stressed.debt_to_income_ratio > result.base.debt_to_income_ratio
        assert result.risk_level in ("low", "medium", "high")

    def test_stress_test_high_risk(self):
        params = LoanParameters(principal=3_000_000_000, annual_rate=10, term_months=240)
        result = stress_test_plan(params, monthly_income=40_000_000, monthly_expenses=10_000_000)

        assert result.risk_level == "high"
        assert "Increase the down payment to reduce the loan amount" in result.recommendations

    def test_affordability_excellent(self):
        analysis = analyze_affordability(
            monthly_income=50_000_000,
            monthly_expenses=15_000_000,
            monthly_payment=10_000_000,
            current_savings=500_000_000,
        )
        assert analysis.score == "excellent"
        assert analysis.debt_to_income_ratio == 20.0
        assert analysis.monthly_leftover == 25_000_000
        assert analysis.warnings == []
        assert analysis.max_affordable_price > 400_000_000

    def test_affordability_unaffordable(self):
        analysis = analyze_affordability(
            monthly_income=20_000_000, monthly_expenses=10_000_000, monthly_payment=15_000_000
        )
        assert analysis.score == "unaffordable"
        assert "Expenses and loan payments exceed monthly income" in analysis.warnings
        assert "Savings cover less than 6 months of expenses" in analysis.warnings

    def test_affordability_requires_income(self):
        with pytest.raises(ValueError, match="positive"):
            analyze_affordability(0, 0, 1)
