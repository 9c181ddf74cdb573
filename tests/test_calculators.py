"""Tests for the stateless calculator endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestCalculatorRoutes:
    """Calculators are public and need no token."""

    async def test_loan(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/loan",
            json={"principal": 1_000_000_000, "annual_rate": 12, "term_months": 12, "include_schedule": True},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["monthly_payment"] == pytest.approx(88_848_788.68, abs=1)
        assert data["promotional_payment"] is None
        assert data["payoff_months"] == 12
        assert len(data["schedule"]) == 12

    async def test_loan_with_promotion(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/loan",
            json={
                "principal": 1_000_000_000,
                "annual_rate": 11,
                "term_months": 240,
                "promotional_rate": 7,
                "promotional_period_months": 24,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["monthly_payment"] == data["promotional_payment"]
        assert data["regular_payment"] > data["monthly_payment"]
        assert data["schedule"] is None

    async def test_promotion_longer_than_term(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/loan",
            json={
                "principal": 100_000_000,
                "annual_rate": 10,
                "term_months": 12,
                "promotional_rate": 5,
                "promotional_period_months": 24,
            },
        )
        assert response.status_code == 400

    async def test_invalid_term(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/loan", json={"principal": 100_000_000, "annual_rate": 10, "term_months": 0}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    async def test_affordability(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/affordability",
            json={
                "monthly_income": 50_000_000,
                "monthly_expenses": 15_000_000,
                "monthly_payment": 10_000_000,
                "current_savings": 500_000_000,
            },
        )

        assert response.status_code == 200
        assert response.json()["score"] == "excellent"

    async def test_stress_test(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/stress-test",
            json={
                "principal": 3_000_000_000,
                "annual_rate": 10,
                "term_months": 240,
                "monthly_income": 40_000_000,
                "monthly_expenses": 10_000_000,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["risk_level"] == "high"
        assert data["stressed"]["monthly_payment"] > data["base"]["monthly_payment"]

    async def test_prepayment(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/prepayment",
            json={
                "principal": 1_000_000_000,
                "annual_rate": 10,
                "term_months": 240,
                "prepayment_amount": 200_000_000,
                "prepayment_month": 12,
            },
        )

        assert response.status_code == 200
        assert response.json()["months_saved"] > 0

    async def test_prepayment_beyond_term(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/prepayment",
            json={
                "principal": 1_000_000_000,
                "annual_rate": 10,
                "term_months": 120,
                "prepayment_amount": 1_000_000,
                "prepayment_month": 121,
            },
        )
        assert response.status_code == 400

    async def test_loan_options(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/loan-options",
            json={
                "property_price": 3_000_000_000,
                "available_down_payment": 900_000_000,
                "monthly_income": 200_000_000,
                "monthly_expenses": 20_000_000,
                "offers": [
                    {
                        "bank": "Bank A",
                        "promotional_rate": 7.0,
                        "regular_rate": 10.0,
                        "term_years": 20,
                        "min_down_payment_percent": 20,
                    },
                    {
                        "bank": "Cash Only",
                        "promotional_rate": 6.0,
                        "regular_rate": 9.0,
                        "term_years": 10,
                        "min_down_payment_percent": 100,
                    },
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert [item["bank"] for item in data] == ["Bank A"]
        assert data[0]["recommendation"] == "highly_recommended"
        assert data[0]["loan_amount"] == 2_100_000_000

    async def test_loan_options_need_offers(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/loan-options",
            json={
                "property_price": 3_000_000_000,
                "available_down_payment": 900_000_000,
                "monthly_income": 60_000_000,
                "monthly_expenses": 20_000_000,
                "offers": [],
            },
        )
        assert response.status_code == 400

    async def test_currency_format(self, client: AsyncClient):
        response = await client.post("/api/calculators/currency/format", json={"amount": "2500000000"})

        assert response.status_code == 200
        assert response.json() == {"formatted": "2,500,000,000 ₫", "words": "2.5 tỷ"}

    async def test_currency_format_usd(self, client: AsyncClient):
        response = await client.post(
            "/api/calculators/currency/format", json={"amount": "1234.56", "currency": "USD"}
        )
        assert response.json() == {"formatted": "$1,234.56", "words": None}

    async def test_currency_parse(self, client: AsyncClient):
        response = await client.post("/api/calculators/currency/parse", json={"text": "1,5 triệu"})

        assert response.status_code == 200
        assert response.json()["formatted"] == "1,500,000 ₫"

    async def test_currency_parse_invalid(self, client: AsyncClient):
        response = await client.post("/api/calculators/currency/parse", json={"text": "lots of money"})
        assert response.status_code == 400
