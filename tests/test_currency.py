"""Tests for currency formatting and parsing."""

from decimal import Decimal

import pytest

from finhome.financial.currency import (
    currency_for_locale,
    format_currency,
    format_vnd_words,
    get_currency_symbol,
    parse_currency,
)


class TestFormatCurrency:
    """Test display formatting."""

    def test_vnd_has_no_minor_unit(self):
        assert format_currency(1_000_000) == "1,000,000 ₫"
        assert format_currency(Decimal("1999.6"), "VND") == "2,000 ₫"

    def test_vnd_without_symbol(self):
        assert format_currency(250_000, "VND", show_symbol=False) == "250,000"

    def test_usd(self):
        assert format_currency(Decimal("1234.56"), "USD") == "$1,234.56"
        assert format_currency(1234, "USD") == "$1,234"

    def test_negative_amounts(self):
        assert format_currency(-5000, "VND") == "-5,000 ₫"
        assert format_currency(Decimal("-12.5"), "USD") == "-$12.50"

    def test_compact(self):
        assert format_currency(1_500_000, "VND", compact=True) == "1.5M VND"
        assert format_currency(2_000_000_000, "VND", compact=True) == "2B VND"
        assert format_currency(2300, "USD", compact=True) == "$2.3K"

    def test_compact_small_amount_falls_back(self):
        assert format_currency(500, "VND", compact=True) == "500 ₫"

    def test_unsupported_currency(self):
        with pytest.raises(ValueError, match="Unsupported currency"):
            format_currency(100, "EUR")

    def test_symbols_and_locale(self):
        assert get_currency_symbol("vnd") == "₫"
        assert get_currency_symbol("USD") == "$"
        assert currency_for_locale("vi-VN") == "VND"
        assert currency_for_locale("en-US") == "USD"
        assert currency_for_locale(None) == "USD"


class TestVndWords:
    def test_units(self):
        assert format_vnd_words(2_500_000_000) == "2.5 tỷ"
        assert format_vnd_words(150_000_000) == "150 triệu"
        assert format_vnd_words(45_000) == "45 nghìn"
        assert format_vnd_words(500) == "500 đồng"


class TestParseCurrency:
    """Test parsing of displayed and hand-typed amounts."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1,000,000 ₫", Decimal("1000000")),
            ("1.990.000", Decimal("1990000")),
            ("199,000 VND", Decimal("199000")),
            ("2.5 tỷ", Decimal("2500000000")),
            ("1,5 triệu", Decimal("1500000")),
            ("500 nghìn", Decimal("500000")),
            ("$1.5K", Decimal("1500")),
            ("$1,234.56", Decimal("1234.56")),
            ("12.50", Decimal("12.50")),
            ("-5,000 ₫", Decimal("-5000")),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_currency(text) == expected

    def test_empty_is_zero(self):
        assert parse_currency("") == Decimal(0)
        assert parse_currency(None) == Decimal(0)

    @pytest.mark.parametrize(
        "amount",
        [Decimal("0"), Decimal("999"), Decimal("85000"), Decimal("1990000"), Decimal("123456789"), Decimal("-5000000")],
    )
    def test_vnd_formatted_value_parses_back(self, amount):
        assert parse_currency(format_currency(amount, "VND"), "VND") == amount

    @pytest.mark.parametrize(
        "amount",
        [
            Decimal("0.07"),
            Decimal("0.10"),
            Decimal("5"),
            Decimal("999.99"),
            Decimal("1000"),
            Decimal("1234.56"),
            Decimal("250000.01"),
            Decimal("-42.10"),
        ],
    )
    def test_usd_formatted_value_parses_back(self, amount):
        assert parse_currency(format_currency(amount, "USD"), "USD") == amount

    def test_invalid_text(self):
        with pytest.raises(ValueError, match="Cannot parse"):
            parse_currency("a lot")

    def test_invalid_currency(self):
        with pytest.raises(ValueError):
            parse_currency("100", currency="EUR")
