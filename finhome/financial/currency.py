"""Currency formatting and parsing for VND and USD amounts."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

Number = Union[int, float, Decimal]

SUPPORTED_CURRENCIES = ("VND", "USD")

CURRENCY_SYMBOLS = {
    "VND": "₫",
    "USD": "$",
}

_COMPACT_UNITS = (
    (Decimal(10) ** 9, "B"),
    (Decimal(10) ** 6, "M"),
    (Decimal(10) ** 3, "K"),
)

# Multipliers accepted by the parser, longest tokens first
_UNIT_MULTIPLIERS = (
    ("tỷ", Decimal(10) ** 9),
    ("ty", Decimal(10) ** 9),
    ("triệu", Decimal(10) ** 6),
    ("trieu", Decimal(10) ** 6),
    ("nghìn", Decimal(10) ** 3),
    ("ngàn", Decimal(10) ** 3),
    ("nghin", Decimal(10) ** 3),
    ("b", Decimal(10) ** 9),
    ("m", Decimal(10) ** 6),
    ("k", Decimal(10) ** 3),
)

_STRIP_TOKENS = ("₫", "vnd", "usd", "$", "đồng", "đ")
_NUMBER_RE = re.compile(r"^\d+(\.\d+)?$")


def _to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def _check_currency(currency: str) -> str:
    code = currency.upper()
    if code not in SUPPORTED_CURRENCIES:
        raise ValueError(f"Unsupported currency: {currency}")
    return code


def _trim_decimal(value: Decimal) -> str:
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _compact_parts(value: Decimal) -> Optional[tuple[str, str]]:
    for threshold, suffix in _COMPACT_UNITS:
        if value >= threshold:
            scaled = (value / threshold).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            return _trim_decimal(scaled), suffix
    return None


def get_currency_symbol(currency: str) -> str:
    """Display symbol for a currency code."""
    return CURRENCY_SYMBOLS[_check_currency(currency)]


def currency_for_locale(locale: Optional[str]) -> str:
    """Default currency for a locale: VND for Vietnamese, USD otherwise."""
    if locale and locale.lower().startswith("vi"):
        return "VND"
    return "USD"


def format_currency(
    amount: Number,
    currency: str = "VND",
    show_symbol: bool = True,
    compact: bool = False,
) -> str:
    """Format an amount for display.

    VND has no minor unit and is written ``1,000,000 ₫``. USD is written
    ``$1,234.56`` with cents shown only when the amount is fractional.
    Compact mode abbreviates large values (``1.5M VND``, ``$2.3K``).

    Args:
        amount: Amount to format
        currency: VND or USD
        show_symbol: Include the currency symbol
        compact: Abbreviate thousands, millions and billions

    Returns:
        Formatted string

    Raises:
        ValueError: If the currency is not supported
    """
    code = _check_currency(currency)
    value = _to_decimal(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)

    if compact:
        parts = _compact_parts(value)
        if parts is not None:
            number, suffix = parts
            if code == "VND":
                return f"{sign}{number}{suffix}" + (" VND" if show_symbol else "")
            return f"{sign}{'$' if show_symbol else ''}{number}{suffix}"

    if code == "VND":
        whole = int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        text = f"{whole:,}"
        return f"{sign}{text} ₫" if show_symbol else f"{sign}{text}"

    cents = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if cents == cents.to_integral_value():
        text = f"{int(cents):,}"
    else:
        text = f"{cents:,.2f}"
    return f"{sign}${text}" if show_symbol else f"{sign}{text}"


def format_vnd_words(amount: Number) -> str:
    """Short Vietnamese form of a VND amount, e.g. ``2.5 tỷ``, ``150 triệu``."""
    value = _to_decimal(amount)
    sign = "-" if value < 0 else ""
    value = abs(value)

    for threshold, word in (
        (Decimal(10) ** 9, "tỷ"),
        (Decimal(10) ** 6, "triệu"),
        (Decimal(10) ** 3, "nghìn"),
    ):
        if value >= threshold:
            scaled = (value / threshold).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            return f"{sign}{_trim_decimal(scaled)} {word}"

    return f"{sign}{int(value)} đồng"


def _normalize_separators(number: str, has_unit: bool) -> str:
    """Turn grouped digits like ``1.990.000`` or ``1,234.56`` into ``1990000``/``1234.56``."""
    commas = number.count(",")
    dots = number.count(".")

    if commas and dots:
        decimal_sep = "," if number.rfind(",") > number.rfind(".") else "."
        group_sep = "." if decimal_sep == "," else ","
        number = number.replace(group_sep, "")
        return number.replace(decimal_sep, ".")

    if not commas and not dots:
        return number

    sep = "," if commas else "."
    if commas + dots > 1:
        return number.replace(sep, "")

    digits_after = len(number) - number.index(sep) - 1
    if has_unit or digits_after != 3:
        return number.replace(sep, ".")
    return number.replace(sep, "")


def parse_currency(text: Optional[str], currency: Optional[str] = None) -> Decimal:
    """Parse a displayed amount back into a Decimal.

    Accepts the output of :func:`format_currency` as well as common
    hand-typed Vietnamese forms: ``1.990.000``, ``199,000 VND``,
    ``2.5 tỷ``, ``1,5 triệu``, ``500 nghìn``, ``$1.5K``.

    Args:
        text: Text to parse
        currency: Optional currency code, validated when given

    Returns:
        Parsed amount; zero for empty input

    Raises:
        ValueError: If the text does not contain a valid amount
    """
    if currency is not None:
        _check_currency(currency)
    if text is None or not text.strip():
        return Decimal(0)

    cleaned = text.strip().lower()
    for token in _STRIP_TOKENS:
        cleaned = cleaned.replace(token, "")
    cleaned = cleaned.replace(" ", "").replace("\u00a0", "")

    negative = cleaned.startswith("-")
    cleaned = cleaned.lstrip("-+")

    multiplier = Decimal(1)
    for unit, factor in _UNIT_MULTIPLIERS:
        if cleaned.endswith(unit):
            cleaned = cleaned[: -len(unit)]
            multiplier = factor
            break

    number = _normalize_separators(cleaned, has_unit=multiplier != 1)
    if not _NUMBER_RE.match(number):
        raise ValueError(f"Cannot parse currency value: {text!r}")

    try:
        value = Decimal(number) * multiplier
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse currency value: {text!r}") from e

    return -value if negative else value
