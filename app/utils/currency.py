"""
Currency conversion and display helpers.
Amounts are stored in Ghana Cedi (GHS); every rate expresses 1 GHS in the
target currency.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional
import re

from pydantic import BaseModel

from app.utils.exceptions import CurrencyError


BASE_CURRENCY = "GHS"
DIASPORA_CURRENCIES = ("USD", "GBP", "EUR")
PRICE_ON_REQUEST = "Price on request"


class CurrencyRate(BaseModel):
    code: str
    rate: float
    symbol: str
    name: str


DEFAULT_CURRENCY_RATES: Dict[str, CurrencyRate] = {
    "GHS": CurrencyRate(code="GHS", rate=1, symbol="₵", name="Ghana Cedi"),
    "USD": CurrencyRate(code="USD", rate=0.062, symbol="$", name="US Dollar"),
    "GBP": CurrencyRate(code="GBP", rate=0.049, symbol="£", name="British Pound"),
    "EUR": CurrencyRate(code="EUR", rate=0.058, symbol="€", name="Euro"),
}

COUNTRY_CURRENCIES: Dict[str, str] = {
    "GH": "GHS",
    "US": "USD",
    "GB": "GBP",
    "UK": "GBP",
    **{country: "EUR" for country in (
        "FR", "DE", "IT", "ES", "NL", "AT", "BE", "FI", "IE", "LU", "PT"
    )},
}

_STRIP_PATTERN = re.compile(r"[₵$£€,\s]")
_MULTIPLIERS = {"k": Decimal(1_000), "m": Decimal(1_000_000)}

RateTable = Mapping[str, CurrencyRate]


def _rate_for(currency: str, rates: RateTable) -> float:
    info = rates.get(currency)
    if info is None or not info.rate:
        raise CurrencyError(currency)
    return info.rate


def convert_currency(
    amount_in_ghs: float,
    target_currency: str,
    rates: RateTable = DEFAULT_CURRENCY_RATES
) -> float:
    """Convert an amount from GHS to the target currency."""
    if target_currency == BASE_CURRENCY:
        return amount_in_ghs
    return amount_in_ghs * _rate_for(target_currency, rates)


def convert_to_ghs(
    amount: float,
    source_currency: str,
    rates: RateTable = DEFAULT_CURRENCY_RATES
) -> float:
    """Convert an amount in the source currency back to GHS."""
    if source_currency == BASE_CURRENCY:
        return amount
    return amount / _rate_for(source_currency, rates)


def _round_half_up(value: float, places: str) -> str:
    return str(Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


def format_compact_number(value: float) -> str:
    """Format a number as 1.3M / 450K. Halves round away from zero."""
    if value >= 1_000_000:
        formatted = _round_half_up(value / 1_000_000, "0.1")
        if formatted.endswith(".0"):
            formatted = formatted[:-2]
        return f"{formatted}M"
    if value >= 1_000:
        return f"{_round_half_up(value / 1_000, '1')}K"
    return str(value)


def format_currency(
    amount_in_ghs: float,
    currency: str,
    rates: RateTable = DEFAULT_CURRENCY_RATES,
    show_decimals: bool = True,
    show_currency_code: bool = False,
    compact: bool = False
) -> str:
    """
    Format a GHS amount in the given currency.

    Unknown currencies fall back to the bare amount. Compact mode only
    applies once the converted amount reaches 1000.
    """
    info = rates.get(currency)
    if info is None:
        return str(amount_in_ghs)

    converted = convert_currency(amount_in_ghs, currency, rates)
    suffix = f" {currency}" if show_currency_code else ""

    if compact and converted >= 1000:
        return f"{info.symbol}{format_compact_number(converted)}{suffix}"

    decimals = 2 if show_decimals else 0
    return f"{info.symbol}{converted:,.{decimals}f}{suffix}"


def format_price_range(
    min_price: float,
    max_price: float,
    currency: str,
    rates: RateTable = DEFAULT_CURRENCY_RATES
) -> str:
    low = format_currency(min_price, currency, rates, show_decimals=False, compact=True)
    high = format_currency(max_price, currency, rates, show_decimals=False, compact=True)
    return f"{low} - {high}"


def format_price(
    amount_in_ghs: float,
    currency: str = BASE_CURRENCY,
    rates: RateTable = DEFAULT_CURRENCY_RATES
) -> str:
    """Listing price for display; zero means the seller did not publish one."""
    if not amount_in_ghs:
        return PRICE_ON_REQUEST
    return format_currency(amount_in_ghs, currency, rates, show_decimals=False)


def format_listing_price_range(
    min_price: float,
    max_price: float,
    currency: str = BASE_CURRENCY,
    rates: RateTable = DEFAULT_CURRENCY_RATES
) -> str:
    if not min_price and not max_price:
        return PRICE_ON_REQUEST
    if not min_price:
        return f"Up to {format_price(max_price, currency, rates)}"
    if not max_price:
        return f"From {format_price(min_price, currency, rates)}"
    return format_price_range(min_price, max_price, currency, rates)


def parse_currency_input(
    text: str,
    currency: str,
    rates: RateTable = DEFAULT_CURRENCY_RATES
) -> float:
    """
    Parse user-typed money such as "$1,200", "450k" or "1.5M" into GHS.
    Unparsable input yields 0.
    """
    cleaned = _STRIP_PATTERN.sub("", text or "")
    multiplier = Decimal(1)
    if cleaned and cleaned[-1].lower() in _MULTIPLIERS:
        multiplier = _MULTIPLIERS[cleaned[-1].lower()]
        cleaned = cleaned[:-1]

    try:
        value = Decimal(cleaned) * multiplier
    except InvalidOperation:
        return 0
    if not value.is_finite():
        return 0

    return convert_to_ghs(float(value), currency, rates)


def get_available_currencies(rates: RateTable = DEFAULT_CURRENCY_RATES) -> List[CurrencyRate]:
    return list(rates.values())


def get_preferred_currency(country_code: Optional[str] = None) -> str:
    """Pick a display currency from an ISO country code, defaulting to GHS."""
    return COUNTRY_CURRENCIES.get((country_code or "").upper(), BASE_CURRENCY)


def format_diaspora_price(
    price_in_ghs: float,
    primary_currency: str = BASE_CURRENCY,
    rates: RateTable = DEFAULT_CURRENCY_RATES
) -> Dict[str, object]:
    """Primary display price plus USD/GBP/EUR alternatives for buyers abroad."""
    primary = format_currency(
        price_in_ghs, primary_currency, rates, show_decimals=False, compact=True
    )
    alternatives = [
        {
            "currency": code,
            "formatted": format_currency(
                price_in_ghs, code, rates, show_decimals=False, compact=True
            ),
        }
        for code in DIASPORA_CURRENCIES
        if code != primary_currency
    ]
    return {"primary": primary, "alternatives": alternatives}
