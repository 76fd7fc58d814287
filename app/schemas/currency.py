"""
Pydantic schemas for currency endpoints.
"""

from pydantic import BaseModel, Field
from typing import List

from app.utils.currency import CurrencyRate


class CurrencyRatesResponse(BaseModel):
    base: str
    source: str = Field(..., description="'live' when fetched from the rate source, 'default' otherwise")
    rates: List[CurrencyRate]


class ConversionResponse(BaseModel):
    amount: float
    from_currency: str
    to_currency: str
    converted: float
    formatted: str


class DiasporaAlternative(BaseModel):
    currency: str
    formatted: str


class FormattedPriceResponse(BaseModel):
    """Display strings for a GHS amount, with alternatives for buyers abroad."""

    amount_in_ghs: float
    currency: str
    formatted: str
    alternatives: List[DiasporaAlternative] = Field(default_factory=list)


class PreferredCurrencyResponse(BaseModel):
    country_code: str
    currency: str
