"""
Currency display endpoints backed by live rates with per-currency fallback.
"""

from fastapi import APIRouter, Depends, Query

from app.services.currency import CurrencyRateProvider
from app.schemas.currency import (
    ConversionResponse,
    CurrencyRatesResponse,
    DiasporaAlternative,
    FormattedPriceResponse,
    PreferredCurrencyResponse
)
from app.schemas.error import ERROR_RESPONSES
from app.utils.currency import (
    BASE_CURRENCY,
    convert_currency,
    convert_to_ghs,
    format_currency,
    format_diaspora_price,
    get_available_currencies,
    get_preferred_currency
)
from app.utils.dependencies import get_rate_provider


router = APIRouter(prefix="/currency", tags=["Currency"])


@router.get("/rates", response_model=CurrencyRatesResponse, summary="Exchange rates from GHS")
async def get_rates(
    refresh: bool = Query(False, description="Bypass the rate cache"),
    provider: CurrencyRateProvider = Depends(get_rate_provider)
) -> CurrencyRatesResponse:
    rates = await provider.get_rates(force_refresh=refresh)
    return CurrencyRatesResponse(
        base=BASE_CURRENCY,
        source=provider.source,
        rates=get_available_currencies(rates)
    )


@router.get(
    "/convert",
    response_model=ConversionResponse,
    summary="Convert between supported currencies",
    responses={400: ERROR_RESPONSES[400]}
)
async def convert(
    amount: float = Query(..., ge=0),
    from_currency: str = Query(BASE_CURRENCY, min_length=3, max_length=3),
    to_currency: str = Query(..., min_length=3, max_length=3),
    provider: CurrencyRateProvider = Depends(get_rate_provider)
) -> ConversionResponse:
    rates = await provider.get_rates()
    from_currency, to_currency = from_currency.upper(), to_currency.upper()

    amount_in_ghs = convert_to_ghs(amount, from_currency, rates)
    return ConversionResponse(
        amount=amount,
        from_currency=from_currency,
        to_currency=to_currency,
        converted=round(convert_currency(amount_in_ghs, to_currency, rates), 2),
        formatted=format_currency(amount_in_ghs, to_currency, rates)
    )


@router.get("/format", response_model=FormattedPriceResponse, summary="Format a GHS amount for display")
async def format_amount(
    amount: float = Query(..., ge=0, description="Amount in GHS"),
    currency: str = Query(BASE_CURRENCY, min_length=3, max_length=3),
    show_decimals: bool = Query(True),
    show_currency_code: bool = Query(False),
    compact: bool = Query(False),
    provider: CurrencyRateProvider = Depends(get_rate_provider)
) -> FormattedPriceResponse:
    rates = await provider.get_rates()
    currency = currency.upper()

    diaspora = format_diaspora_price(amount, currency, rates)
    return FormattedPriceResponse(
        amount_in_ghs=amount,
        currency=currency,
        formatted=format_currency(
            amount,
            currency,
            rates,
            show_decimals=show_decimals,
            show_currency_code=show_currency_code,
            compact=compact
        ),
        alternatives=[DiasporaAlternative(**alt) for alt in diaspora["alternatives"]]
    )


@router.get("/preferred", response_model=PreferredCurrencyResponse, summary="Display currency for a country")
async def preferred_currency(
    country_code: str = Query(..., min_length=2, max_length=2, description="ISO 3166 alpha-2 code")
) -> PreferredCurrencyResponse:
    return PreferredCurrencyResponse(
        country_code=country_code.upper(),
        currency=get_preferred_currency(country_code)
    )
