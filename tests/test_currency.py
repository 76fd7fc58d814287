"""
Tests for currency conversion, display formatting and the live rate provider.
"""

import asyncio
import pytest
import httpx
from httpx import AsyncClient
from fastapi import status

from app.services.currency import CurrencyRateProvider
from app.utils.currency import (
    DEFAULT_CURRENCY_RATES,
    PRICE_ON_REQUEST,
    convert_currency,
    convert_to_ghs,
    format_compact_number,
    format_currency,
    format_diaspora_price,
    format_listing_price_range,
    format_price,
    format_price_range,
    get_available_currencies,
    get_preferred_currency,
    parse_currency_input,
)
from app.utils.exceptions import CurrencyError

RATES_URL = "https://rates.test/v4/latest/GHS"


def provider_for(handler, ttl_seconds: int = 3600) -> CurrencyRateProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CurrencyRateProvider(RATES_URL, ttl_seconds=ttl_seconds, client=client)


class TestConversion:

    def test_convert_from_ghs(self):
        assert convert_currency(1000, "GHS") == 1000
        assert convert_currency(1000, "GBP") == pytest.approx(49)

    def test_convert_to_ghs(self):
        assert convert_to_ghs(62, "USD") == pytest.approx(1000)
        assert convert_to_ghs(250, "GHS") == 250

    def test_unknown_currency(self):
        with pytest.raises(CurrencyError, match="JPY"):
            convert_currency(100, "JPY")

    def test_available_currencies(self):
        codes = [rate.code for rate in get_available_currencies()]
        assert codes == ["GHS", "USD", "GBP", "EUR"]

    @pytest.mark.parametrize("country,expected", [
        ("GH", "GHS"), ("us", "USD"), ("GB", "GBP"), ("UK", "GBP"), ("de", "EUR"), ("NG", "GHS"), (None, "GHS"),
    ])
    def test_preferred_currency(self, country, expected):
        assert get_preferred_currency(country) == expected


class TestFormatting:

    def test_format_currency_defaults(self):
        assert format_currency(1500, "GHS") == "₵1,500.00"
        assert format_currency(1000, "USD") == "$62.00"

    def test_format_currency_options(self):
        assert format_currency(1500, "GHS", show_decimals=False, show_currency_code=True) == "₵1,500 GHS"

    def test_format_compact(self):
        assert format_currency(2_500_000, "GHS", compact=True) == "₵2.5M"
        assert format_currency(2_500_000, "USD", compact=True) == "$155K"
        assert format_currency(2_500, "GHS", compact=True) == "₵3K"
        assert format_currency(500, "GHS", compact=True) == "₵500.00"

    @pytest.mark.parametrize("value,expected", [
        (2_000_000, "2M"), (1_250_000, "1.3M"), (1_240_000, "1.2M"), (450_000, "450K"),
        (1_000, "1K"), (2_500, "3K"), (3_500, "4K"), (1_950_000, "2M"),
    ])
    def test_format_compact_number(self, value, expected):
        assert format_compact_number(value) == expected

    def test_unknown_currency_falls_back_to_amount(self):
        assert format_currency(100, "JPY") == "100"

    def test_format_price(self):
        assert format_price(0) == PRICE_ON_REQUEST
        assert format_price(450_000) == "₵450,000"

    def test_price_ranges(self):
        assert format_price_range(200_000, 1_500_000, "GHS") == "₵200K - ₵1.5M"
        assert format_listing_price_range(0, 0) == PRICE_ON_REQUEST
        assert format_listing_price_range(0, 500_000) == "Up to ₵500,000"
        assert format_listing_price_range(200_000, 0) == "From ₵200,000"

    def test_diaspora_price(self):
        price = format_diaspora_price(1_000_000)

        assert price["primary"] == "₵1M"
        assert price["alternatives"] == [
            {"currency": "USD", "formatted": "$62K"},
            {"currency": "GBP", "formatted": "£49K"},
            {"currency": "EUR", "formatted": "€58K"},
        ]

    def test_diaspora_price_skips_primary_currency(self):
        price = format_diaspora_price(1_000_000, "USD")

        assert price["primary"] == "$62K"
        assert [alt["currency"] for alt in price["alternatives"]] == ["GBP", "EUR"]

    @pytest.mark.parametrize("text,expected", [
        ("₵1,200", 1200),
        ("450k", 450_000),
        ("1.5M", 1_500_000),
        (" 2 000 ", 2000),
        ("abc", 0),
        ("", 0),
    ])
    def test_parse_currency_input(self, text, expected):
        assert parse_currency_input(text, "GHS") == pytest.approx(expected)

    def test_parse_currency_input_converts_to_ghs(self):
        assert parse_currency_input("$62", "USD") == pytest.approx(1000)


class TestCurrencyRateProvider:

    async def test_live_rates_with_per_currency_fallback(self):
        provider = provider_for(lambda request: httpx.Response(200, json={
            "base": "GHS",
            "rates": {"USD": 0.07, "GBP": "n/a", "EUR": 0}
        }))

        rates = await provider.get_rates()

        assert provider.source == "live"
        assert rates["USD"].rate == 0.07
        assert rates["GBP"].rate == DEFAULT_CURRENCY_RATES["GBP"].rate
        assert rates["EUR"].rate == DEFAULT_CURRENCY_RATES["EUR"].rate
        assert rates["GHS"].rate == 1
        assert DEFAULT_CURRENCY_RATES["USD"].rate == 0.062

    @pytest.mark.parametrize("handler", [
        lambda request: httpx.Response(503),
        lambda request: httpx.Response(200, text="not json"),
        lambda request: httpx.Response(200, json=["no", "rates"]),
    ])
    async def test_unusable_source_uses_defaults(self, handler):
        provider = provider_for(handler)

        rates = await provider.get_rates()

        assert provider.source == "default"
        assert rates == DEFAULT_CURRENCY_RATES

    async def test_network_failure_uses_defaults(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = provider_for(handler)

        assert (await provider.get_rates())["USD"].rate == 0.062
        assert provider.source == "default"

    async def test_rates_are_cached(self):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, json={"rates": {"USD": 0.065}})

        provider = provider_for(handler)

        await provider.get_rates()
        await provider.get_rates()
        assert len(calls) == 1
        assert provider.is_fresh

        await provider.get_rates(force_refresh=True)
        assert len(calls) == 2

    async def test_expired_cache_refetches(self):
        calls = []

        def handler(request):
            calls.append(request.url)
            return httpx.Response(200, json={"rates": {"USD": 0.065}})

        provider = provider_for(handler, ttl_seconds=0)

        await provider.get_rates()
        await provider.get_rates()

        assert len(calls) == 2

    async def test_concurrent_callers_share_one_fetch(self):
        calls = []

        async def handler(request):
            calls.append(request.url)
            await asyncio.sleep(0.01)
            return httpx.Response(200, json={"rates": {"USD": 0.065}})

        provider = provider_for(handler)

        results = await asyncio.gather(*(provider.get_rates() for _ in range(5)))

        assert len(calls) == 1
        assert all(rates["USD"].rate == 0.065 for rates in results)


class TestCurrencyEndpoints:
    """The test client's rate source is offline, so default rates apply."""

    async def test_rates(self, client: AsyncClient):
        response = await client.get("/currency/rates")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["base"] == "GHS"
        assert data["source"] == "default"
        assert [rate["code"] for rate in data["rates"]] == ["GHS", "USD", "GBP", "EUR"]

    async def test_convert(self, client: AsyncClient):
        response = await client.get("/currency/convert", params={"amount": 1000, "to_currency": "usd"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["to_currency"] == "USD"
        assert data["converted"] == 62.0
        assert data["formatted"] == "$62.00"

    async def test_convert_into_ghs(self, client: AsyncClient):
        response = await client.get(
            "/currency/convert", params={"amount": 62, "from_currency": "USD", "to_currency": "GHS"}
        )

        assert response.json()["converted"] == 1000.0
        assert response.json()["formatted"] == "₵1,000.00"

    async def test_convert_unknown_currency(self, client: AsyncClient):
        response = await client.get("/currency/convert", params={"amount": 10, "to_currency": "JPY"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_INVALID_FORMAT"

    async def test_format(self, client: AsyncClient):
        response = await client.get("/currency/format", params={"amount": 2_500_000, "compact": "true"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["formatted"] == "₵2.5M"
        assert [alt["currency"] for alt in data["alternatives"]] == ["USD", "GBP", "EUR"]
        assert data["alternatives"][0]["formatted"] == "$155K"

    async def test_preferred(self, client: AsyncClient):
        response = await client.get("/currency/preferred", params={"country_code": "gb"})

        assert response.json() == {"country_code": "GB", "currency": "GBP"}
