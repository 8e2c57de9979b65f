"""Tests for the PriceCharting provider."""

from datetime import datetime, timezone

import httpx
import pytest

from pricefuse.config import Settings
from pricefuse.models import PriceQuery
from pricefuse.providers.pricecharting import PriceChartingProvider
from pricefuse.resilience import ResilientExecutor

BASE = "https://www.pricecharting.com/api"
NOW = datetime(2026, 10, 17, tzinfo=timezone.utc)

PRODUCT = {
    "id": "6910",
    "product-name": "Charizard #4",
    "loose-price": 300.0,
    "cib-price": 450.0,
    "new-price": 900.0,
    "graded-price": 2500.0,
}


@pytest.fixture
def provider(clock, fake_sleep, events):
    return PriceChartingProvider(
        settings=Settings(pricecharting_api_key="secret", historical_threshold_days=7),
        executor=ResilientExecutor(
            name="PriceCharting", max_requests=10, clock=clock, sleep=fake_sleep, sink=events,
        ),
    )


class TestExtractCurrent:
    """Current price columns → observations."""

    def test_all_columns(self, provider):
        observations = provider.extract_current(PRODUCT, PriceQuery(item_name="Charizard"), now=NOW)

        by_price = {o.price: o.condition for o in observations}
        assert by_price == {
            900.0: "Mint",
            2500.0: "Mint",
            450.0: "Near Mint",
            300.0: "Good",
        }
        assert all(o.source == "PriceCharting" for o in observations)
        assert observations[0].listing_url == (
            "https://www.pricecharting.com/game/pokemon-card/Charizard%20%234"
        )

    def test_condition_filter(self, provider):
        query = PriceQuery(item_name="Charizard", condition="Near Mint")

        observations = provider.extract_current(PRODUCT, query, now=NOW)

        assert [o.price for o in observations] == [450.0]

    def test_skips_missing_and_bad_columns(self, provider):
        product = {"product-name": "X", "loose-price": "abc", "cib-price": None, "new-price": 10}

        observations = provider.extract_current(product, PriceQuery(item_name="X"), now=NOW)

        assert [o.price for o in observations] == [10.0]


class TestParseHistory:
    """History points inside the window only."""

    def test_window_cutoff(self, provider):
        data = {
            "product-name": "Charizard #4",
            "prices": [
                {"date": "2026-10-10", "loose-price": 310.0},
                {"date": "2026-08-01", "loose-price": 280.0},
                {"loose-price": 999.0},
                {"date": "bogus", "loose-price": 999.0},
            ],
        }
        query = PriceQuery(item_name="Charizard", window_days=30)

        observations = provider.parse_history(data, query, now=NOW)

        assert [o.price for o in observations] == [310.0]
        assert observations[0].observed_date == datetime(2026, 10, 10, tzinfo=timezone.utc)

    def test_wants_history(self, provider):
        assert provider.wants_history(PriceQuery(item_name="X", window_days=30))
        assert not provider.wants_history(PriceQuery(item_name="X", window_days=7))


class TestFetch:
    """End-to-end fetch."""

    @pytest.mark.asyncio
    async def test_short_window_skips_history(self, provider, respx_mock):
        search = respx_mock.get(f"{BASE}/products").mock(
            return_value=httpx.Response(200, json={"status": "success", "products": [PRODUCT]})
        )

        observations = await provider.fetch_comparables(
            PriceQuery(item_name="Charizard", set_name="Base Set", number="4", window_days=7)
        )

        assert len(observations) == 4
        assert search.calls.last.request.url.params["q"] == "Charizard Base Set #4"

    @pytest.mark.asyncio
    async def test_long_window_merges_history(self, provider, respx_mock):
        respx_mock.get(f"{BASE}/products").mock(
            return_value=httpx.Response(200, json={"status": "success", "products": [PRODUCT]})
        )
        recent = datetime.now(timezone.utc).date().isoformat()
        history = respx_mock.get(f"{BASE}/product").mock(
            return_value=httpx.Response(200, json={
                "status": "success",
                "product-name": "Charizard #4",
                "prices": [{"date": recent, "loose-price": 305.0}],
            })
        )

        observations = await provider.fetch_comparables(
            PriceQuery(item_name="Charizard", window_days=90)
        )

        assert len(observations) == 5
        assert 305.0 in [o.price for o in observations]
        assert history.calls.last.request.url.params["id"] == "6910"

    @pytest.mark.asyncio
    async def test_history_failure_keeps_current_prices(self, provider, respx_mock):
        respx_mock.get(f"{BASE}/products").mock(
            return_value=httpx.Response(200, json={"status": "success", "products": [PRODUCT]})
        )
        respx_mock.get(f"{BASE}/product").mock(
            return_value=httpx.Response(500, text="boom")
        )

        observations = await provider.fetch_comparables(
            PriceQuery(item_name="Charizard", window_days=90)
        )

        assert len(observations) == 4
        assert provider.status()["failure_count"] == 0
