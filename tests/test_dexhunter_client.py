"""DexHunter client tests against httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from cardano_token_api.core.errors import UpstreamError
from cardano_token_api.services.dexhunter_client import DexHunterClient
from cardano_token_api.services.price_source import ADA

BASE_URL = "https://dexhunter.test"


def client_for(handler) -> DexHunterClient:
    return DexHunterClient(
        base_url=BASE_URL,
        partner_id="partner-1",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestPools:
    @pytest.mark.asyncio
    async def test_parses_pool_amounts(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/stats/pools/ADA/tok1"
            assert request.headers["X-Partner-Id"] == "partner-1"
            return httpx.Response(200, json=[
                {"dex": "MINSWAP", "token_1_amount": 1000, "token_2_amount": "2000"},
                {"dex": "SUNDAESWAP", "token_1_amount": None, "token_2_amount": 5},
                "garbage",
            ])

        pools = await client_for(handler).get_pools("tok1")

        assert len(pools) == 2
        assert pools[0].dex == "MINSWAP"
        assert pools[0].price == pytest.approx(0.5)
        assert pools[1].is_valid is False

    @pytest.mark.asyncio
    async def test_non_list_answer_is_empty(self) -> None:
        client = client_for(lambda request: httpx.Response(200, json={"error": "nope"}))
        assert await client.get_pools("tok1") == []

    @pytest.mark.asyncio
    async def test_http_error_raises_upstream_error(self) -> None:
        client = client_for(lambda request: httpx.Response(503))
        with pytest.raises(UpstreamError) as excinfo:
            await client.get_pools("tok1")
        assert excinfo.value.source == "dexhunter"
        assert excinfo.value.retryable is True

    @pytest.mark.asyncio
    async def test_timeout_raises_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamError, match="timed out"):
            await client_for(handler).get_pools("tok1")

    @pytest.mark.asyncio
    async def test_invalid_json_raises_upstream_error(self) -> None:
        client = client_for(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(UpstreamError, match="invalid JSON"):
            await client.get_pools("tok1")


class TestAveragePrice:
    @pytest.mark.asyncio
    async def test_token_to_ada_reads_price_ba(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/swap/averagePrice/tok1/ADA"
            return httpx.Response(200, json={"price_ab": 9.0, "price_ba": 0.25})

        assert await client_for(handler).get_fallback_price("tok1", ADA) == pytest.approx(0.25)

    @pytest.mark.asyncio
    async def test_ada_to_token_reads_price_ab(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/swap/averagePrice/ADA/tok1"
            return httpx.Response(200, json={"price_ab": 0.4, "price_ba": 2.5})

        assert await client_for(handler).get_fallback_price(ADA, "tok1") == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_zero_price_is_none(self) -> None:
        client = client_for(lambda request: httpx.Response(200, json={"price_ba": 0}))
        assert await client.get_fallback_price("tok1", ADA) is None


class TestMetadataAndOrders:
    @pytest.mark.asyncio
    async def test_token_metadata(self) -> None:
        client = client_for(lambda request: httpx.Response(200, json={
            "ticker": "SNEK",
            "token_ascii": "Snek",
            "creation_date": "2023-04-20T10:00:00Z",
            "is_verified": True,
        }))

        meta = await client.get_token_metadata("tok1")

        assert meta.ticker == "SNEK"
        assert meta.creation_date.year == 2023
        assert meta.is_verified is True

    @pytest.mark.asyncio
    async def test_metadata_failure_is_none(self) -> None:
        client = client_for(lambda request: httpx.Response(404))
        assert await client.get_token_metadata("tok1") is None

    @pytest.mark.asyncio
    async def test_global_orders_filters_completed(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"orders": [{"token_id_in": "a"}, "junk"]})

        orders = await client_for(handler).get_global_orders(2, 50)

        assert orders == [{"token_id_in": "a"}]
        assert seen["page"] == 2
        assert seen["perPage"] == 50
        assert seen["filters"] == [{"filterType": "STATUS", "values": ["COMPLETE"]}]
