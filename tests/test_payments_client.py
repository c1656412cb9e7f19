import json
from decimal import Decimal

import httpx
import pytest

from src.modules.payments.client import FeeSplitClient, FeeSplitError


@pytest.mark.asyncio
async def test_fee_split_posts_amount_and_bearer_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, json={"status": "queued"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://payments.test") as client:
        fee_client = FeeSplitClient(base_url="https://payments.test", api_key="secret", client=client)
        await fee_client.process_fee_split("01HAPPOINTMENT0000000000000", Decimal("150.00"))

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/fee-splits"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"appointmentId": "01HAPPOINTMENT0000000000000", "amount": "150.00"}


@pytest.mark.asyncio
async def test_fee_split_non_2xx_raises():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "ledger offline"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://payments.test") as client:
        with pytest.raises(FeeSplitError) as excinfo:
            await FeeSplitClient(base_url="https://payments.test", client=client).process_fee_split("a", Decimal("1"))

    assert "500" in str(excinfo.value)


@pytest.mark.asyncio
async def test_fee_split_network_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://payments.test") as client:
        with pytest.raises(FeeSplitError):
            await FeeSplitClient(base_url="https://payments.test", client=client).process_fee_split("a", Decimal("1"))


@pytest.mark.asyncio
async def test_fee_split_timeout_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://payments.test") as client:
        with pytest.raises(FeeSplitError) as excinfo:
            await FeeSplitClient(base_url="https://payments.test", timeout=0.5, client=client).process_fee_split(
                "a", Decimal("1")
            )

    assert "0.5" in str(excinfo.value)


@pytest.mark.asyncio
async def test_unconfigured_client_skips_call():
    fee_client = FeeSplitClient(base_url="")
    assert fee_client.is_configured is False
    await fee_client.process_fee_split("a", Decimal("10"))


@pytest.mark.asyncio
async def test_malformed_base_url_raises_fee_split_error():
    fee_client = FeeSplitClient(base_url="http://payments:notaport")
    with pytest.raises(FeeSplitError, match="Invalid payment service URL"):
        await fee_client.process_fee_split("a", Decimal("1"))
