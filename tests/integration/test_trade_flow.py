"""Integration tests for quote → trade → positions → history on a fresh agent.

Requires PostgreSQL with migrations applied and Redis (rate limiting).
"""

import asyncio
import uuid

import pytest
from httpx import AsyncClient

from tests.integration.helpers import bearer

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


def _holder() -> str:
    return f"holder-{uuid.uuid4().hex[:8]}"


async def _trade(
    client: AsyncClient, agent_id: str, holder: str, action: str, amount: float, **extra: float
) -> dict:
    resp = await client.post(
        "/api/v1/trades",
        json={"agent_id": agent_id, "holder_id": holder, "action": action, "amount": amount, **extra},
        headers=bearer(holder),
    )
    return {"status": resp.status_code, **resp.json()}


class TestQuote:
    async def test_buy_quote_matches_execution(self, client: AsyncClient, live_agent: str) -> None:
        quote = await client.post(
            "/api/v1/quote", json={"agent_id": live_agent, "action": "buy", "amount": 100}
        )
        assert quote.status_code == 200
        q = quote.json()["data"]
        assert q["valid"] is True

        holder = _holder()
        trade = await _trade(client, live_agent, holder, "buy", 100)
        assert trade["status"] == 200
        assert trade["data"]["trade"]["tokens_amount"] == pytest.approx(q["shares_out"])

    async def test_sell_quote_without_holder(self, client: AsyncClient, live_agent: str) -> None:
        resp = await client.post(
            "/api/v1/quote", json={"agent_id": live_agent, "action": "sell", "amount": 1}
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["error"] == "HolderRequired"

    async def test_unknown_agent(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/quote", json={"agent_id": "AGT-NOPE", "action": "buy", "amount": 1}
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "AgentNotFound"


class TestTrade:
    async def test_buy_then_sell(self, client: AsyncClient, live_agent: str) -> None:
        holder = _holder()
        buy = await _trade(client, live_agent, holder, "buy", 500)
        assert buy["status"] == 200, buy
        tokens = buy["data"]["trade"]["tokens_amount"]
        assert buy["data"]["trade"]["fee_total"] == pytest.approx(25)

        pos = await client.get(f"/api/v1/positions/{live_agent}/{holder}")
        assert pos.json()["data"]["token_balance"] == pytest.approx(tokens)

        sell = await _trade(client, live_agent, holder, "sell", tokens)
        assert sell["status"] == 200, sell
        assert sell["data"]["trade"]["holder_balance_after"] == pytest.approx(0, abs=1e-9)

        history = await client.get(f"/api/v1/agents/{live_agent}/trades")
        types = [t["trade_type"] for t in history.json()["data"]["items"]]
        assert types[:2] == ["sell", "buy"]

    async def test_slippage_rejected(self, client: AsyncClient, live_agent: str) -> None:
        result = await _trade(client, live_agent, _holder(), "buy", 10, min_out=1e15)
        assert result["status"] == 422
        assert result["error"] == "SlippageExceeded"

    async def test_sell_without_balance(self, client: AsyncClient, live_agent: str) -> None:
        result = await _trade(client, live_agent, _holder(), "sell", 1)
        assert result["status"] == 422
        assert result["error"] in {"InsufficientBalance", "ExceedsCirculatingSupply"}

    async def test_invalid_amount(self, client: AsyncClient, live_agent: str) -> None:
        result = await _trade(client, live_agent, _holder(), "buy", -5)
        assert result["status"] == 422
        assert result["error"] == "InvalidAmount"

    async def test_concurrent_buys_keep_ledger_consistent(
        self, client: AsyncClient, live_agent: str, admin_headers: dict[str, str]
    ) -> None:
        holders = [_holder() for _ in range(5)]
        results = await asyncio.gather(*[
            _trade(client, live_agent, h, "buy", 50 + i) for i, h in enumerate(holders)
        ])
        assert all(r["status"] == 200 for r in results), results

        holders_resp = await client.get(f"/api/v1/agents/{live_agent}/holders")
        total = sum(h["balance"] for h in holders_resp.json()["data"]["items"])
        agent = (await client.get(f"/api/v1/agents/{live_agent}")).json()["data"]
        assert total == pytest.approx(agent["shares_sold"], rel=1e-9)

        report = await client.post("/api/v1/admin/verify-invariants", headers=admin_headers)
        assert report.status_code == 200
        assert not [v for v in report.json()["data"]["violations"] if live_agent in v]
