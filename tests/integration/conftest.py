"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Requires PostgreSQL with migrations applied and a reachable Redis.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.lp_gateway.auth.jwt_handler import ROLE_ADMIN
from src.main import app
from tests.integration.helpers import bearer


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers() -> dict[str, str]:
    return bearer("ops-integration", role=ROLE_ADMIN)


@pytest_asyncio.fixture(loop_scope="session")
async def live_agent(client: AsyncClient, admin_headers: dict[str, str]) -> str:
    """A fresh LIVE agent on the default preset; no state shared between tests."""
    uid = uuid.uuid4().hex[:6]
    resp = await client.post(
        "/api/v1/agents",
        json={"name": f"Integration {uid}", "symbol": f"I{uid[:4]}"},
        headers=bearer(f"creator-{uid}"),
    )
    assert resp.status_code == 201, resp.text
    agent_id = str(resp.json()["data"]["id"])
    resp = await client.post(f"/api/v1/agents/{agent_id}/activate", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    return agent_id
