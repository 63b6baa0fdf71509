"""HTTP tests for the admin router through the FastAPI app.

Repositories are in-memory; the DB session dependency is overridden.
"""

from unittest.mock import AsyncMock

import pytest

from src.main import app
from src.pm_admin.api import router as admin_router
from src.pm_common.database import get_db_session
from src.pm_common.enums import PoolKey
from src.pm_gateway.auth.jwt_handler import create_admin_token
from src.pm_ledger.application.service import LedgerApplicationService
from src.pm_settlement.application.service import ResolutionApplicationService
from src.pm_settlement.domain.config import SettlementConfig
from src.pm_treasury.application.service import TreasuryApplicationService

M = 1_000_000


@pytest.fixture(autouse=True)
def wired(monkeypatch, prediction_repo, ledger_repo, pool_repo):
    async def _session():
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _session
    monkeypatch.setattr(
        admin_router,
        "_resolution_service",
        ResolutionApplicationService(
            SettlementConfig(),
            prediction_repo=prediction_repo,
            ledger_repo=ledger_repo,
            pool_repo=pool_repo,
        ),
    )
    monkeypatch.setattr(
        admin_router, "_treasury_service", TreasuryApplicationService(repo=pool_repo)
    )
    monkeypatch.setattr(
        admin_router, "_ledger_service", LedgerApplicationService(repo=ledger_repo)
    )
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_admin_token('ops')}"}


@pytest.fixture
def market(prediction_repo, make_prediction, make_bet):
    prediction_repo.add(
        make_prediction(pools=[700 * M, 300 * M]),
        [make_bet("b1", "alice", "YES", 700 * M), make_bet("b2", "bob", "NO", 300 * M)],
    )


class TestAuth:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client) -> None:
        resp = await client.get("/api/v1/admin/treasury/pools")
        assert resp.status_code == 401
        assert resp.json()["code"] == 1003

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, client) -> None:
        resp = await client.get(
            "/api/v1/admin/treasury/pools", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401


class TestResolveEndpoint:
    @pytest.mark.asyncio
    async def test_resolve_by_index(self, client, auth, market) -> None:
        resp = await client.post(
            "/api/v1/admin/predictions/pred-1/resolve",
            json={"winning_option_index": 0},
            headers=auth,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["winning_option"] == "YES"
        assert body["data"]["total_payout_micros"] == 970 * M
        assert body["data"]["breakdown"]["platform_fee_micros"] == 30 * M
        assert resp.headers["X-Request-ID"] == body["request_id"]

    @pytest.mark.asyncio
    async def test_resolve_by_label(self, client, auth, market) -> None:
        resp = await client.post(
            "/api/v1/admin/predictions/pred-1/resolve",
            json={"winning_option": "NO"},
            headers=auth,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["winning_option_index"] == 1

    @pytest.mark.asyncio
    async def test_second_resolve_is_409(self, client, auth, market) -> None:
        url = "/api/v1/admin/predictions/pred-1/resolve"
        await client.post(url, json={"winning_option_index": 0}, headers=auth)
        resp = await client.post(url, json={"winning_option_index": 1}, headers=auth)
        assert resp.status_code == 409
        assert resp.json()["code"] == 3002

    @pytest.mark.asyncio
    async def test_unknown_prediction_is_404(self, client, auth) -> None:
        resp = await client.post(
            "/api/v1/admin/predictions/ghost/resolve",
            json={"winning_option_index": 0},
            headers=auth,
        )
        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    @pytest.mark.asyncio
    async def test_out_of_range_is_422(self, client, auth, market) -> None:
        resp = await client.post(
            "/api/v1/admin/predictions/pred-1/resolve",
            json={"winning_option_index": 5},
            headers=auth,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3003

    @pytest.mark.parametrize(
        "payload",
        [{}, {"winning_option_index": 0, "winning_option": "YES"}, {"winning_option_index": -1}],
    )
    @pytest.mark.asyncio
    async def test_bad_body_rejected(self, client, auth, market, payload) -> None:
        resp = await client.post(
            "/api/v1/admin/predictions/pred-1/resolve", json=payload, headers=auth
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_audit_after_resolve(self, client, auth, market) -> None:
        await client.post(
            "/api/v1/admin/predictions/pred-1/resolve",
            json={"winning_option_index": 0},
            headers=auth,
        )
        resp = await client.get("/api/v1/admin/predictions/pred-1/audit", headers=auth)
        assert resp.status_code == 200
        assert resp.json()["data"]["ok"] is True


class TestTreasuryEndpoints:
    @pytest.mark.asyncio
    async def test_pools(self, client, auth, pool_repo) -> None:
        pool_repo.seed(PoolKey.TREASURY, 21 * M)
        resp = await client.get("/api/v1/admin/treasury/pools", headers=auth)
        data = resp.json()["data"]
        assert resp.status_code == 200
        assert len(data["pools"]) == 4
        assert data["total_myst_micros"] == 21 * M
        assert data["legacy_alias"]["in_sync"] is True

    @pytest.mark.asyncio
    async def test_transfer(self, client, auth, pool_repo) -> None:
        pool_repo.seed(PoolKey.TREASURY, 10 * M)
        resp = await client.post(
            "/api/v1/admin/treasury/transfer",
            json={"from_pool": "treasury", "to_pool": "wheel", "amount_micros": 4 * M},
            headers=auth,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["new_from_balance_micros"] == 6 * M
        assert data["new_to_balance_micros"] == 4 * M
        assert data["message"] == "Transferred 4.00 MYST from treasury to wheel"

    @pytest.mark.asyncio
    async def test_transfer_insufficient_is_422(self, client, auth) -> None:
        resp = await client.post(
            "/api/v1/admin/treasury/transfer",
            json={"from_pool": "referral", "to_pool": "treasury", "amount_micros": 1},
            headers=auth,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001

    @pytest.mark.asyncio
    async def test_transfer_from_alias_is_422(self, client, auth) -> None:
        resp = await client.post(
            "/api/v1/admin/treasury/transfer",
            json={"from_pool": "main_pool", "to_pool": "treasury", "amount_micros": 1},
            headers=auth,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2002

    @pytest.mark.asyncio
    async def test_invariants(self, client, auth) -> None:
        resp = await client.get("/api/v1/admin/treasury/invariants", headers=auth)
        assert resp.status_code == 200
        assert resp.json()["data"] == {"ok": True, "violations": []}


class TestUserMystEndpoint:
    @pytest.mark.asyncio
    async def test_balance_and_items(self, client, auth, ledger_repo) -> None:
        await ledger_repo.insert_transaction(None, "alice", "admin_grant", 2 * M, {})
        resp = await client.get("/api/v1/admin/users/alice/myst", headers=auth)
        data = resp.json()["data"]
        assert resp.status_code == 200
        assert data["balance_micros"] == 2 * M
        assert data["items"][0]["type"] == "admin_grant"

    @pytest.mark.asyncio
    async def test_unknown_type_filter_rejected(self, client, auth) -> None:
        resp = await client.get(
            "/api/v1/admin/users/alice/myst", params={"tx_type": "bogus"}, headers=auth
        )
        assert resp.status_code == 422


@pytest.mark.asyncio
async def test_health(client) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
