# tests/integration/test_api_flow.py
"""End-to-end HTTP flow against the in-process engine and mock collateral.

The `client` fixture binds the app to a fresh engine driven by a FakeClock,
so the close and resolve windows can be crossed without sleeping.
"""

from httpx import AsyncClient

from src.pm_gateway.auth.jwt_handler import create_access_token
from tests.helpers import CLOSE, E18, OWNER, RESOLVE_AFTER, FakeClock

TRADER = "dave"
SWAP_OUT_100 = 90_909_090_909_090_909_090


def _auth(account: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(account)}"}


async def _fund(client: AsyncClient, account: str, amount: int) -> None:
    resp = await client.post(
        "/api/v1/collateral/faucet", json={"amount": amount}, headers=_auth(account)
    )
    assert resp.status_code == 200
    resp = await client.post(
        "/api/v1/collateral/approve", json={"amount": amount}, headers=_auth(account)
    )
    assert resp.status_code == 200


async def _create(client: AsyncClient, account: str = TRADER, fee_bps: int = 0) -> int:
    resp = await client.post(
        "/api/v1/markets",
        json={
            "question": "Will it rain tomorrow?",
            "close_time": CLOSE.isoformat(),
            "resolve_after": RESOLVE_AFTER.isoformat(),
            "seed_collateral": 1000 * E18,
            "fee_bps": fee_bps,
        },
        headers=_auth(account),
    )
    assert resp.status_code == 201, resp.text
    return int(resp.json()["data"]["id"])


class TestHealthAndAuth:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_trading_requires_auth(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/markets/0/mint", json={"amount": 1})
        assert resp.status_code == 401

    async def test_bad_token_rejected(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/v1/collateral/balance", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401

    async def test_request_id_header(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.headers["X-Request-ID"].startswith("req_")


class TestCollateral:
    async def test_faucet_and_approve(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 5 * E18)
        resp = await client.get("/api/v1/collateral/balance", headers=_auth(TRADER))
        data = resp.json()["data"]
        assert data["balance"] == 5 * E18
        assert data["allowance"] == 5 * E18
        assert data["decimals"] == 18


class TestMarketFlow:
    async def test_create_and_read(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client, fee_bps=30)

        resp = await client.get(f"/api/v1/markets/{mid}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["phase"] == "OPEN"
        assert body["data"]["fee_bps"] == 30
        assert body["data"]["yes_reserve"] == 1000 * E18

        resp = await client.get(f"/api/v1/markets/{mid}/prices")
        assert resp.json()["data"]["yes_price"] == "0.5"

    async def test_mint_swap_balances(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client)

        resp = await client.post(
            f"/api/v1/markets/{mid}/mint", json={"amount": 100 * E18}, headers=_auth(TRADER)
        )
        assert resp.json()["data"]["share_units"] == 100 * E18

        resp = await client.post(
            f"/api/v1/markets/{mid}/swap",
            json={"from_side": "YES", "in_units": 100 * E18},
            headers=_auth(TRADER),
        )
        assert resp.status_code == 200
        swap = resp.json()["data"]
        assert swap["out_units"] == SWAP_OUT_100
        assert swap["yes_reserve"] == 1100 * E18

        resp = await client.get(f"/api/v1/markets/{mid}/balances", headers=_auth(TRADER))
        data = resp.json()["data"]
        assert data["yes_units"] == 0
        assert data["no_units"] == 100 * E18 + SWAP_OUT_100

    async def test_buy_and_redeem_pairs(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client)

        resp = await client.post(
            f"/api/v1/markets/{mid}/buy-no", json={"amount": 100 * E18}, headers=_auth(TRADER)
        )
        assert resp.json()["data"]["total_units"] == 100 * E18 + SWAP_OUT_100

        await client.post(
            f"/api/v1/markets/{mid}/mint", json={"amount": 10 * E18}, headers=_auth(TRADER)
        )
        resp = await client.post(
            f"/api/v1/markets/{mid}/redeem-pairs", json={"units": 10 * E18}, headers=_auth(TRADER)
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["payout"] == 10 * E18
        assert resp.json()["data"]["side"] is None


class TestErrorEnvelope:
    async def test_unknown_market(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets/99")
        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == 3001
        assert body["data"] is None
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_zero_mint(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client)
        resp = await client.post(
            f"/api/v1/markets/{mid}/mint", json={"amount": 0}, headers=_auth(TRADER)
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == 4001

    async def test_insufficient_claims(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client)
        resp = await client.post(
            f"/api/v1/markets/{mid}/swap",
            json={"from_side": "NO", "in_units": E18},
            headers=_auth(TRADER),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001

    async def test_slippage(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client)
        resp = await client.post(
            f"/api/v1/markets/{mid}/buy-yes",
            json={"amount": 100 * E18, "min_out_units": SWAP_OUT_100 + 1},
            headers=_auth(TRADER),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 4010

    async def test_unapproved_create(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/markets",
            json={
                "question": "Q?",
                "close_time": CLOSE.isoformat(),
                "resolve_after": RESOLVE_AFTER.isoformat(),
                "seed_collateral": E18,
            },
            headers=_auth("nobody"),
        )
        assert resp.status_code == 502
        assert resp.json()["code"] == 6001


class TestResolutionFlow:
    async def test_full_lifecycle(self, client: AsyncClient, clock: FakeClock) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client)
        resp = await client.post(
            f"/api/v1/markets/{mid}/buy-yes", json={"amount": 100 * E18}, headers=_auth(TRADER)
        )
        winning = resp.json()["data"]["total_units"]

        # Non-owner cannot resolve.
        resp = await client.post(
            f"/api/v1/admin/markets/{mid}/resolve", json={"outcome": "YES"}, headers=_auth(TRADER)
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1010

        # Owner cannot resolve before resolve_after.
        clock.now = CLOSE
        resp = await client.post(
            f"/api/v1/admin/markets/{mid}/resolve", json={"outcome": "YES"}, headers=_auth(OWNER)
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3005

        # Trading is closed in the meantime.
        resp = await client.post(
            f"/api/v1/markets/{mid}/mint", json={"amount": E18}, headers=_auth(TRADER)
        )
        assert resp.json()["code"] == 3002

        # Redeeming before resolution is rejected.
        resp = await client.post(
            f"/api/v1/markets/{mid}/redeem-winner", json={"units": winning}, headers=_auth(TRADER)
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 3004

        clock.now = RESOLVE_AFTER
        resp = await client.post(
            f"/api/v1/admin/markets/{mid}/resolve", json={"outcome": "YES"}, headers=_auth(OWNER)
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["phase"] == "RESOLVED"
        assert resp.json()["data"]["outcome"] == "YES"

        resp = await client.post(
            f"/api/v1/markets/{mid}/redeem-winner", json={"units": winning}, headers=_auth(TRADER)
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["payout"] == winning

        resp = await client.get("/api/v1/collateral/balance", headers=_auth(TRADER))
        assert resp.json()["data"]["balance"] == 2000 * E18 - 1000 * E18 - 100 * E18 + winning

        resp = await client.get(f"/api/v1/admin/markets/{mid}/stats", headers=_auth(OWNER))
        stats = resp.json()["data"]
        assert stats["phase"] == "RESOLVED"
        assert stats["collateral_paid_out"] == winning

        resp = await client.get("/api/v1/admin/invariants", headers=_auth(OWNER))
        assert resp.json()["data"] == {"ok": True, "violations": []}


class TestAdmin:
    async def test_stats_and_audit_owner_only(self, client: AsyncClient) -> None:
        await _fund(client, TRADER, 2000 * E18)
        mid = await _create(client)

        resp = await client.get(f"/api/v1/admin/markets/{mid}/stats", headers=_auth(TRADER))
        assert resp.status_code == 403
        assert resp.json()["code"] == 1010

        resp = await client.get("/api/v1/admin/invariants", headers=_auth(TRADER))
        assert resp.status_code == 403

        resp = await client.get(f"/api/v1/admin/markets/{mid}/stats", headers=_auth(OWNER))
        assert resp.status_code == 200
        assert resp.json()["data"]["holders"] == 0

    async def test_fee_recipient(self, client: AsyncClient) -> None:
        resp = await client.put(
            "/api/v1/admin/fee-recipient", json={"recipient": "treasury"}, headers=_auth(OWNER)
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {"fee_recipient": "treasury"}

        resp = await client.put(
            "/api/v1/admin/fee-recipient", json={"recipient": "me"}, headers=_auth(TRADER)
        )
        assert resp.status_code == 403

    async def test_upstream_request_id_reused(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets/5", headers={"X-Request-ID": "req_upstream01"})
        assert resp.headers["X-Request-ID"] == "req_upstream01"
        assert resp.json()["request_id"] == "req_upstream01"
