"""Integration tests for registration, login and the owner-scoped ledger API."""
from decimal import Decimal

import pytest
from httpx import AsyncClient

from betlogic.security import TokenService


async def register_and_login(client: AsyncClient, mailer, email: str, password: str = "secret123") -> dict:
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": password, "firstName": "Ada", "lastName": "Lovelace"},
    )
    assert response.status_code == 200
    token = mailer.last_token("verify", email)
    assert (await client.get(f"/auth/verify/{token}")).status_code == 200

    login = await client.post("/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200
    return {"Authorization": f"Bearer {login.json()['token']}"}


@pytest.mark.asyncio
async def test_register_verify_login_and_transfer(client: AsyncClient, mailer) -> None:
    """A user can register, verify, log in, open accounts and move money."""

    register_payload = {
        "email": "owner@example.com",
        "password": "secret123",
        "firstName": "Ada",
    }
    response = await client.post("/auth/register", json=register_payload)
    assert response.status_code == 200
    user_data = response.json()["user"]
    assert user_data["email"] == "owner@example.com"
    assert user_data["status"] == "pendingVerification"
    assert user_data["role"] == "user"
    assert "password_hash" not in user_data

    early = await client.post("/auth/login", json=register_payload)
    assert early.status_code == 403

    token = mailer.last_token("verify", "owner@example.com")
    verify = await client.get(f"/auth/verify/{token}")
    assert verify.status_code == 200

    login_response = await client.post("/auth/login", json=register_payload)
    assert login_response.status_code == 200
    body = login_response.json()
    assert body["role"] == "user"
    assert body["userId"] == user_data["id"]
    headers = {"Authorization": f"Bearer {body['token']}"}

    checking = await client.post("/finances/accounts", json={"name": "Checking"}, headers=headers)
    assert checking.status_code == 200
    checking_data = checking.json()["account"]
    assert Decimal(str(checking_data["balance"])) == Decimal("0.00")

    savings = await client.post("/finances/accounts", json={"name": "Savings"}, headers=headers)
    savings_id = savings.json()["account"]["id"]

    transfer = await client.post(
        "/finances/transactions",
        json={
            "from_account": checking_data["id"],
            "to_account": savings_id,
            "amount": "50.00",
            "status": "Confirmed",
        },
        headers=headers,
    )
    assert transfer.status_code == 200
    assert transfer.json()["transaction"]["status"] == "Confirmed"

    accounts = (await client.get("/finances/accounts", headers=headers)).json()
    balances = {a["name"]: Decimal(str(a["balance"])) for a in accounts}
    assert balances == {"Checking": Decimal("-50.00"), "Savings": Decimal("50.00")}

    transactions = (await client.get("/finances/transactions", headers=headers)).json()
    assert len(transactions) == 1
    assert transactions[0]["type"] == "Deposit"


@pytest.mark.asyncio
async def test_register_validation(client: AsyncClient, mailer) -> None:
    missing = await client.post("/auth/register", json={"email": "a@example.com"})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing email or password"}

    first = await client.post("/auth/register", json={"email": "a@example.com", "password": "x1"})
    assert first.status_code == 200
    duplicate = await client.post("/auth/register", json={"email": "A@example.com", "password": "x2"})
    assert duplicate.status_code == 400

    malformed = await client.post("/auth/register", json={"email": "not-an-email", "password": "x"})
    assert malformed.status_code == 400
    assert "error" in malformed.json()


@pytest.mark.asyncio
async def test_verify_is_idempotent_and_rejects_unknown_tokens(client: AsyncClient, mailer) -> None:
    await client.post("/auth/register", json={"email": "v@example.com", "password": "pw"})
    token = mailer.last_token("verify", "v@example.com")

    assert (await client.get(f"/auth/verify/{token}")).status_code == 200
    again = await client.get(f"/auth/verify/{token}")
    assert again.status_code == 200
    assert again.json()["message"] == "Account already verified."

    unknown = await client.get("/auth/verify/nope")
    assert unknown.status_code == 400


@pytest.mark.asyncio
async def test_bad_credentials(client: AsyncClient, mailer) -> None:
    await register_and_login(client, mailer, "c@example.com")

    wrong = await client.post("/auth/login", json={"email": "c@example.com", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Invalid credentials"}

    nobody = await client.post("/auth/login", json={"email": "x@example.com", "password": "nope"})
    assert nobody.status_code == 401


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client: AsyncClient, mailer) -> None:
    await register_and_login(client, mailer, "r@example.com", "old-password")

    unknown = await client.post("/auth/forgot", json={"email": "ghost@example.com"})
    known = await client.post("/auth/forgot", json={"email": "r@example.com"})
    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()

    token = mailer.last_token("reset", "r@example.com")
    bad = await client.post("/auth/reset", json={"token": "bogus", "newPassword": "x"})
    assert bad.status_code == 400

    reset = await client.post("/auth/reset", json={"token": token, "newPassword": "new-password"})
    assert reset.status_code == 200
    reused = await client.post("/auth/reset", json={"token": token, "newPassword": "other"})
    assert reused.status_code == 400

    old = await client.post("/auth/login", json={"email": "r@example.com", "password": "old-password"})
    new = await client.post("/auth/login", json={"email": "r@example.com", "password": "new-password"})
    assert old.status_code == 401
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_missing_expired_and_tampered_tokens_are_rejected(client: AsyncClient, make_user) -> None:
    user, headers = await make_user()

    assert (await client.get("/finances/accounts")).status_code == 401

    expired, _ = TokenService("test-secret", expires_minutes=-5).issue(user.id, "user")
    response = await client.get("/finances/accounts", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired token"}

    forged, _ = TokenService("wrong-secret").issue(user.id, "superadmin")
    response = await client.get("/admin/users", headers={"Authorization": f"Bearer {forged}"})
    assert response.status_code == 401

    assert (await client.get("/finances/accounts", headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_user_cannot_spend_from_someone_elses_account(client: AsyncClient, make_user) -> None:
    _, alice = await make_user()
    _, mallory = await make_user()
    victim = (await client.post("/finances/accounts", json={"name": "Main"}, headers=alice)).json()
    own = (await client.post("/finances/accounts", json={"name": "Mine"}, headers=mallory)).json()

    response = await client.post(
        "/finances/transactions",
        json={
            "from_account": victim["account"]["id"],
            "to_account": own["account"]["id"],
            "amount": 10,
            "status": "Confirmed",
        },
        headers=mallory,
    )
    assert response.status_code == 403

    mine = (await client.get("/finances/accounts", headers=alice)).json()
    assert Decimal(str(mine[0]["balance"])) == Decimal("0.00")


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, "abc", "1.005", None])
async def test_invalid_amounts_are_rejected(client: AsyncClient, make_user, amount) -> None:
    _, headers = await make_user()
    a = (await client.post("/finances/accounts", json={"name": "A"}, headers=headers)).json()
    b = (await client.post("/finances/accounts", json={"name": "B"}, headers=headers)).json()

    response = await client.post(
        "/finances/transactions",
        json={"from_account": a["account"]["id"], "to_account": b["account"]["id"], "amount": amount},
        headers=headers,
    )
    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_profile_read_and_update(client: AsyncClient, make_user) -> None:
    _, headers = await make_user()

    unchanged = await client.patch("/users/me", json={}, headers=headers)
    assert unchanged.json()["message"] == "No changes"

    updated = await client.patch("/users/me", json={"phone": "555-0100"}, headers=headers)
    assert updated.status_code == 200
    me = (await client.get("/users/me", headers=headers)).json()
    assert me["phone"] == "555-0100"


@pytest.mark.asyncio
async def test_health_and_ping(client: AsyncClient) -> None:
    assert (await client.get("/health")).json() == {"status": "ok"}
    ping = await client.get("/api/ping")
    assert ping.status_code == 200
    assert ping.json()["message"] == "pong"


@pytest.mark.asyncio
async def test_unknown_routes_and_methods_use_the_error_body(client: AsyncClient) -> None:
    missing = await client.get("/no/such/route")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Not Found"}

    wrong_method = await client.delete("/health")
    assert wrong_method.status_code == 405
    assert wrong_method.json() == {"error": "Method Not Allowed"}


@pytest.mark.asyncio
async def test_issued_tokens_follow_role_and_status_changes(client: AsyncClient, make_user) -> None:
    """Demotion and deactivation apply to tokens that were issued earlier."""

    target, headers = await make_user("admin")
    _, boss = await make_user("superadmin")
    assert (await client.get("/admin/users", headers=headers)).status_code == 200

    demoted = await client.post(
        "/admin/users/promote", json={"userId": target.id, "newRole": "user"}, headers=boss
    )
    assert demoted.status_code == 200
    assert (await client.get("/admin/users", headers=headers)).status_code == 403

    deactivated = await client.post(
        "/admin/users/deactivate", json={"userId": target.id}, headers=boss
    )
    assert deactivated.status_code == 200
    response = await client.get("/finances/accounts", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Inactive or missing user"}


@pytest.mark.asyncio
async def test_token_for_unknown_user_is_rejected(client: AsyncClient) -> None:
    orphan, _ = TokenService("test-secret").issue(9999, "superadmin")

    response = await client.get("/admin/users", headers={"Authorization": f"Bearer {orphan}"})

    assert response.status_code == 401
