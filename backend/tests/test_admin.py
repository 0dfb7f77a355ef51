"""Role checks and administrative operations over HTTP."""
from decimal import Decimal

import pytest
from httpx import AsyncClient

ADMIN_ONLY = [
    ("GET", "/admin/users", None),
    ("PATCH", "/admin/users/1", {"bank_name": "Chase"}),
    ("GET", "/admin/finances", None),
    ("POST", "/admin/finances", {"user_id": 1, "from_account": 1, "to_account": 2, "amount": 1}),
    ("PATCH", "/admin/finances/1", {"status": "Confirmed"}),
    ("GET", "/admin/promotions", None),
    ("POST", "/admin/promotions", {"title": "Promo"}),
    ("PATCH", "/admin/promotions/1", {"title": "Renamed"}),
    ("GET", "/admin/tasks", None),
    ("POST", "/admin/tasks", {"user_id": 1, "title": "Call"}),
    ("GET", "/admin/bets", None),
    ("POST", "/admin/bets", {"user_id": 1, "amount": 10}),
    ("GET", "/finances/overview", None),
    ("POST", "/promotions", {"title": "Promo"}),
    ("PATCH", "/promotions/1", {"title": "Renamed"}),
    ("POST", "/promotions/assign", {"userId": 1, "promotionId": 1}),
]


@pytest.mark.asyncio
@pytest.mark.parametrize(("method", "path", "body"), ADMIN_ONLY)
async def test_user_role_is_denied_on_admin_operations(
    client: AsyncClient, make_user, method, path, body
) -> None:
    _, headers = await make_user("user")

    response = await client.request(method, path, json=body, headers=headers)

    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden: Admins only"}


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["user", "admin"])
async def test_role_and_status_changes_need_superadmin(
    client: AsyncClient, make_user, role
) -> None:
    target, _ = await make_user("user")
    _, headers = await make_user(role)

    promote = await client.post(
        "/admin/users/promote", json={"userId": target.id, "newRole": "admin"}, headers=headers
    )
    deactivate = await client.post(
        "/admin/users/deactivate", json={"userId": target.id}, headers=headers
    )

    assert promote.status_code == 403
    assert deactivate.status_code == 403
    assert deactivate.json() == {"error": "Forbidden: Superadmin only"}


@pytest.mark.asyncio
async def test_superadmin_can_do_everything(client: AsyncClient, make_user) -> None:
    target, _ = await make_user("user")
    _, headers = await make_user("superadmin")

    promoted = await client.post(
        "/admin/users/promote", json={"userId": target.id, "newRole": "admin"}, headers=headers
    )
    assert promoted.status_code == 200
    assert promoted.json()["user"]["role"] == "admin"

    bad_role = await client.post(
        "/admin/users/promote", json={"userId": target.id, "newRole": "owner"}, headers=headers
    )
    assert bad_role.status_code == 400
    missing = await client.post(
        "/admin/users/promote", json={"userId": 9999, "newRole": "admin"}, headers=headers
    )
    assert missing.status_code == 404

    for path in ("/admin/users", "/admin/finances", "/admin/promotions", "/admin/tasks", "/admin/bets"):
        assert (await client.get(path, headers=headers)).status_code == 200


@pytest.mark.asyncio
async def test_deactivated_user_cannot_log_in(client: AsyncClient, make_user) -> None:
    target, _ = await make_user("user", email="gone@example.com")
    _, boss = await make_user("superadmin")

    response = await client.post("/admin/users/deactivate", json={"userId": target.id}, headers=boss)
    assert response.status_code == 200
    assert response.json()["user"]["status"] == "deactivated"

    login = await client.post("/auth/login", json={"email": "gone@example.com", "password": "secret123"})
    assert login.status_code == 403


@pytest.mark.asyncio
async def test_admin_edits_user_details(client: AsyncClient, make_user) -> None:
    target, _ = await make_user("user")
    _, admin = await make_user("admin")

    response = await client.patch(
        f"/admin/users/{target.id}", json={"paypal_email": "pay@example.com"}, headers=admin
    )
    assert response.status_code == 200
    assert response.json()["user"]["paypal_email"] == "pay@example.com"

    missing = await client.patch("/admin/users/9999", json={"bank_name": "x"}, headers=admin)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_admin_confirms_pending_transaction(client: AsyncClient, make_user) -> None:
    owner, owner_headers = await make_user("user")
    _, admin = await make_user("admin")
    a = (await client.post("/finances/accounts", json={"name": "A"}, headers=owner_headers)).json()
    b = (await client.post("/finances/accounts", json={"name": "B"}, headers=owner_headers)).json()

    created = await client.post(
        "/admin/finances",
        json={
            "user_id": owner.id,
            "from_account": a["account"]["id"],
            "to_account": b["account"]["id"],
            "amount": "25.50",
        },
        headers=admin,
    )
    assert created.status_code == 200
    transaction = created.json()["transaction"]
    assert transaction["status"] == "Pending"

    def balances(accounts):
        return {acc["name"]: Decimal(str(acc["balance"])) for acc in accounts}

    before = balances((await client.get("/finances/accounts", headers=owner_headers)).json())
    assert before == {"A": Decimal("0.00"), "B": Decimal("0.00")}

    confirmed = await client.patch(
        f"/admin/finances/{transaction['id']}", json={"status": "Confirmed"}, headers=admin
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["message"] == "Transaction updated by admin"

    after = balances((await client.get("/finances/accounts", headers=owner_headers)).json())
    assert after == {"A": Decimal("-25.50"), "B": Decimal("25.50")}

    amend = await client.patch(
        f"/admin/finances/{transaction['id']}", json={"amount": "99.00"}, headers=admin
    )
    assert amend.status_code == 400

    unknown = await client.patch("/admin/finances/9999", json={"status": "Confirmed"}, headers=admin)
    assert unknown.status_code == 404

    overview = (await client.get("/finances/overview", headers=admin)).json()
    assert Decimal(str(overview["totalDeposits"])) == Decimal("25.50")


@pytest.mark.asyncio
async def test_admin_transaction_requires_fields(client: AsyncClient, make_user) -> None:
    _, admin = await make_user("admin")

    response = await client.post("/admin/finances", json={"amount": 5}, headers=admin)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_promotion_flow_over_http(client: AsyncClient, make_user) -> None:
    user, headers = await make_user("user")
    _, admin = await make_user("admin")

    created = await client.post(
        "/promotions",
        json={
            "title": "Sign-up bonus",
            "sportsbookName": "DraftKings",
            "steps": [
                {"step_number": 1, "title": "Open account"},
                {"step_number": 2, "title": "Deposit"},
                {"step_number": 3, "title": "Place bet"},
            ],
        },
        headers=admin,
    )
    assert created.status_code == 200
    promo_id = created.json()["promotion"]["id"]

    assert (await client.get("/promotions", headers=headers)).json() == []
    hidden = await client.get(f"/promotions/{promo_id}", headers=headers)
    assert hidden.status_code == 403
    gated = await client.post(
        f"/promotions/{promo_id}/progress", json={"completedSteps": [1]}, headers=headers
    )
    assert gated.status_code == 403

    assigned = await client.post(
        "/promotions/assign", json={"userId": user.id, "promotionId": promo_id}, headers=admin
    )
    assert assigned.status_code == 200

    detail = (await client.get(f"/promotions/{promo_id}", headers=headers)).json()
    assert [s["step_number"] for s in detail["steps"]] == [1, 2, 3]

    first = await client.post(
        f"/promotions/{promo_id}/progress", json={"completedSteps": [1, 2]}, headers=headers
    )
    assert first.status_code == 200
    assert first.json()["message"] == "Progress created"
    assert first.json()["progress"]["progress_pct"] == 66

    replay = await client.post(
        f"/promotions/{promo_id}/progress", json={"completedSteps": [2, 1]}, headers=headers
    )
    assert replay.json()["message"] == "Progress updated"
    assert replay.json()["progress"]["started_at"] == first.json()["progress"]["started_at"]

    current = (await client.get(f"/promotions/{promo_id}/progress", headers=headers)).json()
    assert current["completed_steps"] == [1, 2]

    accounts = (await client.get("/finances/accounts", headers=headers)).json()
    assert [a["name"] for a in accounts] == ["DraftKings"]

    archived = await client.patch(
        f"/admin/promotions/{promo_id}", json={"status": "archived"}, headers=admin
    )
    assert archived.json()["promotion"]["status"] == "archived"
    assert (await client.get("/promotions", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_admin_transfers_between_any_users_accounts(client: AsyncClient, make_user) -> None:
    owner, owner_headers = await make_user("user")
    _, admin = await make_user("admin")
    a = (await client.post("/finances/accounts", json={"name": "A"}, headers=owner_headers)).json()
    b = (await client.post("/finances/accounts", json={"name": "B"}, headers=owner_headers)).json()

    response = await client.post(
        "/finances/transactions",
        json={
            "from_account": a["account"]["id"],
            "to_account": b["account"]["id"],
            "amount": "5.00",
            "status": "Confirmed",
        },
        headers=admin,
    )

    assert response.status_code == 200
    assert response.json()["transaction"]["user_id"] == owner.id
    accounts = (await client.get("/finances/accounts", headers=owner_headers)).json()
    balances = {acc["name"]: Decimal(str(acc["balance"])) for acc in accounts}
    assert balances == {"A": Decimal("-5.00"), "B": Decimal("5.00")}


@pytest.mark.asyncio
async def test_user_transactions_with_contact_details(client: AsyncClient, make_user) -> None:
    owner, owner_headers = await make_user("user", email="owner@example.com")
    _, other = await make_user("user")
    _, admin = await make_user("admin")
    a = (await client.post("/finances/accounts", json={"name": "A"}, headers=owner_headers)).json()
    b = (await client.post("/finances/accounts", json={"name": "B"}, headers=owner_headers)).json()
    await client.post(
        "/finances/transactions",
        json={"from_account": a["account"]["id"], "to_account": b["account"]["id"], "amount": 3},
        headers=owner_headers,
    )

    own = await client.get(f"/finances/user/{owner.id}", headers=owner_headers)
    assert own.status_code == 200
    assert own.json()["user"]["email"] == "owner@example.com"
    assert len(own.json()["transactions"]) == 1

    assert (await client.get(f"/finances/user/{owner.id}", headers=admin)).status_code == 200
    assert (await client.get(f"/finances/user/{owner.id}", headers=other)).status_code == 403
    assert (await client.get("/finances/user/9999", headers=admin)).status_code == 404
