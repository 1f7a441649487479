"""HTTP Routes - status codes and error envelopes through the FastAPI app.

Tests cover:
    - Borrow/return round trip with money serialized as two-decimal strings
    - Domain errors map to their HTTP status and error code
    - Request validation failures are 400 with field details
    - Wallet endpoints, job listing and manual job runs
"""

from uuid import uuid4


async def _borrow(client, user, item):
    return await client.post(
        "/api/v1/reservations",
        json={"user_id": str(user.id), "item_id": str(item.id)},
    )


async def test_health(client):
    response = await client.get("/api/v1/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_borrow_and_return(client, seed, clock):
    user, wallet = await seed.member("50.00")
    item = await seed.item()

    created = await _borrow(client, user, item)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "ACTIVE"
    assert body["base_fee"] == "3.00"

    balance = await client.get(f"/api/v1/wallets/{wallet.id}")
    assert balance.json()["balance"] == "47.00"

    clock.advance(days=9)
    returned = await client.post(f"/api/v1/reservations/{body['id']}/return")
    assert returned.status_code == 200
    assert returned.json()["status"] == "RETURNED"
    assert returned.json()["late_fee"] == "0.40"


async def test_borrow_limit_is_conflict(client, seed):
    user, _ = await seed.member("50.00")
    for _ in range(3):
        assert (await _borrow(client, user, await seed.item())).status_code == 201

    response = await _borrow(client, user, await seed.item())

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "BORROW_LIMIT_EXCEEDED"


async def test_insufficient_funds_is_402(client, seed):
    user, _ = await seed.member("1.00")
    response = await _borrow(client, user, await seed.item())
    assert response.status_code == 402
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"


async def test_return_unknown_reservation(client):
    response = await client.post(f"/api/v1/reservations/{uuid4()}/return")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESERVATION_NOT_FOUND"


async def test_validation_error(client):
    response = await client.post("/api/v1/reservations", json={"user_id": "nope"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {d["field"] for d in error["details"]}
    assert "body.user_id" in fields
    assert "body.item_id" in fields


async def test_listings(client, seed):
    user, _ = await seed.member()
    item = await seed.item()
    await _borrow(client, user, item)

    by_user = await client.get(f"/api/v1/reservations/user/{user.id}")
    assert len(by_user.json()["reservations"]) == 1
    active = await client.get("/api/v1/reservations", params={"status": "ACTIVE"})
    assert len(active.json()["reservations"]) == 1
    returned = await client.get("/api/v1/reservations", params={"status": "RETURNED"})
    assert returned.json()["reservations"] == []


async def test_wallet_endpoints(client, seed):
    user = await seed.user()

    created = await client.post(
        "/api/v1/wallets", json={"user_id": str(user.id), "initial_balance": "10"},
    )
    assert created.status_code == 201
    wallet_id = created.json()["id"]

    duplicate = await client.post("/api/v1/wallets", json={"user_id": str(user.id)})
    assert duplicate.status_code == 409

    deposit = await client.post(f"/api/v1/wallets/{wallet_id}/deposit", json={"amount": "5.50"})
    assert deposit.json()["balance"] == "15.50"

    overdraw = await client.post(f"/api/v1/wallets/{wallet_id}/withdraw", json={"amount": "20"})
    assert overdraw.status_code == 402

    negative = await client.post(f"/api/v1/wallets/{wallet_id}/deposit", json={"amount": "-1"})
    assert negative.status_code == 400

    by_user = await client.get(f"/api/v1/wallets/user/{user.id}")
    assert by_user.json()["balance"] == "15.50"


async def test_unknown_wallet(client):
    response = await client.get(f"/api/v1/wallets/{uuid4()}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "WALLET_NOT_FOUND"


async def test_admin_due_date_override_then_late_reminder(client, seed, notifier):
    user, _ = await seed.member()
    item = await seed.item()
    reservation_id = (await _borrow(client, user, item)).json()["id"]

    moved = await client.put(
        f"/api/v1/reservations/{reservation_id}/due-date",
        json={"due_date": "2026-02-01T09:00:00"},
    )
    assert moved.status_code == 200

    run = await client.post("/api/v1/jobs/late_reminders/run")
    assert run.status_code == 200
    reports = {r["name"]: r for r in run.json()["reports"]}
    assert reports["promote_overdue"]["applied"] == 1
    assert reports["late_reminders"]["applied"] == 1
    assert len(notifier.of_kind("late")) == 1

    stored = await client.get(f"/api/v1/reservations/{reservation_id}")
    assert stored.json()["status"] == "LATE"
    assert stored.json()["late_reminder_sent"] is True


async def test_list_jobs(client):
    response = await client.get("/api/v1/jobs")
    assert response.status_code == 200
    assert {job["name"] for job in response.json()} == {
        "due_reminders", "late_reminders", "purchase_check",
    }
    assert all(not job["running"] for job in response.json())


async def test_run_unknown_job(client):
    response = await client.post("/api/v1/jobs/nightly/run")
    assert response.status_code == 404


async def test_delete_reservation(client, seed):
    user, _ = await seed.member()
    item = await seed.item()
    reservation_id = (await _borrow(client, user, item)).json()["id"]

    assert (await client.delete(f"/api/v1/reservations/{reservation_id}")).status_code == 204
    assert (await client.delete(f"/api/v1/reservations/{reservation_id}")).status_code == 404
