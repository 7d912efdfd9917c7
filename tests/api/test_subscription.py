from httpx import AsyncClient
from sqlalchemy import select

from app.models.subscription_model import SubscriptionModel


async def test_status_requires_a_subscription(client: AsyncClient, user_headers):
    response = await client.get("/api/subscription/status", headers=user_headers)

    assert response.status_code == 404


async def test_status_deactivates_expired_subscription(
    client: AsyncClient, db, student, user_headers, make_subscription
):
    subscription = await make_subscription(student.id, days_left=-1)

    response = await client.get("/api/subscription/status", headers=user_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Subscription has expired"
    db.expire_all()
    refreshed = await db.get(SubscriptionModel, subscription.id)
    assert refreshed.active is False


async def test_payment_extends_live_subscription(
    client: AsyncClient, student, user_headers, make_subscription
):
    await make_subscription(student.id, days_left=10, plan="3months")

    response = await client.post(
        "/api/subscription/activate/payment",
        json={"plan": "1year", "paymentReference": "PAY-123"},
        headers=user_headers,
    )

    assert response.status_code == 200
    subscription = response.json()["subscription"]
    assert subscription["plan"] == "1year"
    assert subscription["totalDays"] == 91 + 365
    assert subscription["daysRemaining"] == 10 + 365
    assert subscription["activationMethod"] == "payment"


async def test_lower_plan_keeps_current_plan(
    client: AsyncClient, student, user_headers, make_subscription
):
    await make_subscription(student.id, days_left=100, plan="6months")

    response = await client.post(
        "/api/subscription/activate/payment",
        json={"plan": "3months", "paymentReference": "PAY-456"},
        headers=user_headers,
    )

    assert response.status_code == 200
    assert response.json()["subscription"]["plan"] == "6months"


async def test_payment_after_expiry_starts_fresh(
    client: AsyncClient, db, student, user_headers, make_subscription
):
    expired = await make_subscription(student.id, days_left=-2)

    response = await client.post(
        "/api/subscription/activate/payment",
        json={"plan": "3months", "paymentReference": "PAY-789"},
        headers=user_headers,
    )

    assert response.status_code == 200
    subscription = response.json()["subscription"]
    assert subscription["id"] != expired.id
    assert subscription["totalDays"] == 91
    db.expire_all()
    assert (await db.get(SubscriptionModel, expired.id)).active is False


async def test_activation_codes(
    client: AsyncClient, admin_headers, student, user_headers
):
    generated = await client.post(
        "/api/subscription/codes/generate",
        json={"plan": "3months", "count": 2, "batchName": "launch"},
        headers=admin_headers,
    )
    assert generated.status_code == 200
    codes = generated.json()["codes"]
    assert len(codes) == 2
    assert all(len(code["code"]) == 10 for code in codes)

    code = codes[0]["code"]
    spaced = f"{code[:5]}-{code[5:]}".lower()
    activated = await client.post(
        "/api/subscription/activate/code", json={"code": spaced}, headers=user_headers
    )
    assert activated.status_code == 200
    assert activated.json()["subscription"]["activationMethod"] == "code"

    reused = await client.post(
        "/api/subscription/activate/code", json={"code": code}, headers=user_headers
    )
    assert reused.status_code == 409

    unknown = await client.post(
        "/api/subscription/activate/code", json={"code": "ZZZZZZZZZZ"}, headers=user_headers
    )
    assert unknown.status_code == 404

    used = await client.get(
        "/api/subscription/codes",
        params={"batchName": "launch", "isUsed": "true"},
        headers=admin_headers,
    )
    assert [item["code"] for item in used.json()] == [code]
    assert used.json()[0]["usedBy"] == student.id


async def test_code_generation_is_admin_only(client: AsyncClient, user_headers):
    response = await client.post(
        "/api/subscription/codes/generate",
        json={"plan": "3months", "count": 1},
        headers=user_headers,
    )

    assert response.status_code == 403
    assert response.json()["code"] == "AUTHORIZATION_ERROR"


async def test_sweep_deactivates_expired(
    client: AsyncClient, db, student, admin_headers, make_subscription
):
    await make_subscription(student.id, days_left=-1)
    await make_subscription(student.id, days_left=5)

    first = await client.post("/api/subscription/sweep", headers=admin_headers)
    second = await client.post("/api/subscription/sweep", headers=admin_headers)

    assert first.json() == {"modified": 1}
    assert second.json() == {"modified": 0}
    db.expire_all()
    active = await db.execute(
        select(SubscriptionModel).filter(SubscriptionModel.active.is_(True))
    )
    assert len(active.scalars().all()) == 1
