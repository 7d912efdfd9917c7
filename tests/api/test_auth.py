from httpx import AsyncClient

SIGNUP = {
    "name": "Ama Mensah",
    "email": "Ama@Example.com",
    "password": "secret123",
    "country": "Ghana",
    "interest": "WAEC",
}


async def signup(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/api/auth/signup", json={**SIGNUP, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


async def test_signup_creates_user_and_trial(client: AsyncClient):
    data = await signup(client)

    assert data["token"]
    assert data["user"]["email"] == "ama@example.com"
    assert data["user"]["role"] == "user"
    assert "passwordHash" not in data["user"]
    assert data["subscription"]["plan"] == "3days"
    assert data["subscription"]["activationMethod"] == "signup"
    assert data["subscription"]["daysRemaining"] == 3


async def test_signup_twice_is_a_conflict(client: AsyncClient):
    await signup(client)
    response = await client.post(
        "/api/auth/signup", json={**SIGNUP, "email": "ama@example.com"}
    )

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT_ERROR"


async def test_signup_rejects_bad_input(client: AsyncClient):
    response = await client.post(
        "/api/auth/signup", json={**SIGNUP, "email": "not-an-email", "password": "123"}
    )

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    fields = {error["field"] for error in data["details"]["validation_errors"]}
    assert "body -> email" in fields
    assert "body -> password" in fields


async def test_login(client: AsyncClient):
    await signup(client)

    response = await client.post(
        "/api/auth/login", json={"email": "AMA@example.com", "password": "secret123"}
    )
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Ama Mensah"
    assert response.json()["subscription"]["plan"] == "3days"

    response = await client.post(
        "/api/auth/login", json={"email": "ama@example.com", "password": "wrong"}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid credentials"


async def test_verify_token_accepts_both_headers(client: AsyncClient):
    token = (await signup(client))["token"]

    bearer = await client.get(
        "/api/auth/verify-token", headers={"Authorization": f"Bearer {token}"}
    )
    legacy = await client.get("/api/auth/verify-token", headers={"x-auth-token": token})

    assert bearer.status_code == 200
    assert legacy.status_code == 200
    assert bearer.json()["email"] == legacy.json()["email"] == "ama@example.com"


async def test_verify_token_failures(client: AsyncClient):
    missing = await client.get("/api/auth/verify-token")
    assert missing.status_code == 401
    assert missing.json()["code"] == "NO_TOKEN"

    garbage = await client.get(
        "/api/auth/verify-token", headers={"Authorization": "Bearer not.a.token"}
    )
    assert garbage.status_code == 401
    assert garbage.json()["code"] == "INVALID_TOKEN"


async def test_delete_account(client: AsyncClient):
    token = (await signup(client))["token"]
    headers = {"Authorization": f"Bearer {token}"}

    wrong_text = await client.request(
        "DELETE",
        "/api/auth/delete-account",
        json={"password": "secret123", "confirmationText": "yes"},
        headers=headers,
    )
    assert wrong_text.status_code == 400

    wrong_password = await client.request(
        "DELETE",
        "/api/auth/delete-account",
        json={"password": "nope", "confirmationText": "delete my account"},
        headers=headers,
    )
    assert wrong_password.status_code == 400

    response = await client.request(
        "DELETE",
        "/api/auth/delete-account",
        json={"password": "secret123", "confirmationText": "Delete My Account"},
        headers=headers,
    )
    assert response.status_code == 200

    gone = await client.get("/api/auth/verify-token", headers=headers)
    assert gone.status_code == 401
    assert gone.json()["code"] == "USER_NOT_FOUND"
