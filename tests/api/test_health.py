from httpx import AsyncClient


async def test_health_check(client: AsyncClient):
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"]["connected"] is True
    assert data["environment"] == "test"
    assert data["uptime"] >= 0


async def test_api_info(client: AsyncClient):
    response = await client.get("/api")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "CentraTutor API"
    assert data["environment"] == "test"


async def test_unknown_route_uses_error_body(client: AsyncClient):
    response = await client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND_ERROR"
    assert "message" in response.json()
