from httpx import AsyncClient


async def test_create_and_lookup(client: AsyncClient, catalog, admin_headers):
    response = await client.post(
        "/api/subcategories",
        json={"examId": catalog.exam.id, "name": " Videos ", "contentType": "media"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    created = response.json()
    assert created["name"] == "videos"
    assert created["displayName"] == "Videos"
    assert created["routePath"] == "videos"
    assert created["contentType"] == "media"

    duplicate = await client.post(
        "/api/subcategories",
        json={"examId": catalog.exam.id, "name": "videos"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    listed = await client.get("/api/subcategories", params={"examId": catalog.exam.id})
    assert [item["name"] for item in listed.json()] == ["videos", "pastquestions", "notes"]

    count = await client.get("/api/subcategories/count", params={"examId": catalog.exam.id})
    assert count.json() == {"count": 3}

    by_route = await client.get("/api/subcategories/route/videos")
    assert [item["id"] for item in by_route.json()] == [created["id"]]

    by_name = await client.get("/api/subcategories/name/NOTES")
    assert [item["id"] for item in by_name.json()] == [catalog.notes.id]

    searched = await client.get("/api/subcategories/search", params={"q": "past"})
    assert [item["name"] for item in searched.json()] == ["pastquestions"]

    fetched = await client.get(f"/api/subcategories/{created['id']}")
    assert fetched.json()["name"] == "videos"


async def test_create_for_unknown_exam(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/subcategories", json={"examId": 42, "name": "notes"}, headers=admin_headers
    )

    assert response.status_code == 404


async def test_update_toggle_and_delete(client: AsyncClient, catalog, admin_headers):
    url = f"/api/subcategories/{catalog.notes.id}"

    updated = await client.put(
        url, json={"displayName": "Study Notes", "contentType": "media"}, headers=admin_headers
    )
    assert updated.json()["displayName"] == "Study Notes"
    assert updated.json()["contentType"] == "media"

    toggled = await client.put(f"{url}/toggle-status", headers=admin_headers)
    assert toggled.json()["isActive"] is False

    hidden = await client.get("/api/subcategories", params={"examId": catalog.exam.id})
    assert [item["name"] for item in hidden.json()] == ["pastquestions"]

    everything = await client.get(
        "/api/subcategories",
        params={"examId": catalog.exam.id, "includeInactive": "true"},
    )
    assert len(everything.json()) == 2

    await client.put(f"{url}/toggle-status", headers=admin_headers)
    deleted = await client.delete(url, headers=admin_headers)
    assert deleted.json()["isActive"] is False


async def test_reorder(client: AsyncClient, catalog, admin_headers):
    response = await client.put(
        "/api/subcategories/reorder",
        json={
            "items": [
                {"id": catalog.notes.id, "orderIndex": 1},
                {"id": catalog.past.id, "orderIndex": 5},
            ]
        },
        headers=admin_headers,
    )
    assert [item["name"] for item in response.json()] == ["notes", "pastquestions"]

    missing = await client.put(
        "/api/subcategories/reorder",
        json={"items": [{"id": 999, "orderIndex": 1}]},
        headers=admin_headers,
    )
    assert missing.status_code == 404


async def test_seed_defaults_skips_existing(client: AsyncClient, catalog, admin_headers):
    response = await client.post(
        f"/api/subcategories/exam/{catalog.exam.id}/seed-defaults", headers=admin_headers
    )

    data = response.json()
    assert [item["name"] for item in data["created"]] == ["videos"]
    assert {item["name"] for item in data["duplicates"]} == {"pastquestions", "notes"}


async def test_bulk_create(client: AsyncClient, catalog, admin_headers):
    response = await client.post(
        "/api/subcategories/bulk",
        params={"examId": catalog.exam.id},
        json={
            "items": [
                {"name": "Syllabus", "displayName": "Syllabus", "routePath": "syllabus"},
                {"name": "audio", "displayName": "Audio"},
            ]
        },
        headers=admin_headers,
    )

    data = response.json()
    assert [item["name"] for item in data["created"]] == ["syllabus"]
    assert data["errors"][0]["index"] == 1
