from httpx import AsyncClient

from app.models.exam_model import ExamModel
from app.models.sub_category_model import SubCategoryModel
from app.models.track_model import TrackModel

SCOPE = "WAEC/Mathematics/Weekly/notes"
WEEK_URL = f"/api/content/weeks/{SCOPE}"

WEEK_ONE = {
    "contents": [
        {"name": "intro", "topic": "Algebra", "orderIndex": 1},
        {
            "name": "shapes",
            "topic": "geometry",
            "orderIndex": 2,
            "metadata": {"level": "basic"},
        },
    ]
}


async def upload_week_one(client: AsyncClient, headers) -> dict:
    response = await client.post(f"{WEEK_URL}/1", json=WEEK_ONE, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_upload_week_stamps_period(client: AsyncClient, catalog, admin_headers):
    data = await upload_week_one(client, admin_headers)

    assert data["periodType"] == "weeks"
    assert data["period"] == "1"
    assert data["replaced"] is False
    assert data["result"]["success"] is True
    assert [item["name"] for item in data["result"]["created"]] == [
        "week1_intro",
        "week1_shapes",
    ]

    items = (await client.get(f"/api/content/period/{SCOPE}/1")).json()
    assert [item["displayName"] for item in items] == ["Week 1 - intro", "Week 1 - shapes"]
    assert [item["orderIndex"] for item in items] == [1001, 1002]
    assert items[0]["topicId"] == catalog.algebra.id
    assert items[1]["topicId"] == catalog.geometry.id
    assert items[1]["metadata"] == {"level": "basic", "week": 1, "weekLabel": "Week 1"}


async def test_populated_week_needs_force(client: AsyncClient, catalog, admin_headers):
    await upload_week_one(client, admin_headers)

    conflict = await client.post(f"{WEEK_URL}/1", json=WEEK_ONE, headers=admin_headers)
    assert conflict.status_code == 409
    assert conflict.json()["details"] == {"existingCount": 2}

    forced = await client.post(
        f"{WEEK_URL}/1",
        params={"force": "true"},
        json={"contents": [{"name": "recap", "topic": "Algebra"}]},
        headers=admin_headers,
    )
    assert forced.status_code == 201
    assert forced.json()["replaced"] is True
    assert forced.json()["replacedCount"] == 2

    items = (await client.get(f"/api/content/period/{SCOPE}/1")).json()
    assert [item["name"] for item in items] == ["week1_recap"]


async def test_unknown_topic_writes_nothing(client: AsyncClient, catalog, admin_headers):
    response = await client.post(
        f"{WEEK_URL}/2",
        json={
            "contents": [
                {"name": "ok", "topic": "Algebra"},
                {"name": "stars", "topic": "Astronomy"},
            ]
        },
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["details"]["validation"]["missing_topics"] == ["Astronomy"]
    assert (await client.get(f"/api/content/period/{SCOPE}/2")).json() == []


async def test_period_must_fit_the_track(client: AsyncClient, catalog, admin_headers):
    beyond = await client.post(f"{WEEK_URL}/3", json=WEEK_ONE, headers=admin_headers)
    assert beyond.status_code == 400
    assert "duration" in beyond.json()["message"]

    wrong_type = await client.post(
        f"/api/content/days/{SCOPE}/1", json=WEEK_ONE, headers=admin_headers
    )
    assert wrong_type.status_code == 400

    unknown_type = await client.post(
        f"/api/content/hours/{SCOPE}/1", json=WEEK_ONE, headers=admin_headers
    )
    assert unknown_type.status_code == 400

    not_a_number = await client.post(f"{WEEK_URL}/first", json=WEEK_ONE, headers=admin_headers)
    assert not_a_number.status_code == 400


async def test_unresolved_path_names_the_segment(client: AsyncClient, catalog, admin_headers):
    response = await client.post(
        "/api/content/weeks/WAEC/Biology/Weekly/notes/1", json=WEEK_ONE, headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Subject 'Biology' not found"
    assert response.json()["details"] == {"resource_type": "subject"}


async def test_upload_requires_admin(client: AsyncClient, catalog, user_headers):
    response = await client.post(f"{WEEK_URL}/1", json=WEEK_ONE, headers=user_headers)

    assert response.status_code == 403


async def test_track_periods_and_groups(client: AsyncClient, catalog, admin_headers):
    await upload_week_one(client, admin_headers)

    periods = await client.get(f"/api/content/periods/{SCOPE}")
    assert periods.json() == {
        "trackType": "weeks",
        "duration": 2,
        "periods": [
            {"number": 1, "label": "Week 1", "contentCount": 2},
            {"number": 2, "label": "Week 2", "contentCount": 0},
        ],
    }

    by_week = await client.get(f"/api/content/groups/{SCOPE}", params={"groupBy": "week"})
    groups = by_week.json()["groups"]
    assert [(group["key"], group["label"], group["count"]) for group in groups] == [
        ("1", "Week 1", 2)
    ]

    by_topic = await client.get(f"/api/content/groups/{SCOPE}")
    assert by_topic.json()["groupBy"] == "topic"
    assert [group["label"] for group in by_topic.json()["groups"]] == ["Algebra", "Geometry"]

    invalid = await client.get(f"/api/content/groups/{SCOPE}", params={"groupBy": "decade"})
    assert invalid.status_code == 400


async def test_update_period_in_place(client: AsyncClient, catalog, admin_headers):
    await upload_week_one(client, admin_headers)

    response = await client.put(
        f"{WEEK_URL}/1",
        json={
            "contents": [
                {"name": "intro", "description": "Updated", "topic": "Geometry"},
                {"name": "missing"},
            ]
        },
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["updated"] == 1
    assert response.json()["notFound"] == ["missing"]
    items = (await client.get(f"/api/content/period/{SCOPE}/1")).json()
    intro = next(item for item in items if item["name"] == "week1_intro")
    assert intro["description"] == "Updated"
    assert intro["topicId"] == catalog.geometry.id


async def test_update_period_replace_all(client: AsyncClient, catalog, admin_headers):
    await upload_week_one(client, admin_headers)

    response = await client.put(
        f"{WEEK_URL}/1",
        json={"contents": [{"name": "fresh", "topic": "Algebra"}], "replaceAll": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["replacedCount"] == 2
    items = (await client.get(f"/api/content/period/{SCOPE}/1")).json()
    assert [item["name"] for item in items] == ["week1_fresh"]


async def test_delete_period_needs_confirmation(client: AsyncClient, catalog, admin_headers):
    await upload_week_one(client, admin_headers)

    unconfirmed = await client.delete(f"{WEEK_URL}/1", headers=admin_headers)
    assert unconfirmed.status_code == 400

    deleted = await client.delete(
        f"{WEEK_URL}/1", params={"confirm": "true"}, headers=admin_headers
    )
    assert deleted.json()["deleted"] == 2

    again = await client.delete(
        f"{WEEK_URL}/1", params={"confirm": "true"}, headers=admin_headers
    )
    assert again.status_code == 404


async def test_content_item_crud(client: AsyncClient, db, catalog, admin_headers):
    created = (await upload_week_one(client, admin_headers))["result"]["created"]
    item_id = created[0]["id"]

    fetched = await client.get(f"/api/content/item/{item_id}")
    assert fetched.json()["name"] == "week1_intro"

    updated = await client.put(
        f"/api/content/item/{item_id}",
        json={"description": "Now with notes", "metadata": {"pages": 4}},
        headers=admin_headers,
    )
    assert updated.json()["description"] == "Now with notes"
    assert updated.json()["metadata"] == {"week": 1, "weekLabel": "Week 1", "pages": 4}

    bad_topic = await client.put(
        f"/api/content/item/{item_id}", json={"topicId": 999}, headers=admin_headers
    )
    assert bad_topic.status_code == 400

    deleted = await client.delete(f"/api/content/item/{item_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert (await client.get(f"/api/content/item/{item_id}")).status_code == 404


async def test_filter_and_search(client: AsyncClient, catalog, admin_headers):
    await upload_week_one(client, admin_headers)

    page = await client.get(
        "/api/content/filter",
        params={"examId": catalog.exam.id, "trackId": catalog.weekly.id, "limit": 1},
    )
    assert page.json()["total"] == 2
    assert len(page.json()["content"]) == 1

    grouped = await client.get(
        "/api/content/grouped-by-topics", params={"topicIds": f"{catalog.algebra.id}"}
    )
    assert grouped.json()["totalContent"] == 1

    found = await client.get("/api/content/search", params={"q": "SHAPES"})
    assert [item["name"] for item in found.json()] == ["week1_shapes"]


async def test_bulk_content_is_topic_validated(client: AsyncClient, catalog, admin_headers):
    body = {
        "examId": catalog.exam.id,
        "subjectId": catalog.maths.id,
        "trackId": catalog.weekly.id,
        "subCategoryId": catalog.notes.id,
    }

    rejected = await client.post(
        "/api/content/bulk",
        json={**body, "contents": [{"name": "x", "topic": "Astronomy"}]},
        headers=admin_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["success"] is False
    assert rejected.json()["created"] == []
    assert rejected.json()["validation"]["missingTopics"] == ["Astronomy"]

    accepted = await client.post(
        "/api/content/bulk",
        json={
            **body,
            "contents": [
                {"name": "x", "topicId": catalog.algebra.id},
                {"name": "x", "topicId": catalog.algebra.id},
            ],
        },
        headers=admin_headers,
    )
    assert accepted.json()["success"] is True
    assert len(accepted.json()["created"]) == 1
    assert accepted.json()["duplicates"] == [{"index": 1, "name": "x"}]


async def test_bulk_rejects_track_from_another_exam(
    client: AsyncClient, db, catalog, admin_headers
):
    jamb = ExamModel(name="JAMB", display_name="JAMB")
    db.add(jamb)
    await db.flush()
    jamb_notes = SubCategoryModel(
        exam_id=jamb.id,
        name="notes",
        display_name="Notes",
        route_path="notes",
        content_type="json",
    )
    db.add(jamb_notes)
    await db.flush()
    foreign_track = TrackModel(
        exam_id=jamb.id,
        sub_category_id=jamb_notes.id,
        name="W",
        display_name="W",
        track_type="weeks",
        duration=4,
    )
    db.add(foreign_track)
    await db.commit()

    body = {
        "examId": catalog.exam.id,
        "subjectId": catalog.maths.id,
        "subCategoryId": catalog.notes.id,
        "contents": [{"name": "x", "topicId": catalog.algebra.id}],
    }

    foreign = await client.post(
        "/api/content/bulk",
        json={**body, "trackId": foreign_track.id},
        headers=admin_headers,
    )
    assert foreign.status_code == 404
    assert foreign.json()["details"] == {"resource_type": "track"}

    wrong_channel = await client.post(
        "/api/content/bulk",
        json={**body, "trackId": catalog.year_2023.id},
        headers=admin_headers,
    )
    assert wrong_channel.status_code == 404

    foreign_channel = await client.post(
        "/api/content/bulk",
        json={**body, "subCategoryId": jamb_notes.id, "trackId": foreign_track.id},
        headers=admin_headers,
    )
    assert foreign_channel.status_code == 404
    assert foreign_channel.json()["details"] == {"resource_type": "sub_category"}

    listed = await client.get("/api/content/filter", params={"examId": catalog.exam.id})
    assert listed.json()["total"] == 0


async def test_semester_names_group_apart(client: AsyncClient, db, catalog, admin_headers):
    db.add(
        TrackModel(
            exam_id=catalog.exam.id,
            sub_category_id=catalog.notes.id,
            name="Termly",
            display_name="Termly",
            track_type="semester",
            duration=2,
        )
    )
    await db.commit()
    url = "/api/content/semesters/WAEC/Mathematics/Termly/notes"

    body = {"contents": [{"name": "intro", "topic": "Algebra"}]}

    numbered = await client.post(f"{url}/1", json=body, headers=admin_headers)
    named = await client.post(f"{url}/First Semester", json=body, headers=admin_headers)
    assert numbered.status_code == 201, numbered.text
    assert named.status_code == 201, named.text

    response = await client.get(
        "/api/content/groups/WAEC/Mathematics/Termly/notes", params={"groupBy": "semester"}
    )
    groups = response.json()["groups"]
    assert [(group["key"], group["value"], group["count"]) for group in groups] == [
        ("1", 1, 1),
        ("First Semester", 1, 1),
    ]
