from httpx import AsyncClient

COURSE = {
    "category": "Coding",
    "year": "2024",
    "subject": "Python Basics",
    "subjectDescription": "Start programming",
    "batches": [
        {
            "batchNumber": 1,
            "batchDescription": "Getting started",
            "topics": ["Variables", "Loops"],
            "contents": [
                {
                    "leadingNumber": 1,
                    "title": "Hello world",
                    "contentUrl": "https://videos.example.com/hello",
                    "contentUrlType": "video",
                },
                {
                    "leadingNumber": 2,
                    "title": "Cheat sheet",
                    "contentUrl": "https://files.example.com/sheet.pdf",
                    "contentUrlType": "pdf",
                },
            ],
        }
    ],
}


async def create_course(client: AsyncClient, headers, **overrides) -> dict:
    response = await client.post(
        "/api/tutorial-skill/skillup", json={**COURSE, **overrides}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_and_fetch(client: AsyncClient, admin_headers):
    course = await create_course(client, admin_headers)

    batch = course["batches"][0]
    assert batch["batchNumber"] == 1
    assert len(batch["id"]) == 32
    assert [content["isRead"] for content in batch["contents"]] == [False, False]

    fetched = await client.get("/api/tutorial-skill/skillup/Coding/2024/Python Basics")
    assert fetched.json()["id"] == course["id"]

    listed = await client.get("/api/tutorial-skill/skillup/Coding/2024")
    assert [item["subject"] for item in listed.json()] == ["Python Basics"]

    duplicate = await client.post(
        "/api/tutorial-skill/skillup", json=COURSE, headers=admin_headers
    )
    assert duplicate.status_code == 409


async def test_batches_and_contents(client: AsyncClient, admin_headers):
    course = await create_course(client, admin_headers)
    base = f"/api/tutorial-skill/skillup/{course['id']}"

    added = await client.post(
        f"{base}/batch",
        json={"batchNumber": 2, "topics": ["Functions"]},
        headers=admin_headers,
    )
    assert added.status_code == 201
    assert [batch["batchNumber"] for batch in added.json()["batches"]] == [1, 2]

    clash = await client.post(
        f"{base}/batch", json={"batchNumber": 2, "topics": ["Again"]}, headers=admin_headers
    )
    assert clash.status_code == 409

    batch_id = added.json()["batches"][1]["id"]
    renamed = await client.put(
        f"{base}/batch/{batch_id}",
        json={"batchDescription": "Functions week"},
        headers=admin_headers,
    )
    assert renamed.json()["batches"][1]["batchDescription"] == "Functions week"

    with_content = await client.post(
        f"{base}/batch/{batch_id}/content",
        json={
            "leadingNumber": 1,
            "title": "Quiz",
            "contentUrl": "https://quiz.example.com/1",
            "contentUrlType": "question",
        },
        headers=admin_headers,
    )
    assert with_content.status_code == 201
    assert [item["title"] for item in with_content.json()["batches"][1]["contents"]] == [
        "Quiz"
    ]

    missing = await client.put(
        f"{base}/batch/nope", json={"batchDescription": "x"}, headers=admin_headers
    )
    assert missing.status_code == 404


async def test_read_status(client: AsyncClient, admin_headers, user_headers):
    course = await create_course(client, admin_headers)
    batch = course["batches"][0]
    content_id = batch["contents"][1]["id"]
    url = (
        f"/api/tutorial-skill/skillup/{course['id']}/batch/{batch['id']}"
        f"/content/{content_id}/read-status"
    )

    response = await client.put(url, json={"isRead": True}, headers=user_headers)
    assert response.status_code == 200
    assert response.json()["id"] == content_id
    assert response.json()["isRead"] is True

    fetched = await client.get("/api/tutorial-skill/skillup/Coding/2024/Python Basics")
    contents = fetched.json()["batches"][0]["contents"]
    assert [content["isRead"] for content in contents] == [False, True]

    anonymous = await client.put(url, json={"isRead": False})
    assert anonymous.status_code == 401


async def test_update_and_delete(client: AsyncClient, admin_headers):
    first = await create_course(client, admin_headers)
    await create_course(client, admin_headers, subject="Data Science")

    clash = await client.put(
        f"/api/tutorial-skill/skillup/{first['id']}",
        json={"subject": "Data Science"},
        headers=admin_headers,
    )
    assert clash.status_code == 409

    renamed = await client.put(
        f"/api/tutorial-skill/skillup/{first['id']}",
        json={"thumbnail": "assets/images/python.png"},
        headers=admin_headers,
    )
    assert renamed.json()["thumbnail"] == "assets/images/python.png"

    deleted = await client.delete(
        f"/api/tutorial-skill/skillup/{first['id']}", headers=admin_headers
    )
    assert deleted.status_code == 200
    gone = await client.get("/api/tutorial-skill/skillup/Coding/2024/Python Basics")
    assert gone.status_code == 404


async def test_tutorial_catalogue(client: AsyncClient, admin_headers):
    await create_course(client, admin_headers)
    await create_course(client, admin_headers, category="Design", subject="Figma")

    data = await client.get("/api/tutorial-skill/SkillUp/data")
    assert data.json()["total"] == 2
    assert data.json()["categories"] == ["All", "Coding", "Design"]
    python = next(item for item in data.json()["items"] if item["title"] == "Python Basics")
    assert python["lessons"] == 2
    assert python["duration"] == "30 min"
    assert python["level"] == "coding"
    assert python["catName"] == "skillup"
    assert python["author"] == "CentraTutor Team"

    design = await client.get(
        "/api/tutorial-skill/SkillUp/content", params={"category": "Design"}
    )
    assert [item["title"] for item in design.json()] == ["Figma"]

    invalid = await client.get("/api/tutorial-skill/Lecture/categories")
    assert invalid.status_code == 400


async def test_skillup_tree_by_catalogue_id(client: AsyncClient, admin_headers):
    course = await create_course(client, admin_headers)

    found = await client.get(f"/api/tutorial-skill/SkillUp/content/{course['id']}")
    assert found.status_code == 200
    assert found.json()["subject"] == "Python Basics"

    missing = await client.get("/api/tutorial-skill/SkillUp/content/not-a-number")
    assert missing.status_code == 404


NIGHT_CLASS = "Jupeb Night Class"
PAST_VIDEOS = "Jupeb Past Question Videos"

LESSON = {
    "id": "nc-001",
    "title": "Organic chemistry revision",
    "description": "Week one of the night class",
    "category": NIGHT_CLASS,
}


async def enable_categories(client: AsyncClient, headers, *names: str) -> None:
    for name in names:
        response = await client.post(
            "/api/tutorial-skill/Tutorial/categories",
            json={"categoryName": name},
            headers=headers,
        )
        assert response.status_code == 201, response.text


async def test_tutorial_categories(client: AsyncClient, admin_headers):
    empty = await client.get("/api/tutorial-skill/Tutorial/categories")
    assert empty.json() == ["All"]

    await enable_categories(client, admin_headers, PAST_VIDEOS, NIGHT_CLASS)
    listed = await client.get("/api/tutorial-skill/Tutorial/categories")
    assert listed.json() == ["All", NIGHT_CLASS, PAST_VIDEOS]

    again = await client.post(
        "/api/tutorial-skill/Tutorial/categories",
        json={"categoryName": NIGHT_CLASS},
        headers=admin_headers,
    )
    assert again.status_code == 409

    unknown = await client.post(
        "/api/tutorial-skill/Tutorial/categories",
        json={"categoryName": "Cooking"},
        headers=admin_headers,
    )
    assert unknown.status_code == 400

    skillup = await client.post(
        "/api/tutorial-skill/SkillUp/categories",
        json={"categoryName": "AI"},
        headers=admin_headers,
    )
    assert skillup.status_code == 400

    removed = await client.delete(
        f"/api/tutorial-skill/Tutorial/categories/{PAST_VIDEOS}", headers=admin_headers
    )
    assert removed.status_code == 200
    listed = await client.get("/api/tutorial-skill/Tutorial/categories")
    assert listed.json() == ["All", NIGHT_CLASS]

    gone = await client.delete(
        f"/api/tutorial-skill/Tutorial/categories/{PAST_VIDEOS}", headers=admin_headers
    )
    assert gone.status_code == 404


async def test_tutorial_content_lifecycle(client: AsyncClient, admin_headers, user_headers):
    await enable_categories(client, admin_headers, NIGHT_CLASS, PAST_VIDEOS)

    created = await client.post(
        "/api/tutorial-skill/Tutorial/content", json=LESSON, headers=admin_headers
    )
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["catName"] == "nightclass"
    assert body["thumbnail"] == "assets/images/jupeb night class.png"
    assert (body["duration"], body["level"], body["author"], body["time"]) == (
        "weekly",
        "Beginner",
        "Admin",
        "N/A",
    )

    duplicate = await client.post(
        "/api/tutorial-skill/Tutorial/content", json=LESSON, headers=admin_headers
    )
    assert duplicate.status_code == 409

    wrong_category = await client.post(
        "/api/tutorial-skill/Tutorial/content",
        json={**LESSON, "id": "nc-002", "category": "AI"},
        headers=admin_headers,
    )
    assert wrong_category.status_code == 400

    student = await client.post(
        "/api/tutorial-skill/Tutorial/content",
        json={**LESSON, "id": "nc-003"},
        headers=user_headers,
    )
    assert student.status_code == 403

    fetched = await client.get("/api/tutorial-skill/Tutorial/content/nc-001")
    assert fetched.json()["title"] == "Organic chemistry revision"

    moved = await client.put(
        "/api/tutorial-skill/Tutorial/content/nc-001",
        json={"category": PAST_VIDEOS, "time": "8pm"},
        headers=admin_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["catName"] == "pastquestionvideo"
    assert moved.json()["time"] == "8pm"

    in_use = await client.delete(
        f"/api/tutorial-skill/Tutorial/categories/{PAST_VIDEOS}", headers=admin_headers
    )
    assert in_use.status_code == 400

    deleted = await client.delete(
        "/api/tutorial-skill/Tutorial/content/nc-001", headers=admin_headers
    )
    assert deleted.json() == {"message": "Tutorial content with ID nc-001 successfully deleted"}
    missing = await client.get("/api/tutorial-skill/Tutorial/content/nc-001")
    assert missing.status_code == 404
    missing_update = await client.put(
        "/api/tutorial-skill/Tutorial/content/nc-001",
        json={"title": "Again"},
        headers=admin_headers,
    )
    assert missing_update.status_code == 404


async def test_tutorial_catalogue_lists_entries(client: AsyncClient, admin_headers):
    await enable_categories(client, admin_headers, NIGHT_CLASS, PAST_VIDEOS)
    for entry in (
        LESSON,
        {**LESSON, "id": "pq-001", "title": "2019 paper walkthrough", "category": PAST_VIDEOS},
    ):
        response = await client.post(
            "/api/tutorial-skill/Tutorial/content", json=entry, headers=admin_headers
        )
        assert response.status_code == 201

    data = await client.get("/api/tutorial-skill/Tutorial/data")
    assert data.json()["total"] == 2
    assert data.json()["categories"] == ["All", NIGHT_CLASS, PAST_VIDEOS]
    assert {item["id"] for item in data.json()["items"]} == {"nc-001", "pq-001"}

    videos = await client.get(
        "/api/tutorial-skill/Tutorial/content", params={"category": PAST_VIDEOS}
    )
    assert [item["catName"] for item in videos.json()] == ["pastquestionvideo"]

    everything = await client.get(
        "/api/tutorial-skill/Tutorial/content", params={"category": "All"}
    )
    assert len(everything.json()) == 2

    skillup_write = await client.post(
        "/api/tutorial-skill/SkillUp/content", json=LESSON, headers=admin_headers
    )
    assert skillup_write.status_code == 400
