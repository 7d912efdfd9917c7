from httpx import AsyncClient

YEAR_URL = "/api/questions/years/WAEC/Mathematics/2023/pastquestions/2023"
ASSIGNMENT_URL = "/api/questions/assignments/weeks/WAEC/Mathematics/Weekly/notes"

YEAR_QUESTIONS = {
    "questions": [
        {
            "question": "Solve 2x = 8",
            "topic": "algebra",
            "correctAnswer": "4",
            "incorrectAnswers": ["2", "6", "8"],
        },
        {
            "question": "Expand (x + 1)^2",
            "topic": "Algebra",
            "correctAnswer": "x^2 + 2x + 1",
            "incorrectAnswers": ["x^2 + 1"],
            "difficulty": "easy",
        },
        {
            "question": "Sum of angles in a triangle?",
            "topic": "Geometry",
            "correctAnswer": "180",
            "incorrectAnswers": ["90", "360"],
            "difficulty": "hard",
            "explanation": "Angles on a straight line",
        },
    ]
}


async def upload_year(client: AsyncClient, headers) -> dict:
    response = await client.post(YEAR_URL, json=YEAR_QUESTIONS, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_year_upload(client: AsyncClient, catalog, admin_headers):
    data = await upload_year(client, admin_headers)

    assert data["year"] == 2023
    assert data["created"] == 3
    assert data["replaced"] is False
    questions = data["questions"]
    assert [question["orderIndex"] for question in questions] == [1, 2, 3]
    assert {question["topicId"] for question in questions[:2]} == {catalog.algebra.id}
    assert questions[2]["topicId"] == catalog.geometry.id
    assert questions[0]["difficulty"] == "medium"
    assert questions[0]["questionDiagram"] == "assets/images/noDiagram.png"


async def test_year_upload_conflict_and_force(client: AsyncClient, catalog, admin_headers):
    await upload_year(client, admin_headers)

    conflict = await client.post(YEAR_URL, json=YEAR_QUESTIONS, headers=admin_headers)
    assert conflict.status_code == 409
    assert conflict.json()["details"] == {"existingCount": 3}

    forced = await client.post(
        YEAR_URL,
        params={"force": "true"},
        json={"questions": YEAR_QUESTIONS["questions"][:1]},
        headers=admin_headers,
    )
    assert forced.status_code == 201
    assert forced.json()["replacedCount"] == 3

    page = await client.get("/api/questions/filter", params={"year": 2023})
    assert page.json()["total"] == 1


async def test_year_upload_rejects_unknown_topics(client: AsyncClient, catalog, admin_headers):
    body = {
        "questions": [
            *YEAR_QUESTIONS["questions"],
            {
                "question": "Name a planet",
                "topic": "Astronomy",
                "correctAnswer": "Mars",
                "incorrectAnswers": ["Moon"],
            },
        ]
    }

    response = await client.post(YEAR_URL, json=body, headers=admin_headers)

    assert response.status_code == 400
    details = response.json()["details"]
    assert details["missingTopics"] == ["Astronomy"]
    assert details["availableTopics"] == ["Algebra", "Geometry"]
    assert (await client.get("/api/questions/filter")).json()["total"] == 0


async def test_year_out_of_range(client: AsyncClient, catalog, admin_headers):
    response = await client.post(
        "/api/questions/years/WAEC/Mathematics/2023/pastquestions/1800",
        json=YEAR_QUESTIONS,
        headers=admin_headers,
    )

    assert response.status_code == 400


async def test_delete_year(client: AsyncClient, catalog, admin_headers):
    await upload_year(client, admin_headers)

    deleted = await client.delete(YEAR_URL, headers=admin_headers)
    assert deleted.json()["deleted"] == 3

    again = await client.delete(YEAR_URL, headers=admin_headers)
    assert again.status_code == 404


async def test_validate_topics(client: AsyncClient, catalog):
    response = await client.post(
        "/api/questions/validate-topics/WAEC/Mathematics",
        json={
            "questions": [
                {"question": "q1", "topic": "algebra"},
                {"question": "q2", "topic": "Astronomy"},
                {"question": "q3"},
            ]
        },
    )

    data = response.json()
    assert data["validQuestions"] == [
        {"question": "q1", "topic": "Algebra", "topicId": catalog.algebra.id}
    ]
    assert [item["index"] for item in data["invalidQuestions"]] == [1, 2]
    assert data["summary"] == {
        "total": 3,
        "valid": 1,
        "invalid": 2,
        "availableTopics": ["Algebra", "Geometry"],
    }


async def test_topic_assignments(client: AsyncClient, catalog, admin_headers):
    await upload_year(client, admin_headers)

    created = await client.post(
        f"{ASSIGNMENT_URL}/1", json={"topicNames": ["algebra"]}, headers=admin_headers
    )
    assert created.status_code == 201
    assert created.json()["topicIds"] == [catalog.algebra.id]
    assert [topic["name"] for topic in created.json()["topics"]] == ["Algebra"]

    duplicate = await client.post(
        f"{ASSIGNMENT_URL}/1", json={"topicNames": ["Geometry"]}, headers=admin_headers
    )
    assert duplicate.status_code == 409

    questions = await client.get(f"{ASSIGNMENT_URL}/1/topics/Algebra/questions")
    assert [question["question"] for question in questions.json()] == [
        "Solve 2x = 8",
        "Expand (x + 1)^2",
    ]

    unassigned = await client.get(f"{ASSIGNMENT_URL}/1/topics/Geometry/questions")
    assert unassigned.status_code == 404

    updated = await client.put(
        f"{ASSIGNMENT_URL}/1",
        json={"topicNames": ["Geometry", "Algebra"]},
        headers=admin_headers,
    )
    assert updated.json()["topicIds"] == [catalog.geometry.id, catalog.algebra.id]

    fetched = await client.get(f"{ASSIGNMENT_URL}/1")
    assert fetched.json()["periodNumber"] == 1

    deleted = await client.delete(f"{ASSIGNMENT_URL}/1", headers=admin_headers)
    assert deleted.status_code == 200
    assert (await client.get(f"{ASSIGNMENT_URL}/1")).status_code == 404


async def test_topic_assignment_validation(client: AsyncClient, catalog, admin_headers):
    unknown_topic = await client.post(
        f"{ASSIGNMENT_URL}/2", json={"topicNames": ["Astronomy"]}, headers=admin_headers
    )
    assert unknown_topic.status_code == 400
    assert unknown_topic.json()["details"]["missingTopics"] == ["Astronomy"]

    beyond = await client.post(
        f"{ASSIGNMENT_URL}/3", json={"topicNames": ["Algebra"]}, headers=admin_headers
    )
    assert beyond.status_code == 400

    months = await client.post(
        "/api/questions/assignments/months/WAEC/Mathematics/Weekly/notes/1",
        json={"topicNames": ["Algebra"]},
        headers=admin_headers,
    )
    assert months.status_code == 400


async def test_filter_and_groups(client: AsyncClient, catalog, admin_headers):
    await upload_year(client, admin_headers)

    page = await client.get(
        "/api/questions/filter",
        params={"examId": catalog.exam.id, "difficulty": "hard"},
    )
    assert page.json()["total"] == 1
    assert page.json()["limit"] == 50

    grouped = await client.get(
        "/api/questions/grouped-by-topics", params={"subjectId": catalog.maths.id}
    )
    assert grouped.json()["totalQuestions"] == 3
    assert [group["count"] for group in grouped.json()["questionsByTopics"]] == [2, 1]

    by_difficulty = await client.get(
        "/api/questions/groups/WAEC/Mathematics/2023/pastquestions",
        params={"groupBy": "difficulty"},
    )
    assert [group["key"] for group in by_difficulty.json()["groups"]] == [
        "easy",
        "medium",
        "hard",
    ]

    by_year = await client.get(
        "/api/questions/groups/WAEC/Mathematics/2023/pastquestions",
        params={"groupBy": "year"},
    )
    assert by_year.json()["groups"][0]["label"] == "2023"


async def test_practice_sessions(client: AsyncClient, catalog, admin_headers):
    await upload_year(client, admin_headers)

    session = await client.post(
        "/api/questions/practice",
        json={"examId": catalog.exam.id, "subjectId": catalog.maths.id, "questionCount": 2},
    )
    assert session.json()["totalAvailable"] == 3
    assert session.json()["questionCount"] == 2
    for question in session.json()["questions"]:
        assert question["correctAnswer"] in question["options"]

    quick = await client.get(
        "/api/questions/quick-practice",
        params={"examId": catalog.exam.id, "count": 5},
    )
    assert quick.json()["totalAvailable"] == 3
    assert quick.json()["questionCount"] == 3

    too_many = await client.get("/api/questions/quick-practice", params={"count": 101})
    assert too_many.status_code == 400


async def test_export(client: AsyncClient, catalog, admin_headers):
    await upload_year(client, admin_headers)

    response = await client.get(
        "/api/questions/export",
        params={"examId": catalog.exam.id, "subjectId": catalog.maths.id},
    )

    assert response.status_code == 200
    assert (
        response.headers["content-disposition"]
        == 'attachment; filename="waec_questions.json"'
    )
    data = response.json()
    assert data["exportInfo"]["exam"] == "WAEC"
    assert data["exportInfo"]["subject"] == "Mathematics"
    assert data["exportInfo"]["total_questions"] == 3
    assert data["questions"][0]["subject"] == "Mathematics"
    assert data["questions"][0]["topic"] == "Algebra"
    assert data["questions"][0]["incorrect_answers"] == ["2", "6", "8"]

    missing_exam = await client.get("/api/questions/export")
    assert missing_exam.status_code == 400


async def test_bulk_upload(client: AsyncClient, catalog, admin_headers):
    row = {
        "subject": "Mathematics",
        "year": 2023,
        "topic": "Algebra",
        "question": "What is 3 + 4?",
        "correctAnswer": "7",
        "incorrectAnswers": ["6", "8"],
    }

    response = await client.post(
        "/api/questions/bulk",
        json={
            "examName": "waec",
            "questions": [
                row,
                row,
                {**row, "year": 2019},
                {**row, "question": "Other", "topic": "Astronomy"},
                {**row, "incorrectAnswers": []},
            ],
        },
        headers=admin_headers,
    )

    data = response.json()
    assert len(data["created"]) == 1
    assert [item["index"] for item in data["duplicates"]] == [1]
    assert [item["index"] for item in data["errors"]] == [2, 3, 4]
    assert data["errors"][0]["error"] == "Track for year 2019 not found"


async def test_update_and_delete_question(client: AsyncClient, catalog, admin_headers):
    question_id = (await upload_year(client, admin_headers))["questions"][0]["id"]

    updated = await client.put(
        f"/api/questions/{question_id}",
        json={"topicName": "geometry", "difficulty": "hard"},
        headers=admin_headers,
    )
    assert updated.json()["topicId"] == catalog.geometry.id
    assert updated.json()["difficulty"] == "hard"

    bad_topic = await client.put(
        f"/api/questions/{question_id}",
        json={"topicName": "Astronomy"},
        headers=admin_headers,
    )
    assert bad_topic.status_code == 400

    deleted = await client.delete(f"/api/questions/{question_id}", headers=admin_headers)
    assert deleted.status_code == 200

    gone = await client.put(
        f"/api/questions/{question_id}", json={"explanation": "x"}, headers=admin_headers
    )
    assert gone.status_code == 404
