from app.services.ingestion import bulk_create_subjects, bulk_create_topics


async def test_rows_are_classified(db, catalog):
    outcome = await bulk_create_subjects(
        db,
        catalog.exam.id,
        [
            {"name": "Physics", "displayName": "Physics"},
            {"name": "mathematics", "displayName": "Maths"},
            {"name": "Chemistry"},
            {"name": "physics", "displayName": "Physics again"},
        ],
    )

    assert [item["name"] for item in outcome.created] == ["Physics"]
    assert [item["index"] for item in outcome.duplicates] == [1, 3]
    assert [item["index"] for item in outcome.errors] == [2]
    assert outcome.errors[0]["name"] == "Chemistry"
    assert outcome.total == 4


async def test_topics_are_scoped_to_subject(db, catalog):
    outcome = await bulk_create_topics(
        db,
        catalog.exam.id,
        catalog.maths.id,
        [
            {"name": "algebra", "displayName": "Algebra"},
            {"name": "Calculus", "displayName": "Calculus", "orderIndex": 3},
        ],
    )

    assert [item["name"] for item in outcome.created] == ["Calculus"]
    assert outcome.duplicates == [{"index": 0, "name": "algebra"}]
    assert outcome.as_dict()["errors"] == []
