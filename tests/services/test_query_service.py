import random

import pytest

from app.exceptions import ValidationError
from app.models.content_model import ContentModel
from app.models.question_model import QuestionModel
from app.models.topic_model import TopicModel
from app.services.query_service import (
    group_content_by_period,
    group_questions,
    period_value,
    shuffled_options,
)


def content(name, **meta):
    return ContentModel(name=name, display_name=name, meta=meta)


def question(**fields):
    fields.setdefault("difficulty", "medium")
    return QuestionModel(
        question="What is 2 + 2?",
        correct_answer="4",
        incorrect_answers=["3", "5", "22"],
        **fields,
    )


def test_period_value_prefers_metadata():
    assert period_value(content("week3_a", week=1), "week") == 1
    assert period_value(content("week3_a"), "week") == 3
    assert period_value(content("week3_a", week="2"), "week") == 2
    assert period_value(content("notes"), "week") is None


def test_group_by_week():
    groups = group_content_by_period(
        [content("week2_a", week=2), content("misc"), content("week1_b"), content("week2_c")],
        "week",
    )

    assert [group["key"] for group in groups] == ["1", "2", "unassigned"]
    assert [group["label"] for group in groups] == ["Week 1", "Week 2", "Unassigned"]
    assert [group["count"] for group in groups] == [1, 2, 1]


def test_group_by_year_newest_first():
    groups = group_content_by_period(
        [content("a", year=2021), content("b", year=2023)], "year"
    )

    assert [group["label"] for group in groups] == ["2023", "2021"]


def test_semester_names_stay_apart():
    groups = group_content_by_period(
        [
            content("semesterfirstsemester_a", semester=1, semesterName="First Semester"),
            content("semester1_b", semester=1),
            content("semester2_c", semester=2, semesterName="2"),
        ],
        "semester",
    )

    assert [group["key"] for group in groups] == ["1", "First Semester", "2"]


def test_group_by_rejects_unknown_period():
    with pytest.raises(ValidationError):
        group_content_by_period([], "decade")


def test_group_questions():
    topics = {
        1: TopicModel(id=1, name="Algebra", display_name="Algebra", order_index=2),
        2: TopicModel(id=2, name="Geometry", display_name="Geometry", order_index=1),
    }
    questions = [
        question(topic_id=1, year=2020, difficulty="hard"),
        question(topic_id=2, year=2022, difficulty="easy"),
        question(topic_id=99, year=2021),
    ]

    by_topic = group_questions(questions, "topic", topics)
    assert [group["label"] for group in by_topic] == ["Geometry", "Algebra", "Unassigned"]

    by_year = group_questions(questions, "year", topics)
    assert [group["key"] for group in by_year] == ["2022", "2021", "2020"]

    by_difficulty = group_questions(questions, "difficulty", topics)
    assert [group["key"] for group in by_difficulty] == ["easy", "medium", "hard"]

    with pytest.raises(ValidationError):
        group_questions(questions, "author", topics)


def test_shuffled_options_are_reproducible():
    item = question()

    first = shuffled_options(item, random.Random(7))
    second = shuffled_options(item, random.Random(7))

    assert first == second
    assert sorted(first) == ["22", "3", "4", "5"]
