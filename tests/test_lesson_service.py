import uuid

import pytest
from pydantic import ValidationError

from app.exceptions import InvalidLessonContent, LessonNotFound
from app.models import Lesson
from app.schemas.lesson import (
    LessonCreate, LessonUpdate, PagedContent, QuizContent, parse_lesson_content
)
from app.services.lesson_service import lesson_service
from tests.conftest import paged_content, quiz_content


def test_parse_tagged_quiz_content():
    content = parse_lesson_content(quiz_content(3))

    assert isinstance(content, QuizContent)
    assert len(content.questions) == 3


def test_parse_legacy_content_by_shape():
    legacy_quiz = {"questions": [{"id": "1", "question": "Q?", "options": ["a", "b"], "correctAnswer": 1}]}
    legacy_pages = {"pages": [{"title": "Intro", "content": "Budgets"}]}

    quiz = parse_lesson_content(legacy_quiz)
    pages = parse_lesson_content(legacy_pages)

    assert isinstance(quiz, QuizContent)
    assert quiz.questions[0].correct_answer == 1
    assert isinstance(pages, PagedContent)


def test_parse_rejects_answer_outside_options():
    bad = {"type": "quiz_lesson", "questions": [{"id": "1", "question": "Q?", "options": ["a", "b"], "correct_answer": 2}]}

    with pytest.raises(ValidationError):
        parse_lesson_content(bad)


def test_parse_rejects_unknown_shape():
    with pytest.raises(ValidationError):
        parse_lesson_content({"video": "intro.mp4"})


def test_list_orders_and_filters(db, make_lesson):
    make_lesson(title="Credit 2", category="Credit", order_index=2)
    make_lesson(title="Credit 1", category="Credit", order_index=1)
    make_lesson(title="Saving 1", category="Saving", order_index=0, difficulty="advanced")

    credit = lesson_service.list_lessons(db, category="Credit")
    advanced = lesson_service.list_lessons(db, difficulty="advanced")

    assert [lesson.title for lesson in credit] == ["Credit 1", "Credit 2"]
    assert [lesson.title for lesson in advanced] == ["Saving 1"]


def test_list_skips_invalid_content(db, make_lesson):
    make_lesson(title="Good")
    make_lesson(title="Broken", content={"type": "quiz_lesson", "questions": "nope"})

    titles = [lesson.title for lesson in lesson_service.list_lessons(db)]

    assert titles == ["Good"]


def test_get_lesson_with_invalid_content(db, make_lesson):
    lesson_id = make_lesson(content={"type": "video"})

    with pytest.raises(InvalidLessonContent):
        lesson_service.get_lesson(db, lesson_id)


def test_get_unknown_lesson(db):
    with pytest.raises(LessonNotFound):
        lesson_service.get_lesson(db, uuid.uuid4())


def test_quiz_candidates_exclude_narrative(db, make_lesson):
    quiz_id = make_lesson()
    make_lesson(content=paged_content())

    candidates = lesson_service.quiz_candidates(db)

    assert [lesson.id for lesson in candidates] == [quiz_id]


def test_create_and_update_lesson(db):
    created = lesson_service.create_lesson(db, LessonCreate(
        title="Emergency funds",
        category="Saving",
        content=paged_content(2),
        xp_reward=15,
    ))

    updated = lesson_service.update_lesson(db, created.id, LessonUpdate(
        title="Emergency funds 101",
        content=quiz_content(2),
    ))

    assert updated.title == "Emergency funds 101"
    assert updated.is_quiz
    assert updated.question_count == 2
    assert updated.xp_reward == 15
    assert db.get(Lesson, created.id).content["type"] == "quiz_lesson"


def test_update_unknown_lesson(db):
    with pytest.raises(LessonNotFound):
        lesson_service.update_lesson(db, uuid.uuid4(), LessonUpdate(title="x"))
