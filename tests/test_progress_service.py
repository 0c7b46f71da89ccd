import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import LessonNotFound, NotAuthenticated, StoreUnavailable
from app.services.progress_service import progress_service
from app.services.store import Store
from tests.conftest import NOW


def reconcile(db, user_id, lesson_id, completed, score=0, increment=300, now=NOW, **kwargs):
    return progress_service.record_attempt(
        db, user_id, lesson_id, completed, score, increment, now=now, **kwargs
    )


def test_first_attempt_creates_record(db, make_lesson):
    lesson_id = make_lesson()
    user_id = uuid.uuid4()

    result = reconcile(db, user_id, lesson_id, completed=True, score=5)

    assert result.newly_completed is True
    assert result.progress.completed is True
    assert result.progress.progress == 1.0
    assert result.progress.time_spent == 300
    assert result.progress.completed_at == NOW


def test_partial_attempt_uses_assumed_question_count(db, make_lesson):
    lesson_id = make_lesson()

    result = reconcile(db, uuid.uuid4(), lesson_id, completed=False, score=3)

    assert result.progress.completed is False
    assert result.progress.progress == pytest.approx(3 / 15)
    assert result.progress.completed_at is None
    assert result.newly_completed is False


def test_partial_attempt_with_known_question_count(db, make_lesson):
    lesson_id = make_lesson()

    result = reconcile(db, uuid.uuid4(), lesson_id, completed=False, score=3, expected_questions=4)

    assert result.progress.progress == pytest.approx(0.75)


def test_progress_is_capped_at_one():
    assert progress_service.calculate_progress(False, 20, 15) == 1.0


def test_time_spent_accumulates(db, make_lesson):
    lesson_id = make_lesson()
    user_id = uuid.uuid4()

    reconcile(db, user_id, lesson_id, completed=False, score=1, increment=100)
    reconcile(db, user_id, lesson_id, completed=False, score=2, increment=250)
    result = reconcile(db, user_id, lesson_id, completed=True, score=5, increment=75)

    assert result.progress.time_spent == 425


def test_completed_at_is_set_once(db, make_lesson):
    lesson_id = make_lesson()
    user_id = uuid.uuid4()

    first = reconcile(db, user_id, lesson_id, completed=True, score=5)
    later = NOW + timedelta(hours=2)
    second = reconcile(db, user_id, lesson_id, completed=True, score=4, now=later)

    assert first.newly_completed is True
    assert second.newly_completed is False
    assert second.progress.completed_at == NOW
    assert second.progress.updated_at == later


def test_completion_never_reverts(db, make_lesson):
    lesson_id = make_lesson()
    user_id = uuid.uuid4()

    reconcile(db, user_id, lesson_id, completed=True, score=5)
    result = reconcile(db, user_id, lesson_id, completed=False, score=1, now=NOW + timedelta(days=1))

    assert result.progress.completed is True
    assert result.progress.progress == 1.0
    assert result.progress.completed_at == NOW


def test_later_completion_sets_timestamp(db, make_lesson):
    lesson_id = make_lesson()
    user_id = uuid.uuid4()

    reconcile(db, user_id, lesson_id, completed=False, score=2)
    later = NOW + timedelta(minutes=10)
    result = reconcile(db, user_id, lesson_id, completed=True, score=5, now=later)

    assert result.newly_completed is True
    assert result.progress.completed_at == later


def test_one_record_per_user_and_lesson(db, make_lesson):
    lesson_id = make_lesson()
    user_id = uuid.uuid4()

    for _ in range(3):
        reconcile(db, user_id, lesson_id, completed=True, score=5)

    assert len(progress_service.list_progress(db, user_id)) == 1


def test_missing_user_is_not_authenticated(db, make_lesson):
    lesson_id = make_lesson()

    with pytest.raises(NotAuthenticated):
        reconcile(db, None, lesson_id, completed=True)


def test_unknown_lesson(db):
    with pytest.raises(LessonNotFound):
        reconcile(db, uuid.uuid4(), uuid.uuid4(), completed=True)


def test_negative_time_increment_rejected(db, make_lesson):
    lesson_id = make_lesson()

    with pytest.raises(ValueError):
        reconcile(db, uuid.uuid4(), lesson_id, completed=True, increment=-1)


def test_store_failure_surfaces_as_store_unavailable(db, make_lesson, monkeypatch):
    lesson_id = make_lesson()
    store = Store(db)

    def broken_execute(*args, **kwargs):
        raise OperationalError("UPSERT user_progress", {}, Exception("canceling statement due to statement timeout"))

    monkeypatch.setattr(db, "execute", broken_execute)

    with pytest.raises(StoreUnavailable):
        progress_service.reconcile(store, uuid.uuid4(), lesson_id, True, 5, 300, now=NOW)
