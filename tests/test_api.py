import uuid

from tests.conftest import paged_content, quiz_content


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["cache"] == "disabled"
    assert response.json()["store"] == "sqlite"


def test_fetch_daily_quiz_requires_user(client):
    response = client.get("/api/daily-quiz")

    assert response.status_code == 401
    assert response.json()["error"] == "not_authenticated"


def test_fetch_daily_quiz_with_no_lessons(client, make_profile):
    user_id = make_profile()

    response = client.get("/api/daily-quiz", params={"user_id": str(user_id)})

    assert response.status_code == 404
    assert response.json()["error"] == "no_quiz_available"


def test_daily_quiz_flow(client, make_profile, make_lesson):
    user_id = str(make_profile(coins=100, streak=2, longest=5))
    make_lesson()

    quiz = client.get("/api/daily-quiz", params={"user_id": user_id}).json()
    assert quiz["already_completed"] is False
    lesson_id = quiz["quiz"]["id"]

    body = {
        "user_id": user_id,
        "lesson_id": lesson_id,
        "correct_answers": 5,
        "total_questions": 5,
        "coins_rewarded": 20,
    }
    done = client.post("/api/daily-quiz/complete", json=body)
    assert done.status_code == 200
    assert done.json()["reward_earned"] == 20
    assert done.json()["profile"]["dough_coins"] == 120

    repeat = client.post("/api/daily-quiz/complete", json=body).json()
    assert repeat["already_completed"] is True
    assert repeat["reward_earned"] == 0

    again = client.get("/api/daily-quiz", params={"user_id": user_id}).json()
    assert again["already_completed"] is True
    assert again["quiz"] is None

    status = client.get("/api/daily-quiz/status", params={"user_id": user_id}).json()
    assert status["completed_today"] is True

    profile = client.get(f"/api/users/{user_id}/profile").json()
    assert profile["dough_coins"] == 120
    assert profile["total_quizzes_completed"] == 1


def test_complete_rejects_invalid_counts(client, make_profile, make_lesson):
    body = {
        "user_id": str(make_profile()),
        "lesson_id": str(make_lesson()),
        "correct_answers": 7,
        "total_questions": 5,
        "coins_rewarded": 20,
    }

    response = client.post("/api/daily-quiz/complete", json=body)

    assert response.status_code == 422


def test_lesson_authoring_and_listing(client):
    created = client.post("/api/lessons", json={
        "title": "Credit cards explained",
        "category": "Credit",
        "content": quiz_content(3, category="Credit"),
        "xp_reward": 15,
    })
    assert created.status_code == 201
    lesson_id = created.json()["id"]

    client.post("/api/lessons", json={
        "title": "Budget story", "category": "Budgeting", "content": paged_content(),
    })

    credit = client.get("/api/lessons", params={"category": "Credit"}).json()
    assert [lesson["id"] for lesson in credit] == [lesson_id]

    updated = client.put(f"/api/lessons/{lesson_id}", json={"xp_reward": 25}).json()
    assert updated["xp_reward"] == 25

    missing = client.get(f"/api/lessons/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "lesson_not_found"


def test_lesson_content_must_be_tagged(client):
    response = client.post("/api/lessons", json={
        "title": "Mystery", "category": "Saving", "content": {"type": "video"},
    })

    assert response.status_code == 422


def test_submit_lesson_and_summary(client, make_profile, make_lesson):
    user_id = str(make_profile())
    lesson_id = str(make_lesson(content=quiz_content(4), xp_reward=12))

    result = client.post(f"/api/lessons/{lesson_id}/submit", json={
        "user_id": user_id,
        "answers": {"q0": 0, "q1": 1, "q2": 2, "q3": 0},
    })
    assert result.status_code == 200
    assert result.json()["score_display"] == "3/4"
    assert result.json()["streak_gained"] is True
    assert result.json()["coins_earned"] == 12

    summary = client.get(f"/api/users/{user_id}/summary").json()
    assert summary["completed_lessons"] == 1
    assert summary["categories"][0]["belt"] == "black"

    progress = client.get(f"/api/users/{user_id}/progress").json()
    assert len(progress) == 1
    assert progress[0]["completed"] is True


def test_progress_endpoint_accumulates_time(client, make_profile, make_lesson):
    user_id = str(make_profile())
    lesson_id = str(make_lesson())

    client.put(f"/api/lessons/{lesson_id}/progress", json={"user_id": user_id, "time_spent": 60, "score": 3})
    response = client.put(f"/api/lessons/{lesson_id}/progress", json={"user_id": user_id, "time_spent": 45})

    assert response.status_code == 200
    assert response.json()["time_spent"] == 105
    assert response.json()["completed"] is False


def test_progress_endpoint_requires_user(client, make_lesson):
    lesson_id = str(make_lesson())

    response = client.put(f"/api/lessons/{lesson_id}/progress", json={"time_spent": 60})

    assert response.status_code == 401


def test_store_failure_renders_503(client, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from app.services.store import Store

    def failing_get_lesson(self, lesson_id):
        with self.guarded("load lesson"):
            raise OperationalError("SELECT", {}, Exception("canceling statement due to statement timeout"))

    monkeypatch.setattr(Store, "get_lesson", failing_get_lesson)

    response = client.get(f"/api/lessons/{uuid.uuid4()}")

    assert response.status_code == 503
    assert response.json() == {
        "error": "store_unavailable",
        "message": "Failed to load lesson",
        "status_code": 503,
    }
