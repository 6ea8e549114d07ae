"""End-to-end tests for the study session and timer HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.deps import get_clock, get_db, get_rng
from app.main import app
from tests.helpers import ScriptedRandom

USER = "user-1"
SECRET = "test-jwt-secret"


def bearer(sub: str = USER) -> dict:
    token = jwt.encode({"sub": sub, "email": f"{sub}@example.com"}, SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db, clock):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_rng] = lambda: ScriptedRandom(0.0)
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def qset(make_question_set):
    qset, _ = make_question_set(3)
    return qset


@pytest.fixture
def questions(db, qset):
    from app.services import store

    return store.list_questions(db, qset.id)


def base(qset) -> str:
    return f"/api/study-sessions/{qset.id}"


class TestAuth:
    def test_missing_token(self, client, qset):
        resp = client.get(f"{base(qset)}/status")

        assert resp.status_code == 401
        assert resp.json() == {"detail": "unauthorized"}

    def test_bad_token(self, client, qset):
        resp = client.get(f"{base(qset)}/status", headers={"Authorization": "Bearer not-a-jwt"})

        assert resp.status_code == 401

    def test_wrong_secret(self, client, qset):
        token = jwt.encode({"sub": USER}, "other-secret", algorithm="HS256")

        resp = client.get(f"{base(qset)}/status", headers={"Authorization": f"Bearer {token}"})

        assert resp.status_code == 401


class TestStudySessionEndpoints:
    def test_root(self, client):
        assert client.get("/").json() == {"ok": True}

    def test_start_and_resume(self, client, qset):
        resp = client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer())
        assert resp.status_code == 200
        body = resp.json()
        assert body["question_set_id"] == qset.id
        assert body["mode"] == "front-to-end"
        assert body["is_resumed"] is False

        again = client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer())
        assert again.json()["id"] == body["id"]

    def test_start_unknown_set(self, client):
        resp = client.post("/api/study-sessions/start", json={"question_set_id": 999}, headers=bearer())

        assert resp.status_code == 404
        assert resp.json()["detail"]["message"] == "question_set_not_found"

    def test_start_invalid_mode(self, client, qset):
        resp = client.post(
            "/api/study-sessions/start",
            json={"question_set_id": qset.id, "mode": "backwards"},
            headers=bearer(),
        )

        assert resp.status_code == 400
        assert resp.json()["detail"]["message"] == "invalid_mode"

    def test_status_without_session(self, client, qset):
        resp = client.get(f"{base(qset)}/status", headers=bearer())

        assert resp.status_code == 200
        assert resp.json() == {"has_active_session": False, "session_complete": False, "progress": None}

    def test_next_question_without_session(self, client, qset):
        resp = client.get(f"{base(qset)}/next-question", headers=bearer())

        assert resp.status_code == 404
        assert resp.json() == {
            "detail": {"message": "no_active_session", "detail": "No active study session found"}
        }

    def test_question_flow(self, client, qset, questions):
        client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer())

        nxt = client.get(f"{base(qset)}/next-question", headers=bearer()).json()
        assert nxt["question"]["id"] == questions[0].id
        assert nxt["question"]["question_text"] == "Q1"
        assert nxt["question_number"] == 1
        assert nxt["previous_score"] is None
        assert nxt["session_complete"] is False
        assert nxt["progress"]["max_points"] == 15

        resp = client.post(
            f"{base(qset)}/submit-answer",
            json={"question_id": questions[0].id, "confidence_rating": 2},
            headers=bearer(),
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        nxt = client.get(f"{base(qset)}/next-question", headers=bearer()).json()
        assert nxt["question"]["id"] == questions[1].id
        assert nxt["progress"]["answered_questions"] == 1
        assert nxt["progress"]["current_points"] == 2

        status = client.get(f"{base(qset)}/status", headers=bearer()).json()
        assert status["has_active_session"] is True
        assert status["progress"]["answered_questions"] == 1

    def test_submit_invalid_rating(self, client, qset, questions):
        client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer())

        resp = client.post(
            f"{base(qset)}/submit-answer",
            json={"question_id": questions[0].id, "confidence_rating": 7},
            headers=bearer(),
        )

        assert resp.status_code == 400
        assert resp.json()["detail"]["message"] == "invalid_rating"

    def test_select_question(self, client, qset, questions):
        client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer())
        client.post(
            f"{base(qset)}/submit-answer",
            json={"question_id": questions[0].id, "confidence_rating": 1},
            headers=bearer(),
        )

        ok = client.post(f"{base(qset)}/select-question", json={"question_id": questions[1].id}, headers=bearer())
        assert ok.status_code == 200
        assert ok.json()["question_number"] == 2

        blocked = client.post(f"{base(qset)}/select-question", json={"question_id": questions[0].id}, headers=bearer())
        assert blocked.status_code == 409
        assert blocked.json()["detail"]["message"] == "not_selectable"

        missing = client.post(f"{base(qset)}/select-question", json={"question_id": 999}, headers=bearer())
        assert missing.status_code == 404
        assert missing.json()["detail"]["message"] == "question_not_found"

    def test_probabilities(self, client, qset, questions):
        client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer())
        client.post(
            f"{base(qset)}/submit-answer",
            json={"question_id": questions[0].id, "confidence_rating": 1},
            headers=bearer(),
        )

        report = client.get(f"{base(qset)}/questions-probabilities", headers=bearer()).json()
        assert report["total_weight"] == 80.0
        assert report["current_question_id"] == questions[0].id
        rows = {row["id"]: row for row in report["questions"]}
        assert rows[questions[0].id]["last_attempt"] == {"user_rating": 1}
        assert rows[questions[0].id]["is_selectable"] is False
        assert rows[questions[1].id]["selection_probability"] == 100.0
        assert rows[questions[2].id]["last_attempt"] is None

        preview = client.post(
            f"{base(qset)}/hypothetical-probabilities",
            json={"question_id": questions[1].id, "hypothetical_rating": 5},
            headers=bearer(),
        ).json()
        assert preview["current_question_id"] == questions[1].id
        rows = {row["id"]: row for row in preview["questions"]}
        assert rows[questions[1].id]["is_selectable"] is True
        assert rows[questions[1].id]["weight"] == 0.0

    def test_complete_restart_reset(self, client, qset):
        start = client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer()).json()

        done = client.post(f"{base(qset)}/complete", headers=bearer()).json()
        assert done == {"success": True, "completed_sessions": 1}

        restarted = client.post(f"{base(qset)}/restart", json={"mode": "shuffle"}, headers=bearer()).json()
        assert restarted["id"] != start["id"]
        assert restarted["mode"] == "shuffle"

        reset = client.post(f"{base(qset)}/reset", headers=bearer())
        assert reset.status_code == 200
        assert reset.json()["mode"] == "front-to-end"
        assert reset.json()["is_resumed"] is False


class TestTimerEndpoints:
    @pytest.fixture
    def started(self, client, qset):
        client.post("/api/study-sessions/start", json={"question_set_id": qset.id}, headers=bearer())
        return qset

    def test_state_before_start(self, client, started):
        resp = client.get(f"{base(started)}/timer/state", headers=bearer())

        assert resp.status_code == 200
        assert resp.json() == {"timer": None}

    def test_timer_without_study_session(self, client, qset):
        resp = client.post(f"{base(qset)}/timer/start", headers=bearer())

        assert resp.status_code == 404
        assert resp.json()["detail"]["message"] == "no_active_session"

    def test_pause_without_timer(self, client, started):
        resp = client.post(f"{base(started)}/timer/pause", headers=bearer())

        assert resp.status_code == 404
        assert resp.json()["detail"]["message"] == "no_active_timer"

    def test_lifecycle(self, client, started, clock):
        url = f"{base(started)}/timer"

        timer = client.post(f"{url}/start", headers=bearer()).json()["timer"]
        assert timer["current_phase"] == "work"
        assert timer["display"] == "25:00"
        assert timer["remaining_in_phase"] == 1500

        clock.advance(100)
        timer = client.post(f"{url}/pause", headers=bearer()).json()["timer"]
        assert timer["current_phase"] == "paused"
        assert timer["previous_phase"] == "work"
        assert timer["elapsed_in_phase"] == 100
        assert timer["display"] == "23:20"

        resp = client.post(f"{url}/advance", json={"automatic": False}, headers=bearer())
        assert resp.status_code == 409
        assert resp.json()["detail"]["message"] == "invalid_timer_transition"

        timer = client.post(f"{url}/start", headers=bearer()).json()["timer"]
        assert timer["current_phase"] == "work"
        assert timer["elapsed_in_phase"] == 100

        timer = client.post(f"{url}/advance", json={"automatic": True}, headers=bearer()).json()["timer"]
        assert timer["current_phase"] == "work"

        clock.advance(1400)
        state = client.get(f"{url}/state", headers=bearer()).json()["timer"]
        assert state["should_advance"] is True

        timer = client.post(f"{url}/advance", json={"automatic": True}, headers=bearer()).json()["timer"]
        assert timer["current_phase"] == "rest"
        assert timer["total_work_time"] == 1500

        clock.advance(300)
        timer = client.post(f"{url}/advance", headers=bearer()).json()["timer"]
        assert timer["current_phase"] == "work"
        assert timer["cycles_completed"] == 1

        stats = client.get(f"{url}/stats", headers=bearer()).json()
        assert stats["total_time"] == 1800
        assert stats["work_percentage"] == 83
        assert stats["events"][0]["event_type"] == "phase_change"

        timer = client.post(f"{url}/stop", headers=bearer()).json()["timer"]
        assert timer["current_phase"] == "completed"
        assert client.get(f"{url}/state", headers=bearer()).json() == {"timer": None}

    def test_config(self, client, started, clock):
        url = f"{base(started)}/timer"
        client.post(f"{url}/start", json={"work_duration": 600}, headers=bearer())
        clock.advance(60)

        timer = client.put(f"{url}/config", json={"is_infinite": True}, headers=bearer()).json()["timer"]

        assert timer["is_infinite"] is True
        assert timer["work_duration"] == 600
        assert timer["elapsed_in_phase"] == 0
        assert timer["total_work_time"] == 60

    def test_config_validation(self, client, started):
        url = f"{base(started)}/timer"
        client.post(f"{url}/start", headers=bearer())

        resp = client.put(f"{url}/config", json={"work_duration": 0}, headers=bearer())

        assert resp.status_code == 422
