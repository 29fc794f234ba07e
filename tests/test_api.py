"""
HTTP surface tests (FastAPI TestClient against the default round)
"""
import pytest
from fastapi.testclient import TestClient

from escape_room import state
from escape_room.core.timer import TimeAuthority
from escape_room.main import app
from escape_room.models import LevelAttemptRecord
from escape_room.services.persistence import AttemptStore
from escape_room.services.session_registry import reset_sessions

from conftest import FakeClock


LEVEL_1_ANSWERS = ["Git", "SMTP", "Queue", "True", "Undefined behavior"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(monkeypatch, clock):
    monkeypatch.delenv("ESCAPE_ROOM_CONFIG", raising=False)
    monkeypatch.setattr(state, "CLOCK", TimeAuthority(source=clock))
    monkeypatch.setattr(state, "STORE", AttemptStore())
    reset_sessions()
    with TestClient(app) as c:
        yield c
    reset_sessions()


def login(client, team_id="TEAM001", password="hawkins-lab"):
    response = client.post("/auth/login", json={"team_id": team_id, "password": password})
    assert response.status_code == 200
    return {"X-Session-Token": response.json()["session_token"]}


def seed_cleared_levels(team_id):
    for n in range(1, 6):
        state.STORE.append_level_attempt(LevelAttemptRecord(
            team_id=team_id, level_number=n, score=20 * n,
            time_taken=30, cleared=True, created_at=float(n),
        ))


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["total_levels"] == 5
    assert data["time_authority_degraded"] is False


def test_login_errors(client):
    assert client.post("/auth/login", json={"team_id": "TEAM001"}).status_code == 400
    assert client.post("/auth/login", json={"team_id": "TEAM001", "password": "nope"}).status_code == 401
    assert client.post("/auth/login", json={"team_id": "TEAM003", "password": "upside-down"}).status_code == 401


def test_token_required(client):
    assert client.get("/progress").status_code == 401
    assert client.get("/progress", headers={"X-Session-Token": "bogus"}).status_code == 401


def test_level_one_flow(client, clock):
    headers = login(client)

    assert client.post("/levels/2/start", headers=headers).status_code == 403
    assert client.post("/levels/7/start", headers=headers).status_code == 404

    response = client.post("/levels/1/start", headers=headers)
    assert response.status_code == 200
    view = response.json()
    assert view["total_questions"] == 5
    assert "accepted_answer" not in view["question"]
    assert view["timer"]["formatted"] == "00:30"

    for idx, answer in enumerate(LEVEL_1_ANSWERS):
        clock.advance(5)
        response = client.post(
            "/levels/current/answer", headers=headers,
            json={"question_index": idx, "answer": answer},
        )
        assert response.status_code == 200
        assert response.json()["is_correct"]

    level = response.json()["level"]
    assert level["state"] == "TERMINAL"
    assert level["outcome"] == "CLEARED"

    progress = client.get("/progress", headers=headers).json()
    assert progress["cleared_levels"] == [1]
    assert progress["unlocked_letters"] == ["E"]
    assert progress["revealed_slots"][0] == "E"
    assert "hidden_scores" not in progress

    assert client.post("/levels/1/start", headers=headers).status_code == 409
    assert client.post("/levels/2/start", headers=headers).status_code == 200


def test_answer_validation(client, clock):
    headers = login(client)
    client.post("/levels/1/start", headers=headers)

    missing_index = client.post("/levels/current/answer", headers=headers, json={"answer": "Git"})
    assert missing_index.status_code == 400

    blank = client.post("/levels/current/answer", headers=headers, json={"question_index": 0, "answer": " "})
    assert blank.status_code == 400

    clock.advance(2)
    client.post("/levels/current/answer", headers=headers, json={"question_index": 0, "answer": "Git"})

    # Next question is still behind the feedback pause
    early = client.post("/levels/current/answer", headers=headers, json={"question_index": 1, "answer": "SMTP"})
    assert early.status_code == 400


def test_no_level_in_progress(client):
    headers = login(client)
    assert client.get("/levels/current", headers=headers).status_code == 404
    assert client.post("/levels/current/tick", headers=headers).status_code == 403


def test_tick_fires_timeout(client, clock):
    headers = login(client)
    client.post("/levels/1/start", headers=headers)
    client.post("/levels/current/draft", headers=headers, json={"answer": "Git"})

    clock.advance(31)
    response = client.post("/levels/current/tick", headers=headers)
    assert response.status_code == 200
    level = response.json()["level"]
    assert level["question_index"] == 1
    assert level["results"][0]["timed_out"]
    assert level["results"][0]["is_correct"]


def test_force_complete_is_idempotent(client, clock):
    headers = login(client)
    client.post("/levels/1/start", headers=headers)
    clock.advance(3)
    client.post("/levels/current/answer", headers=headers, json={"question_index": 0, "answer": "Git"})

    first = client.post("/levels/current/force-complete", headers=headers).json()
    second = client.post("/levels/current/force-complete", headers=headers).json()
    assert first["outcome"] == "FAILED"
    assert second["outcome"] == "FAILED"
    assert len(state.STORE.fetch_attempts("TEAM001")) == 1


def test_leave_keeps_checkpoint(client, clock):
    headers = login(client)
    client.post("/levels/1/start", headers=headers)
    clock.advance(2)
    client.post("/levels/current/answer", headers=headers, json={"question_index": 0, "answer": "Git"})

    assert client.post("/levels/current/leave", headers=headers).json() == {"checkpoint_saved": True}
    assert client.get("/levels/current", headers=headers).status_code == 404

    resumed = client.post("/levels/1/start", headers=headers).json()
    assert resumed["question_index"] == 1


def test_relogin_keeps_live_session(client):
    first = login(client)
    client.post("/levels/1/start", headers=first)

    second = login(client)
    assert client.get("/levels/current", headers=second).status_code == 200
    assert client.get("/progress", headers=first).status_code == 401


def test_logout(client):
    headers = login(client)
    assert client.post("/auth/logout", headers=headers).status_code == 200
    assert client.get("/progress", headers=headers).status_code == 401
    assert client.post("/auth/logout", headers=headers).status_code == 401


def test_final_word_locked_until_all_cleared(client):
    headers = login(client)
    status = client.get("/final-word", headers=headers).json()
    assert not status["unlocked"]
    assert status["revealed_slots"] == [None] * 6

    assert client.post("/final-word", headers=headers, json={"word": "ELEVEN"}).status_code == 403


def test_final_word_and_leaderboard(client, clock):
    seed_cleared_levels("TEAM002")
    headers = login(client, "TEAM002", "starcourt")

    status = client.get("/final-word", headers=headers).json()
    assert status["unlocked"]
    assert status["revealed_slots"] == ["E", "L", "E", "V", None, "N"]

    assert client.post("/final-word", headers=headers, json={"word": ""}).status_code == 400

    wrong = client.post("/final-word", headers=headers, json={"word": "TWELVE"}).json()
    assert not wrong["is_correct"]
    assert wrong["attempts_remaining"] == 1
    assert wrong["message"] == "Incorrect guess. You have 1 attempt left."

    clock.advance(10)
    right = client.post("/final-word", headers=headers, json={"word": "Eleven"}).json()
    assert right["is_correct"]
    assert right["is_locked"]
    assert right["persisted"]

    assert client.post("/final-word", headers=headers, json={"word": "ELEVEN"}).status_code == 403

    board = client.get("/leaderboard").json()
    assert board["total_teams"] == 1
    entry = board["teams"][0]
    assert entry["rank"] == 1
    assert entry["team_id"] == "TEAM002"
    assert entry["team_name"] == "Party of Five"
    assert entry["total_score"] == 300
    assert entry["submitted_at"] == 1010.0


def test_team_switch_discards_previous_session(client):
    first = login(client)
    response = client.post(
        "/auth/login", headers=first,
        json={"team_id": "TEAM002", "password": "starcourt"},
    )
    assert response.status_code == 200
    assert response.json()["team_name"] == "Party of Five"
    assert client.get("/progress", headers=first).status_code == 401


def test_non_string_fields_rejected(client, clock):
    """Numbers where text is expected are a 400, not a server error"""
    assert client.post("/auth/login", json={"team_id": 1, "password": "x"}).status_code == 400

    headers = login(client)
    client.post("/levels/1/start", headers=headers)
    clock.advance(2)

    answer = client.post("/levels/current/answer", headers=headers, json={"question_index": 0, "answer": 5})
    assert answer.status_code == 400
    assert client.post("/levels/current/draft", headers=headers, json={"answer": ["Git"]}).status_code == 400
    assert client.post("/final-word", headers=headers, json={"word": 11}).status_code == 400

    level = client.get("/levels/current", headers=headers).json()
    assert level["question_index"] == 0
    assert level["tick_interval"] == 0.1
