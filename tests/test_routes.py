from telugu_learning.exceptions import PersistenceError
from telugu_learning.routes import games
from telugu_learning.services import progress_service
from telugu_learning.services.progress_store import ProgressStore


async def _start(client, lesson: int = 1, learner_id: str = "kid-1"):
    return await client.post("/games/letter-match/start", json={"learner_id": learner_id, "lesson": lesson})


async def _play(client, session_id: str, correct: bool = True):
    """Answer every question of a game, using the answers the game reveals"""
    session = games._sessions[session_id]
    response = None
    for question in session.questions:
        answer = question.correct_answer if correct else "wrong"
        response = await client.post(f"/games/sessions/{session_id}/answer", json={"selected_answer": answer})
        assert response.status_code == 200
    return response.json()


async def test_health(client) -> None:
    response = await client.get("/api/health")
    assert response.json() == {"status": "healthy"}


async def test_start_game_hides_answer(client) -> None:
    response = await _start(client)
    assert response.status_code == 200
    data = response.json()
    assert data["total_questions"] == 10
    assert data["difficulty"] == 1
    question = data["question"]
    assert question["position"] == 1
    assert question["total"] == 10
    assert len(question["options"]) == 4
    assert "correct_answer" not in question


async def test_full_game_saves_progress(client) -> None:
    session_id = (await _start(client)).json()["session_id"]
    final = await _play(client, session_id)

    assert final["finished"] is True
    assert final["next_question"] is None
    assert final["results"]["stars"] == 3
    assert final["results"]["percentage"] == 100.0
    assert final["results"]["passed"] is True
    assert final["saved"] is True
    assert final["progress"]["attempts"] == 1
    assert final["progress"]["completed"] is True
    assert session_id not in games._sessions

    streak = await client.get("/progress/kid-1/streak")
    assert streak.status_code == 200
    assert streak.json()["current_streak"] == 1


async def test_answer_feedback(client) -> None:
    session_id = (await _start(client)).json()["session_id"]
    expected = games._sessions[session_id].questions[0].correct_answer

    response = await client.post(f"/games/sessions/{session_id}/answer", json={"selected_answer": "wrong"})
    data = response.json()
    assert data["is_correct"] is False
    assert data["correct_answer"] == expected
    assert data["progress_current"] == 1
    assert data["finished"] is False
    assert data["next_question"]["position"] == 2
    assert data["results"] is None


async def test_locked_lesson_cannot_start(client) -> None:
    response = await _start(client, lesson=2)
    assert response.status_code == 403


async def test_passing_unlocks_next_lesson(client) -> None:
    session_id = (await _start(client)).json()["session_id"]
    await _play(client, session_id)

    response = await _start(client, lesson=2)
    assert response.status_code == 200

    overview = (await client.get("/progress/kid-1/reading/levels/1")).json()
    unlocked = [lesson["unlocked"] for lesson in overview["lessons"]]
    assert unlocked == [True, True] + [False] * 8
    assert overview["lessons"][0]["progress"]["stars"] == 3
    assert overview["lessons"][1]["progress"] is None
    assert overview["summary"]["completed_lessons"] == 1
    assert overview["summary"]["max_stars"] == 30


async def test_failed_game_keeps_next_lesson_locked(client) -> None:
    session_id = (await _start(client)).json()["session_id"]
    final = await _play(client, session_id, correct=False)
    assert final["results"]["stars"] == 0
    assert final["saved"] is True
    assert final["progress"]["completed"] is False

    assert (await _start(client, lesson=2)).status_code == 403


async def test_unknown_level_and_lesson(client) -> None:
    response = await client.post("/games/letter-match/start", json={"learner_id": "kid-1", "lesson": 1, "level": 7})
    assert response.status_code == 404
    assert (await _start(client, lesson=11)).status_code == 404
    assert (await client.get("/progress/kid-1/reading/levels/7")).status_code == 404


async def test_unknown_session(client) -> None:
    response = await client.post("/games/sessions/nope/answer", json={"selected_answer": "a"})
    assert response.status_code == 404


async def test_save_before_finishing_conflicts(client) -> None:
    session_id = (await _start(client)).json()["session_id"]
    response = await client.post(f"/games/sessions/{session_id}/save")
    assert response.status_code == 409


async def test_abandoned_game_saves_nothing(client) -> None:
    session_id = (await _start(client)).json()["session_id"]
    await client.post(f"/games/sessions/{session_id}/answer", json={"selected_answer": "wrong"})

    response = await client.delete(f"/games/sessions/{session_id}")
    assert response.status_code == 204
    assert session_id not in games._sessions

    overview = (await client.get("/progress/kid-1/reading/levels/1")).json()
    assert all(lesson["progress"] is None for lesson in overview["lessons"])
    assert (await client.get("/progress/kid-1/streak")).status_code == 404


async def test_failed_save_can_be_retried(client, monkeypatch) -> None:
    session_id = (await _start(client)).json()["session_id"]

    original_put = ProgressStore.put_lesson

    async def broken_put_lesson(self, record):
        raise PersistenceError("progress store offline")

    monkeypatch.setattr(ProgressStore, "put_lesson", broken_put_lesson)
    final = await _play(client, session_id)
    assert final["finished"] is True
    assert final["saved"] is False
    assert "offline" in final["save_error"]
    assert final["results"]["stars"] == 3
    assert session_id in games._sessions

    # Answering a finished game is refused
    response = await client.post(f"/games/sessions/{session_id}/answer", json={"selected_answer": "a"})
    assert response.status_code == 409

    monkeypatch.setattr(ProgressStore, "put_lesson", original_put)
    retry = await client.post(f"/games/sessions/{session_id}/save")
    assert retry.status_code == 200
    assert retry.json()["saved"] is True
    assert retry.json()["progress"]["stars"] == 3
    assert session_id not in games._sessions


async def test_idle_games_are_evicted(client, clock, monkeypatch) -> None:
    monkeypatch.setattr(games, "_now", clock)
    idle = [(await _start(client)).json()["session_id"] for _ in range(3)]
    clock.advance(minutes=20)
    active = (await _start(client)).json()["session_id"]
    await client.post(f"/games/sessions/{idle[0]}/answer", json={"selected_answer": "wrong"})

    clock.advance(minutes=15)
    newest = (await _start(client)).json()["session_id"]

    assert set(games._sessions) == {idle[0], active, newest}
    assert set(games._last_seen) == set(games._sessions)
    response = await client.post(f"/games/sessions/{idle[1]}/answer", json={"selected_answer": "a"})
    assert response.status_code == 404


async def test_game_is_not_registered_while_saving(client, monkeypatch) -> None:
    session_id = (await _start(client)).json()["session_id"]
    record_completion = progress_service.record_completion
    seen = []

    async def checking_record_completion(store, learner_id, session, **kwargs):
        seen.append(session_id in games._sessions)
        return await record_completion(store, learner_id, session, **kwargs)

    monkeypatch.setattr(progress_service, "record_completion", checking_record_completion)
    final = await _play(client, session_id)

    assert seen == [False]
    assert final["saved"] is True
    assert final["progress"]["attempts"] == 1
    assert (await client.post(f"/games/sessions/{session_id}/save")).status_code == 404
