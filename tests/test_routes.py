"""Smoke tests for the HTTP surface through FastAPI's TestClient."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from dal.signage_store import SignageStore
from main import create_app
from models.poll_record import POLL_STATUS_ACTIVE, PollOption, PollRecord
from models.screen_record import Playlist, Slide
from utils.database_init import AsyncDatabaseInitializer


async def _seed() -> int:
    store = SignageStore(AsyncDatabaseInitializer())
    first = await store.create_slide(Slide(id=0, type="EVENT", title="Trivia night"))
    second = await store.create_slide(Slide(id=0, type="MEMBERSHIP", title="Join the club"))
    await store.create_playlist(Playlist(id=0, name="Main", is_default=True), [first, second])
    return await store.create_poll(
        PollRecord(
            id=0,
            question="Nap or play?",
            status=POLL_STATUS_ACTIVE,
            options=(PollOption("nap", "Nap"), PollOption("play", "Play")),
        )
    )


@pytest.fixture
def seeded(database_dir, monkeypatch):
    for name in ("SLIDE_REFRESH_SECONDS", "GUEST_FEED_SECONDS", "TICK_SECONDS"):
        monkeypatch.setenv(name, "3600")
    return asyncio.run(_seed())


@pytest.fixture
def client(seeded):
    with TestClient(create_app()) as test_client:
        yield test_client


def test_health(client):
    body = client.get("/health").json()
    assert body == {"ok": True, "db_initialized": True, "is_offline": False}


def test_slide_navigation(client):
    current = client.get("/display/slide").json()
    assert not current["empty"]
    assert current["slide"]["title"] in ("Trivia night", "Join the club")

    advanced = client.post("/display/advance").json()
    assert advanced["slide"]["id"] != current["slide"]["id"]
    back = client.post("/display/retreat").json()
    assert back["slide"]["id"] == current["slide"]["id"]


def test_playlist_reports_serving_tier(client):
    body = client.get("/display/playlist").json()
    assert body["reason"] == "default"
    assert body["playlist_name"] == "Main"
    assert len(body["rotation"]) == 2


def test_poll_vote_results_and_reset(client, seeded):
    poll = client.get("/display/poll").json()
    assert poll["poll"]["id"] == seeded
    assert [o["id"] for o in poll["options"]] == ["nap", "play"]
    assert poll["phase"] in ("voting", "results")

    vote = client.post(f"/polls/{seeded}/votes", json={"option_id": "nap", "voter_fingerprint": "phone-1"})
    assert vote.json()["success"] is True
    again = client.post(f"/polls/{seeded}/votes", json={"option_id": "play", "voter_fingerprint": "phone-1"})
    assert again.json()["already_voted"] is True

    results = client.get(f"/polls/{seeded}/results").json()
    assert results["total_votes"] == 1
    assert [(o["id"], o["percentage"]) for o in results["options"]] == [("nap", 100), ("play", 0)]

    assert client.post(f"/polls/{seeded}/reset").json() == {"poll_id": seeded, "reset": True}
    assert client.get(f"/polls/{seeded}/results").json()["total_votes"] == 0


def test_unknown_poll_is_404(client):
    assert client.get("/polls/999/results").status_code == 404
    assert client.post("/polls/999/reset").status_code == 404
    response = client.post("/polls/999/votes", json={"option_id": "a", "voter_fingerprint": "x"})
    assert response.status_code == 404


def test_vote_payload_is_validated(client, seeded):
    response = client.post(f"/polls/{seeded}/votes", json={"option_id": "", "voter_fingerprint": "x"})
    assert response.status_code == 422


def test_overlay_endpoints_are_empty_without_guests(client):
    reminders = client.get("/display/reminders").json()
    assert reminders["reminders"] == []
    assert isinstance(reminders["scheduled"], list)
    assert client.get("/display/welcomes").json()["welcomes"] == []
