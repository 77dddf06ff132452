"""HTTP tests for /oracle/* and the static shell."""

import pytest
from fastapi.testclient import TestClient

from conftest import PNG_BYTES
from oraculum.errors import EmptyResponse, NoImageProduced
from oraculum.main import app
from oraculum.sessions import COOKIE_NAME, SessionRegistry
from oraculum.state import Drawing


@pytest.fixture
def registry(fake_client):
    original = app.state.registry
    app.state.registry = SessionRegistry(fake_client)
    yield app.state.registry
    app.state.registry = original


@pytest.fixture
def client(registry):
    return TestClient(app)


def current(client, registry):
    return registry.get(client.cookies.get(COOKIE_NAME))


def test_initial_state_sets_session_cookie(client):
    r = client.get("/oracle/state")
    assert r.status_code == 200
    assert r.json()["mode"] == "idle"
    assert r.json()["reading"] is None
    assert client.cookies.get(COOKIE_NAME)


def test_draw(client):
    r = client.post("/oracle/draw")
    assert r.status_code == 200
    data = r.json()
    assert data["mode"] == "viewing"
    assert data["reading"]["name"] == "Le Soleil"
    assert data["reading"]["spiritual_message"].startswith("Laisse")
    assert data["image"].startswith("data:image/png;base64,")
    assert data["error"] is None

    # state survives across requests of the same browser
    assert client.get("/oracle/state").json()["mode"] == "viewing"


def test_draw_failure_is_state_not_http_error(client, fake_client):
    fake_client.reading_error = EmptyResponse()
    r = client.post("/oracle/draw")
    assert r.status_code == 200
    data = r.json()
    assert data["mode"] == "idle"
    assert data["error"] == "Réponse vide de l'oracle."
    assert data["error_kind"] == "empty_response"


def test_draw_while_busy_conflicts(client, registry):
    client.get("/oracle/state")
    current(client, registry).state = Drawing()

    r = client.post("/oracle/draw")
    assert r.status_code == 409
    assert current(client, registry).state == Drawing()


def test_retry_image(client, fake_client):
    fake_client.image_error = NoImageProduced()
    data = client.post("/oracle/draw").json()
    assert data["can_retry_image"] is True
    assert data["error"] == "Impossible de générer l'image de la carte."

    fake_client.image_error = None
    r = client.post("/oracle/retry-image")
    assert r.status_code == 200
    assert r.json()["mode"] == "viewing"


def test_retry_image_without_reading(client):
    assert client.post("/oracle/retry-image").status_code == 409


def test_edit(client, fake_client):
    client.post("/oracle/draw")
    r = client.post("/oracle/edit", json={"prompt": "cyberpunk style"})
    assert r.status_code == 200
    data = r.json()
    assert data["edit_prompt"] == ""
    assert data["is_editing_image"] is False
    assert fake_client.calls[-1][2] == "cyberpunk style"


def test_edit_with_stored_draft(client, fake_client):
    client.post("/oracle/draw")
    r = client.put("/oracle/edit-prompt", json={"text": "style vitrail"})
    assert r.json()["edit_prompt"] == "style vitrail"

    assert client.post("/oracle/edit", json={}).status_code == 200
    assert fake_client.calls[-1][2] == "style vitrail"


def test_edit_rejections(client, fake_client):
    assert client.post("/oracle/edit", json={"prompt": "néon"}).status_code == 409
    assert client.put("/oracle/edit-prompt", json={"text": "néon"}).status_code == 409

    client.post("/oracle/draw")
    assert client.post("/oracle/edit", json={"prompt": "   "}).status_code == 400
    assert [c[0] for c in fake_client.calls] == ["reading", "image"]


def test_card_image(client):
    assert client.get("/oracle/card-image").status_code == 404

    client.post("/oracle/draw")
    r = client.get("/oracle/card-image")
    assert r.status_code == 200
    assert r.content == PNG_BYTES
    assert r.headers["content-type"] == "image/png"


def test_share(client):
    assert client.get("/oracle/share").status_code == 404

    client.post("/oracle/draw")
    r = client.get("/oracle/share", params={"page_url": "https://oraculum.example/"})
    assert r.status_code == 200
    data = r.json()
    assert data["title"] == "Mon Tirage Oraculum"
    assert data["file_name"] == "oraculum-card.png"
    assert "Carte: Le Soleil" in data["text"]
    assert data["image_url"].endswith("/oracle/card-image")
    assert data["fallback_url"].startswith("https://www.facebook.com/sharer/sharer.php?u=https%3A%2F%2Foraculum.example%2F")


def test_sessions_are_isolated(registry):
    alice, bob = TestClient(app), TestClient(app)
    alice.post("/oracle/draw")

    assert alice.get("/oracle/state").json()["mode"] == "viewing"
    assert bob.get("/oracle/state").json()["mode"] == "idle"


def test_static_shell(client):
    assert "ORACULUM" in client.get("/").text
    sw = client.get("/sw.js")
    assert sw.status_code == 200
    assert "oraculum-cache-v1" in sw.text
    assert client.get("/manifest.json").json()["short_name"] == "Oraculum"
    assert client.get("/health").json()["ok"] is True
