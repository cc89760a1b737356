import pytest
from fastapi.testclient import TestClient

from brandscape.errors import GenerationBackendError
from brandscape.models.app_config import AppConfig
from brandscape.server import get_server_config, init_app
from brandscape.services.logo_screening import MISSING_KEY_WARNING
from brandscape.services.trademark_risk import DISCLAIMER
from brandscape.utils.cache import TTLCache
from conftest import LOGO_TEXT, PALETTE_LINES, FakeGenerator, FakeImageGenerator

BRIEF = {"description": "hand-dyed knitting yarn shop", "visuals": "yarn ball, needles", "brand_values": "warm"}


@pytest.fixture
def make_client(make_dependencies, names_json):
    def factory(sessions=None, **overrides):
        config = AppConfig(screen_logo_after_generation=False)
        generator = FakeGenerator([names_json, PALETTE_LINES, LOGO_TEXT])
        deps = make_dependencies(app_config=config, generator=generator, **overrides)
        return TestClient(init_app(deps, sessions=sessions))
    return factory


def test_health_endpoints(make_client):
    with make_client() as client:
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/ready").json() == {"status": "ready"}


def test_full_session_flow(make_client):
    with make_client() as client:
        response = client.post("/api/names", json=BRIEF)
        assert response.status_code == 200
        body = response.json()
        session_id = body["session_id"]
        assert len(body["suggestions"]) == 5
        assert body["suggestions"][0]["domains"]["loomlane.com"] == "taken"

        selected = client.post("/api/names/select", json={"session_id": session_id, "index": 0}).json()
        assert selected["selected"]["title"] == "Loom Lane"

        colors = client.post("/api/colors", json={"session_id": session_id}).json()
        assert len(colors["palettes"]) == 5
        assert colors["fallback"] is False
        client.post("/api/colors/select", json={"session_id": session_id, "index": 0})

        prompt = client.post("/api/logo-prompt", json={"session_id": session_id}).json()
        assert prompt["includes_hex_codes"] is True

        logo = client.post("/api/logo", json={"session_id": session_id}).json()
        image = client.get(logo["locator"])
        assert image.status_code == 200
        assert image.content == b"\x89PNG fake logo"

        screening = client.post("/api/logo-screening", json={"session_id": session_id}).json()
        assert screening["warnings"] == [MISSING_KEY_WARNING]

        state = client.get(f"/api/sessions/{session_id}").json()
        assert state["stage"] == "logo_image"


def test_errors_are_json(make_client):
    with make_client() as client:
        missing = client.post("/api/names/select", json={"session_id": "nope", "index": 0})
        assert missing.status_code == 404
        assert "error" in missing.json()

        session_id = client.post("/api/names", json=BRIEF).json()["session_id"]
        early = client.post("/api/logo-prompt", json={"session_id": session_id})
        assert early.status_code == 409
        assert "requires stage" in early.json()["error"]

        empty = client.post("/api/names", json={"description": "   "})
        assert empty.status_code == 400

        assert client.get("/api/logo/absent.png").status_code == 404


def test_image_failure_returns_prompt(make_client):
    with make_client(image_generator=FakeImageGenerator(error=GenerationBackendError("space busy"))) as client:
        session_id = client.post("/api/names", json=BRIEF).json()["session_id"]
        client.post("/api/names/select", json={"session_id": session_id, "index": 0})
        client.post("/api/colors", json={"session_id": session_id})
        client.post("/api/colors/select", json={"session_id": session_id, "index": 0})
        client.post("/api/logo-prompt", json={"session_id": session_id})

        response = client.post("/api/logo", json={"session_id": session_id, "prompt": "Edited #0B5394 #F4B183"})
        assert response.status_code == 502
        assert response.json()["prompt"] == "Edited #0B5394 #F4B183"
        assert response.json()["stage"] == "logo_image"


def test_screening_endpoints(make_client):
    with make_client() as client:
        domain = client.post("/api/domain", json={"name": "Loop & Purl"}).json()
        assert set(domain["domains"]) == {"loopandpurl.com", "loopandpurl.co.uk", "loopandpurl.uk"}

        trademark = client.post("/api/trademark", json={"name": "Acme Yarns"}).json()
        assert trademark["notes"].endswith(DISCLAIMER)
        assert trademark["cached"] is False
        again = client.post("/api/trademark", json={"name": "acme yarns"}).json()
        assert again["cached"] is True

        logo = client.post("/api/logo-trademark", json={"image_url": "https://cdn.test/logo.png"}).json()
        assert logo["image_url"] == "https://cdn.test/logo.png"
        assert logo["notes"].startswith("Logo trademark check unavailable")


def test_server_config_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "9001")
    assert get_server_config()["port"] == 9001


def test_idle_sessions_expire(make_client):
    clock = {"now": 0.0}
    sessions = TTLCache(ttl_seconds=60, clock=lambda: clock["now"])
    with make_client(sessions=sessions) as client:
        session_id = client.post("/api/names", json=BRIEF).json()["session_id"]

        clock["now"] = 50
        assert client.get(f"/api/sessions/{session_id}").status_code == 200

        # The read above restarted the idle timer
        clock["now"] = 100
        assert client.get(f"/api/sessions/{session_id}").status_code == 200

        clock["now"] = 200
        expired = client.post("/api/names/select", json={"session_id": session_id, "index": 0})
        assert expired.status_code == 404
        assert len(sessions) == 0
