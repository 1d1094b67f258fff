from __future__ import annotations

import pytest
from flask import Flask

from src.shiftdesk.shiftdesk.core.exceptions import BreakTooShort, NotYourSession, SessionNotFound
from src.shiftdesk.shiftdesk.errors import register_error_handlers


@pytest.fixture
def client():
    app = Flask(__name__)
    register_error_handlers(app)

    @app.get("/too-short")
    def too_short():
        raise BreakTooShort(min_duration=5, requested=3)

    @app.get("/forbidden")
    def forbidden():
        raise NotYourSession(session_id=7)

    @app.get("/missing")
    def missing():
        raise SessionNotFound(session_id=8)

    @app.get("/crash")
    def crash():
        raise RuntimeError("boom")

    return app.test_client()


def test_domain_error_maps_to_status_and_code(client):
    resp = client.get("/too-short")

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"]["code"] == "shift.breakTooShort"
    assert body["error"]["detail"] == {"min_duration": 5, "requested": 3}


@pytest.mark.parametrize(
    "path,status,code",
    [("/forbidden", 403, "shift.notYourSession"), ("/missing", 404, "shift.sessionNotFound")],
)
def test_error_families_keep_http_status(client, path, status, code):
    resp = client.get(path)

    assert resp.status_code == status
    assert resp.get_json()["error"]["code"] == code


def test_unknown_route_and_crash_are_json(client):
    assert client.get("/nope").status_code == 404
    assert client.get("/nope").get_json()["success"] is False

    resp = client.get("/crash")
    assert resp.status_code == 500
    assert resp.get_json()["error"]["message"] == "Internal server error"
