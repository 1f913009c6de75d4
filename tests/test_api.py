"""Tests for the figbass-engine API endpoints."""

import pytest
from fastapi.testclient import TestClient

from figbass_engine.api.main import create_app


@pytest.fixture()
def client():
    app = create_app()
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    def test_returns_ok(self, client):
        r = client.get("/api/v1/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

    def test_has_version(self, client):
        r = client.get("/api/v1/health")
        assert r.json()["version"] == "0.1.0"


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


class TestReferenceEndpoints:
    def test_tokens(self, client):
        r = client.get("/api/v1/tokens")
        assert r.status_code == 200
        data = r.json()
        assert data["modifiers"]["sharp"] == ["#"]
        assert data["modifiers"]["double_sharp"][0] == "##"
        assert data["parentheses"]["round_open"] == ["("]
        assert data["continuation"] == ["_"]

    def test_fonts(self, client):
        r = client.get("/api/v1/fonts")
        assert r.status_code == 200
        families = [f["family"] for f in r.json()]
        assert families == ["Unicode", "ASCII"]


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------


class TestParseEndpoint:
    def test_parses_lines(self, client):
        r = client.post("/api/v1/figured-bass/parse", json={"text": "(b5)\n6_"})
        assert r.status_code == 200
        body = r.json()
        assert body["freeform"] is False
        assert body["raw_fallback_text"] is None
        assert body["normalized_text"] == "(b5)\n6_"
        first, second = body["items"]
        assert first["ordinal"] == 0
        assert first["prefix"] == "flat"
        assert first["digit"] == 5
        assert first["parenthesis"] == [
            "round_open", "none", "round_closed", "none", "none",
        ]
        assert first["display_text"] == "(♭5)"
        assert second["continuation"] is True
        assert second["normalized_text"] == "6_"

    def test_normalizes_aliases(self, client):
        r = client.post("/api/v1/figured-bass/parse", json={"text": "x6\nn"})
        assert r.json()["normalized_text"] == "##6\nh"

    def test_unparseable_text_is_freeform(self, client):
        r = client.post("/api/v1/figured-bass/parse", json={"text": "6\n4#3!"})
        assert r.status_code == 200
        body = r.json()
        assert body["freeform"] is True
        assert body["raw_fallback_text"] == "6\n4#3!"
        assert body["normalized_text"] == "6\n4#3!"
        assert body["items"] == []


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


class TestLayoutEndpoint:
    def test_unconstrained(self, client):
        r = client.post(
            "/api/v1/figured-bass/layout",
            json={"text": "#6\n4_", "duration_ticks": 480},
        )
        assert r.status_code == 200
        body = r.json()
        assert body["line_lengths"] == [0.0, 4.0]
        assert body["item_offsets"] == [-1.0, 0.0]
        assert body["duration_ticks"] == 480
        assert body["on_event"] is True

    def test_capped_by_space(self, client):
        r = client.post(
            "/api/v1/figured-bass/layout",
            json={
                "text": "6_",
                "duration_ticks": 960,
                "on_event": False,
                "space_until_next_event": 1.5,
            },
        )
        body = r.json()
        assert body["line_lengths"] == [1.5]
        assert body["on_event"] is False

    def test_freeform_has_no_lines(self, client):
        r = client.post(
            "/api/v1/figured-bass/layout",
            json={"text": "??", "duration_ticks": 480},
        )
        body = r.json()
        assert body["freeform"] is True
        assert body["line_lengths"] == []

    def test_rejects_nan_space(self, client):
        r = client.post(
            "/api/v1/figured-bass/layout",
            content=b'{"text": "6_", "duration_ticks": 480, "space_until_next_event": NaN}',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 422

    def test_rejects_negative_duration(self, client):
        r = client.post(
            "/api/v1/figured-bass/layout",
            json={"text": "6", "duration_ticks": -1},
        )
        assert r.status_code == 422


# ---------------------------------------------------------------------------
# Normalize
# ---------------------------------------------------------------------------


class TestNormalizeEndpoint:
    def test_normalizes_items(self, client):
        r = client.post(
            "/api/v1/figured-bass/normalize",
            json={"items": [
                {"prefix": "flat", "digit": 5},
                {"digit": 6, "continuation": True},
                {},
            ]},
        )
        assert r.status_code == 200
        assert r.json()["text"] == "b5\n6_\n"

    def test_rejects_digit_out_of_range(self, client):
        r = client.post(
            "/api/v1/figured-bass/normalize",
            json={"items": [{"digit": 12}]},
        )
        assert r.status_code == 422

    def test_rejects_suffix_only_prefix(self, client):
        r = client.post(
            "/api/v1/figured-bass/normalize",
            json={"items": [{"prefix": "plus", "digit": 6}]},
        )
        assert r.status_code == 422
        assert "prefix" in r.json()["detail"]

    def test_rejects_wrong_parenthesis_count(self, client):
        r = client.post(
            "/api/v1/figured-bass/normalize",
            json={"items": [{"digit": 6, "parenthesis": ["round_open"]}]},
        )
        assert r.status_code == 422
