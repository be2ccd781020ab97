import pytest
import requests

from game_analytics.enrichment import (
    RAWG_SEARCH_URL,
    RateLimiter,
    ThumbnailLookupError,
    lookup_thumbnail,
)


class _FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _patch_rawg(monkeypatch, payload, status_code=200, calls=None):
    def fake_get(url, params=None, timeout=None):
        if calls is not None:
            calls.append({"url": url, "params": params, "timeout": timeout})
        return _FakeResponse(payload, status_code)

    monkeypatch.setattr("game_analytics.enrichment.requests.get", fake_get)


def test_lookup_prefers_exact_title_match(monkeypatch):
    calls = []
    _patch_rawg(
        monkeypatch,
        {
            "results": [
                {"name": "Hades II", "background_image": "https://img/hades-2.jpg"},
                {"name": "Hades", "background_image": "https://img/hades.jpg"},
            ]
        },
        calls=calls,
    )

    thumbnail = lookup_thumbnail("  hades ", "secret", RateLimiter(0))

    assert thumbnail == "https://img/hades.jpg"
    assert calls == [
        {
            "url": RAWG_SEARCH_URL,
            "params": {"key": "secret", "search": "hades", "page_size": 5},
            "timeout": 10,
        }
    ]


def test_lookup_falls_back_to_first_image(monkeypatch):
    _patch_rawg(
        monkeypatch,
        {
            "results": [
                {"name": "Hades Fan Game", "background_image": None},
                {"name": "Hades II", "background_image": "https://img/hades-2.jpg"},
            ]
        },
    )

    assert lookup_thumbnail("Hades", "secret", RateLimiter(0)) == "https://img/hades-2.jpg"


def test_lookup_returns_none_without_results(monkeypatch):
    _patch_rawg(monkeypatch, {"results": []})

    assert lookup_thumbnail("Nothing", "secret", RateLimiter(0)) is None


def test_lookup_requires_name_and_key():
    with pytest.raises(ThumbnailLookupError) as missing_name:
        lookup_thumbnail("  ", "secret")
    assert missing_name.value.status_code == 400

    with pytest.raises(ThumbnailLookupError) as missing_key:
        lookup_thumbnail("Hades", None)
    assert missing_key.value.status_code == 503


def test_lookup_wraps_request_failures(monkeypatch):
    _patch_rawg(monkeypatch, {}, status_code=500)

    with pytest.raises(ThumbnailLookupError) as excinfo:
        lookup_thumbnail("Hades", "secret", RateLimiter(0))

    assert excinfo.value.status_code == 502


def test_lookup_rejects_invalid_json(monkeypatch):
    _patch_rawg(monkeypatch, ValueError("not json"))

    with pytest.raises(ThumbnailLookupError) as excinfo:
        lookup_thumbnail("Hades", "secret", RateLimiter(0))

    assert excinfo.value.status_code == 502


def test_thumbnail_route_saves_image(client, monkeypatch):
    _patch_rawg(
        monkeypatch, {"results": [{"name": "Hades", "background_image": "https://img/hades.jpg"}]}
    )
    game_id = client.post("/api/games", json={"name": "Hades"}).get_json()["id"]

    response = client.post(f"/api/games/{game_id}/thumbnail")

    assert response.status_code == 200
    assert response.get_json()["thumbnail"] == "https://img/hades.jpg"
    assert client.get(f"/api/games/{game_id}").get_json()["thumbnail"] == "https://img/hades.jpg"


def test_thumbnail_route_reports_missing_and_failed_lookups(client, monkeypatch):
    game_id = client.post("/api/games", json={"name": "Obscure"}).get_json()["id"]

    _patch_rawg(monkeypatch, {"results": []})
    assert client.post(f"/api/games/{game_id}/thumbnail").status_code == 404

    _patch_rawg(monkeypatch, {}, status_code=503)
    failed = client.post(f"/api/games/{game_id}/thumbnail")
    assert failed.status_code == 502
    assert "RAWG" in failed.get_json()["error"]
