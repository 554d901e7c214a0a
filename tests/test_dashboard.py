"""Tests for the dashboard API endpoints."""

from __future__ import annotations

import httpx
import pytest
from tenacity import RetryError


@pytest.fixture()
def app_mod(monkeypatch):
    import vantake.dashboard.app as app_mod
    from vantake.config import AppConfig

    monkeypatch.setattr(app_mod, "_config", AppConfig())
    monkeypatch.setattr(app_mod, "_DASHBOARD_API_KEY", "")
    app_mod._trader_cache.clear()
    app_mod.app.config["TESTING"] = True
    yield app_mod
    app_mod._trader_cache.clear()


@pytest.fixture()
def client(app_mod):
    with app_mod.app.test_client() as c:
        yield c


def _sample_trader(address: str):
    from vantake.connectors.polymarket_data import TraderPosition, TraderTrade, build_profile
    positions = [
        TraderPosition(event_slug="bitcoin-above-100k", cash_pnl=400.0),
        TraderPosition(event_slug="nba-finals", cash_pnl=-20.0),
    ]
    trades = [
        TraderTrade(event_slug="bitcoin-above-100k", side="BUY", size=1000, price=0.4,
                    timestamp=1735689600, trader_name="whale42"),
        TraderTrade(event_slug="nba-finals", side="BUY", size=100, price=0.5,
                    timestamp=1735776000),
    ]
    return positions, trades, build_profile(address, positions, trades)


class TestHealthAndAuth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok", "service": "vantake"}

    def test_api_key_required_when_configured(self, app_mod, client, monkeypatch):
        monkeypatch.setattr(app_mod, "_DASHBOARD_API_KEY", "sekret")
        assert client.get("/api/traders/0xabc/categories").status_code == 401
        assert client.get("/health").status_code == 200
        assert client.get("/api/telegram/webhook").status_code == 200

    def test_api_key_accepted(self, app_mod, client, monkeypatch):
        monkeypatch.setattr(app_mod, "_DASHBOARD_API_KEY", "sekret")

        async def _fake_fetch(address):
            return [], [], None

        monkeypatch.setattr(app_mod, "_fetch_trader", _fake_fetch)
        resp = client.get("/api/traders/0xabc/categories", headers={"X-API-Key": "sekret"})
        assert resp.status_code == 200


class TestTraderCategories:

    def test_scores_trader(self, app_mod, client, monkeypatch):
        async def _fake_fetch(address):
            return _sample_trader(address)

        monkeypatch.setattr(app_mod, "_fetch_trader", _fake_fetch)
        resp = client.get("/api/traders/0xABC/categories")
        assert resp.status_code == 200

        data = resp.get_json()
        assert data["address"] == "0xabc"
        assert data["profile"]["name"] == "whale42"
        assert data["top_category"] == "Crypto"
        assert len(data["categories"]["stats"]) == 11
        assert [p["category"] for p in data["categories"]["radar"]][:2] == ["Crypto", "Pop Culture"]
        assert len(data["radar_vertices"]) == 11
        assert len(data["radar_polygon"].split(" ")) == 11
        assert set(data["badge"]) == {"risk_efficiency", "profitability"}

    def test_empty_history(self, app_mod, client, monkeypatch):
        async def _fake_fetch(address):
            return [], [], None

        monkeypatch.setattr(app_mod, "_fetch_trader", _fake_fetch)
        data = client.get("/api/traders/0xnobody/categories").get_json()
        assert data["profile"] is None
        assert data["categories"] == {"stats": [], "radar": []}
        assert data["top_category"] is None
        assert data["radar_polygon"] == ""
        assert data["badge"] == {"risk_efficiency": 50.0, "profitability": 50.0}

    def test_cached_between_requests(self, app_mod, client, monkeypatch):
        calls = []

        async def _fake_fetch(address):
            calls.append(address)
            return _sample_trader(address)

        monkeypatch.setattr(app_mod, "_fetch_trader", _fake_fetch)
        first = client.get("/api/traders/0xabc/categories").get_json()
        second = client.get("/api/traders/0xabc/categories").get_json()
        assert calls == ["0xabc"]
        assert first == second

    def test_trader_cache_stays_bounded(self, app_mod, client, monkeypatch):
        from vantake.storage.cache import TTLCache

        async def _fake_fetch(address):
            return _sample_trader(address)

        monkeypatch.setattr(app_mod, "_fetch_trader", _fake_fetch)
        monkeypatch.setattr(app_mod, "_trader_cache", TTLCache(max_entries=10, ttl_secs=60))
        for i in range(50):
            assert client.get(f"/api/traders/0x{i:040x}/categories").status_code == 200
        assert len(app_mod._trader_cache) == 10

    def test_expired_traders_dropped_with_their_scorer(self, app_mod, client, monkeypatch):
        from types import SimpleNamespace

        import vantake.storage.cache as cache_mod

        clock = [1_000_000.0]
        monkeypatch.setattr(cache_mod, "time", SimpleNamespace(time=lambda: clock[0]))

        async def _fake_fetch(address):
            return _sample_trader(address)

        monkeypatch.setattr(app_mod, "_fetch_trader", _fake_fetch)
        for i in range(30):
            client.get(f"/api/traders/0x{i:040x}/categories")
        first = app_mod._trader_cache.get("0x" + "0" * 40)
        assert len(app_mod._trader_cache) == 30

        clock[0] += app_mod._TRADER_TTL_SECS + 1
        client.get("/api/traders/0xfresh/categories")
        assert len(app_mod._trader_cache) == 1

        client.get(f"/api/traders/0x{0:040x}/categories")
        refreshed = app_mod._trader_cache.get("0x" + "0" * 40)
        assert refreshed is not first
        assert refreshed.scorer is not first.scorer

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("down"),
        RetryError(last_attempt=None),
    ])
    def test_upstream_failure(self, app_mod, client, monkeypatch, error):
        async def _fake_fetch(address):
            raise error

        monkeypatch.setattr(app_mod, "_fetch_trader", _fake_fetch)
        resp = client.get("/api/traders/0xabc/categories")
        assert resp.status_code == 502
        assert resp.get_json()["error"] == "upstream_unavailable"


class TestTelegramWebhook:

    def test_liveness_get(self, client):
        resp = client.get("/api/telegram/webhook")
        assert resp.get_json() == {"ok": True, "service": "telegram-webhook"}

    def test_routes_update(self, app_mod, client, monkeypatch):
        seen = []

        async def _fake_handle(tg_client, update):
            seen.append(update)
            return {"action": "ignored"}

        monkeypatch.setattr(app_mod, "handle_update", _fake_handle)
        resp = client.post("/api/telegram/webhook", json={"update_id": 1})
        assert resp.status_code == 200
        assert resp.get_json() == {"ok": True, "result": {"action": "ignored"}}
        assert seen == [{"update_id": 1}]

    def test_missing_token(self, client, monkeypatch):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        resp = client.post(
            "/api/telegram/webhook",
            json={"message": {"chat": {"id": 1}, "text": "/start"}},
        )
        assert resp.status_code == 500
        assert "TELEGRAM_BOT_TOKEN" in resp.get_json()["error"]
