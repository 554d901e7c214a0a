"""Dashboard API — Flask application behind the trader pages.

Serves JSON for the web UI at http://localhost:2345:
  - Category proficiency for a trader (detail list, radar series and
    radar polygon geometry)
  - The Telegram webhook endpoint the bot is registered against

Trader data is fetched from the Polymarket Data API on demand and kept
for a short while so repeated page loads reuse the computed scores.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

_project_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(_project_root / ".env")

import httpx
from flask import Flask, jsonify, request
from tenacity import RetryError

from vantake.analytics.category_scoring import CategoryProficiency, CategoryScorer
from vantake.analytics.presentation import badge_tooltip, polygon_points, radar_vertices
from vantake.config import AppConfig, load_config
from vantake.connectors.polymarket_data import (
    DataAPIClient,
    TraderPosition,
    TraderProfile,
    TraderTrade,
    build_profile,
)
from vantake.notifications.telegram import TelegramClient, TelegramConfigError
from vantake.notifications.webhook import handle_update
from vantake.observability.logger import get_logger
from vantake.observability.sentry_integration import init_sentry
from vantake.storage.cache import TTLCache

init_sentry()

log = get_logger(__name__)

app = Flask(__name__)

_config: AppConfig | None = None

_TRADER_TTL_SECS = 60.0
_TRADER_CACHE_MAX = 256
# address -> TraderData
_trader_cache = TTLCache(max_entries=_TRADER_CACHE_MAX, ttl_secs=_TRADER_TTL_SECS)


def _get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _run_async(coro: Any) -> Any:
    """Run a coroutine to completion from a sync Flask view."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ─── Dashboard Authentication ──────────────────────────────────────

_DASHBOARD_API_KEY = os.environ.get("DASHBOARD_API_KEY", "")
_OPEN_PATHS = ("/health", "/api/telegram/webhook")


def _check_auth() -> bool:
    if not _DASHBOARD_API_KEY:
        return True  # no key configured: open access
    token = request.headers.get("X-API-Key") or request.args.get("api_key", "")
    return token == _DASHBOARD_API_KEY


@app.before_request
def _require_auth() -> Any:
    if request.path in _OPEN_PATHS:
        return None
    if not _check_auth():
        return jsonify({"error": "unauthorized", "message": "Set X-API-Key header or ?api_key= param"}), 401
    return None


# ─── Health ────────────────────────────────────────────────────────

@app.route("/health")
def health() -> Any:
    return jsonify({"status": "ok", "service": "vantake"})


# ─── Trader Proficiency ────────────────────────────────────────────

async def _fetch_trader(
    address: str,
) -> tuple[list[TraderPosition], list[TraderTrade], TraderProfile | None]:
    cfg = _get_config().data_api
    client = DataAPIClient(cfg.base_url, timeout_secs=cfg.timeout_secs)
    try:
        positions = await client.get_positions(address, limit=cfg.page_limit)
        trades = await client.get_trades(address, limit=cfg.page_limit)
    finally:
        await client.close()
    return positions, trades, build_profile(address, positions, trades)


@dataclass
class TraderData:
    """Fetched trader data and the scorer memoizing on it; cached together
    so both are evicted at the same time."""
    positions: list[TraderPosition]
    trades: list[TraderTrade]
    profile: TraderProfile | None
    scorer: CategoryScorer

    def score(self) -> CategoryProficiency:
        return self.scorer.score(self.positions, self.trades, self.profile)


def _load_trader(address: str) -> TraderData:
    cached = _trader_cache.get(address)
    if cached is not None:
        return cached

    positions, trades, profile = _run_async(_fetch_trader(address))
    data = TraderData(
        positions=positions,
        trades=trades,
        profile=profile,
        scorer=CategoryScorer(_get_config().categories.slug_map),
    )
    _trader_cache.put(address, data)
    return data


@app.route("/api/traders/<address>/categories")
def api_trader_categories(address: str) -> Any:
    """Category proficiency for one wallet."""
    address = address.lower()
    try:
        trader = _load_trader(address)
    except (httpx.HTTPError, RetryError) as e:
        log.error("dashboard.data_api_error", address=address[:10], error=str(e))
        return jsonify({"error": "upstream_unavailable", "message": str(e)[:200]}), 502

    result = trader.score()
    profile = trader.profile

    vertices = radar_vertices(result.radar)
    top = result.stats[0] if result.stats else None
    return jsonify({
        "address": address,
        "profile": profile.to_dict() if profile else None,
        "categories": result.to_dict(),
        "radar_vertices": [v.to_dict() for v in vertices],
        "radar_polygon": polygon_points(vertices),
        "top_category": top.name if top else None,
        "badge": badge_tooltip(top),
    })


# ─── Telegram Webhook ──────────────────────────────────────────────

@app.route("/api/telegram/webhook", methods=["GET"])
def api_telegram_webhook_probe() -> Any:
    """Reachability probe used when diagnosing the webhook."""
    return jsonify({"ok": True, "service": "telegram-webhook"})


@app.route("/api/telegram/webhook", methods=["POST"])
def api_telegram_webhook() -> Any:
    update = request.get_json(silent=True) or {}

    async def _route() -> dict[str, Any]:
        client = TelegramClient(_get_config().telegram)
        try:
            return await handle_update(client, update)
        finally:
            await client.close()

    try:
        result = _run_async(_route())
    except TelegramConfigError as e:
        log.error("dashboard.telegram_not_configured", error=str(e))
        return jsonify({"ok": False, "error": str(e)}), 500

    return jsonify({"ok": True, "result": result})


def run_dashboard(
    config_path: str | None = None,
    host: str | None = None,
    port: int | None = None,
    debug: bool = False,
) -> None:
    """Start the dashboard Flask server."""
    global _config
    _config = load_config(config_path)
    host = host or _config.dashboard.host
    port = port or _config.dashboard.port

    print(f"\n  🚀 Vantake Dashboard API")
    print(f"  ➜  http://{host}:{port}")
    print(f"  🤖 Telegram webhook: {_config.telegram.webhook_url}")
    print()
    app.run(host=host, port=port, debug=debug)
