"""Configuration loader and Pydantic settings.

Values come from ``config.yaml`` at the project root (or an explicit path),
falling back to defaults for anything missing.  Secrets are read from the
process environment so they never have to live in the YAML file:

  - TELEGRAM_BOT_TOKEN overrides ``telegram.bot_token``
  - TELEGRAM_WEBHOOK_URL overrides ``telegram.webhook_url``
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# First hyphen segment of an event slug -> category name.
DEFAULT_SLUG_MAP: dict[str, str] = {
    "bitcoin": "Crypto", "btc": "Crypto", "ethereum": "Crypto", "eth": "Crypto",
    "solana": "Crypto", "sol": "Crypto", "xrp": "Crypto", "doge": "Crypto",
    "dogecoin": "Crypto", "crypto": "Crypto", "microstrategy": "Crypto",
    "oscars": "Pop Culture", "grammys": "Pop Culture", "emmys": "Pop Culture",
    "taylor": "Pop Culture", "movie": "Pop Culture", "album": "Pop Culture",
    "spotify": "Pop Culture", "netflix": "Pop Culture", "mrbeast": "Pop Culture",
    "world": "World", "pope": "World", "earthquake": "World", "hurricane": "World",
    "trump": "Trump", "maga": "Trump",
    "openai": "Tech", "apple": "Tech", "google": "Tech", "tesla": "Tech",
    "nvidia": "Tech", "ai": "Tech", "spacex": "Tech", "elon": "Tech",
    "nfl": "Sports", "nba": "Sports", "mlb": "Sports", "nhl": "Sports",
    "epl": "Sports", "ufc": "Sports", "ncaa": "Sports", "cfb": "Sports",
    "f1": "Sports", "tennis": "Sports", "uefa": "Sports", "fifa": "Sports",
    "super": "Sports", "wnba": "Sports",
    "politics": "Politics", "senate": "Politics", "house": "Politics",
    "congress": "Politics", "biden": "Politics", "supreme": "Politics",
    "cabinet": "Politics", "government": "Politics",
    "earnings": "Earnings", "q1": "Earnings", "q2": "Earnings", "q3": "Earnings",
    "q4": "Earnings",
    "fed": "Economy", "cpi": "Economy", "inflation": "Economy", "gdp": "Economy",
    "recession": "Economy", "unemployment": "Economy", "jobs": "Economy",
    "tariffs": "Economy", "interest": "Economy",
    "russia": "Geopolitics", "ukraine": "Geopolitics", "israel": "Geopolitics",
    "iran": "Geopolitics", "china": "Geopolitics", "taiwan": "Geopolitics",
    "gaza": "Geopolitics", "nato": "Geopolitics", "venezuela": "Geopolitics",
    "election": "Elections", "presidential": "Elections", "primary": "Elections",
    "midterms": "Elections", "mayor": "Elections", "governor": "Elections",
    "nyc": "Elections",
}


class TelegramConfig(BaseModel):
    bot_token: str = ""
    api_base: str = "https://api.telegram.org/bot"
    webhook_url: str = "https://app.vantake.trade/api/telegram/webhook"
    timeout_secs: float = 15.0
    alert_cooldown_secs: float = 300.0
    brand_line: str = "Vantake — Real-time Capital Intelligence"


class DataAPIConfig(BaseModel):
    base_url: str = "https://data-api.polymarket.com"
    timeout_secs: float = 15.0
    page_limit: int = 500


class CategoriesConfig(BaseModel):
    """Slug -> category lookup table handed to the scoring engine."""
    slug_map: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SLUG_MAP))


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: str = ""


class DashboardConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 2345


class AppConfig(BaseModel):
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    data_api: DataAPIConfig = Field(default_factory=DataAPIConfig)
    categories: CategoriesConfig = Field(default_factory=CategoriesConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)


def _apply_env_overrides(cfg: AppConfig) -> AppConfig:
    token = os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if token:
        cfg.telegram.bot_token = token
    webhook_url = os.environ.get("TELEGRAM_WEBHOOK_URL", "")
    if webhook_url:
        cfg.telegram.webhook_url = webhook_url
    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        path = _PROJECT_ROOT / "config.yaml"
    path = Path(path)
    if path.exists():
        with open(path) as f:
            raw: dict[str, Any] = yaml.safe_load(f) or {}
        return _apply_env_overrides(AppConfig(**raw))
    return _apply_env_overrides(AppConfig())
