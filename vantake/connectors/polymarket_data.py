"""Polymarket Data API connector.

The Data API provides user-level position and trade data, which feeds
the category proficiency scores on a trader's page.

Base URL: https://data-api.polymarket.com
Endpoints:
  - GET /positions?user={address}&limit=500
  - GET /trades?user={address}&limit=500
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential

from vantake.observability.logger import get_logger

log = get_logger(__name__)

DATA_API_BASE = "https://data-api.polymarket.com"

_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "vantake/1.0",
}


# ── Data Models ──────────────────────────────────────────────────────

@dataclass
class TraderPosition:
    """A single open or closed position held by a trader."""
    event_slug: str = ""
    slug: str = ""            # market slug (an event can hold several markets)
    title: str = ""
    condition_id: str = ""
    outcome: str = ""         # "Yes" / "No" / team name
    cash_pnl: float | None = None
    current_value: float = 0.0
    size: float = 0.0
    avg_price: float = 0.0
    cur_price: float = 0.0
    realized: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_slug": self.event_slug,
            "slug": self.slug,
            "title": self.title,
            "condition_id": self.condition_id,
            "outcome": self.outcome,
            "cash_pnl": None if self.cash_pnl is None else round(self.cash_pnl, 2),
            "current_value": round(self.current_value, 2),
            "size": round(self.size, 4),
            "avg_price": round(self.avg_price, 4),
            "cur_price": round(self.cur_price, 4),
            "realized": self.realized,
        }


@dataclass
class TraderTrade:
    """A single executed fill.

    ``timestamp`` is seconds since the epoch when the API gives a number,
    otherwise the raw date string.
    """
    timestamp: float | str = 0.0
    side: str = ""            # "BUY" | "SELL"
    size: float = 0.0
    price: float = 0.0
    event_slug: str = ""
    slug: str = ""
    condition_id: str = ""
    title: str = ""
    outcome: str = ""
    proxy_wallet: str = ""
    trader_name: str = ""
    transaction_hash: str = ""
    icon: str = ""

    @property
    def value_usd(self) -> float:
        return self.size * self.price

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "side": self.side,
            "size": round(self.size, 4),
            "price": round(self.price, 4),
            "event_slug": self.event_slug,
            "slug": self.slug,
            "condition_id": self.condition_id,
            "title": self.title,
            "outcome": self.outcome,
            "proxy_wallet": self.proxy_wallet,
            "trader_name": self.trader_name,
            "transaction_hash": self.transaction_hash,
            "value_usd": round(self.value_usd, 2),
        }


@dataclass
class TraderProfile:
    """Aggregate trader summary shown in the page header."""
    address: str
    name: str = ""
    pnl: float = 0.0
    vol: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "pnl": round(self.pnl, 2),
            "vol": round(self.vol, 2),
        }


def build_profile(
    address: str,
    positions: list[TraderPosition],
    trades: list[TraderTrade],
) -> TraderProfile | None:
    """Aggregate a profile from fetched data.

    Returns None when the wallet has no history at all, which downstream
    scoring treats as "nothing to show".
    """
    if not positions and not trades:
        return None
    name = next((t.trader_name for t in trades if t.trader_name), "")
    return TraderProfile(
        address=address,
        name=name,
        pnl=sum(p.cash_pnl or 0.0 for p in positions),
        vol=sum(t.value_usd for t in trades),
    )


# ── Client ───────────────────────────────────────────────────────────

class DataAPIClient:
    """Async client for Polymarket's Data API (positions & trades)."""

    def __init__(self, base_url: str = DATA_API_BASE, timeout_secs: float = 15.0):
        self._base = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_secs, connect=10.0)
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base,
                timeout=self._timeout,
                headers=_HEADERS,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=8))
    async def get_positions(
        self,
        address: str,
        *,
        limit: int = 500,
        offset: int = 0,
    ) -> list[TraderPosition]:
        """Fetch open and closed positions for a wallet address."""
        client = await self._ensure_client()
        params: dict[str, Any] = {
            "user": address.lower(),
            "limit": limit,
            "offset": offset,
        }
        resp = await client.get("/positions", params=params)
        resp.raise_for_status()
        data = resp.json()

        items = data if isinstance(data, list) else data.get("positions", data.get("data", []))
        positions = [parse_position(item) for item in items]

        log.debug(
            "data_api.positions_fetched",
            address=address[:10],
            count=len(positions),
        )
        return positions

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=8))
    async def get_trades(
        self,
        address: str,
        *,
        limit: int = 500,
        offset: int = 0,
    ) -> list[TraderTrade]:
        """Fetch executed trades for a wallet, newest first."""
        client = await self._ensure_client()
        params: dict[str, Any] = {
            "user": address.lower(),
            "limit": limit,
            "offset": offset,
        }
        resp = await client.get("/trades", params=params)
        resp.raise_for_status()
        data = resp.json()

        items = data if isinstance(data, list) else data.get("trades", data.get("data", []))
        trades = [parse_trade(item) for item in items]

        log.debug(
            "data_api.trades_fetched",
            address=address[:10],
            count=len(trades),
        )
        return trades


# ── Parsers ──────────────────────────────────────────────────────────

def _float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _timestamp(value: Any) -> float | str:
    """Numbers (and numeric strings) are epoch seconds; anything else is kept."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = str(value or "")
    try:
        return float(text)
    except ValueError:
        return text


def parse_position(raw: dict[str, Any]) -> TraderPosition:
    """Parse a raw position object from the Data API."""
    pnl_raw = raw.get("cashPnl", raw.get("cash_pnl"))
    return TraderPosition(
        event_slug=str(raw.get("eventSlug", raw.get("event_slug", "")) or ""),
        slug=str(raw.get("slug", "") or ""),
        title=str(raw.get("title", "") or ""),
        condition_id=str(raw.get("conditionId", raw.get("condition_id", "")) or ""),
        outcome=str(raw.get("outcome", "") or ""),
        cash_pnl=None if pnl_raw is None else _float(pnl_raw),
        current_value=_float(raw.get("currentValue", raw.get("current_value", 0))),
        size=_float(raw.get("size", 0)),
        avg_price=_float(raw.get("avgPrice", raw.get("avg_price", 0))),
        cur_price=_float(raw.get("curPrice", raw.get("cur_price", 0))),
        realized=bool(raw.get("realized", False)),
    )


def parse_trade(raw: dict[str, Any]) -> TraderTrade:
    """Parse a raw trade object from the Data API."""
    return TraderTrade(
        timestamp=_timestamp(raw.get("timestamp", raw.get("createdAt", ""))),
        side=str(raw.get("side", "") or "").upper(),
        size=_float(raw.get("size", 0)),
        price=_float(raw.get("price", 0)),
        event_slug=str(raw.get("eventSlug", raw.get("event_slug", "")) or ""),
        slug=str(raw.get("slug", "") or ""),
        condition_id=str(raw.get("conditionId", raw.get("condition_id", "")) or ""),
        title=str(raw.get("title", "") or ""),
        outcome=str(raw.get("outcome", "") or ""),
        proxy_wallet=str(raw.get("proxyWallet", raw.get("proxy_wallet", "")) or ""),
        trader_name=str(raw.get("name", raw.get("pseudonym", "")) or ""),
        transaction_hash=str(raw.get("transactionHash", raw.get("transaction_hash", "")) or ""),
        icon=str(raw.get("icon", "") or ""),
    )
