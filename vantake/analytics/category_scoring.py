"""Category proficiency scoring.

Breaks a trader's positions and trades down by market category and derives
per-category performance metrics:
  - P&L, traded volume, win rate
  - Sharpe-like and Sortino-like ratios over daily signed trade flow
  - Smart score (0-100 composite), risk efficiency and profitability

Every position and trade is attributed to exactly one bucket through the
first hyphen segment of its event slug and an injected slug -> category
table.  Only the eleven fixed categories are reported; anything else ends
up in an ``Unclassified`` bucket and is dropped from the output.

The computation is pure: inputs are never mutated and no state is kept
between calls, so it is safe to call from several threads at once.
Degenerate statistics (no trades, zero variance, zero volume) fall back to
neutral or zero scores instead of raising.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence, Union

from vantake.connectors.polymarket_data import TraderPosition, TraderProfile, TraderTrade
from vantake.observability.logger import get_logger

log = get_logger(__name__)


# ── Categories ───────────────────────────────────────────────────────

class Category(str, Enum):
    """The fixed set of market categories, in radar display order."""
    CRYPTO = "Crypto"
    POP_CULTURE = "Pop Culture"
    WORLD = "World"
    TRUMP = "Trump"
    TECH = "Tech"
    SPORTS = "Sports"
    POLITICS = "Politics"
    EARNINGS = "Earnings"
    ECONOMY = "Economy"
    GEOPOLITICS = "Geopolitics"
    ELECTIONS = "Elections"

    @property
    def emoji(self) -> str:
        return _CATEGORY_EMOJI[self]


_CATEGORY_EMOJI: dict[Category, str] = {
    Category.CRYPTO: "\u20bf",
    Category.POP_CULTURE: "\U0001f3ac",
    Category.WORLD: "\U0001f30d",
    Category.TRUMP: "\U0001f1fa\U0001f1f8",
    Category.TECH: "\U0001f4bb",
    Category.SPORTS: "\u26bd",
    Category.POLITICS: "\U0001f3db\ufe0f",
    Category.EARNINGS: "\U0001f4c8",
    Category.ECONOMY: "\U0001f4ca",
    Category.GEOPOLITICS: "\U0001f310",
    Category.ELECTIONS: "\U0001f5f3\ufe0f",
}


@dataclass(frozen=True)
class Unclassified:
    """Bucket for slugs that do not resolve to one of the fixed categories."""
    label: str


CategoryKey = Union[Category, Unclassified]

_DEFAULT_KEY = "other"
_MAX_SUB_SCORE = 99.99


# ── Result Types ─────────────────────────────────────────────────────

@dataclass
class CategoryStats:
    """Derived performance metrics for one category bucket."""
    name: str
    emoji: str = ""
    smart_score: float = 0.0
    risk_efficiency: float = 0.0
    profitability: float = 0.0
    pnl: float = 0.0
    win_rate: float = 0.0      # percent, 0-100
    volume: float = 0.0
    sharpe: float = 0.0
    sortino: float = 0.0
    trades: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "emoji": self.emoji,
            "smart_score": round(self.smart_score, 2),
            "risk_efficiency": round(self.risk_efficiency, 2),
            "profitability": round(self.profitability, 2),
            "pnl": round(self.pnl, 2),
            "win_rate": round(self.win_rate, 1),
            "volume": round(self.volume, 2),
            "sharpe": round(self.sharpe, 2),
            "sortino": round(self.sortino, 2),
            "trades": self.trades,
        }


@dataclass
class RadarPoint:
    category: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, "score": round(self.score, 2)}


@dataclass
class CategoryProficiency:
    """Scoring output: detail list sorted by smart score, radar in fixed order."""
    stats: list[CategoryStats] = field(default_factory=list)
    radar: list[RadarPoint] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.stats

    def score_for(self, name: str) -> float:
        for point in self.radar:
            if point.category == name:
                return point.score
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": [s.to_dict() for s in self.stats],
            "radar": [p.to_dict() for p in self.radar],
        }


# ── Bucketing ────────────────────────────────────────────────────────

def _title(raw: str) -> str:
    return raw[:1].upper() + raw[1:]


def raw_position_key(position: TraderPosition) -> str:
    """First hyphen segment of the event slug, lower-cased."""
    return (position.event_slug or "").split("-")[0].lower() or _DEFAULT_KEY


def raw_trade_key(trade: TraderTrade) -> str:
    """First hyphen segment of the event slug, else a condition-id prefix."""
    head = (trade.event_slug or "").split("-")[0]
    return head or (trade.condition_id or "")[:6] or _DEFAULT_KEY


def resolve_category(raw: str, slug_to_category: Mapping[str, str]) -> CategoryKey:
    """Map a raw slug fragment onto a category.

    Unmapped fragments are title-cased, so an unmapped ``crypto`` still
    lands in ``Category.CRYPTO``.
    """
    label = slug_to_category.get(raw.lower()) or _title(raw)
    try:
        return Category(label)
    except ValueError:
        return Unclassified(label)


def bucket_positions(
    positions: Sequence[TraderPosition],
    slug_to_category: Mapping[str, str],
) -> dict[CategoryKey, list[TraderPosition]]:
    buckets: dict[CategoryKey, list[TraderPosition]] = {}
    for p in positions:
        key = resolve_category(raw_position_key(p), slug_to_category)
        buckets.setdefault(key, []).append(p)
    return buckets


def bucket_trades(
    trades: Sequence[TraderTrade],
    slug_to_category: Mapping[str, str],
) -> dict[CategoryKey, list[TraderTrade]]:
    buckets: dict[CategoryKey, list[TraderTrade]] = {}
    for t in trades:
        key = resolve_category(raw_trade_key(t), slug_to_category)
        buckets.setdefault(key, []).append(t)
    return buckets


# ── Return Statistics ────────────────────────────────────────────────

def trade_date(timestamp: float | str) -> str | None:
    """UTC calendar date (YYYY-MM-DD) of a trade timestamp.

    Numbers are seconds since the epoch; strings are ISO-8601 dates or
    datetimes, naive values read as UTC.  Returns None when unparseable.
    """
    if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        try:
            return dt.datetime.fromtimestamp(timestamp, tz=dt.timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None

    text = str(timestamp or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc)
    return parsed.date().isoformat()


def daily_returns(trades: Sequence[TraderTrade]) -> list[float]:
    """Net signed cash flow per calendar day: sells positive, buys negative."""
    by_date: dict[str, float] = {}
    for t in trades:
        date = trade_date(t.timestamp)
        if date is None:
            log.debug("scoring.bad_timestamp", timestamp=str(t.timestamp)[:40])
            continue
        flow = t.size * t.price
        by_date[date] = by_date.get(date, 0.0) + (flow if t.side == "SELL" else -flow)
    return list(by_date.values())


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def sharpe_ratio(returns: Sequence[float]) -> float:
    """Mean over sample standard deviation; deviation is 1 below two days."""
    avg = _mean(returns)
    n = len(returns)
    std = math.sqrt(sum((r - avg) ** 2 for r in returns) / (n - 1)) if n > 1 else 1.0
    return avg / std if std > 0 else 0.0


def sortino_ratio(returns: Sequence[float]) -> float:
    """Mean over root-mean-square of the losing days only."""
    avg = _mean(returns)
    if len(returns) > 1:
        downside = [r for r in returns if r < 0]
        dev = math.sqrt(sum(r * r for r in downside) / max(len(downside), 1))
    else:
        dev = 1.0
    return avg / dev if dev > 0 else 0.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ── Scores ───────────────────────────────────────────────────────────

def risk_efficiency_score(sharpe: float) -> float:
    return _clamp(50 + sharpe * 15, 0.0, _MAX_SUB_SCORE)


def profitability_score(pnl: float, volume: float) -> float:
    if volume <= 0:
        return 0.0
    return _clamp(50 + (pnl / volume) * 500, 0.0, _MAX_SUB_SCORE)


def smart_score(
    pnl: float,
    volume: float,
    win_rate: float,
    position_count: int,
    trade_count: int,
) -> float:
    """Composite 0-100 score; 0 for a category with no activity."""
    if position_count == 0 and trade_count == 0:
        return 0.0

    score = 50.0
    if pnl > 0 and volume > 0:
        score += min(30.0, (pnl / volume) * 300)
    elif pnl < 0 and volume > 0:
        score -= min(20.0, abs(pnl / volume) * 200)
    score += (win_rate / 100) * 20
    score += min(10.0, position_count * 0.5)
    return _clamp(score, 0.0, 100.0)


def compute_category_stats(
    category: Category,
    positions: Sequence[TraderPosition],
    trades: Sequence[TraderTrade],
) -> CategoryStats:
    """Compute all metrics for a single category bucket."""
    pnl = sum(p.cash_pnl or 0.0 for p in positions)
    volume = sum(t.size * t.price for t in trades)

    wins = sum(1 for p in positions if (p.cash_pnl or 0.0) > 0)
    resolved = sum(1 for p in positions if p.cash_pnl is not None and p.cash_pnl != 0)
    win_rate = (wins / resolved) * 100 if resolved > 0 else 0.0

    rets = daily_returns(trades)
    sharpe = sharpe_ratio(rets)

    return CategoryStats(
        name=category.value,
        emoji=category.emoji,
        smart_score=smart_score(pnl, volume, win_rate, len(positions), len(trades)),
        risk_efficiency=risk_efficiency_score(sharpe),
        profitability=profitability_score(pnl, volume),
        pnl=pnl,
        win_rate=win_rate,
        volume=volume,
        sharpe=sharpe,
        sortino=sortino_ratio(rets),
        trades=len(trades),
    )


def radar_series(stats: Sequence[CategoryStats]) -> list[RadarPoint]:
    """Smart scores in fixed category order for the radar polygon."""
    by_name = {s.name: s.smart_score for s in stats}
    return [RadarPoint(category=c.value, score=by_name.get(c.value, 0.0)) for c in Category]


def compute_category_proficiency(
    positions: Sequence[TraderPosition],
    trades: Sequence[TraderTrade],
    profile: TraderProfile | None,
    slug_to_category: Mapping[str, str],
) -> CategoryProficiency:
    """Score every fixed category for one trader.

    Without a profile there is nothing to show and the result is empty.
    """
    if profile is None:
        return CategoryProficiency()

    pos_buckets = bucket_positions(positions, slug_to_category)
    trade_buckets = bucket_trades(trades, slug_to_category)

    stats = [
        compute_category_stats(c, pos_buckets.get(c, []), trade_buckets.get(c, []))
        for c in Category
    ]
    ranked = sorted(stats, key=lambda s: s.smart_score, reverse=True)

    log.debug(
        "scoring.computed",
        positions=len(positions),
        trades=len(trades),
        active=sum(1 for s in stats if s.smart_score > 0),
        unclassified=sum(1 for k in {**pos_buckets, **trade_buckets} if isinstance(k, Unclassified)),
    )
    return CategoryProficiency(stats=ranked, radar=radar_series(stats))


class CategoryScorer:
    """Remembers the last result and reuses it while the inputs are the
    very same objects (identity, not equality)."""

    def __init__(self, slug_to_category: Mapping[str, str]):
        self._slug_to_category = slug_to_category
        self._last_inputs: tuple[Any, ...] | None = None
        self._last_result: CategoryProficiency | None = None

    def score(
        self,
        positions: Sequence[TraderPosition],
        trades: Sequence[TraderTrade],
        profile: TraderProfile | None,
    ) -> CategoryProficiency:
        inputs = (positions, trades, profile, self._slug_to_category)
        if (
            self._last_inputs is not None
            and self._last_result is not None
            and all(a is b for a, b in zip(inputs, self._last_inputs))
        ):
            return self._last_result
        result = compute_category_proficiency(positions, trades, profile, self._slug_to_category)
        self._last_inputs = inputs
        self._last_result = result
        return result
