"""Display helpers for category proficiency results.

Pure functions that turn scoring output into the numbers the web UI draws:
radar polygon geometry, compact dollar labels and the smart-score badge
tooltip values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from vantake.analytics.category_scoring import CategoryStats, RadarPoint

RADAR_SIZE = 340
RADAR_MIN_RADIUS = 8.0      # zero scores still show a small bump
RADAR_LABEL_PAD = 14.0
NEUTRAL_SUB_SCORE = 50.0


@dataclass
class RadarVertex:
    x: float
    y: float
    label_x: float
    label_y: float
    label: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "label_x": round(self.label_x, 2),
            "label_y": round(self.label_y, 2),
            "label": self.label,
            "score": round(self.score, 2),
        }


def radar_vertices(series: Sequence[RadarPoint], size: int = RADAR_SIZE) -> list[RadarVertex]:
    """Polygon vertices for the radar chart, clockwise from the top."""
    n = len(series)
    if n == 0:
        return []

    cx = cy = size / 2
    max_radius = size * 0.42
    vertices: list[RadarVertex] = []
    for i, point in enumerate(series):
        angle = (math.pi * 2 * i) / n - math.pi / 2
        r = RADAR_MIN_RADIUS + (point.score / 100) * (max_radius - RADAR_MIN_RADIUS)
        vertices.append(RadarVertex(
            x=cx + r * math.cos(angle),
            y=cy + r * math.sin(angle),
            label_x=cx + (max_radius + RADAR_LABEL_PAD) * math.cos(angle),
            label_y=cy + (max_radius + RADAR_LABEL_PAD) * math.sin(angle),
            label=point.category,
            score=point.score,
        ))
    return vertices


def polygon_points(vertices: Sequence[RadarVertex]) -> str:
    """SVG ``points`` attribute for the filled polygon."""
    return " ".join(f"{v.x},{v.y}" for v in vertices)


def format_usd(value: float) -> str:
    """Compact dollar label: $1.2M, $3.4K, $56."""
    if abs(value) >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if abs(value) >= 1_000:
        return f"${value / 1_000:.1f}K"
    return f"${value:.0f}"


def has_activity(stats: CategoryStats) -> bool:
    """Whether the detail row for a category can be expanded."""
    return stats.trades > 0 or stats.pnl != 0


def badge_tooltip(stats: CategoryStats | None) -> dict[str, float]:
    if stats is None:
        return {
            "risk_efficiency": NEUTRAL_SUB_SCORE,
            "profitability": NEUTRAL_SUB_SCORE,
        }
    return {
        "risk_efficiency": round(stats.risk_efficiency, 2),
        "profitability": round(stats.profitability, 2),
    }
