"""Importance-based simplification of aircraft tracks.

Long tracks are reduced to a bounded number of points before they are sent to
observers. Points are ranked by how much they contribute to the rendered
trail: low-altitude phases (takeoff and landing), altitude and speed changes,
and gaps in the data are favoured, and the first and last points are always
kept. The selected points are returned in their original order.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Sequence

from flightradar.models.tracks import TrackPoint

LOW_ALTITUDE_FT = 2000
LOW_ALTITUDE_BONUS = 1000.0
ALTITUDE_CHANGE_WEIGHT = 1.0
SPEED_CHANGE_WEIGHT = 5.0
ENDPOINT_BONUS = 1e12
GAP_THRESHOLD = timedelta(seconds=60)
GAP_BONUS = 500.0

DEFAULT_POINTS_PER_MINUTE = 6.0
DEFAULT_MIN_POINTS = 500
DEFAULT_MAX_POINTS = 5000


def point_budget(
    span: timedelta,
    *,
    points_per_minute: float = DEFAULT_POINTS_PER_MINUTE,
    min_points: int = DEFAULT_MIN_POINTS,
    max_points: int = DEFAULT_MAX_POINTS,
) -> int:
    """Return the point cap for a track covering ``span``.

    The cap grows with the span so per-minute resolution stays roughly the
    same for short and long flights, clamped to ``[min_points, max_points]``.
    """

    minutes = max(span.total_seconds(), 0.0) / 60.0
    budget = int(minutes * points_per_minute)
    # never below 2 so both endpoints fit
    return max(2, min_points, min(max_points, budget))


def score_points(points: Sequence[TrackPoint]) -> list[float]:
    """Return an importance score for every point in ``points``.

    Altitude and speed changes and time gaps are measured against the
    previous input point, not the previous retained one.
    """

    scores: list[float] = []
    last_index = len(points) - 1
    for index, point in enumerate(points):
        score = 0.0
        if point.altitude < LOW_ALTITUDE_FT:
            score += LOW_ALTITUDE_BONUS
        if index > 0:
            previous = points[index - 1]
            score += abs(point.altitude - previous.altitude) * ALTITUDE_CHANGE_WEIGHT
            score += abs(point.speed - previous.speed) * SPEED_CHANGE_WEIGHT
            if point.timestamp - previous.timestamp > GAP_THRESHOLD:
                score += GAP_BONUS
        if index == 0 or index == last_index:
            score += ENDPOINT_BONUS
        scores.append(score)
    return scores


def simplify(points: Sequence[TrackPoint], cap: int) -> list[TrackPoint]:
    """Reduce ``points`` to at most ``cap`` points, keeping both endpoints."""

    if cap < 2:
        raise ValueError("cap must be at least 2 to keep both endpoints")

    if len(points) <= cap:
        return list(points)

    scores = score_points(points)
    ranked = sorted(range(len(points)), key=lambda index: (-scores[index], index))
    selected = sorted(ranked[:cap])
    return [points[index] for index in selected]


__all__ = ["point_budget", "score_points", "simplify"]
