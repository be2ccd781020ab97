from __future__ import annotations

from dataclasses import dataclass
from math import isfinite
from typing import Literal

from .dates import parse_local_date, parse_optional_date
from .records import GameRecord
from .statuses import COMPLETED
from .thresholds import AnalyticsThresholds, resolve_thresholds

ValueRating = Literal["Excellent", "Good", "Fair", "Poor"]


def safe_number(value: float | int | None) -> float:
    """Clamp a numeric field to a finite, non-negative float without logging."""

    try:
        number = float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0
    if not isfinite(number) or number < 0:
        return 0.0
    return number


def safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def logged_hours(game: GameRecord) -> float:
    return sum(safe_number(log.hours) for log in game.play_logs)


def total_hours(game: GameRecord) -> float:
    """Baseline hours plus every logged session, recomputed on each call."""

    return safe_number(game.hours) + logged_hours(game)


def game_price(game: GameRecord) -> float:
    return safe_number(game.price)


def cost_per_hour(price: float, hours: float) -> float:
    """Price divided by hours, or 0 for games that have not been played.

    A zero result for an unplayed game does not mean good value; callers
    should check ``hours > 0`` before presenting it.
    """

    return safe_ratio(safe_number(price), safe_number(hours))


def value_rating(
    cost: float, thresholds: AnalyticsThresholds | None = None
) -> ValueRating:
    limits = resolve_thresholds(thresholds)
    if cost <= limits.excellent_max_cost_per_hour:
        return "Excellent"
    if cost <= limits.good_max_cost_per_hour:
        return "Good"
    if cost <= limits.fair_max_cost_per_hour:
        return "Fair"
    return "Poor"


def normalized_cost(cost: float, thresholds: AnalyticsThresholds | None = None) -> float:
    limits = resolve_thresholds(thresholds)
    return safe_ratio(cost, limits.baseline_cost_per_hour)


def blend_score(
    rating: float, cost: float, thresholds: AnalyticsThresholds | None = None
) -> float:
    """Combine a 0-10 rating with cost efficiency into one sortable number.

    The rating contributes up to 100 points and cost efficiency up to 10,
    shrinking linearly until the baseline cost per hour is reached.
    """

    capped_cost = min(normalized_cost(cost, thresholds), 1.0)
    return safe_number(rating) * 10 + (10 - capped_cost * 10)


def rating_weight(rating: float, thresholds: AnalyticsThresholds | None = None) -> float:
    limits = resolve_thresholds(thresholds)
    exponent = safe_number(rating) - limits.roi_reference_rating
    return limits.roi_reference_weight * limits.roi_rating_base**exponent


def roi(
    rating: float,
    hours: float,
    price: float,
    thresholds: AnalyticsThresholds | None = None,
) -> float:
    """Return-on-investment score weighting high ratings exponentially.

    ``rating_weight * hours * roi_hours_factor / price``; free games use the
    ``roi_min_price`` floor instead of dividing by zero.
    """

    limits = resolve_thresholds(thresholds)
    hours = safe_number(hours)
    if hours <= 0:
        return 0.0
    effective_price = max(safe_number(price), limits.roi_min_price)
    return rating_weight(rating, limits) * hours * limits.roi_hours_factor / effective_price


def roi_rating(score: float, thresholds: AnalyticsThresholds | None = None) -> ValueRating:
    limits = resolve_thresholds(thresholds)
    if score >= limits.roi_excellent:
        return "Excellent"
    if score >= limits.roi_good:
        return "Good"
    if score >= limits.roi_fair:
        return "Fair"
    return "Poor"


def days_between_dates(start: str | None, end: str | None) -> int | None:
    start_day = parse_optional_date(start)
    end_day = parse_optional_date(end)
    if start_day is None or end_day is None:
        return None
    return abs((end_day - start_day).days)


def days_to_complete(game: GameRecord) -> int | None:
    if game.status != COMPLETED:
        return None
    return days_between_dates(game.start_date, game.end_date)


@dataclass(frozen=True)
class GameMetrics:
    total_hours: float
    cost_per_hour: float
    blend_score: float
    normalized_cost: float
    value_rating: ValueRating
    roi: float
    roi_rating: ValueRating
    days_to_complete: int | None


def calculate_metrics(
    game: GameRecord, thresholds: AnalyticsThresholds | None = None
) -> GameMetrics:
    limits = resolve_thresholds(thresholds)
    hours = total_hours(game)
    price = game_price(game)
    cost = cost_per_hour(price, hours)
    score = roi(game.rating, hours, price, limits)
    return GameMetrics(
        total_hours=hours,
        cost_per_hour=cost,
        blend_score=blend_score(game.rating, cost, limits),
        normalized_cost=normalized_cost(cost, limits),
        value_rating=value_rating(cost, limits),
        roi=score,
        roi_rating=roi_rating(score, limits),
        days_to_complete=days_to_complete(game),
    )


@dataclass(frozen=True)
class ValuePoint:
    date: str
    session_hours: float
    cumulative_hours: float
    cost_per_hour: float


def value_over_time(game: GameRecord) -> list[ValuePoint]:
    """Cost per hour after each dated session, oldest first."""

    price = game_price(game)
    running = safe_number(game.hours)
    ordered = sorted(
        enumerate(game.play_logs), key=lambda item: (parse_local_date(item[1].date), item[0])
    )
    points: list[ValuePoint] = []
    for _, log in ordered:
        hours = safe_number(log.hours)
        running += hours
        points.append(
            ValuePoint(
                date=log.date,
                session_hours=hours,
                cumulative_hours=running,
                cost_per_hour=cost_per_hour(price, running),
            )
        )
    return points


def progress_percent(game: GameRecord, expected_hours: float | None) -> float | None:
    expected = safe_number(expected_hours)
    if expected <= 0:
        return None
    return min(100.0, total_hours(game) / expected * 100.0)
