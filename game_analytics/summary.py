from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence

from .dates import bucket_key
from .metrics import (
    cost_per_hour,
    days_to_complete,
    game_price,
    roi,
    safe_number,
    safe_ratio,
    total_hours,
)
from .records import GameRecord
from .statuses import ABANDONED, COMPLETED, IN_PROGRESS, NOT_STARTED
from .thresholds import AnalyticsThresholds, resolve_thresholds

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Superlative:
    game_id: str
    name: str
    value: float


@dataclass(frozen=True)
class AnalyticsSummary:
    # Counts
    total_games: int
    owned_count: int
    wishlist_count: int
    completed_count: int
    in_progress_count: int
    not_started_count: int
    abandoned_count: int

    # Financial
    total_spent: float
    wishlist_value: float
    backlog_value: float
    average_price: float
    average_cost_per_hour: float
    total_discount_savings: float
    average_discount: float

    # Time
    total_hours: float
    average_hours_per_game: float
    average_rating: float
    average_days_to_complete: float | None

    completion_rate: float

    # Highlights
    best_value: Superlative | None
    worst_value: Superlative | None
    most_played: Superlative | None
    highest_rated: Superlative | None
    best_roi: Superlative | None

    # Breakdowns
    spending_by_genre: Dict[str, float]
    hours_by_genre: Dict[str, float]
    spending_by_platform: Dict[str, float]
    spending_by_source: Dict[str, float]
    spending_by_year: Dict[str, float]
    spending_by_franchise: Dict[str, float]
    hours_by_franchise: Dict[str, float]
    games_by_franchise: Dict[str, int]

    # Subscription and free games
    free_games_count: int
    total_saved: float
    hours_by_subscription: Dict[str, float]
    saved_by_subscription: Dict[str, float]
    games_by_subscription: Dict[str, int]

    @property
    def game_count(self) -> int:
        return self.owned_count


def _category(value: str | None) -> str:
    if value is None:
        return UNKNOWN
    label = str(value).strip()
    return label or UNKNOWN


def _pick_first(
    candidates: Sequence[GameRecord],
    value: Callable[[GameRecord], float],
    *,
    highest: bool,
) -> Superlative | None:
    """Return the best candidate, keeping the first one on ties."""

    best: GameRecord | None = None
    best_value = 0.0
    for game in candidates:
        current = value(game)
        if best is None or (current > best_value if highest else current < best_value):
            best = game
            best_value = current
    if best is None:
        return None
    return Superlative(game_id=best.id, name=best.name, value=best_value)


def _has_discount(game: GameRecord) -> bool:
    return (
        not game.acquired_free
        and game.original_price is not None
        and game.original_price > game_price(game)
    )


def _discount_percent(game: GameRecord) -> float:
    original = safe_number(game.original_price)
    return safe_ratio(original - game_price(game), original) * 100


def calculate_summary(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> AnalyticsSummary:
    """Fold the whole library into one :class:`AnalyticsSummary`.

    Wishlist entries count towards ``total_games`` and ``wishlist_value`` but
    are excluded from every spending, time and completion aggregate.
    """

    limits = resolve_thresholds(thresholds)
    all_games = list(games)
    owned = [game for game in all_games if game.is_owned]
    wishlist = [game for game in all_games if game.is_wishlist]

    status_counts: Dict[str, int] = defaultdict(int)
    for game in owned:
        status_counts[game.status] += 1

    hours_by_id = {id(game): total_hours(game) for game in all_games}

    def hours_of(game: GameRecord) -> float:
        return hours_by_id[id(game)]

    played = [game for game in owned if hours_of(game) > 0]
    rated = [game for game in played if safe_number(game.rating) > 0]

    total_spent = sum(game_price(game) for game in owned)
    wishlist_value = sum(game_price(game) for game in wishlist)
    backlog_value = sum(game_price(game) for game in owned if game.status == NOT_STARTED)
    hours_total = sum(hours_of(game) for game in owned)

    discounted = [game for game in owned if _has_discount(game)]
    total_discount_savings = sum(
        safe_number(game.original_price) - game_price(game) for game in discounted
    )
    average_discount = safe_ratio(
        sum(_discount_percent(game) for game in discounted), len(discounted)
    )

    completion_days = [
        days
        for days in (days_to_complete(game) for game in owned)
        if days is not None
    ]
    average_days_to_complete = (
        sum(completion_days) / len(completion_days) if completion_days else None
    )

    def game_cost(game: GameRecord) -> float:
        return cost_per_hour(game_price(game), hours_of(game))

    value_candidates = [
        game
        for game in played
        if hours_of(game) >= limits.best_value_min_hours and not game.acquired_free
    ]
    worst_candidates = [
        game
        for game in played
        if not game.acquired_free
        and game_price(game) > 0
        and hours_of(game) >= limits.worst_value_min_hours
    ]
    roi_candidates = [
        game for game in played if game_price(game) > 0 and not game.acquired_free
    ]

    spending_by_genre: Dict[str, float] = defaultdict(float)
    hours_by_genre: Dict[str, float] = defaultdict(float)
    spending_by_platform: Dict[str, float] = defaultdict(float)
    spending_by_source: Dict[str, float] = defaultdict(float)
    spending_by_year: Dict[str, float] = defaultdict(float)
    spending_by_franchise: Dict[str, float] = defaultdict(float)
    hours_by_franchise: Dict[str, float] = defaultdict(float)
    games_by_franchise: Dict[str, int] = defaultdict(int)

    for game in owned:
        price = game_price(game)
        hours = hours_of(game)
        genre = _category(game.genre)
        spending_by_genre[genre] += price
        hours_by_genre[genre] += hours
        spending_by_platform[_category(game.platform)] += price
        spending_by_source[_category(game.purchase_source)] += price
        year = bucket_key(game.date_purchased, "year") if game.date_purchased else UNKNOWN
        spending_by_year[year] += price

        if game.franchise:
            spending_by_franchise[game.franchise] += price
            hours_by_franchise[game.franchise] += hours
            games_by_franchise[game.franchise] += 1

    free_games = [game for game in owned if game.acquired_free]
    hours_by_subscription: Dict[str, float] = defaultdict(float)
    saved_by_subscription: Dict[str, float] = defaultdict(float)
    games_by_subscription: Dict[str, int] = defaultdict(int)
    for game in free_games:
        source = (game.subscription_source or "").strip() or "Other"
        hours_by_subscription[source] += hours_of(game)
        saved_by_subscription[source] += safe_number(game.original_price)
        games_by_subscription[source] += 1

    owned_total = len(all_games) - len(wishlist)

    return AnalyticsSummary(
        total_games=len(all_games),
        owned_count=len(owned),
        wishlist_count=len(wishlist),
        completed_count=status_counts[COMPLETED],
        in_progress_count=status_counts[IN_PROGRESS],
        not_started_count=status_counts[NOT_STARTED],
        abandoned_count=status_counts[ABANDONED],
        total_spent=total_spent,
        wishlist_value=wishlist_value,
        backlog_value=backlog_value,
        average_price=safe_ratio(total_spent, len(owned)),
        average_cost_per_hour=cost_per_hour(total_spent, hours_total),
        total_discount_savings=total_discount_savings,
        average_discount=average_discount,
        total_hours=hours_total,
        average_hours_per_game=safe_ratio(hours_total, len(played)),
        average_rating=safe_ratio(sum(game.rating for game in rated), len(rated)),
        average_days_to_complete=average_days_to_complete,
        completion_rate=safe_ratio(status_counts[COMPLETED], owned_total) * 100,
        best_value=_pick_first(value_candidates, game_cost, highest=False),
        worst_value=_pick_first(worst_candidates, game_cost, highest=True),
        most_played=_pick_first(played, hours_of, highest=True),
        highest_rated=_pick_first(rated, lambda game: game.rating, highest=True),
        best_roi=_pick_first(
            roi_candidates,
            lambda game: roi(game.rating, hours_of(game), game_price(game), limits),
            highest=True,
        ),
        spending_by_genre=dict(spending_by_genre),
        hours_by_genre=dict(hours_by_genre),
        spending_by_platform=dict(spending_by_platform),
        spending_by_source=dict(spending_by_source),
        spending_by_year=dict(spending_by_year),
        spending_by_franchise=dict(spending_by_franchise),
        hours_by_franchise=dict(hours_by_franchise),
        games_by_franchise=dict(games_by_franchise),
        free_games_count=len(free_games),
        total_saved=sum(safe_number(game.original_price) for game in free_games),
        hours_by_subscription=dict(hours_by_subscription),
        saved_by_subscription=dict(saved_by_subscription),
        games_by_subscription=dict(games_by_subscription),
    )


def hours_by_month(games: Iterable[GameRecord]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for game in games:
        for log in game.play_logs:
            totals[bucket_key(log.date, "month")] += safe_number(log.hours)
    return dict(totals)


def spending_by_month(games: Iterable[GameRecord]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for game in games:
        if not game.is_owned or not game.date_purchased:
            continue
        totals[bucket_key(game.date_purchased, "month")] += game_price(game)
    return dict(totals)


@dataclass(frozen=True)
class SpendingPoint:
    month: str
    total: float
    cumulative: float


def cumulative_spending(games: Iterable[GameRecord]) -> List[SpendingPoint]:
    monthly = spending_by_month(games)
    running = 0.0
    points: List[SpendingPoint] = []
    for month in sorted(monthly):
        running += monthly[month]
        points.append(SpendingPoint(month=month, total=monthly[month], cumulative=running))
    return points
