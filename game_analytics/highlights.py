from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from .dates import day_name, parse_local_date, parse_optional_date
from .metrics import (
    cost_per_hour,
    days_to_complete,
    game_price,
    safe_number,
    safe_ratio,
    total_hours,
)
from .periods import SessionHighlight, ValueHighlight, active_days, longest_streak
from .records import GameRecord
from .statuses import ABANDONED, COMPLETED, NOT_STARTED
from .thresholds import AnalyticsThresholds, resolve_thresholds


def _owned(games: Iterable[GameRecord]) -> List[GameRecord]:
    return [game for game in games if game.is_owned]


@dataclass(frozen=True)
class GameHours:
    game: GameRecord
    hours: float


def century_club_games(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> List[GameHours]:
    limits = resolve_thresholds(thresholds)
    members = [
        GameHours(game, total_hours(game))
        for game in _owned(games)
        if total_hours(game) >= limits.century_hours
    ]
    members.sort(key=lambda entry: entry.hours, reverse=True)
    return members


def quick_fix_games(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> List[GameHours]:
    """Completed games that took less than ``quick_fix_max_hours``."""

    limits = resolve_thresholds(thresholds)
    quick = [
        GameHours(game, total_hours(game))
        for game in games
        if game.status == COMPLETED and 0 < total_hours(game) < limits.quick_fix_max_hours
    ]
    quick.sort(key=lambda entry: entry.hours)
    return quick


def longest_session(games: Iterable[GameRecord]) -> SessionHighlight | None:
    longest = None
    for game in games:
        for log in game.play_logs:
            hours = safe_number(log.hours)
            if longest is None or hours > longest.hours:
                day = parse_local_date(log.date)
                longest = SessionHighlight(game=game, hours=hours, date=day, day=day_name(day))
    return longest


@dataclass(frozen=True)
class CompletionTime:
    game: GameRecord
    days: int


def _completion_times(games: Iterable[GameRecord]) -> List[CompletionTime]:
    times = []
    for game in games:
        days = days_to_complete(game)
        if days is not None:
            times.append(CompletionTime(game, days))
    return times


def fastest_completion(games: Iterable[GameRecord]) -> CompletionTime | None:
    fastest = None
    for entry in _completion_times(games):
        if fastest is None or entry.days < fastest.days:
            fastest = entry
    return fastest


def slowest_completion(games: Iterable[GameRecord]) -> CompletionTime | None:
    slowest = None
    for entry in _completion_times(games):
        if slowest is None or entry.days > slowest.days:
            slowest = entry
    return slowest


def _discounted(games: Iterable[GameRecord]) -> List[GameRecord]:
    return [
        game
        for game in _owned(games)
        if not game.acquired_free and safe_number(game.original_price) > game_price(game)
    ]


def _savings(game: GameRecord) -> float:
    return safe_number(game.original_price) - game_price(game)


def _discount_share(game: GameRecord) -> float:
    return safe_ratio(_savings(game), safe_number(game.original_price))


@dataclass(frozen=True)
class PatientGamerStats:
    count: int
    average_discount: float
    total_saved: float


def patient_gamer_stats(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> PatientGamerStats:
    """Games bought at a discount of at least ``patient_min_discount``."""

    limits = resolve_thresholds(thresholds)
    patient = [
        game for game in _discounted(games) if _discount_share(game) >= limits.patient_min_discount
    ]
    return PatientGamerStats(
        count=len(patient),
        average_discount=safe_ratio(
            sum(_discount_share(game) * 100 for game in patient), len(patient)
        ),
        total_saved=sum(_savings(game) for game in patient),
    )


@dataclass(frozen=True)
class CompletionistRate:
    completion_rate: float
    abandon_rate: float
    completed_count: int
    abandoned_count: int


def completionist_rate(games: Iterable[GameRecord]) -> CompletionistRate:
    """Completed versus abandoned, as shares of games with a final verdict."""

    library = list(games)
    completed = sum(1 for game in library if game.status == COMPLETED)
    abandoned = sum(1 for game in library if game.status == ABANDONED)
    finished = completed + abandoned
    return CompletionistRate(
        completion_rate=safe_ratio(completed, finished) * 100,
        abandon_rate=safe_ratio(abandoned, finished) * 100,
        completed_count=completed,
        abandoned_count=abandoned,
    )


@dataclass(frozen=True)
class FranchiseInvestment:
    franchise: str
    spent: float
    hours: float
    games: int


def most_invested_franchise(games: Iterable[GameRecord]) -> FranchiseInvestment | None:
    totals: Dict[str, List[float]] = {}
    for game in _owned(games):
        if not game.franchise:
            continue
        entry = totals.setdefault(game.franchise, [0.0, 0.0, 0])
        entry[0] += game_price(game)
        entry[1] += total_hours(game)
        entry[2] += 1

    best = None
    for franchise, (spent, hours, count) in totals.items():
        if best is None or hours > best.hours:
            best = FranchiseInvestment(franchise, spent, hours, int(count))
    return best


def value_champion(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> ValueHighlight | None:
    limits = resolve_thresholds(thresholds)
    champion = None
    for game in _owned(games):
        hours = total_hours(game)
        if game.acquired_free or hours < limits.best_value_min_hours:
            continue
        cost = cost_per_hour(game_price(game), hours)
        if champion is None or cost < champion.cost_per_hour:
            champion = ValueHighlight(game=game, cost_per_hour=cost)
    return champion


@dataclass(frozen=True)
class DiscountEffectiveness:
    average_savings: float
    best_deal: GameRecord | None
    best_deal_savings: float


def discount_effectiveness(games: Iterable[GameRecord]) -> DiscountEffectiveness:
    discounted = _discounted(games)
    best = None
    for game in discounted:
        if best is None or _savings(game) > _savings(best):
            best = game
    return DiscountEffectiveness(
        average_savings=safe_ratio(sum(_savings(game) for game in discounted), len(discounted)),
        best_deal=best,
        best_deal_savings=_savings(best) if best is not None else 0.0,
    )


def backlog_in_days(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> float:
    """Days of non-stop play to clear untouched games at ``estimated_hours_per_game``."""

    limits = resolve_thresholds(thresholds)

    untouched = [
        game for game in games if game.status == NOT_STARTED and total_hours(game) == 0
    ]
    return len(untouched) * limits.estimated_hours_per_game / 24


@dataclass(frozen=True)
class LifetimeStats:
    total_hours: float
    equivalent_days: float
    equivalent_weeks: float
    movies_equivalent: int
    books_equivalent: int
    total_games: int
    total_spent: float
    average_cost_per_hour: float
    first_game_date: str | None
    days_since_first_game: int
    games_per_month: float
    hours_per_week: float


def lifetime_stats(games: Iterable[GameRecord], today: date | None = None) -> LifetimeStats:
    owned = _owned(games)
    hours = sum(total_hours(game) for game in owned)
    spent = sum(game_price(game) for game in owned)

    purchase_days = sorted(
        day for day in (parse_optional_date(game.date_purchased) for game in owned) if day
    )
    first = purchase_days[0] if purchase_days else None
    days_since = max(0, ((today or date.today()) - first).days) if first else 0
    months = days_since / 30
    weeks = days_since / 7

    return LifetimeStats(
        total_hours=hours,
        equivalent_days=hours / 24,
        equivalent_weeks=hours / (24 * 7),
        movies_equivalent=int(hours // 2),
        books_equivalent=int(hours // 8),
        total_games=len(owned),
        total_spent=spent,
        average_cost_per_hour=cost_per_hour(spent, hours),
        first_game_date=first.isoformat() if first else None,
        days_since_first_game=days_since,
        games_per_month=len(owned) / months if months > 0 else float(len(owned)),
        hours_per_week=hours / weeks if weeks > 0 else hours,
    )


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    unlocked: bool
    progress: float
    target: float
    current: float


def _achievement(
    key: str, name: str, description: str, current: float, target: float
) -> Achievement:
    return Achievement(
        id=key,
        name=name,
        description=description,
        unlocked=current >= target,
        progress=min(100.0, current / target * 100) if target > 0 else 100.0,
        target=target,
        current=current,
    )


def gaming_achievements(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> List[Achievement]:
    """Ten library achievements, unlocked ones first then by progress."""

    limits = resolve_thresholds(thresholds)
    library = list(games)
    owned = _owned(library)
    played = [game for game in owned if total_hours(game) > 0]
    top_hours = max((total_hours(game) for game in played), default=0.0)
    hours = sum(total_hours(game) for game in owned)

    achievements = [
        _achievement(
            "century_club",
            "Century Club",
            f"Have a game with {limits.century_hours:g}+ hours",
            top_hours,
            limits.century_hours,
        ),
        _achievement("thousand_hours", "Dedicated Gamer", "Log 1000 total hours", hours, 1000),
        _achievement(
            "completionist",
            "Completionist",
            "Complete 10 games",
            sum(1 for game in owned if game.status == COMPLETED),
            10,
        ),
        _achievement(
            "genre_explorer",
            "Genre Explorer",
            "Play games from 8 different genres",
            len({game.genre for game in played if game.genre}),
            8,
        ),
        _achievement(
            "free_rider",
            "Free Rider",
            "Claim 10 free games",
            sum(1 for game in owned if game.acquired_free),
            10,
        ),
        _achievement(
            "bargain_hunter", "Bargain Hunter", "Buy 20 games on sale", len(_discounted(owned)), 20
        ),
        _achievement(
            "critic",
            "Hard to Please",
            "Rate 5 games 9/10 or higher",
            sum(1 for game in played if game.rating >= 9),
            5,
        ),
        _achievement(
            "streak_master",
            "Streak Master",
            "Maintain a 7-day gaming streak",
            longest_streak(active_days(library)),
            7,
        ),
        _achievement(
            "patient_gamer",
            "Patient Gamer",
            "Save $100 from discounts",
            patient_gamer_stats(library, limits).total_saved,
            100,
        ),
        _achievement("library_builder", "Library Builder", "Own 50 games", len(owned), 50),
    ]
    achievements.sort(key=lambda item: (not item.unlocked, -item.progress))
    return achievements
