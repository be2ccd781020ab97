"""Classification heuristics layered on top of the library aggregates."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from math import ceil
from typing import Dict, Iterable, List, Literal, Sequence

from .dates import parse_local_date, parse_optional_date
from .metrics import (
    cost_per_hour,
    days_to_complete,
    game_price,
    safe_number,
    safe_ratio,
    total_hours,
)
from .records import GameRecord
from .statuses import ABANDONED, COMPLETED, IN_PROGRESS, NOT_STARTED
from .summary import UNKNOWN, spending_by_month
from .thresholds import AnalyticsThresholds, resolve_thresholds


def _owned(games: Iterable[GameRecord]) -> List[GameRecord]:
    return [game for game in games if game.is_owned]


def _first_played(game: GameRecord) -> date | None:
    days = [parse_local_date(log.date) for log in game.play_logs]
    return min(days) if days else None


def _last_played(game: GameRecord) -> date | None:
    days = [parse_local_date(log.date) for log in game.play_logs]
    return max(days) if days else None


# Gaming personality

PERSONALITY_TYPES: tuple[str, ...] = (
    "Completionist",
    "Deep Diver",
    "Sampler",
    "Backlog Hoarder",
    "Balanced Gamer",
    "Speedrunner",
    "Explorer",
)

_PERSONALITY_DESCRIPTIONS = {
    "Completionist": "You see games through to the end. No game left behind!",
    "Deep Diver": "You get deeply invested in the games you love.",
    "Sampler": "You love variety and trying new experiences.",
    "Backlog Hoarder": "Your library is... ambitious. We believe in you!",
    "Balanced Gamer": "A healthy mix of playing and completing.",
    "Speedrunner": "You blaze through games with impressive efficiency.",
    "Explorer": "Genre boundaries cannot contain you.",
}

_PERSONALITY_TRAITS = {
    "Completionist": ("Persistent", "Thorough", "Achievement Hunter"),
    "Deep Diver": ("Immersive", "Committed", "Invested"),
    "Sampler": ("Curious", "Adventurous", "Open-minded"),
    "Backlog Hoarder": ("Deal Hunter", "Optimistic", "Future-focused"),
    "Balanced Gamer": ("Disciplined", "Selective", "Mindful"),
    "Speedrunner": ("Efficient", "Focused", "Goal-oriented"),
    "Explorer": ("Versatile", "Eclectic", "Genre-fluid"),
}


@dataclass(frozen=True)
class GamingPersonality:
    type: str
    description: str
    traits: tuple[str, ...]
    score: float
    scores: Dict[str, float] = field(default_factory=dict)


def gaming_personality(games: Iterable[GameRecord]) -> GamingPersonality:
    """Score every archetype and return the strongest match.

    Archetypes are checked in :data:`PERSONALITY_TYPES` order and a later
    archetype only wins with a strictly higher score.
    """

    owned = _owned(games)
    if not owned:
        return GamingPersonality(
            type="Balanced Gamer",
            description="Just getting started!",
            traits=(),
            score=0.0,
        )

    played = [game for game in owned if total_hours(game) > 0]
    completed = [game for game in owned if game.status == COMPLETED]
    hours = sum(total_hours(game) for game in owned)
    average_hours = safe_ratio(hours, len(played))
    completion_rate = safe_ratio(len(completed), len(owned)) * 100
    play_rate = safe_ratio(len(played), len(owned)) * 100
    unique_genres = len({game.genre for game in played if game.genre})

    if average_hours > 30:
        deep_diver = 80 + min(average_hours - 30, 20)
    else:
        deep_diver = average_hours * 2

    scores = {
        "Completionist": completion_rate * 1.5 + (20 if average_hours > 20 else 0),
        "Deep Diver": deep_diver,
        "Sampler": 70 + (len(played) - 20) if len(played) > 20 and average_hours < 15 else 0,
        "Backlog Hoarder": (100 - play_rate) * 0.8
        + (20 if len(owned) > 50 else len(owned) * 0.4),
        "Balanced Gamer": 60 if play_rate > 50 and 20 < completion_rate < 60 else 30,
        "Speedrunner": 70 + len(completed)
        if len(completed) > 5 and average_hours < 12
        else 0,
        "Explorer": 50 + unique_genres * 5 if unique_genres >= 5 else unique_genres * 10,
    }

    best = PERSONALITY_TYPES[0]
    for archetype in PERSONALITY_TYPES[1:]:
        if scores[archetype] > scores[best]:
            best = archetype

    return GamingPersonality(
        type=best,
        description=_PERSONALITY_DESCRIPTIONS[best],
        traits=_PERSONALITY_TRAITS[best],
        score=min(100.0, float(scores[best])),
        scores={name: float(value) for name, value in scores.items()},
    )


# Session analysis

SessionStyle = Literal[
    "Marathon Runner", "Snack Gamer", "Weekend Warrior", "Consistent Player", "Binge & Rest"
]


@dataclass(frozen=True)
class SessionAnalysis:
    style: SessionStyle
    description: str
    average_session_length: float
    total_sessions: int
    longest_session: float
    sessions_per_week: float
    marathon_sessions: int
    quick_sessions: int


def session_analysis(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> SessionAnalysis:
    limits = resolve_thresholds(thresholds)
    sessions = [
        (parse_local_date(log.date), safe_number(log.hours))
        for game in games
        for log in game.play_logs
    ]
    if not sessions:
        return SessionAnalysis(
            style="Consistent Player",
            description="Start logging sessions to see your style!",
            average_session_length=0.0,
            total_sessions=0,
            longest_session=0.0,
            sessions_per_week=0.0,
            marathon_sessions=0,
            quick_sessions=0,
        )

    lengths = [hours for _, hours in sessions]
    days = [day for day, _ in sessions]
    average = sum(lengths) / len(lengths)
    week_span = max(1.0, (max(days) - min(days)).days / 7)
    per_week = len(sessions) / week_span

    style: SessionStyle
    if average >= limits.marathon_session_hours:
        style, description = "Marathon Runner", "You love long, immersive gaming sessions."
    elif average <= limits.quick_session_hours:
        style, description = "Snack Gamer", "Quick sessions fit perfectly into your busy life."
    elif per_week >= limits.consistent_sessions_per_week:
        style, description = "Consistent Player", "Gaming is a regular part of your routine."
    elif (
        per_week <= limits.occasional_sessions_per_week
        and average > limits.weekend_min_average_hours
    ):
        style, description = "Weekend Warrior", "You save up your gaming for dedicated sessions."
    else:
        style, description = "Binge & Rest", "Intense bursts followed by breaks."

    return SessionAnalysis(
        style=style,
        description=description,
        average_session_length=average,
        total_sessions=len(sessions),
        longest_session=max(lengths),
        sessions_per_week=per_week,
        marathon_sessions=sum(1 for hours in lengths if hours >= limits.marathon_session_hours),
        quick_sessions=sum(1 for hours in lengths if hours < limits.quick_session_hours),
    )


# Completion probability


@dataclass(frozen=True)
class CompletionFactor:
    label: str
    impact: float


@dataclass(frozen=True)
class CompletionProbability:
    probability: int
    base_rate: float
    factors: tuple[CompletionFactor, ...]
    verdict: str


def _finish_rate(games: Sequence[GameRecord]) -> float | None:
    completed = sum(1 for game in games if game.status == COMPLETED)
    abandoned = sum(1 for game in games if game.status == ABANDONED)
    if completed + abandoned == 0:
        return None
    return completed / (completed + abandoned) * 100


def _verdict(probability: int, limits: AnalyticsThresholds) -> str:
    if probability >= limits.probability_likely:
        return "Likely to finish"
    if probability >= limits.probability_possible:
        return "Could go either way"
    return "Unlikely to finish"


def completion_probability(
    game: GameRecord,
    games: Iterable[GameRecord],
    today: date | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> CompletionProbability:
    """Estimate the chance of finishing ``game`` from library history.

    The result is ``base_rate`` plus the signed impact of every factor,
    rounded and clamped into ``[0, 100]``. Impacts are rounded to one decimal
    place so the listed factors always add up to the unclamped score.
    """

    limits = resolve_thresholds(thresholds)
    today = today or date.today()
    others = [
        other
        for other in _owned(games)
        if other is not game and (not game.id or other.id != game.id)
    ]
    library_rate = _finish_rate(others)
    base_rate = round(library_rate if library_rate is not None else 50.0, 1)
    factors: List[CompletionFactor] = []

    def add(label: str, impact: float) -> None:
        rounded = round(impact, 1)
        if rounded:
            factors.append(CompletionFactor(label, rounded))

    if game.status == COMPLETED:
        add("Already completed", 100 - base_rate)
    elif game.status == ABANDONED:
        add("Marked as abandoned", -base_rate)
    else:
        if game.status == IN_PROGRESS:
            add("Currently in progress", 10)
        elif game.status == NOT_STARTED:
            add("Not started yet", -10)

        genre_peers = [other for other in others if game.genre and other.genre == game.genre]
        finished_peers = [
            other for other in genre_peers if other.status in (COMPLETED, ABANDONED)
        ]
        genre_rate = _finish_rate(finished_peers)
        enough_peers = len(finished_peers) >= limits.probability_min_genre_peers
        if genre_rate is not None and enough_peers:
            add(f"{game.genre} completion history", (genre_rate - base_rate) * 0.3)

        last_played = _last_played(game)
        if last_played is not None:
            idle_days = (today - last_played).days
            if idle_days <= limits.probability_recent_days:
                add("Played this week", 15)
            elif idle_days <= limits.probability_month_days:
                add("Played this month", 5)
            elif idle_days <= limits.probability_idle_days:
                add(f"Idle for {idle_days} days", -10)
            else:
                add(f"Idle for {idle_days} days", -20)

        abandoned_pool = [
            other
            for other in (genre_peers or others)
            if other.status == ABANDONED and total_hours(other) > 0
        ]
        hours = total_hours(game)
        if abandoned_pool and hours > 0:
            drop_point = sum(total_hours(other) for other in abandoned_pool) / len(abandoned_pool)
            if hours > drop_point:
                add("Past your usual drop-off point", 10)
            elif hours >= drop_point * 0.5:
                add("Nearing your usual drop-off point", -5)

        rating = safe_number(game.rating)
        if rating >= limits.probability_high_rating:
            add("Highly rated so far", 10)
        elif 0 < rating <= limits.probability_low_rating:
            add("Low rating so far", -10)

    raw = base_rate + sum(factor.impact for factor in factors)
    probability = int(min(100, max(0, round(raw))))
    return CompletionProbability(
        probability=probability,
        base_rate=base_rate,
        factors=tuple(factors),
        verdict=_verdict(probability, limits),
    )


# Ranked lists


@dataclass(frozen=True)
class HiddenGem:
    game: GameRecord
    score: float


@dataclass(frozen=True)
class RegretPurchase:
    game: GameRecord
    regret_score: float
    expected_hours: float
    hours: float


@dataclass(frozen=True)
class ShelfWarmer:
    game: GameRecord
    days_sitting: int


def _limit(limit: int | None, limits: AnalyticsThresholds) -> int:
    return max(0, int(limit if limit is not None else limits.top_limit))


def hidden_gems(
    games: Iterable[GameRecord],
    limit: int | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> List[HiddenGem]:
    """Cheap, well-rated games with plenty of play time, best first."""

    limits = resolve_thresholds(thresholds)
    gems = []
    for game in _owned(games):
        hours = total_hours(game)
        if game.acquired_free or hours < limits.gem_min_hours:
            continue
        if game_price(game) > limits.gem_max_price or game.rating < limits.gem_min_rating:
            continue
        cost = cost_per_hour(game_price(game), hours)
        gems.append(HiddenGem(game=game, score=game.rating * 10 / (cost + 0.1)))
    gems.sort(key=lambda gem: gem.score, reverse=True)
    return gems[: _limit(limit, limits)]


def regret_purchases(
    games: Iterable[GameRecord],
    today: date | None = None,
    limit: int | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> List[RegretPurchase]:
    """Expensive games played far less than their time on the shelf suggests.

    Expected hours grow by ``regret_daily_hours`` per owned day up to
    ``regret_max_expected_hours``. Poorly rated games weigh heavier.
    """

    limits = resolve_thresholds(thresholds)
    today = today or date.today()
    regrets = []
    for game in _owned(games):
        price = game_price(game)
        if game.acquired_free or price <= limits.regret_min_price:
            continue
        purchased = parse_optional_date(game.date_purchased)
        owned_days = max(1, (today - purchased).days) if purchased else 365
        expected = min(owned_days * limits.regret_daily_hours, limits.regret_max_expected_hours)
        hours = total_hours(game)
        score = price / 10 * max(0.0, expected - hours)
        if 0 < game.rating < limits.regret_low_rating:
            score *= 1.5
        if score > limits.regret_min_score:
            regrets.append(
                RegretPurchase(game=game, regret_score=score, expected_hours=expected, hours=hours)
            )
    regrets.sort(key=lambda regret: regret.regret_score, reverse=True)
    return regrets[: _limit(limit, limits)]


def shelf_warmers(
    games: Iterable[GameRecord],
    today: date | None = None,
    limit: int | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> List[ShelfWarmer]:
    limits = resolve_thresholds(thresholds)
    today = today or date.today()
    warmers = []
    for game in games:
        purchased = parse_optional_date(game.date_purchased)
        if game.status != NOT_STARTED or purchased is None or game_price(game) <= 0:
            continue
        days_sitting = (today - purchased).days
        if days_sitting > limits.shelf_warmer_min_days:
            warmers.append(ShelfWarmer(game=game, days_sitting=days_sitting))
    warmers.sort(key=lambda warmer: warmer.days_sitting, reverse=True)
    return warmers[: _limit(limit, limits)]


# Rotation

RotationHealth = Literal["Obsessed", "Focused", "Healthy", "Juggling", "Overwhelmed"]


@dataclass(frozen=True)
class RotationStats:
    active_games: tuple[GameRecord, ...]
    cooling_off: tuple[GameRecord, ...]
    health: RotationHealth
    games_in_rotation: int
    description: str


def rotation_stats(
    games: Iterable[GameRecord],
    today: date | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> RotationStats:
    """Classify the current rotation by how many games were played recently.

    Cooling-off games were last played between ``rotation_cooling_min_days``
    and ``rotation_cooling_max_days`` ago and had real investment.
    """

    limits = resolve_thresholds(thresholds)
    today = today or date.today()
    active: List[GameRecord] = []
    cooling: List[GameRecord] = []
    for game in _owned(games):
        last_played = _last_played(game)
        if last_played is None:
            continue
        idle_days = (today - last_played).days
        if idle_days <= limits.rotation_active_days:
            active.append(game)
        elif (
            limits.rotation_cooling_min_days < idle_days <= limits.rotation_cooling_max_days
            and total_hours(game) >= limits.rotation_cooling_min_hours
        ):
            cooling.append(game)

    count = len(active)
    health: RotationHealth
    if count == 0:
        health, description = "Focused", "No recent sessions logged. Time to play!"
    elif count == 1:
        health, description = "Obsessed", f"All-in on {active[0].name}. Full immersion!"
    elif count <= 3:
        health, description = "Healthy", "A nice, manageable rotation of games."
    elif count <= 5:
        health, description = "Juggling", "Quite a few games in the mix!"
    else:
        health, description = "Overwhelmed", "So many games, so little time!"

    return RotationStats(
        active_games=tuple(active),
        cooling_off=tuple(cooling),
        health=health,
        games_in_rotation=count,
        description=description,
    )


# Genre rut


@dataclass(frozen=True)
class GenreRutAnalysis:
    is_in_rut: bool
    dominant_genre: str | None
    dominant_percentage: float
    suggestion: str
    underexplored_genres: tuple[str, ...]


def genre_rut_analysis(
    games: Iterable[GameRecord],
    today: date | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> GenreRutAnalysis:
    limits = resolve_thresholds(thresholds)
    library = list(games)
    cutoff = (today or date.today()) - timedelta(days=limits.genre_rut_lookback_days)
    recent = [
        game
        for game in library
        if any(parse_local_date(log.date) >= cutoff for log in game.play_logs)
    ]
    if len(recent) < 3:
        return GenreRutAnalysis(
            is_in_rut=False,
            dominant_genre=None,
            dominant_percentage=0.0,
            suggestion="Play more games to see genre patterns!",
            underexplored_genres=(),
        )

    counts: Dict[str, int] = {}
    for game in recent:
        if game.genre:
            counts[game.genre] = counts.get(game.genre, 0) + 1

    dominant = None
    for genre, count in counts.items():
        if dominant is None or count > counts[dominant]:
            dominant = genre
    share = safe_ratio(counts[dominant], sum(counts.values())) * 100 if dominant else 0.0
    in_rut = share >= limits.genre_rut_share

    underexplored: List[str] = []
    for game in library:
        if game.genre and game.genre not in counts and game.genre not in underexplored:
            underexplored.append(game.genre)

    if in_rut:
        suggestion = f"You've been playing a lot of {dominant}. Maybe try something different?"
    elif underexplored:
        suggestion = (
            f"You have {len(underexplored)} genre(s) in your library you haven't touched recently!"
        )
    else:
        suggestion = "Nice variety in your recent gaming!"

    return GenreRutAnalysis(
        is_in_rut=in_rut,
        dominant_genre=dominant,
        dominant_percentage=share,
        suggestion=suggestion,
        underexplored_genres=tuple(underexplored),
    )


# Money


@dataclass(frozen=True)
class RegretHighlight:
    game: GameRecord
    wasted: float


@dataclass(frozen=True)
class BargainHighlight:
    game: GameRecord
    value_score: float


@dataclass(frozen=True)
class MoneyStats:
    cost_of_backlog: float
    break_even_hours_needed: float
    average_cost_per_completion: float
    impulse_purchases: tuple[GameRecord, ...]
    planned_purchases: tuple[GameRecord, ...]
    spending_trend: Literal["increasing", "decreasing", "stable"]
    monthly_average: float
    biggest_regret: RegretHighlight | None
    best_bargain: BargainHighlight | None


def money_stats(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> MoneyStats:
    limits = resolve_thresholds(thresholds)
    library = list(games)
    owned = _owned(library)
    completed = [game for game in owned if game.status == COMPLETED]

    spent = sum(game_price(game) for game in owned)
    hours = sum(total_hours(game) for game in owned)
    current_cost = cost_per_hour(spent, hours)
    break_even = 0.0
    if current_cost > limits.target_cost_per_hour:
        break_even = spent / limits.target_cost_per_hour - hours

    impulse: List[GameRecord] = []
    planned: List[GameRecord] = []
    for game in owned:
        purchased = parse_optional_date(game.date_purchased)
        first_played = _first_played(game)
        if purchased is None or first_played is None:
            continue
        delay = (first_played - purchased).days
        if delay <= limits.impulse_max_days:
            impulse.append(game)
        elif delay > limits.planned_min_days:
            planned.append(game)

    monthly = spending_by_month(library)
    months = sorted(monthly)
    trend: Literal["increasing", "decreasing", "stable"] = "stable"
    if len(months) >= 6:
        recent = sum(monthly[month] for month in months[-6:])
        older = sum(monthly[month] for month in months[-12:-6])
        if recent > older * 1.2:
            trend = "increasing"
        elif recent < older * 0.8:
            trend = "decreasing"

    biggest_regret = None
    for game in owned:
        price = game_price(game)
        if game.acquired_free or price <= limits.wasted_min_price:
            continue
        if total_hours(game) >= limits.wasted_max_hours:
            continue
        if biggest_regret is None or price > biggest_regret.wasted:
            biggest_regret = RegretHighlight(game=game, wasted=price)

    best_bargain = None
    for game in owned:
        game_hours = total_hours(game)
        if game_price(game) <= 0 or game_hours < limits.bargain_min_hours:
            continue
        if game.rating < limits.bargain_min_rating:
            continue
        score = game.rating * game_hours / game_price(game)
        if best_bargain is None or score > best_bargain.value_score:
            best_bargain = BargainHighlight(game=game, value_score=score)

    return MoneyStats(
        cost_of_backlog=sum(game_price(game) for game in owned if game.status == NOT_STARTED),
        break_even_hours_needed=break_even,
        average_cost_per_completion=safe_ratio(
            sum(game_price(game) for game in completed), len(completed)
        ),
        impulse_purchases=tuple(impulse),
        planned_purchases=tuple(planned),
        spending_trend=trend,
        monthly_average=spent / (len(months) or 1),
        biggest_regret=biggest_regret,
        best_bargain=best_bargain,
    )


@dataclass(frozen=True)
class BacklogClearance:
    date: date | None
    days_remaining: int | None
    backlog_count: int
    completions_per_month: float
    never_at: str | None = None


def predicted_backlog_clearance(
    games: Iterable[GameRecord],
    today: date | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> BacklogClearance:
    """Project when the unstarted backlog empties at the recent completion pace.

    The pace is completions over the last ``backlog_lookback_months``.
    """

    limits = resolve_thresholds(thresholds)
    library = list(games)
    today = today or date.today()
    backlog = sum(1 for game in library if game.status == NOT_STARTED)
    if backlog == 0:
        return BacklogClearance(
            date=today, days_remaining=0, backlog_count=0, completions_per_month=0.0
        )

    months = limits.backlog_lookback_months
    cutoff = today - timedelta(days=int(months * 365 / 12))
    recent = 0
    for game in library:
        finished = parse_optional_date(game.end_date)
        if game.status == COMPLETED and finished is not None and finished >= cutoff:
            recent += 1

    if recent == 0 or months <= 0:
        return BacklogClearance(
            date=None,
            days_remaining=None,
            backlog_count=backlog,
            completions_per_month=0.0,
            never_at=f"current rate (0 completions in {months:g} months)",
        )

    per_month = recent / months
    days_remaining = ceil(backlog / per_month * 30)
    return BacklogClearance(
        date=today + timedelta(days=days_remaining),
        days_remaining=days_remaining,
        backlog_count=backlog,
        completions_per_month=per_month,
    )


# Library shape


@dataclass(frozen=True)
class PlatformShare:
    platform: str
    hours: float
    score: float


def platform_preference(games: Iterable[GameRecord]) -> List[PlatformShare]:
    hours: Dict[str, float] = defaultdict(float)
    for game in games:
        played = total_hours(game)
        if played > 0:
            hours[(game.platform or "").strip() or UNKNOWN] += played
    total = sum(hours.values())
    shares = [
        PlatformShare(platform=platform, hours=value, score=safe_ratio(value, total) * 100)
        for platform, value in hours.items()
    ]
    shares.sort(key=lambda share: share.hours, reverse=True)
    return shares


@dataclass(frozen=True)
class GenreDiversity:
    unique_genres: int
    total_genres: int
    percentage: float


def genre_diversity(games: Iterable[GameRecord]) -> GenreDiversity:
    library = list(games)
    played = {game.genre for game in library if game.genre and total_hours(game) > 0}
    known = {game.genre for game in library if game.genre}
    return GenreDiversity(
        unique_genres=len(played),
        total_genres=len(known),
        percentage=safe_ratio(len(played), len(known)) * 100,
    )


def commitment_score(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> float:
    """Percentage of owned games with at least ``committed_min_hours``."""

    limits = resolve_thresholds(thresholds)
    owned = _owned(games)
    committed = [game for game in owned if total_hours(game) >= limits.committed_min_hours]
    return safe_ratio(len(committed), len(owned)) * 100


def impulse_buyer_stat(games: Iterable[GameRecord]) -> float | None:
    """Average days between purchase and the first logged session."""

    delays = []
    for game in _owned(games):
        purchased = parse_optional_date(game.date_purchased)
        first_played = _first_played(game)
        if purchased is None or first_played is None:
            continue
        delays.append(max(0, (first_played - purchased).days))
    if not delays:
        return None
    return sum(delays) / len(delays)


def completion_velocity(games: Iterable[GameRecord]) -> float | None:
    durations = [days for days in (days_to_complete(game) for game in games) if days is not None]
    if not durations:
        return None
    return sum(durations) / len(durations)
