"""Time-windowed reports built from play log events.

Every window is a closed ``[start, end]`` range of calendar days, so two
adjacent windows never share or drop a day. Weeks run Monday to Sunday.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Literal, Sequence

from .dates import (
    DateWindow,
    bucket_key,
    day_name,
    format_window_label,
    is_weekend,
    month_window,
    month_window_for,
    parse_local_date,
    parse_optional_date,
    shift_month,
    trailing_window,
    week_start,
    week_window,
    window_for_range,
    year_window,
)
from .metrics import game_price, safe_number, safe_ratio
from .records import GameRecord, PlayLogEntry
from .statuses import ABANDONED, COMPLETED
from .summary import spending_by_month
from .thresholds import AnalyticsThresholds, resolve_thresholds

ReportStatus = Literal["empty", "active"]
Trend = Literal["up", "down", "same"]


@dataclass(frozen=True)
class PlayEvent:
    game: GameRecord
    log: PlayLogEntry
    day: date

    @property
    def hours(self) -> float:
        return safe_number(self.log.hours)


def _game_key(game: GameRecord) -> str:
    return game.id or game.name


def collect_play_events(
    games: Iterable[GameRecord], window: DateWindow | None = None
) -> List[PlayEvent]:
    """Flatten play logs into events, newest first.

    Events on the same day keep the order in which they were encountered.
    """

    events: List[PlayEvent] = []
    for game in games:
        for log in game.play_logs:
            day = parse_local_date(log.date)
            if window is None or window.contains(day):
                events.append(PlayEvent(game=game, log=log, day=day))
    events.sort(key=lambda event: event.day, reverse=True)
    return events


def oldest_first(events: Iterable[PlayEvent]) -> List[PlayEvent]:
    """Reorder events by ascending day, keeping input order within a day."""

    return sorted(events, key=lambda event: event.day)


@dataclass(frozen=True)
class GameShare:
    game: GameRecord
    hours: float
    sessions: int
    percentage: float
    days_played: int


def _game_shares(events: Sequence[PlayEvent], total: float) -> List[GameShare]:
    hours: Dict[str, float] = {}
    sessions: Dict[str, int] = defaultdict(int)
    days: Dict[str, set] = defaultdict(set)
    games: Dict[str, GameRecord] = {}

    # Oldest first so ties resolve to whichever game was played first.
    for event in oldest_first(events):
        key = _game_key(event.game)
        games.setdefault(key, event.game)
        hours[key] = hours.get(key, 0.0) + event.hours
        sessions[key] += 1
        days[key].add(event.day)

    shares = [
        GameShare(
            game=games[key],
            hours=hours[key],
            sessions=sessions[key],
            percentage=safe_ratio(hours[key], total) * 100,
            days_played=len(days[key]),
        )
        for key in hours
    ]
    shares.sort(key=lambda share: share.hours, reverse=True)
    return shares


def _completions_in(games: Iterable[GameRecord], window: DateWindow) -> List[GameRecord]:
    completed = []
    for game in games:
        if game.status != COMPLETED:
            continue
        end_day = parse_optional_date(game.end_date)
        if end_day is not None and window.contains(end_day):
            completed.append(game)
    return completed


@dataclass(frozen=True)
class PeriodStats:
    status: ReportStatus
    window: DateWindow
    events: tuple[PlayEvent, ...]
    game_shares: tuple[GameShare, ...]
    total_hours: float
    total_sessions: int
    unique_games: int
    most_played_game: GameShare | None
    average_session_length: float
    completions: tuple[GameRecord, ...]

    @property
    def games_played(self) -> List[GameRecord]:
        return [share.game for share in self.game_shares]


def period_stats(games: Iterable[GameRecord], window: DateWindow) -> PeriodStats:
    library = list(games)
    events = collect_play_events(library, window)
    total = sum(event.hours for event in events)
    shares = _game_shares(events, total)
    return PeriodStats(
        status="active" if events else "empty",
        window=window,
        events=tuple(events),
        game_shares=tuple(shares),
        total_hours=total,
        total_sessions=len(events),
        unique_games=len(shares),
        most_played_game=shares[0] if shares else None,
        average_session_length=safe_ratio(total, len(events)),
        completions=tuple(_completions_in(library, window)),
    )


def period_stats_for_range(
    games: Iterable[GameRecord], start: str | date, end: str | date
) -> PeriodStats:
    return period_stats(games, window_for_range(start, end))


def trailing_period_stats(
    games: Iterable[GameRecord], days: int, today: date | None = None
) -> PeriodStats:
    return period_stats(games, trailing_window(days, today or date.today()))


@dataclass(frozen=True)
class PeriodComparison:
    hours_diff: float
    sessions_diff: int
    games_diff: int
    completions_diff: int
    percent_change: float | None
    trend: Trend


def compare_periods(
    current: PeriodStats,
    previous: PeriodStats,
    thresholds: AnalyticsThresholds | None = None,
) -> PeriodComparison:
    limits = resolve_thresholds(thresholds)
    hours_diff = current.total_hours - previous.total_hours
    if abs(hours_diff) < limits.trend_deadband_hours:
        trend: Trend = "same"
    elif hours_diff > 0:
        trend = "up"
    else:
        trend = "down"

    percent_change = None
    if previous.total_hours > 0:
        percent_change = hours_diff / previous.total_hours * 100

    return PeriodComparison(
        hours_diff=hours_diff,
        sessions_diff=current.total_sessions - previous.total_sessions,
        games_diff=current.unique_games - previous.unique_games,
        completions_diff=len(current.completions) - len(previous.completions),
        percent_change=percent_change,
        trend=trend,
    )


def compare_with_previous(
    games: Iterable[GameRecord],
    window: DateWindow,
    thresholds: AnalyticsThresholds | None = None,
) -> PeriodComparison:
    library = list(games)
    return compare_periods(
        period_stats(library, window), period_stats(library, window.previous()), thresholds
    )


# Streaks


def daily_hours(games: Iterable[GameRecord]) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for game in games:
        for log in game.play_logs:
            totals[parse_local_date(log.date)] += safe_number(log.hours)
    return dict(totals)


def active_days(games: Iterable[GameRecord]) -> List[date]:
    """Sorted calendar days with more than zero logged hours."""

    return sorted(day for day, hours in daily_hours(games).items() if hours > 0)


def _longest_run(days: Iterable[date]) -> tuple[int, date | None, date | None]:
    ordered = sorted(set(days))
    if not ordered:
        return 0, None, None

    best_length, best_start, best_end = 1, ordered[0], ordered[0]
    run_length, run_start = 1, ordered[0]
    for previous, current in zip(ordered, ordered[1:]):
        if (current - previous).days == 1:
            run_length += 1
        else:
            run_length, run_start = 1, current
        if run_length > best_length:
            best_length, best_start, best_end = run_length, run_start, current
    return best_length, best_start, best_end


def longest_streak(days: Iterable[date]) -> int:
    return _longest_run(days)[0]


def current_streak(days: Iterable[date], today: date) -> int:
    """Consecutive active days ending on ``today``; 0 when today is inactive."""

    active = set(days)
    streak = 0
    cursor = today
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


@dataclass(frozen=True)
class StreakSummary:
    current: int
    longest: int
    longest_start: date | None
    longest_end: date | None
    last_active: date | None


def streak_summary(games: Iterable[GameRecord], today: date | None = None) -> StreakSummary:
    days = active_days(games)
    length, start, end = _longest_run(days)
    return StreakSummary(
        current=current_streak(days, today or date.today()),
        longest=length,
        longest_start=start,
        longest_end=end,
        last_active=days[-1] if days else None,
    )


# Period reviews


@dataclass(frozen=True)
class DayActivity:
    date: date
    day: str
    hours: float
    sessions: int
    games: int
    game_names: tuple[str, ...]


@dataclass(frozen=True)
class SessionHighlight:
    game: GameRecord
    hours: float
    date: date
    day: str


@dataclass(frozen=True)
class GenreShare:
    genre: str
    hours: float
    percentage: float


@dataclass(frozen=True)
class Milestone:
    game: GameRecord
    milestone: str


@dataclass(frozen=True)
class ValueHighlight:
    game: GameRecord
    cost_per_hour: float


@dataclass(frozen=True)
class AverageComparison:
    average_hours: float
    percentage: float
    hours_diff: float


@dataclass(frozen=True)
class PeriodReview:
    kind: Literal["week", "month", "custom"]
    status: ReportStatus
    window: DateWindow
    label: str

    total_hours: float
    total_sessions: int
    unique_games: int

    daily: tuple[DayActivity, ...]
    busiest_day: DayActivity | None
    rest_days: tuple[date, ...]

    game_shares: tuple[GameShare, ...]
    top_game: GameShare | None

    average_session_length: float
    longest_session: SessionHighlight | None
    marathon_sessions: int
    power_sessions: int
    quick_sessions: int
    most_consistent_game: GameShare | None

    weekday_hours: float
    weekend_hours: float
    weekday_percentage: float
    weekend_percentage: float

    favorite_genre: GenreShare | None
    genres_played: tuple[str, ...]

    completed_games: tuple[GameRecord, ...]
    new_games_started: tuple[GameRecord, ...]
    milestones: tuple[Milestone, ...]

    previous_window: DateWindow
    previous_total_hours: float
    comparison: PeriodComparison
    vs_average: AverageComparison | None

    cost_per_hour: float
    best_value_game: ValueHighlight | None

    play_style: str | None
    focus_score: int
    days_active: int
    average_hours_per_day: float
    longest_streak: int
    streak_at_end: int
    perfect_period: bool
    library_percentage_played: float
    average_enjoyment_rating: float
    movie_equivalent: int
    book_equivalent: int


def _play_style(unique_games: int) -> str | None:
    if unique_games == 0:
        return None
    if unique_games == 1:
        return "Monogamous"
    if unique_games <= 3:
        return "Dabbler"
    if unique_games <= 5:
        return "Variety Seeker"
    return "Juggler"


def _hours_through(game: GameRecord, last_day: date) -> float:
    logged = sum(
        safe_number(log.hours)
        for log in game.play_logs
        if parse_local_date(log.date) <= last_day
    )
    return safe_number(game.hours) + logged


def _milestones(
    shares: Sequence[GameShare], window: DateWindow, limits: AnalyticsThresholds
) -> List[Milestone]:
    reached = []
    for share in shares:
        at_end = _hours_through(share.game, window.end)
        before = at_end - share.hours
        if before < limits.century_hours <= at_end:
            reached.append(Milestone(share.game, f"Century Club ({limits.century_hours:g}h)"))
        elif before < limits.half_century_hours <= at_end:
            reached.append(
                Milestone(share.game, f"Half Century ({limits.half_century_hours:g}h)")
            )
    return reached


def _new_games_started(
    games: Sequence[GameRecord], shares: Sequence[GameShare], window: DateWindow
) -> List[GameRecord]:
    started: Dict[str, GameRecord] = {}
    for game in games:
        start_day = parse_optional_date(game.start_date)
        if start_day is not None and window.contains(start_day):
            started.setdefault(_game_key(game), game)

    for share in shares:
        game = share.game
        played_before = safe_number(game.hours) > 0 or any(
            parse_local_date(log.date) < window.start for log in game.play_logs
        )
        if not played_before:
            started.setdefault(_game_key(game), game)
    return list(started.values())


def _average_of_previous_weeks(
    games: Sequence[GameRecord], window: DateWindow, weeks: int
) -> float:
    total = 0.0
    for index in range(1, weeks + 1):
        start = window.start - timedelta(weeks=index)
        total += period_stats(games, DateWindow(start, start + timedelta(days=6))).total_hours
    return total / weeks


def build_period_review(
    games: Iterable[GameRecord],
    window: DateWindow,
    *,
    kind: Literal["week", "month", "custom"] = "custom",
    previous_window: DateWindow | None = None,
    average_weeks: int = 0,
    thresholds: AnalyticsThresholds | None = None,
) -> PeriodReview:
    """Assemble the narrative review for ``window``.

    ``previous_window`` defaults to the equal-length window immediately
    before ``window``. When ``average_weeks`` is positive the review also
    compares against the mean of that many preceding Monday-start weeks.
    """

    limits = resolve_thresholds(thresholds)
    library = list(games)
    stats = period_stats(library, window)
    previous_window = previous_window or window.previous()
    previous_stats = period_stats(library, previous_window)
    events = stats.events
    total = stats.total_hours

    per_day_hours: Dict[date, float] = defaultdict(float)
    per_day_sessions: Dict[date, int] = defaultdict(int)
    per_day_games: Dict[date, Dict[str, str]] = defaultdict(dict)
    genre_hours: Dict[str, float] = {}
    weekday_hours = weekend_hours = 0.0
    longest: SessionHighlight | None = None
    marathon = power = quick = 0

    for event in oldest_first(events):
        hours = event.hours
        per_day_hours[event.day] += hours
        per_day_sessions[event.day] += 1
        per_day_games[event.day].setdefault(_game_key(event.game), event.game.name)

        if is_weekend(event.day):
            weekend_hours += hours
        else:
            weekday_hours += hours

        if longest is None or hours > longest.hours:
            longest = SessionHighlight(event.game, hours, event.day, day_name(event.day))

        if hours >= limits.marathon_session_hours:
            marathon += 1
        elif hours >= limits.quick_session_hours:
            power += 1
        else:
            quick += 1

        if event.game.genre:
            genre_hours[event.game.genre] = genre_hours.get(event.game.genre, 0.0) + hours

    daily = tuple(
        DayActivity(
            date=day,
            day=day_name(day),
            hours=per_day_hours.get(day, 0.0),
            sessions=per_day_sessions.get(day, 0),
            games=len(per_day_games.get(day, {})),
            game_names=tuple(per_day_games.get(day, {}).values()),
        )
        for day in window.iter_days()
    )

    busiest: DayActivity | None = None
    for activity in daily:
        if activity.hours > 0 and (busiest is None or activity.hours > busiest.hours):
            busiest = activity

    active_in_window = [activity.date for activity in daily if activity.hours > 0]
    shares = list(stats.game_shares)

    consistent: GameShare | None = None
    for share in shares:
        if share.days_played > 1 and (
            consistent is None or share.days_played > consistent.days_played
        ):
            consistent = share

    genres_sorted = sorted(genre_hours.items(), key=lambda item: item[1], reverse=True)
    favorite_genre = None
    if genres_sorted:
        genre, hours = genres_sorted[0]
        favorite_genre = GenreShare(genre, hours, safe_ratio(hours, total) * 100)

    paid = [
        share
        for share in shares
        if not share.game.acquired_free and game_price(share.game) > 0 and share.hours > 0
    ]
    best_value: ValueHighlight | None = None
    for share in paid:
        cost = game_price(share.game) / share.hours
        if best_value is None or cost < best_value.cost_per_hour:
            best_value = ValueHighlight(share.game, cost)
    paid_spent = sum(game_price(share.game) for share in paid)

    vs_average = None
    if average_weeks > 0:
        average = _average_of_previous_weeks(library, window, average_weeks)
        vs_average = AverageComparison(
            average_hours=average,
            percentage=safe_ratio(total, average) * 100,
            hours_diff=total - average,
        )

    owned_total = sum(1 for game in library if game.is_owned)
    rated = [share.game.rating for share in shares]
    all_active = active_days(library)
    top_game = shares[0] if shares else None

    return PeriodReview(
        kind=kind,
        status=stats.status,
        window=window,
        label=format_window_label(window),
        total_hours=total,
        total_sessions=stats.total_sessions,
        unique_games=stats.unique_games,
        daily=daily,
        busiest_day=busiest,
        rest_days=tuple(activity.date for activity in daily if activity.hours <= 0),
        game_shares=tuple(shares),
        top_game=top_game,
        average_session_length=stats.average_session_length,
        longest_session=longest,
        marathon_sessions=marathon,
        power_sessions=power,
        quick_sessions=quick,
        most_consistent_game=consistent,
        weekday_hours=weekday_hours,
        weekend_hours=weekend_hours,
        weekday_percentage=safe_ratio(weekday_hours, total) * 100,
        weekend_percentage=safe_ratio(weekend_hours, total) * 100,
        favorite_genre=favorite_genre,
        genres_played=tuple(genre for genre, _ in genres_sorted),
        completed_games=stats.completions,
        new_games_started=tuple(_new_games_started(library, shares, window)),
        milestones=tuple(_milestones(shares, window, limits)),
        previous_window=previous_window,
        previous_total_hours=previous_stats.total_hours,
        comparison=compare_periods(stats, previous_stats, limits),
        vs_average=vs_average,
        cost_per_hour=safe_ratio(paid_spent, total) if paid_spent > 0 else 0.0,
        best_value_game=best_value,
        play_style=_play_style(stats.unique_games),
        focus_score=round(top_game.percentage) if top_game else 0,
        days_active=len(active_in_window),
        average_hours_per_day=safe_ratio(total, len(active_in_window)),
        longest_streak=longest_streak(active_in_window),
        streak_at_end=current_streak(all_active, window.end),
        perfect_period=bool(daily) and len(active_in_window) == len(daily),
        library_percentage_played=safe_ratio(stats.unique_games, owned_total) * 100,
        average_enjoyment_rating=safe_ratio(sum(rated), len(rated)),
        movie_equivalent=int(total // 2),
        book_equivalent=int(total // 8),
    )


def week_in_review(
    games: Iterable[GameRecord],
    today: date | None = None,
    offset: int = 0,
    thresholds: AnalyticsThresholds | None = None,
) -> PeriodReview:
    """Review of the Monday-Sunday week ``offset`` weeks before the current one.

    ``offset=0`` is the week containing ``today``; ``offset=1`` is the last
    completed week.
    """

    window = week_window(today or date.today(), offset)
    return build_period_review(
        games, window, kind="week", average_weeks=4, thresholds=thresholds
    )


def month_in_review(
    games: Iterable[GameRecord],
    year: int,
    month: int,
    thresholds: AnalyticsThresholds | None = None,
) -> PeriodReview:
    window = month_window(year, month)
    previous_year, previous_month = shift_month(year, month, 1)
    return build_period_review(
        games,
        window,
        kind="month",
        previous_window=month_window(previous_year, previous_month),
        thresholds=thresholds,
    )


def _latest_active_day_through(days: Sequence[date], last_day: date) -> date | None:
    latest = None
    for day in days:
        if day <= last_day:
            latest = day
    return latest


def last_completed_week(
    games: Iterable[GameRecord],
    today: date | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> PeriodReview:
    """Most recent fully elapsed week with play time.

    Starts from the week before the current one. When that week is empty the
    review jumps back to the week holding the latest earlier session; with no
    earlier sessions the empty last week is returned.
    """

    library = list(games)
    candidate = week_window(today or date.today(), 1)
    latest = _latest_active_day_through(active_days(library), candidate.end)
    if latest is not None:
        candidate = week_window(latest, 0)
    return build_period_review(
        library, candidate, kind="week", average_weeks=4, thresholds=thresholds
    )


def last_completed_month(
    games: Iterable[GameRecord],
    today: date | None = None,
    thresholds: AnalyticsThresholds | None = None,
) -> PeriodReview:
    library = list(games)
    candidate = month_window_for(today or date.today(), 1)
    latest = _latest_active_day_through(active_days(library), candidate.end)
    if latest is not None:
        candidate = month_window(latest.year, latest.month)
    return month_in_review(
        library, candidate.start.year, candidate.start.month, thresholds=thresholds
    )


def available_weeks_count(games: Iterable[GameRecord], today: date | None = None) -> int:
    events = collect_play_events(games)
    if not events:
        return 0
    oldest = events[-1].day
    current = week_start(today or date.today())
    return max(0, (current - week_start(oldest)).days // 7) + 1


def games_played_in_range(
    games: Iterable[GameRecord], start: str | date, end: str | date
) -> List[GameRecord]:
    window = window_for_range(start, end)
    return [
        game
        for game in games
        if any(window.contains(parse_local_date(log.date)) for log in game.play_logs)
    ]


# Year in review


@dataclass(frozen=True)
class NamedHours:
    name: str
    hours: float


@dataclass(frozen=True)
class MonthTotal:
    month: str
    amount: float


@dataclass(frozen=True)
class YearInReview:
    year: int
    status: ReportStatus
    games_acquired: int
    games_completed: int
    total_spent: float
    total_hours: float
    total_sessions: int
    average_cost_per_hour: float
    top_game: NamedHours | None
    top_genre: NamedHours | None
    month_with_most_hours: MonthTotal | None
    month_with_most_spending: MonthTotal | None
    new_genres_tried: int
    longest_session: SessionHighlight | None
    savings: float


def _top_entry(totals: Dict[str, float]) -> tuple[str, float] | None:
    best = None
    for key, value in totals.items():
        if best is None or value > best[1]:
            best = (key, value)
    return best


def year_in_review(games: Iterable[GameRecord], year: int) -> YearInReview:
    library = list(games)
    window = year_window(year)
    year_key = f"{year:04d}"

    acquired = [
        game
        for game in library
        if game.is_owned and game.date_purchased and game.date_purchased.startswith(year_key)
    ]
    completed = [game for game in _completions_in(library, window)]
    total_spent = sum(game_price(game) for game in acquired)

    events = oldest_first(collect_play_events(library, window))
    hours_by_game: Dict[str, float] = {}
    game_names: Dict[str, str] = {}
    hours_by_genre: Dict[str, float] = {}
    hours_by_month: Dict[str, float] = {}
    longest: SessionHighlight | None = None
    for event in events:
        key = _game_key(event.game)
        game_names.setdefault(key, event.game.name)
        hours_by_game[key] = hours_by_game.get(key, 0.0) + event.hours
        if event.game.genre:
            hours_by_genre[event.game.genre] = hours_by_genre.get(event.game.genre, 0.0) + event.hours
        month = bucket_key(event.day, "month")
        hours_by_month[month] = hours_by_month.get(month, 0.0) + event.hours
        if longest is None or event.hours > longest.hours:
            longest = SessionHighlight(event.game, event.hours, event.day, day_name(event.day))

    total = sum(hours_by_game.values())
    top_game = _top_entry(hours_by_game)
    top_genre = _top_entry(hours_by_genre)
    top_month = _top_entry(dict(sorted(hours_by_month.items())))
    year_spending = {
        month: amount
        for month, amount in sorted(spending_by_month(library).items())
        if month.startswith(year_key)
    }
    top_spending = _top_entry(year_spending)

    previous_genres = {
        game.genre
        for game in library
        if game.genre and game.date_purchased and game.date_purchased < year_key
    }
    new_genres = {game.genre for game in acquired if game.genre and game.genre not in previous_genres}

    savings = 0.0
    for game in acquired:
        original = safe_number(game.original_price)
        if game.acquired_free:
            savings += original
        elif original > game_price(game):
            savings += original - game_price(game)

    return YearInReview(
        year=year,
        status="active" if events else "empty",
        games_acquired=len(acquired),
        games_completed=len(completed),
        total_spent=total_spent,
        total_hours=total,
        total_sessions=len(events),
        average_cost_per_hour=safe_ratio(total_spent, total),
        top_game=NamedHours(game_names[top_game[0]], top_game[1]) if top_game else None,
        top_genre=NamedHours(*top_genre) if top_genre else None,
        month_with_most_hours=MonthTotal(*top_month) if top_month else None,
        month_with_most_spending=MonthTotal(*top_spending) if top_spending else None,
        new_genres_tried=len(new_genres),
        longest_session=longest,
        savings=savings,
    )


# Cumulative hours counter

HoursCounterResolution = Literal["daily", "monthly", "yearly"]


@dataclass(frozen=True)
class HoursCounterPoint:
    key: str
    label: str
    hours: float
    cumulative: float
    sessions: int
    games_played: int
    top_game: str | None
    top_game_hours: float


@dataclass(frozen=True)
class HoursCounter:
    resolution: HoursCounterResolution
    points: tuple[HoursCounterPoint, ...]
    total_hours: float
    total_sessions: int
    peak: HoursCounterPoint | None
    active_points: int
    average_per_active_point: float


def _counter_buckets(
    games: Sequence[GameRecord],
    resolution: str,
    year: int | None,
    month: int | None,
    today: date,
) -> tuple[List[tuple[str, str]], DateWindow | None, str]:
    if resolution == "daily":
        window = month_window(year or today.year, month or today.month)
        keys = [
            (day.isoformat(), f"{day.strftime('%b')} {day.day}") for day in window.iter_days()
        ]
        return keys, window, "day"
    if resolution == "monthly":
        target_year = year or today.year
        keys = []
        for index in range(1, 13):
            start = date(target_year, index, 1)
            keys.append((f"{target_year:04d}-{index:02d}", start.strftime("%b %Y")))
        return keys, year_window(target_year), "month"
    if resolution == "yearly":
        years = sorted({parse_local_date(log.date).year for game in games for log in game.play_logs})
        if years:
            years = list(range(years[0], years[-1] + 1))
        return [(f"{value:04d}", f"{value:04d}") for value in years], None, "year"
    raise ValueError("Resolution must be 'daily', 'monthly', or 'yearly'")


def cumulative_hours_counter(
    games: Iterable[GameRecord],
    resolution: HoursCounterResolution = "daily",
    year: int | None = None,
    month: int | None = None,
    today: date | None = None,
) -> HoursCounter:
    """Running total of logged hours at daily, monthly or yearly resolution.

    ``daily`` covers one calendar month, ``monthly`` one calendar year and
    ``yearly`` every year from the first to the last logged session.
    """

    library = list(games)
    keys, window, granularity = _counter_buckets(
        library, resolution, year, month, today or date.today()
    )
    events = oldest_first(collect_play_events(library, window))

    hours: Dict[str, float] = defaultdict(float)
    sessions: Dict[str, int] = defaultdict(int)
    per_game: Dict[str, Dict[str, float]] = defaultdict(dict)
    names: Dict[str, str] = {}
    for event in events:
        key = bucket_key(event.day, granularity)
        hours[key] += event.hours
        sessions[key] += 1
        game_key = _game_key(event.game)
        names.setdefault(game_key, event.game.name)
        per_game[key][game_key] = per_game[key].get(game_key, 0.0) + event.hours

    points: List[HoursCounterPoint] = []
    running = 0.0
    for key, label in keys:
        running += hours.get(key, 0.0)
        top = _top_entry(per_game.get(key, {}))
        points.append(
            HoursCounterPoint(
                key=key,
                label=label,
                hours=hours.get(key, 0.0),
                cumulative=running,
                sessions=sessions.get(key, 0),
                games_played=len(per_game.get(key, {})),
                top_game=names[top[0]] if top else None,
                top_game_hours=top[1] if top else 0.0,
            )
        )

    peak: HoursCounterPoint | None = None
    for point in points:
        if point.hours > 0 and (peak is None or point.hours > peak.hours):
            peak = point
    active = sum(1 for point in points if point.hours > 0)

    return HoursCounter(
        resolution=resolution,
        points=tuple(points),
        total_hours=running,
        total_sessions=sum(point.sessions for point in points),
        peak=peak,
        active_points=active,
        average_per_active_point=safe_ratio(running, active),
    )


# Activity feed

ActivityType = Literal["play", "purchase", "start", "completion", "abandon", "milestone"]


@dataclass(frozen=True)
class ActivityEvent:
    type: ActivityType
    date: date
    game_id: str
    game_name: str
    description: str
    hours: float | None = None
    price: float | None = None
    rating: float | None = None
    detail: str | None = None
    thumbnail: str | None = None


@dataclass(frozen=True)
class ActivityFeed:
    events: tuple[ActivityEvent, ...]
    total: int


def _game_activity(
    game: GameRecord, limits: AnalyticsThresholds
) -> List[ActivityEvent]:
    def event(kind: ActivityType, day: date, description: str, **extra) -> ActivityEvent:
        return ActivityEvent(
            type=kind,
            date=day,
            game_id=game.id,
            game_name=game.name,
            description=description,
            thumbnail=game.thumbnail,
            **extra,
        )

    activity: List[ActivityEvent] = []
    purchased = parse_optional_date(game.date_purchased)
    if purchased is not None and game.is_owned:
        verb = "Claimed" if game.acquired_free else "Bought"
        activity.append(
            event(
                "purchase",
                purchased,
                f"{verb} {game.name}",
                price=game_price(game),
                detail=game.subscription_source if game.acquired_free else game.purchase_source,
            )
        )

    started = parse_optional_date(game.start_date)
    if started is not None:
        activity.append(event("start", started, f"Started {game.name}"))

    ordered_logs = sorted(
        enumerate(game.play_logs), key=lambda item: (parse_local_date(item[1].date), item[0])
    )
    running = safe_number(game.hours)
    for _, log in ordered_logs:
        day = parse_local_date(log.date)
        hours = safe_number(log.hours)
        activity.append(
            event("play", day, f"Played {game.name}", hours=hours, detail=log.notes)
        )
        before, running = running, running + hours
        for mark in (limits.half_century_hours, limits.century_hours):
            if before < mark <= running:
                activity.append(
                    event("milestone", day, f"{game.name} reached {mark:g} hours", hours=running)
                )

    ended = parse_optional_date(game.end_date)
    if ended is not None and game.status == COMPLETED:
        activity.append(
            event(
                "completion",
                ended,
                f"Completed {game.name}",
                rating=game.rating if game.rating > 0 else None,
            )
        )
    elif ended is not None and game.status == ABANDONED:
        activity.append(event("abandon", ended, f"Abandoned {game.name}"))

    return activity


def activity_feed(
    games: Iterable[GameRecord],
    limit: int = 30,
    thresholds: AnalyticsThresholds | None = None,
) -> ActivityFeed:
    limits = resolve_thresholds(thresholds)
    activity: List[ActivityEvent] = []
    for game in games:
        activity.extend(_game_activity(game, limits))
    activity.sort(key=lambda item: item.date, reverse=True)
    return ActivityFeed(events=tuple(activity[: max(0, int(limit))]), total=len(activity))


# Trends


@dataclass(frozen=True)
class MonthlyTrend:
    month: str
    hours: float
    spent: float
    games: int


def monthly_trends(
    games: Iterable[GameRecord], today: date | None = None, month_count: int = 12
) -> List[MonthlyTrend]:
    library = list(games)
    reference = today or date.today()
    hours: Dict[str, float] = defaultdict(float)
    for event in collect_play_events(library):
        hours[bucket_key(event.day, "month")] += event.hours

    spent: Dict[str, float] = defaultdict(float)
    acquired: Dict[str, int] = defaultdict(int)
    for game in library:
        if game.is_owned and game.date_purchased:
            key = bucket_key(game.date_purchased, "month")
            spent[key] += game_price(game)
            acquired[key] += 1

    trends = []
    for offset in range(month_count - 1, -1, -1):
        year, month = shift_month(reference.year, reference.month, offset)
        key = f"{year:04d}-{month:02d}"
        trends.append(
            MonthlyTrend(month=key, hours=hours[key], spent=spent[key], games=acquired[key])
        )
    return trends


def best_gaming_month(games: Iterable[GameRecord]) -> MonthTotal | None:
    hours: Dict[str, float] = defaultdict(float)
    for event in collect_play_events(games):
        hours[bucket_key(event.day, "month")] += event.hours
    best = _top_entry(dict(sorted(hours.items())))
    return MonthTotal(*best) if best else None


def gaming_velocity(
    games: Iterable[GameRecord], days: int, today: date | None = None
) -> float:
    """Average hours per day over the trailing ``days`` days."""

    return trailing_period_stats(games, days, today).total_hours / days
