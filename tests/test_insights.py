from datetime import date

import pytest

from game_analytics.insights import (
    commitment_score,
    completion_probability,
    completion_velocity,
    gaming_personality,
    genre_diversity,
    genre_rut_analysis,
    hidden_gems,
    impulse_buyer_stat,
    money_stats,
    platform_preference,
    predicted_backlog_clearance,
    regret_purchases,
    rotation_stats,
    session_analysis,
    shelf_warmers,
)
from game_analytics.records import GameRecord, PlayLogEntry
from game_analytics.thresholds import AnalyticsThresholds


def _game(name, logs=(), **fields):
    play_logs = tuple(
        PlayLogEntry(id=f"{name}-{index}", date=day, hours=hours)
        for index, (day, hours) in enumerate(logs)
    )
    return GameRecord(id=name.lower(), name=name, play_logs=play_logs, **fields)


def test_personality_defaults_for_empty_library():
    personality = gaming_personality([_game("Dream", status="Wishlist")])

    assert personality.type == "Balanced Gamer"
    assert personality.score == 0


def test_personality_completionist():
    games = [_game(f"Done {index}", hours=25, status="Completed") for index in range(4)]

    personality = gaming_personality(games)

    assert personality.type == "Completionist"
    assert personality.score == 100
    assert "Persistent" in personality.traits


def test_personality_backlog_hoarder():
    personality = gaming_personality([_game("Unopened", price=60)])

    assert personality.type == "Backlog Hoarder"
    assert personality.scores["Backlog Hoarder"] == pytest.approx(80.4)


def test_personality_ties_go_to_earlier_archetype():
    personality = gaming_personality([_game("Midway", hours=15, status="In Progress")])

    assert personality.scores["Deep Diver"] == personality.scores["Balanced Gamer"] == 30
    assert personality.type == "Deep Diver"


def test_session_analysis_styles():
    empty = session_analysis([])
    assert empty.style == "Consistent Player"
    assert empty.total_sessions == 0

    marathon = session_analysis([_game("Epic", logs=[("2024-01-01", 4), ("2024-01-08", 5)])])
    assert marathon.style == "Marathon Runner"
    assert marathon.longest_session == 5
    assert marathon.marathon_sessions == 2

    snack = session_analysis([_game("Puzzle", logs=[("2024-01-01", 0.5), ("2024-01-02", 1)])])
    assert snack.style == "Snack Gamer"


def _finished_library():
    return [
        _game("Done 1", status="Completed", genre="RPG", hours=30),
        _game("Done 2", status="Completed", genre="RPG", hours=40),
        _game("Done 3", status="Completed", genre="Shooter", hours=10),
        _game("Dropped", status="Abandoned", genre="Shooter", hours=6),
    ]


def test_completion_probability_factors_sum_to_score():
    today = date(2024, 3, 10)
    target = _game(
        "Current",
        logs=[("2024-03-08", 2)],
        hours=2,
        status="In Progress",
        genre="Shooter",
        rating=6,
    )
    library = _finished_library() + [target]

    result = completion_probability(target, library, today=today)

    assert result.base_rate == pytest.approx(75.0)
    labels = [factor.label for factor in result.factors]
    assert "Currently in progress" in labels
    assert "Played this week" in labels
    assert "Nearing your usual drop-off point" in labels
    raw = result.base_rate + sum(factor.impact for factor in result.factors)
    assert result.probability == max(0, min(100, round(raw)))


def test_completion_probability_is_clamped_and_respects_final_statuses():
    library = _finished_library()
    loved = _game(
        "Loved", logs=[("2024-03-09", 3)], status="In Progress", genre="RPG", hours=50, rating=9
    )

    loved_result = completion_probability(loved, library + [loved], today=date(2024, 3, 10))
    assert loved_result.probability == 100
    assert completion_probability(library[0], library).probability == 100
    assert completion_probability(library[3], library).probability == 0


def test_completion_probability_defaults_without_history():
    result = completion_probability(_game("Fresh"), [], today=date(2024, 1, 1))

    assert result.base_rate == 50
    assert result.probability == 40
    assert result.verdict == "Could go either way"


def test_hidden_gems_and_regret_purchases():
    today = date(2024, 6, 1)
    games = [
        _game("Gem", hours=40, price=10, rating=9, date_purchased="2024-01-01"),
        _game("Pricey Gem", hours=40, price=30, rating=9),
        _game("Regret", hours=2, price=60, rating=4, date_purchased="2024-01-01"),
        _game("Gift", hours=0, price=60, acquired_free=True, date_purchased="2024-01-01"),
        _game("Wishful", price=70, status="Wishlist"),
    ]

    gems = hidden_gems(games)
    assert [gem.game.name for gem in gems] == ["Gem"]

    regrets = regret_purchases(games, today=today)
    assert [regret.game.name for regret in regrets] == ["Regret", "Pricey Gem"]
    assert regrets[0].expected_hours == pytest.approx(50)
    assert regrets[0].regret_score == pytest.approx(6 * 48 * 1.5)

    assert hidden_gems(games, limit=0) == []


def test_shelf_warmers_sorted_by_time_sitting():
    games = [
        _game("Recent", price=20, date_purchased="2024-02-20"),
        _game("Dusty", price=20, date_purchased="2023-12-01"),
        _game("Old", price=20, date_purchased="2024-01-01"),
        _game("Free", price=0, date_purchased="2023-01-01"),
    ]

    warmers = shelf_warmers(games, today=date(2024, 3, 1))

    assert [warmer.game.name for warmer in warmers] == ["Dusty", "Old"]
    assert warmers[1].days_sitting == 60


def test_rotation_stats():
    today = date(2024, 3, 1)
    games = [
        _game("Daily", logs=[("2024-02-25", 1)]),
        _game("Weekly", logs=[("2024-02-20", 2)]),
        _game("Paused", logs=[("2024-01-15", 10)]),
        _game("Ancient", logs=[("2023-06-01", 10)]),
    ]

    stats = rotation_stats(games, today=today)

    assert stats.health == "Healthy"
    assert stats.games_in_rotation == 2
    assert [game.name for game in stats.cooling_off] == ["Paused"]
    assert rotation_stats([], today=today).health == "Focused"
    assert rotation_stats(games[:1], today=today).health == "Obsessed"


def test_genre_rut_analysis():
    today = date(2024, 3, 1)
    games = [
        _game(f"RPG {index}", logs=[("2024-02-01", 2)], genre="RPG") for index in range(3)
    ] + [_game("Puzzler", genre="Puzzle")]

    rut = genre_rut_analysis(games, today=today)

    assert rut.is_in_rut
    assert rut.dominant_genre == "RPG"
    assert rut.dominant_percentage == pytest.approx(100)
    assert rut.underexplored_genres == ("Puzzle",)

    too_few = genre_rut_analysis(games[:2], today=today)
    assert not too_few.is_in_rut
    assert too_few.dominant_genre is None


def test_money_stats():
    games = [
        _game("Backlog", price=25),
        _game(
            "Impulse",
            logs=[("2024-01-03", 12)],
            price=30,
            rating=8,
            date_purchased="2024-01-01",
            status="Completed",
        ),
        _game(
            "Planned",
            logs=[("2024-03-15", 1)],
            price=10,
            date_purchased="2024-01-01",
            status="In Progress",
        ),
    ]

    stats = money_stats(games)

    assert stats.cost_of_backlog == pytest.approx(25)
    assert [game.name for game in stats.impulse_purchases] == ["Impulse"]
    assert [game.name for game in stats.planned_purchases] == ["Planned"]
    assert stats.average_cost_per_completion == pytest.approx(30)
    assert stats.biggest_regret.game.name == "Backlog"
    assert stats.best_bargain.game.name == "Impulse"
    assert stats.spending_trend == "stable"
    assert stats.break_even_hours_needed == pytest.approx(65 / 2 - 13)


def test_predicted_backlog_clearance():
    today = date(2024, 6, 1)
    games = [
        _game("Queue 1"),
        _game("Queue 2"),
        _game("Done 1", status="Completed", end_date="2024-05-01"),
        _game("Done 2", status="Completed", end_date="2024-04-01"),
        _game("Done 3", status="Completed", end_date="2024-03-01"),
    ]

    clearance = predicted_backlog_clearance(games, today=today)

    assert clearance.days_remaining == 120
    assert clearance.completions_per_month == pytest.approx(0.5)

    stalled = predicted_backlog_clearance(games[:2], today=today)
    assert stalled.date is None
    assert stalled.days_remaining is None
    assert stalled.never_at

    assert predicted_backlog_clearance([], today=today).days_remaining == 0


def test_library_shape_stats():
    games = [
        _game("A", hours=30, platform="PC", genre="RPG", date_purchased="2024-01-01",
              logs=[("2024-01-05", 1)]),
        _game("B", hours=10, platform="Switch", genre="Puzzle"),
        _game("C", genre="Racing"),
        _game(
            "D",
            status="Completed",
            start_date="2024-01-01",
            end_date="2024-01-21",
            hours=5,
        ),
    ]

    shares = platform_preference(games)
    assert [share.platform for share in shares] == ["PC", "Switch", "Unknown"]
    assert sum(share.score for share in shares) == pytest.approx(100)

    diversity = genre_diversity(games)
    assert diversity.unique_genres == 2
    assert diversity.total_genres == 3

    assert commitment_score(games) == pytest.approx(50)
    assert impulse_buyer_stat(games) == pytest.approx(4)
    assert completion_velocity(games) == pytest.approx(20)
    assert impulse_buyer_stat([]) is None
    assert completion_velocity([]) is None


def test_heuristic_thresholds_can_be_overridden():
    today = date(2024, 3, 10)
    current = _game(
        "Current", logs=[("2024-03-08", 2)], hours=2, status="In Progress", genre="Shooter"
    )
    strict = AnalyticsThresholds.from_mapping({"probability_recent_days": 1})

    labels = [
        factor.label
        for factor in completion_probability(current, [current], today, strict).factors
    ]
    assert "Played this week" not in labels

    gems = [
        _game("Gem", hours=40, price=10, rating=9),
        _game("Pricey Gem", hours=40, price=30, rating=9),
    ]
    generous = AnalyticsThresholds.from_mapping({"gem_max_price": 30})
    assert [gem.game.name for gem in hidden_gems(gems, thresholds=generous)] == [
        "Gem",
        "Pricey Gem",
    ]


def test_money_stats_respects_threshold_overrides():
    games = [
        _game("Backlog", price=25),
        _game("Impulse", logs=[("2024-01-03", 12)], price=30, date_purchased="2024-01-01"),
        _game("Planned", logs=[("2024-03-15", 1)], price=10, date_purchased="2024-01-01"),
    ]
    limits = AnalyticsThresholds.from_mapping(
        {"target_cost_per_hour": 2.5, "impulse_max_days": 1, "planned_min_days": 90}
    )

    stats = money_stats(games, limits)

    assert stats.break_even_hours_needed == pytest.approx(65 / 2.5 - 13)
    assert stats.impulse_purchases == ()
    assert stats.planned_purchases == ()


def test_backlog_clearance_lookback_is_configurable():
    today = date(2024, 6, 1)
    games = [
        _game("Queue 1"),
        _game("Queue 2"),
        _game("Done 1", status="Completed", end_date="2024-05-01"),
        _game("Done 2", status="Completed", end_date="2024-04-01"),
        _game("Done 3", status="Completed", end_date="2024-03-01"),
    ]

    yearly = AnalyticsThresholds.from_mapping({"backlog_lookback_months": 12})
    clearance = predicted_backlog_clearance(games, today, yearly)

    assert clearance.completions_per_month == pytest.approx(0.25)
    assert clearance.days_remaining == 240

    no_lookback = AnalyticsThresholds.from_mapping({"backlog_lookback_months": 0})
    assert predicted_backlog_clearance(games, today, no_lookback).days_remaining is None
