"""Library exports: spreadsheet-friendly CSV and a full JSON snapshot."""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Any, Iterable, List

from .metrics import calculate_metrics, game_price, safe_number, total_hours
from .records import GameRecord
from .thresholds import AnalyticsThresholds, resolve_thresholds

GAME_COLUMNS = (
    "Name",
    "Status",
    "Price",
    "Total Hours",
    "Rating",
    "Platform",
    "Genre",
    "Franchise",
    "Purchase Source",
    "Date Purchased",
    "Start Date",
    "End Date",
    "Cost Per Hour",
    "Value Rating",
    "ROI",
    "Blend Score",
    "Play Sessions",
    "Notes",
    "Review",
)

PLAY_LOG_COLUMNS = ("Date", "Game", "Hours", "Notes", "Genre", "Platform")


def _write_rows(header: Iterable[str], rows: Iterable[Iterable[Any]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return output.getvalue()


def games_to_csv(
    games: Iterable[GameRecord], thresholds: AnalyticsThresholds | None = None
) -> str:
    """One row per game with its derived metrics, in library order."""

    limits = resolve_thresholds(thresholds)
    rows: List[List[str]] = []
    for game in games:
        metrics = calculate_metrics(game, limits)
        rows.append(
            [
                game.name,
                game.status,
                f"{game_price(game):.2f}",
                f"{metrics.total_hours:.1f}",
                f"{safe_number(game.rating):g}",
                game.platform or "",
                game.genre or "",
                game.franchise or "",
                game.purchase_source or "",
                game.date_purchased or "",
                game.start_date or "",
                game.end_date or "",
                f"{metrics.cost_per_hour:.2f}",
                metrics.value_rating,
                f"{metrics.roi:.1f}",
                f"{metrics.blend_score:.1f}",
                str(len(game.play_logs)),
                game.notes or "",
                game.review or "",
            ]
        )
    return _write_rows(GAME_COLUMNS, rows)


def play_logs_to_csv(games: Iterable[GameRecord]) -> str:
    """Every play session across the library, newest first."""

    sessions = [(log, game) for game in games for log in game.play_logs]
    sessions.sort(key=lambda pair: (pair[0].date, pair[1].name), reverse=True)
    rows = [
        [
            log.date,
            game.name,
            f"{safe_number(log.hours):.1f}",
            log.notes or "",
            game.genre or "",
            game.platform or "",
        ]
        for log, game in sessions
    ]
    return _write_rows(PLAY_LOG_COLUMNS, rows)


def games_export(
    games: Iterable[GameRecord],
    thresholds: AnalyticsThresholds | None = None,
    exported_at: datetime | None = None,
) -> dict:
    """Full JSON snapshot of the library, including each game's play logs.

    ``total_hours`` includes logged sessions while ``baseline_hours`` is the
    manually entered figure. Metrics are rounded the way the dashboard shows
    them.
    """

    limits = resolve_thresholds(thresholds)
    library = list(games)
    exported_at = exported_at or datetime.now(timezone.utc)

    exported = []
    for game in library:
        metrics = calculate_metrics(game, limits)
        exported.append(
            {
                "id": game.id,
                "name": game.name,
                "status": game.status,
                "price": game_price(game),
                "total_hours": total_hours(game),
                "baseline_hours": safe_number(game.hours),
                "rating": safe_number(game.rating),
                "platform": game.platform,
                "genre": game.genre,
                "franchise": game.franchise,
                "purchase_source": game.purchase_source,
                "acquired_free": game.acquired_free,
                "original_price": game.original_price,
                "subscription_source": game.subscription_source,
                "date_purchased": game.date_purchased,
                "start_date": game.start_date,
                "end_date": game.end_date,
                "notes": game.notes,
                "review": game.review,
                "play_logs": [
                    {"id": log.id, "date": log.date, "hours": log.hours, "notes": log.notes}
                    for log in game.play_logs
                ],
                "metrics": {
                    "cost_per_hour": round(metrics.cost_per_hour, 2),
                    "value_rating": metrics.value_rating,
                    "roi": round(metrics.roi, 1),
                    "blend_score": round(metrics.blend_score, 1),
                    "days_to_complete": metrics.days_to_complete,
                },
            }
        )

    return {
        "exported_at": exported_at.isoformat(),
        "game_count": len(library),
        "games": exported,
    }
