from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, List

from flask import Blueprint, Response, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from . import db
from .dates import parse_local_date, parse_optional_date, window_for_range
from .enrichment import ThumbnailLookupError, lookup_thumbnail
from .export import games_export, games_to_csv, play_logs_to_csv
from .highlights import (
    backlog_in_days,
    century_club_games,
    completionist_rate,
    discount_effectiveness,
    fastest_completion,
    gaming_achievements,
    lifetime_stats,
    longest_session,
    most_invested_franchise,
    patient_gamer_stats,
    quick_fix_games,
    slowest_completion,
    value_champion,
)
from .insights import (
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
from .metrics import calculate_metrics, value_over_time
from .models import Game, PlayLog
from .periods import (
    activity_feed,
    available_weeks_count,
    best_gaming_month,
    compare_periods,
    cumulative_hours_counter,
    gaming_velocity,
    last_completed_month,
    last_completed_week,
    month_in_review,
    monthly_trends,
    period_stats,
    streak_summary,
    trailing_period_stats,
    week_in_review,
    year_in_review,
)
from .records import GameRecord, PlayLogEntry
from .serialization import to_payload
from .statuses import (
    PURCHASE_SOURCES,
    STATUS_BY_VALUE,
    SUBSCRIPTION_SOURCES,
    normalize_status_value,
)
from .summary import calculate_summary, cumulative_spending, hours_by_month, spending_by_month
from .thresholds import AnalyticsThresholds

logger = logging.getLogger(__name__)

bp = Blueprint("core", __name__)

_GAME_FIELDS = (
    "user_id",
    "name",
    "status",
    "price",
    "hours",
    "rating",
    "platform",
    "genre",
    "franchise",
    "purchase_source",
    "subscription_source",
    "acquired_free",
    "original_price",
    "review",
    "notes",
    "thumbnail",
    "queue_position",
    "is_special",
)
_GAME_DATE_FIELDS = ("date_purchased", "start_date", "end_date")
_READ_ONLY_FIELDS = {"id", "created_at", "updated_at"}
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case_keys(payload: dict) -> dict:
    normalized = {}
    for key, value in payload.items():
        snake = _CAMEL_BOUNDARY.sub("_", str(key)).lower()
        normalized["name" if snake == "title" else snake] = value
    return normalized


def _json_payload() -> dict:
    payload = request.get_json(force=True)
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object.")
    return payload


def _apply_record(game: Game, record: GameRecord) -> None:
    for field_name in _GAME_FIELDS:
        setattr(game, field_name, getattr(record, field_name))
    for field_name in _GAME_DATE_FIELDS:
        setattr(game, field_name, parse_optional_date(getattr(record, field_name)))


def _replace_play_logs(game: Game, entries: tuple[PlayLogEntry, ...]) -> None:
    game.play_logs = [
        PlayLog(date=parse_local_date(entry.date), hours=entry.hours, notes=entry.notes)
        for entry in entries
    ]


def _commit(action: str):
    try:
        db.session.commit()
    except SQLAlchemyError as error:
        db.session.rollback()
        logger.exception("Failed to %s", action, exc_info=error)
        return jsonify({"error": f"Failed to {action}."}), 500
    return None


def _library() -> List[GameRecord]:
    return [game.to_record() for game in Game.query.order_by(Game.id).all()]


def _thresholds() -> AnalyticsThresholds:
    return AnalyticsThresholds.from_mapping(current_app.config.get("ANALYTICS_THRESHOLDS"))


def _parse_date_field(
    value: str | None,
    label: str,
    required: bool = False,
    required_message: str | None = None,
) -> date | None:
    value = (value or "").strip()
    if not value:
        if required:
            message = required_message or f"{label} is required."
            raise ValueError(message)
        return None

    try:
        return parse_local_date(value)
    except ValueError as exc:
        raise ValueError(f"{label} must be a valid date in YYYY-MM-DD format.") from exc


def _today() -> date:
    return _parse_date_field(request.args.get("today"), "Today") or date.today()


def _int_arg(name: str, default: int | None = None, minimum: int | None = None) -> int | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer.") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be at least {minimum}.")
    return value


def _flag_arg(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes"}


def _bad_request(exc: ValueError | OverflowError):
    logger.warning("Rejected request to %s: %s", request.path, exc)
    return jsonify({"error": str(exc)}), 400


# Games


@bp.route("/api/games", methods=["GET", "POST"])
def games_collection():
    if request.method == "GET":
        query = Game.query
        status = (request.args.get("status") or "").strip()
        if status:
            query = query.filter_by(status=normalize_status_value(status))
        games = query.order_by(Game.id).all()
        return jsonify([game.to_dict() for game in games])

    try:
        payload = _snake_case_keys(_json_payload())
        record = GameRecord.from_mapping(payload)
    except ValueError as exc:
        return _bad_request(exc)

    game = Game()
    _apply_record(game, record)
    _replace_play_logs(game, record.play_logs)
    db.session.add(game)
    failure = _commit("save game")
    if failure:
        return failure
    logger.info("Created game %s (%s)", game.id, game.name)
    return jsonify(game.to_dict()), 201


@bp.route("/api/games/<int:game_id>", methods=["GET", "PUT", "DELETE"])
def games_resource(game_id: int):
    game = Game.query.get_or_404(game_id)

    if request.method == "GET":
        return jsonify(game.to_dict())

    if request.method == "DELETE":
        db.session.delete(game)
        failure = _commit("delete game")
        if failure:
            return failure
        return jsonify({"message": "Game deleted."})

    try:
        changes = _snake_case_keys(_json_payload())
        merged = game.to_dict()
        merged.update(
            {key: value for key, value in changes.items() if key not in _READ_ONLY_FIELDS}
        )
        record = GameRecord.from_mapping(merged)
    except ValueError as exc:
        return _bad_request(exc)

    _apply_record(game, record)
    if "play_logs" in changes:
        _replace_play_logs(game, record.play_logs)
    failure = _commit("update game")
    if failure:
        return failure
    return jsonify(game.to_dict())


@bp.route("/api/games/<int:game_id>/logs", methods=["POST"])
def add_play_log(game_id: int):
    game = Game.query.get_or_404(game_id)
    try:
        entry = PlayLogEntry.from_mapping(_json_payload())
        if entry.hours <= 0:
            raise ValueError("Hours must be greater than zero.")
    except ValueError as exc:
        return _bad_request(exc)

    log = PlayLog(
        game=game, date=parse_local_date(entry.date), hours=entry.hours, notes=entry.notes
    )
    db.session.add(log)
    failure = _commit("save play log")
    if failure:
        return failure
    return jsonify({"log": log.to_dict(), "game": game.to_dict()}), 201


@bp.route("/api/games/<int:game_id>/logs/<int:log_id>", methods=["DELETE"])
def delete_play_log(game_id: int, log_id: int):
    log = PlayLog.query.filter_by(id=log_id, game_id=game_id).first_or_404()
    db.session.delete(log)
    failure = _commit("delete play log")
    if failure:
        return failure
    return jsonify({"message": "Play log deleted."})


@bp.route("/api/games/<int:game_id>/thumbnail", methods=["POST"])
def refresh_thumbnail(game_id: int):
    game = Game.query.get_or_404(game_id)
    try:
        thumbnail = lookup_thumbnail(
            game.name,
            current_app.config.get("RAWG_API_KEY"),
            current_app.extensions.get("thumbnail_rate_limiter"),
        )
    except ThumbnailLookupError as exc:
        return jsonify({"error": str(exc)}), exc.status_code

    if not thumbnail:
        return jsonify({"error": f"No thumbnail found for {game.name}."}), 404

    game.thumbnail = thumbnail
    failure = _commit("save thumbnail")
    if failure:
        return failure
    return jsonify(game.to_dict())


@bp.route("/api/settings/purge-data", methods=["POST"])
def purge_all_data():
    payload = request.get_json(silent=True) or {}
    confirmation_value = str(payload.get("confirm", "")).strip()

    if confirmation_value.lower() != "delete":
        return (
            jsonify({"error": "Type DELETE in the confirmation field to purge data."}),
            400,
        )

    try:
        logs_deleted = PlayLog.query.delete(synchronize_session=False)
        games_deleted = Game.query.delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as error:
        db.session.rollback()
        logger.exception("Failed to purge database", exc_info=error)
        return jsonify({"error": "Failed to purge database."}), 500

    return jsonify(
        {
            "deleted": {"play_logs": logs_deleted or 0, "games": games_deleted or 0},
            "total_deleted": (logs_deleted or 0) + (games_deleted or 0),
        }
    )


@bp.route("/api/settings/options")
def settings_options():
    return jsonify(
        {
            "statuses": to_payload(list(STATUS_BY_VALUE.values())),
            "purchase_sources": list(PURCHASE_SOURCES),
            "subscription_sources": list(SUBSCRIPTION_SOURCES),
        }
    )


def _attachment(body: str, filename: str, mimetype: str) -> Response:
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@bp.route("/api/export/games.csv")
def export_games_csv():
    return _attachment(games_to_csv(_library(), _thresholds()), "games.csv", "text/csv")


@bp.route("/api/export/games.json")
def export_games_json():
    response = jsonify(games_export(_library(), _thresholds()))
    response.headers["Content-Disposition"] = "attachment; filename=games.json"
    return response


@bp.route("/api/export/play-logs.csv")
def export_play_logs_csv():
    return _attachment(play_logs_to_csv(_library()), "play-logs.csv", "text/csv")


# Analytics


@bp.route("/api/analytics/summary")
def analytics_summary():
    try:
        today = _today()
    except ValueError as exc:
        return _bad_request(exc)

    games = _library()
    return jsonify(
        to_payload(
            {
                "summary": calculate_summary(games, _thresholds()),
                "hours_by_month": hours_by_month(games),
                "spending_by_month": spending_by_month(games),
                "cumulative_spending": cumulative_spending(games),
                "monthly_trends": monthly_trends(games, today),
                "best_gaming_month": best_gaming_month(games),
                "velocity": {
                    "last_7_days": gaming_velocity(games, 7, today),
                    "last_30_days": gaming_velocity(games, 30, today),
                },
            }
        )
    )


@bp.route("/api/analytics/games/<int:game_id>/metrics")
def analytics_game_metrics(game_id: int):
    game = Game.query.get_or_404(game_id)
    try:
        today = _today()
    except ValueError as exc:
        return _bad_request(exc)

    record = game.to_record()
    thresholds = _thresholds()
    return jsonify(
        {
            "game": game.to_dict(),
            "metrics": to_payload(calculate_metrics(record, thresholds)),
            "completion_probability": to_payload(
                completion_probability(record, _library(), today, thresholds)
            ),
            "value_over_time": to_payload(value_over_time(record)),
        }
    )


@bp.route("/api/analytics/period")
def analytics_period():
    try:
        today = _today()
        start = request.args.get("start")
        end = request.args.get("end")
        games = _library()
        if start or end:
            window = window_for_range(
                _parse_date_field(start, "Start date", required=True),
                _parse_date_field(end, "End date", required=True),
            )
            current = period_stats(games, window)
        else:
            current = trailing_period_stats(games, _int_arg("days", 7, minimum=1), today)
        previous = period_stats(games, current.window.previous())
    except (ValueError, OverflowError) as exc:
        return _bad_request(exc)

    return jsonify(
        to_payload(
            {
                "current": current,
                "previous": previous,
                "comparison": compare_periods(current, previous, _thresholds()),
            }
        )
    )


@bp.route("/api/analytics/week")
def analytics_week():
    try:
        today = _today()
        games = _library()
        if _flag_arg("last_completed"):
            review = last_completed_week(games, today, _thresholds())
        else:
            offset = _int_arg("offset", 0, minimum=0)
            review = week_in_review(games, today, offset, _thresholds())
    except (ValueError, OverflowError) as exc:
        return _bad_request(exc)

    return jsonify(
        to_payload({"review": review, "available_weeks": available_weeks_count(games, today)})
    )


@bp.route("/api/analytics/month")
def analytics_month():
    try:
        today = _today()
        games = _library()
        if _flag_arg("last_completed"):
            review = last_completed_month(games, today, _thresholds())
        else:
            year = _int_arg("year", today.year, minimum=1)
            month = _int_arg("month", today.month, minimum=1)
            review = month_in_review(games, year, month, _thresholds())
    except (ValueError, OverflowError) as exc:
        return _bad_request(exc)

    return jsonify(to_payload({"review": review}))


@bp.route("/api/analytics/year/<int:year>")
def analytics_year(year: int):
    if year < 1:
        return jsonify({"error": "Year must be at least 1."}), 400
    try:
        review = year_in_review(_library(), year)
    except (ValueError, OverflowError) as exc:
        return _bad_request(exc)
    return jsonify(to_payload(review))


@bp.route("/api/analytics/streaks")
def analytics_streaks():
    try:
        today = _today()
    except ValueError as exc:
        return _bad_request(exc)
    return jsonify(to_payload(streak_summary(_library(), today)))


@bp.route("/api/analytics/hours-counter")
def analytics_hours_counter():
    try:
        today = _today()
        counter = cumulative_hours_counter(
            _library(),
            resolution=(request.args.get("resolution") or "daily").strip().lower(),
            year=_int_arg("year", minimum=1),
            month=_int_arg("month", minimum=1),
            today=today,
        )
    except (ValueError, OverflowError) as exc:
        return _bad_request(exc)
    return jsonify(to_payload(counter))


@bp.route("/api/analytics/activity")
def analytics_activity():
    try:
        limit = _int_arg("limit", 30, minimum=0)
    except ValueError as exc:
        return _bad_request(exc)
    return jsonify(to_payload(activity_feed(_library(), limit, _thresholds())))


@bp.route("/api/analytics/insights")
def analytics_insights():
    try:
        today = _today()
    except ValueError as exc:
        return _bad_request(exc)

    games = _library()
    thresholds = _thresholds()
    payload: dict[str, Any] = {
        "personality": gaming_personality(games),
        "session_analysis": session_analysis(games, thresholds),
        "rotation": rotation_stats(games, today, thresholds),
        "genre_rut": genre_rut_analysis(games, today, thresholds),
        "money": money_stats(games, thresholds),
        "backlog_clearance": predicted_backlog_clearance(games, today, thresholds),
        "hidden_gems": hidden_gems(games, thresholds=thresholds),
        "regret_purchases": regret_purchases(games, today, thresholds=thresholds),
        "shelf_warmers": shelf_warmers(games, today, thresholds=thresholds),
        "platform_preference": platform_preference(games),
        "genre_diversity": genre_diversity(games),
        "commitment_score": commitment_score(games, thresholds),
        "impulse_buyer_days": impulse_buyer_stat(games),
        "completion_velocity_days": completion_velocity(games),
    }
    return jsonify(to_payload(payload))


@bp.route("/api/analytics/highlights")
def analytics_highlights():
    try:
        today = _today()
    except ValueError as exc:
        return _bad_request(exc)

    games = _library()
    thresholds = _thresholds()
    payload: dict[str, Any] = {
        "century_club": century_club_games(games, thresholds),
        "quick_fixes": quick_fix_games(games, thresholds),
        "longest_session": longest_session(games),
        "fastest_completion": fastest_completion(games),
        "slowest_completion": slowest_completion(games),
        "patient_gamer": patient_gamer_stats(games, thresholds),
        "completionist_rate": completionist_rate(games),
        "most_invested_franchise": most_invested_franchise(games),
        "value_champion": value_champion(games, thresholds),
        "discount_effectiveness": discount_effectiveness(games),
        "backlog_in_days": backlog_in_days(games, thresholds),
        "lifetime": lifetime_stats(games, today),
        "achievements": gaming_achievements(games, thresholds),
    }
    return jsonify(to_payload(payload))
