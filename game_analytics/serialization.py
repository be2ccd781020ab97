"""Turn analytics results into JSON-ready structures."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any

from .records import GameRecord


def game_reference(game: GameRecord) -> dict:
    return {
        "id": game.id,
        "name": game.name,
        "status": game.status,
        "thumbnail": game.thumbnail,
    }


def to_payload(value: Any) -> Any:
    """Recursively convert dataclasses, dates and containers for ``jsonify``.

    Games nested inside a result collapse to a short reference; clients
    fetch the full record from ``/api/games/<id>`` when they need it.
    """

    if isinstance(value, GameRecord):
        return game_reference(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {item.name: to_payload(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_payload(item) for item in value]
    return value
