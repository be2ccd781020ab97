"""Plain in-memory game records consumed by the analytics core.

The core only ever sees these values. Storage adapters convert their rows
into ``GameRecord`` instances before handing them over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from math import isfinite
from typing import Any, Mapping

from .dates import parse_local_date
from .statuses import WISHLIST, is_owned, validate_status

logger = logging.getLogger(__name__)


def coerce_amount(value: Any, *, label: str = "value") -> float:
    """Return ``value`` as a finite, non-negative float.

    Missing, non-numeric, non-finite and negative inputs collapse to ``0.0``
    so a single bad record cannot poison a whole-library aggregate.
    """

    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s %r", label, value)
        return 0.0
    if not isfinite(amount):
        logger.warning("Ignoring non-finite %s %r", label, value)
        return 0.0
    if amount < 0:
        logger.warning("Clamping negative %s %r to 0", label, value)
        return 0.0
    return amount


def coerce_rating(value: Any) -> float:
    rating = coerce_amount(value, label="rating")
    return min(rating, 10.0)


def _optional_amount(value: Any, *, label: str) -> float | None:
    if value is None or value == "":
        return None
    return coerce_amount(value, label=label)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_date_text(value: Any) -> str | None:
    text = _optional_text(value)
    if text is None:
        return None
    return parse_local_date(text).isoformat()


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return default


@dataclass(frozen=True)
class PlayLogEntry:
    id: str
    date: str
    hours: float
    notes: str | None = None

    @property
    def day(self):
        return parse_local_date(self.date)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PlayLogEntry":
        raw_date = _pick(payload, "date")
        if raw_date in (None, ""):
            raise ValueError("Play log date is required.")
        return cls(
            id=str(_pick(payload, "id", default="")),
            date=parse_local_date(raw_date).isoformat(),
            hours=coerce_amount(_pick(payload, "hours"), label="session hours"),
            notes=_optional_text(_pick(payload, "notes")),
        )


@dataclass(frozen=True)
class GameRecord:
    id: str
    name: str
    status: str = "Not Started"
    price: float = 0.0
    hours: float = 0.0
    rating: float = 0.0
    user_id: str = "local"
    platform: str | None = None
    genre: str | None = None
    franchise: str | None = None
    purchase_source: str | None = None
    subscription_source: str | None = None
    acquired_free: bool = False
    original_price: float | None = None
    date_purchased: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    review: str | None = None
    notes: str | None = None
    play_logs: tuple[PlayLogEntry, ...] = field(default_factory=tuple)
    thumbnail: str | None = None
    queue_position: int | None = None
    is_special: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_owned(self) -> bool:
        return is_owned(self.status)

    @property
    def is_wishlist(self) -> bool:
        return self.status == WISHLIST

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "GameRecord":
        """Build a record from a plain dict using camelCase or snake_case keys."""

        name = _optional_text(_pick(payload, "name", "title"))
        if not name:
            raise ValueError("Game name is required.")

        logs = tuple(
            PlayLogEntry.from_mapping(entry)
            for entry in (_pick(payload, "play_logs", "playLogs", default=None) or [])
        )

        queue_position = _pick(payload, "queue_position", "queuePosition")
        try:
            queue_position = int(queue_position) if queue_position not in (None, "") else None
        except (TypeError, ValueError):
            queue_position = None

        return cls(
            id=str(_pick(payload, "id", default="")),
            user_id=str(_pick(payload, "user_id", "userId", default="local")),
            name=name,
            status=validate_status(_pick(payload, "status")),
            price=coerce_amount(_pick(payload, "price"), label="price"),
            hours=coerce_amount(_pick(payload, "hours"), label="hours"),
            rating=coerce_rating(_pick(payload, "rating")),
            platform=_optional_text(_pick(payload, "platform")),
            genre=_optional_text(_pick(payload, "genre")),
            franchise=_optional_text(_pick(payload, "franchise")),
            purchase_source=_optional_text(_pick(payload, "purchase_source", "purchaseSource")),
            subscription_source=_optional_text(
                _pick(payload, "subscription_source", "subscriptionSource")
            ),
            acquired_free=bool(_pick(payload, "acquired_free", "acquiredFree", default=False)),
            original_price=_optional_amount(
                _pick(payload, "original_price", "originalPrice"), label="original price"
            ),
            date_purchased=_optional_date_text(_pick(payload, "date_purchased", "datePurchased")),
            start_date=_optional_date_text(_pick(payload, "start_date", "startDate")),
            end_date=_optional_date_text(_pick(payload, "end_date", "endDate")),
            review=_optional_text(_pick(payload, "review")),
            notes=_optional_text(_pick(payload, "notes")),
            play_logs=logs,
            thumbnail=_optional_text(_pick(payload, "thumbnail")),
            queue_position=queue_position,
            is_special=bool(_pick(payload, "is_special", "isSpecial", default=False)),
            created_at=_optional_text(_pick(payload, "created_at", "createdAt")),
            updated_at=_optional_text(_pick(payload, "updated_at", "updatedAt")),
        )
