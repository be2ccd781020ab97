from __future__ import annotations

from datetime import date, datetime

from . import db
from .records import GameRecord, PlayLogEntry
from .statuses import DEFAULT_STATUS


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, default="local")
    name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(32), nullable=False, default=DEFAULT_STATUS)
    price = db.Column(db.Float, nullable=False, default=0.0)
    hours = db.Column(db.Float, nullable=False, default=0.0)
    rating = db.Column(db.Float, nullable=False, default=0.0)
    platform = db.Column(db.String(64), nullable=True)
    genre = db.Column(db.String(64), nullable=True)
    franchise = db.Column(db.String(128), nullable=True)
    purchase_source = db.Column(db.String(32), nullable=True)
    subscription_source = db.Column(db.String(32), nullable=True)
    acquired_free = db.Column(db.Boolean, nullable=False, default=False)
    original_price = db.Column(db.Float, nullable=True)
    date_purchased = db.Column(db.Date, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    review = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    thumbnail = db.Column(db.String(512), nullable=True)
    queue_position = db.Column(db.Integer, nullable=True)
    is_special = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    play_logs = db.relationship(
        "PlayLog",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="PlayLog.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "status": self.status,
            "price": self.price,
            "hours": self.hours,
            "rating": self.rating,
            "platform": self.platform,
            "genre": self.genre,
            "franchise": self.franchise,
            "purchase_source": self.purchase_source,
            "subscription_source": self.subscription_source,
            "acquired_free": self.acquired_free,
            "original_price": self.original_price,
            "date_purchased": _iso(self.date_purchased),
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "review": self.review,
            "notes": self.notes,
            "thumbnail": self.thumbnail,
            "queue_position": self.queue_position,
            "is_special": self.is_special,
            "play_logs": [log.to_dict() for log in self.play_logs],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_record(self) -> GameRecord:
        """Snapshot this row as an immutable record for the analytics core."""

        return GameRecord(
            id=str(self.id),
            user_id=self.user_id or "local",
            name=self.name,
            status=self.status or DEFAULT_STATUS,
            price=self.price or 0.0,
            hours=self.hours or 0.0,
            rating=self.rating or 0.0,
            platform=self.platform,
            genre=self.genre,
            franchise=self.franchise,
            purchase_source=self.purchase_source,
            subscription_source=self.subscription_source,
            acquired_free=bool(self.acquired_free),
            original_price=self.original_price,
            date_purchased=_iso(self.date_purchased),
            start_date=_iso(self.start_date),
            end_date=_iso(self.end_date),
            review=self.review,
            notes=self.notes,
            play_logs=tuple(log.to_record() for log in self.play_logs),
            thumbnail=self.thumbnail,
            queue_position=self.queue_position,
            is_special=bool(self.is_special),
            created_at=_iso(self.created_at),
            updated_at=_iso(self.updated_at),
        )


class PlayLog(db.Model):
    __tablename__ = "play_logs"

    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey("games.id"), nullable=False)
    date = db.Column(db.Date, nullable=False)
    hours = db.Column(db.Float, nullable=False, default=0.0)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    game = db.relationship("Game", back_populates="play_logs")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "game_id": self.game_id,
            "date": self.date.isoformat(),
            "hours": self.hours,
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }

    def to_record(self) -> PlayLogEntry:
        return PlayLogEntry(
            id=str(self.id),
            date=self.date.isoformat(),
            hours=self.hours or 0.0,
            notes=self.notes,
        )
