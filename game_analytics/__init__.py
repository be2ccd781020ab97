import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def create_app(database_uri: str | None = None, config: dict | None = None):
    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = database_uri or "sqlite:///data.db"
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["ANALYTICS_THRESHOLDS"] = {}
    app.config["RAWG_API_KEY"] = os.environ.get("RAWG_API_KEY")
    app.config["THUMBNAIL_LOOKUP_INTERVAL"] = 0.35
    if config:
        app.config.update(config)

    db.init_app(app)

    from .enrichment import RateLimiter
    from .routes import bp as core_bp
    from .thresholds import AnalyticsThresholds

    # Unknown threshold keys raise here.
    AnalyticsThresholds.from_mapping(app.config["ANALYTICS_THRESHOLDS"])
    app.extensions["thumbnail_rate_limiter"] = RateLimiter(
        app.config["THUMBNAIL_LOOKUP_INTERVAL"]
    )

    app.register_blueprint(core_bp)

    with app.app_context():
        db.create_all()

    return app
