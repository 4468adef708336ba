from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta

import click
from flask import Flask

from .extensions import db, migrate, csrf
from .logger import setup_logger
from .services.stores import DrawStore, build_store
from .views.api import api_bp
from .views.public import public_bp


def create_app(config: Mapping | None = None, store: DrawStore | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///secretfriend.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["ASSIGNMENT_ENC_KEY"] = os.environ.get("ASSIGNMENT_ENC_KEY", "")

    # Which DrawStore backs the app: "sql" or "json"
    app.config["DRAW_STORE"] = os.environ.get("DRAW_STORE", "sql")
    app.config["DRAW_STORE_PATH"] = os.environ.get("DRAW_STORE_PATH", "data/draws.json")
    app.config["DRAW_TTL_DAYS"] = int(os.environ.get("DRAW_TTL_DAYS", "0"))

    app.config["WHATSAPP_COUNTRY_CODE"] = os.environ.get("WHATSAPP_COUNTRY_CODE", "55")
    app.config["PUBLIC_BASE_URL"] = os.environ.get("PUBLIC_BASE_URL", "")
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")
    app.config["LOG_PROPAGATE"] = os.environ.get("LOG_PROPAGATE", "").lower() in {"1", "true", "yes"}

    if config:
        app.config.update(config)

    setup_logger("secretfriend", app.config["LOG_LEVEL"], propagate=bool(app.config["LOG_PROPAGATE"]))

    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    csrf.exempt(api_bp)

    if store is None:
        ttl_days = int(app.config["DRAW_TTL_DAYS"] or 0)
        store = build_store(
            app.config["DRAW_STORE"],
            path=app.config["DRAW_STORE_PATH"],
            ttl=timedelta(days=ttl_days) if ttl_days > 0 else None,
        )
    app.extensions["draw_store"] = store

    # Blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(api_bp)

    @app.cli.command("init-db")
    def init_db():
        """Create the database tables."""
        db.create_all()
        click.echo("Database tables created.")

    return app
