import logging
from datetime import date

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy import inspect

import services
from config import Config
from models import db
from routes import health_bp, auth_bp, slots_bp
from services.errors import BookingError, StoreUnavailable
from utils.auth_context import load_current_user
from utils.seed import seed_from_config

# package loggers that follow LOG_LEVEL
APP_LOGGERS = ("services", "security", "utils", "audit")


def create_app(test_config=None, slot_store=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(slots_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Slot store shared by the booking engine and queries
    services.init_app(app, slot_store)

    if app.config.get("SEED_SLOTS_ON_STARTUP"):
        with app.app_context():
            _seed_on_startup(app)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(BookingError)
    def _booking_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(StoreUnavailable)
    def _store_unavailable(exc):
        app.logger.error("slot store unavailable: %s", exc.__cause__ or exc)
        return jsonify(exc.to_dict()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def _configure_logging(app):
    level = app.config.get("LOG_LEVEL", "INFO")
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app.logger.setLevel(level)
    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)


def _seed_on_startup(app):
    store = services.get_slot_store()
    # SQL backend: tables may not exist yet (before `flask db upgrade`)
    if app.config.get("SLOT_STORE_BACKEND") == "sql" and not inspect(db.engine).has_table("slots"):
        app.logger.info("slots table missing, skipping startup seed")
        return
    seed_from_config(store, app.config, date.today())

#-------------------------

def register_cli(app):
    @app.cli.command("seed-slots")
    @click.option("--days", type=int, default=None, help="Number of days to seed (default SEED_DAYS).")
    @click.option("--start", "start", default=None, help="First day, YYYY-MM-DD (default today).")
    def seed_slots_command(days, start):
        """Create the bookable slots if the store is empty."""
        try:
            start_day = date.fromisoformat(start) if start else date.today()
        except ValueError:
            raise click.BadParameter("use YYYY-MM-DD", param_hint="--start")

        config = dict(app.config)
        if days is not None:
            config["SEED_DAYS"] = days
        created = seed_from_config(services.get_slot_store(), config, start_day)
        if created:
            click.echo(f"Seeded {created} slots from {start_day.isoformat()}")
        else:
            click.echo("Slots already present, nothing seeded")

    @app.cli.command("init-db")
    def init_db_command():
        """Create tables directly (development; production uses `flask db upgrade`)."""
        db.create_all()
        click.echo("Database tables created")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=4000)
