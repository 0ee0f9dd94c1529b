import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .db import db
from .errors import MarketError


def _configure_logging(app: Flask):
    level = getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.logger.setLevel(level)
    if app.config.get("LOG_FILE") and not app.testing:
        handler = RotatingFileHandler(app.config["LOG_FILE"], maxBytes=1024 * 1024 * 5, backupCount=2)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(funcName)s(%(lineno)d) %(message)s"))
        handler.setLevel(level)
        logging.getLogger().addHandler(handler)


def _register_error_handlers(app: Flask):
    @app.errorhandler(MarketError)
    def market_error(e: MarketError):
        if e.status >= 500:
            app.logger.error("%s: %s", e.code, e.message)
        elif e.status in (401, 403):
            app.logger.warning("refused: %s", e.message)
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return jsonify({"error": (e.name or "error").lower().replace(" ", "_"), "message": e.description}), e.code


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    config_class.init_app(app)
    _configure_logging(app)

    db.init_app(app)

    from .routes import admin, auth, checkout, guitars, orders, payments, reviews, saved, users
    for mod in (auth, users, guitars, orders, saved, reviews, payments, checkout, admin):
        app.register_blueprint(mod.bp)
    _register_error_handlers(app)

    @app.before_request
    def _reset_identity():
        g.pop("user", None)
        g.pop("token", None)

    from . import commands
    commands.init_app(app)

    @app.get("/")
    def index():
        return {"service": "sixstring-market", "status": "ok"}

    @app.get("/health")
    def health():
        return jsonify(ok=True), 200

    with app.app_context():
        db.create_all()

    app.logger.info("SixString Market started (db=%s)", app.config["SQLALCHEMY_DATABASE_URI"])
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=True)
