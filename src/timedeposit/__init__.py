"""Time-deposit lifecycle and settlement engine."""

from __future__ import annotations

import os
from datetime import date
from importlib import import_module
from typing import Callable, Iterable, Optional

from flask import Flask, jsonify
from sqlalchemy.engine import Engine

from . import cli as _cli
from .config import BaseConfig, DevConfig, TestConfig
from .context import AppContext, create_app_context
from .errors import DepositError
from .extensions import get_context, init_context
from .logging_config import get_logger, setup_logging

__all__ = [
    "AppContext",
    "BaseConfig",
    "DevConfig",
    "TestConfig",
    "create_app",
    "create_app_context",
    "get_context",
]

_CONFIG_MAP = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}

logger = get_logger("app")


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return _CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    yield "timedeposit.blueprints.investments"
    yield "timedeposit.blueprints.quotes"
    yield "timedeposit.blueprints.settlement"


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        app.register_blueprint(getattr(module, "bp"))


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DepositError)
    def _deposit_error(exc: DepositError):
        if exc.status_code >= 500:
            logger.error("Request failed", exc_info=exc, extra={"error_kind": exc.kind})
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(404)
    def _not_found(exc):
        return jsonify({"error": "not_found", "message": "Resource not found", "details": {}}), 404

    @app.errorhandler(405)
    def _method_not_allowed(exc):
        return (
            jsonify({"error": "validation", "message": "Method not allowed", "details": {}}),
            405,
        )


def create_app(
    config_name: str | None = None,
    *,
    engine: Optional[Engine] = None,
    today: Callable[[], date] = date.today,
) -> Flask:
    """Create and configure the Flask application instance.

    ``today`` drives every business date (opening, settlement, upcoming);
    tests pass a fixed clock.
    """

    app = Flask(__name__, instance_relative_config=True)
    config_obj = _resolve_config(config_name or os.getenv("TIMEDEPOSIT_ENV"))()
    app.config.from_object(config_obj)
    app.config["TIMEDEPOSIT_CONFIG"] = config_obj

    setup_logging(config_obj)
    ctx = create_app_context(config_obj, engine=engine, today=today)
    init_context(app, ctx)

    _register_blueprints(app)
    _register_error_handlers(app)
    _cli.init_app(app)

    if config_obj.SCHEDULER_ENABLED:
        from .scheduler import create_scheduler

        app.extensions["timedeposit_scheduler"] = create_scheduler(ctx, auto_start=True)

    return app
