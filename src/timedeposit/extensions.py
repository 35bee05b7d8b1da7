"""Access to the per-app context from request handlers and CLI commands."""

from __future__ import annotations

from flask import Flask, current_app

from .context import AppContext

EXTENSION_KEY = "timedeposit"


def init_context(app: Flask, ctx: AppContext) -> None:
    app.extensions[EXTENSION_KEY] = ctx


def get_context() -> AppContext:
    """Return the AppContext of the current Flask app."""

    ctx = current_app.extensions.get(EXTENSION_KEY)
    if ctx is None:  # pragma: no cover - create_app always installs it
        raise RuntimeError("Time deposit context not initialized")
    return ctx
