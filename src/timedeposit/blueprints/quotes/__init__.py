"""Quoting blueprint: simulations, recommendations and the rate table."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("quotes", __name__)

from . import routes  # noqa: E402,F401

__all__ = ["bp"]
