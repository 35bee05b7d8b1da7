"""Investments blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("investments", __name__, url_prefix="/investments")

from . import routes  # noqa: E402,F401

__all__ = ["bp"]
