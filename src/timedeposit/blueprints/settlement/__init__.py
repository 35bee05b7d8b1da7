"""Settlement blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("settlement", __name__, url_prefix="/settlement")

from . import routes  # noqa: E402,F401

__all__ = ["bp"]
