"""Pre-contract quoting routes."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import ValidationError
from ...extensions import get_context
from ...services.calculator import to_decimal
from ...services.simulator import parse_term
from ..forms import pick
from . import bp


@bp.post("/simulate")
def simulate():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    quote = get_context().simulator.quote(
        pick(payload, "principal", "amount"), pick(payload, "termDays", "term_days")
    )
    return jsonify(quote)


@bp.get("/recommendations")
def recommendations():
    results = get_context().simulator.recommend(request.args.get("principal"))
    return jsonify({"recommendations": [item.to_dict() for item in results]})


@bp.get("/rates")
def rate_table():
    table = get_context().rate_table
    return jsonify(
        {
            "bands": table.bands(),
            "fallback_rate_percent": f"{table.fallback_rate * 100:.2f}",
        }
    )


@bp.get("/rates/lookup")
def rate_lookup():
    ctx = get_context()
    principal = to_decimal(request.args.get("principal"), "principal")
    term = parse_term(pick(request.args, "termDays", "term_days"))
    rule = ctx.rate_table.find_rule(principal, term)
    rate = ctx.rate_table.lookup(principal, term)
    return jsonify(
        {
            "principal": f"{principal:.2f}",
            "term_days": term,
            "rate_percent": f"{rate * 100:.2f}",
            "fallback": rule is None,
            "band": rule.to_dict() if rule is not None else None,
        }
    )
