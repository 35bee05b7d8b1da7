"""Investment routes."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import ValidationError
from ...extensions import get_context
from ..forms import InvestmentForm, pick
from . import bp


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@bp.post("")
def create_investment():
    form = InvestmentForm.from_payload(_json_body())
    if not form.validate():
        raise ValidationError("Invalid investment request", fields=form.errors)

    investment = get_context().lifecycle.create(
        form.account_id,
        form.principal,
        form.term_days,
        form.interest_modality,
        form.auto_renew,
        form.product,
    )
    return jsonify(investment.to_dict()), 201


@bp.get("")
def list_investments():
    investments = get_context().lifecycle.list(
        account_id=request.args.get("account"),
        state=request.args.get("state"),
        product=request.args.get("product"),
    )
    return jsonify({"investments": [item.to_dict() for item in investments]})


@bp.get("/<investment_id>")
def get_investment(investment_id: str):
    return jsonify(get_context().lifecycle.get(investment_id).to_dict())


@bp.get("/<investment_id>/schedule")
def investment_schedule(investment_id: str):
    entries = get_context().lifecycle.schedule(investment_id)
    return jsonify({"investment_id": investment_id, "entries": [e.to_dict() for e in entries]})


@bp.get("/<investment_id>/movements")
def investment_movements(investment_id: str):
    movements = get_context().lifecycle.movements(investment_id)
    return jsonify(
        {"investment_id": investment_id, "movements": [m.to_dict() for m in movements]}
    )


@bp.patch("/<investment_id>")
def update_investment(investment_id: str):
    payload = _json_body()
    investment = get_context().lifecycle.update(
        investment_id, auto_renew=pick(payload, "autoRenew", "auto_renew")
    )
    return jsonify(investment.to_dict())


@bp.patch("/<investment_id>/state")
def change_state(investment_id: str):
    payload = _json_body()
    investment = get_context().lifecycle.update_state(investment_id, payload.get("state"))
    return jsonify(investment.to_dict())


@bp.post("/<investment_id>/cancel")
def cancel_investment(investment_id: str):
    result = get_context().lifecycle.cancel(investment_id)
    return jsonify(result.to_dict())
