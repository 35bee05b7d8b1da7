"""Settlement routes used by external schedulers and operators."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import NotFoundError, ValidationError
from ...extensions import get_context
from ..forms import parse_iso_date, pick
from . import bp


@bp.post("/run")
def run_settlement():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        as_of = parse_iso_date(pick(payload, "asOf", "as_of"))
    except ValueError as exc:
        raise ValidationError("asOf must be YYYY-MM-DD", field="as_of") from exc

    ctx = get_context()
    if payload.get("async"):
        job = ctx.jobs.submit(as_of)
        return jsonify(job.to_dict()), 202

    summary = ctx.settlement.run(as_of)
    return jsonify(summary.to_dict())


@bp.get("/jobs/<job_id>")
def job_status(job_id: str):
    job = get_context().jobs.get(job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found", job_id=job_id)
    return jsonify(job.to_dict())


@bp.post("/<investment_id>/settle-now")
def settle_now(investment_id: str):
    item = get_context().settlement.settle_now(investment_id)
    return jsonify(item.to_dict())


@bp.get("/upcoming")
def upcoming():
    raw_days = request.args.get("days", "7")
    try:
        days = int(raw_days)
    except ValueError as exc:
        raise ValidationError("days must be a whole number", field="days") from exc
    rows = get_context().settlement.upcoming(days)
    return jsonify({"days": days, "investments": rows})
