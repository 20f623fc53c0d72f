from flask import Blueprint, jsonify, g, request

from scheduling import get_board, pending_requests, PackageWindowResolver
from security.rbac import require_roles
from utils.auth_context import actor_required
from utils.parsing import parse_date, parse_time
from utils.roles import MEMBER, TRAINER

calendar_bp = Blueprint("calendar", __name__, url_prefix="/trainers")


def _hide_other_members(payload, actor):
    # members see that a slot is taken, not by whom
    if actor.role != MEMBER:
        return payload
    shown = payload.get("displayed_session")
    if shown and shown.get("member_id") != actor.id:
        payload["displayed_session"] = {"status": shown["status"], "time": shown["time"]}
        payload["quota"] = None
    payload["cancelled_history"] = []
    return payload


# ---------- TRAINER/MEMBER: day board ----------
@calendar_bp.get("/<int:trainer_id>/days/<day>")
@actor_required
def load_day(trainer_id: int, day: str):
    on_date = parse_date(day)
    board = get_board(trainer_id, on_date)

    slots = []
    for view in board.load_day().values():
        payload = view.to_dict(quota=board.quota_context(view.displayed_session))
        payload["actions"] = sorted(board.available_actions(view.time, g.actor.role, g.actor.id))
        slots.append(_hide_other_members(payload, g.actor))

    return jsonify(trainer_id=trainer_id, date=on_date.isoformat(), slots=slots), 200


# ---------- TRAINER: every session contesting one slot ----------
@calendar_bp.get("/<int:trainer_id>/days/<day>/slots/<slot>")
@require_roles(TRAINER)
def slot_detail(trainer_id: int, day: str, slot: str):
    on_date = parse_date(day)
    at_time = parse_time(slot)
    board = get_board(trainer_id, on_date)

    include_cancelled = request.args.get("include_cancelled", "").lower() in ("1", "true", "yes")
    rows = board.list_slot_sessions(at_time, include_cancelled=include_cancelled)
    return jsonify(
        time=at_time.strftime("%H:%M"),
        sessions=[dict(s.to_dict(), quota=board.quota_context(s)) for s in rows],
        actions=sorted(board.available_actions(at_time, g.actor.role, g.actor.id)),
    ), 200


# ---------- TRAINER: members that can be booked that day ----------
@calendar_bp.get("/<int:trainer_id>/days/<day>/members")
@require_roles(TRAINER)
def bookable_members(trainer_id: int, day: str):
    on_date = parse_date(day)
    members = PackageWindowResolver().bookable_members(trainer_id, on_date)
    return jsonify([{"id": m.id, "name": m.name} for m in members]), 200


# ---------- TRAINER: open requests across every day ----------
@calendar_bp.get("/<int:trainer_id>/requests")
@require_roles(TRAINER)
def open_requests(trainer_id: int):
    if g.actor.role == TRAINER and g.actor.id != trainer_id:
        return jsonify(error="Forbidden"), 403

    rows = pending_requests(trainer_id)
    return jsonify([dict(s.to_dict(), quota=usage.to_dict()) for s, usage in rows]), 200
