from flask import Blueprint, request, jsonify, current_app, g

from scheduling import get_state_machine, QuotaLedger, SessionStore
from security.rbac import require_roles
from utils.auth_context import actor_required
from utils.parsing import parse_body, parse_date, parse_int, parse_str, parse_time
from utils.roles import MEMBER, TRAINER

sessions_bp = Blueprint("sessions", __name__, url_prefix="/sessions")


def _booking_fields(data):
    return dict(
        trainer_id=parse_int(data.get("trainer_id"), "trainer_id"),
        member_id=parse_int(data.get("member_id"), "member_id"),
        session_type=parse_str(data.get("session_type"), "session_type"),
        on_date=parse_date(data.get("date")),
        at_time=parse_time(data.get("time")),
    )


def _visible_session(session_id: int):
    # members only see their own sessions, trainers only their own board
    session = SessionStore().require(session_id)
    if g.actor.role == MEMBER and session.member_id != g.actor.id:
        return None
    if g.actor.role == TRAINER and session.trainer_id != g.actor.id:
        return None
    return session


def _scope_trainer(fields):
    # a trainer books onto their own board; returns an error response otherwise
    if g.actor.role != TRAINER:
        return None
    if fields["trainer_id"] not in (None, g.actor.id):
        return jsonify(error="Trainers can only book on their own board"), 403
    fields["trainer_id"] = g.actor.id
    return None


# ---------- MEMBER/TRAINER: request a slot ----------
@sessions_bp.post("")
@actor_required
def create_session():
    data = parse_body(request.get_json(silent=True))
    fields = _booking_fields(data)

    if g.actor.role == MEMBER:
        if fields["member_id"] not in (None, g.actor.id):
            return jsonify(error="Members can only request sessions for themselves"), 403
        fields["member_id"] = g.actor.id

    denied = _scope_trainer(fields)
    if denied:
        return denied

    session = get_state_machine().create(**fields)
    return jsonify(session.to_dict()), 201


# ---------- TRAINER: book and confirm in one step ----------
@sessions_bp.post("/direct")
@require_roles(TRAINER)
def reserve_direct():
    data = parse_body(request.get_json(silent=True))
    fields = _booking_fields(data)

    denied = _scope_trainer(fields)
    if denied:
        return denied

    session = get_state_machine().reserve_direct(**fields)
    return jsonify(session.to_dict()), 201


# ---------- TRAINER: confirm a request ----------
@sessions_bp.post("/<int:session_id>/confirm")
@require_roles(TRAINER)
def confirm_session(session_id: int):
    if _visible_session(session_id) is None:
        return jsonify(error="Session not found"), 404

    session = get_state_machine().confirm(session_id)
    return jsonify(session.to_dict()), 200


# ---------- ANY: cancel (members: own sessions only) ----------
@sessions_bp.post("/<int:session_id>/cancel")
@actor_required
def cancel_session(session_id: int):
    data = parse_body(request.get_json(silent=True))
    reason = parse_str(data.get("reason"), "reason")

    if _visible_session(session_id) is None:
        return jsonify(error="Session not found"), 404

    require_reason = (
        g.actor.role == MEMBER
        and current_app.config.get("MEMBER_CANCEL_REQUIRES_REASON", True)
    )
    session = get_state_machine().cancel(session_id, reason=reason, require_reason=require_reason)
    return jsonify(session.to_dict()), 200


# ---------- TRAINER: edit a confirmed session ----------
@sessions_bp.post("/<int:session_id>/reschedule")
@require_roles(TRAINER)
def reschedule_session(session_id: int):
    data = parse_body(request.get_json(silent=True))
    session_type = parse_str(data.get("session_type"), "session_type")

    if _visible_session(session_id) is None:
        return jsonify(error="Session not found"), 404

    session = get_state_machine().reschedule(
        session_id,
        on_date=parse_date(data.get("date")),
        at_time=parse_time(data.get("time")),
        session_type=session_type,
    )
    return jsonify(session.to_dict()), 200


# ---------- ANY: ordinal of a confirmed session in its package ----------
@sessions_bp.get("/<int:session_id>/rank")
@actor_required
def session_rank(session_id: int):
    session = _visible_session(session_id)
    if session is None:
        return jsonify(error="Session not found"), 404

    ledger = QuotaLedger()
    usage = ledger.usage(session.member_id, session.session_type, session.session_date)
    return jsonify(id=session.id, rank=ledger.rank_of(session), total=usage.total), 200
