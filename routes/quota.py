from datetime import date

from flask import Blueprint, request, jsonify, g

from models.scheduled_session import SessionType
from scheduling import QuotaLedger, ValidationError
from utils.auth_context import actor_required
from utils.parsing import parse_date
from utils.roles import MEMBER

quota_bp = Blueprint("quota", __name__, url_prefix="/members")


@quota_bp.get("/<int:member_id>/quota")
@actor_required
def member_quota(member_id: int):
    if g.actor.role == MEMBER and g.actor.id != member_id:
        return jsonify(error="Forbidden"), 403

    on_date = parse_date(request.args.get("date")) or date.today()
    ledger = QuotaLedger()

    raw_type = request.args.get("type")
    if raw_type:
        session_type = SessionType.parse(raw_type)
        if session_type is None:
            raise ValidationError("Unknown session type", session_type=raw_type)
        types = [session_type]
    else:
        types = list(SessionType.ALL)

    return jsonify(
        member_id=member_id,
        date=on_date.isoformat(),
        quota={t: ledger.usage(member_id, t, on_date).to_dict() for t in types},
    ), 200
