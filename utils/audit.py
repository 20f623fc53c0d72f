import json
from flask import g, has_request_context, request
from models import db
from models.audit_log import AuditLog

def log_event(action: str, actor=None, entity=None, entity_id=None, metadata=None, commit=True):
    """
    Record an audit row. Pass commit=False inside scheduling.transaction so the
    row is written together with the change it describes.
    """
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")
        if actor is None:
            actor = getattr(g, "actor", None)

    row = AuditLog(
        actor_role=actor.role if actor else None,
        actor_id=actor.id if actor else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata) if metadata else None
    )
    db.session.add(row)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return row
