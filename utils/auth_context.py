from functools import wraps
from typing import NamedTuple, Optional

from flask import g, jsonify, request

from utils.roles import normalize_role

# Authentication happens upstream; the gateway forwards who is calling.
ROLE_HEADER = "X-Actor-Role"
ID_HEADER = "X-Actor-Id"


class Actor(NamedTuple):
    role: str
    id: Optional[int]


def load_current_actor():
    role = normalize_role(request.headers.get(ROLE_HEADER))
    if role is None:
        g.actor = None
        return
    raw_id = (request.headers.get(ID_HEADER) or "").strip()
    g.actor = Actor(role=role, id=int(raw_id) if raw_id.isdigit() else None)


def actor_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "actor", None) is None:
            return jsonify(error="Caller identity required"), 401
        return fn(*args, **kwargs)
    return wrapper
