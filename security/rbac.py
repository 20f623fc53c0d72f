from functools import wraps
from flask import g, jsonify

from utils.roles import ADMIN

def require_roles(*role_names: str):
    """
    Usage: @require_roles("TRAINER")
    ADMIN passes every gate.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return jsonify(error="Caller identity required"), 401

            if actor.role != ADMIN and actor.role not in role_names:
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
