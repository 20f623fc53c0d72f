TRAINER = "TRAINER"
MEMBER = "MEMBER"
ADMIN = "ADMIN"

ALLOWED_ROLES = {TRAINER, MEMBER, ADMIN}


def normalize_role(value):
    name = (value or "").strip().upper()
    return name if name in ALLOWED_ROLES else None
