import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    # SQLite database file stored next to the app as trainer_calendar.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "trainer_calendar.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Daily grid: 12 hourly slots from 09:00 (last one 20:00)
    SLOT_START_HOUR = int(os.getenv("SLOT_START_HOUR", "9"))
    SLOT_COUNT = int(os.getenv("SLOT_COUNT", "12"))

    # What a confirm does on a slot that already holds a confirmed session:
    #   permissive -> allowed, both stay confirmed
    #   exclusive  -> refused with 409
    CONFLICT_POLICY = os.getenv("CONFLICT_POLICY", "permissive")

    # Refuse confirm/direct booking once used == total for that session type
    ENFORCE_QUOTA_CAP = _env_bool("ENFORCE_QUOTA_CAP", "false")

    # Members must say why they cancel a confirmed session; trainers never do
    MEMBER_CANCEL_REQUIRES_REASON = _env_bool("MEMBER_CANCEL_REQUIRES_REASON", "true")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CONFLICT_POLICY = "permissive"
    ENFORCE_QUOTA_CAP = False
    MEMBER_CANCEL_REQUIRES_REASON = True
