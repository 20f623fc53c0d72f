from datetime import datetime
from models.db import db


class SessionStatus:
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    ALL = (REQUESTED, CONFIRMED, CANCELLED)


class SessionType:
    PERSONAL = "personal"
    GROUP = "group"
    SELF = "self"

    ALL = (PERSONAL, GROUP, SELF)

    # short codes still sent by the calendar screens
    ALIASES = {"PT": PERSONAL, "GROUP": GROUP, "SELF": SELF}

    @classmethod
    def parse(cls, value):
        if not value:
            return None
        value = value.strip()
        if value in cls.ALIASES:
            return cls.ALIASES[value]
        value = value.lower()
        return value if value in cls.ALL else None


class ScheduledSession(db.Model):
    __tablename__ = "scheduled_sessions"

    id = db.Column(db.Integer, primary_key=True)

    trainer_id = db.Column(db.Integer, db.ForeignKey("trainers.id"), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)

    session_date = db.Column(db.Date, nullable=False, index=True)
    session_time = db.Column(db.Time, nullable=False)
    session_type = db.Column(db.String(20), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=SessionStatus.REQUESTED)
    # status values: requested, confirmed, cancelled

    reason = db.Column(db.String(255), nullable=True)  # only set on cancellation
    cancelled_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    member = db.relationship("Member", lazy="joined")

    __table_args__ = (
        # SlotBoard reads a whole trainer-day at once
        db.Index("ix_sessions_trainer_day", "trainer_id", "session_date"),
    )

    @property
    def slot_key(self):
        return (self.trainer_id, self.session_date, self.session_time)

    def to_dict(self):
        return {
            "id": self.id,
            "trainer_id": self.trainer_id,
            "member_id": self.member_id,
            "member_name": self.member.name if self.member else None,
            "date": self.session_date.isoformat(),
            "time": self.session_time.strftime("%H:%M"),
            "session_type": self.session_type,
            "status": self.status,
            "reason": self.reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
        }
