from datetime import datetime
from models.db import db

class PackageStatus:
    ACTIVE = "active"
    CLOSED = "closed"


class Package(db.Model):
    __tablename__ = "member_packages"

    id = db.Column(db.Integer, primary_key=True)

    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    trainer_id = db.Column(db.Integer, db.ForeignKey("trainers.id"), nullable=False, index=True)

    # purchased credits per session type
    personal_quota = db.Column(db.Integer, nullable=False, default=0)
    group_quota = db.Column(db.Integer, nullable=False, default=0)
    self_quota = db.Column(db.Integer, nullable=False, default=0)

    # validity window, both ends inclusive
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=PackageStatus.ACTIVE)
    # status values: active, closed

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def quota_for(self, session_type: str) -> int:
        return getattr(self, f"{session_type}_quota", 0) or 0
