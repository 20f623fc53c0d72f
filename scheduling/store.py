# Repositories over the SQLAlchemy session. Writes only add/flush;
# committing belongs to scheduling.transaction so multi-row writes land together.
from datetime import datetime
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.member import Member
from models.package import Package, PackageStatus
from models.scheduled_session import ScheduledSession
from scheduling.errors import NotFoundError, StoreError


def _read(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StoreError("Could not read from the store") from exc
    return wrapper


class SessionStore:
    @_read
    def get(self, session_id: int):
        return db.session.get(ScheduledSession, session_id)

    def require(self, session_id: int) -> ScheduledSession:
        s = self.get(session_id)
        if s is None:
            raise NotFoundError("Session not found", session_id=session_id)
        return s

    def insert(self, session: ScheduledSession) -> ScheduledSession:
        now = datetime.utcnow()
        session.created_at = session.created_at or now
        session.updated_at = session.updated_at or now
        db.session.add(session)
        db.session.flush()
        return session

    def update(self, session_id: int, **fields) -> ScheduledSession:
        s = self.require(session_id)
        for name, value in fields.items():
            setattr(s, name, value)
        s.updated_at = datetime.utcnow()
        db.session.flush()
        return s

    @_read
    def select(
        self,
        trainer_id=None,
        member_id=None,
        date_from=None,
        date_to=None,
        status=None,
        session_type=None,
        at_time=None,
        exclude_id=None,
    ):
        """
        Generic filter. `status` may be a single value or a collection;
        the date range is inclusive on both ends.
        """
        q = ScheduledSession.query
        if trainer_id is not None:
            q = q.filter(ScheduledSession.trainer_id == trainer_id)
        if member_id is not None:
            q = q.filter(ScheduledSession.member_id == member_id)
        if date_from is not None:
            q = q.filter(ScheduledSession.session_date >= date_from)
        if date_to is not None:
            q = q.filter(ScheduledSession.session_date <= date_to)
        if status is not None:
            if isinstance(status, str):
                q = q.filter(ScheduledSession.status == status)
            else:
                q = q.filter(ScheduledSession.status.in_(list(status)))
        if session_type is not None:
            q = q.filter(ScheduledSession.session_type == session_type)
        if at_time is not None:
            q = q.filter(ScheduledSession.session_time == at_time)
        if exclude_id is not None:
            q = q.filter(ScheduledSession.id != exclude_id)

        return q.order_by(
            ScheduledSession.session_date.asc(),
            ScheduledSession.session_time.asc(),
            ScheduledSession.id.asc(),
        ).all()

    def in_slot(self, trainer_id, on_date, at_time, exclude_id=None):
        return self.select(
            trainer_id=trainer_id,
            date_from=on_date,
            date_to=on_date,
            at_time=at_time,
            exclude_id=exclude_id,
        )


class PackageStore:
    @_read
    def covering(self, member_id, on_date, trainer_id=None):
        q = Package.query.filter(
            Package.member_id == member_id,
            Package.status == PackageStatus.ACTIVE,
            Package.start_date <= on_date,
            Package.end_date >= on_date,
        )
        if trainer_id is not None:
            q = q.filter(Package.trainer_id == trainer_id)
        return q.order_by(Package.start_date.asc(), Package.id.asc()).all()

    @_read
    def active_for_trainer(self, trainer_id, on_date):
        return (
            Package.query
            .filter(
                Package.trainer_id == trainer_id,
                Package.status == PackageStatus.ACTIVE,
                Package.start_date <= on_date,
                Package.end_date >= on_date,
            )
            .all()
        )

    @_read
    def expired_before(self, day):
        return (
            Package.query
            .filter(Package.status == PackageStatus.ACTIVE, Package.end_date < day)
            .all()
        )


class MemberDirectory:
    @_read
    def get(self, member_id):
        return db.session.get(Member, member_id)

    def require(self, member_id) -> Member:
        m = self.get(member_id)
        if m is None:
            raise NotFoundError("Member not found", member_id=member_id)
        return m

    @_read
    def many(self, member_ids):
        ids = list(member_ids)
        if not ids:
            return []
        return Member.query.filter(Member.id.in_(ids)).order_by(Member.name.asc()).all()
