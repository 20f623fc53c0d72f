from datetime import datetime, time

from flask import current_app

from models.scheduled_session import ScheduledSession, SessionStatus, SessionType
from scheduling.conflicts import ConflictPolicy
from scheduling.errors import QuotaExceededError, SlotConflictError, StateError, ValidationError
from scheduling.ledger import QuotaLedger
from scheduling.packages import PackageWindowResolver
from scheduling.store import MemberDirectory, SessionStore
from scheduling.transaction import transaction
from utils.audit import log_event

# status can only move forward; cancelled is terminal
ALLOWED_TRANSITIONS = {
    SessionStatus.REQUESTED: {SessionStatus.CONFIRMED, SessionStatus.CANCELLED},
    SessionStatus.CONFIRMED: {SessionStatus.CANCELLED},
    SessionStatus.CANCELLED: set(),
}


def _slot_time(value: time) -> time:
    return value.replace(second=0, microsecond=0)


class ReservationStateMachine:
    """
    Owns every write to a ScheduledSession.

    Each public operation is one transaction: the session row and its audit
    row commit together, and any failure leaves the store untouched.
    """

    def __init__(
        self,
        sessions: SessionStore = None,
        resolver: PackageWindowResolver = None,
        ledger: QuotaLedger = None,
        policy: ConflictPolicy = None,
        members: MemberDirectory = None,
        enforce_quota_cap: bool = False,
    ):
        self.sessions = sessions or SessionStore()
        self.resolver = resolver or PackageWindowResolver()
        self.ledger = ledger or QuotaLedger(self.resolver, self.sessions)
        self.policy = policy or ConflictPolicy(sessions=self.sessions)
        self.members = members or MemberDirectory()
        self.enforce_quota_cap = enforce_quota_cap

    @classmethod
    def from_config(cls, config):
        sessions = SessionStore()
        resolver = PackageWindowResolver()
        return cls(
            sessions=sessions,
            resolver=resolver,
            ledger=QuotaLedger(resolver, sessions),
            policy=ConflictPolicy.from_config(config, sessions=sessions),
            enforce_quota_cap=bool(config.get("ENFORCE_QUOTA_CAP", False)),
        )

    # ---------- checks ----------

    def _validate_booking(self, trainer_id, member_id, session_type, on_date, at_time):
        fields = {
            "trainer_id": trainer_id,
            "member_id": member_id,
            "session_type": session_type,
            "date": on_date,
            "time": at_time,
        }
        missing = [name for name, value in fields.items() if value is None or value == ""]
        if missing:
            raise ValidationError("Missing required fields", fields=missing)

        stype = SessionType.parse(session_type)
        if stype is None:
            raise ValidationError("Unknown session type", session_type=session_type)

        self.members.require(member_id)

        totals = self.resolver.quota_totals(member_id, stype, on_date, trainer_id=trainer_id)
        if totals.total <= 0:
            raise ValidationError(
                "No active package covers this session type on that date",
                member_id=member_id,
                session_type=stype,
                date=on_date.isoformat(),
            )
        return stype, _slot_time(at_time)

    def _check_quota_cap(self, member_id, session_type, on_date, already_counted=None):
        if not self.enforce_quota_cap:
            return
        usage = self.ledger.usage(member_id, session_type, on_date)
        used = usage.used
        if (
            already_counted is not None
            and already_counted.status == SessionStatus.CONFIRMED
            and already_counted.session_type == session_type
            and usage.window is not None
            and usage.window.contains(already_counted.session_date)
        ):
            used -= 1
        if used >= usage.total:
            raise QuotaExceededError(
                "No sessions left in the package for this type",
                used=usage.used,
                total=usage.total,
            )

    def _check_conflict(self, session: ScheduledSession):
        if not self.policy.can_confirm(session):
            current_app.logger.info(
                "confirm refused for session %s: slot %s already confirmed", session.id, session.slot_key
            )
            raise SlotConflictError(
                "Slot already holds a confirmed session",
                date=session.session_date.isoformat(),
                time=session.session_time.strftime("%H:%M"),
            )

    def _transition(self, session: ScheduledSession, target: str, **fields) -> ScheduledSession:
        if target not in ALLOWED_TRANSITIONS.get(session.status, set()):
            raise StateError(
                f"Cannot change a {session.status} session to {target}",
                session_id=session.id,
                status=session.status,
            )
        return self.sessions.update(session.id, status=target, **fields)

    # ---------- operations ----------

    def create(self, trainer_id, member_id, session_type, on_date, at_time) -> ScheduledSession:
        with transaction("create session"):
            stype, slot_time = self._validate_booking(trainer_id, member_id, session_type, on_date, at_time)
            session = self.sessions.insert(ScheduledSession(
                trainer_id=trainer_id,
                member_id=member_id,
                session_type=stype,
                session_date=on_date,
                session_time=slot_time,
                status=SessionStatus.REQUESTED,
            ))
            log_event("SESSION_REQUEST", entity="scheduled_session", entity_id=session.id,
                      metadata={"type": stype, "slot": f"{on_date.isoformat()} {slot_time:%H:%M}"},
                      commit=False)
        return session

    def confirm(self, session_id) -> ScheduledSession:
        with transaction("confirm session"):
            session = self.sessions.require(session_id)
            if session.status != SessionStatus.REQUESTED:
                raise StateError(
                    f"Only requested sessions can be confirmed (session is {session.status})",
                    session_id=session.id,
                    status=session.status,
                )
            self._check_conflict(session)
            self._check_quota_cap(session.member_id, session.session_type, session.session_date)
            session = self._transition(session, SessionStatus.CONFIRMED)
            log_event("SESSION_CONFIRM", entity="scheduled_session", entity_id=session.id, commit=False)
        return session

    def cancel(self, session_id, reason=None, require_reason=False) -> ScheduledSession:
        reason = (reason or "").strip() or None
        with transaction("cancel session"):
            session = self.sessions.require(session_id)
            if session.status == SessionStatus.CANCELLED:
                raise StateError("Session already cancelled", session_id=session.id, status=session.status)
            if require_reason and session.status == SessionStatus.CONFIRMED and not reason:
                raise ValidationError("A reason is required to cancel a confirmed session")

            previous = session.status
            session = self._transition(
                session,
                SessionStatus.CANCELLED,
                reason=reason,
                cancelled_at=datetime.utcnow(),
            )
            log_event("SESSION_CANCEL", entity="scheduled_session", entity_id=session.id,
                      metadata={"reason": reason, "from": previous}, commit=False)
        return session

    def reserve_direct(self, trainer_id, member_id, session_type, on_date, at_time) -> ScheduledSession:
        with transaction("reserve session"):
            stype, slot_time = self._validate_booking(trainer_id, member_id, session_type, on_date, at_time)
            session = ScheduledSession(
                trainer_id=trainer_id,
                member_id=member_id,
                session_type=stype,
                session_date=on_date,
                session_time=slot_time,
                status=SessionStatus.REQUESTED,
            )
            self._check_conflict(session)
            self._check_quota_cap(member_id, stype, on_date)

            session.status = SessionStatus.CONFIRMED
            session = self.sessions.insert(session)
            log_event("SESSION_RESERVE_DIRECT", entity="scheduled_session", entity_id=session.id,
                      metadata={"type": stype, "slot": f"{on_date.isoformat()} {slot_time:%H:%M}"},
                      commit=False)
        return session

    def reschedule(self, session_id, on_date=None, at_time=None, session_type=None) -> ScheduledSession:
        with transaction("reschedule session"):
            session = self.sessions.require(session_id)
            if session.status != SessionStatus.CONFIRMED:
                raise StateError(
                    "Only confirmed sessions can be edited",
                    session_id=session.id,
                    status=session.status,
                )

            new_date = on_date or session.session_date
            new_time = at_time or session.session_time
            stype, slot_time = self._validate_booking(
                session.trainer_id, session.member_id, session_type or session.session_type, new_date, new_time
            )

            changes = {}
            if new_date != session.session_date:
                changes["session_date"] = new_date
            if slot_time != session.session_time:
                changes["session_time"] = slot_time
            if stype != session.session_type:
                changes["session_type"] = stype
            if not changes:
                return session

            # the edit screen never lets a session move onto a confirmed slot
            if self.policy.confirmed_occupants(session.trainer_id, new_date, slot_time, exclude_id=session.id):
                raise SlotConflictError(
                    "Slot already holds a confirmed session",
                    date=new_date.isoformat(),
                    time=slot_time.strftime("%H:%M"),
                )
            self._check_quota_cap(session.member_id, stype, new_date, already_counted=session)

            before = f"{session.session_date.isoformat()} {session.session_time:%H:%M} {session.session_type}"
            session = self.sessions.update(session.id, **changes)
            log_event("SESSION_RESCHEDULE", entity="scheduled_session", entity_id=session.id,
                      metadata={"before": before,
                                "after": f"{new_date.isoformat()} {slot_time:%H:%M} {stype}"},
                      commit=False)
        return session
