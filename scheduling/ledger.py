from dataclasses import dataclass
from typing import Optional

from models.scheduled_session import ScheduledSession, SessionStatus
from scheduling.packages import PackageWindowResolver, Window
from scheduling.store import SessionStore


@dataclass(frozen=True)
class QuotaUsage:
    used: int
    total: int
    pending: int = 0
    window: Optional[Window] = None

    @property
    def remaining(self) -> int:
        return max(self.total - self.used, 0)

    def to_dict(self):
        return {
            "used": self.used,
            "total": self.total,
            "pending": self.pending,
            "remaining": self.remaining,
            "window": {
                "start": self.window.start.isoformat(),
                "end": self.window.end.isoformat(),
            } if self.window else None,
        }


def _chronological_key(s: ScheduledSession):
    # identical date+time should not happen; updated_at then id keep the order total
    return (s.session_date, s.session_time, s.updated_at, s.id or 0)


class QuotaLedger:
    """
    Used/total counts and ordinal rank of confirmed sessions.

    Nothing is cached. Every call recounts the confirmed sessions currently
    in the store, so the numbers cannot drift from the session history.
    """

    def __init__(self, resolver: PackageWindowResolver = None, sessions: SessionStore = None):
        self.resolver = resolver or PackageWindowResolver()
        self.sessions = sessions or SessionStore()

    def _in_window(self, member_id, session_type, window, status):
        if window is None:
            return []
        return self.sessions.select(
            member_id=member_id,
            session_type=session_type,
            date_from=window.start,
            date_to=window.end,
            status=status,
        )

    def usage(self, member_id, session_type, on_date, trainer_id=None) -> QuotaUsage:
        totals = self.resolver.quota_totals(member_id, session_type, on_date, trainer_id=trainer_id)
        if totals.window is None:
            return QuotaUsage(used=0, total=0)

        rows = self._in_window(
            member_id,
            session_type,
            totals.window,
            (SessionStatus.CONFIRMED, SessionStatus.REQUESTED),
        )
        used = sum(1 for r in rows if r.status == SessionStatus.CONFIRMED)
        return QuotaUsage(
            used=used,
            total=totals.total,
            pending=len(rows) - used,
            window=totals.window,
        )

    def rank_of(self, session: ScheduledSession) -> Optional[int]:
        if session.status != SessionStatus.CONFIRMED:
            return None

        totals = self.resolver.quota_totals(session.member_id, session.session_type, session.session_date)
        if totals.window is None:
            return None

        confirmed = self._in_window(
            session.member_id, session.session_type, totals.window, SessionStatus.CONFIRMED
        )
        key = _chronological_key(session)
        return 1 + sum(1 for other in confirmed if other.id != session.id and _chronological_key(other) < key)
