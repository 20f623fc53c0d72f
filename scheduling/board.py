from dataclasses import dataclass
from datetime import datetime, time
from typing import Dict, List, Optional, Tuple

from models.scheduled_session import ScheduledSession, SessionStatus
from scheduling.ledger import QuotaLedger
from scheduling.store import SessionStore
from utils.roles import ADMIN, MEMBER, TRAINER

RESERVE = "reserve"
CONFIRM = "confirm"
CANCEL = "cancel"
EDIT = "edit"

# higher wins the slot display
STATUS_PRIORITY = {
    SessionStatus.CONFIRMED: 2,
    SessionStatus.REQUESTED: 1,
    SessionStatus.CANCELLED: 0,
}


def slot_times(start_hour: int = 9, count: int = 12) -> List[time]:
    return [time(hour=start_hour + i) for i in range(count)]


def _display_key(s: ScheduledSession):
    return (STATUS_PRIORITY.get(s.status, -1), s.updated_at or datetime.min, s.id or 0)


def resolve_priority(sessions) -> Optional[ScheduledSession]:
    """
    Pick the session a slot displays: confirmed > requested > cancelled,
    and inside a tier the most recently updated one.
    """
    sessions = list(sessions)
    if not sessions:
        return None
    return max(sessions, key=_display_key)


@dataclass(frozen=True)
class SlotView:
    time: time
    displayed_session: Optional[ScheduledSession]
    pending_count: int
    cancelled_history: Tuple[ScheduledSession, ...] = ()

    @property
    def status(self) -> Optional[str]:
        return self.displayed_session.status if self.displayed_session else None

    @property
    def is_free(self) -> bool:
        return self.status in (None, SessionStatus.CANCELLED)

    @property
    def is_contested(self) -> bool:
        return self.pending_count > 1

    def to_dict(self, quota=None):
        return {
            "time": self.time.strftime("%H:%M"),
            "status": self.status,
            "displayed_session": self.displayed_session.to_dict() if self.displayed_session else None,
            "pending_count": self.pending_count,
            "is_contested": self.is_contested,
            "cancelled_history": [
                {
                    "id": s.id,
                    "member_name": s.member.name if s.member else None,
                    "session_type": s.session_type,
                    "reason": s.reason,
                    "cancelled_at": s.cancelled_at.isoformat() if s.cancelled_at else None,
                }
                for s in self.cancelled_history
            ],
            "quota": quota,
        }


def build_slot_view(at_time: time, sessions) -> SlotView:
    sessions = list(sessions)
    cancelled = sorted(
        (s for s in sessions if s.status == SessionStatus.CANCELLED),
        key=lambda s: (s.updated_at or datetime.min, s.id or 0),
    )
    return SlotView(
        time=at_time,
        displayed_session=resolve_priority(sessions),
        pending_count=sum(1 for s in sessions if s.status == SessionStatus.REQUESTED),
        cancelled_history=tuple(cancelled),
    )


class SlotBoard:
    """A trainer's booking board for one day."""

    def __init__(
        self,
        trainer_id,
        on_date,
        sessions: SessionStore = None,
        ledger: QuotaLedger = None,
        grid: List[time] = None,
    ):
        self.trainer_id = trainer_id
        self.on_date = on_date
        self.sessions = sessions or SessionStore()
        self.ledger = ledger or QuotaLedger(sessions=self.sessions)
        self.grid = grid if grid is not None else slot_times()
        self._day: Optional[List[ScheduledSession]] = None

    @classmethod
    def from_config(cls, config, trainer_id, on_date):
        grid = slot_times(int(config.get("SLOT_START_HOUR", 9)), int(config.get("SLOT_COUNT", 12)))
        return cls(trainer_id, on_date, grid=grid)

    def _day_sessions(self) -> List[ScheduledSession]:
        if self._day is None:
            self._day = self.sessions.select(
                trainer_id=self.trainer_id, date_from=self.on_date, date_to=self.on_date
            )
        return self._day

    def _at(self, at_time: time) -> List[ScheduledSession]:
        return [s for s in self._day_sessions() if s.session_time == at_time]

    def load_day(self, reload: bool = False) -> Dict[time, SlotView]:
        if reload:
            self._day = None
        by_time: Dict[time, List[ScheduledSession]] = {t: [] for t in self.grid}
        for s in self._day_sessions():
            # sessions booked on a time that is no longer on the grid still show
            by_time.setdefault(s.session_time, []).append(s)
        return {t: build_slot_view(t, by_time[t]) for t in sorted(by_time)}

    def list_slot_sessions(self, at_time: time, include_cancelled: bool = False) -> List[ScheduledSession]:
        rows = self._at(at_time)
        if not include_cancelled:
            rows = [s for s in rows if s.status != SessionStatus.CANCELLED]
        # application order: first requester first
        return sorted(rows, key=lambda s: (s.updated_at or datetime.min, s.id or 0))

    def available_actions(self, at_time: time, caller_role: str, caller_member_id=None) -> set:
        sessions = self._at(at_time)
        view = build_slot_view(at_time, sessions)

        if caller_role in (TRAINER, ADMIN):
            if view.is_free:
                return {RESERVE}
            if view.status == SessionStatus.REQUESTED:
                return {CONFIRM, CANCEL}
            return {EDIT, CANCEL}

        if caller_role == MEMBER:
            actions = set()
            mine = [
                s for s in sessions
                if s.member_id == caller_member_id and s.status != SessionStatus.CANCELLED
            ]
            if mine:
                actions.add(CANCEL)
            elif view.status != SessionStatus.CONFIRMED:
                actions.add(RESERVE)
            return actions

        return set()

    def quota_context(self, session: Optional[ScheduledSession]):
        if session is None or session.status == SessionStatus.CANCELLED:
            return None
        usage = self.ledger.usage(session.member_id, session.session_type, session.session_date)
        if usage.total <= 0:
            return None
        return {
            "used": usage.used,
            "total": usage.total,
            "rank": self.ledger.rank_of(session),
        }


def pending_requests(trainer_id, sessions: SessionStore = None, ledger: QuotaLedger = None):
    """
    A trainer's inbox: every open request on their board, latest slot first,
    each paired with the member's usage for that session type.
    """
    sessions = sessions or SessionStore()
    ledger = ledger or QuotaLedger(sessions=sessions)
    rows = sessions.select(trainer_id=trainer_id, status=SessionStatus.REQUESTED)
    rows.sort(key=lambda s: (s.session_date, s.session_time, s.id or 0), reverse=True)
    return [(s, ledger.usage(s.member_id, s.session_type, s.session_date)) for s in rows]
