from models.scheduled_session import ScheduledSession, SessionStatus
from scheduling.store import SessionStore


class ConflictPolicy:
    """
    Gate for the requested -> confirmed transition when a slot is contested.

    permissive: a confirm is always allowed, even on a slot that already holds
                a confirmed session. The board shows the most recently updated
                confirmed session first.
    exclusive:  a confirm is refused while another session in the same
                (trainer, date, time) slot is confirmed.

    Neither mode cancels competing sessions.
    """

    PERMISSIVE = "permissive"
    EXCLUSIVE = "exclusive"
    MODES = (PERMISSIVE, EXCLUSIVE)

    def __init__(self, mode: str = PERMISSIVE, sessions: SessionStore = None):
        mode = (mode or self.PERMISSIVE).strip().lower()
        if mode not in self.MODES:
            raise ValueError(f"Unknown conflict policy: {mode!r}")
        self.mode = mode
        self.sessions = sessions or SessionStore()

    @classmethod
    def from_config(cls, config, sessions: SessionStore = None):
        return cls(config.get("CONFLICT_POLICY", cls.PERMISSIVE), sessions=sessions)

    @property
    def exclusive(self) -> bool:
        return self.mode == self.EXCLUSIVE

    def competing_sessions(self, session: ScheduledSession):
        others = self.sessions.in_slot(
            session.trainer_id, session.session_date, session.session_time, exclude_id=session.id
        )
        return [s for s in others if s.status != SessionStatus.CANCELLED]

    def confirmed_occupants(self, trainer_id, on_date, at_time, exclude_id=None):
        return [
            s for s in self.sessions.in_slot(trainer_id, on_date, at_time, exclude_id=exclude_id)
            if s.status == SessionStatus.CONFIRMED
        ]

    def can_confirm(self, session: ScheduledSession) -> bool:
        if not self.exclusive:
            return True
        return not self.confirmed_occupants(
            session.trainer_id, session.session_date, session.session_time, exclude_id=session.id
        )
