from flask import current_app

from .errors import (
    SchedulingError,
    ValidationError,
    QuotaExceededError,
    NotFoundError,
    StateError,
    SlotConflictError,
    StoreError,
)
from .transaction import transaction
from .store import SessionStore, PackageStore, MemberDirectory
from .packages import PackageWindowResolver, QuotaTotals, Window
from .ledger import QuotaLedger, QuotaUsage
from .conflicts import ConflictPolicy
from .reservations import ReservationStateMachine
from .board import SlotBoard, SlotView, build_slot_view, pending_requests, resolve_priority, slot_times


def get_state_machine() -> ReservationStateMachine:
    return ReservationStateMachine.from_config(current_app.config)


def get_board(trainer_id, on_date) -> SlotBoard:
    return SlotBoard.from_config(current_app.config, trainer_id, on_date)
