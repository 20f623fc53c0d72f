from datetime import date, time
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from models import db, AuditLog, ScheduledSession
from scheduling import (
    NotFoundError,
    QuotaExceededError,
    QuotaLedger,
    ReservationStateMachine,
    SlotConflictError,
    StateError,
    StoreError,
    ValidationError,
)


def _store_down(*args, **kwargs):
    raise OperationalError("INSERT INTO audit_logs", {}, Exception("database is locked"))


def _jan(day):
    return date(2024, 1, day)


class TestCreate:

    def test_create_returns_requested_session(self, machine, trainer, member, package):
        s = machine.create(trainer.id, member.id, "PT", _jan(5), time(10, 0, 30))

        assert s.status == "requested"
        assert s.session_type == "personal"
        assert s.session_time == time(10)
        assert s.reason is None
        assert AuditLog.query.filter_by(action="SESSION_REQUEST", entity_id=str(s.id)).count() == 1

    def test_scenario_d_no_covering_package(self, machine, trainer, member, package):
        with pytest.raises(ValidationError):
            machine.create(trainer.id, member.id, "personal", date(2024, 2, 5), time(10))

        assert ScheduledSession.query.count() == 0

    def test_type_without_quota_is_rejected(self, machine, trainer, member, package):
        # package has group_quota=0
        with pytest.raises(ValidationError):
            machine.create(trainer.id, member.id, "group", _jan(5), time(10))

        assert ScheduledSession.query.count() == 0

    @pytest.mark.parametrize("missing", ["session_type", "on_date", "at_time"])
    def test_missing_fields(self, machine, trainer, member, package, missing):
        fields = dict(trainer_id=trainer.id, member_id=member.id, session_type="personal",
                      on_date=_jan(5), at_time=time(10))
        fields[missing] = None

        with pytest.raises(ValidationError):
            machine.create(**fields)

    def test_unknown_type(self, machine, trainer, member, package):
        with pytest.raises(ValidationError):
            machine.create(trainer.id, member.id, "yoga", _jan(5), time(10))

    def test_unknown_member(self, machine, trainer, package):
        with pytest.raises(NotFoundError):
            machine.create(trainer.id, 999, "personal", _jan(5), time(10))

    def test_package_with_another_trainer_does_not_count(self, machine, trainer, member, package):
        with pytest.raises(ValidationError):
            machine.create(trainer.id + 1, member.id, "personal", _jan(5), time(10))

    def test_competing_requests_share_a_slot(self, machine, trainer, member, other_member, make_package):
        make_package(member)
        make_package(other_member)

        a = machine.create(trainer.id, member.id, "personal", _jan(5), time(10))
        b = machine.create(trainer.id, other_member.id, "personal", _jan(5), time(10))

        assert a.slot_key == b.slot_key
        assert {a.status, b.status} == {"requested"}


class TestConfirm:

    def test_confirm_requested(self, machine, trainer, member, package):
        s = machine.create(trainer.id, member.id, "personal", _jan(5), time(10))

        confirmed = machine.confirm(s.id)

        assert confirmed.status == "confirmed"
        assert AuditLog.query.filter_by(action="SESSION_CONFIRM").count() == 1

    def test_confirm_missing_session(self, machine):
        with pytest.raises(NotFoundError):
            machine.confirm(12345)

    def test_confirm_twice_is_a_state_error(self, machine, trainer, member, package):
        s = machine.create(trainer.id, member.id, "personal", _jan(5), time(10))
        machine.confirm(s.id)

        with pytest.raises(StateError):
            machine.confirm(s.id)

    def test_scenario_c_permissive_keeps_both_confirmed(self, machine, trainer, member, other_member, make_package):
        make_package(member)
        make_package(other_member)
        x = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))
        y = machine.create(trainer.id, other_member.id, "personal", _jan(5), time(10))

        machine.confirm(y.id)

        assert db.session.get(ScheduledSession, x.id).status == "confirmed"
        assert db.session.get(ScheduledSession, y.id).status == "confirmed"

    def test_exclusive_policy_refuses_second_confirm(
        self, exclusive_machine, trainer, member, other_member, make_package
    ):
        make_package(member)
        make_package(other_member)
        x = exclusive_machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))
        y = exclusive_machine.create(trainer.id, other_member.id, "personal", _jan(5), time(10))

        with pytest.raises(SlotConflictError):
            exclusive_machine.confirm(y.id)

        assert db.session.get(ScheduledSession, x.id).status == "confirmed"
        assert db.session.get(ScheduledSession, y.id).status == "requested"

    def test_exclusive_policy_allows_once_competitor_cancelled(
        self, exclusive_machine, trainer, member, other_member, make_package
    ):
        make_package(member)
        make_package(other_member)
        x = exclusive_machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))
        y = exclusive_machine.create(trainer.id, other_member.id, "personal", _jan(5), time(10))
        exclusive_machine.cancel(x.id)

        assert exclusive_machine.confirm(y.id).status == "confirmed"

    def test_exclusive_policy_blocks_direct_reservation(
        self, exclusive_machine, trainer, member, other_member, make_package
    ):
        make_package(member)
        make_package(other_member)
        exclusive_machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        with pytest.raises(SlotConflictError):
            exclusive_machine.reserve_direct(trainer.id, other_member.id, "personal", _jan(5), time(10))

        assert ScheduledSession.query.count() == 1


class TestCancel:

    def test_cancel_keeps_row_and_reason(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        cancelled = machine.cancel(s.id, reason="  knee injury ")

        assert cancelled.status == "cancelled"
        assert cancelled.reason == "knee injury"
        assert cancelled.cancelled_at is not None
        assert ScheduledSession.query.count() == 1

    def test_cancel_requested(self, machine, trainer, member, package):
        s = machine.create(trainer.id, member.id, "personal", _jan(5), time(10))

        assert machine.cancel(s.id, require_reason=True).status == "cancelled"

    def test_nothing_leaves_cancelled(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))
        machine.cancel(s.id)

        with pytest.raises(StateError):
            machine.cancel(s.id)
        with pytest.raises(StateError):
            machine.confirm(s.id)
        with pytest.raises(StateError):
            machine.reschedule(s.id, at_time=time(11))

        assert db.session.get(ScheduledSession, s.id).status == "cancelled"

    def test_reason_required_for_confirmed_when_asked(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        with pytest.raises(ValidationError):
            machine.cancel(s.id, reason="   ", require_reason=True)

        assert db.session.get(ScheduledSession, s.id).status == "confirmed"

    def test_failed_write_leaves_session_unchanged(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        with patch("scheduling.reservations.log_event", side_effect=_store_down):
            with pytest.raises(StoreError):
                machine.cancel(s.id, reason="sick")

        row = db.session.get(ScheduledSession, s.id)
        assert row.status == "confirmed"
        assert row.reason is None
        assert QuotaLedger().usage(member.id, "personal", _jan(5)).used == 1


class TestReserveDirect:

    def test_reserve_direct_confirms_immediately(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "self", _jan(5), time(10))

        assert s.status == "confirmed"
        assert AuditLog.query.filter_by(action="SESSION_RESERVE_DIRECT").count() == 1
        assert QuotaLedger().usage(member.id, "self", _jan(5)).used == 1

    def test_reserve_direct_is_atomic(self, machine, trainer, member, package):
        with patch("scheduling.reservations.log_event", side_effect=_store_down):
            with pytest.raises(StoreError):
                machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        assert ScheduledSession.query.count() == 0
        assert AuditLog.query.count() == 0

    def test_scenario_e_no_cap_by_default(self, machine, trainer, member, make_package):
        make_package(member, personal=2)
        for hour in (9, 10):
            machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(hour))

        extra = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(11))

        usage = QuotaLedger().usage(member.id, "personal", _jan(5))
        assert extra.status == "confirmed"
        assert (usage.used, usage.total) == (3, 2)
        assert usage.remaining == 0

    def test_quota_cap_when_enforced(self, app, trainer, member, make_package):
        make_package(member, personal=2)
        app.config["ENFORCE_QUOTA_CAP"] = True
        capped = ReservationStateMachine.from_config(app.config)
        for hour in (9, 10):
            capped.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(hour))
        pending = capped.create(trainer.id, member.id, "personal", _jan(6), time(9))

        with pytest.raises(QuotaExceededError):
            capped.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(11))
        with pytest.raises(QuotaExceededError):
            capped.confirm(pending.id)

        assert QuotaLedger().usage(member.id, "personal", _jan(5)).used == 2
        assert db.session.get(ScheduledSession, pending.id).status == "requested"


class TestReschedule:

    def test_move_to_free_slot(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        moved = machine.reschedule(s.id, on_date=_jan(6), at_time=time(14), session_type="SELF")

        assert (moved.session_date, moved.session_time, moved.session_type) == (_jan(6), time(14), "self")
        assert moved.status == "confirmed"
        assert AuditLog.query.filter_by(action="SESSION_RESCHEDULE").count() == 1

    def test_move_onto_confirmed_slot_is_refused(self, machine, trainer, member, other_member, make_package):
        make_package(member)
        make_package(other_member)
        machine.reserve_direct(trainer.id, other_member.id, "personal", _jan(5), time(14))
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        with pytest.raises(SlotConflictError):
            machine.reschedule(s.id, at_time=time(14))

        assert db.session.get(ScheduledSession, s.id).session_time == time(10)

    def test_move_outside_package_is_refused(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        with pytest.raises(ValidationError):
            machine.reschedule(s.id, on_date=date(2024, 3, 1))

    def test_only_confirmed_sessions_can_be_edited(self, machine, trainer, member, package):
        s = machine.create(trainer.id, member.id, "personal", _jan(5), time(10))

        with pytest.raises(StateError):
            machine.reschedule(s.id, at_time=time(11))

    def test_no_change_writes_nothing(self, machine, trainer, member, package):
        s = machine.reserve_direct(trainer.id, member.id, "personal", _jan(5), time(10))

        machine.reschedule(s.id, at_time=time(10))

        assert AuditLog.query.filter_by(action="SESSION_RESCHEDULE").count() == 0
