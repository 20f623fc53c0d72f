from datetime import date, time

from scheduling import QuotaLedger


def _jan(day):
    return date(2024, 1, day)


class TestUsage:

    def test_scenario_a_three_confirmed_sessions(self, member, package, book):
        book(member, _jan(5))
        middle = book(member, _jan(10))
        book(member, _jan(15))

        ledger = QuotaLedger()
        usage = ledger.usage(member.id, "personal", _jan(20))

        assert (usage.used, usage.total) == (3, 10)
        assert usage.remaining == 7
        assert ledger.rank_of(middle) == 2

    def test_scenario_b_cancel_recomputes_ranks(self, member, package, book, machine):
        first = book(member, _jan(5))
        second = book(member, _jan(10))
        third = book(member, _jan(15))

        machine.cancel(first.id)

        ledger = QuotaLedger()
        assert ledger.usage(member.id, "personal", _jan(20)).used == 2
        assert ledger.rank_of(second) == 1
        assert ledger.rank_of(third) == 2
        assert ledger.rank_of(first) is None

    def test_requested_sessions_are_pending_not_used(self, member, package, machine, trainer, book):
        book(member, _jan(3))
        machine.create(trainer.id, member.id, "personal", _jan(4), time(10))

        usage = QuotaLedger().usage(member.id, "personal", _jan(4))

        assert usage.used == 1
        assert usage.pending == 1

    def test_window_is_inclusive_and_bounded(self, member, make_package, book):
        make_package(member, start=_jan(1), end=_jan(31))
        make_package(member, start=date(2024, 2, 1), end=date(2024, 2, 29))
        book(member, _jan(1))
        book(member, _jan(31))
        book(member, date(2024, 2, 1))

        ledger = QuotaLedger()

        assert ledger.usage(member.id, "personal", _jan(15)).used == 2
        assert ledger.usage(member.id, "personal", date(2024, 2, 15)).used == 1

    def test_types_draw_from_independent_quotas(self, member, package, book):
        book(member, _jan(5), session_type="personal")
        book(member, _jan(6), session_type="self")

        ledger = QuotaLedger()

        assert ledger.usage(member.id, "personal", _jan(7)).to_dict()["used"] == 1
        assert ledger.usage(member.id, "self", _jan(7)).total == 5
        assert ledger.usage(member.id, "self", _jan(7)).used == 1

    def test_no_package_means_zero_usage(self, member):
        usage = QuotaLedger().usage(member.id, "personal", _jan(7))

        assert (usage.used, usage.total, usage.window) == (0, 0, None)
        assert usage.to_dict()["window"] is None

    def test_usage_follows_confirm_and_cancel(self, member, package, machine, trainer):
        ledger = QuotaLedger()
        s = machine.create(trainer.id, member.id, "personal", _jan(8), time(9))
        assert ledger.usage(member.id, "personal", _jan(8)).used == 0

        machine.confirm(s.id)
        assert ledger.usage(member.id, "personal", _jan(8)).used == 1

        machine.cancel(s.id)
        assert ledger.usage(member.id, "personal", _jan(8)).used == 0


class TestRank:

    def test_rank_is_chronological_within_a_day(self, member, package, book):
        late = book(member, _jan(10), hour=18)
        early = book(member, _jan(10), hour=9)

        ledger = QuotaLedger()

        assert ledger.rank_of(early) == 1
        assert ledger.rank_of(late) == 2

    def test_ranks_are_strictly_increasing_and_bounded_by_used(self, member, package, book):
        sessions = [book(member, _jan(d), hour=h) for d, h in [(20, 9), (2, 15), (11, 11), (2, 9)]]
        ledger = QuotaLedger()
        used = ledger.usage(member.id, "personal", _jan(1)).used

        ordered = sorted(sessions, key=lambda s: (s.session_date, s.session_time))
        ranks = [ledger.rank_of(s) for s in ordered]

        assert ranks == [1, 2, 3, 4]
        assert all(1 <= r <= used for r in ranks)

    def test_requested_session_has_no_rank(self, member, package, machine, trainer):
        s = machine.create(trainer.id, member.id, "personal", _jan(8), time(9))

        assert QuotaLedger().rank_of(s) is None

    def test_rank_ignores_other_members_and_types(self, member, other_member, make_package, book):
        make_package(member)
        make_package(other_member)
        book(other_member, _jan(1))
        book(member, _jan(2), session_type="self")
        mine = book(member, _jan(3))

        assert QuotaLedger().rank_of(mine) == 1

    def test_overlapping_packages_rank_within_the_window_of_the_session_date(self, member, make_package, book):
        make_package(member, start=_jan(1), end=_jan(31), personal=10)
        make_package(member, start=_jan(20), end=date(2024, 2, 20), personal=4)
        book(member, _jan(5))
        both = book(member, _jan(25))
        late = book(member, date(2024, 2, 10))

        ledger = QuotaLedger()
        wide = ledger.usage(member.id, "personal", both.session_date)
        narrow = ledger.usage(member.id, "personal", late.session_date)

        # 01-25 counts from Jan 1, 02-10 only from Jan 20
        assert (ledger.rank_of(both), wide.used, wide.total) == (2, 3, 14)
        assert (ledger.rank_of(late), narrow.used, narrow.total) == (2, 2, 4)
