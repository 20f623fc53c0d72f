from typing import List, NamedTuple, Optional
from datetime import date

from models.package import Package
from scheduling.store import MemberDirectory, PackageStore


class Window(NamedTuple):
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class QuotaTotals(NamedTuple):
    total: int
    window: Optional[Window]


class PackageWindowResolver:
    """
    Answers "which purchased packages cover this member on this day".

    A member normally has one active package per date. Overlapping packages
    are tolerated: their per-type quotas are summed and the window becomes
    the widest span they cover together.
    """

    def __init__(self, packages: PackageStore = None, members: MemberDirectory = None):
        self.packages = packages or PackageStore()
        self.members = members or MemberDirectory()

    def active_packages_for(self, member_id, on_date, trainer_id=None) -> List[Package]:
        return self.packages.covering(member_id, on_date, trainer_id=trainer_id)

    def quota_totals(self, member_id, session_type, on_date, trainer_id=None) -> QuotaTotals:
        active = self.active_packages_for(member_id, on_date, trainer_id=trainer_id)
        if not active:
            return QuotaTotals(total=0, window=None)

        total = sum(p.quota_for(session_type) for p in active)
        window = Window(
            start=min(p.start_date for p in active),
            end=max(p.end_date for p in active),
        )
        return QuotaTotals(total=total, window=window)

    def bookable_members(self, trainer_id, on_date):
        # members the trainer can put on the board for that day
        member_ids = {p.member_id for p in self.packages.active_for_trainer(trainer_id, on_date)}
        return self.members.many(member_ids)
