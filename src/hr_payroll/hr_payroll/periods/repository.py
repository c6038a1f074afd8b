from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendancePeriod, PeriodChanges, PeriodDependents


class PeriodRepository(Protocol):
    """Repository interface for AttendancePeriod.

    Every two-step write (deactivate others, then activate) is expected to run
    inside a single ``UnitOfWork.run`` call.
    """

    def get_by_id(self, period_id: int) -> Optional[AttendancePeriod]:
        raise NotImplementedError

    def get_current(self) -> Optional[AttendancePeriod]:
        """The unique period with is_active = true."""

        raise NotImplementedError

    def find_active_containing(self, day: date) -> Optional[AttendancePeriod]:
        """Active (is_active, status ACTIVE) period whose range contains ``day``."""

        raise NotImplementedError

    def find_overlapping(self, *, start_date: date, end_date: date) -> Optional[AttendancePeriod]:
        """First non-CLOSED period whose range overlaps [start_date, end_date]."""

        raise NotImplementedError

    def list_page(self, *, offset: int, limit: int) -> Sequence[AttendancePeriod]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def list_processed_page(self, *, offset: int, limit: int) -> Sequence[AttendancePeriod]:
        raise NotImplementedError

    def count_processed(self) -> int:
        raise NotImplementedError

    def lock_active(self) -> None:
        """Take a write lock on the currently active row(s) for this transaction."""

        raise NotImplementedError

    def deactivate_all(self, *, except_id: Optional[int] = None) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        start_date: date,
        end_date: date,
        is_active: bool,
        created_by: int,
    ) -> AttendancePeriod:
        raise NotImplementedError

    def update(self, period_id: int, changes: PeriodChanges, *, updated_by: int) -> AttendancePeriod:
        raise NotImplementedError

    def mark_processed(self, period_id: int, *, processed_at: datetime, processed_by: int) -> bool:
        raise NotImplementedError

    def count_dependents(self, period_id: int) -> PeriodDependents:
        raise NotImplementedError

    def delete(self, period_id: int) -> bool:
        raise NotImplementedError
