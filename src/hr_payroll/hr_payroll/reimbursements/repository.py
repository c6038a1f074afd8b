from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import ReimbursementStatus
from .model import Reimbursement, ReimbursementChanges, ReimbursementQuery, StatusTotal


class ReimbursementRepository(Protocol):
    def get_by_id(self, reimbursement_id: int, *, employee_id: Optional[int] = None) -> Optional[Reimbursement]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        attendance_period_id: int,
        amount: Decimal,
        description: str,
        receipt_url: Optional[str],
        ip_address: Optional[str],
        created_by: int,
    ) -> Reimbursement:
        raise NotImplementedError

    def update(self, reimbursement_id: int, changes: ReimbursementChanges, *, updated_by: int) -> Reimbursement:
        raise NotImplementedError

    def set_status(self, reimbursement_id: int, *, status: ReimbursementStatus, updated_by: int) -> Reimbursement:
        raise NotImplementedError

    def delete(self, reimbursement_id: int) -> bool:
        raise NotImplementedError

    def list_page(self, query: ReimbursementQuery, *, offset: int, limit: int) -> Sequence[Reimbursement]:
        raise NotImplementedError

    def count(self, query: ReimbursementQuery) -> int:
        raise NotImplementedError

    def totals_by_status(self, *, attendance_period_id: Optional[int] = None) -> Sequence[StatusTotal]:
        raise NotImplementedError

    def sum_approved(self, *, employee_id: int, period_id: int) -> Decimal:
        raise NotImplementedError
