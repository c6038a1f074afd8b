from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import ReimbursementStatus


@dataclass(frozen=True)
class Reimbursement:
    """Domain entity: an expense claim attached to a period (it has no date of its own)."""

    reimbursement_id: int
    employee_id: int
    attendance_period_id: int
    amount: Decimal
    description: str
    status: ReimbursementStatus
    receipt_url: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None


@dataclass(frozen=True)
class ReimbursementChanges:
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    receipt_url: Optional[str] = None


@dataclass(frozen=True)
class ReimbursementQuery:
    employee_id: Optional[int] = None
    attendance_period_id: Optional[int] = None
    status: Optional[ReimbursementStatus] = None


@dataclass(frozen=True)
class StatusTotal:
    status: ReimbursementStatus
    count: int
    total_amount: Decimal


@dataclass(frozen=True)
class ReimbursementSummary:
    by_status: list[StatusTotal]
    total_count: int
    total_amount: Decimal
