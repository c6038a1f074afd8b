from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller role used by the HTTP layer for access checks."""

    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class PeriodStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"


class OvertimeStatus(str, Enum):
    """Approval workflow of an overtime request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ReimbursementStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class SubmissionKind(str, Enum):
    """What an employee is trying to submit against the current period."""

    ATTENDANCE = "ATTENDANCE"
    OVERTIME = "OVERTIME"
    REIMBURSEMENT = "REIMBURSEMENT"
