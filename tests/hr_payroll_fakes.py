"""In-memory repositories shared by the service tests.

They keep the same contracts as the MySQL repositories (including UNIQUE
constraints) so services can be tested without a database.
"""
from __future__ import annotations

import copy
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar

from src.hr_payroll.hr_payroll.attendance.model import AttendanceQuery, AttendanceRecord
from src.hr_payroll.hr_payroll.core.enums import (
    AttendanceStatus,
    EmployeeStatus,
    OvertimeStatus,
    PeriodStatus,
    ReimbursementStatus,
)
from src.hr_payroll.hr_payroll.core.exceptions import ConflictError, DuplicateCodeError
from src.hr_payroll.hr_payroll.database.unit_of_work import Store
from src.hr_payroll.hr_payroll.employees.model import Employee, EmployeeChanges, NewEmployee
from src.hr_payroll.hr_payroll.overtime.model import NewOvertime, OvertimeChanges, OvertimeQuery, OvertimeRequest
from src.hr_payroll.hr_payroll.payroll.model import PayrollCalculation, Payslip
from src.hr_payroll.hr_payroll.periods.model import AttendancePeriod, PeriodChanges, PeriodDependents
from src.hr_payroll.hr_payroll.reimbursements.model import (
    Reimbursement,
    ReimbursementChanges,
    ReimbursementQuery,
    StatusTotal,
)

T = TypeVar("T")


def _latest(codes, prefix: str) -> Optional[str]:
    matching = [c for c in codes if c.startswith(prefix)]
    if not matching:
        return None
    return max(matching, key=lambda c: (len(c), c))


class _Table:
    def __init__(self):
        self.rows: dict = {}
        self._next_id = 1

    def next_id(self) -> int:
        rid = self._next_id
        self._next_id += 1
        return rid


class FakePeriods(_Table):
    def __init__(self):
        super().__init__()
        self.dependents: dict[int, PeriodDependents] = {}

    def add(self, **kwargs) -> AttendancePeriod:
        pid = self.next_id()
        period = AttendancePeriod(
            period_id=pid,
            name=kwargs.pop("name", f"Period {pid}"),
            status=kwargs.pop("status", PeriodStatus.ACTIVE),
            is_active=kwargs.pop("is_active", True),
            **kwargs,
        )
        self.rows[pid] = period
        return period

    def get_by_id(self, period_id):
        return self.rows.get(int(period_id))

    def get_current(self):
        return next((p for p in self.rows.values() if p.is_active), None)

    def find_active_containing(self, day):
        return next(
            (p for p in self.rows.values() if p.is_active and p.status == PeriodStatus.ACTIVE and p.contains(day)),
            None,
        )

    def find_overlapping(self, *, start_date, end_date):
        return next(
            (p for p in self.rows.values() if p.status != PeriodStatus.CLOSED and p.overlaps(start_date, end_date)),
            None,
        )

    def list_page(self, *, offset, limit):
        ordered = sorted(self.rows.values(), key=lambda p: p.start_date, reverse=True)
        return ordered[offset:offset + limit]

    def count(self):
        return len(self.rows)

    def list_processed_page(self, *, offset, limit):
        processed = [p for p in self.rows.values() if p.payroll_processed]
        processed.sort(key=lambda p: p.processed_at, reverse=True)
        return processed[offset:offset + limit]

    def count_processed(self):
        return sum(1 for p in self.rows.values() if p.payroll_processed)

    def lock_active(self):
        return None

    def deactivate_all(self, *, except_id=None):
        changed = 0
        for pid, p in list(self.rows.items()):
            if p.is_active and pid != except_id:
                self.rows[pid] = replace(p, is_active=False)
                changed += 1
        return changed

    def _check_single_active(self):
        if sum(1 for p in self.rows.values() if p.is_active) > 1:
            raise ConflictError("Another period is already active")

    def create(self, *, name, start_date, end_date, is_active, created_by):
        period = self.add(
            name=name,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
            created_by=created_by,
        )
        self._check_single_active()
        return period

    def update(self, period_id, changes: PeriodChanges, *, updated_by):
        period = self.rows[int(period_id)]
        values = {k: v for k, v in vars(changes).items() if v is not None}
        self.rows[period.period_id] = replace(period, updated_by=updated_by, **values)
        self._check_single_active()
        return self.rows[period.period_id]

    def mark_processed(self, period_id, *, processed_at, processed_by):
        period = self.rows[int(period_id)]
        if period.payroll_processed:
            return False
        self.rows[period.period_id] = replace(
            period,
            payroll_processed=True,
            processed_at=processed_at,
            processed_by=processed_by,
        )
        return True

    def count_dependents(self, period_id):
        return self.dependents.get(int(period_id), PeriodDependents())

    def delete(self, period_id):
        return self.rows.pop(int(period_id), None) is not None


class FakeEmployees(_Table):
    def __init__(self):
        super().__init__()
        self.taken_codes: set[str] = set()

    def add(self, **kwargs) -> Employee:
        eid = self.next_id()
        employee = Employee(
            employee_id=eid,
            employee_code=kwargs.pop("employee_code", f"EMP0000{eid:03d}"),
            full_name=kwargs.pop("full_name", f"Employee {eid}"),
            employee_number=kwargs.pop("employee_number", f"N{eid}"),
            email=kwargs.pop("email", f"e{eid}@example.com"),
            monthly_salary=kwargs.pop("monthly_salary", Decimal("5000")),
            **kwargs,
        )
        self.rows[eid] = employee
        return employee

    def get_by_id(self, employee_id):
        return self.rows.get(int(employee_id))

    def find_by_email_or_number(self, *, email, employee_number):
        return next(
            (e for e in self.rows.values() if e.email == email or e.employee_number == employee_number),
            None,
        )

    def find_by_email(self, email, *, exclude_id=None):
        return next((e for e in self.rows.values() if e.email == email and e.employee_id != exclude_id), None)

    def latest_code_with_prefix(self, prefix):
        return _latest([e.employee_code for e in self.rows.values()], prefix)

    def list_by_status(self, *, status, employee_ids=None):
        rows = [e for e in self.rows.values() if e.status == status]
        if employee_ids is not None:
            wanted = {int(i) for i in employee_ids}
            rows = [e for e in rows if e.employee_id in wanted]
        return sorted(rows, key=lambda e: e.employee_id)

    def _matches(self, employee, search):
        if not search:
            return True
        needle = search.lower()
        return any(needle in (v or "").lower() for v in (employee.full_name, employee.email, employee.employee_number))

    def search_page(self, *, search, offset, limit):
        rows = [e for e in self.rows.values() if self._matches(e, search)]
        return rows[offset:offset + limit]

    def count_search(self, *, search):
        return sum(1 for e in self.rows.values() if self._matches(e, search))

    def count_by_status(self, status):
        return sum(1 for e in self.rows.values() if e.status == status)

    def create(self, data: NewEmployee, *, employee_code, created_by):
        codes = {e.employee_code for e in self.rows.values()} | self.taken_codes
        if employee_code in codes:
            self.taken_codes.discard(employee_code)
            # the racing writer's row becomes visible on the next read
            self.add(employee_code=employee_code, email=f"racer-{employee_code}@example.com")
            raise DuplicateCodeError(employee_code)
        return self.add(
            employee_code=employee_code,
            full_name=data.full_name,
            employee_number=data.employee_number,
            email=data.email,
            monthly_salary=data.monthly_salary,
            status=data.status,
            department=data.department,
            position=data.position,
        )

    def update(self, employee_id, changes: EmployeeChanges, *, updated_by):
        employee = self.rows[int(employee_id)]
        values = {k: v for k, v in vars(changes).items() if v is not None}
        self.rows[employee.employee_id] = replace(employee, **values)
        return self.rows[employee.employee_id]

    def delete(self, employee_id):
        return self.rows.pop(int(employee_id), None) is not None


class FakeAttendance(_Table):
    def add(self, *, employee_id, attendance_period_id, work_date, status=AttendanceStatus.PRESENT):
        return self.create(
            employee_id=employee_id,
            attendance_period_id=attendance_period_id,
            work_date=work_date,
            check_in_time=datetime.combine(work_date, datetime.min.time()).replace(hour=8),
            status=status,
            notes=None,
            ip_address=None,
            created_by=employee_id,
        )

    def get_by_id(self, attendance_id, *, employee_id=None):
        record = self.rows.get(int(attendance_id))
        if record and employee_id is not None and record.employee_id != employee_id:
            return None
        return record

    def get_for_employee_and_date(self, employee_id, work_date):
        return next(
            (r for r in self.rows.values() if r.employee_id == employee_id and r.work_date == work_date),
            None,
        )

    def create(self, *, employee_id, attendance_period_id, work_date, check_in_time, status, notes, ip_address, created_by):
        if self.get_for_employee_and_date(employee_id, work_date):
            raise ConflictError("Attendance already submitted for this date")
        aid = self.next_id()
        record = AttendanceRecord(
            attendance_id=aid,
            employee_id=employee_id,
            attendance_period_id=attendance_period_id,
            work_date=work_date,
            check_in_time=check_in_time,
            status=status,
            notes=notes,
            ip_address=ip_address,
            created_by=created_by,
        )
        self.rows[aid] = record
        return record

    def _filter(self, query: AttendanceQuery):
        out = []
        for r in self.rows.values():
            if query.employee_id is not None and r.employee_id != query.employee_id:
                continue
            if query.attendance_period_id is not None and r.attendance_period_id != query.attendance_period_id:
                continue
            if query.start_date is not None and r.work_date < query.start_date:
                continue
            if query.end_date is not None and r.work_date > query.end_date:
                continue
            if query.status is not None and r.status != query.status:
                continue
            out.append(r)
        return out

    def list_page(self, query, *, offset, limit):
        return sorted(self._filter(query), key=lambda r: r.work_date, reverse=True)[offset:offset + limit]

    def count(self, query):
        return len(self._filter(query))

    def list_for_period(self, period_id, *, employee_id=None):
        return sorted(
            self._filter(AttendanceQuery(attendance_period_id=period_id, employee_id=employee_id)),
            key=lambda r: r.work_date,
        )

    def count_present(self, *, employee_id, period_id):
        return self.count(
            AttendanceQuery(employee_id=employee_id, attendance_period_id=period_id, status=AttendanceStatus.PRESENT)
        )


class FakeOvertime(_Table):
    def add(self, *, employee_id, attendance_period_id, work_date, hours="2", status=OvertimeStatus.PENDING):
        oid = self.next_id()
        overtime = OvertimeRequest(
            overtime_id=oid,
            employee_id=employee_id,
            attendance_period_id=attendance_period_id,
            work_date=work_date,
            start_time="18:00",
            end_time="20:00",
            hours_worked=Decimal(hours),
            reason="Release",
            status=status,
        )
        self.rows[oid] = overtime
        return overtime

    def get_by_id(self, overtime_id, *, employee_id=None):
        overtime = self.rows.get(int(overtime_id))
        if overtime and employee_id is not None and overtime.employee_id != employee_id:
            return None
        return overtime

    def get_for_employee_and_date(self, employee_id, work_date):
        return next(
            (o for o in self.rows.values() if o.employee_id == employee_id and o.work_date == work_date),
            None,
        )

    def create(self, data: NewOvertime, *, employee_id, attendance_period_id, has_attendance, submitted_at, ip_address, created_by):
        if self.get_for_employee_and_date(employee_id, data.work_date):
            raise ConflictError("Overtime record already exists for this date")
        oid = self.next_id()
        overtime = OvertimeRequest(
            overtime_id=oid,
            employee_id=employee_id,
            attendance_period_id=attendance_period_id,
            work_date=data.work_date,
            start_time=data.start_time,
            end_time=data.end_time,
            hours_worked=data.hours_worked,
            reason=data.reason,
            status=OvertimeStatus.PENDING,
            has_attendance=has_attendance,
            description=data.description,
            submitted_at=submitted_at,
            ip_address=ip_address,
            created_by=created_by,
        )
        self.rows[oid] = overtime
        return overtime

    def update(self, overtime_id, changes: OvertimeChanges, *, updated_by, ip_address=None):
        overtime = self.rows[int(overtime_id)]
        values = {k: v for k, v in vars(changes).items() if v is not None}
        self.rows[overtime.overtime_id] = replace(overtime, updated_by=updated_by, **values)
        return self.rows[overtime.overtime_id]

    def set_status(self, overtime_id, *, status, changed_at, updated_by):
        overtime = self.rows[int(overtime_id)]
        if status == OvertimeStatus.APPROVED:
            updated = replace(overtime, status=status, approved_at=changed_at, approved_by=updated_by)
        else:
            updated = replace(overtime, status=status, cancelled_at=changed_at)
        self.rows[overtime.overtime_id] = replace(updated, updated_by=updated_by)
        return self.rows[overtime.overtime_id]

    def delete(self, overtime_id):
        return self.rows.pop(int(overtime_id), None) is not None

    def _filter(self, query: OvertimeQuery):
        return [
            o
            for o in self.rows.values()
            if (query.employee_id is None or o.employee_id == query.employee_id)
            and (query.status is None or o.status == query.status)
            and (query.from_date is None or o.work_date >= query.from_date)
            and (query.to_date is None or o.work_date <= query.to_date)
        ]

    def list_page(self, query, *, offset, limit):
        return self._filter(query)[offset:offset + limit]

    def count(self, query):
        return len(self._filter(query))

    def sum_approved_hours(self, *, employee_id, period_id):
        return sum(
            (
                o.hours_worked
                for o in self.rows.values()
                if o.employee_id == employee_id
                and o.attendance_period_id == period_id
                and o.status == OvertimeStatus.APPROVED
            ),
            Decimal("0"),
        )


class FakeReimbursements(_Table):
    def __init__(self):
        super().__init__()
        self.create_calls = 0

    def add(self, *, employee_id, attendance_period_id, amount, status=ReimbursementStatus.PENDING):
        rid = self.next_id()
        reimbursement = Reimbursement(
            reimbursement_id=rid,
            employee_id=employee_id,
            attendance_period_id=attendance_period_id,
            amount=Decimal(amount),
            description="Taxi",
            status=status,
        )
        self.rows[rid] = reimbursement
        return reimbursement

    def get_by_id(self, reimbursement_id, *, employee_id=None):
        reimbursement = self.rows.get(int(reimbursement_id))
        if reimbursement and employee_id is not None and reimbursement.employee_id != employee_id:
            return None
        return reimbursement

    def create(self, *, employee_id, attendance_period_id, amount, description, receipt_url, ip_address, created_by):
        self.create_calls += 1
        rid = self.next_id()
        reimbursement = Reimbursement(
            reimbursement_id=rid,
            employee_id=employee_id,
            attendance_period_id=attendance_period_id,
            amount=amount,
            description=description,
            status=ReimbursementStatus.PENDING,
            receipt_url=receipt_url,
            ip_address=ip_address,
            created_by=created_by,
        )
        self.rows[rid] = reimbursement
        return reimbursement

    def update(self, reimbursement_id, changes: ReimbursementChanges, *, updated_by):
        reimbursement = self.rows[int(reimbursement_id)]
        values = {k: v for k, v in vars(changes).items() if v is not None}
        self.rows[reimbursement.reimbursement_id] = replace(reimbursement, updated_by=updated_by, **values)
        return self.rows[reimbursement.reimbursement_id]

    def set_status(self, reimbursement_id, *, status, updated_by):
        reimbursement = self.rows[int(reimbursement_id)]
        self.rows[reimbursement.reimbursement_id] = replace(reimbursement, status=status, updated_by=updated_by)
        return self.rows[reimbursement.reimbursement_id]

    def delete(self, reimbursement_id):
        return self.rows.pop(int(reimbursement_id), None) is not None

    def _filter(self, query: ReimbursementQuery):
        return [
            r
            for r in self.rows.values()
            if (query.employee_id is None or r.employee_id == query.employee_id)
            and (query.attendance_period_id is None or r.attendance_period_id == query.attendance_period_id)
            and (query.status is None or r.status == query.status)
        ]

    def list_page(self, query, *, offset, limit):
        return self._filter(query)[offset:offset + limit]

    def count(self, query):
        return len(self._filter(query))

    def totals_by_status(self, *, attendance_period_id=None):
        rows = self._filter(ReimbursementQuery(attendance_period_id=attendance_period_id))
        out = []
        for status in sorted({r.status for r in rows}, key=lambda s: s.value):
            matching = [r for r in rows if r.status == status]
            out.append(
                StatusTotal(
                    status=status,
                    count=len(matching),
                    total_amount=sum((r.amount for r in matching), Decimal("0")),
                )
            )
        return out

    def sum_approved(self, *, employee_id, period_id):
        return sum(
            (
                r.amount
                for r in self.rows.values()
                if r.employee_id == employee_id
                and r.attendance_period_id == period_id
                and r.status == ReimbursementStatus.APPROVED
            ),
            Decimal("0"),
        )


class FakePayslips(_Table):
    def __init__(self):
        super().__init__()
        self.fail_for: set[int] = set()

    def get_for_employee_and_period(self, *, employee_id, period_id):
        return next(
            (p for p in self.rows.values() if p.employee_id == employee_id and p.attendance_period_id == period_id),
            None,
        )

    def latest_number_with_prefix(self, prefix):
        return _latest([p.payslip_number for p in self.rows.values()], prefix)

    def create(self, calculation: PayrollCalculation, *, period_id, payslip_number, generated_at, created_by):
        if calculation.employee_id in self.fail_for:
            raise RuntimeError("disk full")
        if any(p.payslip_number == payslip_number for p in self.rows.values()):
            raise DuplicateCodeError(payslip_number)
        if self.get_for_employee_and_period(employee_id=calculation.employee_id, period_id=period_id):
            raise ConflictError("Payslip already exists for this period")
        pid = self.next_id()
        payslip = Payslip(
            payslip_id=pid,
            employee_id=calculation.employee_id,
            attendance_period_id=period_id,
            payslip_number=payslip_number,
            base_salary=calculation.base_salary,
            working_days=calculation.working_days,
            attended_days=calculation.attended_days,
            prorated_salary=calculation.prorated_salary,
            total_overtime_hours=calculation.overtime_hours,
            overtime_rate=calculation.overtime_rate,
            total_overtime_pay=calculation.overtime_pay,
            total_reimbursements=calculation.reimbursements,
            gross_pay=calculation.gross_pay,
            deductions=calculation.deductions,
            net_pay=calculation.net_pay,
            generated_at=generated_at,
            created_by=created_by,
        )
        self.rows[pid] = payslip
        return payslip

    def list_for_period(self, period_id):
        return [p for p in self.rows.values() if p.attendance_period_id == period_id]

    def count_for_period(self, period_id):
        return len(self.list_for_period(period_id))


class InMemoryUnitOfWork:
    """Runs ``work`` against the shared fakes and restores their state when it raises."""

    def __init__(self, store: Optional[Store] = None):
        self.store = store or Store(
            periods=FakePeriods(),
            employees=FakeEmployees(),
            attendance=FakeAttendance(),
            overtime=FakeOvertime(),
            reimbursements=FakeReimbursements(),
            payslips=FakePayslips(),
        )
        self.runs = 0
        self.active = False

    def run(self, work: Callable[[Store], T]) -> T:
        self.runs += 1
        tables = [getattr(self.store, name) for name in ("periods", "employees", "attendance", "overtime", "reimbursements", "payslips")]
        saved = [copy.deepcopy(vars(t)) for t in tables]
        self.active = True
        try:
            return work(self.store)
        except Exception:
            for table, state in zip(tables, saved):
                vars(table).clear()
                vars(table).update(state)
            raise
        finally:
            self.active = False


def record_calls(monkeypatch, uow: InMemoryUnitOfWork, table_cls, *names: str) -> list:
    """Patch ``names`` on ``table_cls`` to log ``(name, uow.active)`` for every call."""
    calls = []
    for name in names:
        original = getattr(table_cls, name)

        def wrapper(self, *args, _name=name, _original=original, **kwargs):
            calls.append((_name, uow.active))
            return _original(self, *args, **kwargs)

        monkeypatch.setattr(table_cls, name, wrapper)
    return calls


class RecordingAudit:
    def __init__(self):
        self.entries: list[dict] = []

    def log_audit(self, table_name, record_id, action, old_values=None, new_values=None, user_id=None, ip_address=None, request_id=None):
        self.entries.append(
            {
                "table_name": table_name,
                "record_id": record_id,
                "action": action,
                "old_values": old_values,
                "new_values": new_values,
                "user_id": user_id,
            }
        )


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class ExplodingRepository:
    """Fails the test as soon as anything touches it."""

    def __getattr__(self, name):
        raise AssertionError(f"store accessed: {name}")


def exploding_store() -> Store:
    return Store(
        periods=ExplodingRepository(),
        employees=ExplodingRepository(),
        attendance=ExplodingRepository(),
        overtime=ExplodingRepository(),
        reimbursements=ExplodingRepository(),
        payslips=ExplodingRepository(),
    )


def make_period(uow: InMemoryUnitOfWork, start: date, end: date, **kwargs) -> AttendancePeriod:
    return uow.store.periods.add(start_date=start, end_date=end, **kwargs)


def make_employee(uow: InMemoryUnitOfWork, **kwargs) -> Employee:
    kwargs.setdefault("status", EmployeeStatus.ACTIVE)
    return uow.store.employees.add(**kwargs)
