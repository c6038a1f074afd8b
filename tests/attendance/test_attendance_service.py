from datetime import date, datetime

import pytest

from src.hr_payroll.hr_payroll.attendance.model import AttendanceQuery
from src.hr_payroll.hr_payroll.attendance.service import AttendanceService
from src.hr_payroll.hr_payroll.core.enums import AttendanceStatus, AuditAction
from src.hr_payroll.hr_payroll.core.exceptions import NotFoundError, ValidationError
from src.hr_payroll.hr_payroll.eligibility.gate import EligibilityGate

from hr_payroll_fakes import FakeAttendance, FixedClock, InMemoryUnitOfWork, RecordingAudit, make_employee, make_period

MORNING = datetime(2024, 6, 12, 8, 55)


@pytest.fixture()
def uow():
    return InMemoryUnitOfWork()


@pytest.fixture()
def audit():
    return RecordingAudit()


@pytest.fixture()
def service(uow, audit):
    clock = FixedClock(MORNING)
    return AttendanceService(uow, EligibilityGate(clock=clock), audit, clock=clock)


@pytest.fixture()
def june(uow):
    return make_period(uow, date(2024, 6, 1), date(2024, 6, 30))


def test_submit_creates_present_record(service, uow, audit, june):
    employee = make_employee(uow)
    record = service.submit(employee.employee_id, notes="  on site ", ip_address="10.0.0.5", request_id="req-1")

    assert record.status == AttendanceStatus.PRESENT
    assert record.work_date == date(2024, 6, 12)
    assert record.check_in_time == MORNING
    assert record.attendance_period_id == june.period_id
    assert record.notes == "on site"
    assert record.created_by == employee.employee_id

    assert len(audit.entries) == 1
    entry = audit.entries[0]
    assert entry["table_name"] == "attendances"
    assert entry["action"] == AuditAction.CREATE
    assert entry["record_id"] == record.attendance_id


def test_second_submit_same_day_returns_first_record(service, uow, audit, june):
    employee = make_employee(uow)
    first = service.submit(employee.employee_id)
    again = service.submit(employee.employee_id, now=datetime(2024, 6, 12, 16, 40))

    assert again == first
    assert uow.store.attendance.count(AttendanceQuery(employee_id=employee.employee_id)) == 1
    assert len(audit.entries) == 1


def test_concurrent_submit_returns_row_written_by_other_request(service, uow, audit, june, monkeypatch):
    employee = make_employee(uow)
    first = service.submit(employee.employee_id)

    # The next lookup misses the row, as a request that read before the other commit would.
    real_lookup = FakeAttendance.get_for_employee_and_date
    stale = {"pending": True}

    def lookup(self, employee_id, work_date):
        if stale["pending"]:
            stale["pending"] = False
            return None
        return real_lookup(self, employee_id, work_date)

    monkeypatch.setattr(FakeAttendance, "get_for_employee_and_date", lookup)

    again = service.submit(employee.employee_id, now=datetime(2024, 6, 12, 9, 1))

    assert stale["pending"] is False
    assert again == first
    assert uow.store.attendance.count(AttendanceQuery(employee_id=employee.employee_id)) == 1
    assert len(audit.entries) == 1


def test_submit_on_weekend_rejected(service, uow, june):
    employee = make_employee(uow)
    with pytest.raises(ValidationError, match="weekends"):
        service.submit(employee.employee_id, now=datetime(2024, 6, 15, 9, 0))
    assert uow.store.attendance.count(AttendanceQuery()) == 0


def test_summary_counts_and_rate(service, uow, june):
    employee = make_employee(uow)
    for day, status in (
        (date(2024, 6, 3), AttendanceStatus.PRESENT),
        (date(2024, 6, 4), AttendanceStatus.PRESENT),
        (date(2024, 6, 5), AttendanceStatus.ABSENT),
        (date(2024, 6, 6), AttendanceStatus.PRESENT),
    ):
        uow.store.attendance.add(
            employee_id=employee.employee_id,
            attendance_period_id=june.period_id,
            work_date=day,
            status=status,
        )

    summary = service.summary(employee.employee_id)
    assert (summary.total, summary.present, summary.absent) == (4, 3, 1)
    assert summary.attendance_rate == "75.00"

    narrowed = service.summary(employee.employee_id, start_date=date(2024, 6, 5))
    assert (narrowed.total, narrowed.present) == (2, 1)
    assert narrowed.attendance_rate == "50.00"


def test_summary_without_records_has_zero_rate(service, uow):
    employee = make_employee(uow)
    assert service.summary(employee.employee_id).attendance_rate == "0.00"


def test_find_one_is_scoped_to_employee(service, uow, june):
    owner = make_employee(uow)
    other = make_employee(uow)
    record = service.submit(owner.employee_id)

    assert service.find_one(record.attendance_id, employee_id=owner.employee_id) == record
    with pytest.raises(NotFoundError, match="Attendance record not found"):
        service.find_one(record.attendance_id, employee_id=other.employee_id)


def test_find_by_period(service, uow, june):
    employee = make_employee(uow)
    service.submit(employee.employee_id)
    assert len(service.find_by_period(june.period_id)) == 1
    with pytest.raises(NotFoundError, match="Attendance period not found"):
        service.find_by_period(999)
