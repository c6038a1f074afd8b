from __future__ import annotations

from flask import Flask, request

from ..common.http import (
    current_actor,
    json_body,
    login_required,
    ok,
    ok_page,
    optional_date_arg,
    optional_int_arg,
    page_request,
)
from ..container import Container
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import AttendanceQuery


def _status_arg():
    raw = request.args.get("status")
    if not raw:
        return None
    try:
        return AttendanceStatus(raw.upper())
    except ValueError:
        raise ValidationError("status must be PRESENT or ABSENT")


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="submit_attendance")
    @login_required
    def submit_attendance():
        actor = current_actor()
        record = service.submit(
            actor.own_employee_id(),
            notes=json_body().get("notes"),
            actor_id=actor.user_id,
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(record, status=201, message="Attendance submitted")

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    @login_required
    def list_attendance():
        actor = current_actor()
        employee_id = actor.scope_employee_id()
        if employee_id is None:
            employee_id = optional_int_arg("employeeId")
        query = AttendanceQuery(
            employee_id=employee_id,
            attendance_period_id=optional_int_arg("periodId"),
            start_date=optional_date_arg("startDate"),
            end_date=optional_date_arg("endDate"),
            status=_status_arg(),
        )
        return ok_page(service.find_all(query, page_request()))

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    @login_required
    def attendance_summary():
        actor = current_actor()
        employee_id = actor.scope_employee_id() or optional_int_arg("employeeId")
        if employee_id is None:
            raise ValidationError("employeeId is required")
        summary = service.summary(
            employee_id,
            start_date=optional_date_arg("startDate"),
            end_date=optional_date_arg("endDate"),
        )
        return ok(
            {
                "total": summary.total,
                "present": summary.present,
                "absent": summary.absent,
                "attendanceRate": summary.attendance_rate,
            }
        )

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="get_attendance")
    @login_required
    def get_attendance(attendance_id: int):
        return ok(service.find_one(attendance_id, employee_id=current_actor().scope_employee_id()))

    @app.route("/api/attendance/period/<int:period_id>", methods=["GET"], endpoint="attendance_by_period")
    @login_required
    def attendance_by_period(period_id: int):
        return ok(service.find_by_period(period_id, employee_id=current_actor().scope_employee_id()))
