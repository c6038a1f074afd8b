from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import (
    admin_required,
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
from ..core.enums import OvertimeStatus
from ..core.exceptions import ValidationError
from .model import NewOvertime, OvertimeChanges, OvertimeQuery


def _parse_status(value) -> OvertimeStatus:
    try:
        return OvertimeStatus(str(value or "").upper())
    except ValueError:
        raise ValidationError("Invalid overtime status")


def register(app: Flask, container: Container) -> None:
    service = container.overtime_service

    @app.route("/api/overtime", methods=["POST"], endpoint="create_overtime")
    @login_required
    def create_overtime():
        actor = current_actor()
        body = json_body()
        data = NewOvertime(
            work_date=parse_iso_date(body.get("date") or ""),
            start_time=body.get("startTime") or "",
            end_time=body.get("endTime") or "",
            hours_worked=body.get("hoursWorked"),
            reason=body.get("reason") or "",
            description=body.get("description"),
        )
        overtime = service.create(
            actor.own_employee_id(),
            data,
            actor_id=actor.user_id,
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(overtime, status=201, message="Overtime submitted")

    @app.route("/api/overtime", methods=["GET"], endpoint="list_overtime")
    @login_required
    def list_overtime():
        actor = current_actor()
        employee_id = actor.scope_employee_id()
        if employee_id is None:
            employee_id = optional_int_arg("employeeId")
        raw_status = request.args.get("status")
        query = OvertimeQuery(
            employee_id=employee_id,
            status=_parse_status(raw_status) if raw_status else None,
            from_date=optional_date_arg("fromDate"),
            to_date=optional_date_arg("toDate"),
        )
        return ok_page(service.find_all(query, page_request()))

    @app.route("/api/overtime/<int:overtime_id>", methods=["GET"], endpoint="get_overtime")
    @login_required
    def get_overtime(overtime_id: int):
        return ok(service.find_one(overtime_id, employee_id=current_actor().scope_employee_id()))

    @app.route("/api/overtime/<int:overtime_id>", methods=["PATCH"], endpoint="update_overtime")
    @login_required
    def update_overtime(overtime_id: int):
        actor = current_actor()
        body = json_body()
        changes = OvertimeChanges(
            start_time=body.get("startTime"),
            end_time=body.get("endTime"),
            hours_worked=body.get("hoursWorked"),
            reason=body.get("reason"),
            description=body.get("description"),
        )
        overtime = service.update(
            overtime_id,
            changes,
            actor_id=actor.user_id,
            employee_id=actor.scope_employee_id(),
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(overtime)

    @app.route("/api/overtime/<int:overtime_id>", methods=["DELETE"], endpoint="delete_overtime")
    @login_required
    def delete_overtime(overtime_id: int):
        actor = current_actor()
        result = service.remove(
            overtime_id,
            actor_id=actor.user_id,
            employee_id=actor.scope_employee_id(),
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(result)

    @app.route("/api/overtime/<int:overtime_id>/status", methods=["PATCH"], endpoint="update_overtime_status")
    @admin_required
    def update_overtime_status(overtime_id: int):
        actor = current_actor()
        overtime = service.update_status(
            overtime_id,
            _parse_status(json_body().get("status")),
            actor_id=actor.user_id,
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(overtime)
