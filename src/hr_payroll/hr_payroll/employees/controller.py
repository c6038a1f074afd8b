from __future__ import annotations

from flask import Flask, request

from ..common.http import admin_required, current_actor, json_body, ok, ok_page, page_request
from ..container import Container
from ..core.enums import EmployeeStatus
from ..core.exceptions import ValidationError
from .model import EmployeeChanges, NewEmployee


def _parse_status(value):
    if value is None:
        return None
    try:
        return EmployeeStatus(str(value).upper())
    except ValueError:
        raise ValidationError("status must be ACTIVE or INACTIVE")


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    @admin_required
    def create_employee():
        body = json_body()
        data = NewEmployee(
            full_name=body.get("fullName") or "",
            employee_number=body.get("employeeNumber") or "",
            email=body.get("email") or "",
            monthly_salary=body.get("monthlySalary"),
            department=body.get("department"),
            position=body.get("position"),
            status=_parse_status(body.get("status")) or EmployeeStatus.ACTIVE,
        )
        employee = service.create(data, created_by=current_actor().user_id)
        return ok(employee, status=201, message="Employee created")

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    @admin_required
    def list_employees():
        return ok_page(service.find_all(search=request.args.get("search"), page=page_request()))

    @app.route("/api/employees/<int:employee_id>", methods=["GET"], endpoint="get_employee")
    @admin_required
    def get_employee(employee_id: int):
        return ok(service.find_one(employee_id))

    @app.route("/api/employees/<int:employee_id>", methods=["PATCH"], endpoint="update_employee")
    @admin_required
    def update_employee(employee_id: int):
        body = json_body()
        changes = EmployeeChanges(
            full_name=body.get("fullName"),
            email=body.get("email"),
            department=body.get("department"),
            position=body.get("position"),
            monthly_salary=body.get("monthlySalary"),
            status=_parse_status(body.get("status")),
        )
        return ok(service.update(employee_id, changes, updated_by=current_actor().user_id))

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="delete_employee")
    @admin_required
    def delete_employee(employee_id: int):
        return ok(service.remove(employee_id, deleted_by=current_actor().user_id))
