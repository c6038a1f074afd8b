from __future__ import annotations

from typing import Optional

from flask import Flask

from ..common.http import admin_required, current_actor, json_body, ok, ok_page, page_request
from ..container import Container
from ..core.exceptions import ValidationError


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _period_id(body: dict) -> int:
    value = body.get("periodId")
    if value is None:
        raise ValidationError("periodId is required")
    period_id = _as_int(value)
    if period_id is None:
        raise ValidationError("periodId must be an integer")
    return period_id


def _employee_ids(body: dict) -> Optional[list[int]]:
    value = body.get("employeeIds")
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValidationError("employeeIds must be a list")
    ids = [_as_int(item) for item in value]
    if any(item is None for item in ids):
        raise ValidationError("employeeIds must be a list of integers")
    return ids


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    @app.route("/api/payroll/process", methods=["POST"], endpoint="process_payroll")
    @admin_required
    def process_payroll():
        actor = current_actor()
        body = json_body()
        period_id = _period_id(body)
        employee_ids = _employee_ids(body)

        result = service.process_payroll(
            period_id,
            employee_ids,
            processed_by=actor.user_id,
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(result, message=f"Processed {result.processed_successfully} of {result.total_employees} employees")

    @app.route("/api/payroll/summary/<int:period_id>", methods=["GET"], endpoint="payroll_summary")
    @admin_required
    def payroll_summary(period_id: int):
        return ok(service.get_summary(period_id))

    @app.route("/api/payroll/status/<int:period_id>", methods=["GET"], endpoint="payroll_status")
    @admin_required
    def payroll_status(period_id: int):
        return ok(service.get_status(period_id))

    @app.route("/api/payroll/history", methods=["GET"], endpoint="payroll_history")
    @admin_required
    def payroll_history():
        return ok_page(service.get_history(page_request()))
