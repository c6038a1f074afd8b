from __future__ import annotations

from flask import Flask, request

from ..common.http import (
    admin_required,
    current_actor,
    json_body,
    login_required,
    ok,
    ok_page,
    optional_int_arg,
    page_request,
)
from ..container import Container
from ..core.enums import ReimbursementStatus
from ..core.exceptions import ValidationError
from .model import ReimbursementChanges, ReimbursementQuery


def _parse_status(value) -> ReimbursementStatus:
    try:
        return ReimbursementStatus(str(value or "").upper())
    except ValueError:
        raise ValidationError("Invalid reimbursement status")


def register(app: Flask, container: Container) -> None:
    service = container.reimbursement_service

    @app.route("/api/reimbursements", methods=["POST"], endpoint="create_reimbursement")
    @login_required
    def create_reimbursement():
        actor = current_actor()
        body = json_body()
        period_id = body.get("attendancePeriodId")
        if period_id is None:
            raise ValidationError("attendancePeriodId is required")
        reimbursement = service.create(
            actor.own_employee_id(),
            attendance_period_id=int(period_id),
            amount=body.get("amount"),
            description=body.get("description") or "",
            receipt_url=body.get("receiptUrl"),
            actor_id=actor.user_id,
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(reimbursement, status=201, message="Reimbursement submitted")

    @app.route("/api/reimbursements", methods=["GET"], endpoint="list_reimbursements")
    @login_required
    def list_reimbursements():
        actor = current_actor()
        employee_id = actor.scope_employee_id()
        if employee_id is None:
            employee_id = optional_int_arg("employeeId")
        raw_status = request.args.get("status")
        query = ReimbursementQuery(
            employee_id=employee_id,
            attendance_period_id=optional_int_arg("periodId"),
            status=_parse_status(raw_status) if raw_status else None,
        )
        return ok_page(service.find_all(query, page_request()))

    @app.route("/api/reimbursements/summary", methods=["GET"], endpoint="reimbursement_summary")
    @admin_required
    def reimbursement_summary():
        return ok(service.summary(attendance_period_id=optional_int_arg("periodId")))

    @app.route("/api/reimbursements/<int:reimbursement_id>", methods=["GET"], endpoint="get_reimbursement")
    @login_required
    def get_reimbursement(reimbursement_id: int):
        return ok(service.find_one(reimbursement_id, employee_id=current_actor().scope_employee_id()))

    @app.route("/api/reimbursements/<int:reimbursement_id>", methods=["PATCH"], endpoint="update_reimbursement")
    @login_required
    def update_reimbursement(reimbursement_id: int):
        actor = current_actor()
        body = json_body()
        changes = ReimbursementChanges(
            amount=body.get("amount"),
            description=body.get("description"),
            receipt_url=body.get("receiptUrl"),
        )
        reimbursement = service.update(
            reimbursement_id,
            changes,
            actor_id=actor.user_id,
            employee_id=actor.scope_employee_id(),
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(reimbursement)

    @app.route("/api/reimbursements/<int:reimbursement_id>", methods=["DELETE"], endpoint="delete_reimbursement")
    @login_required
    def delete_reimbursement(reimbursement_id: int):
        actor = current_actor()
        result = service.remove(
            reimbursement_id,
            actor_id=actor.user_id,
            employee_id=actor.scope_employee_id(),
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(result)

    @app.route(
        "/api/reimbursements/<int:reimbursement_id>/status",
        methods=["PATCH"],
        endpoint="update_reimbursement_status",
    )
    @admin_required
    def update_reimbursement_status(reimbursement_id: int):
        actor = current_actor()
        reimbursement = service.update_status(
            reimbursement_id,
            _parse_status(json_body().get("status")),
            actor_id=actor.user_id,
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(reimbursement)
