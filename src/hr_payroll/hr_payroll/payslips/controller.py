from __future__ import annotations

from flask import Flask

from ..common.http import current_actor, login_required, ok, optional_int_arg
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.payslip_service

    def _target_employee() -> int:
        actor = current_actor()
        if actor.is_admin:
            return optional_int_arg("employeeId") or actor.own_employee_id()
        return actor.own_employee_id()

    @app.route("/api/payslips/preview", methods=["GET"], endpoint="preview_payslip")
    @login_required
    def preview_payslip():
        actor = current_actor()
        calculation = service.preview(
            _target_employee(),
            actor_id=actor.user_id,
            ip_address=actor.ip_address,
            request_id=actor.request_id,
        )
        return ok(calculation)

    @app.route("/api/payslips/<int:period_id>", methods=["GET"], endpoint="get_payslip")
    @login_required
    def get_payslip(period_id: int):
        return ok(service.get_for_period(_target_employee(), period_id))
