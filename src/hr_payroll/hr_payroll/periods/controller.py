from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.http import admin_required, current_actor, json_body, login_required, ok, ok_page, page_request
from ..container import Container
from ..core.enums import PeriodStatus
from ..core.exceptions import ValidationError
from .model import PeriodChanges


def _optional_date(body: dict, key: str):
    value = body.get(key)
    return parse_iso_date(value) if value else None


def _optional_bool(body: dict, key: str, default=None):
    value = body.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean")
    return value


def _parse_status(value):
    if value is None:
        return None
    try:
        return PeriodStatus(str(value).upper())
    except ValueError:
        raise ValidationError("status must be ACTIVE or CLOSED")


def register(app: Flask, container: Container) -> None:
    service = container.period_service

    @app.route("/api/attendance-periods", methods=["POST"], endpoint="create_period")
    @admin_required
    def create_period():
        body = json_body()
        period = service.create(
            name=body.get("name") or "",
            start_date=parse_iso_date(body.get("startDate") or ""),
            end_date=parse_iso_date(body.get("endDate") or ""),
            is_active=_optional_bool(body, "isActive", True),
            created_by=current_actor().user_id,
        )
        return ok(period, status=201, message="Attendance period created")

    @app.route("/api/attendance-periods", methods=["GET"], endpoint="list_periods")
    @login_required
    def list_periods():
        return ok_page(service.find_all(page_request()))

    @app.route("/api/attendance-periods/current", methods=["GET"], endpoint="current_period")
    @login_required
    def current_period():
        return ok(service.find_current())

    @app.route("/api/attendance-periods/<int:period_id>", methods=["GET"], endpoint="get_period")
    @login_required
    def get_period(period_id: int):
        return ok(service.find_one(period_id))

    @app.route("/api/attendance-periods/<int:period_id>", methods=["PATCH"], endpoint="update_period")
    @admin_required
    def update_period(period_id: int):
        body = json_body()
        changes = PeriodChanges(
            name=body.get("name"),
            start_date=_optional_date(body, "startDate"),
            end_date=_optional_date(body, "endDate"),
            is_active=_optional_bool(body, "isActive"),
            status=_parse_status(body.get("status")),
        )
        return ok(service.update(period_id, changes, updated_by=current_actor().user_id))

    @app.route("/api/attendance-periods/<int:period_id>/close", methods=["POST"], endpoint="close_period")
    @admin_required
    def close_period(period_id: int):
        return ok(service.close(period_id, updated_by=current_actor().user_id), message="Attendance period closed")

    @app.route("/api/attendance-periods/<int:period_id>", methods=["DELETE"], endpoint="delete_period")
    @admin_required
    def delete_period(period_id: int):
        return ok(service.remove(period_id, deleted_by=current_actor().user_id))
