"""Helpers shared by the JSON controllers.

Identity comes from headers set by the upstream gateway; nothing here
authenticates a caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, DomainError, ValidationError
from .datetime_utils import parse_iso_date
from .pagination import Page, PageRequest
from .serialization import as_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role
    employee_id: Optional[int] = None
    ip_address: Optional[str] = None
    request_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def own_employee_id(self) -> int:
        if self.employee_id is None:
            raise AuthorizationError("No employee profile linked to this user")
        return self.employee_id

    def scope_employee_id(self) -> Optional[int]:
        """Admins see everyone; employees only their own records."""
        return None if self.is_admin else self.own_employee_id()


def _int_header(name: str) -> Optional[int]:
    raw = (request.headers.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise AuthenticationError(f"Invalid {name} header")


def read_actor() -> Actor:
    user_id = _int_header("X-User-Id")
    raw_role = (request.headers.get("X-User-Role") or "").strip().upper()
    if user_id is None or not raw_role:
        raise AuthenticationError("Missing caller identity")
    try:
        role = Role(raw_role)
    except ValueError:
        raise AuthenticationError("Invalid X-User-Role header")
    return Actor(
        user_id=user_id,
        role=role,
        employee_id=_int_header("X-Employee-Id"),
        ip_address=request.remote_addr,
        request_id=(request.headers.get("X-Request-Id") or "").strip() or None,
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.actor = read_actor()
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        actor = read_actor()
        if not actor.is_admin:
            raise AuthorizationError("Admin role required")
        g.actor = actor
        return view(*args, **kwargs)

    return wrapper


def current_actor() -> Actor:
    return g.actor


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def page_request() -> PageRequest:
    try:
        page = int(request.args.get("page", DEFAULT_PAGE))
        limit = int(request.args.get("limit", DEFAULT_PAGE_LIMIT))
    except ValueError:
        raise ValidationError("page and limit must be integers")
    return PageRequest(page=page, limit=limit)


def optional_date_arg(name: str):
    raw = request.args.get(name)
    return parse_iso_date(raw) if raw else None


def optional_int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None):
    payload: dict = {"success": True, "data": as_json(data)}
    if message:
        payload["message"] = message
    return jsonify(payload), status


def ok_page(page: Page):
    return jsonify({"success": True, "data": as_json(list(page.data)), "pagination": page.pagination()}), 200


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify({"success": False, "message": str(exc)}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"success": False, "message": exc.description or exc.name}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500
