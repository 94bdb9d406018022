"""
Blueprint Common Utilities
==========================

Shared helpers for all API blueprints: container access, request parsing
and the standard response envelope.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flask import Response, current_app, request, session
from pydantic import ValidationError as PydanticValidationError

from thermacore.enums.common import UserRole
from thermacore.utils.http import error_response, success_response

if TYPE_CHECKING:
    from thermacore.services.container import ServiceContainer

logger = logging.getLogger("api._common")


def get_container() -> "ServiceContainer":
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_json() -> dict:
    """JSON request body, or an empty dict when absent or malformed."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def get_user_role() -> UserRole:
    """Role from the ``role`` query parameter, falling back to the session."""
    return UserRole.coerce(request.args.get("role") or session.get("user_role"))


def get_actor() -> str:
    return str(session.get("username") or request.headers.get("X-Actor") or "operator")


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None) -> Response:
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None) -> Response:
    return error_response(message, status, details=details)


def invalid_payload(exc: PydanticValidationError) -> Response:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return fail("Invalid request payload", 400, details={"errors": errors})


# ==================== SERVICE ACCESSORS ====================


def get_settings_store():
    return get_container().settings_store


def get_unit_control_service():
    return get_container().unit_control_service


def get_notification_ledger():
    return get_container().notification_ledger


def get_unit_directory():
    return get_container().unit_directory
