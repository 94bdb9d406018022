"""
Notifications API
=================

Bell panel endpoints. The caller's role comes from the ``role`` query
parameter (or the session); admins see every notification, everyone else
sees alarms only.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response

from thermacore.blueprints.api._common import (
    get_container as _container,
    get_notification_ledger as _ledger,
    get_user_role as _role,
    success as _success,
)
from thermacore.utils.http import error_response, safe_route

logger = logging.getLogger("api.notifications")

notifications_api = Blueprint("notifications_api", __name__)


@notifications_api.errorhandler(404)
def not_found(error) -> Response:
    return error_response("Resource not found", 404)


@notifications_api.get("")
@safe_route("Failed to get notifications")
def list_notifications() -> Response:
    role = _role()
    ledger = _ledger()
    return _success(
        {
            "role": role.value,
            "notifications": [n.to_dict() for n in ledger.visible(role)],
            "unviewed_count": ledger.unviewed_count(role),
        }
    )


@notifications_api.post("/open")
@safe_route("Failed to open notifications")
def open_panel() -> Response:
    """Persist the unresolved snapshot, then mark every visible notification viewed."""
    role = _role()
    ledger = _ledger()
    visible = ledger.open_panel(role)
    return _success(
        {
            "role": role.value,
            "notifications": [n.to_dict() for n in visible],
            "unviewed_count": ledger.unviewed_count(role),
        }
    )


@notifications_api.get("/history")
@safe_route("Failed to get notification history")
def history() -> Response:
    snapshot = _ledger().view_history(_role())
    return _success({"notifications": [n.to_dict() for n in snapshot]})


@notifications_api.post("/refresh")
@safe_route("Failed to refresh notifications")
def refresh() -> Response:
    container = _container()
    role = _role()
    ledger = container.notification_ledger
    ledger.refresh(container.unit_client.get_notifications)
    return _success(
        {
            "notifications": [n.to_dict() for n in ledger.visible(role)],
            "unviewed_count": ledger.unviewed_count(role),
        }
    )
