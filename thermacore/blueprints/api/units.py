"""
Units API
=========

Unit directory listing/editing and the per-unit remote control panel.

Control toggles are two-step: ``POST .../control/requests`` returns a
pending change with the prospective state, which is then either confirmed
(``POST .../requests/<token>/confirm``) or cancelled
(``DELETE .../requests/<token>``).
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response
from pydantic import ValidationError as PydanticValidationError

from thermacore.blueprints.api._common import (
    get_actor as _actor,
    get_json as _json,
    get_unit_control_service as _control,
    get_unit_directory as _directory,
    invalid_payload as _invalid,
    success as _success,
)
from thermacore.domain.unit_control import action_for
from thermacore.schemas.units import ControlChangeRequest, UnitUpdateRequest
from thermacore.utils.http import error_response, safe_route

logger = logging.getLogger("api.units")

units_api = Blueprint("units_api", __name__)


@units_api.errorhandler(404)
def not_found(error) -> Response:
    return error_response("Resource not found", 404)


def _unit_dict(unit) -> dict:
    data = unit.model_dump(mode="json")
    data["water_level_percent"] = unit.water_level_percent
    return data


# ==================== DIRECTORY ====================


@units_api.get("")
@safe_route("Failed to list units")
def list_units() -> Response:
    directory = _directory()
    return _success(
        {
            "units": [_unit_dict(u) for u in directory.list_units()],
            "last_error": directory.last_error,
        }
    )


@units_api.post("/refresh")
@safe_route("Failed to refresh units")
def refresh_units() -> Response:
    units = _directory().refresh()
    return _success({"units": [_unit_dict(u) for u in units]})


@units_api.get("/<unit_id>")
@safe_route("Failed to get unit")
def get_unit(unit_id: str) -> Response:
    return _success(_unit_dict(_directory().get_unit(unit_id)))


@units_api.patch("/<unit_id>")
@safe_route("Failed to update unit")
def update_unit(unit_id: str) -> Response:
    """
    Edit unit details; each field is applied optimistically and rolled
    back if the unit data service rejects it.

    Request Body (at least one):
        - name
        - location
        - gps: "lat,lng"
    """
    try:
        body = UnitUpdateRequest.model_validate(_json())
    except PydanticValidationError as exc:
        return _invalid(exc)

    directory = _directory()
    unit = directory.get_unit(unit_id)
    if body.name is not None:
        unit = directory.rename(unit_id, body.name)
    if body.location is not None:
        unit = directory.relocate(unit_id, body.location)
    if body.gps is not None:
        unit = directory.set_gps(unit_id, body.gps.replace(" ", ""))
    return _success(_unit_dict(unit))


# ==================== REMOTE CONTROL ====================


@units_api.post("/<unit_id>/control/open")
@safe_route("Failed to open control panel")
def open_control(unit_id: str) -> Response:
    unit = _directory().get_unit(unit_id)
    control = _control()
    control.open_view(unit)
    logger.info("Control panel opened for unit %s", unit_id)
    return _success(control.describe(unit_id), 201)


@units_api.get("/<unit_id>/control")
@safe_route("Failed to get control state")
def get_control(unit_id: str) -> Response:
    return _success(_control().describe(unit_id))


@units_api.delete("/<unit_id>/control")
@safe_route("Failed to close control panel")
def close_control(unit_id: str) -> Response:
    closed = _control().close_view(unit_id)
    return _success({"unit_id": unit_id, "closed": closed})


@units_api.post("/<unit_id>/control/requests")
@safe_route("Failed to request control change")
def request_control_change(unit_id: str) -> Response:
    """
    Propose a toggle. Nothing is committed until the returned token is
    confirmed.

    Request Body:
        - control: machine | water_production | auto_switch
        - on: desired switch position
    """
    try:
        body = ControlChangeRequest.model_validate(_json())
    except PydanticValidationError as exc:
        return _invalid(exc)

    pending = _control().request(unit_id, action_for(body.control, body.on))
    return _success(pending.to_dict(), 201)


@units_api.post("/<unit_id>/control/requests/<token>/confirm")
@safe_route("Failed to confirm control change")
def confirm_control_change(unit_id: str, token: str) -> Response:
    control = _control()
    transition = control.confirm(unit_id, token, actor=_actor())
    return _success(
        {
            "changed": transition.changed,
            "cascaded": [c.value for c in transition.cascaded],
            "view": control.describe(unit_id),
        }
    )


@units_api.delete("/<unit_id>/control/requests/<token>")
@safe_route("Failed to cancel control change")
def cancel_control_change(unit_id: str, token: str) -> Response:
    control = _control()
    control.cancel(unit_id, token)
    return _success(control.describe(unit_id))
