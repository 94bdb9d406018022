"""
User Settings API
=================

Endpoints for the settings panel: volume slider, mute button and the
temperature unit switch. Every mutation returns the full settings snapshot.
"""

from __future__ import annotations

import logging
import math

from flask import Blueprint, Response, request
from pydantic import ValidationError as PydanticValidationError

from thermacore.blueprints.api._common import (
    fail as _fail,
    get_json as _json,
    get_settings_store as _settings,
    invalid_payload as _invalid,
    success as _success,
)
from thermacore.schemas.settings import TemperatureUnitRequest, VolumeUpdateRequest
from thermacore.utils.http import error_response, safe_route

logger = logging.getLogger("api.settings")

settings_api = Blueprint("settings_api", __name__)


@settings_api.errorhandler(404)
def not_found(error) -> Response:
    return error_response("Resource not found", 404)


@settings_api.get("")
@safe_route("Failed to get settings")
def get_settings() -> Response:
    return _success(_settings().snapshot())


# ==================== AUDIO ====================


@settings_api.put("/volume")
@safe_route("Failed to update volume")
def set_volume() -> Response:
    """
    Move the volume slider.

    Request Body:
        - volume (required): numeric, clamped to 0-100 and rounded

    Setting 0 mutes; anything above 0 unmutes.
    """
    try:
        body = VolumeUpdateRequest.model_validate(_json())
    except PydanticValidationError as exc:
        return _invalid(exc)

    store = _settings()
    store.set_volume(body.volume)
    return _success(store.snapshot())


@settings_api.post("/sound/toggle")
@safe_route("Failed to toggle sound")
def toggle_sound() -> Response:
    store = _settings()
    store.toggle_sound()
    logger.info("Sound %s", "muted" if store.is_muted else "unmuted")
    return _success(store.snapshot())


# ==================== TEMPERATURE ====================


@settings_api.put("/temperature-unit")
@safe_route("Failed to update temperature unit")
def set_temperature_unit() -> Response:
    try:
        body = TemperatureUnitRequest.model_validate(_json())
    except PydanticValidationError as exc:
        return _invalid(exc)

    store = _settings()
    store.set_temperature_unit(body.unit)
    return _success(store.snapshot())


@settings_api.post("/temperature-unit/toggle")
@safe_route("Failed to toggle temperature unit")
def toggle_temperature_unit() -> Response:
    store = _settings()
    store.toggle_temperature_unit()
    return _success(store.snapshot())


@settings_api.get("/temperature/format")
@safe_route("Failed to format temperature")
def format_temperature() -> Response:
    """
    Render a Celsius reading in the current unit.

    Query Params:
        - celsius (optional): reading in Celsius; absent renders "N/A"
        - with_unit (optional): "false" returns the bare rounded number
    """
    raw = request.args.get("celsius")
    celsius = None
    if raw not in (None, ""):
        try:
            celsius = float(raw)
        except ValueError:
            return _fail("celsius must be numeric.", 400)
        if not math.isfinite(celsius):
            return _fail("celsius must be a finite number.", 400)

    with_unit = request.args.get("with_unit", "true").strip().lower() not in {"0", "false", "no", "off"}
    store = _settings()
    return _success(
        {
            "celsius": celsius,
            "unit": store.settings.temperature_unit.value,
            "formatted": store.format_temperature(celsius, with_unit=with_unit),
        }
    )
