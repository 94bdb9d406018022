"""
Schemas Module
==============

Pydantic models for request validation, unit records from the unit data
service, and event bus payloads.
"""

from thermacore.schemas.events import (
    NotificationSnapshotPayload,
    SettingsChangedPayload,
    UnitControlChangedPayload,
)
from thermacore.schemas.settings import TemperatureUnitRequest, VolumeUpdateRequest
from thermacore.schemas.units import ControlChangeRequest, UnitRecord, UnitUpdateRequest

__all__ = [
    "ControlChangeRequest",
    "NotificationSnapshotPayload",
    "SettingsChangedPayload",
    "TemperatureUnitRequest",
    "UnitControlChangedPayload",
    "UnitRecord",
    "UnitUpdateRequest",
    "VolumeUpdateRequest",
]
