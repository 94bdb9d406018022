"""
Enums Module
============

Enumeration types shared across ThermaCore services, schemas and the API.
"""

from thermacore.enums.common import (
    NotificationKind,
    NotificationStatus,
    TemperatureUnit,
    UnitControl,
    UnitStatus,
    UserRole,
)
from thermacore.enums.events import NotificationEvent, SettingsEvent, SoundCue, UnitControlEvent

__all__ = [
    "NotificationEvent",
    "NotificationKind",
    "NotificationStatus",
    "SettingsEvent",
    "SoundCue",
    "TemperatureUnit",
    "UnitControl",
    "UnitControlEvent",
    "UnitStatus",
    "UserRole",
]
