"""
Domain Package
==============
Immutable value objects and pure rules: user settings, the unit control
state machine and notifications.
"""

from .notifications import Notification
from .settings import UserSettings
from .unit_control import (
    SetAutoSwitch,
    SetMachine,
    SetWaterProduction,
    Transition,
    UnitControlAction,
    UnitControlState,
    reduce,
)

__all__ = [
    "Notification",
    "SetAutoSwitch",
    "SetMachine",
    "SetWaterProduction",
    "Transition",
    "UnitControlAction",
    "UnitControlState",
    "UserSettings",
    "reduce",
]
