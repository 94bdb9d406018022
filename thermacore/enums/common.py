"""
Common Enumerations
====================

Value enums used by the settings model, unit controls and notifications.
"""

from enum import Enum


class TemperatureUnit(str, Enum):
    """Display unit for temperatures. Readings are always stored in Celsius."""
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"

    @property
    def glyph(self) -> str:
        return "°C" if self is TemperatureUnit.CELSIUS else "°F"

    def toggled(self) -> "TemperatureUnit":
        return TemperatureUnit.FAHRENHEIT if self is TemperatureUnit.CELSIUS else TemperatureUnit.CELSIUS

    def __str__(self) -> str:
        return self.value


class UnitStatus(str, Enum):
    """Last reported status of a thermal unit."""
    ONLINE = "online"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"

    def __str__(self) -> str:
        return self.value


class UnitControl(str, Enum):
    """The three dependent switches on a unit's remote control panel."""
    MACHINE = "machine"
    WATER_PRODUCTION = "water_production"
    AUTO_SWITCH = "auto_switch"

    def __str__(self) -> str:
        return self.value


class NotificationKind(str, Enum):
    ALERT = "alert"
    ALARM = "alarm"


class NotificationStatus(str, Enum):
    UNRESOLVED = "unresolved"
    COMPLETED = "completed"


class UserRole(str, Enum):
    """
    Roles relevant to notification visibility.
    Admins see every alarm; other roles see only the first one.
    """
    ADMIN = "admin"
    USER = "user"

    @classmethod
    def coerce(cls, value: "UserRole | str | None") -> "UserRole":
        if isinstance(value, UserRole):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.USER

    @property
    def is_privileged(self) -> bool:
        return self is UserRole.ADMIN
