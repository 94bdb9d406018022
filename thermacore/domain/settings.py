"""
User Settings Domain Object
===========================

Audio and display preferences plus the pure rules that keep the volume level
and the mute flag consistent:

* muting never loses the stored volume; only the *effective* volume drops to 0
* unmuting a zero volume restores the last non-zero volume (or the fallback)
* dragging the volume to 0 mutes, dragging it above 0 unmutes

Instances are immutable; every operation returns a new ``UserSettings``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any

from thermacore.domain.exceptions import ValidationError, VolumeRangeError
from thermacore.enums.common import TemperatureUnit

MIN_VOLUME = 0
MAX_VOLUME = 100
DEFAULT_VOLUME = 35


def clamp_volume(value: Any) -> int:
    """Clamp a numeric volume into [0, 100] and round it to an integer.

    Raises:
        VolumeRangeError: if ``value`` is not a finite number.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise VolumeRangeError(f"Volume must be a number, got {value!r}", detail={"volume": repr(value)})
    if isinstance(value, float) and not math.isfinite(value):
        raise VolumeRangeError(f"Volume must be finite, got {value!r}", detail={"volume": repr(value)})
    bounded = min(max(value, MIN_VOLUME), MAX_VOLUME)
    return int(math.floor(bounded + 0.5))


def normalize_volume(volume: int | float) -> float:
    """Map a 0-100 volume onto a 0.0-1.0 gain."""
    return volume / 100


# Wide enough to quantize any finite float (up to ~1.8e308) to one decimal
_ROUNDING_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)


def round_one_decimal(value: float) -> float:
    """Round to one decimal place, halves away from zero.

    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), context=_ROUNDING_CONTEXT))


def convert_temperature(celsius: float, unit: TemperatureUnit) -> float:
    if unit is TemperatureUnit.FAHRENHEIT:
        return celsius * 9 / 5 + 32
    return celsius


def to_celsius(value: float, unit: TemperatureUnit) -> float:
    """Inverse of :func:`convert_temperature`."""
    if unit is TemperatureUnit.FAHRENHEIT:
        return (value - 32) * 5 / 9
    return value


def _display_number(value: float) -> str:
    # 21.0 renders as "21", matching the dashboard's number formatting
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return str(value)


def format_temperature(celsius: float | None, unit: TemperatureUnit, with_unit: bool = True) -> str | float:
    """Convert, round to one decimal and optionally append the unit glyph.

    Returns ``"N/A"`` when no usable reading is available (missing, NaN or
    infinite) and the bare rounded number when ``with_unit`` is false.
    """
    if celsius is None or not math.isfinite(celsius):
        return "N/A"
    converted = convert_temperature(celsius, unit)
    if not math.isfinite(converted):
        return "N/A"
    rounded = round_one_decimal(converted)
    if not with_unit:
        return rounded
    return f"{_display_number(rounded)}{unit.glyph}"


def parse_temperature_unit(value: TemperatureUnit | str) -> TemperatureUnit:
    if isinstance(value, TemperatureUnit):
        return value
    try:
        return TemperatureUnit(str(value).lower())
    except ValueError:
        raise ValidationError(
            f"Unknown temperature unit {value!r}",
            detail={"allowed": [u.value for u in TemperatureUnit]},
        ) from None


@dataclass(frozen=True)
class UserSettings:
    """Process-wide user preferences (single persisted record)."""

    volume: int = DEFAULT_VOLUME
    sound_enabled: bool = True
    prev_volume: int = DEFAULT_VOLUME
    temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS

    # --- Derived values ---------------------------------------------------------
    @property
    def effective_volume(self) -> int:
        """Volume a sound-emitting consumer should use (0 while muted)."""
        return self.volume if self.sound_enabled else 0

    @property
    def is_muted(self) -> bool:
        return not self.sound_enabled or self.volume == 0

    # --- Transitions ------------------------------------------------------------
    def with_volume(self, value: Any) -> "UserSettings":
        volume = clamp_volume(value)
        sound_enabled = self.sound_enabled
        if volume == 0 and sound_enabled:
            sound_enabled = False
        elif volume > 0 and not sound_enabled:
            sound_enabled = True
        prev_volume = volume if volume > 0 else self.prev_volume
        return replace(self, volume=volume, sound_enabled=sound_enabled, prev_volume=prev_volume)

    def with_sound_toggled(self, fallback_volume: int = DEFAULT_VOLUME) -> "UserSettings":
        if self.sound_enabled:
            # Stored volume is kept; only the effective volume drops to 0
            prev_volume = self.volume if self.volume > 0 else self.prev_volume
            return replace(self, sound_enabled=False, prev_volume=prev_volume)
        volume = self.volume
        if volume == 0:
            volume = self.prev_volume if self.prev_volume > 0 else fallback_volume
        return replace(self, sound_enabled=True, volume=volume)

    def with_temperature_unit(self, unit: TemperatureUnit | str) -> "UserSettings":
        return replace(self, temperature_unit=parse_temperature_unit(unit))

    # --- Serialization ----------------------------------------------------------
    @classmethod
    def defaults(cls, fallback_volume: int = DEFAULT_VOLUME) -> "UserSettings":
        return cls(volume=fallback_volume, prev_volume=fallback_volume)

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: "UserSettings | None" = None) -> "UserSettings":
        """Shallow-merge a persisted record over ``base`` (defaults when omitted).

        Unknown keys are ignored and malformed fields keep the base value, so
        records written by older or newer versions still load.
        """
        current = base or cls()
        merged: dict[str, Any] = {}

        for key, attr in (("volume", "volume"), ("prevVolume", "prev_volume")):
            if key in data:
                try:
                    merged[attr] = clamp_volume(data[key])
                except VolumeRangeError:
                    pass

        sound_enabled = data.get("soundEnabled")
        if isinstance(sound_enabled, bool):
            merged["sound_enabled"] = sound_enabled

        if "temperatureUnit" in data:
            try:
                merged["temperature_unit"] = parse_temperature_unit(data["temperatureUnit"])
            except ValidationError:
                pass

        return replace(current, **merged)

    def to_dict(self) -> dict[str, Any]:
        """Persisted record layout."""
        return {
            "volume": self.volume,
            "soundEnabled": self.sound_enabled,
            "prevVolume": self.prev_volume,
            "temperatureUnit": self.temperature_unit.value,
        }
