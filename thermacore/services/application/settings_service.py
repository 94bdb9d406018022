"""
Settings Store
==============

Owns the single process-wide ``UserSettings`` record: volume, mute flag,
remembered volume and temperature unit.

Lifecycle:
- created once by the ServiceContainer with defaults
- ``hydrate()`` performs the one startup read and shallow-merges the
  persisted record over the defaults; malformed data is logged and ignored
- every mutation replaces the in-memory record, then writes the full record
  back to the key-value store (best effort) and publishes
  ``SettingsEvent.SETTINGS_CHANGED``
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from infrastructure.storage.key_value import KeyValueStore
from thermacore.domain.exceptions import ValidationError
from thermacore.domain.settings import (
    DEFAULT_VOLUME,
    UserSettings,
    convert_temperature,
    format_temperature,
    normalize_volume,
)
from thermacore.enums.common import TemperatureUnit
from thermacore.enums.events import SettingsEvent
from thermacore.schemas.events import SettingsChangedPayload
from thermacore.utils.event_bus import EventBus
from thermacore.utils.time import iso_now

logger = logging.getLogger(__name__)

SETTINGS_STORAGE_KEY = "thermacore-settings"


class SettingsStore:
    """High-level API for the user settings record."""

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        storage_key: str = SETTINGS_STORAGE_KEY,
        fallback_volume: int = DEFAULT_VOLUME,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.storage = storage
        self.storage_key = storage_key
        self.fallback_volume = fallback_volume
        self.event_bus = event_bus
        self._settings = UserSettings.defaults(fallback_volume)
        self._hydrated = False

    # --- Persistence ---------------------------------------------------------------
    def hydrate(self) -> UserSettings:
        """Load the persisted record once; later calls return the current state."""
        if self._hydrated:
            return self._settings
        self._hydrated = True

        try:
            raw = self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning("Could not read settings from storage key %s: %s", self.storage_key, e)
            return self._settings
        if raw is None:
            logger.info("No saved settings under %s, using defaults", self.storage_key)
            return self._settings

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring malformed settings record %s: %s", self.storage_key, e)
            return self._settings
        if not isinstance(data, dict):
            logger.warning("Ignoring settings record %s: expected an object, got %s", self.storage_key, type(data).__name__)
            return self._settings

        self._settings = UserSettings.from_dict(data, base=self._settings)
        logger.info("Loaded settings from %s", self.storage_key)
        return self._settings

    def _persist(self) -> None:
        try:
            self.storage.set(self.storage_key, json.dumps(self._settings.to_dict()))
        except Exception as e:
            logger.error("Failed to save settings to %s: %s", self.storage_key, e)

    def _commit(self, settings: UserSettings) -> UserSettings:
        self._settings = settings
        self._persist()
        if self.event_bus is not None:
            self.event_bus.publish(
                SettingsEvent.SETTINGS_CHANGED,
                SettingsChangedPayload(
                    settings=settings.to_dict(),
                    effective_volume=settings.effective_volume,
                    timestamp=iso_now(),
                ),
            )
        return settings

    # --- Reads ---------------------------------------------------------------------
    @property
    def settings(self) -> UserSettings:
        return self._settings

    def snapshot(self) -> dict[str, Any]:
        s = self._settings
        return {
            **s.to_dict(),
            "effectiveVolume": s.effective_volume,
            "normalizedVolume": self.get_normalized_volume(),
            "isMuted": s.is_muted,
        }

    def get_effective_volume(self) -> int:
        return self._settings.effective_volume

    @staticmethod
    def normalize_volume(volume: int | float) -> float:
        return normalize_volume(volume)

    def get_normalized_volume(self) -> float:
        """Gain for the audio sink: effective volume mapped onto 0.0-1.0."""
        return normalize_volume(self._settings.effective_volume)

    @property
    def is_muted(self) -> bool:
        return self._settings.is_muted

    # --- Audio ---------------------------------------------------------------------
    def set_volume(self, volume: int | float) -> UserSettings:
        """Clamp and store ``volume``; 0 mutes, anything above 0 unmutes."""
        return self._commit(self._settings.with_volume(volume))

    def toggle_sound(self) -> UserSettings:
        return self._commit(self._settings.with_sound_toggled(self.fallback_volume))

    # Both names are used by the settings panel
    toggle_mute = toggle_sound

    # --- Temperature ---------------------------------------------------------------
    def set_temperature_unit(self, unit: TemperatureUnit | str) -> UserSettings:
        return self._commit(self._settings.with_temperature_unit(unit))

    def toggle_temperature_unit(self) -> UserSettings:
        return self._commit(self._settings.with_temperature_unit(self._settings.temperature_unit.toggled()))

    def convert_temperature(self, celsius: float) -> float:
        return convert_temperature(celsius, self._settings.temperature_unit)

    def format_temperature(self, celsius: float | None, with_unit: bool = True) -> str | float:
        return format_temperature(celsius, self._settings.temperature_unit, with_unit)

    # --- Generic -------------------------------------------------------------------
    def update_setting(self, key: str, value: Any) -> UserSettings:
        """Set one persisted field by its record name, with the usual rules."""
        if key == "volume":
            return self.set_volume(value)
        if key == "temperatureUnit":
            return self.set_temperature_unit(value)
        if key == "soundEnabled":
            if not isinstance(value, bool):
                raise ValidationError("soundEnabled must be a boolean", detail={"value": repr(value)})
            if value != self._settings.sound_enabled:
                return self.toggle_sound()
            return self._settings
        raise ValidationError(f"Unknown setting {key!r}", detail={"allowed": ["volume", "soundEnabled", "temperatureUnit"]})

    def reset(self) -> UserSettings:
        return self._commit(UserSettings.defaults(self.fallback_volume))
