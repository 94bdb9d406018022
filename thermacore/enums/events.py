from enum import Enum


class UnitControlEvent(str, Enum):
    """Published once per committed control transition that changed state."""

    MACHINE_POWER_CHANGED = "machine_power_changed"
    WATER_PRODUCTION_CHANGED = "water_production_changed"
    AUTO_SWITCH_CHANGED = "auto_switch_changed"


class SettingsEvent(str, Enum):
    SETTINGS_CHANGED = "settings_changed"


class NotificationEvent(str, Enum):
    PANEL_OPENED = "notification_panel_opened"
    SNAPSHOT_PERSISTED = "notification_snapshot_persisted"


class SoundCue(str, Enum):
    """Named cues understood by the audio playback collaborator."""

    POWER_ON = "power-on"
    POWER_OFF = "power-off"
    WATER_ON = "water-on"
    WATER_OFF = "water-off"
    COOL_TONES = "cool-tones"

    @property
    def filename(self) -> str:
        return f"{self.value}.mp3"
