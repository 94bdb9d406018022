import logging
from typing import Any, Callable, List

from thermacore.enums.events import NotificationEvent, SettingsEvent, UnitControlEvent
from thermacore.utils.event_bus import EventBus

logger = logging.getLogger("thermacore.events")


class ControlEventLogger:
    """Listens for bus events and writes human readable log lines."""

    def __init__(self, event_bus: EventBus) -> None:
        self.event_bus = event_bus
        self._unsubscribers: List[Callable[[], None]] = [
            event_bus.subscribe(UnitControlEvent.MACHINE_POWER_CHANGED, self.log_machine_power),
            event_bus.subscribe(UnitControlEvent.WATER_PRODUCTION_CHANGED, self.log_water_production),
            event_bus.subscribe(UnitControlEvent.AUTO_SWITCH_CHANGED, self.log_auto_switch),
            event_bus.subscribe(SettingsEvent.SETTINGS_CHANGED, self.log_settings_change),
            event_bus.subscribe(NotificationEvent.SNAPSHOT_PERSISTED, self.log_snapshot),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    @staticmethod
    def _unit_label(data: dict[str, Any]) -> str:
        return data.get("unit_name") or str(data.get("unit_id"))

    def log_machine_power(self, data: dict[str, Any]) -> None:
        verb = "turned on" if data.get("on") else "turned off"
        logger.info("Machine %s for unit %s", verb, self._unit_label(data))
        if data.get("cascaded"):
            logger.info("Cascade for unit %s forced off: %s", self._unit_label(data), ", ".join(data["cascaded"]))

    def log_water_production(self, data: dict[str, Any]) -> None:
        verb = "enabled" if data.get("on") else "disabled"
        logger.info("Water production %s for unit %s", verb, self._unit_label(data))
        if data.get("cascaded"):
            logger.info("Cascade for unit %s forced off: %s", self._unit_label(data), ", ".join(data["cascaded"]))

    def log_auto_switch(self, data: dict[str, Any]) -> None:
        verb = "enabled" if data.get("on") else "disabled"
        logger.info("Auto switch %s for unit %s", verb, self._unit_label(data))

    def log_settings_change(self, data: dict[str, Any]) -> None:
        logger.debug("Settings changed: %s", data)

    def log_snapshot(self, data: dict[str, Any]) -> None:
        logger.debug(
            "Persisted %s notifications for history (trigger=%s)",
            data.get("count"),
            data.get("trigger"),
        )
