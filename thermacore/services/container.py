from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from infrastructure.clients.unit_data_client import UnitDataClient
from infrastructure.logging.audit import AuditLogger
from infrastructure.logging.event_logger import ControlEventLogger
from infrastructure.storage.key_value import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from thermacore.config import AppConfig
from thermacore.domain.exceptions import ConfigurationError, ExternalServiceError
from thermacore.enums.events import UnitControlEvent
from thermacore.services.application.notifications_service import NotificationLedger
from thermacore.services.application.settings_service import SettingsStore
from thermacore.services.application.unit_control_service import SoundSink, UnitControlService
from thermacore.services.application.unit_directory_service import UnitDataSource, UnitDirectoryService
from thermacore.utils.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    storage: KeyValueStore
    event_bus: EventBus
    audit_logger: AuditLogger
    event_logger: ControlEventLogger
    settings_store: SettingsStore
    unit_control_service: UnitControlService
    notification_ledger: NotificationLedger
    unit_directory: UnitDirectoryService
    unit_client: UnitDataSource

    @classmethod
    def build(
        cls,
        config: AppConfig,
        *,
        storage: Optional[KeyValueStore] = None,
        unit_client: Optional[UnitDataSource] = None,
        sound_sink: Optional[SoundSink] = None,
        load_remote: bool = True,
    ) -> "ServiceContainer":
        if storage is None:
            storage = JsonFileKeyValueStore(config.storage_dir) if config.storage_dir else InMemoryKeyValueStore()
        if unit_client is None:
            if not config.unit_service_url:
                raise ConfigurationError("THERMACORE_UNIT_SERVICE_URL must be set")
            unit_client = UnitDataClient(config.unit_service_url, timeout=config.unit_service_timeout)

        event_bus = EventBus()
        audit_logger = AuditLogger(config.audit_log_path)
        for topic in UnitControlEvent:
            event_bus.subscribe(topic, audit_logger.log_control_change)
        event_logger = ControlEventLogger(event_bus)

        settings_store = SettingsStore(
            storage,
            storage_key=config.settings_storage_key,
            fallback_volume=config.fallback_volume,
            event_bus=event_bus,
        )
        settings_store.hydrate()

        unit_control_service = UnitControlService(
            event_bus=event_bus,
            sound_sink=sound_sink,
            gain_provider=settings_store.get_normalized_volume,
            auto_switch_trigger_percent=config.auto_switch_trigger_percent,
        )
        notification_ledger = NotificationLedger(
            storage,
            storage_key=config.notifications_storage_key,
            resolved_ids=config.resolved_notification_ids,
            event_bus=event_bus,
        )
        unit_directory = UnitDirectoryService(unit_client)

        container = cls(
            config=config,
            storage=storage,
            event_bus=event_bus,
            audit_logger=audit_logger,
            event_logger=event_logger,
            settings_store=settings_store,
            unit_control_service=unit_control_service,
            notification_ledger=notification_ledger,
            unit_directory=unit_directory,
            unit_client=unit_client,
        )
        if load_remote:
            container.load_remote_data()
        return container

    def load_remote_data(self) -> None:
        """Best-effort initial fetch of units and notifications."""
        try:
            self.unit_directory.refresh()
        except ExternalServiceError as e:
            logger.warning("Unit data service unavailable at startup: %s", e)
        try:
            self.notification_ledger.refresh(self.unit_client.get_notifications)
        except ExternalServiceError as e:
            logger.warning("Notifications unavailable at startup: %s", e)

    def shutdown(self) -> None:
        self.event_logger.close()
        self.audit_logger.close()
        logger.info("ServiceContainer shut down")
