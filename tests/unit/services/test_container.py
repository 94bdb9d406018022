from __future__ import annotations

import json

import pytest

from infrastructure.storage.key_value import InMemoryKeyValueStore
from thermacore.config import AppConfig
from thermacore.domain.exceptions import ConfigurationError
from thermacore.domain.unit_control import SetMachine
from thermacore.services.container import ServiceContainer


@pytest.fixture()
def config(tmp_path):
    config = AppConfig()
    config.storage_dir = ""
    config.audit_log_path = str(tmp_path / "audit.log")
    return config


def test_build_wires_services(config, unit_client, sound_sink):
    storage = InMemoryKeyValueStore({"thermacore-settings": json.dumps({"volume": 0, "soundEnabled": False})})
    container = ServiceContainer.build(config, storage=storage, unit_client=unit_client, sound_sink=sound_sink)
    try:
        assert container.settings_store.settings.volume == 0
        assert len(container.unit_directory.list_units()) == 3
        assert container.notification_ledger.visible_count_for("admin") == 5

        container.unit_control_service.open_view(container.unit_directory.get_unit("001"))
        container.unit_control_service.apply("001", SetMachine(on=False))
        # muted: no sound
        assert sound_sink.played == []
    finally:
        container.shutdown()


def test_startup_survives_unit_service_outage(config, unit_client):
    unit_client.fail_reads = True
    container = ServiceContainer.build(config, unit_client=unit_client)
    try:
        assert container.unit_directory.list_units() == []
        assert container.unit_directory.last_error
        assert container.notification_ledger.notifications == []
    finally:
        container.shutdown()


def test_missing_unit_service_url(config):
    config.unit_service_url = ""
    with pytest.raises(ConfigurationError):
        ServiceContainer.build(config)
