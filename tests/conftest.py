"""
Shared test fixtures for the ThermaCore test suite.

Provides:
- In-memory key-value storage and a fresh EventBus per test
- Settings store, unit control service and notification ledger wired to them
- A fake unit data service client with canned units and notifications
- A Flask app / test client built through ``create_app`` with the fakes injected

Usage:
    def test_example(settings_store):
        settings_store.set_volume(0)
        assert settings_store.is_muted
"""

from __future__ import annotations

import logging
from typing import Any

import pytest

from infrastructure.storage.key_value import InMemoryKeyValueStore
from thermacore.domain.exceptions import ExternalServiceError
from thermacore.domain.notifications import Notification
from thermacore.enums.common import NotificationKind
from thermacore.services.application.notifications_service import NotificationLedger
from thermacore.services.application.settings_service import SettingsStore
from thermacore.services.application.unit_control_service import UnitControlService
from thermacore.utils.event_bus import EventBus

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("thermacore").setLevel(logging.WARNING)


# ========================== Fakes ==========================================


UNIT_RECORDS: list[dict[str, Any]] = [
    {
        "id": "001",
        "name": "ThermaCore Unit 001",
        "location": "Rooftop",
        "status": "online",
        "watergeneration": True,
        "waterProductionOn": True,
        "autoSwitchEnabled": True,
        "waterLevel": 600,
        "tankCapacity": 1000,
        "gpsCoordinates": "52.52,13.40",
    },
    {
        "id": "002",
        "name": "ThermaCore Unit 002",
        "location": "Basement",
        "status": "offline",
        "watergeneration": True,
    },
    {
        "id": "003",
        "name": "ThermaCore Unit 003",
        "location": "Yard",
        "status": "online",
        "watergeneration": False,
    },
]

NOTIFICATION_RECORDS: list[dict[str, Any]] = [
    {"id": 1, "type": "alert", "message": "Filter change due on ThermaCore Unit 001", "timestamp": "2024-05-01T08:00:00Z"},
    {"id": 2, "type": "alarm", "message": "Compressor fault on ThermaCore Unit 002", "timestamp": "2024-05-01T09:00:00Z"},
    {"id": 3, "type": "alert", "message": "Tank level low on ThermaCore Unit 001", "timestamp": "2024-05-01T10:00:00Z"},
    {"id": 4, "type": "alarm", "message": "Overheat on ThermaCore Unit 003", "timestamp": "2024-05-01T11:00:00Z"},
    {"id": 5, "type": "alarm", "message": "Pressure drop on ThermaCore Unit 001", "timestamp": "2024-05-01T12:00:00Z"},
]


class FakeUnitClient:
    """In-process stand-in for the unit data service."""

    def __init__(self, units=None, notifications=None) -> None:
        self.units = [dict(u) for u in (UNIT_RECORDS if units is None else units)]
        self.notifications = [dict(n) for n in (NOTIFICATION_RECORDS if notifications is None else notifications)]
        self.calls: list[tuple] = []
        self.fail_updates = False
        self.fail_reads = False

    def get_all_units(self):
        if self.fail_reads:
            raise ExternalServiceError("unit service down")
        return [dict(u) for u in self.units]

    def _update(self, op: str, unit_id: str, value: str) -> None:
        self.calls.append((op, unit_id, value))
        if self.fail_updates:
            raise ExternalServiceError("update rejected")

    def update_unit_name(self, unit_id, name):
        self._update("name", unit_id, name)

    def update_unit_location(self, unit_id, location):
        self._update("location", unit_id, location)

    def update_unit_gps(self, unit_id, gps_coordinates):
        self._update("gps", unit_id, gps_coordinates)

    def get_notifications(self):
        if self.fail_reads:
            raise ExternalServiceError("unit service down")
        return [dict(n) for n in self.notifications]


class SoundRecorder:
    """Audio sink that records (cue, gain) pairs."""

    def __init__(self) -> None:
        self.played: list[tuple] = []

    def __call__(self, cue, gain) -> None:
        self.played.append((cue, gain))

    @property
    def cues(self) -> list[str]:
        return [cue.value for cue, _ in self.played]


# ========================== Core Fixtures ==================================


@pytest.fixture()
def storage():
    """Empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture()
def event_bus():
    return EventBus()


@pytest.fixture()
def recorded_events(event_bus):
    """Every event published on ``event_bus`` as ``(topic, payload)``."""
    from thermacore.enums.events import NotificationEvent, SettingsEvent, UnitControlEvent

    events: list[tuple[str, Any]] = []
    for topic in [*UnitControlEvent, *SettingsEvent, *NotificationEvent]:
        event_bus.subscribe(topic, lambda data, _t=topic.value: events.append((_t, data)))
    return events


@pytest.fixture()
def sound_sink():
    return SoundRecorder()


@pytest.fixture()
def settings_store(storage, event_bus):
    store = SettingsStore(storage, event_bus=event_bus)
    store.hydrate()
    return store


@pytest.fixture()
def unit_control(event_bus, sound_sink, settings_store):
    return UnitControlService(
        event_bus=event_bus,
        sound_sink=sound_sink,
        gain_provider=settings_store.get_normalized_volume,
    )


@pytest.fixture()
def notifications():
    return [Notification.from_dict(n) for n in NOTIFICATION_RECORDS]


@pytest.fixture()
def ledger(storage, event_bus, notifications):
    return NotificationLedger(storage, notifications=notifications, event_bus=event_bus)


@pytest.fixture()
def unit_client():
    return FakeUnitClient()


@pytest.fixture()
def make_notification():
    def _make(id: int, kind: str = "alert", message: str = "", timestamp: str = "2024-05-01T00:00:00Z"):
        return Notification(id=id, kind=NotificationKind(kind), message=message or f"notification {id}", timestamp=timestamp)

    return _make


# ========================== Flask App ======================================


@pytest.fixture()
def app(tmp_path, storage, unit_client, sound_sink, monkeypatch):
    monkeypatch.setenv("THERMACORE_SECRET_KEY", "test-secret")
    from thermacore import create_app

    app = create_app(
        {
            "environment": "testing",
            "log_dir": "",
            "audit_log_path": str(tmp_path / "audit.log"),
            "storage_dir": "",
        },
        storage=storage,
        unit_client=unit_client,
        sound_sink=sound_sink,
    )
    app.config["TESTING"] = True
    yield app
    app.config["CONTAINER"].shutdown()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.config["CONTAINER"]
