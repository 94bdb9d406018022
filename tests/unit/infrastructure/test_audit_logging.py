from __future__ import annotations

import json
import logging

from infrastructure.logging.audit import AuditLogger
from infrastructure.logging.event_logger import ControlEventLogger
from thermacore.enums.events import UnitControlEvent


def _payload(**overrides):
    data = {
        "unit_id": "001",
        "unit_name": "ThermaCore Unit 001",
        "control": "machine",
        "on": False,
        "cascaded": ["water_production", "auto_switch"],
        "state": {"machine_on": False, "water_production_on": False, "auto_switch_enabled": False},
        "actor": "alice",
    }
    data.update(overrides)
    return data


def test_audit_log_writes_json_lines(tmp_path):
    path = tmp_path / "audit" / "audit.log"
    audit = AuditLogger(str(path), logger_name="thermacore.audit.test_json")
    audit.log_control_change(_payload())
    for handler in audit.logger.handlers:
        handler.flush()

    line = path.read_text(encoding="utf-8").strip()
    record = json.loads(line.split(" | ", 2)[2])
    assert record["actor"] == "alice"
    assert record["action"] == "machine"
    assert record["resource"] == "unit:001"
    assert record["outcome"] == "off"
    assert record["meta"]["cascaded"] == ["water_production", "auto_switch"]
    audit.close()


def test_audit_handler_not_duplicated(tmp_path):
    path = str(tmp_path / "audit.log")
    first = AuditLogger(path, logger_name="thermacore.audit.test_dedupe")
    second = AuditLogger(path, logger_name="thermacore.audit.test_dedupe")
    assert len(second.logger.handlers) == 1
    first.close()
    assert second.logger.handlers == []


def test_event_logger_lines(event_bus, caplog):
    event_logger = ControlEventLogger(event_bus)
    with caplog.at_level(logging.INFO, logger="thermacore.events"):
        event_bus.publish(UnitControlEvent.MACHINE_POWER_CHANGED, _payload())
        event_bus.publish(UnitControlEvent.WATER_PRODUCTION_CHANGED, _payload(control="water_production", on=True, cascaded=[]))
        event_bus.publish(UnitControlEvent.AUTO_SWITCH_CHANGED, _payload(control="auto_switch", on=True, cascaded=[]))

    messages = [r.getMessage() for r in caplog.records]
    assert "Machine turned off for unit ThermaCore Unit 001" in messages
    assert "Cascade for unit ThermaCore Unit 001 forced off: water_production, auto_switch" in messages
    assert "Water production enabled for unit ThermaCore Unit 001" in messages
    assert "Auto switch enabled for unit ThermaCore Unit 001" in messages


def test_event_logger_close_unsubscribes(event_bus):
    event_logger = ControlEventLogger(event_bus)
    event_logger.close()
    assert event_bus.get_metrics()["subscribers"] == 0
