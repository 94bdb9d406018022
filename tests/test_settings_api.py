from __future__ import annotations

import json

import pytest


def _data(response) -> dict:
    payload = response.get_json() or {}
    assert payload.get("ok") is True, payload
    return payload["data"]


def test_get_settings_defaults(client):
    data = _data(client.get("/api/settings"))
    assert data["volume"] == 35
    assert data["soundEnabled"] is True
    assert data["temperatureUnit"] == "celsius"
    assert data["effectiveVolume"] == 35


def test_volume_zero_then_toggle_restores(client, storage):
    data = _data(client.put("/api/settings/volume", json={"volume": 0}))
    assert (data["volume"], data["soundEnabled"]) == (0, False)

    data = _data(client.post("/api/settings/sound/toggle"))
    assert (data["volume"], data["soundEnabled"]) == (35, True)
    assert json.loads(storage.get("thermacore-settings"))["volume"] == 35


def test_volume_is_clamped(client):
    assert _data(client.put("/api/settings/volume", json={"volume": 250}))["volume"] == 100
    assert _data(client.put("/api/settings/volume", json={"volume": 42.5}))["volume"] == 43


def test_invalid_volume_rejected(client):
    response = client.put("/api/settings/volume", json={"volume": "loud"})
    assert response.status_code == 400
    payload = response.get_json()
    assert payload["ok"] is False
    assert payload["error"]["details"]["errors"][0]["field"] == "volume"

    assert client.put("/api/settings/volume", json={}).status_code == 400


def test_temperature_unit_endpoints(client):
    data = _data(client.put("/api/settings/temperature-unit", json={"unit": "fahrenheit"}))
    assert data["temperatureUnit"] == "fahrenheit"

    data = _data(client.get("/api/settings/temperature/format?celsius=23.46"))
    assert data["formatted"] == "74.2°F"

    data = _data(client.post("/api/settings/temperature-unit/toggle"))
    assert data["temperatureUnit"] == "celsius"


def test_unknown_temperature_unit(client):
    assert client.put("/api/settings/temperature-unit", json={"unit": "kelvin"}).status_code == 400


def test_format_temperature_variants(client):
    assert _data(client.get("/api/settings/temperature/format"))["formatted"] == "N/A"
    assert _data(client.get("/api/settings/temperature/format?celsius=21.25&with_unit=false"))["formatted"] == 21.3
    assert client.get("/api/settings/temperature/format?celsius=warm").status_code == 400


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "Infinity"])
def test_format_temperature_rejects_non_finite(client, raw):
    response = client.get(f"/api/settings/temperature/format?celsius={raw}")
    assert response.status_code == 400
    assert response.get_json()["error"]["message"] == "celsius must be a finite number."


def test_format_temperature_huge_reading(client):
    response = client.get("/api/settings/temperature/format?celsius=1e30")
    assert response.status_code == 200
    assert response.get_json()["data"]["formatted"] == "1e+30°C"


def test_settings_survive_app_restart(tmp_path, unit_client):
    from thermacore import create_app

    overrides = {
        "log_dir": "",
        "audit_log_path": str(tmp_path / "audit.log"),
        "storage_dir": str(tmp_path / "var"),
    }
    first = create_app(overrides, unit_client=unit_client)
    first.test_client().put("/api/settings/volume", json={"volume": 70})
    first.config["CONTAINER"].shutdown()

    second = create_app(overrides, unit_client=unit_client)
    assert _data(second.test_client().get("/api/settings"))["volume"] == 70
    second.config["CONTAINER"].shutdown()
