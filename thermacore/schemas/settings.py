from pydantic import BaseModel, ConfigDict, Field

from thermacore.enums.common import TemperatureUnit


class VolumeUpdateRequest(BaseModel):
    """Request model for moving the volume slider.

    Out-of-range values are accepted here and clamped by the settings store.
    """

    volume: float = Field(..., allow_inf_nan=False, description="Requested volume (clamped to 0-100)")

    model_config = ConfigDict(json_schema_extra={"example": {"volume": 50}})


class TemperatureUnitRequest(BaseModel):
    unit: TemperatureUnit = Field(..., description="celsius or fahrenheit")

    model_config = ConfigDict(json_schema_extra={"example": {"unit": "fahrenheit"}})
