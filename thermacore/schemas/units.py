from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from thermacore.enums.common import UnitControl


class UnitRecord(BaseModel):
    """Unit record as supplied by the unit data service.

    Only the fields the control panel consumes are modelled; anything else is
    ignored.
    """

    id: str
    name: str = ""
    location: str = ""
    status: str = "offline"
    watergeneration: bool = Field(default=False, validation_alias=AliasChoices("watergeneration", "water_generation"))
    water_production_on: bool = Field(
        default=False, validation_alias=AliasChoices("waterProductionOn", "water_production_on")
    )
    auto_switch_enabled: bool = Field(
        default=False, validation_alias=AliasChoices("autoSwitchEnabled", "auto_switch_enabled")
    )
    water_level: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("waterLevel", "water_level")
    )
    tank_capacity: Optional[float] = Field(
        default=None, gt=0, validation_alias=AliasChoices("tankCapacity", "tank_capacity")
    )
    gps_coordinates: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("gpsCoordinates", "gps_coordinates")
    )

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @property
    def water_level_percent(self) -> Optional[float]:
        if self.water_level is None or not self.tank_capacity:
            return None
        return self.water_level / self.tank_capacity * 100


class ControlChangeRequest(BaseModel):
    """Request model for proposing a control change (confirmed separately)."""

    control: UnitControl = Field(..., description="machine, water_production or auto_switch")
    on: bool = Field(..., description="Desired switch position")

    model_config = ConfigDict(json_schema_extra={"example": {"control": "machine", "on": False}})


class UnitUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    gps: Optional[str] = Field(default=None, pattern=r"^\s*-?\d+(\.\d+)?\s*,\s*-?\d+(\.\d+)?\s*$")

    @model_validator(mode="after")
    def _require_one_field(self) -> "UnitUpdateRequest":
        if self.name is None and self.location is None and self.gps is None:
            raise ValueError("At least one of name, location or gps is required")
        return self
