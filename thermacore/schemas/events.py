from typing import Any, Literal

from pydantic import BaseModel, Field

from thermacore.enums.common import UnitControl

SnapshotTrigger = Literal["panel_opened", "history_viewed"]


class UnitControlChangedPayload(BaseModel):
    """Payload for committed unit control transitions."""

    schema_version: int = Field(default=1)

    unit_id: str
    unit_name: str | None = None
    control: UnitControl
    on: bool
    cascaded: list[UnitControl] = Field(default_factory=list)
    state: dict[str, bool]
    actor: str = "operator"
    timestamp: str


class SettingsChangedPayload(BaseModel):
    settings: dict[str, Any]
    effective_volume: int = Field(ge=0, le=100)
    timestamp: str


class NotificationSnapshotPayload(BaseModel):
    trigger: SnapshotTrigger
    role: str
    count: int = Field(ge=0)
    timestamp: str
