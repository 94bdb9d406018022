"""
Unit Control Service
====================

Coordinates the remote control panel of each open unit view.

Every destructive toggle is two-step: ``request`` validates the change and
returns a pending confirmation with the prospective state, nothing is
committed; ``confirm`` re-validates against the committed state and applies
the transition (cascade included) atomically; ``cancel`` drops the pending
change and leaves the committed state untouched.

Committed transitions that change state:
- publish a ``UnitControlEvent`` on the event bus (logging and audit
  listeners hang off it)
- play the matching sound cue through the audio sink at the current gain

Control state is transient: it is initialised from the unit record when a
view opens and discarded when the view closes.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from thermacore.domain.exceptions import ConflictError, NotFoundError
from thermacore.domain.unit_control import (
    SetMachine,
    SetWaterProduction,
    Transition,
    UnitControlAction,
    UnitControlState,
    reduce,
)
from thermacore.enums.common import UnitControl, UnitStatus
from thermacore.enums.events import SoundCue, UnitControlEvent
from thermacore.schemas.events import UnitControlChangedPayload
from thermacore.schemas.units import UnitRecord
from thermacore.utils.event_bus import EventBus
from thermacore.utils.time import iso_now

logger = logging.getLogger(__name__)

SoundSink = Callable[[SoundCue, float], None]

_EVENTS = {
    UnitControl.MACHINE: UnitControlEvent.MACHINE_POWER_CHANGED,
    UnitControl.WATER_PRODUCTION: UnitControlEvent.WATER_PRODUCTION_CHANGED,
    UnitControl.AUTO_SWITCH: UnitControlEvent.AUTO_SWITCH_CHANGED,
}


def sound_cue_for(action: UnitControlAction) -> SoundCue:
    if isinstance(action, SetMachine):
        return SoundCue.POWER_ON if action.on else SoundCue.POWER_OFF
    if isinstance(action, SetWaterProduction):
        return SoundCue.WATER_ON if action.on else SoundCue.WATER_OFF
    return SoundCue.COOL_TONES


@dataclass(frozen=True)
class PendingChange:
    """A proposed toggle awaiting confirmation."""

    token: str
    action: UnitControlAction
    prospective: UnitControlState
    requested_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "control": self.action.control.value,
            "on": self.action.on,
            "prospective_state": self.prospective.to_dict(),
            "requested_at": self.requested_at,
        }


@dataclass
class ControlView:
    unit: UnitRecord
    state: UnitControlState
    pending: Optional[PendingChange] = None
    opened_at: str = field(default_factory=iso_now)


class UnitControlService:
    """One coordinator for all open control views in this process."""

    def __init__(
        self,
        *,
        event_bus: Optional[EventBus] = None,
        sound_sink: Optional[SoundSink] = None,
        gain_provider: Optional[Callable[[], float]] = None,
        auto_switch_trigger_percent: int = 75,
    ) -> None:
        self.event_bus = event_bus
        self.sound_sink = sound_sink
        self.gain_provider = gain_provider
        self.auto_switch_trigger_percent = auto_switch_trigger_percent
        self._views: Dict[str, ControlView] = {}

    # --- View lifecycle ------------------------------------------------------------
    def open_view(self, unit: UnitRecord) -> ControlView:
        state = UnitControlState.from_unit(
            unit.status,
            water_generation=unit.watergeneration,
            water_production_on=unit.water_production_on,
            auto_switch_enabled=unit.auto_switch_enabled,
        )
        view = ControlView(unit=unit, state=state)
        self._views[unit.id] = view
        logger.debug("Opened control view for unit %s: %s", unit.id, state)
        return view

    def close_view(self, unit_id: str) -> bool:
        return self._views.pop(unit_id, None) is not None

    def get_view(self, unit_id: str) -> ControlView:
        view = self._views.get(unit_id)
        if view is None:
            raise NotFoundError(f"No open control view for unit {unit_id}", detail={"unit_id": unit_id})
        return view

    def state(self, unit_id: str) -> UnitControlState:
        return self.get_view(unit_id).state

    # --- Confirm-then-commit -------------------------------------------------------
    def request(self, unit_id: str, action: UnitControlAction) -> PendingChange:
        """Validate ``action`` and park it until confirmed.

        Replaces any earlier pending change for the unit.
        """
        view = self.get_view(unit_id)
        transition = reduce(view.state, action, water_generation=view.unit.watergeneration)
        pending = PendingChange(
            token=secrets.token_hex(8),
            action=action,
            prospective=transition.state,
            requested_at=iso_now(),
        )
        view.pending = pending
        return pending

    def _take_pending(self, view: ControlView, token: str) -> PendingChange:
        pending = view.pending
        if pending is None or not secrets.compare_digest(pending.token, token):
            raise ConflictError(
                "No matching pending change; it was confirmed, cancelled or superseded",
                detail={"unit_id": view.unit.id},
            )
        view.pending = None
        return pending

    def confirm(self, unit_id: str, token: str, *, actor: str = "operator") -> Transition:
        view = self.get_view(unit_id)
        pending = self._take_pending(view, token)
        return self.apply(unit_id, pending.action, actor=actor)

    def cancel(self, unit_id: str, token: str) -> PendingChange:
        view = self.get_view(unit_id)
        return self._take_pending(view, token)

    def apply(self, unit_id: str, action: UnitControlAction, *, actor: str = "operator") -> Transition:
        """Commit ``action`` immediately (the caller has already confirmed it)."""
        view = self.get_view(unit_id)
        transition = reduce(view.state, action, water_generation=view.unit.watergeneration)
        view.state = transition.state
        if not transition.changed:
            return transition

        if isinstance(action, SetMachine):
            status = UnitStatus.ONLINE if action.on else UnitStatus.OFFLINE
            view.unit = view.unit.model_copy(update={"status": status.value})
        if view.pending is not None:
            # A pending change computed against the old state is stale now
            view.pending = None

        self._emit(view, transition, actor)
        return transition

    # --- Side effects --------------------------------------------------------------
    def _emit(self, view: ControlView, transition: Transition, actor: str) -> None:
        action = transition.action
        if self.event_bus is not None:
            self.event_bus.publish(
                _EVENTS[action.control],
                UnitControlChangedPayload(
                    unit_id=view.unit.id,
                    unit_name=view.unit.name or None,
                    control=action.control,
                    on=action.on,
                    cascaded=list(transition.cascaded),
                    state=transition.state.to_dict(),
                    actor=actor,
                    timestamp=iso_now(),
                ),
            )
        self._play(sound_cue_for(action))

    def _play(self, cue: SoundCue) -> None:
        if self.sound_sink is None:
            return
        gain = self.gain_provider() if self.gain_provider is not None else 1.0
        if gain <= 0:
            return
        try:
            self.sound_sink(cue, gain)
        except Exception as e:
            logger.warning("Audio sink failed to play %s: %s", cue.value, e)

    # --- Presentation --------------------------------------------------------------
    def auto_switch_would_engage(self, unit_id: str) -> Optional[bool]:
        """Whether automatic water production would switch on right now.

        ``None`` when the tank level is unknown.
        """
        view = self.get_view(unit_id)
        percent = view.unit.water_level_percent
        if percent is None:
            return None
        return view.state.auto_switch_enabled and percent < self.auto_switch_trigger_percent

    def describe(self, unit_id: str) -> Dict[str, Any]:
        view = self.get_view(unit_id)
        return {
            "unit_id": view.unit.id,
            "unit_name": view.unit.name,
            "status": view.unit.status,
            "status_label": view.state.status_label,
            "water_generation": view.unit.watergeneration,
            "state": view.state.to_dict(),
            "pending": view.pending.to_dict() if view.pending else None,
            "auto_switch": {
                "trigger_percent": self.auto_switch_trigger_percent,
                "water_level": view.unit.water_level,
                "water_level_percent": view.unit.water_level_percent,
                "would_engage": self.auto_switch_would_engage(unit_id),
            },
        }
