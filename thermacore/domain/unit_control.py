"""
Unit Control State Machine
==========================

The three dependent switches of a unit's remote control panel and the pure
transition function that governs them.

Reachable states satisfy two invariants:

* machine off      => water production off and auto-switch off
* water production off => auto-switch off

Actions are plain tagged values; :func:`reduce` either returns the complete
next state (cascade included) or raises :class:`PreconditionError` and leaves
the caller's state untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Union

from thermacore.domain.exceptions import PreconditionError
from thermacore.enums.common import UnitControl, UnitStatus


@dataclass(frozen=True)
class UnitControlState:
    machine_on: bool = False
    water_production_on: bool = False
    auto_switch_enabled: bool = False

    def __post_init__(self) -> None:
        if not self.machine_on and (self.water_production_on or self.auto_switch_enabled):
            raise ValueError("Water production and auto-switch require the machine to be on")
        if not self.water_production_on and self.auto_switch_enabled:
            raise ValueError("Auto-switch requires water production to be on")

    @classmethod
    def from_unit(
        cls,
        status: UnitStatus | str | None,
        *,
        water_generation: bool = False,
        water_production_on: bool = False,
        auto_switch_enabled: bool = False,
    ) -> "UnitControlState":
        """Initial panel state from a unit's last known record.

        Inconsistent records are narrowed to the nearest reachable state.
        """
        machine_on = str(status) == UnitStatus.ONLINE.value
        water_on = machine_on and water_generation and bool(water_production_on)
        auto_on = water_on and bool(auto_switch_enabled)
        return cls(machine_on=machine_on, water_production_on=water_on, auto_switch_enabled=auto_on)

    @property
    def status_label(self) -> str:
        return "Running" if self.machine_on else "Stopped"

    def value_of(self, control: UnitControl) -> bool:
        return {
            UnitControl.MACHINE: self.machine_on,
            UnitControl.WATER_PRODUCTION: self.water_production_on,
            UnitControl.AUTO_SWITCH: self.auto_switch_enabled,
        }[control]

    def to_dict(self) -> dict[str, bool]:
        return {
            "machine_on": self.machine_on,
            "water_production_on": self.water_production_on,
            "auto_switch_enabled": self.auto_switch_enabled,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Actions
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SetMachine:
    on: bool
    control: UnitControl = field(default=UnitControl.MACHINE, init=False)


@dataclass(frozen=True)
class SetWaterProduction:
    on: bool
    control: UnitControl = field(default=UnitControl.WATER_PRODUCTION, init=False)


@dataclass(frozen=True)
class SetAutoSwitch:
    on: bool
    control: UnitControl = field(default=UnitControl.AUTO_SWITCH, init=False)


UnitControlAction = Union[SetMachine, SetWaterProduction, SetAutoSwitch]

_ACTIONS_BY_CONTROL = {
    UnitControl.MACHINE: SetMachine,
    UnitControl.WATER_PRODUCTION: SetWaterProduction,
    UnitControl.AUTO_SWITCH: SetAutoSwitch,
}


def action_for(control: UnitControl | str, on: bool) -> UnitControlAction:
    return _ACTIONS_BY_CONTROL[UnitControl(control)](on=bool(on))


@dataclass(frozen=True)
class Transition:
    """Outcome of applying one action."""

    previous: UnitControlState
    state: UnitControlState
    action: UnitControlAction
    cascaded: tuple[UnitControl, ...] = ()

    @property
    def changed(self) -> bool:
        return self.previous != self.state


# ─────────────────────────────────────────────────────────────────────────────
# Reducer
# ─────────────────────────────────────────────────────────────────────────────


def _forced_off(previous: UnitControlState, state: UnitControlState, *controls: UnitControl) -> tuple[UnitControl, ...]:
    return tuple(c for c in controls if previous.value_of(c) and not state.value_of(c))


def check(state: UnitControlState, action: UnitControlAction, *, water_generation: bool = True) -> None:
    """Raise :class:`PreconditionError` if ``action`` may not be applied.

    Switching a dependent control off is always allowed; with its
    prerequisite already off it is a no-op.
    """
    if isinstance(action, SetMachine) or not action.on:
        return
    detail = {"control": action.control.value, "state": state.to_dict()}
    if not water_generation:
        raise PreconditionError("Unit does not support water generation", detail=detail)
    if not state.machine_on:
        raise PreconditionError(f"Cannot enable {action.control.value} while the machine is off", detail=detail)
    if isinstance(action, SetAutoSwitch) and not state.water_production_on:
        raise PreconditionError("Cannot enable auto switch while water production is off", detail=detail)


def reduce(state: UnitControlState, action: UnitControlAction, *, water_generation: bool = True) -> Transition:
    """Apply ``action`` to ``state`` with all cascades, or raise PreconditionError."""
    check(state, action, water_generation=water_generation)

    if isinstance(action, SetMachine):
        if action.on:
            new_state = replace(state, machine_on=True)
        else:
            new_state = UnitControlState()
        cascaded = _forced_off(state, new_state, UnitControl.WATER_PRODUCTION, UnitControl.AUTO_SWITCH)

    elif isinstance(action, SetWaterProduction):
        if action.on:
            new_state = replace(state, water_production_on=True)
        else:
            new_state = replace(state, water_production_on=False, auto_switch_enabled=False)
        cascaded = _forced_off(state, new_state, UnitControl.AUTO_SWITCH)

    elif isinstance(action, SetAutoSwitch):
        new_state = replace(state, auto_switch_enabled=action.on)
        cascaded = ()

    else:
        raise TypeError(f"Unknown unit control action: {action!r}")

    return Transition(previous=state, state=new_state, action=action, cascaded=cascaded)
