"""
Unit Directory Service
======================

Local cache of unit records fetched from the unit data service, plus the
descriptive edits an operator can make (name, location, GPS).

Edits are optimistic: the cached record changes first, then the remote call
is made; if it fails the record is reverted to its last-known-good value and
the error is re-raised for the caller to surface.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from thermacore.domain.exceptions import ExternalServiceError, NotFoundError
from thermacore.schemas.units import UnitRecord

logger = logging.getLogger(__name__)


class UnitDataSource(Protocol):
    def get_all_units(self) -> List[Dict[str, Any]]: ...

    def update_unit_name(self, unit_id: str, name: str) -> None: ...

    def update_unit_location(self, unit_id: str, location: str) -> None: ...

    def update_unit_gps(self, unit_id: str, gps_coordinates: str) -> None: ...

    def get_notifications(self) -> List[Dict[str, Any]]: ...


class UnitDirectoryService:
    def __init__(self, client: UnitDataSource) -> None:
        self.client = client
        self._units: Dict[str, UnitRecord] = {}
        self.last_error: Optional[str] = None

    def refresh(self) -> List[UnitRecord]:
        """Reload every unit record; on failure the previous cache is kept."""
        try:
            raw_units = self.client.get_all_units()
        except ExternalServiceError as e:
            self.last_error = str(e)
            logger.error("Failed to load units: %s", e)
            raise

        units: Dict[str, UnitRecord] = {}
        for raw in raw_units:
            try:
                unit = UnitRecord.model_validate(raw)
            except PydanticValidationError as e:
                logger.warning("Skipping malformed unit record %r: %s", raw.get("id") if isinstance(raw, dict) else raw, e)
                continue
            units[unit.id] = unit
        self._units = units
        self.last_error = None
        logger.info("Loaded %d units", len(units))
        return list(units.values())

    def list_units(self) -> List[UnitRecord]:
        return list(self._units.values())

    def get_unit(self, unit_id: str) -> UnitRecord:
        unit = self._units.get(unit_id)
        if unit is None:
            raise NotFoundError(f"Unit {unit_id} not found", detail={"unit_id": unit_id})
        return unit

    def _optimistic_update(self, unit_id: str, field_name: str, value: str, remote: Callable[[str, str], None]) -> UnitRecord:
        last_good = self.get_unit(unit_id)
        self._units[unit_id] = last_good.model_copy(update={field_name: value})
        try:
            remote(unit_id, value)
        except Exception as e:
            self._units[unit_id] = last_good
            logger.error("Failed to update unit %s %s, reverted: %s", unit_id, field_name, e)
            raise
        return self._units[unit_id]

    def rename(self, unit_id: str, name: str) -> UnitRecord:
        return self._optimistic_update(unit_id, "name", name, self.client.update_unit_name)

    def relocate(self, unit_id: str, location: str) -> UnitRecord:
        return self._optimistic_update(unit_id, "location", location, self.client.update_unit_location)

    def set_gps(self, unit_id: str, gps_coordinates: str) -> UnitRecord:
        return self._optimistic_update(unit_id, "gps_coordinates", gps_coordinates, self.client.update_unit_gps)
