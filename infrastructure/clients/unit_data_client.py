"""
Unit Data Service Client
========================

Thin HTTP client for the remote service that owns unit records. ThermaCore
never talks to devices directly; it reads unit records (status, water
generation capability, tank level) from this service and forwards the few
descriptive edits an operator can make (name, location, GPS).

Every transport or HTTP failure is raised as
:class:`~thermacore.domain.exceptions.ExternalServiceError` so callers can
roll back optimistic local changes.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from thermacore.domain.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class UnitDataClient:
    """requests-based client for ``<base_url>/units``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, *parts: Any) -> str:
        return "/".join([self.base_url, "units", *[str(p) for p in parts]])

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("Unit data service %s %s failed: %s", method, url, e)
            raise ExternalServiceError(
                f"Unit data service request failed: {method} {url}",
                detail={"method": method, "url": url},
            ) from e
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(
                "Unit data service returned a non-JSON body",
                detail={"method": method, "url": url},
            ) from e

    def get_all_units(self) -> List[Dict[str, Any]]:
        data = self._request("GET", self._url())
        if isinstance(data, dict):
            data = data.get("units") or data.get("data") or []
        if not isinstance(data, list):
            raise ExternalServiceError("Unexpected unit list payload", detail={"type": type(data).__name__})
        return data

    def update_unit_name(self, unit_id: str, name: str) -> None:
        self._request("PATCH", self._url(unit_id), json={"name": name})

    def update_unit_location(self, unit_id: str, location: str) -> None:
        self._request("PATCH", self._url(unit_id), json={"location": location})

    def update_unit_gps(self, unit_id: str, gps_coordinates: str) -> None:
        self._request("PATCH", self._url(unit_id), json={"gpsCoordinates": gps_coordinates})

    def get_notifications(self) -> List[Dict[str, Any]]:
        """Current alerts and alarms in the snapshot wire format."""
        data = self._request("GET", f"{self.base_url}/notifications")
        if isinstance(data, dict):
            data = data.get("notifications") or data.get("data") or []
        if not isinstance(data, list):
            raise ExternalServiceError("Unexpected notification list payload", detail={"type": type(data).__name__})
        return data
