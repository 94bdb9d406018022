"""Centralized exception hierarchy for ThermaCore.

All domain and service exceptions inherit from :class:`ThermaCoreError` so
that callers can catch a single base class when they need a broad safety net,
yet still match on specific subclasses where narrower handling is appropriate.

Route-level error handling (see ``thermacore/utils/http.safe_route``) maps
these to the correct HTTP status codes automatically.

Hierarchy
---------
::

    ThermaCoreError (base, maps to 500)
    ├── ValidationError          (400: bad input from caller)
    │   ├── VolumeRangeError     (400: volume is not a usable number)
    │   └── PreconditionError    (409: dependent control toggled while its prerequisite is off)
    ├── NotFoundError            (404: entity does not exist)
    ├── ConflictError            (409: stale or superseded confirmation)
    ├── ServiceError             (500: business-logic failure)
    │   ├── RepositoryError      (500: durable storage)
    │   └── ExternalServiceError (502: unit data service / network)
    └── ConfigurationError       (500: missing / invalid config)
"""

from __future__ import annotations


class ThermaCoreError(Exception):
    """Base exception for all ThermaCore application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, returned to the HTTP
        client only for 4xx errors).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(ThermaCoreError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class VolumeRangeError(ValidationError):
    """Volume could not be interpreted as a finite number (HTTP 400).

    Finite out-of-range values are clamped, not rejected.
    """


class PreconditionError(ValidationError):
    """A dependent control was toggled while its prerequisite is off (HTTP 409).

    State is left unchanged; the caller is expected to disable the control.
    """

    http_status: int = 409


class NotFoundError(ThermaCoreError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class ConflictError(ThermaCoreError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(ThermaCoreError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Durable storage failure (HTTP 500)."""

    http_status: int = 500


class ExternalServiceError(ServiceError):
    """Unit data service or network failure (HTTP 502)."""

    http_status: int = 502


class ConfigurationError(ThermaCoreError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
