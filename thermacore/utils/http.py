"""JSON envelope helpers shared by the ThermaCore API blueprints.

Every response has the shape ``{"ok": bool, "data": ..., "error": ...}``.
Errors carry ``message``, ``timestamp`` and, when known, a ``code`` naming
the exception class so the dashboard can branch without parsing text.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from thermacore.utils.time import iso_now

_log = logging.getLogger(__name__)

# Shown instead of the exception text for 5xx responses
_SERVER_MESSAGES: dict[int, str] = {
    500: "An internal error occurred",
    502: "Unit data service unavailable",
}


def _envelope(ok: bool, data: Any, error: dict | None, status: int, **extra: Any) -> Response:
    response = jsonify({"ok": ok, "data": data, "error": error, **extra})
    response.status_code = status
    return response


def success_response(data: Any = None, status: int = 200, *, message: str | None = None) -> Response:
    if message is None:
        return _envelope(True, data, None, status)
    return _envelope(True, data, None, status, message=message)


def error_response(
    message: str,
    status: int = 500,
    *,
    code: str | None = None,
    details: dict | None = None,
) -> Response:
    error: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    if code:
        error["code"] = code
    if details:
        error["details"] = details
    return _envelope(False, None, error, status)


def server_error(exc: BaseException, status: int = 500, *, context: str = "", code: str | None = None) -> Response:
    """Log *exc* with its traceback and answer with a fixed message.

    The exception text stays in the server log only.
    """
    _log.error("%s (HTTP %s): %s", context or "Request failed", status, exc, exc_info=exc)
    return error_response(_SERVER_MESSAGES.get(status, _SERVER_MESSAGES[500]), status, code=code)


def safe_route(error_message: str = "An internal error occurred", *, error_status: int = 500) -> Callable:
    """Translate exceptions raised by a route into error envelopes.

    ``ThermaCoreError`` subclasses answer with their ``http_status``. Client
    errors (4xx) expose the exception message and detail; server errors are
    logged and answered through :func:`server_error`. Anything else becomes
    ``error_status``.
    """
    from thermacore.domain.exceptions import ThermaCoreError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except ThermaCoreError as exc:
                code = type(exc).__name__
                if exc.http_status >= 500:
                    return server_error(exc, exc.http_status, context=error_message, code=code)
                _log.info("%s (HTTP %s, %s): %s %s", error_message, exc.http_status, code, exc, exc.detail or "")
                return error_response(
                    str(exc) or error_message,
                    exc.http_status,
                    code=code,
                    details=exc.detail or None,
                )
            except Exception as exc:
                return server_error(exc, error_status, context=error_message)

        return wrapper

    return decorator
