"""
middleware/auth_middleware.py — Caller identification decorator.

The @require_user decorator:
  1. Reads the X-User-Id header set by the upstream gateway
  2. Attaches it to flask.g.user_id for the duration of the request
  3. Returns 401 USER_ID_MISSING if the header is absent or blank

Strict responsibility boundary:
  - The header is trusted as given; verifying it is the gateway's job.
  - This middleware does NOT perform business authorization (RSVP target
    lists, payment ownership). That belongs in the service layer.
    Middleware = identification (401). Service = authorization (403).
  - Services receive user_id as a plain string argument, with no knowledge
    of HTTP headers.
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import g, request

from backend.app.errors import AppError, ErrorCode

USER_ID_HEADER = "X-User-Id"


def require_user(f: Callable) -> Callable:
    """
    Route decorator that requires the X-User-Id header.

    Usage:
        @bp.route("/settlements/me")
        @require_user
        def my_settlements():
            user_id = g.user_id  # always a non-empty str when this runs
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _identify_caller()
        return f(*args, **kwargs)

    return decorated


def _identify_caller() -> None:
    """
    Sets flask.g.user_id from the request header.

    Separated from the decorator wrapper so tests can call it directly
    inside a test request context.
    """
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    if not user_id:
        raise AppError(
            ErrorCode.USER_ID_MISSING,
            f"Identify the caller with the {USER_ID_HEADER} header.",
            401,
        )
    g.user_id = user_id
