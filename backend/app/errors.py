"""
errors.py — AppError base class and error code registry.

Every error returned by the API must use a code defined here.
Do not raise strings or generic exceptions from service or route code.

Rules:
  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - 401 means the X-User-Id header is missing; 403 means the user is known
    but not allowed to act on the resource. Never swap them.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_AMOUNT             = "INVALID_AMOUNT"
    EMPTY_TARGET_USERS         = "EMPTY_TARGET_USERS"
    INVALID_MONTH              = "INVALID_MONTH"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    SETTLEMENT_NOT_FOUND       = "SETTLEMENT_NOT_FOUND"
    PAYMENT_NOT_FOUND          = "PAYMENT_NOT_FOUND"
    EVENT_NOT_FOUND            = "EVENT_NOT_FOUND"
    SERIES_NOT_FOUND           = "SERIES_NOT_FOUND"
    SESSION_NOT_FOUND          = "SESSION_NOT_FOUND"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    # Raised when the (settlement_id, user_id) unique constraint rejects a
    # second payment row, e.g. two concurrent syncs for the same user.
    PAYMENT_ALREADY_EXISTS     = "PAYMENT_ALREADY_EXISTS"

    # ── Caller Errors ──────────────────────────────────────────────────────
    USER_ID_MISSING            = "USER_ID_MISSING"        # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403

    # ── System Errors ──────────────────────────────────────────────────────
    STORE_ERROR                = "STORE_ERROR"            # 503
    INTERNAL_ERROR             = "INTERNAL_ERROR"         # 500


def not_found(code: str, what: str, identifier: str) -> AppError:
    """Builds the standard 404 error, e.g. not_found(SETTLEMENT_NOT_FOUND, "Settlement", id)."""
    return AppError(code, f"{what} {identifier} does not exist.", 404)
