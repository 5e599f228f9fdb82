"""
Error taxonomy for the Lightning Address endpoints.

Every error carries the HTTP status it maps to and a human-readable reason.
The HTTP layer renders them all with the LUD-06 error shape:

    {"status": "ERROR", "reason": "..."}
"""

from __future__ import annotations

from typing import Any, Dict, Optional


def error_body(reason: str) -> Dict[str, Any]:
    """Build a LUD-06 error response body."""
    return {"status": "ERROR", "reason": reason}


class LightningAddressError(Exception):
    """Base class for errors that are reported to the client."""

    status_code: int = 500

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        return error_body(self.reason)


class InvalidAmount(LightningAddressError):
    """The requested amount is not acceptable."""

    status_code = 400

    def __init__(self, reason: str = "amount must > 0"):
        super().__init__(reason)


class UserNotFound(LightningAddressError):
    """The username is not configured on this server."""

    status_code = 400

    def __init__(self, username: str):
        super().__init__(f"user {username} not found")
        self.username = username


class BackendError(LightningAddressError):
    """A single wallet backend failed to produce an invoice."""

    status_code = 500


class AllBackendsFailed(LightningAddressError):
    """
    Every attempted backend failed.

    The reason is the message of the most recent backend error, which is
    also chained as ``__cause__``.
    """

    status_code = 500

    def __init__(self, username: str, last_error: Optional[BaseException]):
        reason = str(last_error) if last_error is not None else "no backend available"
        super().__init__(reason or type(last_error).__name__)
        self.username = username
        self.last_error = last_error
