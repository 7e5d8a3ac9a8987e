from __future__ import annotations


class MarketError(Exception):
    """Base for failures the routing layer turns into ``{"error": ...}`` bodies."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MarketError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(MarketError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(MarketError):
    status_code = 404
    default_message = "Not found"


def error_body(exc: MarketError) -> dict:
    return {"error": exc.message}
