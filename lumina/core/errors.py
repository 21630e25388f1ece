"""Exception types for the external service layer."""

from __future__ import annotations


class LuminaError(Exception):
    """Base class for all Lumina errors."""


class MissingCredentialError(LuminaError):
    """A required API credential is absent (precondition failure)."""

    def __init__(self, service: str):
        super().__init__(f"Missing {service} API credential.")
        self.service = service


class ServiceError(LuminaError):
    """Transport failure: network error or non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedResponseError(LuminaError):
    """Response arrived but its body could not be interpreted."""
