"""Error taxonomy shared by the gateway and the services built on top of it."""

from enum import Enum


class ErrorType(str, Enum):
    """Types of errors that can occur."""

    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"
    APPLICATION_ERROR = "application_error"


class FurniError(Exception):
    """Base class for errors raised by the storefront client."""

    error_type: ErrorType = ErrorType.APPLICATION_ERROR

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


__all__ = ["ErrorType", "FurniError"]
