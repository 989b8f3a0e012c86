"""Engine error types."""

from __future__ import annotations


class ProvisionerError(Exception):
    """Base exception for reconciliation errors."""


class ValidationError(ProvisionerError):
    """A precondition failed before any request was sent."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        msg = "Validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(msg)


class TransportError(ProvisionerError):
    """The request itself failed (DNS, connection refused, cancellation)."""


class DecodeError(ProvisionerError):
    """A response body did not match the expected envelope."""


class RemoteError(ProvisionerError):
    """The remote service answered with a non-success status and an error envelope."""

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        code: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.suggestion = suggestion


class NotFoundError(ProvisionerError):
    """The remote object does not exist (HTTP 404).

    Read and delete consume this; it is never surfaced from those operations.
    """

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class ResponseCardinalityError(ProvisionerError):
    """A single-resource request returned an unexpected number of identifiers."""

    def __init__(self, expected: int, got: int) -> None:
        super().__init__(f"Expected {expected} identifier(s) in response, got {got}")
        self.expected = expected
        self.got = got


class UnknownResourceTypeError(ProvisionerError):
    """Raised when a resource type has no registration/handler."""

    def __init__(self, resource_type: str) -> None:
        super().__init__(f"Unknown resource type: {resource_type}")
        self.resource_type = resource_type


class StateLockError(ProvisionerError):
    """Raised when the state lock cannot be acquired or released."""


class ConfigError(ProvisionerError):
    """Raised for configuration loading / validation errors."""
