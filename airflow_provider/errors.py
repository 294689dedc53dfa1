"""Error taxonomy for the Airflow provider.

Every failure that reaches the orchestration host is one of these. The
messages are written to be shown verbatim: they carry the resource key,
the attempted operation and, for remote failures, the HTTP status and
response body.
"""
from __future__ import annotations

from typing import Any

# Longest response body quoted in an error message.
MAX_BODY_LENGTH = 4096


class AirflowProviderError(Exception):
    """Base class for all provider errors."""

    kind = "AirflowProviderError"

    def as_diagnostic(self) -> dict[str, Any]:
        """Return the error in the shape sent back to the host."""
        return {"kind": self.kind, "message": str(self)}


class ConfigurationError(AirflowProviderError):
    """Invalid or conflicting settings, detected before any remote call."""

    kind = "ConfigurationError"


class NotFoundRecoverable(AirflowProviderError):
    """
    The remote object does not exist.

    Raised by ``BaseResource`` when fetching an object gets a 404. ``read``
    turns it into a cleared ID and ``import_state`` into an ``APIError``,
    so it never reaches the host.
    """

    kind = "NotFoundRecoverable"

    def __init__(self, resource_kind: str, key: str):
        super().__init__(f"{resource_kind} `{key}` not found in Airflow")
        self.resource_kind = resource_kind
        self.key = key


class APIError(AirflowProviderError):
    """A non-success HTTP response from the Airflow REST API."""

    kind = "APIError"

    def __init__(
        self,
        operation: str,
        resource_kind: str,
        key: str,
        status: int,
        reason: str = "",
        body: str = "",
    ):
        self.operation = operation
        self.resource_kind = resource_kind
        self.key = key
        self.status = status
        self.reason = reason
        self.body = (body or "")[:MAX_BODY_LENGTH]
        status_line = f"{status} {reason}".strip()
        super().__init__(
            f"failed to {operation} {resource_kind} `{key}`, "
            f"Status: `{status_line}` from Airflow: {self.body}"
        )

    @classmethod
    def from_response(cls, operation: str, resource_kind: str, key: str, response) -> "APIError":
        """Build the error from a ``requests.Response``."""
        try:
            body = response.text
        except Exception as exc:  # undecodable payload
            body = f"error reading response from Airflow: {exc}"
        return cls(
            operation,
            resource_kind,
            key,
            status=response.status_code,
            reason=response.reason or "",
            body=body,
        )

    def as_diagnostic(self) -> dict[str, Any]:
        diag = super().as_diagnostic()
        diag.update({
            "operation": self.operation,
            "resource_kind": self.resource_kind,
            "key": self.key,
            "status": self.status,
            "body": self.body,
        })
        return diag


class TransportError(AirflowProviderError):
    """
    A network or TLS failure before any HTTP response was obtained.

    The underlying ``requests`` exception is chained as ``__cause__``.
    """

    kind = "TransportError"

    def __init__(
        self,
        method: str,
        url: str,
        cause: BaseException | None,
        operation: str = "",
        resource_kind: str = "",
        key: str = "",
    ):
        self.method = method
        self.url = url
        self.cause = cause
        self.operation = operation
        self.resource_kind = resource_kind
        self.key = key
        message = f"{method} {url} failed before Airflow responded: {cause}"
        if operation:
            message = f"failed to {operation} {resource_kind} `{key}`: {message}"
        super().__init__(message)

    def with_context(self, operation: str, resource_kind: str, key: str) -> "TransportError":
        """Return a copy of this error that names the resource operation it broke."""
        return TransportError(self.method, self.url, self.cause, operation, resource_kind, key)

    def as_diagnostic(self) -> dict[str, Any]:
        diag = super().as_diagnostic()
        diag.update({
            "operation": self.operation,
            "resource_kind": self.resource_kind,
            "key": self.key,
            "method": self.method,
            "url": self.url,
        })
        return diag
