"""Exception hierarchy for the MoySklad client."""

from __future__ import annotations

from typing import Any


class MoySkladError(Exception):
    """Base exception for moysklad client errors."""
    pass


class TransportError(MoySkladError):
    """Network, DNS, TLS or protocol failure talking to the service."""
    pass


class RequestTimeoutError(TransportError):
    """The service did not answer within the configured timeout."""
    pass


class DecodeError(MoySkladError):
    """Response body could not be decoded into the requested shape."""
    pass


class UnknownTypeError(DecodeError):
    """Entity type discriminator is not one of the known MetaType values."""

    def __init__(self, type_name: str | None):
        super().__init__(f"Unknown entity type: {type_name!r}")
        self.type_name = type_name


class RemoteAPIError(MoySkladError):
    """
    The service answered with a structured error document.

    Attributes:
        status_code: HTTP status of the response
        code: First error code from the ``errors`` array (if any)
        message: First error message from the ``errors`` array
        errors: The full ``errors`` array as received
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Any = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(f"[{status_code}] {message}" + (f" (code {code})" if code is not None else ""))
        self.status_code = status_code
        self.message = message
        self.code = code
        self.errors = errors or []

    @property
    def transient(self) -> bool:
        """True when a caller-level retry may succeed (5xx and 429)."""
        return self.status_code >= 500 or self.status_code == 429

    @classmethod
    def from_body(cls, status_code: int, body: Any, fallback: str = "") -> RemoteAPIError:
        """Build the matching subclass from a decoded error body."""
        errors: list[dict[str, Any]] = []
        if isinstance(body, dict) and isinstance(body.get("errors"), list):
            errors = [e for e in body["errors"] if isinstance(e, dict)]
        elif isinstance(body, list):
            # Bulk endpoints may answer with an array of error documents
            for item in body:
                if isinstance(item, dict) and isinstance(item.get("errors"), list):
                    errors.extend(e for e in item["errors"] if isinstance(e, dict))

        first = errors[0] if errors else {}
        message = first.get("error") or fallback or f"HTTP {status_code}"
        code = first.get("code")

        if status_code == 404:
            error_cls: type[RemoteAPIError] = NotFoundError
        elif status_code in (401, 403):
            error_cls = AccessDeniedError
        else:
            error_cls = RemoteAPIError
        return error_cls(status_code, message, code=code, errors=errors)


class NotFoundError(RemoteAPIError):
    """Requested resource does not exist."""
    pass


class AccessDeniedError(RemoteAPIError):
    """Authentication failed or the account lacks permission."""
    pass


class CancelledError(MoySkladError):
    """The caller cancelled the operation through its Context."""
    pass


class DeadlineExceededError(CancelledError):
    """The caller's Context deadline passed before the operation finished."""
    pass


class AsyncOperationError(MoySkladError):
    """An asynchronous job finished in the failed state."""

    def __init__(self, message: str, cause: RemoteAPIError | None = None):
        super().__init__(message)
        self.cause = cause


class AsyncTimeoutError(MoySkladError):
    """Polling an asynchronous job did not reach a terminal state in time."""
    pass
