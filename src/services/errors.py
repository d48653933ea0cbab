from __future__ import annotations

from enum import Enum


class RemoteErrorKind(str, Enum):
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    FATAL = "fatal"


class ServiceError(Exception):
    pass


class RemoteOperationError(ServiceError):
    def __init__(self, kind: RemoteErrorKind, operation: str, message: str = ""):
        detail = f": {message}" if message else ""
        super().__init__(f"Remote {operation} failed ({kind.value}){detail}")
        self.kind = kind
        self.operation = operation
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.kind is RemoteErrorKind.TRANSIENT


class NetworkTimeoutError(RemoteOperationError):
    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(
            RemoteErrorKind.TRANSIENT,
            "request",
            f"Network timeout after {timeout_seconds}s: {url}",
        )
        self.url = url
        self.timeout_seconds = timeout_seconds


class MissingAuthTokenError(RemoteOperationError):
    def __init__(self, operation: str):
        super().__init__(RemoteErrorKind.FATAL, operation, "Missing auth token. Please login again.")
