"""Error types raised or logged by edge-kv."""

from __future__ import annotations


class EdgeKVError(Exception):
    """Base class for all edge-kv errors."""


class BackendInitError(EdgeKVError, RuntimeError):
    """A storage backend could not be constructed.

    Raised inside backend probes and recovered by the selector, which falls
    back to the next candidate. Callers of the storage facade never see it.
    """

    def __init__(self, backend: str, reason: str) -> None:
        super().__init__(f"{backend} backend unavailable: {reason}")
        self.backend = backend
        self.reason = reason


class OperationError(EdgeKVError, RuntimeError):
    """A single storage operation failed against a live backend."""

    def __init__(self, operation: str, target: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed for {target!r}: {cause}")
        self.operation = operation
        self.target = target
        self.cause = cause


class InvalidInputError(EdgeKVError, TypeError):
    """A response helper received something other than a fetch response."""


class NoFetchAvailableError(EdgeKVError, RuntimeError):
    """No HTTP client library is installed in the current interpreter."""
