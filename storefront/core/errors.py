"""Error taxonomy raised by the store service and mapped to HTTP responses."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    status_code = 400


class NotFoundError(StoreError):
    status_code = 404


class AuthError(StoreError):
    status_code = 401


class BackendError(StoreError):
    """Storage failure. The message never carries driver internals."""

    def __init__(self, message: str = "Storage backend unavailable"):
        super().__init__(message)
