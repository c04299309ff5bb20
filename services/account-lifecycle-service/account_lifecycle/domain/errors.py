"""Exception hierarchy for account lifecycle workflows."""

from __future__ import annotations


class LifecycleError(Exception):
    """Base class for errors surfaced to callers of lifecycle operations."""


class AuthorizationError(LifecycleError):
    """The credential proof is missing or does not match; nothing was mutated."""


class ValidationError(LifecycleError):
    """The request is malformed or refers to an unknown account."""


class StorageError(LifecycleError):
    """The profile artifact could not be moved into quarantine."""


class InternalError(LifecycleError):
    """Unexpected failure; the message never carries internal detail."""
