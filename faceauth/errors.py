"""Error taxonomy for the identity store.

All errors are reported synchronously to the caller; nothing is retried here.
"""
from __future__ import annotations


class FaceAuthError(Exception):
    """Base class for every error raised by faceauth."""


class NotReady(FaceAuthError):
    """A store operation was attempted before `load()` completed."""

    def __init__(self, operation: str = "operation"):
        super().__init__(f"descriptor store is not loaded; cannot run {operation}")
        self.operation = operation


class DuplicateEmail(FaceAuthError):
    """Enrollment attempted for an email that is already enrolled."""

    def __init__(self, email: str):
        super().__init__(f"User with this email already exists: {email}")
        self.email = email


class DescriptorLengthMismatch(FaceAuthError, ValueError):
    """A descriptor does not have the store-wide fixed length.

    This is an integration fault (wrong model, wrong payload), not a user error.
    """

    def __init__(self, expected: int, actual: int, shape=None):
        if shape is not None:
            msg = f"descriptor must be a flat vector of length {expected}, got shape {tuple(shape)}"
        else:
            msg = f"descriptor length mismatch: expected {expected}, got {actual}"
        super().__init__(msg)
        self.expected = expected
        self.actual = actual
        self.shape = shape


class PersistenceFailure(FaceAuthError):
    """Reading, writing or erasing the persisted blob failed, or the blob is corrupt."""


class InvalidEnrollment(FaceAuthError, ValueError):
    """Enrollment fields are blank."""
