"""
Error taxonomy shared by the stores and the data gateway.
"""


class JobVaultError(Exception):
    """Base class for all errors raised by the tracker core."""


class PersistenceError(JobVaultError):
    """Create/read/update/delete failure against the record store."""


class UploadError(JobVaultError):
    """Blob upload or public URL resolution failure."""


class AuthError(JobVaultError):
    """Session operation failure (sign-in, sign-out, token refresh)."""


class InvalidTransitionError(JobVaultError, ValueError):
    """A lifecycle move that is not allowed from the record's current state."""
