# This project was developed with assistance from AI tools.
"""Error taxonomy for the export profile engine.

Services raise these; the app-level handler in ``main.py`` maps each to an
RFC 7807 response using ``status_code``. Nothing here is retried
automatically -- callers decide.
"""


class ProfileError(Exception):
    """Base class for export profile errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProfileError):
    """Invalid or missing input; the caller must correct it and retry."""

    status_code = 422


class NotFoundError(ProfileError):
    """The referenced profile does not exist in the caller's organization."""

    status_code = 404


class NoDefaultProfileError(NotFoundError):
    """The organization has no active default profile to resolve."""


class ConflictError(ProfileError):
    status_code = 409


class AmbiguousDefaultError(ConflictError):
    """More than one active profile in the organization is marked default."""

    def __init__(self, message: str, profile_ids: list[str]):
        super().__init__(message)
        self.profile_ids = profile_ids


class StorageError(ProfileError):
    """The backing store failed; the original exception is chained as __cause__."""

    status_code = 503
