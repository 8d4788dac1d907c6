"""Custom exceptions for ghcontributions."""


class ContributionsError(Exception):
    """Base exception for all contribution reporting errors."""


class InvalidUserError(ContributionsError):
    """Raised when a Reporter is constructed without a user login."""


class QueryFailure(ContributionsError):
    """Raised when a single GraphQL contributions query fails."""

    def __init__(self, message: str, *, user: str | None = None, year: int | None = None):
        self.user = user
        self.year = year
        super().__init__(message)


class SerializationFailure(ContributionsError):
    """Raised when the aggregated summary cannot be encoded."""


class CredentialsError(ContributionsError):
    """Raised when the credentials file cannot be read, decrypted or parsed."""
