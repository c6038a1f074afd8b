class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when a write collides with existing data."""

    status_code = 409


class DuplicateCodeError(ConflictError):
    """Raised by a store when a generated code is already taken."""


class ForbiddenError(DomainError):
    """Raised when the entity exists but its lifecycle state forbids the action."""

    status_code = 403


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class AuthenticationError(DomainError):
    """Raised when the caller identity is missing or malformed."""

    status_code = 401
