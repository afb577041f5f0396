"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or
HTTP. They serve as stable contracts between repositories, stores and
application services.

The translation to HTTP responses (RFC 7807) is handled by
``settleup/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str, *, columns: tuple[str, ...] = ()) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g. ``'uq_accounts_email'``).
    columns : tuple[str, ...], optional
        ``table.column`` names covered by the constraint. SQLite reports
        unique violations by column rather than by constraint name
        (``UNIQUE constraint failed: accounts.email``).

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return "unique" in message and any(col.lower() in message for col in columns)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    - The API layer translates them to ``APIError`` through ``BaseService``.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "Account").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Account").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class BadRequestError(ServiceError):
    """Raised when the input is well-formed but the operation is refused."""


class UnauthorizedError(ServiceError):
    """
    Raised when the caller cannot be authenticated.

    Covers bad credentials, invalid or expired access tokens, and refresh
    tokens that are unknown, already used or expired.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Fatal infrastructure errors (never translated to 4xx, never retried)
# --------------------------------------------------------------------------- #


class TokenCollisionError(RuntimeError):
    """Raised by a refresh-token store when the fingerprint is already stored."""


class UniqueValueExhaustedError(RuntimeError):
    """Raised when no unique value could be generated within the retry budget."""
