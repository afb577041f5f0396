"""Password hashing and input checks for registered accounts."""

from __future__ import annotations

import re

from werkzeug.security import check_password_hash, generate_password_hash

# Deliberately loose: one "@", no whitespace, a dot in the domain part
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(raw: str) -> str:
    """
    Return a salted, slow one-way hash of ``raw``.

    :param raw: Plain text password.
    :type raw: str
    :returns: Hash string in werkzeug's ``method$salt$hash`` format.
    :rtype: str
    :raises ValueError: If ``raw`` is empty.
    """
    if not isinstance(raw, str) or not raw:
        raise ValueError("Password must be a non-empty string.")
    return generate_password_hash(raw)


def verify_password(password_hash: str | None, raw: str) -> bool:
    """
    Verify ``raw`` against a stored hash. A missing hash never verifies.

    :param password_hash: Stored hash, ``None`` for guests.
    :type password_hash: str | None
    :param raw: Plain text password candidate.
    :type raw: str
    :returns: ``True`` if it matches; otherwise ``False``.
    :rtype: bool
    """
    if not password_hash or not raw:
        return False
    return bool(check_password_hash(password_hash, raw))


def is_valid_email(value: str | None) -> bool:
    """Return ``True`` when ``value`` looks like an email address."""
    return bool(value) and _EMAIL_RE.match(value.strip()) is not None  # type: ignore[union-attr]


def is_valid_password(value: str | None, *, min_length: int) -> bool:
    """Return ``True`` when ``value`` has at least ``min_length`` characters."""
    return isinstance(value, str) and len(value) >= min_length
