"""Opaque refresh-token generation and fingerprinting."""

from __future__ import annotations

import hashlib
import secrets

REFRESH_TOKEN_BYTES = 40


def generate_refresh_token() -> str:
    """Return 40 bytes from the OS CSPRNG rendered as 80 hex characters."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def fingerprint_token(raw: str) -> str:
    """
    Return the SHA-256 hex digest of ``raw``.

    Deterministic and keyless: the same raw token always maps to the same
    stored record, and the record alone cannot be turned back into a token.
    """
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
