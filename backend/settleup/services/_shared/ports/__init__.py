"""
settleup.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts for
session infrastructure.

These ports decouple the service layer from concrete implementations of
access-token signing and refresh-token persistence.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider` and :class:`~.AccessClaims`, the
    abstraction for minting and verifying signed access tokens.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore` and :class:`~.RefreshTokenView`, the
    abstraction for fingerprint-keyed refresh-token persistence.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis, flask-jwt-extended) implement these
interfaces under ``settleup.infra``. The in-memory and stub variants live
here for tests and single-process setups.
"""

from __future__ import annotations

from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    RefreshTokenView,
)
from .token_provider import AccessClaims, StubTokenProvider, TokenProvider

__all__ = [
    "AccessClaims",
    "TokenProvider",
    "StubTokenProvider",
    "RefreshTokenStore",
    "RefreshTokenView",
    "InMemoryRefreshTokenStore",
]
