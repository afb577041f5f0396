"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`settleup.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``settleup.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Identity service (from ``settleup.services.identity``)
    * :class:`IdentityService`
    * DTOs: :class:`AccountOut`

- Session manager (from ``settleup.services.auth``)
    * :class:`SessionManager`
    * DTOs: :class:`RegisterIn`, :class:`CredentialsIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`TokenPairOut`, :class:`AuthTokenConfig`
"""

from __future__ import annotations

# Base primitives (service base + request-scoped context)
from ._shared.base import BaseService, ServiceContext

# Session manager + DTOs
from .auth.dto import (
    AuthTokenConfig,
    CredentialsIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from .auth.service import SessionManager

# Identity service + DTOs
from .identity.dto import AccountOut
from .identity.service import IdentityService

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    # Identity
    "IdentityService",
    "AccountOut",
    # Sessions
    "SessionManager",
    "RegisterIn",
    "CredentialsIn",
    "RefreshIn",
    "LogoutIn",
    "TokenPairOut",
    "AuthTokenConfig",
]
