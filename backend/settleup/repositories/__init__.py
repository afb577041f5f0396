"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from settleup.repositories.account import AccountRepository
from settleup.repositories.base import BaseRepository, apply_sorting
from settleup.repositories.refresh_token import RefreshTokenRepository

__all__ = [
    "BaseRepository",
    "apply_sorting",
    "AccountRepository",
    "RefreshTokenRepository",
]
