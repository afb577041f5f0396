"""Convenience exports for application schemas."""

from __future__ import annotations

from .account import AccountSchema
from .auth import LoginSchema, MessageSchema, RegisterSchema, TokenResponseSchema

__all__ = [
    "AccountSchema",
    "LoginSchema",
    "MessageSchema",
    "RegisterSchema",
    "TokenResponseSchema",
]
