"""
DTOs for IdentityService.

Data Transfer Objects (DTOs) isolate the service layer from ORM models,
ensuring clear input/output contracts and type safety.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AccountOut:
    """
    Output DTO representing an account (never carries the credential hash).

    :param id: Account identifier (UUID string).
    :type id: str
    :param email: Login email, ``None`` for guests.
    :type email: str | None
    :param display_name: Public profile name.
    :type display_name: str | None
    :param is_guest: Whether the account is still a guest.
    :type is_guest: bool
    :param created_at: Creation timestamp.
    :type created_at: datetime | None
    :param last_active_at: Last time a session was minted.
    :type last_active_at: datetime | None
    """

    id: str
    email: str | None
    display_name: str | None
    is_guest: bool
    created_at: datetime | None = None
    last_active_at: datetime | None = None
