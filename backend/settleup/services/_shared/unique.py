"""Retry-until-unique helper for randomly generated identifiers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from settleup.services._shared.errors import UniqueValueExhaustedError

T = TypeVar("T")

log = logging.getLogger(__name__)


def generate_unique(
    generate: Callable[[], T],
    exists: Callable[[T], bool],
    *,
    max_retries: int = 5,
    label: str = "value",
) -> T:
    """
    Generate a value that ``exists`` reports as unused.

    The check and the later insert are not atomic; callers keep a unique
    constraint as the final guard.

    :param generate: Zero-argument generator of candidate values.
    :param exists: Predicate returning ``True`` when a candidate is taken.
    :param max_retries: Retries after the first attempt, so at most
        ``max_retries + 1`` candidates are tried.
    :param label: Human-readable name used in logs and the error message.
    :returns: The first candidate not reported as taken.
    :raises UniqueValueExhaustedError: When every attempt collided.
    """
    attempts = max(0, int(max_retries)) + 1
    for attempt in range(1, attempts + 1):
        candidate = generate()
        if not exists(candidate):
            return candidate
        log.warning("Collision generating %s (attempt %d/%d)", label, attempt, attempts)
    raise UniqueValueExhaustedError(
        f"Failed to generate a unique {label} after {attempts} attempts"
    )
