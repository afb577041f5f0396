"""Unit tests for the retry-until-unique helper and refresh-token values."""

from __future__ import annotations

import hashlib
from itertools import count

import pytest
from settleup.services._shared.errors import UniqueValueExhaustedError
from settleup.services._shared.unique import generate_unique
from settleup.services.auth.tokens import fingerprint_token, generate_refresh_token


def test_returns_first_free_candidate():
    seq = count()
    taken = {0, 1}

    value = generate_unique(lambda: next(seq), lambda v: v in taken, max_retries=5)
    assert value == 2


def test_gives_up_after_budget():
    calls = []

    def _gen():
        calls.append(1)
        return "same"

    with pytest.raises(UniqueValueExhaustedError, match="refresh token"):
        generate_unique(_gen, lambda v: True, max_retries=3, label="refresh token")
    assert len(calls) == 4


def test_zero_retries_tries_once():
    with pytest.raises(UniqueValueExhaustedError):
        generate_unique(lambda: "x", lambda v: True, max_retries=0)


def test_collisions_are_logged(caplog):
    seq = count()
    with caplog.at_level("WARNING"):
        generate_unique(lambda: next(seq), lambda v: v == 0, label="widget")
    assert "Collision generating widget" in caplog.text


def test_refresh_token_shape():
    raw = generate_refresh_token()
    assert len(raw) == 80
    int(raw, 16)  # hex only
    assert generate_refresh_token() != raw


def test_fingerprint_is_sha256_hex():
    assert fingerprint_token("abc") == hashlib.sha256(b"abc").hexdigest()
    assert len(fingerprint_token(generate_refresh_token())) == 64
