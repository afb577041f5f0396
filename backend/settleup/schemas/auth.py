"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from flask import current_app
from marshmallow import Schema, ValidationError, fields, validate, validates


class RegisterSchema(Schema):
    """Input payload for registration or guest upgrade.

    The password floor follows ``PASSWORD_MIN_LENGTH`` so the HTTP layer and
    the session core accept the same passwords.
    """

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(max=128))
    display_name = fields.String(load_default=None, validate=validate.Length(max=50))

    @validates("password")
    def _password_min_length(self, value: str, **_kwargs) -> None:
        min_length = int(current_app.config.get("PASSWORD_MIN_LENGTH", 8))
        if len(value) < min_length:
            raise ValidationError(f"Shorter than minimum length {min_length}.")


class LoginSchema(Schema):
    """Input payload for authenticating with email and password."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class TokenResponseSchema(Schema):
    """Response payload containing an access token.

    The refresh token never appears in a body; it travels in an HttpOnly cookie.
    """

    access_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class MessageSchema(Schema):
    """Plain acknowledgement payload."""

    message = fields.String(required=True)
