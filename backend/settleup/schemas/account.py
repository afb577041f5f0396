"""Account representation schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class AccountSchema(Schema):
    """Public view of the current caller's account."""

    id = fields.String(required=True)
    email = fields.Email(allow_none=True)
    display_name = fields.String(allow_none=True)
    is_guest = fields.Boolean(required=True)
    created_at = fields.DateTime(allow_none=True)
    last_active_at = fields.DateTime(allow_none=True)
