"""Account endpoints for the current caller."""

from __future__ import annotations

from flask import Blueprint

from settleup.api.deps import current_account, json_response, timing
from settleup.schemas import AccountSchema

bp = Blueprint("users", __name__, url_prefix="/users")

account_schema = AccountSchema()


@bp.get("/me")
@timing
def me():
    """Return the caller's account, read fresh from the Identity Store."""
    account = current_account()
    return json_response({"data": account_schema.dump(account)})
