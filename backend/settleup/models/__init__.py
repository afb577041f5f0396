from settleup.models.account import Account
from settleup.models.refresh_token import RefreshToken

__all__ = [
    "Account",
    "RefreshToken",
]
