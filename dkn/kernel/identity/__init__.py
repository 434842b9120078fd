"""
Identity adapter - principal model and bearer-token verification.

Account resolution lives in dkn.kernel.identity.account_service.
"""

from dkn.kernel.identity.principal import AccountStatus, Principal
from dkn.kernel.identity.jwt import (
    IdentityClaims,
    TokenVerifier,
    get_token_verifier,
    verify_access_token,
)

__all__ = [
    "AccountStatus",
    "Principal",
    "IdentityClaims",
    "TokenVerifier",
    "get_token_verifier",
    "verify_access_token",
]
