"""
FastAPI dependencies for authentication and database sessions.

Authorization is not decided here: every service operation checks its own
permission against the principal resolved below.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dkn.database import get_db
from dkn.kernel.errors import Unauthenticated
from dkn.kernel.identity.account_service import AccountService
from dkn.kernel.identity.jwt import verify_access_token
from dkn.kernel.identity.principal import Principal
from dkn.kernel.models.account import Account
from dkn.logging_config import bind_account


# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_account_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> Optional[Account]:
    """
    Resolve the bearer token to a local account, creating it on first use.

    Returns None when no token is sent or the token does not verify.
    """
    if not credentials:
        return None
    
    claims = verify_access_token(credentials.credentials)
    if not claims:
        return None
    
    return await AccountService(db).resolve_account(claims)


async def get_current_account(
    account: Annotated[Optional[Account], Depends(get_current_account_optional)],
) -> Account:
    """Get the current account or raise 401; inactive accounts get 403."""
    if account is None:
        raise Unauthenticated()
    
    bind_account(account.id)
    if not account.to_principal().is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )
    
    return account


async def get_current_principal(
    account: Annotated[Account, Depends(get_current_account)],
) -> Principal:
    return account.to_principal()


async def get_principal_optional(
    account: Annotated[Optional[Account], Depends(get_current_account_optional)],
) -> Optional[Principal]:
    """Principal for endpoints open to anonymous callers."""
    if account is None:
        return None
    principal = account.to_principal()
    return principal if principal.is_active else None


CurrentAccount = Annotated[Account, Depends(get_current_account)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
OptionalPrincipal = Annotated[Optional[Principal], Depends(get_principal_optional)]

