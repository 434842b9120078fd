"""
Account endpoints: the caller's profile and account administration.
"""

import uuid
from typing import List

from fastapi import APIRouter

from dkn.api.deps import CurrentAccount, CurrentPrincipal, DbSession
from dkn.kernel.identity.account_service import AccountService
from dkn.kernel.permissions.catalog import CATALOG
from dkn.schemas.account import (
    AccountResponse,
    CurrentAccountResponse,
    ProfileUpdate,
    RoleChangeRequest,
)

router = APIRouter()


def _with_permissions(account) -> CurrentAccountResponse:
    response = CurrentAccountResponse.model_validate(account)
    response.permissions = sorted(CATALOG.permissions_of(account.role_code))
    return response


@router.get("/me", response_model=CurrentAccountResponse)
async def get_me(account: CurrentAccount):
    """The caller's account and the permissions of its role."""
    return _with_permissions(account)


@router.put("/me", response_model=CurrentAccountResponse)
async def update_me(data: ProfileUpdate, principal: CurrentPrincipal, db: DbSession):
    account = await AccountService(db).update_profile(
        principal,
        username=data.username,
        region_code=data.region_code,
    )
    return _with_permissions(account)


@router.get("", response_model=List[AccountResponse])
async def list_accounts(principal: CurrentPrincipal, db: DbSession):
    return await AccountService(db).list_accounts(principal)


@router.patch("/{account_id}/role", response_model=AccountResponse)
async def change_role(
    account_id: uuid.UUID,
    data: RoleChangeRequest,
    principal: CurrentPrincipal,
    db: DbSession,
):
    """Change an account's role and/or status. Takes effect on its next request."""
    return await AccountService(db).change_role(
        principal,
        account_id,
        role_code=data.role_code,
        status=data.status,
    )
