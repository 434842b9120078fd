"""
Account service: resolves provider identities to local accounts and manages
role/status changes.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dkn.config import get_settings
from dkn.kernel.errors import NotFound, StoreFailure, ValidationError
from dkn.kernel.events.event_store import EventStore
from dkn.kernel.identity.jwt import IdentityClaims
from dkn.kernel.identity.principal import AccountStatus, Principal
from dkn.kernel.models.account import Account
from dkn.kernel.models.event_log import EventType
from dkn.kernel.permissions.access import authorize
from dkn.kernel.permissions.catalog import Role
from dkn.kernel.transactions import unit_of_work
from dkn.logging_config import get_logger

logger = get_logger(__name__)

_ROLE_CODES = {r.value for r in Role}
_STATUS_CODES = {s.value for s in AccountStatus}


class AccountService:
    """
    Service for account operations.

    Accounts are created on first successful authentication. The configured
    bootstrap e-mail receives SystemAdmin; everyone else starts as Consultant.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)
        self.settings = get_settings()

    async def get_account(self, account_id: uuid.UUID) -> Optional[Account]:
        result = await self.session.execute(select(Account).where(Account.id == account_id))
        return result.scalar_one_or_none()

    async def resolve_account(self, claims: IdentityClaims) -> Account:
        """
        Return the account for a verified identity, creating it on first use.

        An existing account is returned untouched, so role and status set by
        an administrator are preserved.
        """
        existing = await self.get_account(claims.sub)
        if existing:
            return existing

        email = claims.email.lower().strip()
        is_bootstrap = email == self.settings.bootstrap_admin_email.lower().strip()
        account = Account(
            id=claims.sub,
            email=email,
            username=claims.name or email,
            role_code=(Role.SYSTEM_ADMIN if is_bootstrap else Role.CONSULTANT).value,
            region_code=claims.region or self.settings.default_region_code,
            status=AccountStatus.ACTIVE.value,
        )
        try:
            async with unit_of_work(self.session, "account.create"):
                self.session.add(account)
                await self.session.flush()
                await self.event_store.log(
                    event_type=EventType.ACCOUNT_CREATED,
                    entity_type="account",
                    entity_id=account.id,
                    user_id=account.id,
                    payload={"email": account.email, "role_code": account.role_code},
                )
        except StoreFailure as exc:
            # A concurrent first request for the same identity may have won the insert
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            existing = await self.get_account(claims.sub)
            if existing is None:
                raise
            return existing

        logger.info(
            "Account created",
            extra={"account_id": str(account.id), "role_code": account.role_code},
        )
        return account

    async def update_profile(
        self,
        principal: Principal,
        username: Optional[str] = None,
        region_code: Optional[str] = None,
    ) -> Account:
        """Update the caller's own username and region. Blank values are ignored."""
        account = await self.get_account(principal.id)
        if account is None:
            raise NotFound("Account")

        async with unit_of_work(self.session, "account.update"):
            if username and username.strip():
                account.username = username.strip()
            if region_code and region_code.strip():
                account.region_code = region_code.strip()
            await self.event_store.log(
                event_type=EventType.ACCOUNT_UPDATED,
                entity_type="account",
                entity_id=account.id,
                user_id=principal.id,
                payload={"username": account.username, "region_code": account.region_code},
            )
        return account

    async def list_accounts(self, principal: Optional[Principal]) -> List[Account]:
        """All accounts, newest first. Requires users:read."""
        authorize(principal, "users:read").enforce()
        result = await self.session.execute(
            select(Account).order_by(Account.created_at.desc())
        )
        return list(result.scalars().all())

    async def change_role(
        self,
        principal: Optional[Principal],
        account_id: uuid.UUID,
        role_code: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Account:
        """
        Change an account's role and/or status. Requires users:manage.

        The change applies to the target's next request; decisions already
        in flight keep the role they were made with.
        """
        authorize(principal, "users:manage").enforce()
        if role_code is None and status is None:
            raise ValidationError("role_code or status is required")
        if role_code is not None and role_code not in _ROLE_CODES:
            raise ValidationError(f"Unknown role: {role_code}", field="role_code")
        if status is not None and status not in _STATUS_CODES:
            raise ValidationError(f"Unknown status: {status}", field="status")

        account = await self.get_account(account_id)
        if account is None:
            raise NotFound("Account")

        previous = {"role_code": account.role_code, "status": account.status}
        async with unit_of_work(self.session, "account.change_role"):
            if role_code is not None:
                account.role_code = role_code
            if status is not None:
                account.status = status
            await self.event_store.log(
                event_type=EventType.ACCOUNT_ROLE_CHANGED,
                entity_type="account",
                entity_id=account.id,
                user_id=principal.id,
                payload={
                    "previous": previous,
                    "role_code": account.role_code,
                    "status": account.status,
                },
            )

        logger.info(
            "Account role changed",
            extra={
                "account_id": str(account.id),
                "role_code": account.role_code,
                "status": account.status,
                "changed_by": str(principal.id),
            },
        )
        return account
