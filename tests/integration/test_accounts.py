"""Account resolution and administration against a SQLite store."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from dkn.kernel.errors import NotFound, PermissionDenied, ValidationError
from dkn.kernel.identity.account_service import AccountService
from dkn.kernel.identity.jwt import IdentityClaims
from dkn.kernel.permissions.access import authorize
from dkn.kernel.permissions.catalog import Role


def _claims(email: str, **kwargs) -> IdentityClaims:
    return IdentityClaims(
        sub=kwargs.pop("sub", uuid.uuid4()),
        email=email,
        exp=datetime.now(timezone.utc) + timedelta(minutes=5),
        **kwargs,
    )


class TestResolveAccount:
    
    @pytest.mark.asyncio
    async def test_first_login_creates_consultant(self, session_maker):
        claims = _claims("new.person@dkn.test", name="New Person")
        async with session_maker() as session:
            account = await AccountService(session).resolve_account(claims)
        
        assert account.id == claims.sub
        assert account.role_code == Role.CONSULTANT.value
        assert account.region_code == "GLOBAL"
        assert account.username == "New Person"
        assert account.status == "active"
    
    @pytest.mark.asyncio
    async def test_bootstrap_email_becomes_system_admin(self, session_maker):
        async with session_maker() as session:
            account = await AccountService(session).resolve_account(_claims("Root@DKN.test"))
        assert account.role_code == Role.SYSTEM_ADMIN.value
        assert account.email == "root@dkn.test"
    
    @pytest.mark.asyncio
    async def test_region_claim_is_used(self, session_maker):
        async with session_maker() as session:
            account = await AccountService(session).resolve_account(
                _claims("apac@dkn.test", region="APAC")
            )
        assert account.region_code == "APAC"
    
    @pytest.mark.asyncio
    async def test_existing_account_is_returned_untouched(self, session_maker, make_account):
        existing = await make_account(Role.KNOWLEDGE_SUPERVISOR)
        claims = _claims(existing.email, sub=existing.id, region="ELSEWHERE")
        async with session_maker() as session:
            account = await AccountService(session).resolve_account(claims)
        assert account.role_code == Role.KNOWLEDGE_SUPERVISOR.value
        assert account.region_code == "GLOBAL"


class TestAdministration:
    
    @pytest.mark.asyncio
    async def test_admin_changes_role_and_next_decision_follows(self, session_maker, principals, make_account):
        target = await make_account(Role.CONSULTANT)
        before = target.to_principal()
        assert not authorize(before, "knowledge:create")
        
        async with session_maker() as session:
            updated = await AccountService(session).change_role(
                principals[Role.SYSTEM_ADMIN], target.id, role_code=Role.EXPERT_CONTRIBUTOR.value
            )
        
        assert updated.role_code == Role.EXPERT_CONTRIBUTOR.value
        # A principal taken before the change keeps its old role
        assert not authorize(before, "knowledge:create")
        assert authorize(updated.to_principal(), "knowledge:create")
    
    @pytest.mark.asyncio
    async def test_status_change(self, session_maker, principals, make_account):
        target = await make_account(Role.CONSULTANT)
        async with session_maker() as session:
            updated = await AccountService(session).change_role(
                principals[Role.SYSTEM_ADMIN], target.id, status="suspended"
            )
        assert not updated.to_principal().is_active
    
    @pytest.mark.asyncio
    async def test_only_users_manage_may_change_roles(self, session_maker, principals, make_account):
        target = await make_account(Role.CONSULTANT)
        async with session_maker() as session:
            with pytest.raises(PermissionDenied):
                await AccountService(session).change_role(
                    principals[Role.KNOWLEDGE_SUPERVISOR], target.id, role_code="SystemAdmin"
                )
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("changes", [{}, {"role_code": "Janitor"}, {"status": "deleted"}])
    async def test_invalid_changes_rejected(self, session_maker, principals, make_account, changes):
        target = await make_account(Role.CONSULTANT)
        async with session_maker() as session:
            with pytest.raises(ValidationError):
                await AccountService(session).change_role(
                    principals[Role.SYSTEM_ADMIN], target.id, **changes
                )
    
    @pytest.mark.asyncio
    async def test_unknown_account(self, session_maker, principals):
        async with session_maker() as session:
            with pytest.raises(NotFound):
                await AccountService(session).change_role(
                    principals[Role.SYSTEM_ADMIN], uuid.uuid4(), role_code="TopManager"
                )
    
    @pytest.mark.asyncio
    async def test_list_accounts_requires_users_read(self, session_maker, principals):
        async with session_maker() as session:
            service = AccountService(session)
            accounts = await service.list_accounts(principals[Role.SYSTEM_ADMIN])
            with pytest.raises(PermissionDenied):
                await service.list_accounts(principals[Role.TOP_MANAGER])
        assert len(accounts) == len(Role)
    
    @pytest.mark.asyncio
    async def test_update_profile_ignores_blank_values(self, session_maker, principals):
        consultant = principals[Role.CONSULTANT]
        async with session_maker() as session:
            account = await AccountService(session).update_profile(
                consultant, username="  ", region_code="NA"
            )
        assert account.username == "Consultant"
        assert account.region_code == "NA"
