"""
HTTP flow tests: the FastAPI app in-process over httpx ASGITransport, backed
by the per-test SQLite database.
"""

import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from dkn.database import get_db
from dkn.engines.content.knowledge_service import KnowledgeService
from dkn.kernel.models import ItemTag
from dkn.kernel.permissions.catalog import Role
from dkn.main import app

API = "/api/v1"


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Async client whose requests use the test database."""
    
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
    
    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def accounts(make_account):
    return {role: await make_account(role) for role in Role}


@pytest.mark.asyncio
async def test_health_and_request_id(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"] == "trace-123"


@pytest.mark.asyncio
async def test_role_catalog_projection(client: AsyncClient):
    response = await client.get(f"{API}/rbac/roles")
    assert response.status_code == 200
    roles = response.json()["roles"]
    assert set(roles) == {r.value for r in Role}
    assert "knowledge:*" in roles["SystemAdmin"]["permissions"]


@pytest.mark.asyncio
async def test_create_requires_authentication(client: AsyncClient):
    response = await client.post(f"{API}/knowledge", json={"title": "X"})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_invalid_token_is_unauthenticated(client: AsyncClient):
    response = await client.post(
        f"{API}/knowledge",
        json={"title": "X"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_consultant_create_is_forbidden_with_diagnostics(client, accounts, bearer):
    response = await client.post(
        f"{API}/knowledge",
        json={"title": "X"},
        headers=bearer(accounts[Role.CONSULTANT]),
    )
    assert response.status_code == 403
    body = response.json()
    assert body["required"] == ["knowledge:create"]
    assert body["current_role"] == "Consultant"
    
    listing = await client.get(f"{API}/knowledge")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_first_request_provisions_consultant(client, token_verifier):
    subject = uuid.uuid4()
    token = token_verifier.issue(subject=subject, email="first.timer@dkn.test", name="First Timer")
    response = await client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(subject)
    assert body["role_code"] == "Consultant"
    assert "flags:create" in body["permissions"]
    assert "knowledge:create" not in body["permissions"]


@pytest.mark.asyncio
async def test_suspended_account_is_rejected(client, make_account, bearer):
    suspended = await make_account(Role.SYSTEM_ADMIN, status="suspended")
    response = await client.get(f"{API}/users/me", headers=bearer(suspended))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_knowledge_crud_flow(client, accounts, bearer):
    contributor = bearer(accounts[Role.EXPERT_CONTRIBUTOR])
    admin = bearer(accounts[Role.SYSTEM_ADMIN])
    
    category = await client.post(f"{API}/lookups/categories", json={"name": "Onboarding"}, headers=admin)
    tag = await client.post(f"{API}/lookups/tags", json={"label": "howto"}, headers=admin)
    assert category.status_code == 201
    assert tag.status_code == 201
    category_id = category.json()["id"]
    tag_id = tag.json()["id"]
    
    created = await client.post(
        f"{API}/knowledge",
        json={"title": "Onboarding Guide", "category_ids": [category_id], "tag_ids": [tag_id]},
        headers=contributor,
    )
    assert created.status_code == 201
    item = created.json()
    assert item["status"] == "draft"
    assert item["owner_id"] == str(accounts[Role.EXPERT_CONTRIBUTOR].id)
    assert item["category_ids"] == [category_id]
    
    # Empty tag list clears tags; omitted category list keeps categories
    patched = await client.patch(
        f"{API}/knowledge/{item['id']}",
        json={"status": "in_review", "tag_ids": []},
        headers=contributor,
    )
    assert patched.status_code == 200
    assert patched.json()["status"] == "in_review"
    assert patched.json()["tag_ids"] == []
    assert patched.json()["category_ids"] == [category_id]
    
    fetched = await client.get(f"{API}/knowledge/{item['id']}")
    assert fetched.json()["status"] == "in_review"
    
    filtered = await client.get(f"{API}/knowledge", params={"category_id": category_id, "q": "guide"})
    assert [i["id"] for i in filtered.json()] == [item["id"]]
    
    deleted = await client.delete(f"{API}/knowledge/{item['id']}", headers=contributor)
    assert deleted.status_code == 200
    
    missing = await client.get(f"{API}/knowledge/{item['id']}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_non_owner_update_is_not_found(client, accounts, make_account, bearer):
    created = await client.post(
        f"{API}/knowledge",
        json={"title": "Mine"},
        headers=bearer(accounts[Role.EXPERT_CONTRIBUTOR]),
    )
    other = await make_account(Role.EXPERT_CONTRIBUTOR)
    response = await client.patch(
        f"{API}/knowledge/{created.json()['id']}",
        json={"title": "Theirs"},
        headers=bearer(other),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_validation_errors_are_400(client, accounts, bearer):
    headers = bearer(accounts[Role.EXPERT_CONTRIBUTOR])
    
    blank = await client.post(f"{API}/knowledge", json={"title": "  "}, headers=headers)
    assert blank.status_code == 400
    assert blank.json()["field"] == "title"
    
    malformed = await client.get(f"{API}/knowledge/not-a-uuid")
    assert malformed.status_code == 400


@pytest.mark.asyncio
async def test_unknown_tag_id_is_a_validation_error(client, accounts, bearer):
    missing = str(uuid.uuid4())
    response = await client.post(
        f"{API}/knowledge",
        json={"title": "Tagged", "tag_ids": [missing]},
        headers=bearer(accounts[Role.EXPERT_CONTRIBUTOR]),
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "ValidationError"
    assert body["field"] == "tag_ids"
    assert missing in body["detail"]

    listing = await client.get(f"{API}/knowledge")
    assert listing.json() == []


@pytest.mark.asyncio
async def test_flag_lifecycle(client, accounts, bearer):
    created = await client.post(
        f"{API}/knowledge",
        json={"title": "Expense Policy"},
        headers=bearer(accounts[Role.EXPERT_CONTRIBUTOR]),
    )
    item_id = created.json()["id"]
    council = bearer(accounts[Role.GOVERNANCE_COUNCIL_MEMBER])
    
    flagged = await client.post(
        f"{API}/knowledge/{item_id}/flags",
        json={"note": "broken link"},
        headers=bearer(accounts[Role.CONSULTANT]),
    )
    assert flagged.status_code == 201
    flag = flagged.json()
    assert flag["status"] == "open"
    
    open_flags = await client.get(f"{API}/governance/flags", headers=council)
    assert [(f["id"], f["item_title"]) for f in open_flags.json()] == [(flag["id"], "Expense Policy")]
    
    resolved = await client.patch(f"{API}/governance/flags/{flag['id']}/resolve", headers=council)
    assert resolved.status_code == 200
    assert resolved.json()["status"] == "resolved"
    assert resolved.json()["resolved_at"] is not None
    
    again = await client.patch(f"{API}/governance/flags/{flag['id']}/resolve", headers=council)
    assert again.status_code == 409
    
    open_flags = await client.get(f"{API}/governance/flags", headers=council)
    assert open_flags.json() == []


@pytest.mark.asyncio
async def test_clusters_and_audits(client, accounts, bearer):
    supervisor = bearer(accounts[Role.KNOWLEDGE_SUPERVISOR])
    created = await client.post(f"{API}/knowledge", json={"title": "Dup"}, headers=supervisor)
    item_id = created.json()["id"]
    
    cluster = await client.post(
        f"{API}/governance/duplicates", json={"detection_method": "manual"}, headers=supervisor
    )
    assert cluster.status_code == 201
    cluster_id = cluster.json()["id"]
    
    linked = await client.post(
        f"{API}/governance/duplicates/{cluster_id}/items",
        json={"item_id": item_id},
        headers=supervisor,
    )
    assert linked.status_code == 201
    assert linked.json()["item_ids"] == [item_id]
    
    fetched = await client.get(f"{API}/governance/duplicates/{cluster_id}", headers=supervisor)
    assert fetched.json()["item_ids"] == [item_id]
    
    audit = await client.post(
        f"{API}/governance/audits",
        json={"item_id": item_id, "decision": "approved", "notes": "ok"},
        headers=supervisor,
    )
    assert audit.status_code == 201
    
    audits = await client.get(f"{API}/knowledge/{item_id}/audits", headers=supervisor)
    assert [a["decision"] for a in audits.json()] == ["approved"]


@pytest.mark.asyncio
async def test_admin_role_change_applies_on_next_request(client, accounts, make_account, bearer):
    target = await make_account(Role.CONSULTANT)
    denied = await client.post(f"{API}/knowledge", json={"title": "Later"}, headers=bearer(target))
    assert denied.status_code == 403
    
    changed = await client.patch(
        f"{API}/users/{target.id}/role",
        json={"role_code": "ExpertContributor"},
        headers=bearer(accounts[Role.SYSTEM_ADMIN]),
    )
    assert changed.status_code == 200
    
    allowed = await client.post(f"{API}/knowledge", json={"title": "Later"}, headers=bearer(target))
    assert allowed.status_code == 201


@pytest.mark.asyncio
async def test_store_failure_is_opaque(client, accounts, bearer, monkeypatch):
    original = KnowledgeService._replace_links
    
    async def failing_replace_links(self, link_model, item_id, ids):
        if link_model is ItemTag:
            raise OperationalError("INSERT INTO item_tags", {}, Exception("disk I/O error"))
        return await original(self, link_model, item_id, ids)
    
    monkeypatch.setattr(KnowledgeService, "_replace_links", failing_replace_links)
    
    response = await client.post(
        f"{API}/knowledge",
        json={"title": "Doomed"},
        headers={**bearer(accounts[Role.EXPERT_CONTRIBUTOR]), "X-Request-ID": "req-500"},
    )
    assert response.status_code == 500
    body = response.json()
    assert body["detail"] == "Internal server error"
    assert body["request_id"] == "req-500"
    assert "disk" not in response.text
    
    listing = await client.get(f"{API}/knowledge")
    assert listing.json() == []
