"""
Knowledge item endpoints.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, status

from dkn.api.deps import CurrentPrincipal, DbSession, OptionalPrincipal
from dkn.engines.content.knowledge_service import KnowledgeFilters, KnowledgeService
from dkn.engines.governance.governance_service import GovernanceService
from dkn.schemas.common import SuccessResponse
from dkn.schemas.governance import AuditResponse, FlagCreate, FlagResponse
from dkn.schemas.knowledge import (
    KnowledgeItemCreate,
    KnowledgeItemResponse,
    KnowledgeItemUpdate,
)

router = APIRouter()


@router.get("", response_model=List[KnowledgeItemResponse])
async def list_items(
    db: DbSession,
    principal: OptionalPrincipal,
    q: Optional[str] = Query(None, description="Case-insensitive title search"),
    status_filter: Optional[str] = Query(None, alias="status"),
    region_code: Optional[str] = Query(None),
    owner_id: Optional[uuid.UUID] = Query(None),
    tag_id: Optional[uuid.UUID] = Query(None),
    category_id: Optional[uuid.UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
):
    """List knowledge items, newest first."""
    filters = KnowledgeFilters(
        q=q,
        status=status_filter,
        region_code=region_code,
        owner_id=owner_id,
        tag_id=tag_id,
        category_id=category_id,
        limit=limit,
    )
    return await KnowledgeService(db).list_items(filters, principal)


@router.get("/{item_id}", response_model=KnowledgeItemResponse)
async def get_item(item_id: uuid.UUID, db: DbSession):
    """Get a single knowledge item with its category and tag ids."""
    return await KnowledgeService(db).get_item(item_id)


@router.post("", response_model=KnowledgeItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(data: KnowledgeItemCreate, principal: CurrentPrincipal, db: DbSession):
    """Create a knowledge item owned by the caller."""
    return await KnowledgeService(db).create_item(
        principal,
        title=data.title,
        summary=data.summary,
        item_type=data.item_type,
        content_uri=data.content_uri,
        status=data.status,
        region_code=data.region_code,
        category_ids=data.category_ids,
        tag_ids=data.tag_ids,
    )


@router.patch("/{item_id}", response_model=KnowledgeItemResponse)
async def update_item(
    item_id: uuid.UUID,
    data: KnowledgeItemUpdate,
    principal: CurrentPrincipal,
    db: DbSession,
):
    """
    Update a knowledge item. Only fields present in the body change; a
    category_ids or tag_ids list replaces the existing links.
    """
    changes = data.model_dump(exclude_unset=True)
    return await KnowledgeService(db).update_item(principal, item_id, changes)


@router.delete("/{item_id}", response_model=SuccessResponse)
async def delete_item(item_id: uuid.UUID, principal: CurrentPrincipal, db: DbSession):
    await KnowledgeService(db).delete_item(principal, item_id)
    return SuccessResponse(message="Knowledge item deleted")


@router.post(
    "/{item_id}/flags",
    response_model=FlagResponse,
    status_code=status.HTTP_201_CREATED,
)
async def flag_item(
    item_id: uuid.UUID,
    data: FlagCreate,
    principal: CurrentPrincipal,
    db: DbSession,
):
    """Flag an item for governance attention."""
    return await GovernanceService(db).flag_item(principal, item_id, data.note)


@router.get("/{item_id}/audits", response_model=List[AuditResponse])
async def list_item_audits(item_id: uuid.UUID, principal: CurrentPrincipal, db: DbSession):
    """Governance audits recorded for an item, newest first."""
    return await GovernanceService(db).list_audits(principal, item_id)
