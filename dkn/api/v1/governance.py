"""
Governance endpoints: flags, duplicate clusters and audits.
"""

import uuid
from typing import List

from fastapi import APIRouter, status

from dkn.api.deps import CurrentPrincipal, DbSession
from dkn.engines.governance.governance_service import GovernanceService
from dkn.schemas.governance import (
    AuditCreate,
    AuditResponse,
    ClusterCreate,
    ClusterLinkRequest,
    ClusterResponse,
    FlagResponse,
)

router = APIRouter()


@router.get("/flags", response_model=List[FlagResponse])
async def list_open_flags(principal: CurrentPrincipal, db: DbSession):
    """Open flags, newest first."""
    return await GovernanceService(db).list_open_flags(principal)


@router.patch("/flags/{flag_id}/resolve", response_model=FlagResponse)
async def resolve_flag(flag_id: uuid.UUID, principal: CurrentPrincipal, db: DbSession):
    """Resolve an open flag. A flag that is already resolved gives 409."""
    return await GovernanceService(db).resolve_flag(principal, flag_id)


@router.post("/duplicates", response_model=ClusterResponse, status_code=status.HTTP_201_CREATED)
async def create_duplicate_cluster(
    data: ClusterCreate,
    principal: CurrentPrincipal,
    db: DbSession,
):
    return await GovernanceService(db).create_duplicate_cluster(principal, data.detection_method)


@router.post(
    "/duplicates/{cluster_id}/items",
    response_model=ClusterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def link_item_to_cluster(
    cluster_id: uuid.UUID,
    data: ClusterLinkRequest,
    principal: CurrentPrincipal,
    db: DbSession,
):
    """Add an item to a duplicate cluster."""
    return await GovernanceService(db).link_item_to_cluster(principal, cluster_id, data.item_id)


@router.get("/duplicates/{cluster_id}", response_model=ClusterResponse)
async def get_cluster(cluster_id: uuid.UUID, principal: CurrentPrincipal, db: DbSession):
    return await GovernanceService(db).get_cluster(principal, cluster_id)


@router.post("/audits", response_model=AuditResponse, status_code=status.HTTP_201_CREATED)
async def record_audit(data: AuditCreate, principal: CurrentPrincipal, db: DbSession):
    """Record a governance review decision on an item."""
    return await GovernanceService(db).record_audit(
        principal,
        item_id=data.item_id,
        decision=data.decision,
        notes=data.notes,
    )
