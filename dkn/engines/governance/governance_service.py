"""
Governance workflow: flagging items, resolving flags, grouping duplicates and
recording review audits.
"""

import uuid
from typing import List, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dkn.kernel.errors import FlagAlreadyResolved, NotFound, ValidationError
from dkn.kernel.events.event_store import EventStore
from dkn.kernel.identity.principal import Principal
from dkn.kernel.models.base import utcnow
from dkn.kernel.models.event_log import EventType
from dkn.kernel.models.governance import (
    DuplicateCluster,
    DuplicateClusterItem,
    Flag,
    FlagStatus,
    GovernanceAudit,
)
from dkn.kernel.models.knowledge import KnowledgeItem
from dkn.kernel.permissions.access import authorize
from dkn.kernel.transactions import unit_of_work
from dkn.logging_config import get_logger

logger = get_logger(__name__)


class GovernanceService:
    """
    Service for governance operations.

    Each operation checks its permission before reading anything.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    # --- Flags ---

    async def flag_item(
        self,
        principal: Optional[Principal],
        item_id: uuid.UUID,
        note: Optional[str],
    ) -> Flag:
        """
        Open a flag on an item. Requires flags:create.

        Repeated flags on the same item are all kept.
        """
        authorize(principal, "flags:create").enforce()
        if not note or not note.strip():
            raise ValidationError("Note is required", field="note")
        await self._require_item(item_id)

        flag = Flag(
            item_id=item_id,
            user_id=principal.id,
            note=note.strip(),
            status=FlagStatus.OPEN.value,
        )
        async with unit_of_work(self.session, "governance.flag"):
            self.session.add(flag)
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.FLAG_CREATED,
                entity_type="flag",
                entity_id=flag.id,
                user_id=principal.id,
                payload={"item_id": item_id},
            )

        logger.info(
            "Item flagged",
            extra={"flag_id": str(flag.id), "item_id": str(item_id)},
        )
        return await self._reload_flag(flag.id)

    async def list_open_flags(self, principal: Optional[Principal]) -> List[Flag]:
        """Open flags, newest first, each with its item. Requires flags:read."""
        authorize(principal, "flags:read").enforce()
        result = await self.session.execute(
            select(Flag)
            .where(Flag.status == FlagStatus.OPEN.value)
            .order_by(Flag.created_at.desc())
        )
        return list(result.scalars().all())

    async def resolve_flag(self, principal: Optional[Principal], flag_id: uuid.UUID) -> Flag:
        """
        Move a flag from open to resolved. Requires flags:resolve.

        The transition is a single conditional UPDATE, so of two concurrent
        resolvers exactly one matches the open row.

        Raises:
            NotFound: No flag with this id
            FlagAlreadyResolved: The flag was resolved before this call
        """
        authorize(principal, "flags:resolve").enforce()

        async with unit_of_work(self.session, "governance.resolve_flag"):
            result = await self.session.execute(
                update(Flag)
                .where(Flag.id == flag_id, Flag.status == FlagStatus.OPEN.value)
                .values(status=FlagStatus.RESOLVED.value, resolved_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            resolved = result.rowcount == 1
            if resolved:
                await self.event_store.log(
                    event_type=EventType.FLAG_RESOLVED,
                    entity_type="flag",
                    entity_id=flag_id,
                    user_id=principal.id,
                )

        flag = await self._get_flag(flag_id)
        if flag is None:
            raise NotFound("Flag")
        if not resolved:
            raise FlagAlreadyResolved()

        logger.info(
            "Flag resolved",
            extra={"flag_id": str(flag_id), "resolved_by": str(principal.id)},
        )
        return flag

    # --- Duplicate clusters ---

    async def create_duplicate_cluster(
        self,
        principal: Optional[Principal],
        detection_method: Optional[str] = None,
    ) -> DuplicateCluster:
        """Create an empty cluster. Requires duplicates:create."""
        authorize(principal, "duplicates:create").enforce()

        cluster = DuplicateCluster(detection_method=detection_method)
        async with unit_of_work(self.session, "governance.create_cluster"):
            self.session.add(cluster)
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.CLUSTER_CREATED,
                entity_type="duplicate_cluster",
                entity_id=cluster.id,
                user_id=principal.id,
                payload={"detection_method": detection_method},
            )
        return await self._reload_cluster(cluster.id)

    async def link_item_to_cluster(
        self,
        principal: Optional[Principal],
        cluster_id: uuid.UUID,
        item_id: Optional[uuid.UUID],
    ) -> DuplicateCluster:
        """
        Add an item to a cluster and point the item at it. Requires
        duplicates:resolve.

        Linking to a second cluster overwrites the item's cluster pointer;
        the earlier membership row is left in place.
        """
        authorize(principal, "duplicates:resolve").enforce()
        if item_id is None:
            raise ValidationError("item_id is required", field="item_id")
        if await self._get_cluster(cluster_id) is None:
            raise NotFound("Duplicate cluster")
        await self._require_item(item_id)

        async with unit_of_work(self.session, "governance.link_cluster_item"):
            existing = await self.session.execute(
                select(DuplicateClusterItem).where(
                    DuplicateClusterItem.cluster_id == cluster_id,
                    DuplicateClusterItem.item_id == item_id,
                )
            )
            if existing.scalar_one_or_none() is None:
                await self.session.execute(
                    insert(DuplicateClusterItem),
                    [{"cluster_id": cluster_id, "item_id": item_id}],
                )
            await self.session.execute(
                update(KnowledgeItem)
                .where(KnowledgeItem.id == item_id)
                .values(duplicate_cluster_id=cluster_id, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await self.event_store.log(
                event_type=EventType.CLUSTER_ITEM_LINKED,
                entity_type="duplicate_cluster",
                entity_id=cluster_id,
                user_id=principal.id,
                payload={"item_id": item_id},
            )

        logger.info(
            "Item linked to duplicate cluster",
            extra={"cluster_id": str(cluster_id), "item_id": str(item_id)},
        )
        return await self._reload_cluster(cluster_id)

    async def get_cluster(
        self,
        principal: Optional[Principal],
        cluster_id: uuid.UUID,
    ) -> DuplicateCluster:
        """A cluster with its member item ids. Requires duplicates:read."""
        authorize(principal, "duplicates:read").enforce()
        cluster = await self._get_cluster(cluster_id, refresh=True)
        if cluster is None:
            raise NotFound("Duplicate cluster")
        return cluster

    # --- Audits ---

    async def record_audit(
        self,
        principal: Optional[Principal],
        item_id: Optional[uuid.UUID],
        decision: Optional[str],
        notes: Optional[str] = None,
    ) -> GovernanceAudit:
        """Record a review decision on an existing item. Requires governance:audit."""
        authorize(principal, "governance:audit").enforce()
        if item_id is None:
            raise ValidationError("item_id is required", field="item_id")
        if not decision or not decision.strip():
            raise ValidationError("Decision is required", field="decision")
        await self._require_item(item_id)

        audit = GovernanceAudit(
            item_id=item_id,
            reviewer_id=principal.id,
            decision=decision.strip(),
            notes=notes,
        )
        async with unit_of_work(self.session, "governance.audit"):
            self.session.add(audit)
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.AUDIT_RECORDED,
                entity_type="governance_audit",
                entity_id=audit.id,
                user_id=principal.id,
                payload={"item_id": item_id, "decision": audit.decision},
            )

        logger.info(
            "Governance audit recorded",
            extra={"audit_id": str(audit.id), "item_id": str(item_id)},
        )
        return audit

    async def list_audits(
        self,
        principal: Optional[Principal],
        item_id: uuid.UUID,
    ) -> List[GovernanceAudit]:
        """
        Audits of an item, newest first. Requires governance:audit.

        Works for deleted items too; their audits are kept.
        """
        authorize(principal, "governance:audit").enforce()
        result = await self.session.execute(
            select(GovernanceAudit)
            .where(GovernanceAudit.item_id == item_id)
            .order_by(GovernanceAudit.audit_date.desc())
        )
        return list(result.scalars().all())

    # --- Internals ---

    async def _require_item(self, item_id: uuid.UUID) -> None:
        result = await self.session.execute(
            select(KnowledgeItem.id).where(KnowledgeItem.id == item_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFound("Knowledge item")

    async def _get_flag(self, flag_id: uuid.UUID) -> Optional[Flag]:
        result = await self.session.execute(
            select(Flag)
            .where(Flag.id == flag_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _reload_flag(self, flag_id: uuid.UUID) -> Flag:
        flag = await self._get_flag(flag_id)
        if flag is None:
            raise NotFound("Flag")
        return flag

    async def _get_cluster(
        self,
        cluster_id: uuid.UUID,
        refresh: bool = False,
    ) -> Optional[DuplicateCluster]:
        query = select(DuplicateCluster).where(DuplicateCluster.id == cluster_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def _reload_cluster(self, cluster_id: uuid.UUID) -> DuplicateCluster:
        cluster = await self._get_cluster(cluster_id, refresh=True)
        if cluster is None:
            raise NotFound("Duplicate cluster")
        return cluster
