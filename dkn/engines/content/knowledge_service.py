"""
Knowledge content lifecycle: create, update, delete and read knowledge items
together with their category and tag links.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, Union

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from dkn.config import get_settings
from dkn.kernel.errors import NotFound, ValidationError
from dkn.kernel.events.event_store import EventStore
from dkn.kernel.identity.principal import Principal
from dkn.kernel.models.base import utcnow
from dkn.kernel.models.event_log import EventType
from dkn.kernel.models.governance import DuplicateClusterItem, Flag
from dkn.kernel.models.knowledge import (
    Category,
    ItemCategory,
    ItemTag,
    KnowledgeItem,
    KnowledgeStatus,
    Tag,
)
from dkn.kernel.permissions.access import (
    KNOWLEDGE_DELETE,
    KNOWLEDGE_UPDATE,
    Capability,
    authorize,
    authorize_capability,
    authorize_owned,
)
from dkn.kernel.transactions import unit_of_work
from dkn.logging_config import get_logger

logger = get_logger(__name__)

_STATUSES = {s.value for s in KnowledgeStatus}

# Columns a caller may rewrite; owner_id and duplicate_cluster_id are not among them
_UPDATABLE_COLUMNS = {"title", "summary", "item_type", "content_uri", "status", "region_code"}
_NON_NULLABLE_COLUMNS = {"title", "status", "region_code"}
_LINK_FIELDS = {"category_ids": ItemCategory, "tag_ids": ItemTag}
_LINK_TARGETS = {"category_ids": Category, "tag_ids": Tag}

LinkModel = Union[Type[ItemCategory], Type[ItemTag]]


@dataclass
class KnowledgeFilters:
    """Optional filters for listing items. All given filters must match."""
    q: Optional[str] = None
    status: Optional[str] = None
    region_code: Optional[str] = None
    owner_id: Optional[uuid.UUID] = None
    tag_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    limit: Optional[int] = None


def _unique(ids: Iterable[uuid.UUID]) -> List[uuid.UUID]:
    """Drop repeated ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


def _require_title(title: Optional[str]) -> str:
    if title is None or not str(title).strip():
        raise ValidationError("Title is required", field="title")
    return str(title).strip()


def _require_status(status: str) -> str:
    if status not in _STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Allowed: {', '.join(sorted(_STATUSES))}",
            field="status",
        )
    return status


class KnowledgeService:
    """
    Service for knowledge item mutations and reads.

    Every mutation runs in a single transaction: an item is never left with
    only part of its links written.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)
        self.settings = get_settings()

    # --- Reads ---

    async def get_item(self, item_id: uuid.UUID) -> KnowledgeItem:
        item = await self._load(item_id)
        if item is None:
            raise NotFound("Knowledge item")
        return item

    async def list_items(
        self,
        filters: Optional[KnowledgeFilters] = None,
        principal: Optional[Principal] = None,
    ) -> List[KnowledgeItem]:
        """
        List items newest first. No permission is required; the principal is
        only used for logging.
        """
        filters = filters or KnowledgeFilters()
        query = select(KnowledgeItem)

        if filters.q:
            query = query.where(KnowledgeItem.title.icontains(filters.q, autoescape=True))
        if filters.status:
            query = query.where(KnowledgeItem.status == filters.status)
        if filters.region_code:
            query = query.where(KnowledgeItem.region_code == filters.region_code)
        if filters.owner_id:
            query = query.where(KnowledgeItem.owner_id == filters.owner_id)
        if filters.tag_id:
            query = query.where(
                KnowledgeItem.id.in_(
                    select(ItemTag.item_id).where(ItemTag.tag_id == filters.tag_id)
                )
            )
        if filters.category_id:
            query = query.where(
                KnowledgeItem.id.in_(
                    select(ItemCategory.item_id).where(
                        ItemCategory.category_id == filters.category_id
                    )
                )
            )

        query = query.order_by(KnowledgeItem.created_at.desc()).limit(self._limit(filters.limit))
        result = await self.session.execute(query)
        items = list(result.scalars().all())
        logger.debug(
            "Listed knowledge items",
            extra={
                "count": len(items),
                "principal_id": str(principal.id) if principal else None,
            },
        )
        return items

    # --- Mutations ---

    async def create_item(
        self,
        principal: Optional[Principal],
        title: Optional[str],
        summary: Optional[str] = None,
        item_type: Optional[str] = None,
        content_uri: Optional[str] = None,
        status: Optional[str] = None,
        region_code: Optional[str] = None,
        category_ids: Optional[Iterable[uuid.UUID]] = None,
        tag_ids: Optional[Iterable[uuid.UUID]] = None,
    ) -> KnowledgeItem:
        """
        Create an item owned by the principal. Requires knowledge:create.

        Status defaults to draft and region to the principal's region.

        Raises:
            Unauthenticated, PermissionDenied: Authorization failed
            ValidationError: Title missing, status unknown, or a category/tag id
                that does not exist
            StoreFailure: The store rejected the write; nothing was persisted
        """
        authorize(principal, "knowledge:create").enforce()
        title = _require_title(title)
        status = _require_status(status or KnowledgeStatus.DRAFT.value)
        category_ids = _unique(category_ids or [])
        tag_ids = _unique(tag_ids or [])
        await self._require_known_links({"category_ids": category_ids, "tag_ids": tag_ids})

        item = KnowledgeItem(
            title=title,
            summary=summary,
            item_type=item_type,
            content_uri=content_uri,
            status=status,
            region_code=region_code or principal.region_code or self.settings.default_region_code,
            owner_id=principal.id,
        )

        async with unit_of_work(self.session, "knowledge.create"):
            self.session.add(item)
            await self.session.flush()
            categories = await self._replace_links(ItemCategory, item.id, category_ids)
            tags = await self._replace_links(ItemTag, item.id, tag_ids)
            await self.event_store.log(
                event_type=EventType.KNOWLEDGE_CREATED,
                entity_type="knowledge_item",
                entity_id=item.id,
                user_id=principal.id,
                payload={
                    "title": item.title,
                    "status": item.status,
                    "category_ids": categories,
                    "tag_ids": tags,
                },
            )

        logger.info(
            "Knowledge item created",
            extra={"item_id": str(item.id), "owner_id": str(principal.id)},
        )
        return await self._reload(item.id)

    async def update_item(
        self,
        principal: Optional[Principal],
        item_id: uuid.UUID,
        changes: Mapping[str, Any],
    ) -> KnowledgeItem:
        """
        Apply the supplied changes to an item.

        Requires knowledge:update, or knowledge:update_own on an owned item.
        Only keys present in ``changes`` are touched. A supplied
        ``category_ids``/``tag_ids`` list replaces every existing link of that
        kind (an empty list clears them); a missing or None list leaves the
        links alone. Status may be set to any known value.

        Raises:
            NotFound: Item missing, or not owned under an ownership-only grant
            ValidationError: Unknown field, bad value, or unknown category/tag id
        """
        decision = authorize_capability(principal, KNOWLEDGE_UPDATE).enforce()
        columns, links = self._split_changes(changes)

        item = await self._load_in_scope(item_id, principal, KNOWLEDGE_UPDATE)
        await self._require_known_links(links)

        async with unit_of_work(self.session, "knowledge.update"):
            for column, value in columns.items():
                setattr(item, column, value)
            written: Dict[str, List[uuid.UUID]] = {}
            for field, ids in links.items():
                written[field] = await self._replace_links(_LINK_FIELDS[field], item.id, ids)
            item.updated_at = utcnow()
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.KNOWLEDGE_UPDATED,
                entity_type="knowledge_item",
                entity_id=item.id,
                user_id=principal.id,
                payload={"changes": columns, **written, "scope": decision.scope},
            )

        logger.info(
            "Knowledge item updated",
            extra={"item_id": str(item.id), "fields": sorted([*columns, *links])},
        )
        return await self._reload(item.id)

    async def delete_item(self, principal: Optional[Principal], item_id: uuid.UUID) -> None:
        """
        Delete an item with its links, cluster memberships and flags.

        Requires knowledge:* or knowledge:delete_own on an owned item.
        Governance audits of the item are kept.
        """
        decision = authorize_capability(principal, KNOWLEDGE_DELETE).enforce()
        item = await self._load_in_scope(item_id, principal, KNOWLEDGE_DELETE)

        payload = {"title": item.title, "owner_id": item.owner_id, "scope": decision.scope}

        async with unit_of_work(self.session, "knowledge.delete"):
            for model in (ItemCategory, ItemTag, DuplicateClusterItem, Flag):
                await self.session.execute(delete(model).where(model.item_id == item_id))
            await self.session.execute(delete(KnowledgeItem).where(KnowledgeItem.id == item_id))
            await self.event_store.log(
                event_type=EventType.KNOWLEDGE_DELETED,
                entity_type="knowledge_item",
                entity_id=item_id,
                user_id=principal.id,
                payload=payload,
            )

        logger.info("Knowledge item deleted", extra={"item_id": str(item_id)})

    # --- Internals ---

    def _limit(self, requested: Optional[int]) -> int:
        if not requested or requested < 1:
            return self.settings.knowledge_list_default_limit
        return min(requested, self.settings.knowledge_list_max_limit)

    def _split_changes(self, changes: Mapping[str, Any]):
        unknown = set(changes) - _UPDATABLE_COLUMNS - set(_LINK_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        columns: Dict[str, Any] = {}
        for column in _UPDATABLE_COLUMNS & set(changes):
            value = changes[column]
            if column in _NON_NULLABLE_COLUMNS and (value is None or not str(value).strip()):
                raise ValidationError(f"{column} cannot be empty", field=column)
            columns[column] = value
        if "title" in columns:
            columns["title"] = _require_title(columns["title"])
        if "status" in columns:
            columns["status"] = _require_status(columns["status"])

        links = {
            field: _unique(changes[field])
            for field in _LINK_FIELDS
            if changes.get(field) is not None
        }
        return columns, links

    async def _load(self, item_id: uuid.UUID) -> Optional[KnowledgeItem]:
        result = await self.session.execute(
            select(KnowledgeItem).where(KnowledgeItem.id == item_id)
        )
        return result.scalar_one_or_none()

    async def _reload(self, item_id: uuid.UUID) -> KnowledgeItem:
        result = await self.session.execute(
            select(KnowledgeItem)
            .where(KnowledgeItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _load_in_scope(
        self,
        item_id: uuid.UUID,
        principal: Principal,
        capability: Capability,
    ) -> KnowledgeItem:
        """
        Load an item the principal may act on. A missing item and an item
        outside an ownership-only grant raise the same NotFound.
        """
        item = await self._load(item_id)
        if item is None:
            raise NotFound("Knowledge item")
        if not authorize_owned(principal, capability.blanket, capability.own, item.owner_id):
            raise NotFound("Knowledge item")
        return item

    async def _require_known_links(self, links: Mapping[str, List[uuid.UUID]]) -> None:
        """Reject category/tag ids that are not in the lookup tables."""
        for field, ids in links.items():
            if not ids:
                continue
            model = _LINK_TARGETS[field]
            result = await self.session.execute(select(model.id).where(model.id.in_(ids)))
            known = set(result.scalars().all())
            unknown = [str(i) for i in ids if i not in known]
            if unknown:
                raise ValidationError(
                    f"Unknown {field[:-4]} ids: {', '.join(unknown)}",
                    field=field,
                )

    async def _replace_links(
        self,
        link_model: LinkModel,
        item_id: uuid.UUID,
        ids: Iterable[uuid.UUID],
    ) -> List[uuid.UUID]:
        """Delete every link of this kind for the item, then insert the given ids."""
        ids = _unique(ids)
        target = "category_id" if link_model is ItemCategory else "tag_id"
        await self.session.execute(
            delete(link_model)
            .where(link_model.item_id == item_id)
            .execution_options(synchronize_session=False)
        )
        if ids:
            await self.session.execute(
                insert(link_model),
                [{"item_id": item_id, target: i} for i in ids],
            )
        return ids
