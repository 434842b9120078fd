"""
Category and tag lookups used to classify knowledge items.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dkn.kernel.errors import ValidationError
from dkn.kernel.events.event_store import EventStore
from dkn.kernel.identity.principal import Principal
from dkn.kernel.models.event_log import EventType
from dkn.kernel.models.knowledge import Category, Tag
from dkn.kernel.permissions.access import authorize
from dkn.kernel.transactions import unit_of_work


class LookupService:
    """Reads are open to everyone; creation requires lookups:create."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def list_categories(self) -> List[Category]:
        result = await self.session.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def list_tags(self) -> List[Tag]:
        result = await self.session.execute(select(Tag).order_by(Tag.label))
        return list(result.scalars().all())

    async def create_category(
        self,
        principal: Optional[Principal],
        name: Optional[str],
        description: Optional[str] = None,
    ) -> Category:
        authorize(principal, "lookups:create").enforce()
        if not name or not name.strip():
            raise ValidationError("Name is required", field="name")

        category = Category(name=name.strip(), description=description)
        async with unit_of_work(self.session, "lookup.create_category"):
            self.session.add(category)
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.CATEGORY_CREATED,
                entity_type="category",
                entity_id=category.id,
                user_id=principal.id,
                payload={"name": category.name},
            )
        return category

    async def create_tag(
        self,
        principal: Optional[Principal],
        label: Optional[str],
        tag_type: Optional[str] = None,
    ) -> Tag:
        authorize(principal, "lookups:create").enforce()
        if not label or not label.strip():
            raise ValidationError("Label is required", field="label")

        tag = Tag(label=label.strip(), tag_type=tag_type)
        async with unit_of_work(self.session, "lookup.create_tag"):
            self.session.add(tag)
            await self.session.flush()
            await self.event_store.log(
                event_type=EventType.TAG_CREATED,
                entity_type="tag",
                entity_id=tag.id,
                user_id=principal.id,
                payload={"label": tag.label, "tag_type": tag.tag_type},
            )
        return tag
