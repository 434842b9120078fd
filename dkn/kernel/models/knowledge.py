"""
Knowledge content models: items, their category/tag links, and the lookups.
"""

import uuid
from enum import Enum
from typing import List, Optional

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dkn.kernel.models.base import Base, TimestampMixin, generate_uuid


class KnowledgeStatus(str, Enum):
    """
    Item status. Any value may be set by anyone with update rights; there is
    no enforced transition graph.
    """
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    PUBLISHED = "published"
    REJECTED = "rejected"
    NEEDS_CHANGES = "needs_changes"


class Category(Base, TimestampMixin):
    """Knowledge category lookup."""
    
    __tablename__ = "knowledge_categories"
    
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Tag(Base, TimestampMixin):
    """Tag lookup."""
    
    __tablename__ = "tag_values"
    
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    tag_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class ItemCategory(Base):
    """Link row between an item and a category."""
    
    __tablename__ = "item_categories"
    
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("knowledge_items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("knowledge_categories.id", ondelete="CASCADE"),
        primary_key=True,
    )


class ItemTag(Base):
    """Link row between an item and a tag."""
    
    __tablename__ = "item_tags"
    
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("knowledge_items.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("tag_values.id", ondelete="CASCADE"),
        primary_key=True,
    )


class KnowledgeItem(Base, TimestampMixin):
    """
    A piece of knowledge content.

    owner_id is fixed at creation to the creating account. Link rows are
    written with explicit statements by the knowledge service; the
    relationships below are read-only views of them.
    """
    
    __tablename__ = "knowledge_items"
    
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    item_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    content_uri: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    status: Mapped[str] = mapped_column(
        String(50),
        default=KnowledgeStatus.DRAFT.value,
        nullable=False,
        index=True,
    )
    region_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )
    duplicate_cluster_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("duplicate_clusters.id", ondelete="SET NULL"),
        nullable=True,
    )
    
    category_links: Mapped[List[ItemCategory]] = relationship(
        ItemCategory,
        lazy="selectin",
        viewonly=True,
    )
    tag_links: Mapped[List[ItemTag]] = relationship(
        ItemTag,
        lazy="selectin",
        viewonly=True,
    )
    
    @property
    def category_ids(self) -> List[uuid.UUID]:
        return sorted((link.category_id for link in self.category_links), key=str)
    
    @property
    def tag_ids(self) -> List[uuid.UUID]:
        return sorted((link.tag_id for link in self.tag_links), key=str)
    
    def __repr__(self) -> str:
        return f"<KnowledgeItem {self.id} {self.title!r} status={self.status}>"
