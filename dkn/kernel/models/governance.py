"""
Governance models: flags, duplicate clusters, and audits.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dkn.kernel.models.base import Base, generate_uuid, utcnow
from dkn.kernel.models.knowledge import KnowledgeItem


class FlagStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class Flag(Base):
    """
    A report that an item needs governance attention.

    Status moves one way, open -> resolved.
    """
    
    __tablename__ = "flags"
    
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("knowledge_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("accounts.id"),
        nullable=False,
    )
    note: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=FlagStatus.OPEN.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    item: Mapped[KnowledgeItem] = relationship(KnowledgeItem, lazy="joined", viewonly=True)
    
    __table_args__ = (
        Index("ix_flags_status_created", "status", "created_at"),
    )
    
    @property
    def item_title(self) -> Optional[str]:
        return self.item.title if self.item is not None else None
    
    @property
    def item_status(self) -> Optional[str]:
        return self.item.status if self.item is not None else None


class DuplicateClusterItem(Base):
    """Membership of an item in a duplicate cluster."""
    
    __tablename__ = "duplicate_cluster_items"
    
    cluster_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("duplicate_clusters.id", ondelete="CASCADE"),
        primary_key=True,
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("knowledge_items.id", ondelete="CASCADE"),
        primary_key=True,
    )


class DuplicateCluster(Base):
    """A group of items identified as redundant content."""
    
    __tablename__ = "duplicate_clusters"
    
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    detection_method: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    
    members: Mapped[List[DuplicateClusterItem]] = relationship(
        DuplicateClusterItem,
        lazy="selectin",
        viewonly=True,
    )
    
    @property
    def item_ids(self) -> List[uuid.UUID]:
        return sorted((m.item_id for m in self.members), key=str)


class GovernanceAudit(Base):
    """
    Review decision recorded against an item.

    Append-only. item_id carries no foreign key so audits outlive the item.
    """
    
    __tablename__ = "governance_audits"
    
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    item_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False, index=True)
    reviewer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("accounts.id"),
        nullable=False,
    )
    decision: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    audit_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
