"""
Immutable activity log.

Every mutation made through the engines is recorded here in the same
transaction as the change itself.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, func, Index, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from dkn.kernel.models.base import Base, generate_uuid, utcnow


class EventType(str, Enum):
    """All event types for the activity log."""
    
    # Account events
    ACCOUNT_CREATED = "account.created"
    ACCOUNT_UPDATED = "account.updated"
    ACCOUNT_ROLE_CHANGED = "account.role_changed"
    
    # Knowledge events
    KNOWLEDGE_CREATED = "knowledge.created"
    KNOWLEDGE_UPDATED = "knowledge.updated"
    KNOWLEDGE_DELETED = "knowledge.deleted"
    
    # Lookup events
    CATEGORY_CREATED = "lookup.category_created"
    TAG_CREATED = "lookup.tag_created"
    
    # Governance events
    FLAG_CREATED = "governance.flag_created"
    FLAG_RESOLVED = "governance.flag_resolved"
    CLUSTER_CREATED = "governance.cluster_created"
    CLUSTER_ITEM_LINKED = "governance.cluster_item_linked"
    AUDIT_RECORDED = "governance.audit_recorded"


class EventLog(Base):
    """
    Immutable activity event.
    
    This table is append-only - no updates or deletes allowed.
    """
    
    __tablename__ = "event_logs"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    event_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    # System events may not have an actor
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        index=True,
    )
    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
    request_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    
    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
        Index("ix_event_logs_user_time", "user_id", "created_at"),
    )
    
    def __repr__(self) -> str:
        return f"<EventLog {self.event_type} {self.entity_type}:{self.entity_id}>"
