"""
Kernel Data Models

SQLAlchemy models for accounts, knowledge content, governance records and
the activity log.
"""

from dkn.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow
from dkn.kernel.models.account import Account
from dkn.kernel.models.knowledge import (
    Category,
    ItemCategory,
    ItemTag,
    KnowledgeItem,
    KnowledgeStatus,
    Tag,
)
from dkn.kernel.models.governance import (
    DuplicateCluster,
    DuplicateClusterItem,
    Flag,
    FlagStatus,
    GovernanceAudit,
)
from dkn.kernel.models.event_log import EventLog, EventType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utcnow",
    # Accounts
    "Account",
    # Knowledge
    "Category",
    "ItemCategory",
    "ItemTag",
    "KnowledgeItem",
    "KnowledgeStatus",
    "Tag",
    # Governance
    "DuplicateCluster",
    "DuplicateClusterItem",
    "Flag",
    "FlagStatus",
    "GovernanceAudit",
    # Event Log
    "EventLog",
    "EventType",
]
