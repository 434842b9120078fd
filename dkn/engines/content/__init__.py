"""
Content engine - knowledge item lifecycle and classification lookups.
"""

from dkn.engines.content.knowledge_service import KnowledgeFilters, KnowledgeService
from dkn.engines.content.lookup_service import LookupService

__all__ = [
    "KnowledgeFilters",
    "KnowledgeService",
    "LookupService",
]
