"""
Pydantic schemas for API request/response validation.
"""

from dkn.schemas.account import (
    AccountResponse,
    CurrentAccountResponse,
    ProfileUpdate,
    RoleChangeRequest,
)
from dkn.schemas.common import (
    ErrorResponse,
    HealthResponse,
    SuccessResponse,
)
from dkn.schemas.governance import (
    AuditCreate,
    AuditResponse,
    ClusterCreate,
    ClusterLinkRequest,
    ClusterResponse,
    FlagCreate,
    FlagResponse,
)
from dkn.schemas.knowledge import (
    KnowledgeItemCreate,
    KnowledgeItemResponse,
    KnowledgeItemUpdate,
)
from dkn.schemas.lookups import (
    CategoryCreate,
    CategoryResponse,
    TagCreate,
    TagResponse,
)
from dkn.schemas.rbac import RoleCatalogResponse, RoleInfo

__all__ = [
    # Accounts
    "AccountResponse",
    "CurrentAccountResponse",
    "ProfileUpdate",
    "RoleChangeRequest",
    # Common
    "ErrorResponse",
    "HealthResponse",
    "SuccessResponse",
    # Governance
    "AuditCreate",
    "AuditResponse",
    "ClusterCreate",
    "ClusterLinkRequest",
    "ClusterResponse",
    "FlagCreate",
    "FlagResponse",
    # Knowledge
    "KnowledgeItemCreate",
    "KnowledgeItemResponse",
    "KnowledgeItemUpdate",
    # Lookups
    "CategoryCreate",
    "CategoryResponse",
    "TagCreate",
    "TagResponse",
    # RBAC
    "RoleCatalogResponse",
    "RoleInfo",
]
