"""
Permission Core - role catalog and access decisions.
"""

from dkn.kernel.permissions.catalog import (
    CATALOG,
    PermissionCatalog,
    Role,
    get_catalog,
    parse_permission,
)
from dkn.kernel.permissions.access import (
    KNOWLEDGE_DELETE,
    KNOWLEDGE_UPDATE,
    AccessDecision,
    AccessMode,
    Capability,
    Scope,
    authorize,
    authorize_capability,
    authorize_owned,
)

__all__ = [
    "CATALOG",
    "PermissionCatalog",
    "Role",
    "get_catalog",
    "parse_permission",
    "KNOWLEDGE_DELETE",
    "KNOWLEDGE_UPDATE",
    "AccessDecision",
    "AccessMode",
    "Capability",
    "Scope",
    "authorize",
    "authorize_capability",
    "authorize_owned",
]
