"""
Permission catalog: the authoritative role -> permission table.

Permissions are strings of three shapes:
    "resource:action"   exact grant
    "resource:*"        every action on one resource
    "*"                 everything

The table is compiled once at import time into read-only structures and is
shared by every request without locking.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

GLOBAL_WILDCARD = "*"


class Role(str, Enum):
    """Closed set of account roles. Values are the stored role codes."""
    CONSULTANT = "Consultant"
    EXPERT_CONTRIBUTOR = "ExpertContributor"
    KNOWLEDGE_SUPERVISOR = "KnowledgeSupervisor"
    SYSTEM_ADMIN = "SystemAdmin"
    TOP_MANAGER = "TopManager"
    GOVERNANCE_COUNCIL_MEMBER = "GovernanceCouncilMember"


@dataclass(frozen=True)
class Exact:
    """Grant of a single action on a resource."""
    resource: str
    action: str

    @property
    def token(self) -> str:
        return f"{self.resource}:{self.action}"

    def matches(self, permission: str) -> bool:
        return permission == self.token


@dataclass(frozen=True)
class ResourceWildcard:
    """Grant of every action on a resource."""
    resource: str

    @property
    def token(self) -> str:
        return f"{self.resource}:*"

    def matches(self, permission: str) -> bool:
        return resource_of(permission) == self.resource


@dataclass(frozen=True)
class GlobalWildcard:
    """Grant of everything."""

    @property
    def token(self) -> str:
        return GLOBAL_WILDCARD

    def matches(self, permission: str) -> bool:
        return True


Grant = Union[Exact, ResourceWildcard, GlobalWildcard]


def resource_of(permission: str) -> str:
    """Resource part of a permission: the text before the first colon."""
    return permission.split(":", 1)[0]


def parse_permission(token: str) -> Grant:
    """
    Parse a permission string into its grant variant.

    Raises:
        ValueError: If the string is not one of the three allowed shapes
    """
    if token == GLOBAL_WILDCARD:
        return GlobalWildcard()
    resource, sep, action = token.partition(":")
    if not sep or not resource or not action or ":" in action:
        raise ValueError(f"Malformed permission: {token!r}")
    if resource == GLOBAL_WILDCARD:
        raise ValueError(f"Malformed permission: {token!r}")
    if action == "*":
        return ResourceWildcard(resource)
    return Exact(resource, action)


@dataclass(frozen=True)
class RoleDefinition:
    """Static role definition: display data plus permission strings."""
    role: Role
    name: str
    description: str
    permissions: Tuple[str, ...]


ROLE_DEFINITIONS: Tuple[RoleDefinition, ...] = (
    RoleDefinition(
        role=Role.CONSULTANT,
        name="Consultant",
        description="Daily user searching and consuming content",
        permissions=(
            "knowledge:read",
            "knowledge:browse",
            "knowledge:details",
            "bookmark:create",
            "bookmark:read",
            "rating:create",
            "flags:create",
            "training:participate",
            "user:read_own",
        ),
    ),
    RoleDefinition(
        role=Role.EXPERT_CONTRIBUTOR,
        name="Expert Contributor",
        description="Creates and validates content",
        permissions=(
            "knowledge:read",
            "knowledge:browse",
            "knowledge:details",
            "knowledge:create",
            "knowledge:update_own",
            "knowledge:delete_own",
            "tags:read",
            "categories:read",
            "bookmark:create",
            "bookmark:read",
            "rating:create",
            "rating:read",
            "flags:create",
            "training:participate",
            "user:read_own",
        ),
    ),
    RoleDefinition(
        role=Role.KNOWLEDGE_SUPERVISOR,
        name="Knowledge Supervisor",
        description="Runs training and adoption",
        permissions=(
            # Knowledge consumption and curation
            "knowledge:read",
            "knowledge:browse",
            "knowledge:details",
            "knowledge:read_all",
            "knowledge:create",
            "knowledge:update_own",
            "knowledge:update",
            "knowledge:delete_own",
            # Training and change management
            "training:create",
            "training:update",
            "training:read",
            "training:read_all",
            "training:participate",
            "adoption_metrics:read",
            # Content classification
            "tags:read",
            "tags:assign",
            "categories:read",
            "lookups:create",
            # Governance
            "governance:audit",
            "flags:read",
            "flags:create",
            "flags:resolve",
            "duplicates:detect",
            "duplicates:read",
            "duplicates:create",
            "duplicates:resolve",
            "kpi:read",
            "bookmark:create",
            "rating:create",
            "user:read_own",
        ),
    ),
    RoleDefinition(
        role=Role.SYSTEM_ADMIN,
        name="System Admin",
        description="Manages infrastructure and access",
        permissions=(
            "users:read",
            "users:read_all",
            "users:manage",
            "users:update_role",
            "users:update_status",
            "system:manage",
            "system:performance",
            "knowledge:*",
            "training:*",
            "governance:*",
            "flags:*",
            "duplicates:*",
            "kpi:*",
            "categories:*",
            "tags:*",
            "lookups:*",
            "bookmark:*",
            "rating:*",
        ),
    ),
    RoleDefinition(
        role=Role.TOP_MANAGER,
        name="Top Manager",
        description="Reviews KPIs and governance",
        permissions=(
            "governance:audit",
            "flags:read",
            "duplicates:detect",
            "kpi:read",
            "kpi:create",
            "knowledge:read",
            "knowledge:browse",
            "user:read_own",
        ),
    ),
    RoleDefinition(
        role=Role.GOVERNANCE_COUNCIL_MEMBER,
        name="Governance Council Member",
        description="Audits and curates content",
        permissions=(
            "governance:audit",
            "flags:read",
            "flags:resolve",
            "duplicates:detect",
            "duplicates:read",
            "duplicates:resolve",
            "knowledge:read",
            "knowledge:browse",
            "bookmark:create",
            "user:read_own",
        ),
    ),
)


@dataclass(frozen=True)
class _CompiledRole:
    tokens: FrozenSet[str]
    grants: Tuple[Grant, ...]


class PermissionCatalog:
    """
    Immutable map from role to permission set with wildcard-aware tests.

    Unknown roles have no permissions (deny by default).
    """

    def __init__(self, definitions: Iterable[RoleDefinition]):
        compiled: Dict[str, _CompiledRole] = {}
        details: Dict[str, RoleDefinition] = {}
        for definition in definitions:
            grants = tuple(parse_permission(p) for p in definition.permissions)
            compiled[definition.role.value] = _CompiledRole(
                tokens=frozenset(definition.permissions),
                grants=grants,
            )
            details[definition.role.value] = definition
        self._roles: Mapping[str, _CompiledRole] = MappingProxyType(compiled)
        self._definitions: Mapping[str, RoleDefinition] = MappingProxyType(details)

    @staticmethod
    def _code(role: Union[Role, str, None]) -> Optional[str]:
        if role is None:
            return None
        return role.value if isinstance(role, Role) else str(role)

    def roles(self) -> Tuple[str, ...]:
        return tuple(self._roles)

    def permissions_of(self, role: Union[Role, str, None]) -> FrozenSet[str]:
        """Permission strings held by a role; empty for unknown roles."""
        compiled = self._roles.get(self._code(role))
        return compiled.tokens if compiled else frozenset()

    def grants_of(self, role: Union[Role, str, None]) -> Tuple[Grant, ...]:
        compiled = self._roles.get(self._code(role))
        return compiled.grants if compiled else ()

    def test(self, role: Union[Role, str, None], permission: str) -> bool:
        """
        True iff the permission is held literally, through "{resource}:*",
        or through "*".
        """
        tokens = self.permissions_of(role)
        if not tokens:
            return False
        return (
            permission in tokens
            or f"{resource_of(permission)}:*" in tokens
            or GLOBAL_WILDCARD in tokens
        )

    def client_projection(self) -> Dict[str, dict]:
        """
        Display-only copy of the catalog for the presentation layer.

        Derived from this catalog; never used for enforcement.
        """
        return {
            code: {
                "name": definition.name,
                "description": definition.description,
                "permissions": sorted(definition.permissions),
            }
            for code, definition in self._definitions.items()
        }


CATALOG = PermissionCatalog(ROLE_DEFINITIONS)


def get_catalog() -> PermissionCatalog:
    """The process-wide catalog."""
    return CATALOG
