"""
Access decisions: principal + required permission(s) -> allow / deny.

Decisions are computed on every call from the principal's current role;
nothing is cached, so a role change takes effect on the next request.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from dkn.kernel.errors import PermissionDenied, Unauthenticated
from dkn.kernel.identity.principal import Principal
from dkn.kernel.permissions.catalog import CATALOG, PermissionCatalog


class AccessMode(str, Enum):
    """How a list of required permissions is combined."""
    ANY = "any"
    ALL = "all"


class Scope(str, Enum):
    """Reach of a capability: every resource, or only owned ones."""
    ANY = "any"
    OWN = "own"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an authorization check."""

    allowed: bool
    required: Tuple[str, ...]
    role: Optional[str] = None
    reason: Optional[DenyReason] = None
    scope: Optional[Scope] = None

    def __bool__(self) -> bool:
        return self.allowed

    def enforce(self) -> "AccessDecision":
        """Return self when allowed; raise the matching domain error otherwise."""
        if self.allowed:
            return self
        if self.reason == DenyReason.UNAUTHENTICATED:
            raise Unauthenticated()
        raise PermissionDenied(self.required, self.role)


@dataclass(frozen=True)
class Capability:
    """
    An action that is granted either on every resource (blanket) or only on
    resources the principal owns.
    """

    blanket: str
    own: str

    def scope_for(
        self,
        role: Optional[str],
        catalog: PermissionCatalog = CATALOG,
    ) -> Optional[Scope]:
        if catalog.test(role, self.blanket):
            return Scope.ANY
        if catalog.test(role, self.own):
            return Scope.OWN
        return None


KNOWLEDGE_UPDATE = Capability(blanket="knowledge:update", own="knowledge:update_own")
KNOWLEDGE_DELETE = Capability(blanket="knowledge:*", own="knowledge:delete_own")


def _as_tuple(required: Union[str, Iterable[str]]) -> Tuple[str, ...]:
    if isinstance(required, str):
        return (required,)
    return tuple(required)


def authorize(
    principal: Optional[Principal],
    required: Union[str, Iterable[str]],
    mode: AccessMode = AccessMode.ANY,
    catalog: PermissionCatalog = CATALOG,
) -> AccessDecision:
    """
    Decide whether the principal holds the required permission(s).

    ANY allows when at least one permission is held, ALL only when every one
    is. A missing principal is denied as unauthenticated before any test.
    """
    perms = _as_tuple(required)
    if principal is None:
        return AccessDecision(False, perms, reason=DenyReason.UNAUTHENTICATED)

    role = principal.role_code
    checks = (catalog.test(role, p) for p in perms)
    allowed = all(checks) if mode == AccessMode.ALL else any(checks)
    if mode == AccessMode.ALL and not perms:
        allowed = False
    return AccessDecision(
        allowed,
        perms,
        role=role,
        reason=None if allowed else DenyReason.PERMISSION_DENIED,
    )


def authorize_owned(
    principal: Optional[Principal],
    required_any: str,
    required_own: str,
    owner_id: Optional[uuid.UUID],
    catalog: PermissionCatalog = CATALOG,
) -> AccessDecision:
    """
    Allow on the blanket permission, or on the ownership-scoped permission
    when the principal owns the resource.

    The content service applies this to every loaded item it updates or
    deletes, after authorize_capability has passed.
    """
    perms = (required_any, required_own)
    if principal is None:
        return AccessDecision(False, perms, reason=DenyReason.UNAUTHENTICATED)

    role = principal.role_code
    if catalog.test(role, required_any):
        return AccessDecision(True, perms, role=role, scope=Scope.ANY)
    if catalog.test(role, required_own) and owner_id is not None and principal.id == owner_id:
        return AccessDecision(True, perms, role=role, scope=Scope.OWN)
    return AccessDecision(False, perms, role=role, reason=DenyReason.PERMISSION_DENIED)


def authorize_capability(
    principal: Optional[Principal],
    capability: Capability,
    catalog: PermissionCatalog = CATALOG,
) -> AccessDecision:
    """
    Check that the principal holds the capability at some scope, before the
    resource is loaded. The returned decision carries the resolved scope; an
    OWN scope must still be matched against the resource owner.
    """
    perms = (capability.blanket, capability.own)
    if principal is None:
        return AccessDecision(False, perms, reason=DenyReason.UNAUTHENTICATED)

    scope = capability.scope_for(principal.role_code, catalog)
    if scope is None:
        return AccessDecision(
            False, perms, role=principal.role_code, reason=DenyReason.PERMISSION_DENIED
        )
    return AccessDecision(True, perms, role=principal.role_code, scope=scope)
