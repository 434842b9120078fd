"""Unit tests for the permission catalog."""

import pytest

from dkn.kernel.permissions.catalog import (
    CATALOG,
    ROLE_DEFINITIONS,
    Exact,
    GlobalWildcard,
    PermissionCatalog,
    ResourceWildcard,
    Role,
    RoleDefinition,
    parse_permission,
    resource_of,
)

PROBES = [
    "knowledge:create",
    "knowledge:update",
    "knowledge:update_own",
    "knowledge:delete_own",
    "knowledge:read",
    "flags:read",
    "flags:resolve",
    "flags:create",
    "duplicates:create",
    "duplicates:resolve",
    "governance:audit",
    "users:manage",
    "lookups:create",
    "training:create",
    "kpi:read",
    "nonexistent:thing",
]


def _reference_test(permissions, permission):
    return (
        permission in permissions
        or f"{resource_of(permission)}:*" in permissions
        or "*" in permissions
    )


class TestParsePermission:
    """Tests for the three permission shapes."""
    
    def test_exact(self):
        assert parse_permission("knowledge:create") == Exact("knowledge", "create")
    
    def test_resource_wildcard(self):
        assert parse_permission("flags:*") == ResourceWildcard("flags")
    
    def test_global_wildcard(self):
        assert parse_permission("*") == GlobalWildcard()
    
    @pytest.mark.parametrize("token", ["", "knowledge", ":create", "knowledge:", "a:b:c", "*:read"])
    def test_malformed_shapes_rejected(self, token):
        with pytest.raises(ValueError):
            parse_permission(token)
    
    def test_catalog_construction_rejects_malformed_permission(self):
        bad = RoleDefinition(Role.CONSULTANT, "Consultant", "", ("knowledge",))
        with pytest.raises(ValueError):
            PermissionCatalog([bad])
    
    def test_grant_matching(self):
        assert Exact("knowledge", "create").matches("knowledge:create")
        assert not Exact("knowledge", "create").matches("knowledge:update")
        assert ResourceWildcard("knowledge").matches("knowledge:delete_own")
        assert not ResourceWildcard("knowledge").matches("flags:read")
        assert GlobalWildcard().matches("anything:at_all")


class TestCatalogLookup:
    
    def test_every_role_is_defined(self):
        assert set(CATALOG.roles()) == {r.value for r in Role}
    
    def test_unknown_role_has_no_permissions(self):
        assert CATALOG.permissions_of("Janitor") == frozenset()
        assert CATALOG.permissions_of(None) == frozenset()
        assert CATALOG.test("Janitor", "knowledge:read") is False
    
    def test_role_enum_and_code_are_equivalent(self):
        assert CATALOG.permissions_of(Role.CONSULTANT) == CATALOG.permissions_of("Consultant")
    
    def test_permission_sets_are_immutable(self):
        perms = CATALOG.permissions_of(Role.CONSULTANT)
        with pytest.raises(AttributeError):
            perms.add("knowledge:create")  # type: ignore[attr-defined]
        assert "knowledge:create" not in CATALOG.permissions_of(Role.CONSULTANT)
    
    @pytest.mark.parametrize("role", list(Role))
    @pytest.mark.parametrize("permission", PROBES)
    def test_matches_membership_rule(self, role, permission):
        """test() holds iff literal, resource wildcard or global wildcard membership."""
        permissions = CATALOG.permissions_of(role)
        assert CATALOG.test(role, permission) == _reference_test(permissions, permission)
    
    @pytest.mark.parametrize("role", list(Role))
    def test_test_agrees_with_compiled_grants(self, role):
        grants = CATALOG.grants_of(role)
        for permission in PROBES:
            assert CATALOG.test(role, permission) == any(g.matches(permission) for g in grants)


class TestRoleGrants:
    """Spot checks against the fixed role table."""
    
    def test_system_admin_resource_wildcard_covers_every_knowledge_action(self):
        assert CATALOG.test(Role.SYSTEM_ADMIN, "knowledge:create")
        assert CATALOG.test(Role.SYSTEM_ADMIN, "knowledge:delete_own")
        assert CATALOG.test(Role.SYSTEM_ADMIN, "knowledge:anything_new")
    
    def test_system_admin_lacks_unlisted_resources(self):
        assert not CATALOG.test(Role.SYSTEM_ADMIN, "announcements:create")
    
    def test_consultant_cannot_create_knowledge(self):
        assert not CATALOG.test(Role.CONSULTANT, "knowledge:create")
        assert CATALOG.test(Role.CONSULTANT, "flags:create")
    
    def test_expert_contributor_has_only_ownership_scoped_changes(self):
        assert CATALOG.test(Role.EXPERT_CONTRIBUTOR, "knowledge:update_own")
        assert CATALOG.test(Role.EXPERT_CONTRIBUTOR, "knowledge:delete_own")
        assert not CATALOG.test(Role.EXPERT_CONTRIBUTOR, "knowledge:update")
    
    def test_governance_council_can_resolve_but_not_create_clusters(self):
        assert CATALOG.test(Role.GOVERNANCE_COUNCIL_MEMBER, "flags:resolve")
        assert CATALOG.test(Role.GOVERNANCE_COUNCIL_MEMBER, "duplicates:resolve")
        assert not CATALOG.test(Role.GOVERNANCE_COUNCIL_MEMBER, "duplicates:create")
        assert not CATALOG.test(Role.GOVERNANCE_COUNCIL_MEMBER, "flags:create")
    
    def test_global_wildcard_grants_everything(self):
        catalog = PermissionCatalog([
            RoleDefinition(Role.SYSTEM_ADMIN, "Root", "Everything", ("*",)),
        ])
        assert catalog.test(Role.SYSTEM_ADMIN, "users:manage")
        assert catalog.test(Role.SYSTEM_ADMIN, "whatever:else")
        assert not catalog.test(Role.CONSULTANT, "knowledge:read")


class TestClientProjection:
    
    def test_projection_is_derived_from_catalog(self):
        projection = CATALOG.client_projection()
        assert set(projection) == set(CATALOG.roles())
        for definition in ROLE_DEFINITIONS:
            entry = projection[definition.role.value]
            assert entry["name"] == definition.name
            assert entry["description"] == definition.description
            assert set(entry["permissions"]) == CATALOG.permissions_of(definition.role)
    
    def test_projection_mutation_does_not_affect_enforcement(self):
        projection = CATALOG.client_projection()
        projection["Consultant"]["permissions"].append("knowledge:create")
        assert not CATALOG.test(Role.CONSULTANT, "knowledge:create")
