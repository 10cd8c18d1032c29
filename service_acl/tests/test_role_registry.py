"""
Unit tests for the Role Registry.
"""

import pytest

from service_acl.app.identifiers import Role
from service_acl.app.roles.registry import RoleRegistry
from shared.errors import DuplicateRoleError, RoleNotFoundError, InvalidRoleArgumentError


class TestRoleRegistry:
    """Test cases for RoleRegistry."""

    @pytest.fixture
    def registry(self):
        """Create RoleRegistry instance."""
        return RoleRegistry()

    @pytest.fixture
    def chained_registry(self, registry):
        """guest <- member <- editor."""
        registry.add(Role("guest"))
        registry.add(Role("member"), "guest")
        registry.add(Role("editor"), "member")
        return registry

    def test_add_role(self, registry):
        """Test adding a role without parents."""
        result = registry.add(Role("guest"))

        assert result is registry
        assert registry.has("guest")
        assert registry.get("guest") == Role("guest")
        assert registry.get_parents("guest") == {}

    def test_add_duplicate_role(self, registry):
        """Test adding a role twice."""
        registry.add(Role("guest"))

        with pytest.raises(DuplicateRoleError) as exc_info:
            registry.add(Role("guest"))

        assert exc_info.value.code == "DUPLICATE_ROLE"

    def test_add_role_with_unknown_parent(self, registry):
        """Test adding a role whose parent is not registered."""
        with pytest.raises(RoleNotFoundError):
            registry.add(Role("member"), "guest")

        assert not registry.has("member")

    def test_add_role_with_mixed_parent_references(self, registry):
        """Test parents given as handles and identifiers."""
        registry.add(Role("a"))
        registry.add(Role("b"))
        registry.add(Role("c"), [Role("a"), "b"])

        assert list(registry.get_parents("c")) == ["a", "b"]
        assert registry.get_children("a") == {"c": Role("c")}
        assert registry.get_children("b") == {"c": Role("c")}

    @pytest.mark.parametrize("parents", [42, {"a": 1}, 2.5, [42], ["a", {}]])
    def test_add_role_with_invalid_parents(self, registry, parents):
        """Test parents that are not role references or lists of them."""
        registry.add(Role("a"))

        with pytest.raises(InvalidRoleArgumentError):
            registry.add(Role("b"), parents)

        assert not registry.has("b")
        assert registry.get_children("a") == {}

    def test_parent_order_is_priority_order(self, registry):
        """Test parents are kept in the order given."""
        for role_id in ("x", "y", "z"):
            registry.add(Role(role_id))
        registry.add(Role("child"), ["z", "x", "y"])

        assert list(registry.get_parents("child")) == ["z", "x", "y"]

    def test_get_unknown_role(self, registry):
        """Test retrieving a role that does not exist."""
        with pytest.raises(RoleNotFoundError):
            registry.get("unknown")

    def test_get_with_invalid_argument(self, registry):
        """Test retrieving with a value that is not a role reference."""
        with pytest.raises(InvalidRoleArgumentError):
            registry.get({})

    def test_has_never_raises(self, registry):
        """Test has() on missing roles and unsupported values."""
        assert registry.has("unknown") is False
        assert registry.has({}) is False
        assert registry.has([]) is False
        assert registry.has(None) is False

    def test_get_parents_unknown_role(self, registry):
        """Test parents of a role that does not exist."""
        with pytest.raises(RoleNotFoundError):
            registry.get_parents("unknown")

        with pytest.raises(RoleNotFoundError):
            registry.get_children("unknown")

    def test_inherits_direct(self, chained_registry):
        """Test direct inheritance."""
        assert chained_registry.inherits("member", "guest") is True
        assert chained_registry.inherits("member", "guest", direct_only=True) is True

    def test_inherits_indirect(self, chained_registry):
        """Test inheritance through the chain."""
        assert chained_registry.inherits("editor", "guest") is True
        assert chained_registry.inherits("editor", "guest", direct_only=True) is False

    def test_inherits_is_not_symmetric(self, chained_registry):
        """Test that a parent does not inherit from its child."""
        assert chained_registry.inherits("guest", "editor") is False

    def test_inherits_unrelated(self, registry):
        """Test unrelated roles."""
        registry.add(Role("a"))
        registry.add(Role("b"))

        assert registry.inherits("a", "b") is False

    def test_inherits_diamond(self, registry):
        """Test reachability over a diamond shaped DAG."""
        registry.add(Role("root"))
        registry.add(Role("left"), "root")
        registry.add(Role("right"), "root")
        registry.add(Role("bottom"), ["left", "right"])

        assert registry.inherits("bottom", "root") is True
        assert registry.inherits("left", "right") is False

    def test_inherits_terminates_on_cycle(self, registry):
        """Test inheritance search over links that form a cycle."""
        registry.add(Role("a"))
        registry.add(Role("b"), "a")
        # Links can only form a cycle by editing entries directly
        registry.roles["a"].parents["b"] = Role("b")
        registry.roles["b"].children["a"] = Role("a")
        registry.add(Role("c"))

        assert registry.inherits("a", "b") is True
        assert registry.inherits("a", "c") is False

    def test_inherits_unknown_role(self, registry):
        """Test inheritance with an unknown role."""
        registry.add(Role("a"))

        with pytest.raises(RoleNotFoundError):
            registry.inherits("a", "unknown")

    def test_remove_role_severs_links(self, chained_registry):
        """Test that removal updates parents and children."""
        chained_registry.remove("member")

        assert not chained_registry.has("member")
        assert chained_registry.get_children("guest") == {}
        assert chained_registry.get_parents("editor") == {}

    def test_remove_unknown_role(self, registry):
        """Test removing a role that does not exist."""
        with pytest.raises(RoleNotFoundError):
            registry.remove("unknown")

    def test_remove_all(self, chained_registry):
        """Test clearing the registry, twice in a row."""
        chained_registry.remove_all()
        chained_registry.remove_all()

        assert chained_registry.get_roles() == {}
