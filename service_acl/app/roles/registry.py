"""
Role registry for the ACL engine.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Set, Union

from shared.logging import get_logger
from shared.errors import DuplicateRoleError, RoleNotFoundError, InvalidRoleArgumentError
from ..identifiers import COLLECTIONS, Role, RoleRef, role_id_of


@dataclass
class RoleEntry:
    """Registry record: the role and its ordered parent/child links."""
    instance: Role
    parents: Dict[str, Role] = field(default_factory=dict)
    children: Dict[str, Role] = field(default_factory=dict)


class RoleRegistry:
    """Role inheritance DAG.

    Parents are kept in insertion order, which is also their priority order:
    the first parent added has the least priority and the last parent added
    has the highest. Conflicting rules inherited from different parents are
    resolved in favour of the highest priority parent.

    Links are always stored in both directions: if B lists A as a parent,
    A lists B as a child.
    """

    def __init__(self):
        self.logger = get_logger("acl.roles")
        self.roles: Dict[str, RoleEntry] = {}

    def add(self, role: Role, parents: Optional[Union[RoleRef, Iterable[RoleRef]]] = None) -> "RoleRegistry":
        """Add a role with an identifier unique to the registry.

        ``parents`` may be a single role reference or an iterable of them;
        mixing handles and identifiers is fine. Every parent must already be
        registered.
        """
        role_id = role.role_id

        if self.has(role_id):
            raise DuplicateRoleError(role_id)

        if parents is None:
            parents = []
        elif isinstance(parents, (str, Role)):
            parents = [parents]
        elif not isinstance(parents, COLLECTIONS):
            raise InvalidRoleArgumentError(parents)

        # Resolve all parents before linking any
        role_parents: Dict[str, Role] = {}
        for parent in parents:
            parent_role = self.get(parent)
            role_parents[parent_role.role_id] = parent_role

        for parent_id in role_parents:
            self.roles[parent_id].children[role_id] = role

        self.roles[role_id] = RoleEntry(instance=role, parents=role_parents)

        self.logger.info("Role added", role_id=role_id, parents=list(role_parents))
        return self

    def get(self, role: RoleRef) -> Role:
        """Return the identified role."""
        role_id = role_id_of(role)

        if role_id not in self.roles:
            raise RoleNotFoundError(role_id)

        return self.roles[role_id].instance

    def has(self, role: Any) -> bool:
        """Return True if and only if the role exists in the registry."""
        if not isinstance(role, (str, Role)):
            return False
        return role_id_of(role) in self.roles

    def get_parents(self, role: RoleRef) -> Dict[str, Role]:
        """Return the role's parents ordered by ascending priority."""
        return self.roles[self.get(role).role_id].parents

    def get_children(self, role: RoleRef) -> Dict[str, Role]:
        """Return the role's children ordered by ascending priority."""
        return self.roles[self.get(role).role_id].children

    def inherits(self, role: RoleRef, ancestor: RoleRef, direct_only: bool = False) -> bool:
        """Return True if and only if ``role`` inherits from ``ancestor``.

        With ``direct_only`` the inheritance must be direct. Otherwise the
        whole DAG above ``role`` is searched.
        """
        role_id = self.get(role).role_id
        ancestor_id = self.get(ancestor).role_id

        if direct_only:
            return ancestor_id in self.roles[role_id].parents

        return self._inherits(role_id, ancestor_id, set())

    def _inherits(self, role_id: str, ancestor_id: str, visited: Set[str]) -> bool:
        visited.add(role_id)
        parents = self.roles[role_id].parents

        if ancestor_id in parents:
            return True

        for parent_id in parents:
            if parent_id not in visited and self._inherits(parent_id, ancestor_id, visited):
                return True

        return False

    def remove(self, role: RoleRef) -> "RoleRegistry":
        """Remove the role and sever every link that references it."""
        role_id = self.get(role).role_id
        entry = self.roles[role_id]

        for child_id in entry.children:
            self.roles[child_id].parents.pop(role_id, None)

        for parent_id in entry.parents:
            self.roles[parent_id].children.pop(role_id, None)

        del self.roles[role_id]

        self.logger.info("Role removed", role_id=role_id)
        return self

    def remove_all(self) -> "RoleRegistry":
        """Remove all roles from the registry."""
        self.roles = {}
        self.logger.info("All roles removed")
        return self

    def get_roles(self) -> Dict[str, RoleEntry]:
        """Get all roles in the registry."""
        return self.roles
