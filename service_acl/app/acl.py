"""
ACL engine.

Roles live in a :class:`RoleRegistry` (multi-parent DAG), resources in a
single-parent forest owned by the engine, and allow/deny rules in a
:class:`RuleStore`. :meth:`Acl.is_allowed` resolves a query by searching
the role DAG depth first at each resource, walking up the resource's
parent chain until a rule applies.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Union

from shared.config import AclConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.errors import (
    AclException, DuplicateResourceError, ResourceNotFoundError,
    InvalidRoleArgumentError, InvalidResourceArgumentError, InvalidPrivilegeArgumentError,
    UnsupportedRuleTypeError, UnsupportedOperationError
)
from .identifiers import COLLECTIONS, Role, Resource, RoleRef, ResourceRef, resource_id_of
from .roles.registry import RoleRegistry
from .rules.models import RuleType, RuleOperation, Assertion
from .rules.store import RuleStore
from .loader.loader import PermissionLoader
from .loader.models import PermissionsDescription


Permissions = Union[PermissionsDescription, Dict[str, Any]]


@dataclass
class ResourceEntry:
    """Resource tree node."""
    instance: Resource
    parent: Optional[Resource] = None
    children: Dict[str, Resource] = field(default_factory=dict)


class Acl:
    """Access control list over a role DAG and a resource forest."""

    def __init__(self, permissions: Optional[Permissions] = None, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("acl.engine")
        self.metrics = metrics
        self.role_registry = RoleRegistry()
        self.resources: Dict[str, ResourceEntry] = {}
        self.rules = RuleStore()

        if permissions:
            self.load(permissions)

    @classmethod
    def from_config(cls, config: Optional[AclConfig] = None) -> "Acl":
        """Build an engine from configuration.

        Configures logging, creates the metrics collector when enabled and
        loads ``permissions_file`` when one is set.
        """
        config = config or get_config()
        configure_logging(config.service_name, config.log_level, config.log_format)

        metrics = get_metrics_collector(config.service_name) if config.metrics_enabled else None
        acl = cls(metrics=metrics)

        if config.permissions_file:
            acl.load_file(config.permissions_file)

        return acl

    # Roles

    def add_role(self, role: Any, parents: Any = None) -> "Acl":
        """Add a role, optionally inheriting from existing ``parents``.

        The most recently added parent has the highest priority when
        inherited rules conflict.
        """
        if isinstance(role, str):
            role = Role(role)
        elif not isinstance(role, Role):
            raise InvalidRoleArgumentError(role)

        self.role_registry.add(role, parents)
        return self

    def get_role(self, role: RoleRef) -> Role:
        return self.role_registry.get(role)

    def has_role(self, role: Any) -> bool:
        return self.role_registry.has(role)

    def inherits_role(self, role: RoleRef, ancestor: RoleRef, direct_only: bool = False) -> bool:
        return self.role_registry.inherits(role, ancestor, direct_only)

    def remove_role(self, role: RoleRef) -> "Acl":
        """Remove a role and every rule keyed to it."""
        role_id = self.role_registry.get(role).role_id
        self.role_registry.remove(role_id)
        self.rules.purge_role(role_id)
        return self

    def remove_role_all(self) -> "Acl":
        """Remove all roles and every role-specific rule."""
        self.role_registry.remove_all()
        self.rules.purge_all_roles()
        return self

    def get_roles(self) -> List[str]:
        return list(self.role_registry.get_roles())

    # Resources

    def add_resource(self, resource: Any, parent: Optional[ResourceRef] = None) -> "Acl":
        """Add a resource, optionally under an existing ``parent``."""
        if isinstance(resource, str):
            resource = Resource(resource)
        elif not isinstance(resource, Resource):
            raise InvalidResourceArgumentError(resource)

        resource_id = resource.resource_id

        if resource_id in self.resources:
            raise DuplicateResourceError(resource_id)

        parent_resource = None
        if parent:
            parent_resource = self.get_resource(parent)
            self.resources[parent_resource.resource_id].children[resource_id] = resource

        self.resources[resource_id] = ResourceEntry(instance=resource, parent=parent_resource)

        self.logger.info(
            "Resource added",
            resource_id=resource_id,
            parent=parent_resource.resource_id if parent_resource else None
        )
        return self

    def get_resource(self, resource: ResourceRef) -> Resource:
        resource_id = resource_id_of(resource)

        if resource_id not in self.resources:
            raise ResourceNotFoundError(resource_id)

        return self.resources[resource_id].instance

    def has_resource(self, resource: Any) -> bool:
        if not isinstance(resource, (str, Resource)):
            return False
        return resource_id_of(resource) in self.resources

    def inherits_resource(self, resource: ResourceRef, ancestor: ResourceRef, direct_only: bool = False) -> bool:
        """Return True if and only if ``resource`` inherits from ``ancestor``.

        With ``direct_only`` the ancestor must be the direct parent.
        """
        resource_id = self.get_resource(resource).resource_id
        ancestor_id = self.get_resource(ancestor).resource_id

        parent = self.resources[resource_id].parent
        while parent is not None:
            if parent.resource_id == ancestor_id:
                return True
            if direct_only:
                return False
            parent = self.resources[parent.resource_id].parent

        return False

    def remove_resource(self, resource: ResourceRef) -> "Acl":
        """Remove a resource, all of its descendants and their rules."""
        resource_id = self.get_resource(resource).resource_id
        removed = [resource_id, *self.get_child_resources(resource_id)]

        parent = self.resources[resource_id].parent
        if parent is not None:
            self.resources[parent.resource_id].children.pop(resource_id, None)

        for removed_id in removed:
            del self.resources[removed_id]
            self.rules.purge_resource(removed_id)

        self.logger.info("Resource removed", resource_id=resource_id, removed=removed)
        return self

    def remove_resource_all(self) -> "Acl":
        """Remove all resources and their rules."""
        self.resources = {}
        self.rules.purge_all_resources()
        return self

    def get_child_resources(self, resource: ResourceRef) -> Dict[str, Resource]:
        """Return every descendant of a resource, depth first."""
        resource_id = self.get_resource(resource).resource_id

        descendants: Dict[str, Resource] = {}
        for child_id, child in self.resources[resource_id].children.items():
            descendants[child_id] = child
            descendants.update(self.get_child_resources(child_id))

        return descendants

    def get_resources(self) -> List[str]:
        return list(self.resources)

    # Rules

    def allow(self, roles: Any = None, resources: Any = None, privileges: Any = None,
              assertion: Optional[Assertion] = None) -> "Acl":
        """Add an allow rule."""
        return self.set_rule(RuleOperation.ADD, RuleType.ALLOW, roles, resources, privileges, assertion)

    def deny(self, roles: Any = None, resources: Any = None, privileges: Any = None,
             assertion: Optional[Assertion] = None) -> "Acl":
        """Add a deny rule."""
        return self.set_rule(RuleOperation.ADD, RuleType.DENY, roles, resources, privileges, assertion)

    def remove_allow(self, roles: Any = None, resources: Any = None, privileges: Any = None) -> "Acl":
        """Remove allow rules."""
        return self.set_rule(RuleOperation.REMOVE, RuleType.ALLOW, roles, resources, privileges)

    def remove_deny(self, roles: Any = None, resources: Any = None, privileges: Any = None) -> "Acl":
        """Remove deny rules."""
        return self.set_rule(RuleOperation.REMOVE, RuleType.DENY, roles, resources, privileges)

    def set_rule(
        self,
        operation: Union[RuleOperation, str],
        rule_type: Union[RuleType, str],
        roles: Any = None,
        resources: Any = None,
        privileges: Any = None,
        assertion: Optional[Assertion] = None
    ) -> "Acl":
        """Add or remove rules.

        ``roles`` and ``resources`` may be a single reference, a list of
        references, or None for all roles / all resources. ``privileges`` may
        be a string, a list of strings, or None for all privileges.

        ADD writes the rule for every (resource, role) pair; REMOVE deletes
        matching rules only where they exist, leaving rules of the other type
        in place. Rules given for a resource are also written to all of its
        current descendants.
        """
        try:
            rule_type = RuleType(rule_type)
        except ValueError:
            raise UnsupportedRuleTypeError(rule_type) from None

        try:
            operation = RuleOperation(operation)
        except ValueError:
            raise UnsupportedOperationError(operation) from None

        role_ids = self._normalize_roles(roles)
        resource_ids = self._normalize_resources(resources)
        privilege_list = self._normalize_privileges(privileges)

        if operation == RuleOperation.ADD and assertion is not None:
            self.logger.warning(
                "Rule assertion attached; queries reaching this rule will fail",
                roles=role_ids,
                resources=resource_ids,
                privileges=privilege_list
            )

        for resource_id in resource_ids:
            for role_id in role_ids:
                if operation == RuleOperation.ADD:
                    self.rules.add_rule(resource_id, role_id, privilege_list, rule_type, assertion)
                else:
                    self.rules.remove_rule(resource_id, role_id, privilege_list, rule_type)

        self.logger.debug(
            "Rules updated",
            operation=operation.value,
            type=rule_type.value,
            roles=role_ids,
            resources=resource_ids,
            privileges=privilege_list
        )
        if self.metrics:
            self.metrics.increment_counter(
                "acl_rule_changes_total",
                operation=operation.value,
                type=rule_type.value
            )

        return self

    def _normalize_roles(self, roles: Any) -> List[Optional[str]]:
        if not roles:
            return [None]

        if not isinstance(roles, COLLECTIONS):
            roles = [roles]

        role_ids = [self.role_registry.get(role).role_id if role else None for role in roles]
        return list(dict.fromkeys(role_ids))

    def _normalize_resources(self, resources: Any) -> List[Optional[str]]:
        if isinstance(resources, COLLECTIONS):
            resources = list(resources) or [None]
        elif not resources and self.resources:
            # All resources: the wildcard plus every registered resource
            resources = [None, *self.resources]
        else:
            resources = [resources]

        resource_ids: List[Optional[str]] = []
        for resource in resources:
            if resource:
                resource_id = self.get_resource(resource).resource_id
                resource_ids.append(resource_id)
                resource_ids.extend(self.get_child_resources(resource_id))
            else:
                resource_ids.append(None)

        return list(dict.fromkeys(resource_ids))

    @staticmethod
    def _normalize_privileges(privileges: Any) -> List[str]:
        if not privileges:
            return []
        if isinstance(privileges, str):
            return [privileges]
        if not isinstance(privileges, COLLECTIONS) or not all(isinstance(p, str) for p in privileges):
            raise InvalidPrivilegeArgumentError(privileges)
        return list(privileges)

    # Queries

    def is_allowed(self, role: Optional[RoleRef] = None, resource: Optional[ResourceRef] = None,
                   privilege: Optional[str] = None) -> bool:
        """Return True if and only if ``role`` has ``privilege`` on ``resource``.

        A None role or resource queries all roles / all resources. Without a
        privilege, returns True only if the role is allowed every privilege on
        the resource.

        Role inheritance is searched depth first, highest priority parent
        (the most recently added) first. When nothing applies at a resource,
        its parent resource is tried next. Anything unresolved is denied.
        """
        start_time = time.time()

        role_id = self.role_registry.get(role).role_id if role else None
        resource_id = self.get_resource(resource).resource_id if resource else None

        if not privilege:
            query = "all_privileges"
            allowed = self._is_allowed_all_privileges(role_id, resource_id)
        else:
            query = "one_privilege"
            allowed = self._is_allowed_one_privilege(role_id, resource_id, privilege)

        self.logger.debug(
            "Access decision",
            role_id=role_id,
            resource_id=resource_id,
            privilege=privilege,
            allowed=allowed
        )
        if self.metrics:
            self.metrics.increment_counter("acl_checks_total", decision="allow" if allowed else "deny")
            self.metrics.observe_histogram("acl_check_duration_seconds", time.time() - start_time, query=query)

        return allowed

    def _is_allowed_all_privileges(self, role_id: Optional[str], resource_id: Optional[str]) -> bool:
        for current in self._resource_chain(resource_id):
            if role_id is not None:
                result = self._role_dfs(role_id, lambda r: self._visit_all_privileges(current, r))
                if result is not None:
                    return result

            # "all roles" pseudo-parent
            result = self._visit_all_privileges(current, None)
            if result is not None:
                return result

        return False

    def _is_allowed_one_privilege(self, role_id: Optional[str], resource_id: Optional[str], privilege: str) -> bool:
        for current in self._resource_chain(resource_id):
            if role_id is not None:
                result = self._role_dfs(role_id, lambda r: self._visit_one_privilege(current, r, privilege))
                if result is not None:
                    return result

            # "all roles" pseudo-parent
            rule_type = self.rules.get_rule_type(current, None, privilege)
            if rule_type is not None:
                return rule_type == RuleType.ALLOW

            rule_type = self.rules.get_rule_type(current, None, None)
            if rule_type is not None:
                result = rule_type == RuleType.ALLOW
                # A blanket deny here may still be overridden by an ancestor resource
                if result or current is None:
                    return result

        return False

    def _resource_chain(self, resource_id: Optional[str]) -> Iterator[Optional[str]]:
        """Yield a resource id followed by its ancestors, nearest first."""
        yield resource_id

        while resource_id is not None:
            parent = self.resources[resource_id].parent
            if parent is None:
                return
            resource_id = parent.resource_id
            yield resource_id

    def _role_dfs(self, role_id: str, visit: Callable[[str], Optional[bool]]) -> Optional[bool]:
        """Depth-first search of the role DAG starting at ``role_id``.

        Parents are pushed in priority order, so the most recently added
        parent is popped and visited first. Returns the first conclusive
        verdict, or None when no role in the DAG has an applicable rule.
        """
        visited: Set[str] = set()
        stack: List[str] = [role_id]

        while stack:
            current = stack.pop()
            if current in visited:
                continue

            result = visit(current)
            if result is not None:
                return result

            visited.add(current)
            stack.extend(self.role_registry.get_parents(current))

        return None

    def _visit_all_privileges(self, resource_id: Optional[str], role_id: Optional[str]) -> Optional[bool]:
        """Verdict for all privileges from one bucket: any named deny denies."""
        bucket = self.rules.get_bucket(resource_id, role_id)
        if bucket is None:
            return None

        for privilege in bucket.by_privilege:
            if self.rules.get_rule_type(resource_id, role_id, privilege) == RuleType.DENY:
                return False

        rule_type = self.rules.get_rule_type(resource_id, role_id, None)
        if rule_type is not None:
            return rule_type == RuleType.ALLOW

        return None

    def _visit_one_privilege(self, resource_id: Optional[str], role_id: str, privilege: str) -> Optional[bool]:
        """Verdict for one privilege from one bucket, falling back to its all-privileges rule."""
        rule_type = self.rules.get_rule_type(resource_id, role_id, privilege)
        if rule_type is None:
            rule_type = self.rules.get_rule_type(resource_id, role_id, None)

        if rule_type is None:
            return None

        return rule_type == RuleType.ALLOW

    # Loading

    def load(self, permissions: Permissions) -> "Acl":
        """Load roles, resources and rules from a permissions description."""
        return self._run_loader(lambda loader: loader.load(self, permissions))

    def load_file(self, path: Union[str, Path]) -> "Acl":
        """Load a JSON or YAML permissions file."""
        return self._run_loader(lambda loader: loader.load_file(self, path))

    def _run_loader(self, action: Callable[[PermissionLoader], "Acl"]) -> "Acl":
        try:
            action(PermissionLoader())
        except AclException as e:
            self.logger.error("Permissions load failed", code=e.code, error=e.message)
            if self.metrics:
                self.metrics.record_error(e.code)
            raise
        return self
