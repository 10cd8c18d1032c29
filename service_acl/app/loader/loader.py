"""
Bulk loader for permissions descriptions.
"""

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Set, Tuple, TypeVar, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from shared.logging import get_logger
from shared.errors import (
    InvalidPermissionsError, CycleDetectedError, UnresolvedParentError,
    MalformedRuleError, UnknownAccessTypeError
)
from ..rules.models import RuleType
from .models import PermissionsDescription, RoleDefinition, ResourceDefinition, RuleDefinition

if TYPE_CHECKING:
    from ..acl import Acl


Definition = TypeVar("Definition", RoleDefinition, ResourceDefinition)

RULE_FIELDS = ("access", "role", "privileges", "resources")


class PermissionLoader:
    """Builds roles, resources and rules from a permissions description.

    Roles and resources are each ordered so that parents are inserted
    before their children, whatever the input order. Everything is
    validated before the first insertion.
    """

    ACCESS_TYPES = {
        "allow": RuleType.ALLOW,
        "deny": RuleType.DENY,
    }

    def __init__(self):
        self.logger = get_logger("acl.loader")

    def load(self, acl: "Acl", permissions: Union[PermissionsDescription, Dict[str, Any]]) -> "Acl":
        """Load a permissions description into ``acl``."""
        description, rules = self.parse(permissions)

        roles = self.order_and_cycle_check(description.roles)
        resources = self.order_and_cycle_check(description.resources)

        for role in roles:
            acl.add_role(role.name, role.parent_names or None)

        for resource in resources:
            acl.add_resource(resource.name, resource.parent)

        for rule in rules:
            if self.ACCESS_TYPES[rule.access] == RuleType.ALLOW:
                acl.allow(rule.role, rule.resources, rule.privileges)
            else:
                acl.deny(rule.role, rule.resources, rule.privileges)

        self.logger.info(
            "Permissions loaded",
            roles=len(roles),
            resources=len(resources),
            rules=len(rules),
            **acl.rules.get_store_stats()
        )
        self.logger.debug("Rule store after load", store=acl.rules.snapshot())
        return acl

    def load_file(self, acl: "Acl", path: Union[str, Path]) -> "Acl":
        """Load a JSON or YAML permissions file into ``acl``."""
        return self.load(acl, self.read_file(path))

    def read_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Read a permissions description from a JSON or YAML file."""
        path = Path(path)

        if not path.is_file():
            raise InvalidPermissionsError(
                f"Permissions file '{path}' not found",
                {"path": str(path)}
            )

        suffix = path.suffix.lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    data = json.load(f)
                elif suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    raise InvalidPermissionsError(
                        f"Unsupported permissions file type '{suffix}'",
                        {"path": str(path)}
                    )
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise InvalidPermissionsError(
                f"Permissions file '{path}' could not be parsed",
                {"path": str(path), "error": str(e)}
            ) from e

        self.logger.debug("Permissions file read", path=str(path))
        return data

    def parse(
        self,
        permissions: Union[PermissionsDescription, Dict[str, Any]]
    ) -> Tuple[PermissionsDescription, List[RuleDefinition]]:
        """Validate a description and its rule entries."""
        if not permissions:
            raise InvalidPermissionsError()

        if isinstance(permissions, PermissionsDescription):
            description = permissions
        else:
            try:
                description = PermissionsDescription.model_validate(permissions)
            except PydanticValidationError as e:
                raise InvalidPermissionsError(
                    "Permissions description is invalid",
                    {"error": str(e)}
                ) from e

        rules = [self._parse_rule(index, raw) for index, raw in enumerate(description.rules)]
        return description, rules

    def _parse_rule(self, index: int, raw: Dict[str, Any]) -> RuleDefinition:
        missing = [key for key in RULE_FIELDS if key not in raw]
        if missing:
            raise MalformedRuleError(index, missing)

        try:
            rule = RuleDefinition.model_validate(raw)
        except PydanticValidationError as e:
            fields = [str(error["loc"][0]) for error in e.errors() if error.get("loc")]
            raise MalformedRuleError(index, fields, {"error": str(e)}) from e

        if rule.access not in self.ACCESS_TYPES:
            raise UnknownAccessTypeError(rule.access, index)

        return rule

    @staticmethod
    def order_and_cycle_check(entries: Sequence[Definition]) -> List[Definition]:
        """Order entries parents-first.

        Raises UnresolvedParentError for a parent that names no entry and
        CycleDetectedError when the remaining entries can never be ordered.
        """
        all_names = {entry.name for entry in entries}
        for entry in entries:
            for parent in entry.parent_names:
                if parent not in all_names:
                    raise UnresolvedParentError(parent, entry.name)

        resolved: List[Definition] = []
        resolved_names: Set[str] = set()
        unresolved = list(entries)

        while unresolved:
            ready, pending = [], []
            for entry in unresolved:
                if all(parent in resolved_names for parent in entry.parent_names):
                    ready.append(entry)
                else:
                    pending.append(entry)

            # Nothing could be resolved in this pass
            if not ready:
                raise CycleDetectedError([entry.name for entry in pending])

            resolved.extend(ready)
            resolved_names.update(entry.name for entry in ready)
            unresolved = pending

        return resolved
