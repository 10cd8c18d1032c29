"""
Rule store for the ACL engine.

Rules live in a three level tree:

    resource scope -> role scope -> RuleBucket(all_privileges, by_privilege)

A scope of ``None`` is the wildcard ("all resources" / "all roles"). The
root bucket (all resources, all roles) always exists and starts out as a
DENY on all privileges, so an ACL with no rules fails closed.
"""

from typing import Any, Dict, Iterable, Optional

from shared.logging import get_logger
from shared.errors import AssertionNotSupportedError
from .models import (
    Rule, RuleType, RuleBucket, ResourceRules, Assertion,
    default_bucket, describe_bucket
)


class RuleStore:
    """Tree-shaped rule storage."""

    def __init__(self):
        self.logger = get_logger("acl.rule_store")
        self.all_resources = ResourceRules(all_roles=default_bucket())
        self.by_resource: Dict[str, ResourceRules] = {}

    def get_bucket(
        self,
        resource_id: Optional[str],
        role_id: Optional[str],
        create: bool = False
    ) -> Optional[RuleBucket]:
        """Return the bucket for a resource/role pair, or None if there is none.

        With ``create`` missing levels are created on the way down.
        """
        if resource_id is None:
            visitor = self.all_resources
        else:
            visitor = self.by_resource.get(resource_id)
            if visitor is None:
                if not create:
                    return None
                visitor = self.by_resource[resource_id] = ResourceRules()

        if role_id is None:
            if visitor.all_roles is None and create:
                visitor.all_roles = RuleBucket()
            return visitor.all_roles

        bucket = visitor.by_role.get(role_id)
        if bucket is None and create:
            bucket = visitor.by_role[role_id] = RuleBucket()
        return bucket

    def get_rule_type(
        self,
        resource_id: Optional[str],
        role_id: Optional[str],
        privilege: Optional[str]
    ) -> Optional[RuleType]:
        """Return the verdict stored for a resource/role/privilege triple.

        ``privilege=None`` reads the all-privileges slot. Returns None when no
        rule applies.
        """
        bucket = self.get_bucket(resource_id, role_id)
        if bucket is None:
            return None

        if privilege is None:
            rule = bucket.all_privileges
        else:
            rule = bucket.by_privilege.get(privilege)

        if rule is None:
            return None

        if rule.assertion is not None:
            raise AssertionNotSupportedError({
                "resource_id": resource_id,
                "role_id": role_id,
                "privilege": privilege,
            })

        return rule.type

    def add_rule(
        self,
        resource_id: Optional[str],
        role_id: Optional[str],
        privileges: Iterable[str],
        rule_type: RuleType,
        assertion: Optional[Assertion] = None
    ) -> None:
        """Write a rule into the bucket for a resource/role pair."""
        bucket = self.get_bucket(resource_id, role_id, create=True)
        privileges = list(privileges)

        if not privileges:
            bucket.all_privileges = Rule(type=rule_type, assertion=assertion)
            bucket.by_privilege.clear()
        else:
            for privilege in privileges:
                bucket.by_privilege[privilege] = Rule(type=rule_type, assertion=assertion)

    def remove_rule(
        self,
        resource_id: Optional[str],
        role_id: Optional[str],
        privileges: Iterable[str],
        rule_type: RuleType
    ) -> None:
        """Remove rules of ``rule_type`` from the bucket for a resource/role pair.

        Rules of the other type are left alone. Removing the root
        all-privileges rule resets the root bucket to the default deny.
        """
        bucket = self.get_bucket(resource_id, role_id)
        if bucket is None:
            return

        privileges = list(privileges)

        if not privileges:
            current = bucket.all_privileges
            if current is None or current.type != rule_type:
                return
            if resource_id is None and role_id is None:
                self.reset_default()
            else:
                bucket.all_privileges = None
            return

        for privilege in privileges:
            rule = bucket.by_privilege.get(privilege)
            if rule is not None and rule.type == rule_type:
                del bucket.by_privilege[privilege]

    def reset_default(self) -> None:
        """Reset the root bucket to deny everything."""
        self.all_resources.all_roles = default_bucket()
        self.logger.debug("Default rule reset")

    def purge_role(self, role_id: str) -> None:
        """Drop every bucket keyed to a role."""
        self.all_resources.by_role.pop(role_id, None)
        for resource_rules in self.by_resource.values():
            resource_rules.by_role.pop(role_id, None)

    def purge_all_roles(self) -> None:
        """Drop every role-specific bucket; wildcard-role buckets stay."""
        self.all_resources.by_role.clear()
        for resource_rules in self.by_resource.values():
            resource_rules.by_role.clear()

    def purge_resource(self, resource_id: str) -> None:
        """Drop every bucket keyed to a resource."""
        self.by_resource.pop(resource_id, None)

    def purge_all_resources(self) -> None:
        """Drop every resource-specific bucket; the all-resources bucket stays."""
        self.by_resource.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view of the whole store."""
        def _resource_view(resource_rules: ResourceRules) -> Dict[str, Any]:
            return {
                "all_roles": (
                    describe_bucket(resource_rules.all_roles)
                    if resource_rules.all_roles is not None else None
                ),
                "by_role": {
                    role_id: describe_bucket(bucket)
                    for role_id, bucket in resource_rules.by_role.items()
                },
            }

        return {
            "all_resources": _resource_view(self.all_resources),
            "by_resource": {
                resource_id: _resource_view(resource_rules)
                for resource_id, resource_rules in self.by_resource.items()
            },
        }

    def get_store_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        buckets = [self.all_resources, *self.by_resource.values()]
        return {
            "resource_buckets": len(self.by_resource),
            "role_buckets": sum(len(r.by_role) for r in buckets),
            "wildcard_role_buckets": sum(1 for r in buckets if r.all_roles is not None),
        }
