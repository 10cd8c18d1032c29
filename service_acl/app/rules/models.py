"""
Rule data models for the ACL engine.
"""

from typing import Any, Callable, Dict, Optional
from dataclasses import dataclass, field
from enum import Enum


class RuleType(str, Enum):
    """Rule verdicts."""
    ALLOW = "allow"
    DENY = "deny"


class RuleOperation(str, Enum):
    """Rule mutation operations."""
    ADD = "add"
    REMOVE = "remove"


# Reserved for conditional rules; evaluating one raises AssertionNotSupportedError
Assertion = Callable[..., bool]


@dataclass
class Rule:
    """A verdict with an optional assertion hook."""
    type: RuleType
    assertion: Optional[Assertion] = None


@dataclass
class RuleBucket:
    """Rules attached to one (resource scope, role scope) pair."""
    all_privileges: Optional[Rule] = None
    by_privilege: Dict[str, Rule] = field(default_factory=dict)


@dataclass
class ResourceRules:
    """Role buckets for one resource scope."""
    all_roles: Optional[RuleBucket] = None
    by_role: Dict[str, RuleBucket] = field(default_factory=dict)


def default_bucket() -> RuleBucket:
    """The fail-closed root bucket: deny everything to everyone."""
    return RuleBucket(all_privileges=Rule(type=RuleType.DENY))


def describe_bucket(bucket: RuleBucket) -> Dict[str, Any]:
    """Plain-data view of a bucket, as logged in store snapshots."""
    return {
        "all_privileges": bucket.all_privileges.type.value if bucket.all_privileges else None,
        "by_privilege": {
            privilege: rule.type.value for privilege, rule in bucket.by_privilege.items()
        },
    }
