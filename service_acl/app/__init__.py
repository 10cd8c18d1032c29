"""
ACL engine application package.
"""

from .acl import Acl, ResourceEntry
from .identifiers import Role, Resource, role_id_of, resource_id_of
from .roles import RoleRegistry
from .rules.models import Rule, RuleBucket, RuleOperation, RuleType
from .rules.store import RuleStore
from .loader import PermissionLoader, PermissionsDescription

__all__ = [
    "Acl",
    "ResourceEntry",
    "Role",
    "Resource",
    "role_id_of",
    "resource_id_of",
    "RoleRegistry",
    "Rule",
    "RuleBucket",
    "RuleOperation",
    "RuleType",
    "RuleStore",
    "PermissionLoader",
    "PermissionsDescription",
]
