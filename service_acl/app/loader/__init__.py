"""
Permissions loader package.

Turns a declarative permissions description (a mapping, or a JSON/YAML
file) into roles, resources and rules on an ACL instance.

Modules of interest:
- models: pydantic models for the description and its entries.
- loader: Validation, parent-first ordering with cycle detection, and
  application to the engine.
"""

from .loader import PermissionLoader
from .models import PermissionsDescription, RoleDefinition, ResourceDefinition, RuleDefinition

__all__ = [
    "PermissionLoader",
    "PermissionsDescription",
    "RoleDefinition",
    "ResourceDefinition",
    "RuleDefinition",
]
