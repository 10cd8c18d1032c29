"""
Permissions description models.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class RoleDefinition(BaseModel):
    """Role entry of a permissions description."""
    name: str = Field(..., description="Role identifier")
    parent: Optional[Union[str, List[str]]] = Field(None, description="Parent role(s), lowest priority first")

    @property
    def parent_names(self) -> List[str]:
        if not self.parent:
            return []
        if isinstance(self.parent, str):
            return [self.parent]
        return list(self.parent)


class ResourceDefinition(BaseModel):
    """Resource entry of a permissions description."""
    name: str = Field(..., description="Resource identifier")
    parent: Optional[str] = Field(None, description="Parent resource")

    @property
    def parent_names(self) -> List[str]:
        return [self.parent] if self.parent else []


class RuleDefinition(BaseModel):
    """Rule entry of a permissions description.

    All four keys are required; ``None`` is a valid value for the
    wildcard dimensions.
    """
    access: str = Field(..., description="'allow' or 'deny'")
    role: Optional[Union[str, List[str]]] = Field(..., description="Role(s), None for all roles")
    resources: Optional[Union[str, List[str]]] = Field(..., description="Resource(s), None for all resources")
    privileges: Optional[Union[str, List[str]]] = Field(..., description="Privilege(s), None for all privileges")


class PermissionsDescription(BaseModel):
    """Declarative roles, resources and rules for bulk loading.

    Rule entries are kept as raw mappings and validated one by one so a
    bad entry can be reported by position.
    """
    roles: List[RoleDefinition] = Field(default_factory=list)
    resources: List[ResourceDefinition] = Field(default_factory=list)
    rules: List[Dict[str, Any]] = Field(default_factory=list)
