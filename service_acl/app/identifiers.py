"""
Role and resource handles.

Every public entry point accepts either a handle or its string identifier;
``role_id_of`` and ``resource_id_of`` reduce such a reference to the
identifier in one place.
"""

from dataclasses import dataclass
from typing import Any, Union

from shared.errors import InvalidRoleArgumentError, InvalidResourceArgumentError


@dataclass(frozen=True)
class Role:
    """Subject handle."""
    role_id: str

    def __str__(self) -> str:
        return self.role_id


@dataclass(frozen=True)
class Resource:
    """Object handle."""
    resource_id: str

    def __str__(self) -> str:
        return self.resource_id


RoleRef = Union[Role, str]
ResourceRef = Union[Resource, str]

# Container types accepted wherever several references may be given
COLLECTIONS = (list, tuple, set, frozenset)


def role_id_of(role: Any) -> str:
    """Return the identifier of a role reference."""
    if isinstance(role, Role):
        return role.role_id
    if isinstance(role, str):
        return role
    raise InvalidRoleArgumentError(role)


def resource_id_of(resource: Any) -> str:
    """Return the identifier of a resource reference."""
    if isinstance(resource, Resource):
        return resource.resource_id
    if isinstance(resource, str):
        return resource
    raise InvalidResourceArgumentError(resource)
