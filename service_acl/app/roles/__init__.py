"""
Role registry package.

Holds the role inheritance DAG consulted by the ACL engine when it
searches for the most specific rule applicable to a role.
"""

from .registry import RoleEntry, RoleRegistry

__all__ = ["RoleEntry", "RoleRegistry"]
